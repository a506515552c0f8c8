"""
Menu Keyboard Rendering.

Turns one level of the menu tree into an inline keyboard: one button per
item, one item per row, in the order the editor saved them. Each button's
callback_data is the full address of its item, which is how the next
callback query knows where the user is.

Non-root levels get a trailing navigation row:

    [ ⬅️ Go Back ] [ 🏠 Main Menu ]
"""

from collections.abc import Iterator

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from botbuilder.backend.core.logging import get_logger
from botbuilder.telegram.menu.address import (
    ROOT_SENTINEL,
    fit_callback_data,
    is_root_address,
    join_address,
    parent_address,
)
from botbuilder.telegram.menu.tree import MenuLevel

logger = get_logger(__name__)

BACK_BUTTON_TEXT = "⬅️ Go Back"
MAIN_MENU_BUTTON_TEXT = "🏠 Main Menu"

# Telegram rejects inline keyboards with more buttons than this
MAX_INLINE_BUTTONS = 100


def menu_button(text: str, destination: str) -> InlineKeyboardButton:
    """Inline button whose callback_data is `destination`, cut to the size limit."""
    return InlineKeyboardButton(text=text, callback_data=fit_callback_data(destination))


def navigation_row(address: str) -> list[InlineKeyboardButton]:
    """Back-to-parent and back-to-root buttons for the level at `address`."""
    return [
        menu_button(BACK_BUTTON_TEXT, parent_address(address)),
        menu_button(MAIN_MENU_BUTTON_TEXT, ROOT_SENTINEL),
    ]


def iter_menu_rows(
    level: MenuLevel,
    address: str = "",
) -> Iterator[list[InlineKeyboardButton]]:
    """
    Lazily produce the button rows for a menu level.

    Args:
        level: Items shown at this level (id -> node)
        address: Address of the level; "" or the root sentinel for the top

    Yields:
        Rows of buttons, item rows first, navigation row last (non-root only)
    """
    nested = not is_root_address(address)
    capacity = MAX_INLINE_BUTTONS - 2 if nested else MAX_INLINE_BUTTONS

    for index, (item_id, node) in enumerate(level.items()):
        if index >= capacity:
            logger.warning(
                "Menu level exceeds keyboard size, extra items dropped",
                extra={"address": address, "items": len(level), "shown": capacity},
            )
            break
        yield [menu_button(node.text, join_address(address, item_id))]

    if nested:
        yield navigation_row(address)


def build_menu_keyboard(
    level: MenuLevel,
    address: str = "",
) -> InlineKeyboardMarkup | None:
    """
    Build the inline keyboard for a menu level.

    Returns:
        The keyboard, or None for an empty top level (the message is then
        sent as plain text)
    """
    if is_root_address(address) and not level:
        return None

    builder = InlineKeyboardBuilder()
    for row in iter_menu_rows(level, address):
        builder.row(*row)

    return builder.as_markup()


def build_main_menu_keyboard() -> InlineKeyboardMarkup:
    """Single "back to main menu" button shown under leaf content."""
    builder = InlineKeyboardBuilder()
    builder.row(menu_button(MAIN_MENU_BUTTON_TEXT, ROOT_SENTINEL))
    return builder.as_markup()
