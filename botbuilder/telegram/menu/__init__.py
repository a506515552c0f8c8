"""
Menu Navigation Engine.

Menu tree model, address resolution, and inline keyboard rendering.

Structure:
    botbuilder/telegram/menu/
    ├── address.py   # Address helpers, root sentinel, callback_data limit
    ├── tree.py      # MenuNode / MenuTree, lenient loading, strict validation
    ├── resolver.py  # Address -> node / level lookup
    └── keyboard.py  # Level -> InlineKeyboardMarkup
"""

from botbuilder.telegram.menu.address import (
    CALLBACK_DATA_LIMIT,
    ROOT_SENTINEL,
    fit_callback_data,
    is_root_address,
    parent_address,
)
from botbuilder.telegram.menu.keyboard import (
    BACK_BUTTON_TEXT,
    MAIN_MENU_BUTTON_TEXT,
    build_main_menu_keyboard,
    build_menu_keyboard,
    iter_menu_rows,
)
from botbuilder.telegram.menu.resolver import resolve, resolve_level
from botbuilder.telegram.menu.tree import MenuNode, MenuTree, NodeKind, validate_menu

__all__ = [
    "BACK_BUTTON_TEXT",
    "CALLBACK_DATA_LIMIT",
    "MAIN_MENU_BUTTON_TEXT",
    "MenuNode",
    "MenuTree",
    "NodeKind",
    "ROOT_SENTINEL",
    "build_main_menu_keyboard",
    "build_menu_keyboard",
    "fit_callback_data",
    "is_root_address",
    "iter_menu_rows",
    "parent_address",
    "resolve",
    "resolve_level",
    "validate_menu",
]
