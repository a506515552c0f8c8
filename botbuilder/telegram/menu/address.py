"""
Menu Addresses.

An address is the dot-joined path of item ids from the tree root to a node,
e.g. "faq.hours". It is the only conversation state: it travels inside the
inline button's callback_data and comes back with the callback query.
"""

SEPARATOR = "."

ROOT_SENTINEL = "main_menu"
"""Button destination meaning "show the top-level menu"; never a stored node."""

CALLBACK_DATA_LIMIT = 60
"""Bytes of callback_data the engine emits (Telegram accepts 64)."""


def is_root_address(address: str) -> bool:
    """Whether the address names the tree root rather than a node."""
    return address == "" or address == ROOT_SENTINEL


def split_address(address: str) -> list[str]:
    """Segments of a node address; the root has none."""
    if is_root_address(address):
        return []
    return address.split(SEPARATOR)


def join_address(parent: str, item_id: str) -> str:
    """Address of `item_id` inside the level at `parent`."""
    if is_root_address(parent):
        return item_id
    return f"{parent}{SEPARATOR}{item_id}"


def parent_address(address: str) -> str:
    """
    Address one level up.

    Top-level nodes (and the root itself) go back to the root sentinel.
    """
    segments = split_address(address)
    if len(segments) <= 1:
        return ROOT_SENTINEL
    return SEPARATOR.join(segments[:-1])


def address_size(address: str) -> int:
    """Size of the address in bytes as Telegram counts callback_data."""
    return len(address.encode("utf-8"))


def fit_callback_data(address: str, limit: int = CALLBACK_DATA_LIMIT) -> str:
    """
    Truncate an address to at most `limit` UTF-8 bytes.

    Keeps the left-most bytes and drops a trailing partial character, so
    the result is deterministic and applying it twice changes nothing.
    """
    encoded = address.encode("utf-8")
    if len(encoded) <= limit:
        return address
    return encoded[:limit].decode("utf-8", errors="ignore")
