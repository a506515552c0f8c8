"""
Address Resolver.

Maps an address received as callback_data back to the node it names.
Matching is exact segment by segment; there is no prefix matching, so a
truncated or stale address simply resolves to nothing.
"""

from botbuilder.telegram.menu.address import is_root_address, split_address
from botbuilder.telegram.menu.tree import MenuLevel, MenuNode, MenuTree


def resolve(tree: MenuTree, address: str) -> MenuNode | None:
    """
    Find the node at `address`.

    Returns:
        The node (of any kind), or None when any segment is missing, when a
        segment tries to descend into a node without children, or when the
        address is the root (which is not a node).
    """
    if is_root_address(address):
        return None

    level: MenuLevel | None = tree.nodes
    node: MenuNode | None = None

    for segment in split_address(address):
        if level is None:
            return None
        node = level.get(segment)
        if node is None:
            return None
        level = node.children if node.is_navigable else None

    return node


def resolve_level(tree: MenuTree, address: str) -> MenuLevel | None:
    """
    Find the mapping of items displayed at `address`.

    The root address and the root sentinel always give the top level, even
    for an empty tree. A navigable submenu gives its children; anything
    else gives None.
    """
    if is_root_address(address):
        return tree.nodes

    node = resolve(tree, address)
    if node is None or not node.is_navigable:
        return None
    return node.children
