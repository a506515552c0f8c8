"""
Menu Tree Model.

Typed view over the JSON menu the visual editor saves:

    {
        "faq": {
            "id": "faq",
            "text": "FAQ",
            "type": "submenu",
            "content": "Pick one",
            "children": {
                "hours": {"id": "hours", "text": "Hours", "type": "text", "content": "9-5"}
            }
        }
    }

Two entry points with different strictness:

- `MenuTree.from_raw` is used at conversation time. It never raises: entries
  that cannot be turned into a node are skipped and logged, and malformed
  nodes (an image without a URL, a submenu without children) are kept so the
  engine can answer them with its fallback text.
- `validate_menu` is used when the editor saves a tree. It reports every
  broken invariant so the save can be rejected.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from botbuilder.backend.core.logging import get_logger
from botbuilder.telegram.menu.address import (
    CALLBACK_DATA_LIMIT,
    ROOT_SENTINEL,
    SEPARATOR,
    address_size,
    join_address,
)

logger = get_logger(__name__)

MAX_MENU_DEPTH = 16


class NodeKind(str, Enum):
    """What pressing a node's button does."""

    TEXT = "text"
    IMAGE = "image"
    SUBMENU = "submenu"


class MenuNode(BaseModel):
    """
    A single menu item.

    `children` is only ever set on submenus and `image_url` only on images;
    the loader drops them from every other kind.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    text: str = Field(min_length=1)
    kind: NodeKind = Field(alias="type")
    content: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    children: dict[str, "MenuNode"] | None = None

    @property
    def is_navigable(self) -> bool:
        """A submenu that actually carries a children mapping."""
        return self.kind is NodeKind.SUBMENU and self.children is not None

    @property
    def has_image(self) -> bool:
        """An image node with a URL to send."""
        return self.kind is NodeKind.IMAGE and bool(self.image_url)


MenuLevel = Mapping[str, MenuNode]


@dataclass(frozen=True)
class MenuTree:
    """The top level of a bot's menu. The root has no id of its own."""

    nodes: MenuLevel = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> "MenuTree":
        """Build the tree from stored JSON, skipping unusable entries."""
        return cls(nodes=_load_level(raw, parent="", depth=1))

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)


def _load_level(raw: Any, parent: str, depth: int) -> dict[str, MenuNode]:
    if not isinstance(raw, Mapping):
        if raw:
            logger.warning("Menu level is not a mapping", extra={"address": parent or ROOT_SENTINEL})
        return {}

    level: dict[str, MenuNode] = {}
    for key, value in raw.items():
        item_id = str(key)
        address = join_address(parent, item_id)

        if address_size(address) > CALLBACK_DATA_LIMIT:
            # A truncated button could land on a sibling whose id is the prefix
            logger.warning("Skipping menu entry with over-long address", extra={"address": address})
            continue
        if not isinstance(value, Mapping):
            logger.warning("Skipping malformed menu entry", extra={"address": address})
            continue

        fields = {name: item for name, item in value.items() if name != "children"}
        fields["id"] = item_id
        try:
            node = MenuNode.model_validate(fields)
        except PydanticValidationError as e:
            logger.warning(
                "Skipping invalid menu node",
                extra={"address": address, "errors": e.error_count()},
            )
            continue

        if node.kind is NodeKind.SUBMENU:
            raw_children = value.get("children")
            if not isinstance(raw_children, Mapping):
                logger.warning("Submenu has no children", extra={"address": address})
            elif depth >= MAX_MENU_DEPTH:
                logger.warning("Menu nesting too deep, children dropped", extra={"address": address})
            else:
                children = _load_level(raw_children, parent=address, depth=depth + 1)
                node = node.model_copy(update={"children": children})
        elif node.image_url and node.kind is not NodeKind.IMAGE:
            node = node.model_copy(update={"image_url": None})

        level[item_id] = node
    return level


def validate_menu(raw: Any) -> list[str]:
    """
    Check a menu tree submitted by the editor.

    Returns:
        Human-readable problems, each prefixed with the offending address.
        An empty list means the tree can be saved.
    """
    if not isinstance(raw, Mapping):
        return ["Menu structure must be an object"]

    problems: list[str] = []
    pending: list[tuple[Mapping, str, int]] = [(raw, "", 1)]
    kinds = {kind.value for kind in NodeKind}

    while pending:
        level, parent, depth = pending.pop()
        for key, value in level.items():
            item_id = str(key)
            address = join_address(parent, item_id)

            if not item_id:
                problems.append(f"{parent or 'root'}: item ids must not be empty")
                continue
            if SEPARATOR in item_id:
                problems.append(f"{address}: item id must not contain '{SEPARATOR}'")
                continue
            if depth == 1 and item_id == ROOT_SENTINEL:
                problems.append(f"{address}: item id is reserved")
            if address_size(address) > CALLBACK_DATA_LIMIT:
                problems.append(
                    f"{address}: address exceeds {CALLBACK_DATA_LIMIT} bytes"
                )
            if not isinstance(value, Mapping):
                problems.append(f"{address}: item must be an object")
                continue

            declared_id = value.get("id")
            if declared_id is not None and declared_id != item_id:
                problems.append(f"{address}: id {declared_id!r} does not match its key")

            text = value.get("text")
            if not isinstance(text, str) or not text.strip():
                problems.append(f"{address}: button text is required")

            kind = value.get("type")
            if kind not in kinds:
                problems.append(f"{address}: unknown item type {kind!r}")
                continue

            children = value.get("children")
            if kind == NodeKind.SUBMENU.value:
                if not isinstance(children, Mapping):
                    problems.append(f"{address}: submenu requires children")
                elif depth >= MAX_MENU_DEPTH:
                    problems.append(f"{address}: menu nesting deeper than {MAX_MENU_DEPTH} levels")
                else:
                    pending.append((children, address, depth + 1))
            elif children is not None:
                problems.append(f"{address}: only submenus can have children")

            if kind == NodeKind.IMAGE.value:
                image_url = value.get("imageUrl")
                if not isinstance(image_url, str) or not image_url.strip():
                    problems.append(f"{address}: image requires imageUrl")

    return problems
