"""Template tree parsing and flattening into ordered leaf fields."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

# Child collections are visited in this order; it fixes the fill order.
TEMPLATE_CHILD_COLLECTION_KEYS = (
    "fields",
    "items",
    "sections",
    "tabs",
    "children",
    "rows",
    "columns",
    "steps",
    "groups",
)

DEFAULT_TEMPLATE_NAME = "School Application"

_LEAF_ATTRIBUTES = {
    "id": "id",
    "label": "label",
    "type": "type",
    "required": "required",
    "options": "options",
    "placeholder": "placeholder",
    "helpText": "help_text",
    "help_text": "help_text",
    "aiFillRule": "ai_fill_rule",
    "ai_fill_rule": "ai_fill_rule",
    "value": "value",
}


@dataclass
class TemplateNode:
    """A group of nested collections or a leaf field of a form template."""
    id: Optional[str] = None
    label: Any = None
    type: Optional[str] = None
    required: Optional[bool] = None
    options: Any = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    ai_fill_rule: Optional[str] = None
    value: Any = None
    collections: Dict[str, List["TemplateNode"]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        """A node is a leaf unless at least one child collection is non-empty."""
        return not any(self.collections.get(key) for key in TEMPLATE_CHILD_COLLECTION_KEYS)

    def children(self) -> List["TemplateNode"]:
        """All children in collection-key order, then declaration order."""
        ordered: List[TemplateNode] = []
        for key in TEMPLATE_CHILD_COLLECTION_KEYS:
            ordered.extend(self.collections.get(key) or [])
        return ordered

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateNode":
        """Build a node (and its subtree) from raw template JSON."""
        node = cls()
        for key, raw in data.items():
            if key in TEMPLATE_CHILD_COLLECTION_KEYS and isinstance(raw, list):
                node.collections[key] = [
                    cls.from_dict(child) for child in raw if isinstance(child, Mapping)
                ]
            elif key in _LEAF_ATTRIBUTES:
                setattr(node, _LEAF_ATTRIBUTES[key], raw)
            else:
                node.extra[key] = raw

        if node.id is not None and not isinstance(node.id, str):
            node.id = str(node.id)
        return node


def normalize_template_structure(raw: Any) -> List[TemplateNode]:
    """
    Turn stored template JSON into a forest of nodes.

    Accepts a JSON string, a list of node objects or a single node object.
    Anything else yields an empty forest.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Template structure is not valid JSON", length=len(raw))
            return []

    if isinstance(raw, TemplateNode):
        return [raw]
    if isinstance(raw, Mapping):
        return [TemplateNode.from_dict(raw)]
    if isinstance(raw, list):
        forest = []
        for item in raw:
            if isinstance(item, TemplateNode):
                forest.append(item)
            elif isinstance(item, Mapping):
                forest.append(TemplateNode.from_dict(item))
        return forest
    return []


def flatten_template_leaves(structure: Iterable[TemplateNode]) -> List[TemplateNode]:
    """
    Collect leaf nodes depth-first, left-to-right, in declaration order.

    A group whose collections are all empty is emitted as a leaf of its own.

    Args:
        structure: Ordered forest of template nodes

    Returns:
        Leaf nodes in the order fields must be filled
    """
    leaves: List[TemplateNode] = []

    def visit(node: TemplateNode) -> None:
        if node.is_leaf:
            leaves.append(node)
            return
        for child in node.children():
            visit(child)

    for node in structure:
        visit(node)
    return leaves


def format_template_name(value: Any) -> str:
    """
    Resolve a stored school name into a display string.

    The stored value may be a plain string, a JSON-encoded localized map
    or an already decoded localized dict.
    """
    name: Union[str, Dict[str, Any], None] = None

    if isinstance(value, str):
        trimmed = value.strip()
        name = value
        if trimmed.startswith("{") or trimmed.startswith("["):
            try:
                parsed = json.loads(trimmed)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                name = parsed
    elif isinstance(value, Mapping):
        name = dict(value)

    if isinstance(name, str):
        return name or DEFAULT_TEMPLATE_NAME
    if name:
        if name.get("en"):
            return str(name["en"])
        for localized in name.values():
            if localized:
                return str(localized)
    return DEFAULT_TEMPLATE_NAME
