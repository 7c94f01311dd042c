"""Mapping of template leaves and stored answers onto automation fields."""

import json
from typing import Any, Dict, List, Mapping
from uuid import uuid4

from school_auto_apply.engine.models import AutomationField, ControlType, FieldValue
from school_auto_apply.engine.template import TemplateNode

# Stored answer documents keep a snapshot of the template under this key.
STRUCTURE_KEY = "__structure"

_CONTROL_TYPES: Dict[str, ControlType] = {
    "textarea": ControlType.TEXTAREA,
    "essay": ControlType.TEXTAREA,
    "select": ControlType.SELECT,
    "radio": ControlType.RADIO,
    "checkbox": ControlType.CHECKBOX,
    "date": ControlType.DATE,
}


def infer_control_type(declared_type: Any) -> ControlType:
    """Map a declared template type onto a control type; unknown types are text."""
    if isinstance(declared_type, str):
        return _CONTROL_TYPES.get(declared_type, ControlType.TEXT)
    return ControlType.TEXT


def coerce_field_value(value: Any) -> FieldValue:
    """Normalize an answer to a string, a list of strings or a boolean."""
    if isinstance(value, bool):
        return value
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    if isinstance(value, dict):
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            return ""
    return str(value)


def resolve_field_value(node: TemplateNode, answers: Mapping[str, Any]) -> Any:
    """Stored answer for the node id, else the node default, else empty string."""
    stored = answers.get(node.id) if node.id is not None else None
    if stored is not None:
        return stored
    if node.value is not None:
        return node.value
    return ""


def map_node_to_field(node: TemplateNode, answers: Mapping[str, Any]) -> AutomationField:
    """
    Convert one template leaf plus the user's stored answers into a field.

    Args:
        node: Leaf node produced by the flattener
        answers: Sparse map of previously submitted answers keyed by field id

    Returns:
        AutomationField with a normalized value and inferred control type
    """
    return AutomationField(
        field_id=node.id or uuid4().hex,
        label=node.label if isinstance(node.label, str) else None,
        value=coerce_field_value(resolve_field_value(node, answers)),
        control_type=infer_control_type(node.type),
        metadata={
            "required": node.required,
            "help_text": node.help_text,
            "placeholder": node.placeholder,
            "ai_fill_rule": node.ai_fill_rule,
            "options": node.options,
            "original_type": node.type,
        },
    )


def build_fields_from_form_data(answers: Mapping[str, Any]) -> List[AutomationField]:
    """Fallback for templates without leaves: every stored answer becomes a text field."""
    return [
        AutomationField(
            field_id=field_id,
            label=field_id,
            value=coerce_field_value(value),
            control_type=ControlType.TEXT,
            metadata={},
        )
        for field_id, value in answers.items()
        if field_id != STRUCTURE_KEY
    ]
