"""Helpers shared by school scripts."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from school_auto_apply.engine.models import AutomationField, AutomationTemplate, ControlType


@dataclass(frozen=True)
class FieldOverride:
    """Site-specific replacement attributes for one template field."""
    label: Optional[str] = None
    control_type: Optional[ControlType] = None
    metadata: Optional[Dict[str, Any]] = None

    def apply(self, form_field: AutomationField) -> AutomationField:
        update: Dict[str, Any] = {}
        if self.label is not None:
            update["label"] = self.label
        if self.control_type is not None:
            update["control_type"] = self.control_type
        if self.metadata is not None:
            update["metadata"] = {**form_field.metadata, **self.metadata}
        return form_field.model_copy(update=update)


def remap_template_fields(
    template: AutomationTemplate,
    overrides: Mapping[str, FieldOverride]
) -> List[AutomationField]:
    """
    Apply an explicit override table to the template fields.

    Fields keep their template order; fields without an override are kept
    unchanged. Override keys that match no field are ignored.
    """
    return [
        overrides[form_field.field_id].apply(form_field) if form_field.field_id in overrides else form_field
        for form_field in template.fields
    ]
