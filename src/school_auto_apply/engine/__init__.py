"""Automation engine: payload building, page collaborators and result types."""

from school_auto_apply.engine.models import (
    AutomationField, AutomationResult, AutomationTemplate, ControlType,
    ResultArtifacts, RunPayload, UserLoginInput
)
from school_auto_apply.engine.template import TemplateNode, flatten_template_leaves, normalize_template_structure
from school_auto_apply.engine.fields import coerce_field_value, infer_control_type, map_node_to_field
from school_auto_apply.engine.credentials import merge_user_login
from school_auto_apply.engine.payload import build_run_payload
from school_auto_apply.engine.context import ExecutionContext

__all__ = [
    "AutomationField", "AutomationResult", "AutomationTemplate", "ControlType",
    "ResultArtifacts", "RunPayload", "UserLoginInput",
    "TemplateNode", "flatten_template_leaves", "normalize_template_structure",
    "coerce_field_value", "infer_control_type", "map_node_to_field",
    "merge_user_login", "build_run_payload", "ExecutionContext",
]
