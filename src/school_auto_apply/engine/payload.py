"""Assembly of the run payload handed to automation scripts."""

from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from school_auto_apply.engine.credentials import LoginSource, merge_user_login
from school_auto_apply.engine.fields import build_fields_from_form_data, map_node_to_field
from school_auto_apply.engine.models import AutomationField, AutomationTemplate, RunPayload
from school_auto_apply.engine.template import (
    flatten_template_leaves,
    format_template_name,
    normalize_template_structure,
)
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)


def build_template_fields(fields_data: Any, answers: Mapping[str, Any]) -> List[AutomationField]:
    """Flatten the stored template and map every leaf onto a field, in fill order."""
    leaves = flatten_template_leaves(normalize_template_structure(fields_data))
    if leaves:
        return [map_node_to_field(node, answers) for node in leaves]

    logger.info("Template has no leaf fields, falling back to stored answers", answer_count=len(answers))
    return build_fields_from_form_data(answers)


def build_run_payload(
    school_id: str,
    template_id: str,
    fields_data: Any,
    answers: Optional[Mapping[str, Any]] = None,
    school_name: Any = None,
    template_metadata: Optional[Dict[str, Any]] = None,
    account: Optional[LoginSource] = None,
    login_override: Optional[LoginSource] = None,
    run_id: Optional[str] = None,
) -> RunPayload:
    """
    Build the payload for one run.

    Args:
        school_id: Target identifier used to select the script
        template_id: Stored template identifier
        fields_data: Raw template tree
        answers: Previously submitted answers keyed by field id
        school_name: Stored (possibly localized) school name
        template_metadata: Extra template attributes such as the program
        account: Stored account record with email/username
        login_override: Per-run credentials supplied by the caller
        run_id: Explicit run id; a fresh one is generated when omitted

    Returns:
        RunPayload ready for dispatch
    """
    fields = build_template_fields(fields_data, answers or {})
    payload = RunPayload(
        school_id=school_id,
        template=AutomationTemplate(
            id=template_id,
            name=format_template_name(school_name),
            fields=fields,
            metadata=template_metadata or {},
        ),
        user_login=merge_user_login(account, login_override),
        run_id=run_id or uuid4().hex,
    )

    logger.debug(
        "Run payload built",
        school_id=school_id,
        template_id=template_id,
        run_id=payload.run_id,
        field_count=len(fields),
        has_login=payload.user_login is not None,
    )
    return payload
