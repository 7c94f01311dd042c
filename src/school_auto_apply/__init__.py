"""
School Auto-Apply: browser automation for school application forms.

Stored form templates and a user's saved answers are turned into a run
payload; a per-school automation script then drives a Playwright page to
fill and submit the school's online application form.
"""

__version__ = "0.1.0"

from school_auto_apply.engine.models import AutomationResult, RunPayload
from school_auto_apply.engine.payload import build_run_payload
from school_auto_apply.registry import ScriptRegistry, build_default_registry
from school_auto_apply.service import AutoApplyService

__all__ = [
    "AutomationResult",
    "RunPayload",
    "build_run_payload",
    "ScriptRegistry",
    "build_default_registry",
    "AutoApplyService",
]
