"""School automation scripts."""

from school_auto_apply.scripts.base import (
    AutomationScript, StandardFormScript, SubmitCandidate, VerificationOutcome
)
from school_auto_apply.scripts.common import FieldOverride, remap_template_fields
from school_auto_apply.scripts.example_school import ExampleSchoolScript
from school_auto_apply.scripts.dsc_hkis_2025 import DscHkis2025Script
from school_auto_apply.scripts.dsc_international_school import DscInternationalSchoolScript

__all__ = [
    "AutomationScript", "StandardFormScript", "SubmitCandidate", "VerificationOutcome",
    "FieldOverride", "remap_template_fields",
    "ExampleSchoolScript", "DscHkis2025Script", "DscInternationalSchoolScript",
]
