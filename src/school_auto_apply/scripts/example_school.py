"""Reference script showing the structure expected of new school scripts."""

from school_auto_apply.scripts.base import StandardFormScript
from school_auto_apply.scripts.common import FieldOverride


class ExampleSchoolScript(StandardFormScript):
    """Example International School: login, label overrides, default submit."""

    id = "example-school"
    name = "Example International School"
    description = "Demonstrates the structure required for new school automation scripts."
    supports_login = True

    entry_url = "https://example.edu/apply"
    # Illustrative secondary login page for the login fallback; example.edu is a placeholder host.
    login_url = "https://example.edu/login"

    # Template ids that do not match the page labels.
    field_overrides = {
        "english_first_name": FieldOverride(label="First Name"),
        "english_last_name": FieldOverride(label="Last Name"),
        "student_email": FieldOverride(label="Email"),
        "student_phone": FieldOverride(label="Phone"),
        "home_address": FieldOverride(label="Street Address"),
    }
