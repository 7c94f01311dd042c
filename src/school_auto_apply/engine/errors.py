"""Exceptions raised inside the automation engine."""

from typing import Optional


class AutoApplyError(Exception):
    """Base class for automation engine errors."""


class NavigationError(AutoApplyError):
    """A page failed to load or answered with a non-OK status."""

    def __init__(self, url: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(
            f"Failed to load {url} - status {status if status is not None else 'unknown'}"
        )


class FieldNotFoundError(AutoApplyError):
    """No on-page control matched a template field."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Unable to locate field {field_id}")


class TemplateNotFoundError(AutoApplyError):
    """A template id did not resolve to a stored template."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")
