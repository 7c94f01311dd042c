"""Core data models exchanged between the payload builder, scripts and callers."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


FieldValue = Union[bool, List[str], str]


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys and populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ControlType(str, Enum):
    """Page-interaction categories the generic form filler can target."""
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"


class AutomationField(CamelModel):
    """A template leaf ready for page interaction."""
    field_id: str = Field(..., description="Field identifier, unique within a run")
    label: Optional[str] = Field(None, description="Human-readable label")
    value: FieldValue = Field("", description="Normalized value to enter")
    control_type: ControlType = Field(ControlType.TEXT, description="Control category")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Original node attributes")


class UserLoginInput(CamelModel):
    """Credentials used by a script to authenticate on the target site."""
    email: Optional[str] = Field(None, description="Account email")
    username: Optional[str] = Field(None, description="Account username")
    password: Optional[str] = Field(None, description="Plaintext password supplied for this run")
    extra: Optional[Dict[str, str]] = Field(None, description="Site-specific login values")

    @property
    def has_identity(self) -> bool:
        return bool(self.email or self.username)


class AutomationTemplate(CamelModel):
    """A stored form template reduced to its ordered fields."""
    id: str = Field(..., description="Template identifier")
    name: Optional[str] = Field(None, description="Display name of the school/form")
    fields: List[AutomationField] = Field(default_factory=list, description="Fields in fill order")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Template metadata")


class RunPayload(CamelModel):
    """Everything a script needs for one run."""
    school_id: str = Field(..., description="Target identifier used for dispatch")
    template: AutomationTemplate = Field(..., description="Template with resolved values")
    user_login: Optional[UserLoginInput] = Field(None, description="Merged login credentials")
    run_id: str = Field(default_factory=lambda: uuid4().hex, description="Fresh id used for artifact names")
    locale: Optional[str] = Field(None, description="Preferred locale for the browser context")
    artifact_dir: Optional[str] = Field(None, description="Override for the artifact directory")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Caller-supplied metadata")


class ResultArtifacts(CamelModel):
    """Forensic files captured when a run fails."""
    screenshot_path: Optional[str] = Field(None, description="Full-page screenshot")
    raw_html_path: Optional[str] = Field(None, description="Raw HTML dump")
    log_lines: Optional[List[str]] = Field(None, description="Log lines collected during the run")


class AutomationResult(CamelModel):
    """Outcome of a single run, owned by the caller once returned."""
    success: bool = Field(..., description="Whether the run completed")
    message: str = Field("", description="Confirmation or failure message")
    errors: Optional[List[str]] = Field(None, description="Error messages and tracebacks")
    artifacts: Optional[ResultArtifacts] = Field(None, description="Captured artifacts")

    @classmethod
    def succeeded(cls, message: str) -> "AutomationResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(
        cls,
        message: str,
        errors: Optional[List[str]] = None,
        artifacts: Optional[ResultArtifacts] = None
    ) -> "AutomationResult":
        return cls(success=False, message=message, errors=errors, artifacts=artifacts)

    def with_artifacts(self, artifacts: Optional[ResultArtifacts]) -> "AutomationResult":
        """Return a copy whose artifacts are merged with ``artifacts`` (new values win)."""
        if artifacts is None:
            return self
        merged = self.artifacts.model_dump() if self.artifacts else {}
        merged.update(artifacts.model_dump(exclude_none=True))
        return self.model_copy(update={"artifacts": ResultArtifacts(**merged)})

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
