"""Read access to stored templates, prior answers and user accounts."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from school_auto_apply.engine.errors import TemplateNotFoundError
from school_auto_apply.engine.models import RunPayload
from school_auto_apply.engine.payload import build_run_payload
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class StoredTemplate:
    """A school form template as persisted by the admin tooling."""
    id: str
    school_name: Any = None
    program: Optional[str] = None
    fields_data: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredTemplate":
        return cls(
            id=str(data["id"]),
            school_name=data.get("schoolName", data.get("school_name")),
            program=data.get("program"),
            fields_data=data.get("fieldsData", data.get("fields_data")),
        )


@dataclass
class UserAccount:
    """Account fields of an authenticated user."""
    email: Optional[str] = None
    username: Optional[str] = None


class AutoApplyRepository(Protocol):
    """Lookups needed to assemble a run payload."""

    async def get_template(self, template_id: str) -> Optional[StoredTemplate]: ...

    async def get_application_data(self, school_id: str, user_id: str) -> Optional[Dict[str, Any]]: ...

    async def get_profile_form_data(self, user_id: str, template_id: str) -> Optional[Dict[str, Any]]: ...

    async def get_user_account(self, user_id: str) -> Optional[UserAccount]: ...


@dataclass
class InMemoryRepository:
    """Dictionary-backed repository used by tests and the JSON file loader."""
    templates: Dict[str, StoredTemplate] = field(default_factory=dict)
    application_data: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    profile_form_data: Dict[str, Dict[str, Dict[str, Any]]] = field(default_factory=dict)
    accounts: Dict[str, UserAccount] = field(default_factory=dict)

    @staticmethod
    def application_key(school_id: str, user_id: str) -> str:
        return f"{school_id}:{user_id}"

    async def get_template(self, template_id: str) -> Optional[StoredTemplate]:
        return self.templates.get(template_id)

    async def get_application_data(self, school_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return self.application_data.get(self.application_key(school_id, user_id))

    async def get_profile_form_data(self, user_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        return self.profile_form_data.get(user_id, {}).get(template_id)

    async def get_user_account(self, user_id: str) -> Optional[UserAccount]:
        return self.accounts.get(user_id)


class JsonFileRepository(InMemoryRepository):
    """
    Repository loaded once from a JSON document.

    Expected layout::

        {
          "templates": [{"id": ..., "schoolName": ..., "program": ..., "fieldsData": [...]}],
          "applicationData": {"<schoolId>:<userId>": {...answers}},
          "profileFormData": {"<userId>": {"<templateId>": {...answers}}},
          "users": {"<userId>": {"email": ..., "username": ...}}
        }
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        document = json.loads(self.path.read_text(encoding="utf-8"))

        raw_templates = document.get("templates", [])
        if isinstance(raw_templates, dict):
            raw_templates = [{"id": key, **value} for key, value in raw_templates.items()]

        super().__init__(
            templates={t.id: t for t in (StoredTemplate.from_dict(item) for item in raw_templates)},
            application_data=dict(document.get("applicationData", {})),
            profile_form_data=dict(document.get("profileFormData", {})),
            accounts={
                user_id: UserAccount(email=user.get("email"), username=user.get("username"))
                for user_id, user in document.get("users", {}).items()
            },
        )
        logger.info("Repository loaded", path=str(self.path), templates=len(self.templates))


async def load_answers(repository: AutoApplyRepository, school_id: str, user_id: str, template_id: str) -> Dict[str, Any]:
    """Answers saved for (school, user), else answers saved on the user's profile application."""
    data = await repository.get_application_data(school_id, user_id)
    if isinstance(data, dict):
        return data

    data = await repository.get_profile_form_data(user_id, template_id)
    if isinstance(data, dict):
        return data
    return {}


async def require_template(repository: AutoApplyRepository, template_id: str) -> StoredTemplate:
    template = await repository.get_template(template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)
    return template


async def assemble_run_payload(
    repository: AutoApplyRepository,
    school_id: str,
    template_id: str,
    user_id: str,
    login_override: Optional[Any] = None,
) -> RunPayload:
    """
    Resolve stored data for (school, template, user) into a run payload.

    Raises:
        TemplateNotFoundError: The template id is unknown
    """
    template = await require_template(repository, template_id)
    answers = await load_answers(repository, school_id, user_id, template_id)
    account = await repository.get_user_account(user_id)

    return build_run_payload(
        school_id=school_id,
        template_id=template.id,
        fields_data=template.fields_data,
        answers=answers,
        school_name=template.school_name,
        template_metadata={"program": template.program},
        account=account,
        login_override=login_override,
    )
