"""Execution context handed to every automation script."""

from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import BrowserContext, Page

from school_auto_apply.engine.artifacts import ArtifactStore
from school_auto_apply.engine.form_filler import FormFiller
from school_auto_apply.engine.login import LoginHandler
from school_auto_apply.engine.models import RunPayload
from school_auto_apply.engine.navigation import PageNavigator


@dataclass
class ExecutionContext:
    """Collaborators, payload and live page for one run."""
    payload: RunPayload
    page: Page
    navigator: PageNavigator
    form_filler: FormFiller
    artifacts: ArtifactStore
    logger: Any
    login_handler: Optional[LoginHandler] = None
    browser_context: Optional[BrowserContext] = None

    @property
    def run_id(self) -> str:
        return self.payload.run_id
