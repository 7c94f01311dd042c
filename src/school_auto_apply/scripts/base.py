"""
Automation script contract and the standard form-submission shape.

Every supported school is one subclass of AutomationScript registered in
``school_auto_apply.registry``. Most schools only need to configure a
StandardFormScript: entry URL, optional login page, field override table,
submit control candidates and confirmation phrases.
"""

import re
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence

from playwright.async_api import Error as PlaywrightError, Locator, Page

from school_auto_apply.config import settings
from school_auto_apply.engine.context import ExecutionContext
from school_auto_apply.engine.errors import NavigationError
from school_auto_apply.engine.form_filler import FillReport
from school_auto_apply.engine.models import AutomationField, AutomationResult
from school_auto_apply.engine.navigation import WaitOutcome, click_expecting_navigation
from school_auto_apply.scripts.common import FieldOverride, remap_template_fields

SUBMIT_BUTTON_NOT_FOUND = "submit button not found"


class VerificationOutcome(str, Enum):
    """Advisory reading of the page after submission."""
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SubmitCandidate:
    """One way of finding the submit control on a page."""
    kind: str
    value: str

    @classmethod
    def role(cls, name_pattern: str) -> "SubmitCandidate":
        """Button whose accessible name matches ``name_pattern`` (case-insensitive)."""
        return cls("role", name_pattern)

    @classmethod
    def css(cls, selector: str) -> "SubmitCandidate":
        return cls("css", selector)

    def locator(self, page: Page) -> Locator:
        if self.kind == "role":
            return page.get_by_role("button", name=re.compile(self.value, re.IGNORECASE))
        return page.locator(self.value)

    def __str__(self) -> str:
        return f"{self.kind}={self.value}"


DEFAULT_SUBMIT_CANDIDATES = (
    SubmitCandidate.role(r"submit|apply|继续|提交"),
    SubmitCandidate.css('button[type="submit"]'),
    SubmitCandidate.css('input[type="submit"]'),
)

DEFAULT_SUCCESS_PATTERNS = (
    re.compile(r"success|成功|已提交|已完成", re.IGNORECASE),
    re.compile(r"thank you|感谢|提交成功", re.IGNORECASE),
)

DEFAULT_FAILURE_PATTERNS = (
    re.compile(r"submission failed|please correct|there (?:was|were) (?:an )?errors?|提交失败", re.IGNORECASE),
)


class AutomationScript(ABC):
    """
    Contract implemented by every school script.

    ``run`` always returns a result: any exception raised by ``execute`` is
    logged, failure artifacts are captured, and a failed result carrying the
    error message and traceback is returned instead.
    """

    id: str = ""
    name: str = ""
    description: Optional[str] = None
    supports_login: bool = False

    async def run(self, ctx: ExecutionContext) -> AutomationResult:
        try:
            return await self.execute(ctx)
        except Exception as e:
            ctx.logger.error(
                "Automation script failed",
                script=self.id,
                error=str(e),
                error_type=type(e).__name__
            )
            artifacts = await ctx.artifacts.capture_failure(ctx.page, ctx.run_id, f"{self.id}-error")
            return AutomationResult.failed(
                message=str(e) or type(e).__name__,
                errors=[
                    f"{type(e).__name__}: {e}",
                    "".join(traceback.format_exception(type(e), e, e.__traceback__)),
                ],
                artifacts=artifacts,
            )

    @abstractmethod
    async def execute(self, ctx: ExecutionContext) -> AutomationResult:
        """Drive the page for one run. May raise; ``run`` converts errors."""

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "supports_login": self.supports_login,
        }


class StandardFormScript(AutomationScript):
    """
    Navigate, authenticate, remap, fill, submit and verify.

    Subclasses set the class attributes and override hooks only where the
    target site deviates from the conventional flow.
    """

    entry_url: str = ""
    login_url: Optional[str] = None
    field_overrides: Mapping[str, FieldOverride] = {}
    submit_candidates: Sequence[SubmitCandidate] = DEFAULT_SUBMIT_CANDIDATES
    success_patterns: Sequence[Pattern] = DEFAULT_SUCCESS_PATTERNS
    failure_patterns: Sequence[Pattern] = DEFAULT_FAILURE_PATTERNS
    confirmation_url_pattern: Optional[Pattern] = None
    submit_timeout_ms: Optional[int] = None

    async def execute(self, ctx: ExecutionContext) -> AutomationResult:
        page = ctx.page
        log = ctx.logger.bind(script=self.id)

        log.info("Navigating to application page", url=self.entry_url)
        await ctx.navigator.safe_navigate(page, self.entry_url)
        await self.prepare_page(ctx)

        await self.authenticate(ctx)

        fields = self.build_fields(ctx)
        log.info("Filling application form", field_count=len(fields))
        await self.fill(ctx, fields)

        submit_button = await self.locate_submit_button(ctx)
        if submit_button is None:
            log.warning("No submit control matched", candidates=[str(c) for c in self.submit_candidates])
            artifacts = await ctx.artifacts.capture_failure(page, ctx.run_id, f"{self.id}-no-submit")
            return AutomationResult.failed(
                message=f"Submit failed: {SUBMIT_BUTTON_NOT_FOUND} on {page.url}",
                artifacts=artifacts,
            )

        log.info("Submitting application")
        await self.submit(ctx, submit_button)
        await ctx.navigator.wait_for_network_idle(page)

        outcome = await self.verify_submission(ctx)
        if outcome is VerificationOutcome.CONFIRMED:
            log.info("Submission confirmed by page content")
            return AutomationResult.succeeded(f"{self.name} application submitted.")

        log.warning("Submission could not be confirmed", verification=outcome.value)
        if outcome is VerificationOutcome.REJECTED:
            return AutomationResult.succeeded(
                f"{self.name} application submitted, but the page reported a problem. Please check manually."
            )
        return AutomationResult.succeeded(
            f"{self.name} application submitted, but the result could not be confirmed. Please check manually."
        )

    async def prepare_page(self, ctx: ExecutionContext) -> None:
        await ctx.navigator.wait_for_network_idle(ctx.page)

    async def authenticate(self, ctx: ExecutionContext) -> bool:
        """
        Log in when credentials were supplied and the site supports it.

        Falls back to ``login_url`` when the entry page has no usable login
        form; if that fails too the run continues unauthenticated.
        """
        credentials = ctx.payload.user_login
        if credentials is None or not self.supports_login:
            return False

        log = ctx.logger.bind(script=self.id)
        if ctx.login_handler is None:
            log.warning("Credentials supplied but no login handler available")
            return False

        if await ctx.login_handler.maybe_login(ctx.page, credentials):
            await ctx.navigator.wait_for_network_idle(ctx.page)
            log.info("Logged in on application page")
            return True

        if self.login_url:
            log.warning("Login on application page failed, trying login page", url=self.login_url)
            try:
                await ctx.navigator.safe_navigate(ctx.page, self.login_url)
                logged_in = await ctx.login_handler.maybe_login(ctx.page, credentials)
            except (NavigationError, PlaywrightError) as e:
                log.warning("Login page unavailable", url=self.login_url, error=str(e))
                logged_in = False
            await ctx.navigator.safe_navigate(ctx.page, self.entry_url)
            await ctx.navigator.wait_for_network_idle(ctx.page)
            if logged_in:
                log.info("Logged in via login page")
                return True

        log.warning("Login failed, continuing unauthenticated")
        return False

    def build_fields(self, ctx: ExecutionContext) -> List[AutomationField]:
        if not self.field_overrides:
            return list(ctx.payload.template.fields)
        return remap_template_fields(ctx.payload.template, self.field_overrides)

    async def fill(self, ctx: ExecutionContext, fields: List[AutomationField]) -> FillReport:
        return await ctx.form_filler.fill_fields(ctx.page, fields)

    async def locate_submit_button(self, ctx: ExecutionContext) -> Optional[Locator]:
        """First candidate with at least one match wins."""
        for candidate in self.submit_candidates:
            locator = candidate.locator(ctx.page)
            if await locator.count():
                ctx.logger.info("Submit control found", candidate=str(candidate))
                return locator.first
        return None

    async def submit(self, ctx: ExecutionContext, submit_button: Locator) -> WaitOutcome:
        """Click while waiting for the resulting navigation. A failed click propagates."""
        return await click_expecting_navigation(
            ctx.page,
            submit_button,
            "submit navigation",
            wait_until="networkidle",
            timeout=self.submit_timeout_ms or settings.submit_timeout_ms,
            bound_logger=ctx.logger,
        )

    async def verify_submission(self, ctx: ExecutionContext) -> VerificationOutcome:
        """Scan page text and URL for confirmation phrases. Advisory only."""
        try:
            text = await ctx.navigator.collect_page_text(ctx.page)
        except PlaywrightError as e:
            ctx.logger.warning("Could not read page for verification", error=str(e))
            return VerificationOutcome.UNKNOWN

        if any(pattern.search(text) for pattern in self.failure_patterns):
            return VerificationOutcome.REJECTED
        if any(pattern.search(text) for pattern in self.success_patterns):
            return VerificationOutcome.CONFIRMED
        if self.confirmation_url_pattern and self.confirmation_url_pattern.search(ctx.page.url or ""):
            return VerificationOutcome.CONFIRMED
        return VerificationOutcome.UNKNOWN
