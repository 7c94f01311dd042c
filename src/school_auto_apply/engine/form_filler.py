"""Generic, best-effort form filling against on-page controls."""

import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError, Locator, Page

from school_auto_apply.config import settings
from school_auto_apply.engine.errors import AutoApplyError, FieldNotFoundError
from school_auto_apply.engine.models import AutomationField
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

TEXT_INPUT_SELECTOR = 'input:not([type="checkbox"]):not([type="radio"]):not([type="file"])'
TEXTAREA_SELECTOR = "textarea"
SELECT_SELECTOR = "select"
CHECKBOX_SELECTOR = 'input[type="checkbox"]'
RADIO_SELECTOR = 'input[type="radio"]'

_TERM_SEPARATORS = re.compile(r"[\s_\-]+")

# Called with the located control right before a field is filled.
BeforeFill = Callable[[Locator, AutomationField], Awaitable[None]]


@dataclass
class FillReport:
    """Outcome of filling a field list."""
    filled: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.filled) + len(self.skipped)


def build_search_terms(form_field: AutomationField) -> List[str]:
    """Label and id first, then their split lowercase parts, without duplicates."""
    base = []
    if form_field.label:
        base.append(form_field.label)
    if form_field.field_id not in base:
        base.append(form_field.field_id)

    parts = [
        part.lower()
        for term in base
        for part in _TERM_SEPARATORS.split(term)
        if part.strip()
    ]

    terms: List[str] = []
    for term in base + parts:
        if term not in terms:
            terms.append(term)
    return terms


def _quote(term: str) -> str:
    return term.replace("\\", "\\\\").replace('"', '\\"')


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return "" if value is None else str(value)


def _as_options(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [_as_text(value)]


class FormFiller:
    """Fills automation fields into the best-matching controls of a page."""

    def __init__(self, typing_delay_ms: Optional[int] = None):
        self.typing_delay_ms = typing_delay_ms if typing_delay_ms is not None else settings.typing_delay_ms
        self.logger = logger.bind(component="form_filler")

    async def fill_fields(
        self,
        page: Page,
        fields: Sequence[AutomationField],
        before_fill: Optional[BeforeFill] = None
    ) -> FillReport:
        """
        Fill fields strictly in the given order.

        A field that cannot be located or filled is skipped and recorded in
        the report; later pages may reveal fields conditionally, so the order
        is never changed.
        """
        report = FillReport()
        for form_field in fields:
            try:
                await self.fill_field(page, form_field, before_fill)
                report.filled.append(form_field.field_id)
            except (AutoApplyError, PlaywrightError) as e:
                report.skipped.append((form_field.field_id, str(e)))
                self.logger.warning(
                    "Field skipped",
                    field_id=form_field.field_id,
                    error=str(e),
                    error_type=type(e).__name__
                )

        self.logger.info(
            "Form fill completed",
            filled=len(report.filled),
            skipped=len(report.skipped)
        )
        return report

    async def fill_field(
        self,
        page: Page,
        form_field: AutomationField,
        before_fill: Optional[BeforeFill] = None
    ) -> None:
        """
        Fill a single field.

        Raises:
            FieldNotFoundError: No control matched the field
        """
        locator = await self.locate_field(page, form_field)
        if locator is None:
            raise FieldNotFoundError(form_field.field_id)

        if before_fill is not None:
            await before_fill(locator, form_field)

        node_name = await locator.evaluate("el => el.tagName.toLowerCase()")

        if node_name == "textarea":
            await self._fill_text(locator, _as_text(form_field.value))
            return

        if node_name == "select":
            await self._select_value(locator, form_field.value)
            return

        input_type = await locator.evaluate("el => el.type || 'text'")

        if input_type == "radio":
            await self._select_radio(locator, _as_text(form_field.value))
            return

        if input_type == "checkbox":
            await self._toggle_checkbox(locator, form_field.value)
            return

        await self._fill_text(locator, _as_text(form_field.value))

    async def locate_field(self, page: Page, form_field: AutomationField) -> Optional[Locator]:
        """Try each matching strategy for every search term; first hit wins."""
        terms = build_search_terms(form_field)

        for term in terms:
            match = page.get_by_label(term, exact=False)
            if await match.count():
                return match.first

        strategies = (
            lambda q: f'{TEXT_INPUT_SELECTOR}[placeholder*="{q}" i], {TEXTAREA_SELECTOR}[placeholder*="{q}" i]',
            lambda q: f'{TEXT_INPUT_SELECTOR}[aria-label*="{q}" i], {TEXTAREA_SELECTOR}[aria-label*="{q}" i]',
            lambda q: f'{SELECT_SELECTOR}[aria-label*="{q}" i], {SELECT_SELECTOR}[data-testid*="{q}" i]',
            lambda q: f'{CHECKBOX_SELECTOR}[name*="{q}" i], {CHECKBOX_SELECTOR}[aria-label*="{q}" i]',
            lambda q: f'{RADIO_SELECTOR}[name*="{q}" i], {RADIO_SELECTOR}[aria-label*="{q}" i]',
        )

        for selector_for in strategies:
            for term in terms:
                match = page.locator(selector_for(_quote(term)))
                if await match.count():
                    return match.first

        return None

    async def _fill_text(self, locator: Locator, value: str) -> None:
        await locator.scroll_into_view_if_needed()
        try:
            await locator.click(trial=True)
        except PlaywrightError:
            # Trial click only checks actionability.
            pass
        await locator.fill("")
        if self.typing_delay_ms:
            await locator.press_sequentially(value, delay=self.typing_delay_ms)
        else:
            await locator.fill(value)

    async def _select_value(self, locator: Locator, value: Any) -> None:
        await locator.scroll_into_view_if_needed()
        options = _as_options(value)
        await locator.select_option(value=options, label=options)

    async def _select_radio(self, locator: Locator, value: str) -> None:
        group_name = await locator.get_attribute("name")
        if not group_name:
            await locator.check()
            return

        candidates = locator.page.locator(f'input[type="radio"][name="{_quote(group_name)}"]')
        count = await candidates.count()
        wanted = value.lower()
        for index in range(count):
            candidate = candidates.nth(index)
            text = await candidate.evaluate(
                "el => el.getAttribute('value') || el.getAttribute('aria-label')"
            )
            if text and wanted in text.lower():
                await candidate.check()
                return

        await locator.check()

    async def _toggle_checkbox(self, locator: Locator, value: Any) -> None:
        should_check = value if isinstance(value, bool) else bool(value)
        if should_check != await locator.is_checked():
            await locator.click()
