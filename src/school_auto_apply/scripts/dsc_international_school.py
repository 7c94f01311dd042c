"""DSC International School general admissions form (Finalsite CMS)."""

import re
from typing import List

from playwright.async_api import Error as PlaywrightError, Locator

from school_auto_apply.engine.context import ExecutionContext
from school_auto_apply.engine.form_filler import FillReport
from school_auto_apply.engine.models import AutomationField
from school_auto_apply.engine.navigation import tolerate_timeout
from school_auto_apply.scripts.base import StandardFormScript, SubmitCandidate

FORM_CONTAINER_SELECTOR = 'form, [role="form"], .form, #application-form'


class DscInternationalSchoolScript(StandardFormScript):
    """
    No login required. The page keeps loading assets for a long time and
    renders fields below the fold, so waits are lenient and every field is
    scrolled into view before it is filled.
    """

    id = "dsc-international-school"
    name = "DSC International School (德思齐国际学校)"
    description = "DSC International School 自动申请脚本 - 不需要登录即可提交申请"
    supports_login = False

    entry_url = "https://www.dsc.edu.hk/admissions/applynow"

    submit_candidates = (
        SubmitCandidate.role(r"submit|apply|提交|确认|send|提交申请"),
        SubmitCandidate.css('button[type="submit"]'),
        SubmitCandidate.css('input[type="submit"]'),
        SubmitCandidate.css('button:has-text("Submit")'),
        SubmitCandidate.css('button:has-text("提交")'),
        SubmitCandidate.css('button:has-text("Apply")'),
        SubmitCandidate.css('button:has-text("Send")'),
        SubmitCandidate.css("#submit-button"),
        SubmitCandidate.css("#apply-button"),
        SubmitCandidate.css(".submit-btn"),
        SubmitCandidate.css(".apply-button"),
        SubmitCandidate.css("[data-submit]"),
        SubmitCandidate.css("button.submit"),
    )

    success_patterns = (
        re.compile(r"success|成功|已提交|已完成|thank you|感谢|submitted|received", re.IGNORECASE),
        re.compile(r"application.*received|申请.*已收到|申请.*成功", re.IGNORECASE),
    )
    confirmation_url_pattern = re.compile(r"confirm|success|thank|完成|成功")
    submit_timeout_ms = 20_000

    async def prepare_page(self, ctx: ExecutionContext) -> None:
        page = ctx.page
        await ctx.navigator.wait_for_load(page, "load", 15_000)
        await ctx.navigator.wait_for_load(page, "networkidle", 20_000)

        await tolerate_timeout(
            page.wait_for_selector(FORM_CONTAINER_SELECTOR, timeout=10_000, state="attached"),
            "form container",
            ctx.logger,
        )

        await page.evaluate("() => window.scrollTo(0, 0)")
        await page.wait_for_timeout(500)

    async def fill(self, ctx: ExecutionContext, fields: List[AutomationField]) -> FillReport:
        page = ctx.page

        async def scroll_into_view(locator: Locator, form_field: AutomationField) -> None:
            await self._scroll_into_view(locator)
            await page.wait_for_timeout(300)

        return await ctx.form_filler.fill_fields(page, fields, before_fill=scroll_into_view)

    async def _scroll_into_view(self, locator: Locator) -> None:
        try:
            await locator.scroll_into_view_if_needed(timeout=3_000)
        except PlaywrightError:
            await locator.evaluate("el => el.scrollIntoView({block: 'center', inline: 'nearest'})")
