"""Run orchestration: one isolated browser session per automation run."""

import traceback
from typing import Callable, Optional
from uuid import uuid4

from school_auto_apply.config import settings
from school_auto_apply.engine.artifacts import ArtifactStore
from school_auto_apply.engine.browser import BrowserManager
from school_auto_apply.engine.context import ExecutionContext
from school_auto_apply.engine.form_filler import FormFiller
from school_auto_apply.engine.login import LoginHandler
from school_auto_apply.engine.models import AutomationResult, RunPayload
from school_auto_apply.engine.navigation import PageNavigator
from school_auto_apply.registry import ScriptRegistry, build_default_registry, not_implemented_result
from school_auto_apply.utils.logging import get_logger, run_log_context

logger = get_logger(__name__)


class AutoApplyService:
    """
    Executes run payloads against the script registry.

    Each call opens its own browser context and page and tears them down
    before returning. The caller bounds how many runs happen concurrently.
    """

    def __init__(
        self,
        registry: Optional[ScriptRegistry] = None,
        browser_factory: Optional[Callable[[], BrowserManager]] = None,
        form_filler: Optional[FormFiller] = None,
        login_handler: Optional[LoginHandler] = None,
        navigator: Optional[PageNavigator] = None,
    ):
        self.registry = registry if registry is not None else build_default_registry(settings.enabled_scripts)
        self.browser_factory = browser_factory or BrowserManager
        self.form_filler = form_filler or FormFiller()
        self.login_handler = login_handler or LoginHandler()
        self.navigator = navigator or PageNavigator()
        self.logger = logger.bind(component="auto_apply_service")

    async def run(self, payload: RunPayload) -> AutomationResult:
        """
        Run the script registered for ``payload.school_id``.

        Never raises: unknown targets, browser start-up failures and script
        errors all come back as failed results.
        """
        if not payload.run_id:
            payload = payload.model_copy(update={"run_id": uuid4().hex})

        run_logger = self.logger.bind(**run_log_context(payload.school_id, payload.run_id))

        if payload.school_id not in self.registry:
            run_logger.warning("Unknown school id", available=self.registry.ids())
            return not_implemented_result(payload.school_id)

        artifacts = ArtifactStore(payload.artifact_dir or settings.artifact_dir)
        browser = self.browser_factory()
        context = None
        page = None

        try:
            context = await browser.new_context(locale=payload.locale, disposable=True)
            page = await context.new_page()

            ctx = ExecutionContext(
                payload=payload,
                page=page,
                navigator=self.navigator,
                form_filler=self.form_filler,
                artifacts=artifacts,
                logger=run_logger,
                login_handler=self.login_handler,
                browser_context=context,
            )

            result = await self.registry.dispatch(ctx)
            run_logger.info("Automation run finished", success=result.success, message=result.message)
            return result

        except Exception as e:
            run_logger.error("Auto apply run failed", error=str(e), error_type=type(e).__name__)
            captured = await artifacts.capture_failure(page, payload.run_id, "auto-apply-error")
            return AutomationResult.failed(
                message=str(e) or "Auto apply failed",
                errors=["".join(traceback.format_exception(type(e), e, e.__traceback__))],
            ).with_artifacts(captured if page is not None else None)

        finally:
            await self._teardown(browser, context, page)

    async def _teardown(self, browser: BrowserManager, context, page) -> None:
        for resource in (page, context):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                self.logger.debug("Resource close failed", error=str(e))
        await browser.dispose()
