"""Page navigation helpers with bounded waits."""

from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeoutError

from school_auto_apply.config import settings
from school_auto_apply.engine.errors import NavigationError
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

# A wait that times out is reported and the run proceeds. Many forms keep
# polling in the background or submit via XHR without ever going idle.
IGNORE_WAIT_TIMEOUTS = True

PAGE_TEXT_LIMIT = 20_000


@dataclass(frozen=True)
class WaitOutcome:
    """Result of a bounded wait on the page."""
    completed: bool
    timed_out: bool = False
    detail: Optional[str] = None

    @classmethod
    def done(cls) -> "WaitOutcome":
        return cls(completed=True)

    @classmethod
    def timeout(cls, detail: str) -> "WaitOutcome":
        return cls(completed=False, timed_out=True, detail=detail)


async def tolerate_timeout(awaitable: Any, description: str, bound_logger: Any = None) -> WaitOutcome:
    """
    Await a Playwright wait and turn a timeout into a WaitOutcome.

    Only Playwright timeouts are absorbed, and only while
    IGNORE_WAIT_TIMEOUTS is set. Every other error propagates.
    """
    log = bound_logger or logger
    try:
        await awaitable
    except PlaywrightTimeoutError as e:
        if not IGNORE_WAIT_TIMEOUTS:
            raise
        log.warning("Wait timed out, continuing", wait=description, error=str(e))
        return WaitOutcome.timeout(f"{description}: {e}")
    return WaitOutcome.done()


async def click_expecting_navigation(
    page: Page,
    target: Locator,
    description: str,
    wait_until: str = "load",
    timeout: Optional[float] = None,
    bound_logger: Any = None
) -> WaitOutcome:
    """
    Click ``target`` and wait for the navigation it triggers.

    Errors raised by the click itself always propagate, timeouts included.
    Only a timed-out navigation wait after a completed click is tolerated.
    """
    log = bound_logger or logger
    clicked = False
    try:
        async with page.expect_navigation(wait_until=wait_until, timeout=timeout):
            await target.click()
            clicked = True
    except PlaywrightTimeoutError as e:
        if not clicked or not IGNORE_WAIT_TIMEOUTS:
            raise
        log.warning("Wait timed out, continuing", wait=description, error=str(e))
        return WaitOutcome.timeout(f"{description}: {e}")
    return WaitOutcome.done()


class PageNavigator:
    """Navigation collaborator shared by all automation scripts."""

    def __init__(
        self,
        navigation_timeout_ms: Optional[int] = None,
        network_idle_timeout_ms: Optional[int] = None
    ):
        self.navigation_timeout_ms = navigation_timeout_ms or settings.navigation_timeout_ms
        self.network_idle_timeout_ms = network_idle_timeout_ms or settings.network_idle_timeout_ms
        self.logger = logger.bind(component="page_navigator")

    async def safe_navigate(self, page: Page, url: str) -> None:
        """
        Load ``url`` and require an OK response.

        Raises:
            NavigationError: No response or a non-2xx status
            playwright.async_api.TimeoutError: The page did not load in time
        """
        response = await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.navigation_timeout_ms,
        )

        if response is None or not response.ok:
            raise NavigationError(url, response.status if response is not None else None)

        self.logger.info("Navigated to URL", url=url, status=response.status)

    async def wait_for_network_idle(self, page: Page, timeout_ms: Optional[int] = None) -> WaitOutcome:
        return await self.wait_for_load(page, "networkidle", timeout_ms or self.network_idle_timeout_ms)

    async def wait_for_load(self, page: Page, state: str = "load", timeout_ms: Optional[int] = None) -> WaitOutcome:
        timeout = timeout_ms or self.network_idle_timeout_ms
        return await tolerate_timeout(
            page.wait_for_load_state(state, timeout=timeout),
            f"load state '{state}' ({timeout}ms)",
            self.logger,
        )

    async def collect_page_text(self, page: Page) -> str:
        """Visible body text, truncated to PAGE_TEXT_LIMIT characters."""
        text = await page.evaluate("() => document.body ? document.body.innerText : ''")
        return (text or "")[:PAGE_TEXT_LIMIT]
