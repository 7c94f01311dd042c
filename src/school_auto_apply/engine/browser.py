"""Chromium lifecycle management for automation runs using Playwright."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from school_auto_apply.config import settings
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_VIEWPORT = {"width": 1366, "height": 768}


@dataclass
class BrowserOptions:
    """Launch and context options for a browser manager."""
    headless: bool = True
    slow_mo_ms: Optional[int] = None
    user_agent: Optional[str] = None
    locale: str = "en-US"
    timezone_id: str = "UTC"
    proxy: Optional[Dict[str, str]] = None
    args: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls) -> "BrowserOptions":
        proxy = None
        if settings.browser_proxy_server:
            proxy = {"server": settings.browser_proxy_server}
            if settings.browser_proxy_username:
                proxy["username"] = settings.browser_proxy_username
            if settings.browser_proxy_password:
                proxy["password"] = settings.browser_proxy_password

        return cls(
            headless=settings.browser_headless,
            slow_mo_ms=settings.browser_slow_mo_ms,
            user_agent=settings.browser_user_agent,
            locale=settings.browser_locale,
            timezone_id=settings.browser_timezone,
            proxy=proxy,
            args=list(settings.browser_args),
        )


class BrowserManager:
    """
    Owns one Chromium instance and the contexts opened on it.

    The browser is launched lazily on the first context request. Contexts
    created with ``disposable=False`` are tracked and closed by ``dispose``.
    """

    def __init__(self, options: Optional[BrowserOptions] = None):
        self.options = options or BrowserOptions.from_settings()
        self.logger = logger.bind(component="browser_manager")

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.contexts: Set[BrowserContext] = set()

    async def ensure_browser(self) -> Browser:
        if self.browser is not None:
            return self.browser

        self.playwright = await async_playwright().start()

        launch_options: Dict[str, Any] = {
            "headless": self.options.headless,
            "args": list(self.options.args),
        }
        if self.options.slow_mo_ms:
            launch_options["slow_mo"] = self.options.slow_mo_ms
        if self.options.proxy:
            launch_options["proxy"] = self.options.proxy

        self.browser = await self.playwright.chromium.launch(**launch_options)
        self.logger.info(
            "Browser launched",
            headless=self.options.headless,
            proxy=bool(self.options.proxy)
        )
        return self.browser

    async def new_context(
        self,
        storage_state_path: Optional[str] = None,
        extra_http_headers: Optional[Dict[str, str]] = None,
        locale: Optional[str] = None,
        disposable: bool = True
    ) -> BrowserContext:
        """
        Create a browser context.

        Args:
            storage_state_path: Saved cookies/local storage to start from
            extra_http_headers: Headers sent with every request
            locale: Override for the configured locale
            disposable: Caller closes the context itself when True
        """
        browser = await self.ensure_browser()

        context_options: Dict[str, Any] = {
            "viewport": DEFAULT_VIEWPORT,
            "locale": locale or self.options.locale,
            "timezone_id": self.options.timezone_id,
        }
        if self.options.user_agent:
            context_options["user_agent"] = self.options.user_agent
        if storage_state_path:
            context_options["storage_state"] = storage_state_path
        if extra_http_headers:
            context_options["extra_http_headers"] = extra_http_headers

        context = await browser.new_context(**context_options)

        if not disposable:
            self.contexts.add(context)
            context.on("close", lambda _: self.contexts.discard(context))

        return context

    async def dispose(self) -> None:
        """Close tracked contexts, the browser and Playwright itself."""
        for context in list(self.contexts):
            try:
                await context.close()
            except Exception as e:
                self.logger.debug("Context close failed", error=str(e))
        self.contexts.clear()

        try:
            if self.browser is not None:
                await self.browser.close()
            if self.playwright is not None:
                await self.playwright.stop()
        except Exception as e:
            self.logger.error("Error closing browser", error=str(e))
        finally:
            self.browser = None
            self.playwright = None

        self.logger.debug("Browser manager disposed")
