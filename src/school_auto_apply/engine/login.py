"""Generic login handling for target sites that require an account."""

from typing import Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Locator, Page

from school_auto_apply.config import settings
from school_auto_apply.engine.models import UserLoginInput
from school_auto_apply.engine.navigation import click_expecting_navigation, tolerate_timeout
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

EMAIL_SELECTORS = (
    'input[type="email"]',
    'input[name*="email" i]',
    'input[id*="email" i]',
)

USERNAME_SELECTORS = (
    'input[name*="user" i]',
    'input[id*="user" i]',
    'input[name*="login" i]',
)

PASSWORD_SELECTORS = (
    'input[type="password"]',
    'input[name*="pass" i]',
    'input[id*="pass" i]',
)

SUBMIT_SELECTORS = (
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Sign in")',
    'button:has-text("Log in")',
    'button:has-text("Login")',
    'button:has-text("继续")',
    'button:has-text("提交")',
)


async def locate_first(page: Page, selectors: Sequence[str]) -> Optional[Locator]:
    """Return the first element matching the earliest selector that matches."""
    for selector in selectors:
        locator = page.locator(selector)
        if await locator.count():
            return locator.first
    return None


class LoginHandler:
    """Fills and submits a conventional email/username + password form."""

    def __init__(self, submit_timeout_ms: Optional[int] = None):
        self.submit_timeout_ms = submit_timeout_ms or settings.login_submit_timeout_ms
        self.logger = logger.bind(component="login_handler")

    async def maybe_login(self, page: Page, credentials: Optional[UserLoginInput]) -> bool:
        """
        Attempt to log in on the current page.

        Args:
            page: Live page showing a login form
            credentials: Merged login credentials

        Returns:
            True if a login form was found and submitted, False otherwise
        """
        if credentials is None or not credentials.has_identity:
            return False

        email_input = await locate_first(page, EMAIL_SELECTORS)
        username_input = None if email_input else await locate_first(page, USERNAME_SELECTORS)
        password_input = await locate_first(page, PASSWORD_SELECTORS)

        if password_input is None or (email_input is None and username_input is None):
            self.logger.info("No login form found on page", url=page.url)
            return False

        if email_input is not None and credentials.email:
            await email_input.fill(credentials.email)
        elif username_input is not None and credentials.username:
            await username_input.fill(credentials.username)

        if credentials.password:
            await password_input.fill(credentials.password)

        submit_button = await locate_first(page, SUBMIT_SELECTORS)
        try:
            if submit_button is not None:
                await self._click_and_wait(page, submit_button)
            else:
                await password_input.press("Enter")
        except PlaywrightError as e:
            self.logger.warning("Login form could not be submitted", url=page.url, error=str(e))
            return False

        self.logger.info("Login form submitted", url=page.url)
        return True

    async def _click_and_wait(self, page: Page, submit_button: Locator) -> None:
        await click_expecting_navigation(
            page,
            submit_button,
            "login navigation",
            wait_until="domcontentloaded",
            timeout=self.submit_timeout_ms,
            bound_logger=self.logger,
        )
        await tolerate_timeout(
            page.wait_for_load_state("networkidle", timeout=self.submit_timeout_ms),
            "login network idle",
            self.logger,
        )
