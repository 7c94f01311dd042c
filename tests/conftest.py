"""In-memory stand-ins for Playwright pages used across the test suite."""

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


@dataclass
class FakeElement:
    """A single DOM control."""
    tag: str = "input"
    type: str = "text"
    name: Optional[str] = None
    value: str = ""
    checked: bool = False
    attrs: Dict[str, str] = field(default_factory=dict)
    accessible_name: str = ""
    on_click: Optional[Callable[["FakePage"], None]] = None
    selected: Optional[Dict[str, Any]] = None
    typed: Optional[str] = None


@dataclass
class FakeDocument:
    """What the page shows for one URL."""
    selectors: Dict[str, List[FakeElement]] = field(default_factory=dict)
    labels: Dict[str, List[FakeElement]] = field(default_factory=dict)
    buttons: List[FakeElement] = field(default_factory=list)
    body_text: str = ""
    html: str = "<html><body></body></html>"
    status: int = 200


@dataclass
class FakeResponse:
    status: int = 200

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class FakeLocator:
    """Subset of the Playwright Locator API backed by FakeElements."""

    def __init__(self, page: "FakePage", elements: List[FakeElement]):
        self.page = page
        self.elements = elements

    async def count(self) -> int:
        return len(self.elements)

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, self.elements[:1])

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.elements[index:index + 1])

    def _element(self) -> FakeElement:
        if not self.elements:
            raise AssertionError("locator resolved to no element")
        return self.elements[0]

    async def scroll_into_view_if_needed(self, timeout: Optional[float] = None) -> None:
        return None

    async def click(self, trial: bool = False, **kwargs: Any) -> None:
        element = self._element()
        if trial:
            return
        if element.type == "checkbox":
            element.checked = not element.checked
        self.page.clicks.append(element)
        if element.on_click is not None:
            element.on_click(self.page)

    async def fill(self, value: str) -> None:
        self._element().value = value

    async def press_sequentially(self, value: str, delay: Optional[float] = None) -> None:
        element = self._element()
        element.value = value
        element.typed = value

    async def press(self, key: str) -> None:
        self.page.key_presses.append(key)

    async def select_option(self, value: Any = None, label: Any = None) -> List[str]:
        self._element().selected = {"value": value, "label": label}
        return list(value or [])

    async def check(self) -> None:
        self._element().checked = True

    async def is_checked(self) -> bool:
        return self._element().checked

    async def get_attribute(self, name: str) -> Optional[str]:
        element = self._element()
        if name == "name":
            return element.name
        return element.attrs.get(name)

    async def evaluate(self, expression: str) -> Any:
        element = self._element()
        if "tagName" in expression:
            return element.tag
        if "el.type" in expression:
            return element.type
        if "getAttribute('value')" in expression:
            return element.attrs.get("value") or element.attrs.get("aria-label")
        return None


class FakePage:
    """Subset of the Playwright Page API driven by FakeDocuments keyed by URL."""

    def __init__(
        self,
        document: Optional[FakeDocument] = None,
        documents: Optional[Dict[str, FakeDocument]] = None,
    ):
        self.document = document or FakeDocument()
        self.documents = documents or {}
        self.url = "about:blank"

        self.visited: List[str] = []
        self.clicks: List[FakeElement] = []
        self.key_presses: List[str] = []
        self.load_waits: List[str] = []
        self.navigation_waits: List[Any] = []
        self.screenshots: List[str] = []

        self.goto_error: Optional[Exception] = None
        self.timeout_load_states: set = set()
        self.navigation_times_out = False
        self.screenshot_error: Optional[Exception] = None
        self.closed = False

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None):
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        if url in self.documents:
            self.document = self.documents[url]
        self.url = url
        return FakeResponse(self.document.status)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        self.load_waits.append(state)
        if state in self.timeout_load_states:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None, state: Optional[str] = None):
        return None

    async def wait_for_timeout(self, timeout: float) -> None:
        return None

    @asynccontextmanager
    async def _navigation(self):
        yield None
        if self.navigation_times_out:
            raise PlaywrightTimeoutError("Timeout exceeded while waiting for navigation.")

    def expect_navigation(self, wait_until: Optional[str] = None, timeout: Optional[float] = None):
        self.navigation_waits.append((wait_until, timeout))
        return self._navigation()

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, list(self.document.selectors.get(selector, [])))

    def get_by_label(self, text: str, exact: bool = False) -> FakeLocator:
        matches: List[FakeElement] = []
        for label, elements in self.document.labels.items():
            if text.lower() in label.lower():
                matches.extend(elements)
        return FakeLocator(self, matches)

    def get_by_role(self, role: str, name: Any = None) -> FakeLocator:
        if role != "button":
            return FakeLocator(self, [])
        pattern = name if isinstance(name, re.Pattern) else re.compile(re.escape(name or ""), re.IGNORECASE)
        return FakeLocator(self, [b for b in self.document.buttons if pattern.search(b.accessible_name)])

    async def evaluate(self, expression: str) -> Any:
        if "innerText" in expression:
            return self.document.body_text
        return None

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG fake")
        self.screenshots.append(path)
        return b"\x89PNG fake"

    async def content(self) -> str:
        return self.document.html

    async def close(self) -> None:
        self.closed = True


def submit_button(name: str = "Submit", on_click: Optional[Callable[[FakePage], None]] = None) -> FakeElement:
    return FakeElement(tag="button", type="submit", accessible_name=name, on_click=on_click)


def show_text(text: str, url: Optional[str] = None) -> Callable[[FakePage], None]:
    """Click handler that replaces the body text (and optionally the URL)."""
    def handler(page: FakePage) -> None:
        page.document.body_text = text
        if url is not None:
            page.url = url
    return handler


@pytest.fixture
def fake_page():
    """Blank fake page."""
    return FakePage()
