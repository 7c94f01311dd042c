"""Failure artifacts: screenshots and raw HTML dumps keyed by run id."""

import re
from pathlib import Path
from typing import Optional, Union

from playwright.async_api import Page

from school_auto_apply.config import settings
from school_auto_apply.engine.models import ResultArtifacts
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_LABEL_CHARS = re.compile(r"[^a-z0-9_-]", re.IGNORECASE)


def safe_label(label: str) -> str:
    return _UNSAFE_LABEL_CHARS.sub("_", label)


class ArtifactStore:
    """Writes forensic files for later manual inspection."""

    def __init__(self, artifact_dir: Optional[Union[str, Path]] = None):
        self.artifact_dir = Path(artifact_dir or settings.artifact_dir)
        self.logger = logger.bind(component="artifact_store")

    def ensure_dir(self) -> Path:
        self.artifact_dir.mkdir(parents=True, exist_ok=True)
        return self.artifact_dir

    def screenshot_path(self, run_id: str, label: str) -> Path:
        return self.artifact_dir / f"{run_id}-{safe_label(label)}.png"

    def html_path(self, run_id: str) -> Path:
        return self.artifact_dir / f"{run_id}-dom.html"

    async def take_screenshot(self, page: Page, run_id: str, label: str) -> str:
        """Capture a full-page screenshot and return its path."""
        self.ensure_dir()
        path = self.screenshot_path(run_id, label)
        await page.screenshot(path=str(path), full_page=True)
        self.logger.debug("Screenshot captured", path=str(path))
        return str(path)

    async def persist_html_dump(self, page: Page, run_id: str) -> str:
        """Write the current page HTML and return its path."""
        self.ensure_dir()
        path = self.html_path(run_id)
        html = await page.content()
        path.write_text(html, encoding="utf-8")
        self.logger.debug("HTML dump written", path=str(path), content_length=len(html))
        return str(path)

    async def capture_failure(self, page: Optional[Page], run_id: str, label: str) -> ResultArtifacts:
        """
        Capture both artifacts for a failed run.

        Never raises: a page that is already closed or crashed simply yields
        fewer artifacts, and each miss is logged.
        """
        artifacts = ResultArtifacts()
        if page is None:
            return artifacts

        try:
            artifacts.screenshot_path = await self.take_screenshot(page, run_id, label)
        except Exception as e:
            self.logger.error("Screenshot failed", run_id=run_id, error=str(e), error_type=type(e).__name__)

        try:
            artifacts.raw_html_path = await self.persist_html_dump(page, run_id)
        except Exception as e:
            self.logger.error("HTML dump failed", run_id=run_id, error=str(e), error_type=type(e).__name__)

        return artifacts
