from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Iterator, Sequence

from .documents import PageDocument, SoupDocument
from .match_engine import DefinitionReport, evaluate_definitions
from .models import ElementDescriptor, Extractor, ScrapingMode

logger = logging.getLogger(__name__)

HTML_SUFFIXES = (".html", ".htm")
DEFAULT_SNAPSHOT_WAIT_MS = 5000
INVALID_FILE_MESSAGE = "Please upload a valid .html file."
INVALID_URL_MESSAGE = "Please enter a valid URL (e.g., https://example.com)"


def load_html_file(path: Path | str) -> tuple[SoupDocument | None, str]:
    file_path = Path(path)
    if file_path.suffix.lower() not in HTML_SUFFIXES:
        return None, INVALID_FILE_MESSAGE
    if not file_path.is_file():
        return None, f"Error: The file '{file_path.name}' was not found."

    try:
        html = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return None, f"Could not read {file_path.name}: {exc}"
    return SoupDocument.from_html(html), f"Loaded {file_path.name}."


@contextmanager
def open_live_document(url: str, wait_ms: int = DEFAULT_SNAPSHOT_WAIT_MS) -> Iterator[PageDocument]:
    """Render ``url`` in headless Chromium and yield it as a queryable document.

    The page gets ``wait_ms`` after ``domcontentloaded`` so client-side
    rendering can finish before anything is read from it.
    """
    from playwright.sync_api import sync_playwright

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=True)
        try:
            page = browser.new_page()
            page.goto(url, wait_until="domcontentloaded")
            page.wait_for_timeout(max(wait_ms, 0))
            yield PageDocument(page)
        finally:
            browser.close()


def snapshot_url(
    url: str,
    target: Path | str = "page.html",
    wait_ms: int = DEFAULT_SNAPSHOT_WAIT_MS,
) -> tuple[bool, str]:
    clean_url = url.strip()
    if not clean_url.startswith("http"):
        return False, INVALID_URL_MESSAGE

    try:
        from playwright.sync_api import Error as PlaywrightError
    except ImportError as exc:
        return False, f"Playwright is not available: {exc}"

    target_path = Path(target)
    try:
        with open_live_document(clean_url, wait_ms) as live:
            html = live.page.content()
    except PlaywrightError as exc:
        logger.warning("Snapshot of %s failed: %s", clean_url, exc)
        return False, f"Could not load {clean_url}: {exc}"

    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_text(html, encoding="utf-8")
    except OSError as exc:
        return False, f"Error saving file: {exc}"
    return True, f"Successfully saved page HTML to '{target_path.name}'"


def evaluate_live_page(
    url: str,
    *,
    mode: ScrapingMode,
    container: ElementDescriptor,
    extractors: Sequence[Extractor],
    wait_ms: int = DEFAULT_SNAPSHOT_WAIT_MS,
) -> tuple[DefinitionReport | None, str]:
    """Run the current definitions against the rendered page instead of the saved copy."""
    clean_url = url.strip()
    if not clean_url.startswith("http"):
        return None, INVALID_URL_MESSAGE

    try:
        from playwright.sync_api import Error as PlaywrightError
    except ImportError as exc:
        return None, f"Playwright is not available: {exc}"

    try:
        with open_live_document(clean_url, wait_ms) as live:
            report = evaluate_definitions(live, mode=mode, container=container, extractors=extractors)
    except PlaywrightError as exc:
        logger.warning("Live test of %s failed: %s", clean_url, exc)
        return None, f"Could not load {clean_url}: {exc}"
    return report, f"Tested definitions against {clean_url}."
