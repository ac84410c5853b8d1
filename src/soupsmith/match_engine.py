from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from .documents import QueryableDocument
from .models import DescriptorKind, ElementDescriptor, Extractor, ScrapingMode, TestResult
from .selector_synthesis import descriptor_selector

logger = logging.getLogger(__name__)

EMPTY_TAG_MESSAGE = "HTML Tag is empty."
NO_CONTAINERS_MESSAGE = "No containers found to test within."
INVALID_SELECTOR_MESSAGE = "Invalid Tag or Attributes for testing."

PREVIEW_SAMPLE_SIZE = 3
PREVIEW_TEXT_LIMIT = 20
PREVIEW_SEPARATOR = " | "


def evaluate_descriptor(
    kind: DescriptorKind,
    descriptor: ElementDescriptor,
    document: QueryableDocument | None,
    *,
    mode: ScrapingMode = "structured",
    container: ElementDescriptor | None = None,
) -> TestResult:
    if kind == "container":
        return evaluate_container(descriptor, document)
    return evaluate_extractor(descriptor, document, mode=mode, container=container)


def evaluate_container(descriptor: ElementDescriptor, document: QueryableDocument | None) -> TestResult:
    if document is None or not descriptor.tag_name.strip():
        return TestResult(0, EMPTY_TAG_MESSAGE, True)

    try:
        count = len(document.query(descriptor_selector(descriptor)))
    except Exception:
        logger.debug("Container query failed for %r.", descriptor, exc_info=True)
        return TestResult(0, INVALID_SELECTOR_MESSAGE, True)
    return TestResult(count, f"Found {count} repeating container elements.", count == 0)


def evaluate_extractor(
    descriptor: ElementDescriptor,
    document: QueryableDocument | None,
    *,
    mode: ScrapingMode = "structured",
    container: ElementDescriptor | None = None,
) -> TestResult:
    if document is None or not descriptor.tag_name.strip():
        return TestResult(0, EMPTY_TAG_MESSAGE, True)

    selector = descriptor_selector(descriptor)
    try:
        if mode == "structured" and container is not None and container.tag_name.strip():
            return _coverage_result(document, descriptor_selector(container), selector)
        return _document_result(document, selector)
    except Exception:
        logger.debug("Field query failed for %r.", descriptor, exc_info=True)
        return TestResult(0, INVALID_SELECTOR_MESSAGE, True)


def _coverage_result(document: QueryableDocument, container_selector: str, selector: str) -> TestResult:
    containers = document.query(container_selector)
    if not containers:
        return TestResult(0, NO_CONTAINERS_MESSAGE, True)

    covered = sum(1 for item in containers if document.query(selector, scope=item, limit=1))
    return TestResult(covered, f"{covered} of {len(containers)} containers have a match.", covered == 0)


def _document_result(document: QueryableDocument, selector: str) -> TestResult:
    matches = document.query(selector)
    count = len(matches)
    snippets = [preview_snippet(item.text()) for item in matches[:PREVIEW_SAMPLE_SIZE]]
    snippets = [item for item in snippets if item]
    if snippets:
        preview = f"Found {count} total matches. Preview: " + PREVIEW_SEPARATOR.join(snippets)
    else:
        preview = f"Found {count} matches. (No text content)"
    return TestResult(count, preview, count == 0)


def preview_snippet(text: str | None, limit: int = PREVIEW_TEXT_LIMIT) -> str:
    compact = (text or "").strip()
    if len(compact) <= limit:
        return compact
    return compact[:limit] + "..."


@dataclass(frozen=True, slots=True)
class DefinitionReport:
    container: TestResult | None
    fields: dict[int, TestResult] = field(default_factory=dict)


def evaluate_definitions(
    document: QueryableDocument | None,
    *,
    mode: ScrapingMode,
    container: ElementDescriptor,
    extractors: Sequence[Extractor],
) -> DefinitionReport:
    """Test every current definition against one document in a single pass."""
    if mode == "simple":
        fields = {item.id: evaluate_extractor(item.descriptor, document, mode="simple") for item in extractors[:1]}
        return DefinitionReport(container=None, fields=fields)

    fields = {
        item.id: evaluate_extractor(item.descriptor, document, mode="structured", container=container)
        for item in extractors
    }
    return DefinitionReport(container=evaluate_container(container, document), fields=fields)
