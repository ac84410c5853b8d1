from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
import logging
import re
from typing import Iterator

from .documents import QueryableDocument
from .extraction_plan import GenerationValidation, build_plan, validate_generation_request
from .match_engine import DefinitionReport, evaluate_container, evaluate_extractor
from .models import ElementDescriptor, Extractor, OutputFormat, ScrapingMode, TestResult
from .script_emitter import PLACEHOLDER_SCRIPT, emit_script

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_FILE_NAME = "page.html"
CONTAINER_FIRST_MESSAGE = "Define and test a container first."
UNKNOWN_FIELD_MESSAGE = "Unknown field."
PICK_LIMIT = 25


def sanitize_field_name(raw_value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", raw_value)


@dataclass(slots=True)
class WizardSession:
    """Editable entities plus the test results derived from them.

    Results are stored only while they describe the current descriptor
    values: every edit drops the matching entry, and a missing entry means
    "not tested yet".
    """

    mode: ScrapingMode = "structured"
    output_format: OutputFormat = "csv"
    source_file_name: str = DEFAULT_SOURCE_FILE_NAME
    document: QueryableDocument | None = None
    container: ElementDescriptor = field(default_factory=ElementDescriptor)
    extractors: list[Extractor] = field(default_factory=list)
    container_result: TestResult | None = None
    field_results: dict[int, TestResult] = field(default_factory=dict)
    _ids: Iterator[int] = field(default_factory=lambda: count(1), repr=False)

    def __post_init__(self) -> None:
        if not self.extractors:
            self.extractors = [self._new_extractor(1)]

    @property
    def container_ready(self) -> bool:
        return self.container_result is not None and not self.container_result.is_error

    def reset(self) -> None:
        self.mode = "structured"
        self.output_format = "csv"
        self.source_file_name = DEFAULT_SOURCE_FILE_NAME
        self.document = None
        self._reset_definitions()

    def set_mode(self, mode: ScrapingMode) -> None:
        self.mode = mode
        self._reset_definitions()

    def load_document(self, document: QueryableDocument | None, file_name: str = DEFAULT_SOURCE_FILE_NAME) -> None:
        self.document = document
        self.source_file_name = file_name or DEFAULT_SOURCE_FILE_NAME
        self.container_result = None
        self.field_results.clear()

    def edit_container(self, *, tag_name: str | None = None, attribute_clause: str | None = None) -> None:
        if tag_name is not None:
            self.container.tag_name = tag_name
        if attribute_clause is not None:
            self.container.attribute_clause = attribute_clause
        self.container_result = None
        # Field coverage is measured inside containers, so it goes stale too.
        self.field_results.clear()

    def add_extractor(self) -> Extractor:
        used = {item.name for item in self.extractors}
        position = next(number for number in count(1) if f"item_{number}" not in used)
        extractor = self._new_extractor(position)
        self.extractors.append(extractor)
        return extractor

    def remove_extractor(self, extractor_id: int) -> bool:
        if len(self.extractors) <= 1:
            return False
        remaining = [item for item in self.extractors if item.id != extractor_id]
        if len(remaining) == len(self.extractors):
            return False
        self.extractors = remaining
        self.field_results.pop(extractor_id, None)
        return True

    def edit_extractor(
        self,
        extractor_id: int,
        *,
        name: str | None = None,
        tag_name: str | None = None,
        attribute_clause: str | None = None,
    ) -> Extractor | None:
        extractor = self.find_extractor(extractor_id)
        if extractor is None:
            return None
        if name is not None:
            extractor.name = sanitize_field_name(name)
        if tag_name is not None:
            extractor.tag_name = tag_name
        if attribute_clause is not None:
            extractor.attribute_clause = attribute_clause
        self.field_results.pop(extractor_id, None)
        return extractor

    def find_extractor(self, extractor_id: int) -> Extractor | None:
        for extractor in self.extractors:
            if extractor.id == extractor_id:
                return extractor
        return None

    def run_container_test(self) -> TestResult:
        self.container_result = evaluate_container(self.container, self.document)
        return self.container_result

    def run_extractor_test(self, extractor_id: int) -> TestResult:
        extractor = self.find_extractor(extractor_id)
        if extractor is None:
            return TestResult(0, UNKNOWN_FIELD_MESSAGE, True)

        if self.mode == "structured" and not self.container_ready:
            result = TestResult(0, CONTAINER_FIRST_MESSAGE, True)
        else:
            container = self.container if self.mode == "structured" else None
            result = evaluate_extractor(extractor.descriptor, self.document, mode=self.mode, container=container)
        self.field_results[extractor_id] = result
        return result

    def pick_candidates(self, tag_name: str = "", limit: int = PICK_LIMIT) -> list[ElementDescriptor]:
        """Describe distinct elements of the loaded document, in document order.

        With an empty tag every element is a candidate. Elements that describe
        the same way collapse into one entry.
        """
        if self.document is None:
            return []
        selector = tag_name.strip() or "*"
        try:
            elements = self.document.query(selector)
        except Exception:
            logger.debug("Pick query failed for %r.", selector, exc_info=True)
            return []

        candidates: list[ElementDescriptor] = []
        for element in elements:
            descriptor = self.document.describe(element)
            if descriptor in candidates:
                continue
            candidates.append(descriptor)
            if len(candidates) >= limit:
                break
        return candidates

    def pick_container(self, descriptor: ElementDescriptor) -> TestResult:
        self.edit_container(tag_name=descriptor.tag_name, attribute_clause=descriptor.attribute_clause)
        return self.run_container_test()

    def pick_extractor(self, extractor_id: int, descriptor: ElementDescriptor) -> TestResult:
        self.edit_extractor(extractor_id, tag_name=descriptor.tag_name, attribute_clause=descriptor.attribute_clause)
        return self.run_extractor_test(extractor_id)

    def apply_report(self, report: DefinitionReport) -> None:
        """Adopt results measured elsewhere, such as on the live page."""
        if self.mode == "structured":
            self.container_result = report.container
        known = {item.id for item in self.extractors}
        self.field_results.update((item_id, result) for item_id, result in report.fields.items() if item_id in known)

    def validate_generation(self) -> GenerationValidation:
        return validate_generation_request(
            mode=self.mode,
            container=self.container,
            container_ready=self.container_ready,
            extractors=self.extractors,
        )

    def generate_script(self) -> str:
        if not self.validate_generation().ok:
            return PLACEHOLDER_SCRIPT
        plan = build_plan(self.mode, self.container, self.extractors)
        return emit_script(plan, self.output_format, self.source_file_name)

    def _reset_definitions(self) -> None:
        self.container = ElementDescriptor()
        self.container_result = None
        self.field_results.clear()
        self.extractors = [self._new_extractor(1)]

    def _new_extractor(self, position: int) -> Extractor:
        return Extractor(id=next(self._ids), name=f"item_{position}")
