from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Sequence

from .models import ElementDescriptor, Extractor, ScrapingMode
from .selector_synthesis import descriptor_selector, synthesize_selector

CONTAINER_REQUIRED_MESSAGE = "Please define and successfully test a container before generating the code."
FIELDS_REQUIRED_MESSAGE = "Please fill in all field names and HTML tags for extraction."
SINGLE_FIELD_REQUIRED_MESSAGE = "Please fill in the field name and HTML tag for extraction."
DUPLICATE_FIELD_NAMES_MESSAGE = "Field names must be unique: {names}."


@dataclass(frozen=True, slots=True)
class FieldSelector:
    name: str
    selector: str


@dataclass(frozen=True, slots=True)
class StructuredPlan:
    container_selector: str
    fields: tuple[FieldSelector, ...]
    kind: ClassVar[Literal["structured"]] = "structured"


@dataclass(frozen=True, slots=True)
class SimplePlan:
    field_name: str
    selector: str
    kind: ClassVar[Literal["simple"]] = "simple"


ExtractionPlan = StructuredPlan | SimplePlan


@dataclass(frozen=True, slots=True)
class GenerationValidation:
    ok: bool
    message: str


def validate_generation_request(
    *,
    mode: ScrapingMode,
    container: ElementDescriptor,
    container_ready: bool,
    extractors: Sequence[Extractor],
) -> GenerationValidation:
    if mode == "structured":
        if not container_ready or not container.tag_name.strip():
            return GenerationValidation(False, CONTAINER_REQUIRED_MESSAGE)
        if not extractors:
            return GenerationValidation(False, FIELDS_REQUIRED_MESSAGE)
        if any(not item.name.strip() or not item.tag_name.strip() for item in extractors):
            return GenerationValidation(False, FIELDS_REQUIRED_MESSAGE)
        duplicates = duplicate_field_names(extractors)
        if duplicates:
            return GenerationValidation(False, DUPLICATE_FIELD_NAMES_MESSAGE.format(names=", ".join(duplicates)))
        return GenerationValidation(True, "Validation successful.")

    if not extractors or not extractors[0].name.strip() or not extractors[0].tag_name.strip():
        return GenerationValidation(False, SINGLE_FIELD_REQUIRED_MESSAGE)
    return GenerationValidation(True, "Validation successful.")


def build_plan(
    mode: ScrapingMode,
    container: ElementDescriptor | None,
    extractors: Sequence[Extractor],
) -> ExtractionPlan:
    """Resolve the entity definitions into the selectors a script needs.

    Input is expected to have passed ``validate_generation_request``. Simple
    mode reads only the first extractor and ignores the container.
    """
    if mode == "simple":
        extractor = extractors[0]
        return SimplePlan(
            field_name=extractor.name,
            selector=synthesize_selector(extractor.tag_name, extractor.attribute_clause),
        )

    assert container is not None
    return StructuredPlan(
        container_selector=descriptor_selector(container),
        fields=tuple(
            FieldSelector(name=item.name, selector=synthesize_selector(item.tag_name, item.attribute_clause))
            for item in extractors
        ),
    )


def duplicate_field_names(extractors: Sequence[Extractor]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for item in extractors:
        name = item.name.strip()
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates
