from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ScrapingMode = Literal["structured", "simple"]
OutputFormat = Literal["csv", "json", "print"]
DescriptorKind = Literal["container", "extractor"]

SCRAPING_MODES: tuple[ScrapingMode, ...] = ("structured", "simple")
OUTPUT_FORMATS: tuple[OutputFormat, ...] = ("csv", "json", "print")


@dataclass(frozen=True, slots=True)
class AttributeConstraint:
    key: str
    value: str


@dataclass(slots=True)
class ElementDescriptor:
    tag_name: str = ""
    attribute_clause: str = ""


@dataclass(slots=True)
class Extractor:
    id: int
    name: str
    tag_name: str = ""
    attribute_clause: str = ""

    @property
    def descriptor(self) -> ElementDescriptor:
        return ElementDescriptor(self.tag_name, self.attribute_clause)


@dataclass(frozen=True, slots=True)
class TestResult:
    match_count: int
    preview: str
    is_error: bool

    # Keeps pytest from collecting this class.
    __test__ = False
