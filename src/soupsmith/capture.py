"""Turn a picked element into a tag name plus attribute clause.

Only attributes that describe a whole family of similar elements are kept:
``id`` is unique by nature, ``style`` is presentation and ``on*`` handlers
are behaviour. Values containing ``,`` cannot be written in the clause
language and are skipped as well.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping

from bs4 import Tag

from .models import ElementDescriptor

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle

_SKIPPED_ATTRIBUTES = frozenset({"id", "style"})

_READ_ATTRIBUTES_SCRIPT = """
(el) => ({
  tag: el.tagName.toLowerCase(),
  attributes: Array.from(el.attributes).map((attr) => [attr.name, attr.value]),
})
"""


def describe_attributes(tag_name: str, attributes: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> ElementDescriptor:
    items = attributes.items() if isinstance(attributes, Mapping) else attributes
    pieces: list[str] = []
    for raw_name, raw_value in items:
        name = str(raw_name).strip().lower()
        value = _attribute_text(raw_value)
        if not name or not value or "," in value:
            continue
        if name in _SKIPPED_ATTRIBUTES or name.startswith("on"):
            continue
        pieces.append(f"{name}={value}")
    return ElementDescriptor(tag_name=tag_name.strip().lower(), attribute_clause=", ".join(pieces))


def describe_soup_tag(tag: Tag) -> ElementDescriptor:
    return describe_attributes(tag.name, tag.attrs)


def describe_element_handle(element: ElementHandle) -> ElementDescriptor:
    payload = element.evaluate(_READ_ATTRIBUTES_SCRIPT)
    pairs = [
        (str(item[0]), str(item[1]))
        for item in payload.get("attributes", [])
        if isinstance(item, (list, tuple)) and len(item) == 2
    ]
    return describe_attributes(str(payload.get("tag", "")), pairs)


def _attribute_text(raw_value: Any) -> str:
    # BeautifulSoup keeps multi-valued attributes such as class as lists.
    if isinstance(raw_value, (list, tuple)):
        return " ".join(str(item) for item in raw_value).strip()
    if raw_value is None:
        return ""
    return str(raw_value).strip()
