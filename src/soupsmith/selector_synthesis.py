from __future__ import annotations

import logging

from .attribute_clause import parse_attribute_clause
from .models import AttributeConstraint, ElementDescriptor

logger = logging.getLogger(__name__)


def synthesize_selector(tag_name: str | None, attribute_clause: str | None = "") -> str:
    """Build a CSS selector from a tag name and an attribute clause.

    ``id`` keeps only its first whitespace token, ``class`` becomes a chain of
    ``.token`` parts and every other key becomes an ``[key="value"]`` filter.
    Constraints are applied in clause order and never replace each other, so
    two ``data-x=`` entries give two bracket filters.
    """
    tag = (tag_name or "").strip()
    if not tag:
        return ""

    try:
        selector = tag
        for constraint in parse_attribute_clause(attribute_clause):
            selector += _constraint_suffix(constraint)
        return selector
    except Exception:
        logger.debug("Selector synthesis fell back to bare tag %r.", tag, exc_info=True)
        return tag


def descriptor_selector(descriptor: ElementDescriptor) -> str:
    return synthesize_selector(descriptor.tag_name, descriptor.attribute_clause)


def _constraint_suffix(constraint: AttributeConstraint) -> str:
    key = constraint.key.lower()
    if key == "id":
        tokens = constraint.value.split()
        return f"#{tokens[0]}" if tokens else ""
    if key == "class":
        classes = ".".join(token for token in constraint.value.split() if token)
        return f".{classes}" if classes else ""
    return f'[{constraint.key}="{escape_attribute_value(constraint.value)}"]'


def escape_attribute_value(value: str) -> str:
    return value.replace('"', '\\"')
