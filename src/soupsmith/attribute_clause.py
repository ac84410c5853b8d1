"""Parser for the informal ``key=value, key2=value2`` attribute clause.

The clause is typed by hand and is usually half-finished while the user is
editing it, so parsing never fails: segments that do not fit the grammar are
dropped and whatever is left is returned in input order.
"""

from __future__ import annotations

from .models import AttributeConstraint

_QUOTES = ('"', "'")


def parse_attribute_clause(clause: str | None) -> list[AttributeConstraint]:
    if not clause:
        return []

    constraints: list[AttributeConstraint] = []
    for raw_segment in str(clause).split(","):
        segment = raw_segment.strip()
        if not segment or "=" not in segment:
            continue
        raw_key, raw_value = segment.split("=", 1)
        key = raw_key.strip()
        value = unquote_value(raw_value.strip())
        if not key or not value:
            continue
        constraints.append(AttributeConstraint(key=key, value=value))
    return constraints


def unquote_value(value: str) -> str:
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return value
