import pytest

from soupsmith.extraction_plan import (
    CONTAINER_REQUIRED_MESSAGE,
    DUPLICATE_FIELD_NAMES_MESSAGE,
    FIELDS_REQUIRED_MESSAGE,
    SINGLE_FIELD_REQUIRED_MESSAGE,
    FieldSelector,
    SimplePlan,
    StructuredPlan,
    build_plan,
    duplicate_field_names,
    validate_generation_request,
)
from soupsmith.models import ElementDescriptor, Extractor


def _fields() -> list[Extractor]:
    return [
        Extractor(id=1, name="title", tag_name="span", attribute_clause="class=t"),
        Extractor(id=2, name="link", tag_name="a", attribute_clause='rel=next, data-x="1"'),
    ]


def test_structured_plan_keeps_field_order() -> None:
    plan = build_plan("structured", ElementDescriptor("div", "class=card"), _fields())
    assert plan == StructuredPlan(
        container_selector="div.card",
        fields=(
            FieldSelector("title", "span.t"),
            FieldSelector("link", 'a[rel="next"][data-x="1"]'),
        ),
    )
    assert plan.kind == "structured"


def test_simple_plan_uses_first_extractor_and_ignores_container() -> None:
    plan = build_plan("simple", ElementDescriptor("div", "class=card"), _fields())
    assert plan == SimplePlan(field_name="title", selector="span.t")
    assert plan.kind == "simple"


def test_validation_requires_tested_container_in_structured_mode() -> None:
    result = validate_generation_request(
        mode="structured",
        container=ElementDescriptor("div", "class=card"),
        container_ready=False,
        extractors=_fields(),
    )
    assert not result.ok
    assert result.message == CONTAINER_REQUIRED_MESSAGE

    empty_tag = validate_generation_request(
        mode="structured",
        container=ElementDescriptor(" "),
        container_ready=True,
        extractors=_fields(),
    )
    assert empty_tag.message == CONTAINER_REQUIRED_MESSAGE


def test_validation_requires_named_fields_with_tags() -> None:
    fields = _fields()
    fields[1].tag_name = ""
    result = validate_generation_request(
        mode="structured",
        container=ElementDescriptor("div"),
        container_ready=True,
        extractors=fields,
    )
    assert not result.ok
    assert result.message == FIELDS_REQUIRED_MESSAGE

    fields = _fields()
    fields[0].name = "  "
    result = validate_generation_request(
        mode="structured",
        container=ElementDescriptor("div"),
        container_ready=True,
        extractors=fields,
    )
    assert result.message == FIELDS_REQUIRED_MESSAGE


def test_validation_for_simple_mode_checks_only_first_field() -> None:
    fields = _fields()
    fields[1].tag_name = ""
    ok = validate_generation_request(
        mode="simple",
        container=ElementDescriptor(),
        container_ready=False,
        extractors=fields,
    )
    assert ok.ok
    assert ok.message == "Validation successful."

    fields[0].tag_name = ""
    missing = validate_generation_request(
        mode="simple",
        container=ElementDescriptor(),
        container_ready=False,
        extractors=fields,
    )
    assert not missing.ok
    assert missing.message == SINGLE_FIELD_REQUIRED_MESSAGE


def test_plan_kind_is_fixed_by_plan_type() -> None:
    with pytest.raises(TypeError):
        StructuredPlan("div.card", (), kind="simple")  # type: ignore[call-arg]
    with pytest.raises(TypeError):
        SimplePlan("title", "span.t", "structured")  # type: ignore[call-arg]
    assert StructuredPlan.kind == "structured"
    assert SimplePlan.kind == "simple"


def test_validation_rejects_duplicate_field_names() -> None:
    fields = [
        Extractor(id=1, name="item_1", tag_name="b"),
        Extractor(id=2, name="item_3", tag_name="i"),
        Extractor(id=3, name="item_3 ", tag_name="u"),
        Extractor(id=4, name="item_1", tag_name="s"),
    ]
    assert duplicate_field_names(fields) == ["item_3", "item_1"]

    result = validate_generation_request(
        mode="structured",
        container=ElementDescriptor("div", "class=row"),
        container_ready=True,
        extractors=fields,
    )
    assert not result.ok
    assert result.message == DUPLICATE_FIELD_NAMES_MESSAGE.format(names="item_3, item_1")


def test_simple_mode_ignores_names_beyond_the_first_field() -> None:
    fields = [Extractor(id=1, name="x", tag_name="b"), Extractor(id=2, name="x", tag_name="i")]
    result = validate_generation_request(
        mode="simple",
        container=ElementDescriptor(),
        container_ready=False,
        extractors=fields,
    )
    assert result.ok
