from soupsmith.attribute_clause import parse_attribute_clause, unquote_value
from soupsmith.models import AttributeConstraint


def test_parse_keeps_input_order() -> None:
    assert parse_attribute_clause("a=1, b=2") == [
        AttributeConstraint("a", "1"),
        AttributeConstraint("b", "2"),
    ]


def test_parse_drops_segments_without_equals_and_empty_parts() -> None:
    constraints = parse_attribute_clause("just a note, class=card, , =orphan, title=, role = main ")
    assert constraints == [
        AttributeConstraint("class", "card"),
        AttributeConstraint("role", "main"),
    ]


def test_parse_splits_at_first_equals_only() -> None:
    assert parse_attribute_clause("href=/search?q=1") == [AttributeConstraint("href", "/search?q=1")]


def test_parse_strips_one_layer_of_matching_quotes() -> None:
    assert parse_attribute_clause('id="x y"') == [AttributeConstraint("id", "x y")]
    assert parse_attribute_clause("id='x'") == [AttributeConstraint("id", "x")]
    assert parse_attribute_clause("title=\"'inner'\"") == [AttributeConstraint("title", "'inner'")]


def test_parse_keeps_mismatched_quotes_and_drops_empty_quoted_value() -> None:
    assert parse_attribute_clause("title=\"half'") == [AttributeConstraint("title", "\"half'")]
    assert parse_attribute_clause('title=""') == []


def test_parse_keeps_duplicate_keys() -> None:
    assert parse_attribute_clause("data-x=1, data-x=2") == [
        AttributeConstraint("data-x", "1"),
        AttributeConstraint("data-x", "2"),
    ]


def test_parse_never_fails_on_empty_input() -> None:
    assert parse_attribute_clause("") == []
    assert parse_attribute_clause(None) == []
    assert parse_attribute_clause(",,,") == []


def test_unquote_value_ignores_single_quote_character() -> None:
    assert unquote_value('"') == '"'
    assert unquote_value("'a'") == "a"
