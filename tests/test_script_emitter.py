from __future__ import annotations

import ast
import csv
import json
from pathlib import Path
import runpy
from typing import Any

import pytest

from soupsmith.documents import SoupDocument
from soupsmith.extraction_plan import FieldSelector, SimplePlan, StructuredPlan, build_plan
from soupsmith.match_engine import evaluate_container, evaluate_extractor
from soupsmith.models import ElementDescriptor, Extractor
from soupsmith.script_emitter import RENDERERS, emit_script, python_string_literal
from soupsmith.selector_synthesis import synthesize_selector

CONTAINER = ElementDescriptor("div", "class=card")
TITLE_FIELD = Extractor(id=1, name="t", tag_name="span", attribute_clause="class=t")


def _run_script(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, script: str) -> dict[str, Any]:
    script_path = tmp_path / "scrape.py"
    script_path.write_text(script, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return runpy.run_path(str(script_path), run_name="__main__")


def test_every_combination_is_valid_python() -> None:
    structured = build_plan("structured", CONTAINER, [TITLE_FIELD])
    simple = build_plan("simple", None, [TITLE_FIELD])
    for plan in (structured, simple):
        for output_format in RENDERERS:
            ast.parse(emit_script(plan, output_format, "page.html"))


def test_output_format_only_changes_the_tail() -> None:
    plan = build_plan("structured", CONTAINER, [TITLE_FIELD])
    scripts = {output_format: emit_script(plan, output_format, "page.html") for output_format in RENDERERS}
    for script in scripts.values():
        assert 'container_selector = "div.card"' in script
        assert 'field_element = container.select_one("span.t")' in script
        assert 'soup = BeautifulSoup(html_content, "html.parser")' in script
    assert "import csv" in scripts["csv"] and "csv.DictWriter" in scripts["csv"]
    assert "import json" in scripts["json"] and "json.dump(all_items" in scripts["json"]
    assert "import csv" not in scripts["print"] and "import json" not in scripts["print"]


def test_user_strings_are_escaped() -> None:
    plan = StructuredPlan(
        container_selector=synthesize_selector("a", 'title="say "hi""'),
        fields=(FieldSelector('we"ird', "b"),),
    )
    script = emit_script(plan, "print", 'my "page"\\copy.html')
    tree = ast.parse(script)
    constants = {node.value for node in ast.walk(tree) if isinstance(node, ast.Constant)}
    assert 'my "page"\\copy.html' in constants
    assert 'a[title="say \\"hi\\""]' in constants
    assert 'we"ird' in constants


def test_python_string_literal_round_trips_special_characters() -> None:
    for value in ('plain', 'quo"te', "back\\slash", "line\nbreak", "it's"):
        assert ast.literal_eval(python_string_literal(value)) == value


def test_structured_csv_end_to_end(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    document = SoupDocument.from_html(cards_html)
    assert evaluate_container(CONTAINER, document).match_count == 3
    assert evaluate_extractor(TITLE_FIELD.descriptor, document, container=CONTAINER).match_count == 2

    script = emit_script(build_plan("structured", CONTAINER, [TITLE_FIELD]), "csv", "page.html")
    _run_script(tmp_path, monkeypatch, script)

    with (tmp_path / "output.csv").open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["t"]
    assert rows[1:] == [["A"], [""], ["B"]]


def test_structured_program_matches_interactive_coverage(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str
) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    document = SoupDocument.from_html(cards_html)
    fields = [TITLE_FIELD, Extractor(id=2, name="note", tag_name="em")]

    namespace = _run_script(
        tmp_path, monkeypatch, emit_script(build_plan("structured", CONTAINER, fields), "print", "page.html")
    )
    items = namespace["all_items"]
    assert len(items) == evaluate_container(CONTAINER, document).match_count
    for extractor in fields:
        coverage = evaluate_extractor(extractor.descriptor, document, container=CONTAINER).match_count
        assert sum(1 for item in items if item[extractor.name] is not None) == coverage
    assert items == [
        {"t": "A", "note": None},
        {"t": None, "note": "no title here"},
        {"t": "B", "note": None},
    ]


def test_simple_program_matches_interactive_matches(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str
) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    document = SoupDocument.from_html(cards_html)
    selector = synthesize_selector(TITLE_FIELD.tag_name, TITLE_FIELD.attribute_clause)

    namespace = _run_script(tmp_path, monkeypatch, emit_script(build_plan("simple", None, [TITLE_FIELD]), "print", "page.html"))
    assert namespace["extracted_data"] == [item.text() for item in document.query(selector)]
    assert len(namespace["extracted_data"]) == evaluate_extractor(TITLE_FIELD.descriptor, document, mode="simple").match_count


def test_simple_json_writes_values_under_field_name(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str
) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    _run_script(tmp_path, monkeypatch, emit_script(SimplePlan("t", "span.t"), "json", "page.html"))
    payload = json.loads((tmp_path / "output.json").read_text(encoding="utf-8"))
    assert payload == {"t": ["A", "B", "outside"]}


def test_simple_csv_has_single_named_column(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    _run_script(tmp_path, monkeypatch, emit_script(SimplePlan("title", "span.t"), "csv", "page.html"))
    with (tmp_path / "output.csv").open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows == [["title"], ["A"], ["B"], ["outside"]]


def test_structured_json_writes_record_list(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cards_html: str) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    _run_script(tmp_path, monkeypatch, emit_script(build_plan("structured", CONTAINER, [TITLE_FIELD]), "json", "page.html"))
    payload = json.loads((tmp_path / "output.json").read_text(encoding="utf-8"))
    assert payload == [{"t": "A"}, {"t": None}, {"t": "B"}]


def test_print_format_writes_no_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], cards_html: str
) -> None:
    (tmp_path / "page.html").write_text(cards_html, encoding="utf-8")
    _run_script(tmp_path, monkeypatch, emit_script(SimplePlan("t", "span.t"), "print", "page.html"))
    output = capsys.readouterr().out
    assert "Found 3 matching elements." in output
    assert "--- Extracted Data ---" in output
    assert sorted(path.name for path in tmp_path.iterdir()) == ["page.html", "scrape.py"]


def test_no_matches_skips_file_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "page.html").write_text("<p>nothing</p>", encoding="utf-8")
    _run_script(tmp_path, monkeypatch, emit_script(SimplePlan("t", "span.t"), "csv", "page.html"))
    assert "No data extracted to save." in capsys.readouterr().out
    assert not (tmp_path / "output.csv").exists()


def test_missing_source_file_exits_with_diagnostic(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    script = emit_script(SimplePlan("t", "span.t"), "print", "missing.html")
    with pytest.raises(SystemExit) as excinfo:
        _run_script(tmp_path, monkeypatch, script)
    assert excinfo.value.code == 1
    assert "The file 'missing.html' was not found." in capsys.readouterr().out
