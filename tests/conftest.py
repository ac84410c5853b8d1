from __future__ import annotations

from typing import Any

import pytest
from bs4 import BeautifulSoup, Tag

from soupsmith.documents import HTML_PARSER, SoupDocument

CARDS_HTML = """
<html>
  <body>
    <div class="card"><span class="t">A</span></div>
    <div class="card"><em>no title here</em></div>
    <div class="card"><span class="t">B</span></div>
    <span class="t">outside</span>
  </body>
</html>
"""


@pytest.fixture
def cards_html() -> str:
    return CARDS_HTML


@pytest.fixture
def cards_document() -> SoupDocument:
    return SoupDocument.from_html(CARDS_HTML)


class FakeHandle:
    """Element handle stand-in answering Playwright's sync calls from a parsed tree."""

    def __init__(self, tag: Tag) -> None:
        self.tag = tag
        self.calls: list[str] = []

    def query_selector(self, selector: str) -> FakeHandle | None:
        self.calls.append("query_selector")
        found = self.tag.select_one(selector)
        return FakeHandle(found) if found is not None else None

    def query_selector_all(self, selector: str) -> list[FakeHandle]:
        self.calls.append("query_selector_all")
        return [FakeHandle(item) for item in self.tag.select(selector)]

    def text_content(self) -> str:
        return self.tag.get_text()

    def evaluate(self, script: str) -> dict[str, Any]:
        attributes = [
            [name, " ".join(value) if isinstance(value, list) else value] for name, value in self.tag.attrs.items()
        ]
        return {"tag": self.tag.name, "attributes": attributes}


class FakePage(FakeHandle):
    def __init__(self, html: str) -> None:
        super().__init__(BeautifulSoup(html, HTML_PARSER))

    def content(self) -> str:
        return str(self.tag)


@pytest.fixture
def cards_page() -> FakePage:
    return FakePage(CARDS_HTML)
