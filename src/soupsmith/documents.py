"""Queryable document backends used for live selector testing.

The match engine only needs ``query(selector, scope, limit)`` and a text accessor
on the returned elements; ``describe`` turns a returned element back into a
tag name plus attribute clause for picking. ``SoupDocument`` is the offline
backend and uses the same BeautifulSoup calls as the generated extraction
program; ``PageDocument`` runs the same queries against a page open in a
Playwright browser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from bs4 import BeautifulSoup, Tag

from .capture import describe_element_handle, describe_soup_tag
from .models import ElementDescriptor

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

HTML_PARSER = "html.parser"


class DocumentElement(Protocol):
    def text(self) -> str: ...


class QueryableDocument(Protocol):
    def query(
        self,
        selector: str,
        scope: DocumentElement | None = None,
        limit: int | None = None,
    ) -> list[DocumentElement]: ...

    def describe(self, element: DocumentElement) -> ElementDescriptor: ...


@dataclass(frozen=True, slots=True)
class SoupElement:
    tag: Tag

    def text(self) -> str:
        return self.tag.get_text(strip=True)


class SoupDocument:
    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup

    @classmethod
    def from_html(cls, html: str) -> SoupDocument:
        return cls(BeautifulSoup(html, HTML_PARSER))

    def query(
        self,
        selector: str,
        scope: DocumentElement | None = None,
        limit: int | None = None,
    ) -> list[DocumentElement]:
        root = self.soup if scope is None else _soup_tag(scope)
        return [SoupElement(tag) for tag in root.select(selector, limit=limit or 0)]

    def describe(self, element: DocumentElement) -> ElementDescriptor:
        return describe_soup_tag(_soup_tag(element))


@dataclass(frozen=True, slots=True)
class PageElement:
    handle: ElementHandle

    def text(self) -> str:
        return (self.handle.text_content() or "").strip()


class PageDocument:
    def __init__(self, page: Page) -> None:
        self.page = page

    def query(
        self,
        selector: str,
        scope: DocumentElement | None = None,
        limit: int | None = None,
    ) -> list[DocumentElement]:
        root = self.page if scope is None else _page_handle(scope)
        if limit == 1:
            handle = root.query_selector(selector)
            return [PageElement(handle)] if handle else []
        handles = root.query_selector_all(selector)
        if limit:
            handles = handles[:limit]
        return [PageElement(handle) for handle in handles]

    def describe(self, element: DocumentElement) -> ElementDescriptor:
        return describe_element_handle(_page_handle(element))


def _soup_tag(element: DocumentElement) -> Tag:
    if not isinstance(element, SoupElement):
        raise TypeError(f"SoupDocument cannot scope a query to {type(element).__name__}.")
    return element.tag


def _page_handle(element: DocumentElement) -> ElementHandle:
    if not isinstance(element, PageElement):
        raise TypeError(f"PageDocument cannot scope a query to {type(element).__name__}.")
    return element.handle
