"""Kakuyomu (kakuyomu.jp).

Everything needed is on the work's table-of-contents page, including the
serialization status. Chapter pages are independent and the site copes
with parallel requests, so chapters are fetched concurrently.
"""

from __future__ import annotations

from typing import List

import httpx
from bs4 import Tag

from ..content import ContentLayout
from ..models import NovelStatus
from ..orchestrator import FetchPolicy
from ..traverser import Hook, SelectorMatcher
from ..utils import to_kanji_digits
from .base import SourceAdapter, TocData, href_of, text_of

TITLE_SELECTOR = "#workTitle > a"
AUTHOR_SELECTOR = "#workAuthor-activityName > a"
STATUS_SELECTOR = "div#workInformationList > dl > dd:nth-child(2)"
SECTION_SELECTOR = "li.widget-toc-chapter > span"
CHAPTER_SELECTOR = "li.widget-toc-episode > a"
CHAPTER_NAME_SELECTOR = "span.widget-toc-episode-titleLabel"
CHAPTER_DATE_SELECTOR = "time.widget-toc-episode-datePublished"

PARAGRAPH_SELECTOR = ".widget-episodeBody > p"
BLANK_SELECTOR = ".widget-episodeBody > p.blank"

STATUS_VOCABULARY = {
    "連載中": NovelStatus.ONGOING,
    "完結済": NovelStatus.COMPLETED,
}


class KakuyomuAdapter(SourceAdapter):
    name = "kakuyomu"
    host = "kakuyomu.jp"
    fetch_policy = FetchPolicy.CONCURRENT
    max_workers = 8

    def build_toc_hooks(self) -> List[Hook[TocData]]:
        self._chapter_name = SelectorMatcher(CHAPTER_NAME_SELECTOR)
        self._chapter_date = SelectorMatcher(CHAPTER_DATE_SELECTOR)
        return [
            Hook(TITLE_SELECTOR, self._on_title),
            Hook(AUTHOR_SELECTOR, self._on_author),
            Hook(STATUS_SELECTOR, self._on_status),
            Hook(SECTION_SELECTOR, self._on_section),
            Hook(CHAPTER_SELECTOR, self._on_chapter),
        ]

    def build_content_layout(self) -> ContentLayout:
        return ContentLayout(PARAGRAPH_SELECTOR, blank_selector=BLANK_SELECTOR)

    def recognizes(self, address: str) -> bool:
        if not super().recognizes(address):
            return False
        return httpx.URL(address).path.startswith("/works/")

    def _on_title(self, toc: TocData, element: Tag) -> None:
        toc.title = element.get_text().strip()

    def _on_author(self, toc: TocData, element: Tag) -> None:
        toc.author = element.get_text().strip()

    def _on_status(self, toc: TocData, element: Tag) -> None:
        status = STATUS_VOCABULARY.get(element.get_text().strip())
        if status is not None:
            toc.status = status

    def _on_section(self, toc: TocData, element: Tag) -> None:
        toc.add_section(element.get_text().strip())

    def _on_chapter(self, toc: TocData, element: Tag) -> None:
        name = text_of(self._chapter_name.select_first(element), "chapter-name")
        date = text_of(self._chapter_date.select_first(element), "chapter-date")
        toc.add_chapter(name, to_kanji_digits(date), href_of(element))
