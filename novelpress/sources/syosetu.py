"""Shousetsuka ni Narou (ncode.syosetu.com).

The table of contents does not show whether a work is finished; that is
on the separate "小説情報" page linked from the header, which is read
with its own small traversal. Narou starts refusing connections when a
client requests many pages at once, so chapters are fetched one at a
time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from bs4 import Tag

from ..content import ContentLayout
from ..errors import RequiredFieldMissing
from ..fetcher import PageFetcher
from ..models import NovelStatus
from ..orchestrator import FetchPolicy
from ..traverser import Hook, SelectorMatcher, traverse
from .base import SourceAdapter, TocData, href_of, require, text_of

logger = logging.getLogger(__name__)

TITLE_SELECTOR = ".novel_title"
AUTHOR_SELECTOR = "div.novel_writername > a"
INFO_LINK_SELECTOR = "#head_nav > li:nth-child(2) > a"
INFO_LINK_TEXT = "小説情報"
SECTION_SELECTOR = ".chapter_title"
CHAPTER_SELECTOR = ".novel_sublist2"
CHAPTER_LINK_SELECTOR = ".subtitle > a"
CHAPTER_DATE_SELECTOR = ".long_update"

COMPLETED_SELECTOR = "#noveltype"
ONGOING_SELECTOR = "#noveltype_notend"

PARAGRAPH_SELECTOR = "#novel_honbun > p"


@dataclass
class InfoPageData:
    status: Optional[NovelStatus] = None


def _on_completed(data: InfoPageData, element: Tag) -> None:
    data.status = NovelStatus.COMPLETED


def _on_ongoing(data: InfoPageData, element: Tag) -> None:
    data.status = NovelStatus.ONGOING


class SyosetuAdapter(SourceAdapter):
    name = "syosetu"
    host = "ncode.syosetu.com"
    fetch_policy = FetchPolicy.SEQUENTIAL
    max_workers = 1

    def __init__(self, *, max_workers: Optional[int] = None) -> None:
        super().__init__(max_workers=max_workers)
        self.info_hooks = [
            Hook(COMPLETED_SELECTOR, _on_completed),
            Hook(ONGOING_SELECTOR, _on_ongoing),
        ]

    def build_toc_hooks(self) -> List[Hook[TocData]]:
        self._chapter_link = SelectorMatcher(CHAPTER_LINK_SELECTOR)
        self._chapter_date = SelectorMatcher(CHAPTER_DATE_SELECTOR)
        return [
            Hook(TITLE_SELECTOR, self._on_title),
            Hook(AUTHOR_SELECTOR, self._on_author),
            Hook(INFO_LINK_SELECTOR, self._on_info_link),
            Hook(SECTION_SELECTOR, self._on_section),
            Hook(CHAPTER_SELECTOR, self._on_chapter),
        ]

    def build_content_layout(self) -> ContentLayout:
        return ContentLayout(PARAGRAPH_SELECTOR)

    async def read_status(self, toc: TocData, address: str, fetcher: PageFetcher) -> NovelStatus:
        info_address = self.resolve(require(toc.info_path, "info-link", address))
        logger.info("Reading status from %s", info_address)
        root = await fetcher.fetch_page(info_address)
        data = traverse(root, self.info_hooks, InfoPageData())
        return require(data.status, "status", info_address)

    def _on_title(self, toc: TocData, element: Tag) -> None:
        toc.title = element.get_text().strip()

    def _on_author(self, toc: TocData, element: Tag) -> None:
        toc.author = element.get_text().strip()

    def _on_info_link(self, toc: TocData, element: Tag) -> None:
        href = element.get("href")
        if element.get_text().strip() == INFO_LINK_TEXT and href:
            toc.info_path = href

    def _on_section(self, toc: TocData, element: Tag) -> None:
        toc.add_section(element.get_text().strip())

    def _on_chapter(self, toc: TocData, element: Tag) -> None:
        link = self._chapter_link.select_first(element)
        name = text_of(link, "chapter-name")
        date = chapter_date(self._chapter_date.select_first(element))
        toc.add_chapter(name, date, href_of(link))


def chapter_date(element: Optional[Tag]) -> str:
    """Upload date, followed by the revision date in brackets when revised.

    ``<dt class="long_update">2019/03/01 12:00<span title="2019/03/05 改稿">（改）</span></dt>``
    gives ``2019/03/01 12:00（2019/03/05 改稿）``.
    """
    if element is None:
        raise RequiredFieldMissing("chapter-date")
    uploaded = next(
        (text for text in element.find_all(string=True, recursive=False) if text.strip()),
        None,
    )
    if uploaded is None:
        raise RequiredFieldMissing("chapter-date")
    date = uploaded.strip()
    edited = element.find(title=True, recursive=False)
    if edited is not None:
        date = f"{date}（{edited['title']}）"
    return date
