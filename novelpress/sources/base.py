"""The contract every novel site implements.

An adapter reads a work's table-of-contents page with a set of hooks
(see ``novelpress.traverser``) that fill in a ``TocData``, validates what
was found, and then hands the chapter descriptors to the orchestrator.
All selectors are compiled in ``__init__``; a misconfigured adapter fails
before it makes a single request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, TypeVar, Union

import httpx
from bs4 import Tag

from ..content import ContentLayout
from ..errors import RequiredFieldMissing
from ..fetcher import PageFetcher
from ..models import (
    Chapter,
    ChapterInfo,
    ContentLine,
    NovelStatus,
    SectionInfo,
    SectionMarker,
    Work,
)
from ..orchestrator import FetchPolicy, fetch_body
from ..traverser import Hook, traverse

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class TocData:
    """What the table-of-contents hooks have found so far."""

    title: Optional[str] = None
    author: Optional[str] = None
    status: Optional[NovelStatus] = None
    info_path: Optional[str] = None
    entries: List[Union[SectionMarker, ChapterInfo]] = field(default_factory=list)
    chapter_count: int = 0

    def add_section(self, name: str) -> None:
        self.entries.append(SectionMarker(name))

    def add_chapter(self, name: str, date: str, address: str) -> ChapterInfo:
        self.chapter_count += 1
        info = ChapterInfo(name=name, date=date, order=self.chapter_count, address=address)
        self.entries.append(info)
        return info

    def group(self) -> Tuple[List[SectionInfo], List[ChapterInfo]]:
        """Split the entries into sections and top-level chapters.

        A chapter belongs to the nearest section heading before it.
        Chapters listed before the first heading go to the first section.
        Without any headings every chapter is top-level.
        """
        sections = [SectionInfo(entry.name) for entry in self.entries if isinstance(entry, SectionMarker)]
        chapters = [entry for entry in self.entries if isinstance(entry, ChapterInfo)]
        if not sections:
            return [], chapters

        current = 0
        seen_heading = False
        for entry in self.entries:
            if isinstance(entry, SectionMarker):
                if seen_heading:
                    current += 1
                seen_heading = True
            else:
                sections[current].chapters.append(entry)
        return sections, []


def require(value: Optional[V], field_name: str, address: Optional[str] = None) -> V:
    if value is None:
        raise RequiredFieldMissing(field_name, address)
    return value


def validate_body(sections: Sequence[SectionInfo], chapters: Sequence[ChapterInfo], address: str) -> None:
    if sections:
        for section in sections:
            if not section.chapters:
                raise RequiredFieldMissing("section-chapters", address)
    elif not chapters:
        raise RequiredFieldMissing("chapters", address)


class SourceAdapter:
    """Base class for a novel site.

    Subclasses set ``name``, ``host``, ``fetch_policy`` and
    ``max_workers``, and implement ``build_toc_hooks`` and
    ``build_content_layout``. Sites that keep the status somewhere other
    than the table of contents override ``read_status``.
    """

    name = "base"
    host = ""
    fetch_policy = FetchPolicy.CONCURRENT
    max_workers = 8

    def __init__(self, *, max_workers: Optional[int] = None) -> None:
        if max_workers is not None:
            self.max_workers = max_workers
        self.toc_hooks: List[Hook[TocData]] = self.build_toc_hooks()
        self.content_layout: ContentLayout = self.build_content_layout()

    def build_toc_hooks(self) -> List[Hook[TocData]]:
        raise NotImplementedError

    def build_content_layout(self) -> ContentLayout:
        raise NotImplementedError

    def recognizes(self, address: str) -> bool:
        try:
            url = httpx.URL(address)
        except httpx.InvalidURL:
            return False
        return url.host == self.host

    def resolve(self, path: str) -> str:
        """Absolute address for ``path``; absolute addresses pass through."""
        return str(httpx.URL(f"https://{self.host}/").join(path))

    async def make_work(self, address: str, fetcher: PageFetcher) -> Work:
        logger.info("Reading table of contents of %s", address)
        root = await fetcher.fetch_page(address)
        toc = traverse(root, self.toc_hooks, TocData())

        title = require(toc.title, "title", address)
        author = require(toc.author, "author", address)
        status = await self.read_status(toc, address, fetcher)
        sections, chapters = toc.group()
        validate_body(sections, chapters, address)
        logger.info(
            "%s [%s]: %d chapters in %d sections",
            title, author, toc.chapter_count, len(sections),
        )

        async def fetch_one(info: ChapterInfo) -> Chapter:
            return await self.fetch_chapter(info, fetcher)

        body = await fetch_body(sections, chapters, fetch_one, self.fetch_policy, self.max_workers)
        return Work(title=title, author=author, status=status, source_url=address, body=body)

    async def read_status(self, toc: TocData, address: str, fetcher: PageFetcher) -> NovelStatus:
        return require(toc.status, "status", address)

    async def fetch_chapter(self, info: ChapterInfo, fetcher: PageFetcher) -> Chapter:
        address = self.resolve(info.address)
        lines = await self.extract_page(address, fetcher, chapter=f"chapter {info.order} ({address})")
        return Chapter(name=info.name, date=info.date, order=info.order, lines=tuple(lines))

    async def extract_page(
        self, address: str, fetcher: PageFetcher, chapter: Optional[str] = None
    ) -> List[ContentLine]:
        """Fetch one chapter page and return its content lines."""
        root = await fetcher.fetch_page(self.resolve(address))
        return self.content_layout.extract(root, chapter or address)


def text_of(element: Optional[Tag], field_name: str) -> str:
    """Stripped text of a sub-element of a table-of-contents entry."""
    if element is None:
        raise RequiredFieldMissing(field_name)
    return element.get_text().strip()


def href_of(element: Optional[Tag]) -> str:
    href = element.get("href") if element is not None else None
    if not href:
        raise RequiredFieldMissing("chapter-link")
    return href
