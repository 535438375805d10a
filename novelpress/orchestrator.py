"""Fetching every chapter of a work and putting the results in order.

Each source decides how its chapter pages may be fetched: all at once
through a bounded pool of workers, or strictly one after another for
sites that cut off bursty clients. Either way the chapters come back
ordered by the number they were given in the table of contents, and the
first failure (by that order) is raised instead of returning a partial
work.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Dict, List, Sequence

from .errors import EmptyContent
from .models import Body, Chapter, ChapterInfo, Section, SectionInfo

logger = logging.getLogger(__name__)

ChapterFetch = Callable[[ChapterInfo], Awaitable[Chapter]]


class FetchPolicy(enum.Enum):
    # Independent requests; the site tolerates bursts.
    CONCURRENT = "concurrent"
    # One request at a time; the site throttles or blocks bursts.
    SEQUENTIAL = "sequential"


async def fetch_chapters(
    descriptors: Sequence[ChapterInfo],
    fetch_one: ChapterFetch,
    policy: FetchPolicy,
    max_workers: int = 8,
) -> List[Chapter]:
    """Run ``fetch_one`` for every descriptor and return chapters by order."""
    pending = sorted(descriptors, key=lambda info: info.order)
    if policy is FetchPolicy.SEQUENTIAL:
        chapters = []
        for info in pending:
            chapters.append(await _fetch_logged(fetch_one, info))
        return chapters

    semaphore = asyncio.Semaphore(max(1, max_workers))

    async def worker(info: ChapterInfo) -> Chapter:
        async with semaphore:
            return await _fetch_logged(fetch_one, info)

    # Siblings already dispatched run to completion even if one fails.
    results = await asyncio.gather(*(worker(info) for info in pending), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return sorted(results, key=lambda chapter: chapter.order)


async def _fetch_logged(fetch_one: ChapterFetch, info: ChapterInfo) -> Chapter:
    logger.info("Fetching chapter %d: %s", info.order, info.name)
    try:
        return await fetch_one(info)
    except EmptyContent:
        logger.warning("Couldn't get contents of chapter %d (%s)", info.order, info.address)
        raise


async def fetch_body(
    sections: Sequence[SectionInfo],
    chapters: Sequence[ChapterInfo],
    fetch_one: ChapterFetch,
    policy: FetchPolicy,
    max_workers: int = 8,
) -> Body:
    """Fetch a work's chapters and return its body.

    With sections, every chapter of every section goes through one pool
    and the results are regrouped by section; otherwise ``chapters`` is
    fetched as the flat chapter list.
    """
    if not sections:
        return tuple(await fetch_chapters(chapters, fetch_one, policy, max_workers))

    descriptors: List[ChapterInfo] = []
    for index, section in enumerate(sections):
        for info in section.chapters:
            info.section_index = index
            descriptors.append(info)
    fetched = await fetch_chapters(descriptors, fetch_one, policy, max_workers)

    section_of: Dict[int, int] = {info.order: info.section_index for info in descriptors}
    grouped: List[List[Chapter]] = [[] for _ in sections]
    for chapter in fetched:
        grouped[section_of[chapter.order]].append(chapter)
    return tuple(
        Section(name=section.name, chapters=tuple(members))
        for section, members in zip(sections, grouped)
    )
