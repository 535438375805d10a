from __future__ import annotations

import asyncio
from typing import List

import pytest

from novelpress.errors import TransportFailure
from novelpress.models import BlankLine, Chapter, ChapterInfo, Section, SectionInfo
from novelpress.orchestrator import FetchPolicy, fetch_body, fetch_chapters


def _infos(count: int) -> List[ChapterInfo]:
    return [ChapterInfo(name=f"c{i}", date="", order=i, address=f"/c/{i}") for i in range(1, count + 1)]


class Recorder:
    """A chapter fetch that finishes later chapters first."""

    def __init__(self, fail=(), delay: float = 0.01) -> None:
        self.fail = set(fail)
        self.delay = delay
        self.started: List[int] = []
        self.finished: List[int] = []
        self.running = 0
        self.peak = 0

    async def __call__(self, info: ChapterInfo) -> Chapter:
        self.started.append(info.order)
        self.running += 1
        self.peak = max(self.peak, self.running)
        try:
            await asyncio.sleep(self.delay * (20 - info.order))
            if info.order in self.fail:
                raise TransportFailure(info.address, f"boom {info.order}")
            self.finished.append(info.order)
            return Chapter(name=info.name, date=info.date, order=info.order, lines=(BlankLine(),))
        finally:
            self.running -= 1


def test_concurrent_results_are_in_order_despite_completion_order() -> None:
    recorder = Recorder()
    chapters = asyncio.run(fetch_chapters(_infos(6), recorder, FetchPolicy.CONCURRENT, max_workers=6))
    assert [c.order for c in chapters] == [1, 2, 3, 4, 5, 6]
    assert recorder.finished == [6, 5, 4, 3, 2, 1]


def test_concurrency_is_bounded_by_max_workers() -> None:
    recorder = Recorder(delay=0.001)
    asyncio.run(fetch_chapters(_infos(10), recorder, FetchPolicy.CONCURRENT, max_workers=3))
    assert recorder.peak == 3


def test_concurrent_failure_raises_lowest_order_after_siblings_finish() -> None:
    recorder = Recorder(fail={4, 2})
    with pytest.raises(TransportFailure) as excinfo:
        asyncio.run(fetch_chapters(_infos(5), recorder, FetchPolicy.CONCURRENT, max_workers=5))
    assert excinfo.value.reason == "boom 2"
    assert sorted(recorder.finished) == [1, 3, 5]


def test_sequential_runs_one_at_a_time_and_stops_at_failure() -> None:
    recorder = Recorder(fail={3}, delay=0.001)
    with pytest.raises(TransportFailure):
        asyncio.run(fetch_chapters(_infos(5), recorder, FetchPolicy.SEQUENTIAL))
    assert recorder.started == [1, 2, 3]
    assert recorder.peak == 1


def test_descriptors_given_out_of_order_come_back_in_order() -> None:
    infos = list(reversed(_infos(4)))
    chapters = asyncio.run(fetch_chapters(infos, Recorder(delay=0), FetchPolicy.SEQUENTIAL))
    assert [c.order for c in chapters] == [1, 2, 3, 4]


def test_fetch_body_regroups_chapters_by_section() -> None:
    infos = _infos(5)
    sections = [
        SectionInfo("A", infos[:2]),
        SectionInfo("B", infos[2:3]),
        SectionInfo("C", infos[3:]),
    ]
    body = asyncio.run(fetch_body(sections, [], Recorder(), FetchPolicy.CONCURRENT, max_workers=4))
    assert all(isinstance(section, Section) for section in body)
    assert [(s.name, [c.order for c in s.chapters]) for s in body] == [
        ("A", [1, 2]),
        ("B", [3]),
        ("C", [4, 5]),
    ]
    assert [info.section_index for info in infos] == [0, 0, 1, 2, 2]


def test_fetch_body_without_sections_is_the_flat_chapter_list() -> None:
    body = asyncio.run(fetch_body([], _infos(3), Recorder(delay=0), FetchPolicy.SEQUENTIAL))
    assert [c.order for c in body] == [1, 2, 3]
    assert all(isinstance(c, Chapter) for c in body)
