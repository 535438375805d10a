"""Document model for a serialized novel.

A ``Work`` is assembled once from the table of contents and the fetched
chapter pages and is not modified afterwards, so all model types are
frozen dataclasses holding tuples. ``ChapterInfo`` and ``SectionMarker``
are the transient records produced while reading the table of contents;
they never appear in a finished ``Work``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


class NovelStatus(enum.Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @property
    def status_text(self) -> str:
        """Label shown on the title page."""
        return "連載中" if self is NovelStatus.ONGOING else "完結済"

    @property
    def completion_stamp(self) -> str:
        # Leading space so it can be appended straight onto a file name.
        return " (完)" if self is NovelStatus.COMPLETED else ""


@dataclass(frozen=True)
class PlainSpan:
    text: str


@dataclass(frozen=True)
class AnnotatedSpan:
    """Base text with a phonetic gloss, rendered as ruby."""

    base: str
    gloss: str


Content = Union[PlainSpan, AnnotatedSpan]


@dataclass(frozen=True)
class TextLine:
    spans: Tuple[Content, ...]


@dataclass(frozen=True)
class BlankLine:
    pass


ContentLine = Union[TextLine, BlankLine]


@dataclass(frozen=True)
class Chapter:
    name: str
    date: str
    order: int
    # Never contains the chapter name; packaging inserts it itself.
    lines: Tuple[ContentLine, ...]

    def __post_init__(self) -> None:
        if self.order < 1:
            raise ValueError(f"Chapter order must be positive, got {self.order}")


@dataclass(frozen=True)
class Section:
    name: str
    chapters: Tuple[Chapter, ...]

    def __post_init__(self) -> None:
        if not self.chapters:
            raise ValueError(f"Section {self.name!r} has no chapters")

    @property
    def chapter_range(self) -> Tuple[int, int]:
        return chapter_range(self.chapters)


Body = Union[Tuple[Chapter, ...], Tuple[Section, ...]]


@dataclass(frozen=True)
class Work:
    title: str
    author: str
    status: NovelStatus
    source_url: str
    body: Body

    def __post_init__(self) -> None:
        if not self.body:
            raise ValueError("A work needs at least one chapter or section")
        kinds = {type(item) for item in self.body}
        if kinds not in ({Chapter}, {Section}):
            raise ValueError("A work body must be all chapters or all sections")
        orders = [chapter.order for chapter in self.chapters]
        if any(b <= a for a, b in zip(orders, orders[1:])):
            raise ValueError("Chapter order numbers must be strictly increasing")

    @property
    def has_sections(self) -> bool:
        return isinstance(self.body[0], Section)

    @property
    def sections(self) -> Tuple[Section, ...]:
        return self.body if self.has_sections else ()  # type: ignore[return-value]

    @property
    def chapters(self) -> Tuple[Chapter, ...]:
        """Every chapter of the work in order, across sections."""
        if not self.has_sections:
            return self.body  # type: ignore[return-value]
        return tuple(chapter for section in self.body for chapter in section.chapters)  # type: ignore[union-attr]

    @property
    def display_name(self) -> str:
        return f"{self.title} [{self.author}]"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "status": self.status.value,
            "source_url": self.source_url,
        }
        if self.has_sections:
            data["sections"] = [
                {"name": s.name, "chapters": [_chapter_to_dict(c) for c in s.chapters]}
                for s in self.sections
            ]
        else:
            data["chapters"] = [_chapter_to_dict(c) for c in self.chapters]
        return data


def chapter_range(chapters: Tuple[Chapter, ...]) -> Tuple[int, int]:
    orders = [chapter.order for chapter in chapters]
    return min(orders), max(orders)


def _chapter_to_dict(chapter: Chapter) -> Dict[str, Any]:
    return {
        "name": chapter.name,
        "date": chapter.date,
        "order": chapter.order,
        "lines": [line_to_dict(line) for line in chapter.lines],
    }


def line_to_dict(line: ContentLine) -> Optional[List[Dict[str, str]]]:
    """JSON rendering of a line: ``None`` for a blank line, else its spans."""
    if isinstance(line, BlankLine):
        return None
    spans: List[Dict[str, str]] = []
    for span in line.spans:
        if isinstance(span, AnnotatedSpan):
            spans.append({"base": span.base, "gloss": span.gloss})
        else:
            spans.append({"text": span.text})
    return spans


# -- table of contents records ---------------------------------------------


@dataclass
class ChapterInfo:
    """A chapter still to be fetched, and where its result belongs."""

    name: str
    date: str
    order: int
    address: str
    section_index: Optional[int] = None


@dataclass
class SectionMarker:
    name: str


@dataclass
class SectionInfo:
    name: str
    chapters: List[ChapterInfo] = field(default_factory=list)
