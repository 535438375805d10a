"""Chapter body extraction.

A chapter page is reduced to one ``ContentLine`` per paragraph element.
Paragraph children are read left to right: text nodes become plain spans
exactly as they appear in the page, and ``<ruby>`` groups become
base/gloss pairs. Everything else in the page (headers, navigation, the
chapter title) is ignored, which keeps the chapter name out of its own
content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .errors import EmptyContent, MalformedAnnotation
from .models import AnnotatedSpan, BlankLine, Content, ContentLine, PlainSpan, TextLine
from .traverser import Hook, SelectorMatcher, traverse

logger = logging.getLogger(__name__)

RUBY_TAG = "ruby"
BASE_TAG = "rb"
GLOSS_TAG = "rt"


@dataclass
class _ContentData:
    chapter: str
    blank: Optional[SelectorMatcher]
    lines: List[ContentLine] = field(default_factory=list)

    def add_paragraph(self, element: Tag) -> None:
        if self.blank is not None and self.blank.matches(element):
            self.lines.append(BlankLine())
            return
        spans = paragraph_spans(element, self.chapter)
        self.lines.append(TextLine(tuple(spans)) if spans else BlankLine())


class ContentLayout:
    """Where the paragraphs of a chapter body live on one source's pages."""

    def __init__(self, paragraph_selector: str, blank_selector: Optional[str] = None) -> None:
        self.blank = SelectorMatcher(blank_selector) if blank_selector else None
        self._hooks = [Hook(paragraph_selector, _ContentData.add_paragraph)]

    def extract(self, root: BeautifulSoup, chapter: str) -> List[ContentLine]:
        """Return the content lines of a parsed chapter page.

        ``chapter`` only labels errors. Raises ``EmptyContent`` when the
        page has no paragraphs and ``MalformedAnnotation`` for a ruby
        group with a base but no gloss (or the other way round).
        """
        data = traverse(root, self._hooks, _ContentData(chapter=chapter, blank=self.blank))
        if not data.lines:
            raise EmptyContent(chapter)
        return data.lines


def paragraph_spans(paragraph: Tag, chapter: str) -> List[Content]:
    spans: List[Content] = []
    for child in paragraph.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            spans.append(PlainSpan(str(child)))
        elif isinstance(child, Tag):
            if child.name == RUBY_TAG:
                spans.extend(ruby_spans(child, chapter))
            elif child.name != "br":
                # Inline wrappers such as <em> may hold ruby of their own.
                spans.extend(paragraph_spans(child, chapter))
    return spans


def ruby_spans(ruby: Tag, chapter: str) -> List[AnnotatedSpan]:
    """Pair up base and gloss text inside one ``<ruby>`` element.

    A group may hold several pairs (``<ruby>a<rt>x</rt>b<rt>y</rt></ruby>``).
    """
    spans: List[AnnotatedSpan] = []
    base: Optional[str] = None
    gloss: Optional[str] = None
    for child in ruby.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            text = str(child)
            if text.strip():
                base = text
        elif isinstance(child, Tag):
            if child.name == BASE_TAG:
                base = child.get_text()
            elif child.name == GLOSS_TAG:
                gloss = child.get_text()
        if base is not None and gloss is not None:
            spans.append(AnnotatedSpan(base=base, gloss=gloss))
            base = gloss = None
    if base is not None or gloss is not None:
        raise MalformedAnnotation(chapter, base, gloss)
    return spans
