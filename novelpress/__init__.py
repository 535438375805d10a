"""Serialized web novel extraction and packaging.

This package turns the table-of-contents and chapter pages of a
serialized novel into a validated ``Work`` and packages it as EPUB or
plain text files. The modules are:

* ``traverser.py`` – Compiled CSS selector matching and the single-pass
  hook traversal every page is read with.

* ``sources/`` – One adapter per novel site (Kakuyomu and Narou). An
  adapter knows where the title, author, status, sections and chapters
  are on its table of contents and where the paragraphs are on its
  chapter pages.

* ``content.py`` – Extraction of chapter paragraphs, including ruby
  (base text with a reading above it).

* ``orchestrator.py`` – Concurrent or sequential chapter fetching,
  chosen per site, with results always in table-of-contents order.

* ``fetcher.py`` – ``httpx`` based page fetching with retries, and
  BeautifulSoup parsing.

* ``packaging.py`` – EPUB and plain text output.

* ``main.py`` – The FastAPI service; ``cli.py`` – the command line tool.
"""

from .errors import (
    EmptyContent,
    MalformedAnnotation,
    NovelError,
    ParseFailure,
    RequiredFieldMissing,
    SelectorCompilationFailed,
    SourceNotRecognized,
    TransportFailure,
)
from .fetcher import PageFetcher
from .models import (
    AnnotatedSpan,
    BlankLine,
    Chapter,
    NovelStatus,
    PlainSpan,
    Section,
    TextLine,
    Work,
)
from .sources import find_adapter, make_work

__all__ = [
    "AnnotatedSpan",
    "BlankLine",
    "Chapter",
    "EmptyContent",
    "MalformedAnnotation",
    "NovelError",
    "NovelStatus",
    "PageFetcher",
    "ParseFailure",
    "PlainSpan",
    "RequiredFieldMissing",
    "Section",
    "SelectorCompilationFailed",
    "SourceNotRecognized",
    "TextLine",
    "TransportFailure",
    "Work",
    "find_adapter",
    "make_work",
]
