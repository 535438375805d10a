"""Exception types raised while turning novel pages into a ``Work``.

Every failure surfaced by the extraction pipeline derives from
``NovelError`` so that callers (the CLI and the web service) can report
it without knowing which stage produced it. Configuration defects in an
adapter (``SelectorCompilationFailed``) are raised when the adapter is
constructed; everything else is raised while fetching or validating a
particular page.
"""

from __future__ import annotations

from typing import Optional


class NovelError(Exception):
    """Base class for all extraction failures."""


class SourceNotRecognized(NovelError):
    def __init__(self, address: str) -> None:
        super().__init__(f"No source adapter recognises {address!r}")
        self.address = address


class RequiredFieldMissing(NovelError):
    """A page did not provide a field the document model needs.

    ``field`` is one of ``title``, ``author``, ``status``, ``info-link``,
    ``chapters``, ``section-chapters``, ``chapter-name``, ``chapter-date``
    or ``chapter-link``.
    """

    def __init__(self, field: str, address: Optional[str] = None) -> None:
        message = f"Required field {field!r} is missing"
        if address:
            message += f" ({address})"
        super().__init__(message)
        self.field = field
        self.address = address


class MalformedAnnotation(NovelError):
    def __init__(self, chapter: str, base: Optional[str], gloss: Optional[str]) -> None:
        super().__init__(
            f"Unbalanced ruby annotation in {chapter}: base={base!r} gloss={gloss!r}"
        )
        self.chapter = chapter
        self.base = base
        self.gloss = gloss


class EmptyContent(NovelError):
    def __init__(self, chapter: str) -> None:
        super().__init__(f"No content lines found in {chapter}")
        self.chapter = chapter


class SelectorCompilationFailed(NovelError, ValueError):
    """A CSS selector could not be compiled. Raised at adapter construction."""

    def __init__(self, selector: str) -> None:
        super().__init__(f"Invalid CSS selector: {selector!r}")
        self.selector = selector


class TransportFailure(NovelError):
    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {address}: {reason}")
        self.address = address
        self.reason = reason


class ParseFailure(NovelError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Failed to parse the page at {address}")
        self.address = address

