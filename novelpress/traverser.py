"""Selector-driven, single-pass traversal of a parsed page.

An adapter describes what it wants from a page as a list of ``Hook``s:
a CSS selector, an optional selector that vetoes the match, and a
handler that records something on an accumulator object. ``traverse``
then walks every element of the page once, in document order, and calls
each matching hook in the order the hooks were given.

Selectors are compiled with ``soupsieve`` (the engine behind
BeautifulSoup's ``select``) when the hook is created, so a typo in a
selector is reported before anything is fetched.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Iterable, Optional, TypeVar

import soupsieve
from bs4 import Tag

from .errors import SelectorCompilationFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SelectorMatcher:
    """A compiled CSS selector answering whether a single element matches."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        try:
            self._compiled = soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorCompilationFailed(selector) from exc

    def matches(self, element: Tag) -> bool:
        return self._compiled.match(element)

    def select_first(self, root: Tag) -> Optional[Tag]:
        return self._compiled.select_one(root)

    def __repr__(self) -> str:
        return f"SelectorMatcher({self.selector!r})"


class Hook(Generic[T]):
    """``handler(accumulator, element)`` fires for elements matching ``selector``
    and, when given, not matching ``anti_selector``."""

    def __init__(
        self,
        selector: str,
        handler: Callable[[T, Tag], None],
        anti_selector: Optional[str] = None,
    ) -> None:
        self.matcher = SelectorMatcher(selector)
        self.anti_matcher = SelectorMatcher(anti_selector) if anti_selector else None
        self.handler = handler

    def fires_on(self, element: Tag) -> bool:
        if self.anti_matcher is not None and self.anti_matcher.matches(element):
            return False
        return self.matcher.matches(element)


def traverse(root: Tag, hooks: Iterable[Hook[T]], accumulator: T) -> T:
    """Walk the descendants of ``root`` once and return ``accumulator``.

    Handlers may mutate the accumulator but must leave the tree alone.
    Anything a handler raises propagates to the caller.
    """
    hooks = list(hooks)
    for element in root.descendants:
        if not isinstance(element, Tag):
            continue
        for hook in hooks:
            if hook.fires_on(element):
                logger.debug("%s matched <%s>", hook.matcher.selector, element.name)
                hook.handler(accumulator, element)
    return accumulator


def element_text(element: Tag) -> str:
    """Text content of ``element`` and its descendants, unmodified."""
    return element.get_text()
