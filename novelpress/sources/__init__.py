"""Source adapters and dispatch from a work's address to its adapter."""

from __future__ import annotations

import logging
from typing import List, Optional, Type

from ..errors import SourceNotRecognized
from ..fetcher import PageFetcher
from ..models import Work
from .base import SourceAdapter, TocData
from .kakuyomu import KakuyomuAdapter
from .syosetu import SyosetuAdapter

logger = logging.getLogger(__name__)

ADAPTERS: List[Type[SourceAdapter]] = [KakuyomuAdapter, SyosetuAdapter]


def find_adapter(address: str, *, max_workers: Optional[int] = None) -> SourceAdapter:
    for adapter_cls in ADAPTERS:
        adapter = adapter_cls(max_workers=max_workers)
        if adapter.recognizes(address):
            return adapter
    raise SourceNotRecognized(address)


async def make_work(address: str, fetcher: PageFetcher, *, max_workers: Optional[int] = None) -> Work:
    """Build the ``Work`` published at ``address``."""
    adapter = find_adapter(address, max_workers=max_workers)
    logger.debug("Using %s adapter for %s", adapter.name, address)
    return await adapter.make_work(address, fetcher)


__all__ = [
    "ADAPTERS",
    "KakuyomuAdapter",
    "SourceAdapter",
    "SyosetuAdapter",
    "TocData",
    "find_adapter",
    "make_work",
]
