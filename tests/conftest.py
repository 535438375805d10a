from __future__ import annotations

from typing import Callable, Dict, List, Optional

import httpx
import pytest

from novelpress.fetcher import PageFetcher


def html_page(body: str) -> str:
    return f"<html><head><meta charset='utf-8'/></head><body>{body}</body></html>"


class FakeSite:
    """Serves fixed pages to a ``PageFetcher`` and records every request."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = dict(pages)
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404)
        return httpx.Response(200, content=page.encode("utf-8"))

    def fetcher(self) -> PageFetcher:
        return PageFetcher(transport=httpx.MockTransport(self.handler), max_retries=1, backoff=0)


@pytest.fixture
def fake_site() -> Callable[[Dict[str, str]], FakeSite]:
    def build(pages: Dict[str, str]) -> FakeSite:
        return FakeSite(pages)

    return build


# -- Kakuyomu pages ----------------------------------------------------------

KAKUYOMU_WORK = "https://kakuyomu.jp/works/1177354054881165840"


def kakuyomu_toc(entries: str, status: Optional[str] = "完結済", title: bool = True) -> str:
    title_html = "<h1 id='workTitle'><a href='/works/1177354054881165840'>慎重勇者</a></h1>" if title else ""
    status_html = (
        f"<div id='workInformationList'><dl><dt>状態</dt><dd>{status}</dd></dl></div>"
        if status is not None
        else ""
    )
    return html_page(
        f"{title_html}"
        "<p id='workAuthor'><span id='workAuthor-activityName'><a href='/users/tuchise'>土日月</a></span></p>"
        f"{status_html}"
        f"<ol class='widget-toc-items'>{entries}</ol>"
    )


def kakuyomu_section(name: str) -> str:
    return f"<li class='widget-toc-chapter'><span>{name}</span></li>"


def kakuyomu_episode(episode_id: int, name: str, date: str = "2017年11月1日") -> str:
    return (
        "<li class='widget-toc-episode'>"
        f"<a href='/works/1177354054881165840/episodes/{episode_id}'>"
        f"<span class='widget-toc-episode-titleLabel'>{name}</span>"
        f"<time class='widget-toc-episode-datePublished'>{date}</time>"
        "</a></li>"
    )


def kakuyomu_episode_url(episode_id: int) -> str:
    return f"{KAKUYOMU_WORK}/episodes/{episode_id}"


def kakuyomu_chapter(name: str, paragraphs: str) -> str:
    return html_page(
        f"<header><p class='widget-episodeTitle'>{name}</p></header>"
        f"<div class='widget-episodeBody'>{paragraphs}</div>"
    )


# -- Narou pages -------------------------------------------------------------

SYOSETU_WORK = "https://ncode.syosetu.com/n9669bk/"
SYOSETU_INFO = "https://ncode.syosetu.com/novelview/infotop/ncode/n9669bk/"


def syosetu_toc(entries: str, info_link: bool = True) -> str:
    info = f"<li><a href='{SYOSETU_INFO}'>小説情報</a></li>" if info_link else "<li><a href='/x'>感想</a></li>"
    return html_page(
        f"<ul id='head_nav'><li><a href='/n9669bk/'>小説TOP</a></li>{info}</ul>"
        "<p class='novel_title'>無職転生</p>"
        "<div class='novel_writername'>作者：<a href='https://mypage.syosetu.com/288399/'>理不尽な孫の手</a></div>"
        f"<div class='index_box'>{entries}</div>"
    )


def syosetu_section(name: str) -> str:
    return f"<div class='chapter_title'>{name}</div>"


def syosetu_episode(number: int, name: str, date: str = "2012/11/22 17:00", edited: Optional[str] = None) -> str:
    edit_html = f"<span title='{edited}'>（<u>改</u>）</span>" if edited else ""
    return (
        "<dl class='novel_sublist2'>"
        f"<dd class='subtitle'><a href='/n9669bk/{number}/'>{name}</a></dd>"
        f"<dt class='long_update'>\n{date}{edit_html}</dt>"
        "</dl>"
    )


def syosetu_episode_url(number: int) -> str:
    return f"https://ncode.syosetu.com/n9669bk/{number}/"


def syosetu_info(marker: Optional[str]) -> str:
    if marker is None:
        return html_page("<div id='contents_main'><h1>無職転生</h1></div>")
    return html_page(f"<div id='contents_main'><span id='{marker}'>状態</span></div>")


def syosetu_chapter(paragraphs: str) -> str:
    return html_page(
        "<p class='novel_subtitle'>プロローグ</p>"
        f"<div id='novel_honbun' class='novel_view'>{paragraphs}</div>"
    )
