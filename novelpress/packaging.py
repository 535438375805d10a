"""Packaging a ``Work`` into EPUB and plain text files.

``package_epubs`` writes one EPUB per section, or a single EPUB when the
work has no sections. Each book opens with a title page (title, author,
serialization status and the source address), followed by a section
cover when applicable and one XHTML page per chapter. Chapter pages
carry the chapter name, date and number as headings; the content lines
never repeat the name. Text is laid out vertically, right to left.

The archive is assembled with ``zipfile``: ``mimetype`` must be the first
entry and stored uncompressed, then ``META-INF/container.xml``, the
package document (``content.opf``), the table of contents (``toc.ncx``),
the stylesheet and the XHTML pages.
"""

from __future__ import annotations

import html
import logging
import uuid
import zipfile
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .models import AnnotatedSpan, BlankLine, Chapter, ContentLine, Section, Work, chapter_range
from .utils import sanitize_filename, to_kanji_digits

logger = logging.getLogger(__name__)

NOVEL_CSS_NAME = "novel.css"
NOVEL_CSS = """\
body {
    font-family: serif-ja, serif;
}
h1, h2, h3, h4, div, p, ol, ul, li {
    margin: 0;
    padding: 0;
}
#novel_chapter {
    writing-mode: vertical-rl;
    -webkit-writing-mode: vertical-rl;
    -epub-writing-mode: vertical-rl;
}
#novel_chapter_contents {
    line-height: 1.8;
}
"""

XHTML_TEMPLATE = (
    "<?xml version='1.0' encoding='utf-8'?>\n"
    "<!DOCTYPE html>\n"
    "<html xmlns='http://www.w3.org/1999/xhtml' xmlns:epub='http://www.idpf.org/2007/ops' lang='ja' xml:lang='ja'>\n"
    "<head>\n"
    "<title>{title}</title>\n"
    "<meta charset='UTF-8'/>\n"
    "<link rel='stylesheet' href='{css}' type='text/css'/>\n"
    "</head>\n"
    "{body}\n"
    "</html>\n"
)


def _xhtml(head_title: str, body: str) -> str:
    return XHTML_TEMPLATE.format(title=html.escape(head_title), css=NOVEL_CSS_NAME, body=body)


def render_line(line: ContentLine) -> str:
    if isinstance(line, BlankLine):
        return "<p/>"
    parts: List[str] = []
    for span in line.spans:
        if isinstance(span, AnnotatedSpan):
            parts.append(
                f"<ruby>{html.escape(span.base)}<rp>（</rp>"
                f"<rt>{html.escape(span.gloss)}</rt><rp>）</rp></ruby>"
            )
        else:
            parts.append(html.escape(span.text))
    return f"<p>{''.join(parts)}</p>"


def render_chapter(chapter: Chapter) -> str:
    name = html.escape(chapter.name)
    body = (
        "<body id='novel_chapter'>\n"
        f"<h1>{name}</h1>\n"
        f"<h2>{html.escape(chapter.date)}</h2>\n"
        f"<h3>{to_kanji_digits(str(chapter.order))}部分目</h3>\n"
        "<div id='novel_chapter_contents'>\n"
        + "\n".join(render_line(line) for line in chapter.lines)
        + "\n</div>\n</body>"
    )
    return _xhtml(chapter.name, body)


def render_title_page(work: Work) -> str:
    url = html.escape(work.source_url)
    body = (
        "<body>\n"
        f"<h1>{html.escape(work.title)}</h1>\n"
        f"<h2>{html.escape(work.author)}</h2>\n"
        f"<h3>投稿版　{work.status.status_text}</h3>\n"
        # The address is shown as text too, in case the link doesn't work.
        f"<a href='{url}'>{url}</a>\n"
        "</body>"
    )
    return _xhtml("表紙", body)


def render_section_cover(section: Section, section_num: int) -> str:
    body = (
        "<body>\n"
        f"<h1>第{section_num}章</h1>\n"
        f"<h1>{html.escape(section.name)}</h1>\n"
        "</body>"
    )
    return _xhtml("章の表紙", body)


def section_book_name(work: Work, section: Section, section_index: int) -> str:
    total = len(work.sections)
    section_num = str(section_index + 1).zfill(len(str(total)))
    low, high = section.chapter_range
    stamp = work.status.completion_stamp if section_index == total - 1 else ""
    return (
        f"{work.title} 第{section_num}章 「{section.name}」 [{work.author}] "
        f"(投稿版) ({low}部分-{high}部分){stamp}"
    )


def chapters_book_name(work: Work) -> str:
    low, high = chapter_range(work.chapters)
    return f"{work.title} [{work.author}] (投稿版) ({low}部分-{high}部分){work.status.completion_stamp}"


def _epub_template(
    work: Work, book_title: str, pages: Sequence[Tuple[str, str, str]]
) -> Dict[str, str]:
    """Return the files of one EPUB archive, keyed by their path inside it.

    ``pages`` holds ``(file name, navigation label, xhtml)`` in reading
    order. The caller writes ``mimetype`` itself.
    """
    uid = f"urn:uuid:{uuid.uuid5(uuid.NAMESPACE_URL, work.source_url + '#' + book_title)}"
    title = html.escape(book_title)
    author = html.escape(work.author)

    files: Dict[str, str] = {}
    manifest_items: List[str] = [
        f"<item id='css' href='Text/{NOVEL_CSS_NAME}' media-type='text/css'/>"
    ]
    spine_items: List[str] = []
    ncx_navpoints: List[str] = []
    for idx, (file_name, label, xhtml) in enumerate(pages, start=1):
        path = f"Text/{file_name}"
        files[path] = xhtml
        manifest_items.append(f"<item id='page{idx}' href='{path}' media-type='application/xhtml+xml'/>")
        spine_items.append(f"<itemref idref='page{idx}' />")
        ncx_navpoints.append(
            f"<navPoint id='navPoint-{idx}' playOrder='{idx}'>"
            f"<navLabel><text>{html.escape(label)}</text></navLabel>"
            f"<content src='{path}'/>"
            f"</navPoint>"
        )
    files[f"Text/{NOVEL_CSS_NAME}"] = NOVEL_CSS

    files["content.opf"] = (
        "<?xml version='1.0' encoding='utf-8'?>\n"
        "<package xmlns='http://www.idpf.org/2007/opf' unique-identifier='BookId' version='2.0'>\n"
        "  <metadata xmlns:dc='http://purl.org/dc/elements/1.1/' xmlns:opf='http://www.idpf.org/2007/opf'>\n"
        f"    <dc:title>{title}</dc:title>\n"
        f"    <dc:creator opf:role='aut'>{author}</dc:creator>\n"
        f"    <dc:source>{html.escape(work.source_url)}</dc:source>\n"
        f"    <dc:identifier id='BookId'>{uid}</dc:identifier>\n"
        "    <dc:language>ja</dc:language>\n"
        "  </metadata>\n"
        "  <manifest>\n"
        "    <item id='ncx' href='toc.ncx' media-type='application/x-dtbncx+xml'/>\n"
        "    " + "\n    ".join(manifest_items) + "\n"
        "  </manifest>\n"
        "  <spine toc='ncx' page-progression-direction='rtl'>\n"
        "    " + "\n    ".join(spine_items) + "\n"
        "  </spine>\n"
        "</package>"
    )
    files["toc.ncx"] = (
        "<?xml version='1.0' encoding='utf-8'?>\n"
        "<ncx xmlns='http://www.daisy.org/z3986/2005/ncx/' version='2005-1'>\n"
        "  <head>\n"
        f"    <meta name='dtb:uid' content='{uid}'/>\n"
        "    <meta name='dtb:depth' content='1'/>\n"
        "    <meta name='dtb:totalPageCount' content='0'/>\n"
        "    <meta name='dtb:maxPageNumber' content='0'/>\n"
        "  </head>\n"
        f"  <docTitle><text>{title}</text></docTitle>\n"
        "  <navMap>\n"
        "    " + "\n    ".join(ncx_navpoints) + "\n"
        "  </navMap>\n"
        "</ncx>"
    )
    files["META-INF/container.xml"] = (
        "<?xml version='1.0' encoding='utf-8'?>\n"
        "<container version='1.0' xmlns='urn:oasis:names:tc:opendocument:xmlns:container'>\n"
        "  <rootfiles>\n"
        "    <rootfile full-path='content.opf' media-type='application/oebps-package+xml'/>\n"
        "  </rootfiles>\n"
        "</container>"
    )
    return files


def _chapter_pages(chapters: Sequence[Chapter]) -> List[Tuple[str, str, str]]:
    return [(f"chapter-{c.order}.xhtml", c.name, render_chapter(c)) for c in chapters]


def build_books(work: Work) -> List[Tuple[str, Dict[str, str]]]:
    """Return ``(book name, archive files)`` for every EPUB of ``work``."""
    title_page = ("title-cover.xhtml", "表紙", render_title_page(work))
    if not work.has_sections:
        name = chapters_book_name(work)
        return [(name, _epub_template(work, name, [title_page] + _chapter_pages(work.chapters)))]

    books = []
    for index, section in enumerate(work.sections):
        name = section_book_name(work, section, index)
        pages = [title_page, ("section-cover.xhtml", "章の表紙", render_section_cover(section, index + 1))]
        pages.extend(_chapter_pages(section.chapters))
        books.append((name, _epub_template(work, name, pages)))
    return books


def package_epubs(work: Work, dest_dir: str) -> List[str]:
    """Write the EPUBs of ``work`` into ``dest_dir`` and return their paths."""
    dest_dir_path = Path(dest_dir)
    dest_dir_path.mkdir(parents=True, exist_ok=True)
    paths = []
    for book_name, files in build_books(work):
        epub_path = dest_dir_path / f"{sanitize_filename(book_name)}.epub"
        with zipfile.ZipFile(epub_path, "w", zipfile.ZIP_DEFLATED) as zf:
            # mimetype must be the first entry and must not be compressed.
            zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
            for internal_name, content in files.items():
                zf.writestr(internal_name, content)
        logger.info("Wrote %s", epub_path)
        paths.append(str(epub_path))
    return paths


def line_text(line: ContentLine) -> str:
    if isinstance(line, BlankLine):
        return ""
    return "".join(
        f"{span.base}（{span.gloss}）" if isinstance(span, AnnotatedSpan) else span.text
        for span in line.spans
    )


def package_txt(work: Work, dest_dir: str) -> str:
    """Write the whole work as one UTF-8 text file and return its path.

    Each chapter begins with its name on its own line followed by a blank
    line and then the content, one line per paragraph.
    """
    path = Path(dest_dir) / f"{sanitize_filename(chapters_book_name(work))}.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"{work.title}\n{work.author}\n{work.source_url}\n\n\n")
        groups = work.sections if work.has_sections else (None,)
        for section in groups:
            if section is not None:
                f.write(f"【{section.name}】\n\n\n")
            for chapter in (section.chapters if section is not None else work.chapters):
                f.write(chapter.name + "\n\n")
                f.write("\n".join(line_text(line) for line in chapter.lines))
                f.write("\n\n\n")
    return str(path)
