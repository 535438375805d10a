"""Small text helpers shared by the adapters and the packaging code."""

from __future__ import annotations

KANJI_DIGITS = str.maketrans("0123456789", "〇一二三四五六七八九")

# Characters that are not allowed (or are awkward) in file names on common
# file systems, mapped to their full-width forms.
FILENAME_REPLACEMENTS = str.maketrans({
    "/": "／",
    "\\": "＼",
    ":": "：",
    "*": "＊",
    "?": "？",
    '"': "”",
    "<": "＜",
    ">": "＞",
    "|": "｜",
})


def to_kanji_digits(text: str) -> str:
    """Replace ASCII digits with kanji numerals, leaving other characters."""
    return text.translate(KANJI_DIGITS)


def sanitize_filename(name: str) -> str:
    cleaned = name.translate(FILENAME_REPLACEMENTS)
    cleaned = "".join(ch for ch in cleaned if ch >= " ")
    return cleaned.strip().rstrip(".") or "untitled"
