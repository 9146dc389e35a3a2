from __future__ import annotations

from typing import Iterable, Optional


def normalize_title(text: Optional[str]) -> str:
    if not text or not text.strip():
        return ""
    text = text.strip().replace("\r", " ").replace("\n", " ")
    while "  " in text:
        text = text.replace("  ", " ")
    return text


def normalize_key(drawing_number: Optional[str]) -> str:
    return (drawing_number or "").strip()


def join_fragments(fragments: Iterable[Optional[str]]) -> str:
    parts = [part for part in fragments if part and part.strip()]
    return normalize_title(" ".join(parts))


def fold_char(ch: str) -> str:
    # characters whose upper case expands (e.g. "ß" -> "SS") compare as themselves
    upper = ch.upper()
    return upper if len(upper) == 1 else ch


def fold_case(text: str) -> str:
    return "".join(fold_char(ch) for ch in text)


def titles_equal(a: str, b: str) -> bool:
    return fold_case(a) == fold_case(b)
