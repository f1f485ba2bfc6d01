"""Text cleaning for search terms, identity fields and exported cells."""

from __future__ import annotations

import re

import pandas as pd

_WHITESPACE = re.compile(r"\s+")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_NAMED_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _missing(raw: object) -> bool:
    return raw is None or (isinstance(raw, float) and pd.isna(raw))


def clean_text(raw: str | None) -> str | None:
    """Collapse multiple whitespace characters into single spaces."""
    if _missing(raw):
        return None
    return _WHITESPACE.sub(" ", str(raw)).strip()


def normalize_query(raw: str | None) -> str:
    """
    Normalise a free-text search term for case-insensitive substring matching.

    - ``"  Robe   GREY "`` → ``"robe grey"``
    - ``None``            → ``""``  (matches everything)
    """
    cleaned = clean_text(raw)
    return cleaned.lower() if cleaned else ""


def matches(term: str, fields: tuple[str | None, ...]) -> bool:
    """True when normalised *term* is a substring of any identity field."""
    if not term:
        return True
    return any(term in normalize_query(f) for f in fields if f)


def escape_control_chars(raw: str | None) -> str:
    r"""
    Replace ASCII control characters with visible escapes so a text cell can
    never break a row: newline → ``\n``, tab → ``\t``, others → ``\xNN``.
    """
    if _missing(raw):
        return ""
    return _CONTROL.sub(lambda m: _NAMED_ESCAPES.get(m.group(0), f"\\x{ord(m.group(0)):02x}"), str(raw))
