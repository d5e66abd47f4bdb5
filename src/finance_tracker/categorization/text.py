"""Text normalization shared by every categorization step.

Descriptions are typed by users (or pulled out of bank notification emails),
so they arrive with accents, punctuation and mixed case. Everything that
compares text goes through ``normalize_text`` first.
"""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Return a canonical, accent-free, lowercase form of ``text``.

    Characters outside ``[a-z0-9]`` become spaces and whitespace runs collapse
    to a single space. Never raises; ``None`` and ``""`` yield ``""``.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = _NON_ALNUM.sub(" ", stripped)
    return _WHITESPACE.sub(" ", cleaned).strip()


def tokenize(normalized: str) -> list[str]:
    """Split an already-normalized string into tokens.

    An empty string yields a single empty token, so callers can divide by the
    token count without guarding against zero.
    """
    return normalized.split(" ")
