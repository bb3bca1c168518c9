"""
String utility functions for normalization and comparison.
"""

import re
import unicodedata
from typing import Any, Optional

from ..core.config import NORMALIZER_CONFIG, MERGE_CONFIG

# Leading "track number + separator", e.g. "01 - ", "3.", "12 "
_TRACK_NUMBER_PREFIX = re.compile(r"^\s*\d+\s*[-._\s]+\s*")
_WHITESPACE = re.compile(r"\s+")
_BRACKETS = "()[]{}<>（）［］｛｝＜＞【】《》〈〉「」『』〔〕"
_BRACKET_TABLE = str.maketrans({ch: " " for ch in _BRACKETS})


def _lyrics_suffix_pattern() -> re.Pattern:
    words = "|".join(re.escape(w) for w in NORMALIZER_CONFIG["LYRICS_SUFFIXES"])
    return re.compile(rf"(?:[_\-\s.]*(?:{words}))\s*$")


_LYRICS_SUFFIX = _lyrics_suffix_pattern()


def to_text(value: Any) -> str:
    """Coerce any value to a trimmed string; None becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_code(value: Any) -> str:
    """Normalize a content code (UPC, ISRC): trimmed, upper-case, no inner spaces."""
    return _WHITESPACE.sub("", to_text(value)).upper()


def _strip_symbols(text: str) -> str:
    chars = []
    for ch in text:
        category = unicodedata.category(ch)
        if category[0] in ("P", "S"):
            chars.append(" ")
        else:
            chars.append(ch)
    return "".join(chars)


def normalize_key(text: Optional[str]) -> str:
    """
    Turn a free-text title into a comparable key.

    Steps: canonical composition, lowercase, whitespace collapse, leading
    track-number removal, trailing lyrics-suffix removal, brackets to
    spaces, punctuation and symbols removed, whitespace collapse and trim.
    Never raises; None or empty input gives the empty key.

    Args:
        text: Title to normalize

    Returns:
        Normalized key
    """
    if text is None:
        return ""
    raw = text if isinstance(text, str) else str(text)
    if not raw:
        return ""

    key = unicodedata.normalize("NFC", raw)
    key = key.lower()
    key = _WHITESPACE.sub(" ", key).strip()
    key = _TRACK_NUMBER_PREFIX.sub("", key, count=1)
    key = _LYRICS_SUFFIX.sub("", key, count=1)
    key = key.translate(_BRACKET_TABLE)
    key = _strip_symbols(key)
    return _WHITESPACE.sub(" ", key).strip()


def same_key(a: Optional[str], b: Optional[str]) -> bool:
    """Two titles are the same key iff both normalize to the same non-empty key."""
    key_a = normalize_key(a)
    return bool(key_a) and key_a == normalize_key(b)


def platform_key(platform: Optional[str]) -> str:
    """
    Normalize a platform name for grouping links and embeds.

    Lowercases, drops all whitespace and folds aliased platforms
    (facebook is presented together with instagram).
    """
    key = _WHITESPACE.sub("", to_text(platform).lower())
    return MERGE_CONFIG["PLATFORM_ALIASES"].get(key, key)


def is_placeholder_title(title: Optional[str]) -> bool:
    """Check whether a title is one of the 'unknown title' placeholders."""
    return to_text(title) in MERGE_CONFIG["PLACEHOLDER_TITLES"]


def title_key(title: Optional[str]) -> str:
    """Normalized key of a title used for matching; placeholders give the empty key."""
    if is_placeholder_title(title):
        return ""
    return normalize_key(title)
