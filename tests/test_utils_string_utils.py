"""
Tests for string utility functions.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.utils.string_utils import (
    to_text,
    normalize_code,
    normalize_key,
    same_key,
    platform_key,
    is_placeholder_title,
    title_key,
)


class TestNormalizeKey:
    """Tests for normalize_key function."""

    def test_normalize_key_basic(self):
        """Test lowercase and trim."""
        assert normalize_key("  Hello World ") == "hello world"

    def test_normalize_key_collapses_whitespace(self):
        """Test that tabs, newlines and ideographic spaces collapse to one space."""
        assert normalize_key("Hello\t\n  World　Again") == "hello world again"

    @pytest.mark.parametrize("title", ["01 - Hello", "1. Hello", "12 Hello", "03_Hello", "7-Hello"])
    def test_normalize_key_strips_track_number(self, title):
        """Test that a leading track number and separator are removed."""
        assert normalize_key(title) == "hello"

    def test_normalize_key_keeps_number_only_titles(self):
        """Test that a bare number without separator is kept."""
        assert normalize_key("1999") == "1999"

    @pytest.mark.parametrize("title", ["Hello 歌词", "Hello_lyrics", "Hello - Lyric", "Hello.lrc", "Hello LRC"])
    def test_normalize_key_strips_lyrics_suffix(self, title):
        """Test that trailing 'lyrics' markers are removed."""
        assert normalize_key(title) == "hello"

    def test_normalize_key_brackets(self):
        """Test that ASCII and fullwidth brackets become spaces."""
        assert normalize_key("Hello (Live)") == "hello live"
        assert normalize_key("你好（现场版）") == "你好 现场版"
        assert normalize_key("【Demo】Song") == "demo song"

    def test_normalize_key_punctuation(self):
        """Test that punctuation and symbols are stripped."""
        assert normalize_key("Hello, World!") == "hello world"
        assert normalize_key("Rock & Roll") == "rock roll"
        assert normalize_key("你好，世界。") == "你好 世界"

    def test_normalize_key_unicode_composition(self):
        """Test that composed and decomposed forms give the same key."""
        assert normalize_key("Cafe\u0301") == normalize_key("Caf\u00e9")

    def test_normalize_key_none_and_empty(self):
        """Test that None and empty input give the empty key."""
        assert normalize_key(None) == ""
        assert normalize_key("") == ""
        assert normalize_key("   ") == ""
        assert normalize_key("!!!") == ""

    def test_normalize_key_non_string(self):
        """Test that non-string input does not raise."""
        assert normalize_key(42) == "42"

    def test_normalize_key_deterministic(self):
        """Test that normalizing a key again changes nothing."""
        key = normalize_key("02. Song A (Remix Edit) 歌词")
        assert normalize_key(key) == key


class TestSameKey:
    """Tests for same_key function."""

    def test_same_key_matches_variants(self):
        """Test that spelling variants share a key."""
        assert same_key("01 - Song A", "song a")
        assert same_key("Song A（Live）", "Song A (live)")

    def test_same_key_empty_never_matches(self):
        """Test that the empty key matches nothing, not even itself."""
        assert not same_key("", "")
        assert not same_key(None, "")
        assert not same_key("!!", "??")

    def test_same_key_different(self):
        """Test that different titles do not match."""
        assert not same_key("Song A", "Song B")


class TestCodesAndPlatforms:
    """Tests for content codes and platform keys."""

    def test_to_text(self):
        """Test coercion to trimmed text."""
        assert to_text(None) == ""
        assert to_text("  x ") == "x"
        assert to_text(5) == "5"

    def test_normalize_code(self):
        """Test that codes are trimmed, upper-cased and unspaced."""
        assert normalize_code(" usxyz1234567 ") == "USXYZ1234567"
        assert normalize_code("0602 4567") == "06024567"
        assert normalize_code(None) == ""

    def test_platform_key(self):
        """Test platform key normalization."""
        assert platform_key(" Apple Music ") == "applemusic"
        assert platform_key("Spotify") == "spotify"
        assert platform_key(None) == ""

    def test_platform_key_folds_facebook(self):
        """Test that facebook is grouped with instagram."""
        assert platform_key("Facebook") == "instagram"

    def test_is_placeholder_title(self):
        """Test placeholder title detection."""
        assert is_placeholder_title("(未命名专辑)")
        assert is_placeholder_title(" (未命名专辑) ")
        assert not is_placeholder_title("Spring")
        assert not is_placeholder_title(None)

    def test_title_key_drops_placeholders(self):
        """Test that placeholder titles have no matching key."""
        assert title_key("(未命名)") == ""
        assert title_key("01. Intro") == "intro"
        assert title_key(None) == ""
