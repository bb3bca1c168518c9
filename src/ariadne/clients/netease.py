"""
NetEase Cloud Music Client Module
Fetches song lyrics from the public NetEase lyrics API.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse, parse_qs

import requests

from ..core.config import NETEASE_CONFIG
from ..core.exceptions import APIError, NetworkError, SourceFetchError
from ..models.entities import Track
from ..utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

NETEASE_PLATFORM = "netease"
NO_LYRICS_REASONS = ("nolyric", "uncollected", "empty")

_SONG_ID_FROM_ID = re.compile(r"^netease-song-(\d+)$")
_ID_PARAM = re.compile(r"[?&]id=(\d+)")
_LRC_META = re.compile(r"^\s*\[(?:ar|ti|al|by|offset|length):", re.IGNORECASE)
_LRC_TIMESTAMPS = re.compile(r"^\s*(?:\[\d{1,2}:\d{2}(?:\.\d{1,3})?\])+\s*")
_BLANK_RUNS = re.compile(r"\n{3,}")


@dataclass
class LyricsResult:
    """Outcome of one lyrics lookup."""
    song_id: str
    lyrics: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return bool(self.lyrics)

    @property
    def no_lyrics(self) -> bool:
        """The song exists but has no lyrics; not a failure."""
        return self.reason in NO_LYRICS_REASONS


def parse_song_id_from_url(url: Optional[str]) -> str:
    """Extract the numeric `id=` parameter from a NetEase song or embed URL."""
    raw = (url or "").strip()
    if not raw:
        return ""
    # Fragment routes look like https://music.163.com/#/song?id=1
    query = parse_qs(urlparse(raw.replace("#/", "")).query)
    for value in query.get("id", []):
        if value.isdigit():
            return value
    match = _ID_PARAM.search(raw)
    return match.group(1) if match else ""


def song_id_for(track: Track) -> str:
    """
    Find the NetEase song id of a track.

    Looks at the `netease-song-<n>` id pattern, then refs.netease.songId,
    then NetEase links, then NetEase embeds.
    """
    match = _SONG_ID_FROM_ID.match(track.id or "")
    if match:
        return match.group(1)

    ref = (track.refs.get(NETEASE_PLATFORM, {}).get("songId") or "").strip()
    if ref.isdigit():
        return ref

    for link in track.links:
        if link.platform.strip().lower() == NETEASE_PLATFORM:
            song_id = parse_song_id_from_url(link.url)
            if song_id:
                return song_id

    for embed in track.embeds:
        if embed.platform.strip().lower() == NETEASE_PLATFORM:
            song_id = parse_song_id_from_url(embed.url)
            if song_id:
                return song_id
    return ""


def strip_lrc_to_plain_text(lrc: Optional[str]) -> str:
    """Drop LRC metadata tags and timestamps, keeping the lyric lines."""
    text = lrc or ""
    if not text.strip():
        return ""
    lines = []
    for raw_line in text.splitlines():
        line = raw_line.lstrip("\ufeff")
        if _LRC_META.match(line):
            continue
        lines.append(_LRC_TIMESTAMPS.sub("", line, count=1).rstrip())
    return _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()


class NetEaseClient:
    """NetEase lyrics API client."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.lyrics_url = NETEASE_CONFIG["LYRICS_URL"]
        self.timeout = NETEASE_CONFIG["TIMEOUT"]

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': NETEASE_CONFIG["USER_AGENT"],
            'Referer': NETEASE_CONFIG["REFERER"],
            'Accept': 'application/json'
        })

    @retry_with_backoff(exceptions=(APIError, NetworkError))
    def _get_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.get(self.lyrics_url, params=params, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NetworkError(f"NetEase request failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise APIError(f"HTTP {response.status_code} from NetEase")
        if response.status_code != 200:
            raise SourceFetchError(f"HTTP {response.status_code} from NetEase")

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"NetEase returned invalid JSON: {e}") from e

    def fetch_lyrics(self, song_id: str) -> LyricsResult:
        """
        Fetch the plain-text lyrics of one song.

        Args:
            song_id: Numeric NetEase song id

        Returns:
            LyricsResult; `reason` is set when there are no lyrics

        Raises:
            SourceFetchError: If the API could not be reached after retries
        """
        params = {"os": "pc", "id": song_id, "lv": -1, "kv": -1, "tv": -1}
        data = self._get_json(params)

        code = data.get("code")
        if code != 200:
            return LyricsResult(song_id=song_id, reason=f"code={code}")
        if data.get("nolyric"):
            return LyricsResult(song_id=song_id, reason="nolyric")
        if data.get("uncollected"):
            return LyricsResult(song_id=song_id, reason="uncollected")

        lyrics = strip_lrc_to_plain_text((data.get("lrc") or {}).get("lyric"))
        if not lyrics:
            return LyricsResult(song_id=song_id, reason="empty")
        logger.debug(f"Fetched {len(lyrics)} characters of lyrics for NetEase song {song_id}")
        return LyricsResult(song_id=song_id, lyrics=lyrics)
