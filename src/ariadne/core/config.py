"""
Configuration for Ariadne.
Contains all constants, settings, and global parameters.
"""

import os

# Project Information
PROJECT_NAME = "Ariadne"
PROJECT_VERSION = "1.0.0"
PROJECT_DESCRIPTION = "Music catalog merge engine - resolve and merge releases and tracks from many sources"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Merge Configuration
MERGE_CONFIG = {
    "DEFAULT_POLICY": os.environ.get("ARIADNE_MERGE_POLICY", "fill_missing"),
    "MIN_CONTAINMENT_LENGTH": 2,  # Both keys must be at least this long for substring matching
    # Titles written by importers when the real title was unknown; treated as empty
    "PLACEHOLDER_TITLES": ["(未命名专辑)", "(未命名合集)", "(未命名)"],
    "GENERIC_LINK_LABEL": "link",
    # Platforms shown under a single combined icon
    "PLATFORM_ALIASES": {"facebook": "instagram"},
}

# Key Normalizer Configuration
NORMALIZER_CONFIG = {
    # Trailing words meaning "this file is the lyrics of <title>"
    "LYRICS_SUFFIXES": ["歌词", "歌詞", "lyrics", "lyric", "lrc"],
}

# Collection types accepted at the input boundary
COLLECTION_TYPES = ["album", "collection", "playlist"]
TRACK_TYPES = ["song"]

# Fetch Configuration
FETCH_CONFIG = {
    "MAX_WORKERS": _env_int("ARIADNE_FETCH_WORKERS", 3),
    "MAX_WORKERS_LIMIT": 8,
    "DEADLINE_SECONDS": _env_float("ARIADNE_FETCH_DEADLINE", None),  # None = no deadline
    "TIMEOUT": 30,
}

# NetEase Configuration
NETEASE_CONFIG = {
    "LYRICS_URL": "https://music.163.com/api/song/lyric",
    "USER_AGENT": f"{PROJECT_NAME}/{PROJECT_VERSION} (lyrics-sync)",
    "REFERER": "https://music.163.com/",
    "TIMEOUT": 30,
}

# Run Report Configuration
REPORT_CONFIG = {
    "MAX_SAMPLES": 30,  # Sample diagnostics kept per category
}

# Enrichment Configuration
ENRICHMENT_CONFIG = {
    # Lyric texts containing at least MIN_HITS of these are UI captures, not lyrics
    "NOISE_HINTS": ["AI 作曲", "灵感创作", "模型选择", "优化提示词", "素材列表", "生成歌曲", "0/500"],
    "NOISE_MIN_HITS": 3,
}

# Cross-link Configuration
CROSS_LINK_CONFIG = {
    # Collections are assigned to a source by "<source>-" id prefix or by tag
    "DEFAULT_SOURCE": "netease",
    "DEFAULT_TARGET": "distrokid",
}

# Playlist Attach Configuration
PLAYLIST_CONFIG = {
    "PLATFORM": "youtube",
    "PLAYLIST_LABEL": "YouTube · Playlist",
    "VIDEO_LABEL": "YouTube · Video",
    "EMBED_LABEL": "YouTube",
    "PLAYLIST_URL": "https://www.youtube.com/playlist?list={playlist_id}",
    "EMBED_URL": "https://www.youtube.com/embed/videoseries?list={playlist_id}",
    "COLLECTION_EMBED_HEIGHT": 360,
    "TRACK_EMBED_HEIGHT": 220,
}

# Lyrics Placeholder Configuration
LYRICS_PLACEHOLDER_CONFIG = {
    "PLACEHOLDER": "纯音乐（无歌词）",
    "INSTRUMENTAL_TAGS": ["EMPTY", "HAPPY"],
}

# Logging Configuration
LOGGING_CONFIG = {
    "LEVEL": os.environ.get("ARIADNE_LOG_LEVEL", "INFO").upper(),
    "FORMAT": "%(levelname)s - %(name)s - %(message)s",
}

# API Limits
API_LIMITS = {
    "MAX_RETRIES": _env_int("ARIADNE_MAX_RETRIES", 3),
    "BACKOFF_FACTOR": 1.0,
}

# Error Messages
ERROR_MESSAGES = {
    "MISSING_ID": "Record has no id and no content code (UPC/ISRC) to derive one from.",
    "MISSING_TYPE": "Record has no type.",
    "UNKNOWN_TYPE": "Record type is not a collection or a track.",
    "CATALOG_NOT_OBJECT": "Catalog document is not a JSON object.",
    "NO_RECORDS": "No records found in input JSON.",
}
