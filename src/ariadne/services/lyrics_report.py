"""
Missing-lyrics report: which tracks still have no lyrics, grouped by collection.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from .catalog_store import CatalogStore

NO_COLLECTION_TITLE = "(No album)"


def _dated_first(date: str) -> tuple:
    # Undated entries sort after dated ones
    return (date == "", date)


def missing_lyrics_report(store: CatalogStore) -> Dict[str, Any]:
    """
    Build the missing-lyrics report.

    Groups are ordered newest release first (undated last), then by title.
    Tracks inside a group are ordered by release date, then title, then id.
    """
    tracks = store.all_tracks()
    missing = [t for t in tracks if not t.lyrics.strip()]

    groups: Dict[str, Dict[str, Any]] = {}
    for track in missing:
        collection = store.collections.get(track.collection_id) if track.collection_id else None
        group_key = track.collection_id or ""
        if group_key not in groups:
            groups[group_key] = {
                "albumId": track.collection_id or None,
                "albumTitle": (collection.title if collection else "") or NO_COLLECTION_TITLE,
                "albumReleaseDate": collection.release_date if collection else "",
                "tracks": [],
            }
        groups[group_key]["tracks"].append({
            "id": track.id,
            "title": track.title,
            "artist": track.artist,
            "releaseDate": track.release_date,
            "isrc": track.isrc,
            "collectionId": track.collection_id or None,
        })

    for group in groups.values():
        group["tracks"].sort(key=lambda t: (_dated_first(t["releaseDate"]), t["title"], t["id"]))

    dated = sorted(
        (g for g in groups.values() if g["albumReleaseDate"]),
        key=lambda g: g["albumTitle"],
    )
    dated.sort(key=lambda g: g["albumReleaseDate"], reverse=True)
    undated = sorted((g for g in groups.values() if not g["albumReleaseDate"]), key=lambda g: g["albumTitle"])

    return {
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "totalSongs": len(tracks),
        "missingLyricsSongs": len(missing),
        "byAlbum": dated + undated,
    }
