"""
Lyrics placeholder: mark tracks that will never get lyrics (instrumentals)
with a fixed text, so they drop out of the missing-lyrics report.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..core.config import LYRICS_PLACEHOLDER_CONFIG
from ..core.exceptions import MalformedInputError
from ..models.entities import Track
from .catalog_store import CatalogStore
from .merge_policy import MergePolicy

logger = logging.getLogger(__name__)


def _loose_title(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower())


def select_tracks(store: CatalogStore,
                  collection_ids: Optional[Sequence[str]] = None,
                  collection_titles: Optional[Sequence[str]] = None,
                  tags: Optional[Sequence[str]] = None) -> List[Track]:
    """
    Tracks picked by any of the filters; every track when no filter is given.

    A track matches a tag when it or its collection carries it.
    """
    ids = {c for c in (collection_ids or []) if c}
    titles = {_loose_title(t) for t in (collection_titles or []) if _loose_title(t)}
    wanted_tags = {t for t in (tags or []) if t}
    if not ids and not titles and not wanted_tags:
        return store.all_tracks()

    selected = []
    for track in store.all_tracks():
        collection = store.collections.get(track.collection_id)
        collection_tags = collection.tags if collection else []
        if (
            track.collection_id in ids
            or (collection is not None and _loose_title(collection.title) in titles)
            or wanted_tags.intersection(track.tags)
            or wanted_tags.intersection(collection_tags)
        ):
            selected.append(track)
    return selected


def fill_lyrics_placeholder(store: CatalogStore,
                            placeholder: str = LYRICS_PLACEHOLDER_CONFIG["PLACEHOLDER"],
                            policy: MergePolicy = MergePolicy.FILL_MISSING,
                            collection_ids: Optional[Sequence[str]] = None,
                            collection_titles: Optional[Sequence[str]] = None,
                            tags: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """
    Write the placeholder into the lyrics of the selected tracks.

    Under fill_missing only tracks without lyrics are considered; under
    overwrite every selected track is.

    Returns:
        Report dict with songsConsidered, songsUpdated and the filters used

    Raises:
        MalformedInputError: If the placeholder is empty
    """
    text = (placeholder or "").strip()
    if not text:
        raise MalformedInputError("Lyrics placeholder must not be empty")

    considered = 0
    updated = 0
    for track in select_tracks(store, collection_ids, collection_titles, tags):
        if policy is MergePolicy.FILL_MISSING and track.lyrics.strip():
            continue
        considered += 1
        if track.lyrics == text:
            continue
        if store.update_track(track.id, {"lyrics": text}, policy):
            updated += 1

    logger.info(f"Lyrics placeholder written to {updated} of {considered} tracks")
    return {
        "placeholder": text,
        "policy": policy.value,
        "songsConsidered": considered,
        "songsUpdated": updated,
        "filters": {
            "collectionIds": list(collection_ids or []),
            "collectionTitles": list(collection_titles or []),
            "tags": list(tags or []),
        },
    }
