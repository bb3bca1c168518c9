"""
Ambiguity Guard Module
Withholds title-only matches when the title is shared by several tracks.
"""

import logging
from typing import Dict, List, Optional

from ..core.exceptions import AmbiguousMatchError
from ..utils.string_utils import title_key
from .catalog_store import CatalogStore

logger = logging.getLogger(__name__)

COMPOSITE_SEPARATOR = "::"


def composite_key(collection_title: str, track_title: str) -> str:
    """Collection-scoped key: '<collection key>::<track key>', or '' if either part is empty."""
    collection_key = title_key(collection_title)
    track_key = title_key(track_title)
    if not collection_key or not track_key:
        return ""
    return f"{collection_key}{COMPOSITE_SEPARATOR}{track_key}"


def title_index(store: CatalogStore) -> Dict[str, List[str]]:
    """Map every normalized track title, placeholders excepted, to the ids of the tracks that carry it."""
    index: Dict[str, List[str]] = {}
    for track in store.all_tracks():
        key = title_key(track.title)
        if key:
            index.setdefault(key, []).append(track.id)
    return index


def composite_index(store: CatalogStore) -> Dict[str, List[str]]:
    """Map every composite key to track ids. Orphan tracks have no composite key."""
    index: Dict[str, List[str]] = {}
    for track in store.all_tracks():
        collection = store.collections.get(track.collection_id)
        if collection is None:
            continue
        key = composite_key(collection.title, track.title)
        if key:
            index.setdefault(key, []).append(track.id)
    return index


def is_ambiguous(key: str, store: CatalogStore) -> bool:
    """True when more than one track in the whole catalog normalizes to `key`."""
    return AmbiguityGuard(store).is_ambiguous(key)


class AmbiguityGuard:
    """
    Counts tracks per key across the entire catalog.

    The indexes are built on first use. Enrichment never changes titles, so
    a guard stays valid for a whole enrichment batch; call refresh() after
    anything that adds tracks or renames them.
    """

    def __init__(self, store: CatalogStore):
        self.store = store
        self._titles: Optional[Dict[str, List[str]]] = None
        self._composites: Optional[Dict[str, List[str]]] = None

    def refresh(self) -> None:
        self._titles = None
        self._composites = None

    def candidates(self, key: str) -> List[str]:
        """Track ids sharing a bare normalized title key."""
        if not key:
            return []
        if self._titles is None:
            self._titles = title_index(self.store)
        return list(self._titles.get(key, []))

    def composite_candidates(self, key: str) -> List[str]:
        """Track ids sharing a collection-scoped composite key."""
        if not key:
            return []
        if self._composites is None:
            self._composites = composite_index(self.store)
        return list(self._composites.get(key, []))

    def is_ambiguous(self, key: str) -> bool:
        return len(self.candidates(key)) > 1

    def resolve_title(self, title: str, collection_title: str = "") -> Optional[str]:
        """
        Pick the single track a title (optionally scoped by collection) refers to.

        A composite key that matches takes precedence over the bare title.

        Returns:
            Track id, or None when nothing matches

        Raises:
            AmbiguousMatchError: If the deciding key is shared by several tracks
        """
        scoped = composite_key(collection_title, title)
        if scoped:
            found = self.composite_candidates(scoped)
            if len(found) == 1:
                return found[0]
            if len(found) > 1:
                raise AmbiguousMatchError(
                    f"'{scoped}' matches {len(found)} tracks in one collection", scoped, found
                )

        key = title_key(title)
        found = self.candidates(key)
        if not found:
            return None
        if len(found) > 1:
            logger.debug(f"Withholding title-only match for '{key}': {len(found)} tracks share it")
            raise AmbiguousMatchError(f"'{key}' matches {len(found)} tracks", key, found)
        return found[0]
