"""
Identity Resolver Module
Decides which existing catalog entity, if any, an incoming record refers to.

Each strategy is a named, ordered step. The first strategy that yields a
candidate wins; several candidates within one strategy are narrowed by a
deterministic tie-break that is reported as a soft warning.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..core.config import MERGE_CONFIG
from ..models.entities import Collection, Track, Entity
from ..utils.string_utils import title_key
from .catalog_store import CatalogStore

logger = logging.getLogger(__name__)

# Strategy names, in the order they are tried
STRATEGY_ID = "id"
STRATEGY_UPC = "upc"
STRATEGY_TITLE_DATE = "title_date"
STRATEGY_SOURCE_REF = "source_ref"
STRATEGY_ISRC = "isrc"
STRATEGY_TITLE = "title"
STRATEGY_CONTAINMENT = "containment"

COLLECTION_STRATEGIES = [STRATEGY_ID, STRATEGY_UPC, STRATEGY_TITLE_DATE, STRATEGY_SOURCE_REF]
TRACK_STRATEGIES = [STRATEGY_ID, STRATEGY_ISRC, STRATEGY_TITLE, STRATEGY_CONTAINMENT]


@dataclass
class Match:
    """An existing entity an incoming record resolved to."""
    entity_id: str
    strategy: str
    candidates: List[str] = field(default_factory=list)
    warning: str = ""

    @property
    def tie_broken(self) -> bool:
        return len(self.candidates) > 1


def _existing_track_count(collection: Collection, store: CatalogStore) -> Optional[int]:
    if collection.track_count is not None:
        return collection.track_count
    attached = len(store.tracks_of(collection.id))
    return attached or None


class IdentityResolver:
    """
    Ordered matching strategies for collections and tracks.

    Usage:
        resolver = IdentityResolver()
        match = resolver.resolve(incoming, store)
        if match:
            store.upsert(incoming, target_id=match.entity_id)
    """

    def __init__(self, min_containment_length: Optional[int] = None):
        if min_containment_length is None:
            min_containment_length = MERGE_CONFIG["MIN_CONTAINMENT_LENGTH"]
        self.min_containment_length = min_containment_length

    def resolve(self, incoming: Entity, store: CatalogStore, collection_id: Optional[str] = None) -> Optional[Match]:
        if isinstance(incoming, Collection):
            return self.resolve_collection(incoming, store)
        return self.resolve_track(incoming, store, collection_id=collection_id)

    # Collections

    def resolve_collection(self, incoming: Collection, store: CatalogStore) -> Optional[Match]:
        """
        Find the existing collection for an incoming one.

        Args:
            incoming: Incoming collection record
            store: Current catalog

        Returns:
            Match, or None when no strategy yields a candidate
        """
        strategies = [
            (STRATEGY_ID, self._collection_by_id),
            (STRATEGY_UPC, self._collection_by_upc),
            (STRATEGY_TITLE_DATE, self._collection_by_title_date),
            (STRATEGY_SOURCE_REF, self._collection_by_source_ref),
        ]
        for name, strategy in strategies:
            candidates = strategy(incoming, store)
            if not candidates:
                continue
            return self._pick_collection(name, candidates, incoming, store)
        return None

    def _collection_by_id(self, incoming: Collection, store: CatalogStore) -> List[Collection]:
        existing = store.collections.get(incoming.id)
        return [existing] if existing else []

    def _collection_by_upc(self, incoming: Collection, store: CatalogStore) -> List[Collection]:
        if not incoming.upc:
            return []
        return [c for c in store.all_collections() if c.upc and c.upc == incoming.upc]

    def _collection_by_title_date(self, incoming: Collection, store: CatalogStore) -> List[Collection]:
        key = title_key(incoming.title)
        if not key or not incoming.release_date:
            return []
        return [
            c for c in store.all_collections()
            if c.release_date == incoming.release_date and title_key(c.title) == key
        ]

    def _collection_by_source_ref(self, incoming: Collection, store: CatalogStore) -> List[Collection]:
        if not incoming.refs:
            return []
        found = []
        for collection in store.all_collections():
            for source, ids in incoming.refs.items():
                known = collection.refs.get(source, {})
                if any(value and known.get(key) == value for key, value in ids.items()):
                    found.append(collection)
                    break
        return found

    def _pick_collection(self, strategy: str, candidates: List[Collection],
                         incoming: Collection, store: CatalogStore) -> Match:
        ids = [c.id for c in candidates]
        if len(candidates) == 1:
            return Match(entity_id=ids[0], strategy=strategy, candidates=ids)

        narrowed = candidates
        if incoming.track_count is not None:
            same_count = [c for c in candidates if _existing_track_count(c, store) == incoming.track_count]
            if same_count:
                narrowed = same_count
        chosen = sorted(narrowed, key=lambda c: c.id)[0]
        warning = (
            f"Collection {incoming.id} matched {len(candidates)} collections by {strategy} "
            f"({', '.join(sorted(ids))}); chose {chosen.id}"
        )
        logger.warning(warning)
        return Match(entity_id=chosen.id, strategy=strategy, candidates=ids, warning=warning)

    # Tracks

    def resolve_track(self, incoming: Track, store: CatalogStore, collection_id: Optional[str] = None) -> Optional[Match]:
        """
        Find the existing track for an incoming one.

        ISRC is looked up across the whole catalog; title strategies only
        look inside the collection the track belongs to.

        Args:
            incoming: Incoming track record
            store: Current catalog
            collection_id: Resolved parent collection; defaults to incoming.collection_id

        Returns:
            Match, or None when no strategy yields a candidate
        """
        scope = collection_id if collection_id is not None else incoming.collection_id

        existing = store.tracks.get(incoming.id)
        if existing:
            return Match(entity_id=existing.id, strategy=STRATEGY_ID, candidates=[existing.id])

        if incoming.isrc:
            candidates = store.tracks_by_isrc(incoming.isrc)
            if candidates:
                in_scope = [t for t in candidates if scope and t.collection_id == scope]
                return self._pick_track(STRATEGY_ISRC, in_scope or candidates, incoming)

        if not scope:
            return None

        siblings = store.tracks_of(scope)
        strategies: List[tuple] = [
            (STRATEGY_TITLE, self._title_matcher(incoming)),
            (STRATEGY_CONTAINMENT, self._containment_matcher(incoming)),
        ]
        for name, matches in strategies:
            candidates = [t for t in siblings if matches(t)]
            if candidates:
                return self._pick_track(name, candidates, incoming)
        return None

    def _title_matcher(self, incoming: Track) -> Callable[[Track], bool]:
        key = title_key(incoming.title)

        def matches(track: Track) -> bool:
            return bool(key) and title_key(track.title) == key
        return matches

    def _containment_matcher(self, incoming: Track) -> Callable[[Track], bool]:
        key = title_key(incoming.title)
        minimum = self.min_containment_length

        def matches(track: Track) -> bool:
            other = title_key(track.title)
            if len(key) < minimum or len(other) < minimum:
                return False
            return key in other or other in key
        return matches

    def _pick_track(self, strategy: str, candidates: List[Track], incoming: Track) -> Match:
        ids = [t.id for t in candidates]
        if len(candidates) == 1:
            return Match(entity_id=ids[0], strategy=strategy, candidates=ids)

        narrowed = candidates
        if incoming.track_no is not None:
            same_no = [t for t in candidates if t.track_no == incoming.track_no]
            if same_no:
                narrowed = same_no
        chosen = sorted(narrowed, key=lambda t: t.id)[0]
        warning = (
            f"Track {incoming.id} matched {len(candidates)} tracks by {strategy} "
            f"({', '.join(sorted(ids))}); chose {chosen.id}"
        )
        logger.warning(warning)
        return Match(entity_id=chosen.id, strategy=strategy, candidates=ids, warning=warning)
