"""
Cross-link Module
Copies links, embeds and source ids from one source's copy of a release
onto another source's copy already in the same catalog.

Typical use: a release imported from NetEase and the same release imported
from DistroKid live side by side; cross-linking lets the DistroKid entries
play through the NetEase embeds and sync NetEase lyrics.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.config import CROSS_LINK_CONFIG, MERGE_CONFIG, REPORT_CONFIG
from ..core.exceptions import MalformedInputError
from ..models.entities import Collection, Track
from ..utils.string_utils import title_key
from .catalog_store import CatalogStore
from .merge_policy import merge_refs

logger = logging.getLogger(__name__)


def belongs_to(collection: Collection, source: str) -> bool:
    """A collection belongs to a source by '<source>-' id prefix or by tag."""
    if not source:
        return False
    return collection.id.startswith(f"{source}-") or source in collection.tags


def source_number(entity_id: str, source: str, kind: str) -> str:
    """Numeric id from a '<source>-<kind>-<n>' entity id, or ''."""
    match = re.match(rf"^{re.escape(source)}-{kind}-(\d+)$", entity_id or "")
    return match.group(1) if match else ""


@dataclass
class CrossLinkReport:
    """Tallies for one cross-link run."""
    source: str
    target: str
    collections_processed: int = 0
    collections_matched: int = 0
    collections_updated: int = 0
    tracks_matched: int = 0
    tracks_updated: int = 0
    unmatched_tracks: List[Dict[str, str]] = field(default_factory=list)

    def add_unmatched(self, track: Track) -> None:
        if len(self.unmatched_tracks) < REPORT_CONFIG["MAX_SAMPLES"]:
            self.unmatched_tracks.append({"id": track.id, "title": track.title, "collectionId": track.collection_id})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "collectionsProcessed": self.collections_processed,
            "collectionsMatched": self.collections_matched,
            "collectionsUpdated": self.collections_updated,
            "tracksMatched": self.tracks_matched,
            "tracksUpdated": self.tracks_updated,
            "unmatchedTracks": list(self.unmatched_tracks),
        }


class CrossLinker:
    """
    Pairs collections of two sources and copies the source side's playable
    data onto the target side.

    Collections pair on the same title key, and the same release date when
    both have one. Tracks pair inside a matched pair on the same title key,
    then on containment. Only links, embeds and refs move; titles and
    other scalar fields are left alone.
    """

    def __init__(self, source: str = CROSS_LINK_CONFIG["DEFAULT_SOURCE"],
                 target: str = CROSS_LINK_CONFIG["DEFAULT_TARGET"],
                 min_containment_length: Optional[int] = None):
        if min_containment_length is None:
            min_containment_length = MERGE_CONFIG["MIN_CONTAINMENT_LENGTH"]
        self.source = source
        self.target = target
        self.min_containment_length = min_containment_length

    def link(self, store: CatalogStore, collection_id: Optional[str] = None) -> CrossLinkReport:
        """
        Cross-link every target collection, or only `collection_id`.

        Raises:
            MalformedInputError: If `collection_id` is not a collection in the catalog
        """
        if collection_id and collection_id not in store.collections:
            raise MalformedInputError(f"Collection {collection_id} is not in the catalog", collection_id)

        report = CrossLinkReport(source=self.source, target=self.target)
        sources = [c for c in store.all_collections() if belongs_to(c, self.source)]
        targets = [
            c for c in store.all_collections()
            if belongs_to(c, self.target) and (not collection_id or c.id == collection_id)
        ]

        for target in targets:
            report.collections_processed += 1
            candidates = [c for c in sources if c.id != target.id]
            source = self.pick_collection(store, target, candidates)
            if source is None:
                logger.debug(f"No {self.source} collection for {target.id}")
                continue
            report.collections_matched += 1
            self._link_pair(store, target, source, report)

        logger.info(
            f"Cross-linked {report.collections_matched}/{report.collections_processed} collections, "
            f"{report.tracks_matched} tracks ({self.source} -> {self.target})"
        )
        return report

    def pick_collection(self, store: CatalogStore, target: Collection,
                        candidates: List[Collection]) -> Optional[Collection]:
        key = title_key(target.title)
        if not key:
            return None
        found = [
            c for c in candidates
            if title_key(c.title) == key
            and (not target.release_date or not c.release_date or c.release_date == target.release_date)
        ]
        if not found:
            return None

        wanted = self._count(store, target)

        def score(candidate: Collection) -> int:
            count = self._count(store, candidate)
            if wanted is None or count is None:
                return 1
            return 2 if count == wanted else 0

        chosen = sorted(found, key=lambda c: (-score(c), c.id))[0]
        if len(found) > 1:
            logger.warning(
                f"{target.id} matched {len(found)} {self.source} collections "
                f"({', '.join(sorted(c.id for c in found))}); chose {chosen.id}"
            )
        return chosen

    def pick_track(self, track: Track, candidates: List[Track]) -> Optional[Track]:
        key = title_key(track.title)
        if not key:
            return None
        for candidate in candidates:
            if title_key(candidate.title) == key:
                return candidate
        if len(key) < self.min_containment_length:
            return None
        for candidate in candidates:
            other = title_key(candidate.title)
            if len(other) >= self.min_containment_length and (key in other or other in key):
                return candidate
        return None

    def _count(self, store: CatalogStore, collection: Collection) -> Optional[int]:
        if collection.track_count is not None:
            return collection.track_count
        return len(store.tracks_of(collection.id)) or None

    def _source_refs(self, entity_id: str, kind: str, refs: Dict[str, Dict[str, str]],
                     extra: Dict[str, str]) -> Dict[str, Dict[str, str]]:
        ids = dict(extra)
        number = source_number(entity_id, self.source, kind)
        if number:
            ids[f"{kind}Id"] = number
        return merge_refs(refs, {self.source: ids} if ids else {})

    def _link_pair(self, store: CatalogStore, target: Collection, source: Collection,
                   report: CrossLinkReport) -> None:
        album_refs = self._source_refs(source.id, "album", source.refs, {})
        patch = Collection(
            id=target.id,
            type=target.type,
            links=list(source.links),
            embeds=list(source.embeds),
            refs=album_refs,
        )
        if store.upsert(patch, target_id=target.id).changed:
            report.collections_updated += 1

        album_ids = dict(album_refs.get(self.source, {}))
        album_ids.pop("songId", None)
        source_tracks = store.tracks_of(source.id)
        for track in store.tracks_of(target.id):
            match = self.pick_track(track, source_tracks)
            if match is None:
                report.add_unmatched(track)
                continue
            report.tracks_matched += 1
            track_patch = Track(
                id=track.id,
                collection_id=track.collection_id,
                links=list(match.links),
                embeds=list(match.embeds),
                refs=self._source_refs(match.id, "song", match.refs, album_ids),
            )
            if store.upsert(track_patch, target_id=track.id).changed:
                report.tracks_updated += 1
