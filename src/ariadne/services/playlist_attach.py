"""
Playlist Attach Module
Attaches a platform playlist's per-track links and embeds to a collection
that is already in the catalog, without creating any tracks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.config import MERGE_CONFIG, PLAYLIST_CONFIG, REPORT_CONFIG
from ..core.exceptions import MalformedInputError
from ..models.entities import Collection, Track, parse_record
from ..models.links import Embed, Link
from ..utils.string_utils import platform_key, title_key
from .catalog_store import CatalogStore

logger = logging.getLogger(__name__)

PAIRED_BY_TITLE = "title"
PAIRED_BY_CONTAINMENT = "containment"
PAIRED_BY_ORDER = "order"
PAIRED_BY_INDEX = "index"


@dataclass
class PlaylistAttachReport:
    """Tallies for one playlist attach run."""
    collection_id: str
    playlist_id: str
    tracks_in_collection: int = 0
    playlist_tracks: int = 0
    matched: int = 0
    updated: int = 0
    skipped_existing: int = 0
    paired_by: Dict[str, int] = field(default_factory=dict)
    unmatched_tracks: List[Dict[str, str]] = field(default_factory=list)

    def pair(self, how: str) -> None:
        self.matched += 1
        self.paired_by[how] = self.paired_by.get(how, 0) + 1

    def add_unmatched(self, track: Track) -> None:
        if len(self.unmatched_tracks) < REPORT_CONFIG["MAX_SAMPLES"]:
            self.unmatched_tracks.append({"id": track.id, "title": track.title})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collectionId": self.collection_id,
            "playlistId": self.playlist_id,
            "tracksInCollection": self.tracks_in_collection,
            "playlistTracks": self.playlist_tracks,
            "matched": self.matched,
            "updated": self.updated,
            "skippedExisting": self.skipped_existing,
            "pairedBy": dict(self.paired_by),
            "unmatchedTracks": list(self.unmatched_tracks),
        }


def pair_tracks(tracks: Sequence[Track], playlist_tracks: Sequence[Track],
                min_containment_length: Optional[int] = None) -> List[Tuple[Track, Track, str]]:
    """
    Pair catalog tracks with playlist tracks, each playlist track used once.

    Passes, in order: same title key; containment when exactly one unused
    playlist track qualifies; finally position order, but only when the
    leftovers on both sides have the same count.

    Returns:
        (catalog track, playlist track, how) triples in catalog order
    """
    if min_containment_length is None:
        min_containment_length = MERGE_CONFIG["MIN_CONTAINMENT_LENGTH"]

    pairs: Dict[str, Tuple[Track, str]] = {}
    used = set()
    keys = {t.id: title_key(t.title) for t in tracks}
    item_keys = {c.id: title_key(c.title) for c in playlist_tracks}

    for track in tracks:
        key = keys[track.id]
        if not key:
            continue
        for candidate in playlist_tracks:
            if candidate.id not in used and item_keys[candidate.id] == key:
                pairs[track.id] = (candidate, PAIRED_BY_TITLE)
                used.add(candidate.id)
                break

    for track in tracks:
        key = keys[track.id]
        if track.id in pairs or len(key) < min_containment_length:
            continue
        hits = [
            c for c in playlist_tracks
            if c.id not in used
            and len(item_keys[c.id]) >= min_containment_length
            and (key in item_keys[c.id] or item_keys[c.id] in key)
        ]
        if len(hits) == 1:
            pairs[track.id] = (hits[0], PAIRED_BY_CONTAINMENT)
            used.add(hits[0].id)

    left = [t for t in tracks if t.id not in pairs]
    spare = [c for c in playlist_tracks if c.id not in used]
    if left and len(left) == len(spare):
        for track, candidate in zip(left, spare):
            pairs[track.id] = (candidate, PAIRED_BY_ORDER)

    return [(t, pairs[t.id][0], pairs[t.id][1]) for t in tracks if t.id in pairs]


def load_playlist(records: List[Any], playlist_id: Optional[str] = None) -> Tuple[Collection, List[Track]]:
    """
    Pick the playlist collection and its tracks, in record order, from raw records.

    Raises:
        MalformedInputError: If the playlist cannot be identified
    """
    collections: List[Collection] = []
    tracks: List[Track] = []
    for index, raw in enumerate(records):
        try:
            entity = parse_record(raw)
        except MalformedInputError as e:
            logger.warning(f"Skipping malformed playlist record {e.record_id or f'#{index}'}: {e}")
            continue
        if isinstance(entity, Collection):
            collections.append(entity)
        else:
            tracks.append(entity)

    if playlist_id:
        chosen = [c for c in collections if c.id == playlist_id]
    else:
        chosen = collections
    if len(chosen) != 1:
        wanted = playlist_id or "a single collection"
        raise MalformedInputError(f"Playlist records must contain {wanted}; found {len(chosen)}", playlist_id or "")

    playlist = chosen[0]
    return playlist, [t for t in tracks if t.collection_id == playlist.id]


def playlist_url(playlist_id: str, index: Optional[int] = None) -> str:
    url = PLAYLIST_CONFIG["PLAYLIST_URL"].format(playlist_id=playlist_id)
    return f"{url}&index={index}" if index is not None else url


def playlist_embed_url(playlist_id: str, index: Optional[int] = None) -> str:
    url = PLAYLIST_CONFIG["EMBED_URL"].format(playlist_id=playlist_id)
    return f"{url}&index={index}" if index is not None else url


class PlaylistAttacher:
    """
    Attaches playlists to existing collections.

    Usage:
        attacher = PlaylistAttacher()
        playlist, items = load_playlist(records)
        report = attacher.attach(store, "distrokid-album-1", playlist, items)
    """

    def __init__(self, platform: str = PLAYLIST_CONFIG["PLATFORM"],
                 min_containment_length: Optional[int] = None):
        self.platform = platform
        self.min_containment_length = min_containment_length

    def _require_collection(self, store: CatalogStore, collection_id: str) -> Collection:
        collection = store.collections.get(collection_id)
        if collection is None:
            raise MalformedInputError(f"Collection {collection_id} is not in the catalog", collection_id)
        return collection

    def attach(self, store: CatalogStore, collection_id: str, playlist: Collection,
               playlist_tracks: Sequence[Track]) -> PlaylistAttachReport:
        """
        Copy a playlist's links and embeds onto a collection and its tracks.

        Raises:
            MalformedInputError: If the collection is not in the catalog
        """
        collection = self._require_collection(store, collection_id)
        tracks = store.tracks_of(collection_id)
        report = PlaylistAttachReport(
            collection_id=collection_id,
            playlist_id=playlist.id,
            tracks_in_collection=len(tracks),
            playlist_tracks=len(playlist_tracks),
        )

        store.upsert(Collection(
            id=collection.id,
            type=collection.type,
            tags=[self.platform],
            links=list(playlist.links),
            embeds=list(playlist.embeds),
        ), target_id=collection.id)

        pairs = pair_tracks(tracks, playlist_tracks, self.min_containment_length)
        paired = set()
        for track, item, how in pairs:
            paired.add(track.id)
            report.pair(how)
            patch = Track(
                id=track.id,
                collection_id=track.collection_id,
                tags=[self.platform],
                links=list(item.links),
                embeds=list(item.embeds),
            )
            if store.upsert(patch, target_id=track.id).changed:
                report.updated += 1

        for track in tracks:
            if track.id not in paired:
                report.add_unmatched(track)

        logger.info(
            f"Attached playlist {playlist.id} to {collection_id}: "
            f"{report.matched}/{len(tracks)} tracks paired, {report.updated} updated"
        )
        return report

    def attach_by_index(self, store: CatalogStore, collection_id: str, playlist_id: str) -> PlaylistAttachReport:
        """
        Point every track at its position in a playlist, for playlists whose
        order is known to follow the collection.

        The position is the track number, or the track's place in the
        collection when it has none; a missing track number is filled in.
        Tracks that already embed from the platform are left alone.

        Raises:
            MalformedInputError: If the collection is not in the catalog
        """
        collection = self._require_collection(store, collection_id)
        tracks = store.tracks_of(collection_id)
        report = PlaylistAttachReport(
            collection_id=collection_id,
            playlist_id=playlist_id,
            tracks_in_collection=len(tracks),
            playlist_tracks=len(tracks),
        )

        store.upsert(Collection(
            id=collection.id,
            type=collection.type,
            tags=[self.platform],
            links=[Link(self.platform, PLAYLIST_CONFIG["PLAYLIST_LABEL"], playlist_url(playlist_id))],
            embeds=[Embed(
                self.platform, PLAYLIST_CONFIG["EMBED_LABEL"], playlist_embed_url(playlist_id),
                PLAYLIST_CONFIG["COLLECTION_EMBED_HEIGHT"],
            )],
        ), target_id=collection.id)

        for position, track in enumerate(tracks):
            if any(platform_key(e.platform) == platform_key(self.platform) and e.url for e in track.embeds):
                report.skipped_existing += 1
                continue
            index = track.track_no if track.track_no is not None else position + 1
            report.pair(PAIRED_BY_INDEX)
            patch = Track(
                id=track.id,
                collection_id=track.collection_id,
                track_no=index,
                tags=[self.platform],
                links=[Link(self.platform, PLAYLIST_CONFIG["VIDEO_LABEL"], playlist_url(playlist_id, index))],
                embeds=[Embed(
                    self.platform, PLAYLIST_CONFIG["EMBED_LABEL"], playlist_embed_url(playlist_id, index),
                    PLAYLIST_CONFIG["TRACK_EMBED_HEIGHT"],
                )],
            )
            if store.upsert(patch, target_id=track.id).changed:
                report.updated += 1

        logger.info(
            f"Attached playlist {playlist_id} to {collection_id} by index: "
            f"{report.matched} tracks, {report.skipped_existing} already embedded"
        )
        return report
