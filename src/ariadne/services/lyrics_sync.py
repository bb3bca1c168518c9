"""
Lyrics Sync Module
Fills track lyrics from NetEase, fetching concurrently and writing serially.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..clients.netease import NetEaseClient, song_id_for
from ..core.config import REPORT_CONFIG
from ..core.exceptions import AriadneError
from ..models.entities import Track
from .catalog_store import CatalogStore
from .fetch_pool import FetchPool
from .merge_policy import MergePolicy

logger = logging.getLogger(__name__)


@dataclass
class LyricsSyncReport:
    """Tallies for one lyrics sync run."""
    matched: int = 0
    fetched: int = 0
    updated: int = 0
    no_lyrics: int = 0
    failed: int = 0
    not_started: int = 0
    sample_failures: List[Dict[str, str]] = field(default_factory=list)

    def add_failure(self, track: Track, song_id: str, reason: str) -> None:
        if len(self.sample_failures) < REPORT_CONFIG["MAX_SAMPLES"]:
            self.sample_failures.append({"id": track.id, "title": track.title, "songId": song_id, "reason": reason})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "fetched": self.fetched,
            "updated": self.updated,
            "noLyrics": self.no_lyrics,
            "failed": self.failed,
            "notStarted": self.not_started,
            "sampleFailures": list(self.sample_failures),
        }


class LyricsSyncService:
    """Service for syncing lyrics from NetEase into the catalog."""

    def __init__(self, client: Optional[NetEaseClient] = None, pool: Optional[FetchPool] = None):
        self.client = client or NetEaseClient()
        self.pool = pool or FetchPool()

    def select_targets(self, store: CatalogStore, policy: MergePolicy = MergePolicy.FILL_MISSING,
                       collection_ids: Optional[Sequence[str]] = None,
                       limit: Optional[int] = None) -> Tuple[List[tuple], List[tuple]]:
        """
        Tracks that have a NetEase song id and want lyrics.

        Returns:
            (all matching (track, song_id) pairs, the pairs kept after the limit)
        """
        wanted = set(collection_ids or [])
        targets = []
        for track in store.all_tracks():
            if wanted and track.collection_id not in wanted:
                continue
            song_id = song_id_for(track)
            if not song_id:
                continue
            if policy is MergePolicy.FILL_MISSING and track.lyrics.strip():
                continue
            targets.append((track, song_id))
        return targets, (targets[:limit] if limit else targets)

    def sync(self, store: CatalogStore, policy: MergePolicy = MergePolicy.FILL_MISSING,
             collection_ids: Optional[Sequence[str]] = None,
             limit: Optional[int] = None) -> LyricsSyncReport:
        """
        Fetch lyrics for every selected track and write them into the store.

        Args:
            store: Catalog to update in place
            policy: fill_missing skips tracks that already have lyrics
            collection_ids: Only tracks of these collections
            limit: Only the first N selected tracks

        Returns:
            LyricsSyncReport
        """
        report = LyricsSyncReport()
        matched, targets = self.select_targets(store, policy, collection_ids, limit)
        report.matched = len(matched)
        by_id = {track.id: (track, song_id) for track, song_id in targets}

        jobs = [
            (track.id, (lambda song_id=song_id: self.client.fetch_lyrics(song_id)))
            for track, song_id in targets
        ]
        for outcome in self.pool.run(jobs):
            track, song_id = by_id[outcome.key]
            report.fetched += 1
            if not outcome.ok:
                report.failed += 1
                report.add_failure(track, song_id, str(outcome.error))
                logger.warning(f"Lyrics fetch failed for {track.id} (song {song_id}): {outcome.error}")
                continue

            result = outcome.value
            if not result.ok:
                if result.no_lyrics:
                    report.no_lyrics += 1
                else:
                    report.failed += 1
                report.add_failure(track, song_id, result.reason)
                continue

            try:
                if store.update_track(track.id, {"lyrics": result.lyrics}, policy=policy):
                    report.updated += 1
            except AriadneError as e:
                report.failed += 1
                report.add_failure(track, song_id, str(e))

        report.not_started = len(self.pool.unscheduled)
        logger.info(
            f"Lyrics sync: matched {report.matched}, fetched {report.fetched}, updated {report.updated}, "
            f"no lyrics {report.no_lyrics}, failed {report.failed}"
        )
        return report
