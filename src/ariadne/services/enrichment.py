"""
Enrichment Module
Applies title-keyed metadata (lyrics, mood, style tags...) to existing tracks.

Enrichment never creates entities. Each record is routed to its target
by the strongest key it carries: ISRC, then the collection-scoped
composite key, then the bare title, which the ambiguity guard withholds
when several tracks share it.
"""

import logging
from typing import Any, List

from ..core.config import ENRICHMENT_CONFIG
from ..core.exceptions import AmbiguousMatchError, AriadneError, MalformedInputError
from ..models.entities import Collection
from ..models.enrichment import EnrichmentRecord
from ..models.report import RunReport, SKIP_MALFORMED, SKIP_NO_MATCH, SKIP_CONFLICT
from ..utils.string_utils import normalize_key
from .ambiguity_guard import AmbiguityGuard
from .catalog_store import CatalogStore
from .merge_policy import MergePolicy

logger = logging.getLogger(__name__)


def is_lyrics_noise(text: str) -> bool:
    """True when a lyrics text looks like a captured app screen rather than lyrics."""
    if not text:
        return False
    hits = sum(1 for hint in ENRICHMENT_CONFIG["NOISE_HINTS"] if hint in text)
    return hits >= ENRICHMENT_CONFIG["NOISE_MIN_HITS"]


class Enricher:
    """Routes enrichment records to tracks and applies them through the merge policy."""

    def __init__(self, policy: MergePolicy = MergePolicy.FILL_MISSING, filter_noise: bool = True):
        self.policy = policy
        self.filter_noise = filter_noise

    def enrich(self, store: CatalogStore, records: List[Any], source: str = "") -> RunReport:
        """
        Apply enrichment records to the store.

        Args:
            store: Catalog to update in place
            records: Raw enrichment records
            source: Name used in the report

        Returns:
            RunReport with updated, skippedAmbiguous and noMatch tallies
        """
        report = RunReport(source=source)
        guard = AmbiguityGuard(store)

        for index, raw in enumerate(records):
            try:
                record = EnrichmentRecord.from_dict(raw)
            except MalformedInputError as e:
                report.skip(e.record_id or f"#{index}", "enrichment", SKIP_MALFORMED, str(e))
                continue
            self._enrich_one(store, guard, record, report)

        logger.info(
            f"Enrichment {source or '(unnamed)'}: updated {report.updated}, "
            f"ambiguous {report.skipped_ambiguous}, no match {report.no_match}"
        )
        return report

    def _enrich_one(self, store: CatalogStore, guard: AmbiguityGuard,
                    record: EnrichmentRecord, report: RunReport) -> None:
        fields = record.track_fields()
        if self.filter_noise and is_lyrics_noise(fields.get("lyrics", "")):
            logger.debug(f"Ignoring noisy lyrics for {record.label}")
            fields.pop("lyrics")
            report.count("noiseFiltered")

        if not record.title and not record.isrc:
            self._enrich_collection(store, record, report)
            return
        if not fields:
            report.count("empty")
            return

        try:
            targets = self._targets(store, guard, record)
        except AmbiguousMatchError as e:
            logger.warning(f"Skipping {record.label}: {e}")
            report.ambiguous(record.label, e.key, e.candidates)
            return

        if not targets:
            report.skip(record.label, "track", SKIP_NO_MATCH, "no track with this ISRC or title")
            return

        for track_id in targets:
            try:
                changed = store.update_track(track_id, fields, policy=self.policy)
            except AriadneError as e:
                logger.warning(f"Could not enrich {track_id}: {e}")
                report.skip(track_id, "track", SKIP_CONFLICT, str(e))
                continue
            if changed:
                report.updated += 1
            else:
                report.unchanged += 1

    def _targets(self, store: CatalogStore, guard: AmbiguityGuard, record: EnrichmentRecord) -> List[str]:
        if record.isrc:
            # One recording may legitimately appear on several releases
            by_isrc = [t.id for t in store.tracks_by_isrc(record.isrc)]
            if by_isrc:
                return by_isrc
        if not record.title:
            return []
        track_id = guard.resolve_title(record.title, record.collection_title)
        return [track_id] if track_id else []

    def _enrich_collection(self, store: CatalogStore, record: EnrichmentRecord, report: RunReport) -> None:
        if not record.style_tags:
            report.count("empty")
            return
        key = normalize_key(record.collection_title)
        found = [c for c in store.all_collections() if key and normalize_key(c.title) == key]
        if not found:
            report.skip(record.label, "collection", SKIP_NO_MATCH, "no collection with this title")
            return
        if len(found) > 1:
            report.ambiguous(record.label, key, [c.id for c in found], kind="collection")
            return

        target = found[0]
        patch = Collection(id=target.id, type=target.type, style_tags=list(record.style_tags))
        result = store.upsert(patch, target_id=target.id, policy=self.policy)
        if result.changed:
            report.updated += 1
        else:
            report.unchanged += 1

