"""
Batch Import Module
Runs one source's records through the resolver and into the catalog store.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from ..core.config import ERROR_MESSAGES
from ..core.exceptions import AriadneError, ConflictingIdentityError, MalformedInputError
from ..models.entities import Collection, Track, parse_record
from ..models.report import (
    RunReport, SKIP_MALFORMED, SKIP_NO_MATCH, SKIP_DISALLOWED_CREATE, SKIP_CONFLICT
)
from .catalog_store import CatalogStore
from .identity_resolver import IdentityResolver, Match, STRATEGY_ISRC
from .merge_policy import MergePolicy, merge_set

logger = logging.getLogger(__name__)


@dataclass
class ImportOptions:
    """Per-batch settings."""
    source: str = ""
    policy: MergePolicy = MergePolicy.FILL_MISSING
    rebind_by_isrc: bool = False
    source_tags: List[str] = field(default_factory=list)


class _BatchState:
    """Bookkeeping for one batch: aliases, claims and which collections may gain tracks."""

    def __init__(self):
        self.aliases: Dict[str, str] = {}
        self.claims: Dict[Tuple[str, str], Tuple[str, str]] = {}
        self.touched: Set[str] = set()
        self.create_allowed: Set[str] = set()

    def touch(self, collection_id: str, store: CatalogStore) -> None:
        # Decided once, when the batch first sees the collection
        if collection_id in self.touched:
            return
        self.touched.add(collection_id)
        if not store.tracks_of(collection_id):
            self.create_allowed.add(collection_id)

    def conflicting_claim(self, kind: str, incoming_id: str, match: Match) -> Optional[Tuple[str, str]]:
        claim = self.claims.get((kind, match.entity_id))
        if claim is None:
            return None
        claimed_by, strategy = claim
        if claimed_by != incoming_id and strategy != match.strategy:
            return claim
        return None

    def record_claim(self, kind: str, incoming_id: str, match: Match) -> None:
        # Only a record that actually merged holds the entity
        self.claims.setdefault((kind, match.entity_id), (incoming_id, match.strategy))


class BatchImporter:
    """
    Imports a batch of collection and track records from one source.

    Collections are processed before tracks so that tracks can be attached
    to the collection their parent resolved to. A bad record is skipped and
    reported; it never aborts the batch.
    """

    def __init__(self, resolver: Optional[IdentityResolver] = None):
        self.resolver = resolver or IdentityResolver()

    def import_batch(self, store: CatalogStore, records: List[Any],
                     options: Optional[ImportOptions] = None) -> RunReport:
        """
        Apply records to the store.

        Args:
            store: Catalog to update in place
            records: Raw incoming records
            options: Batch options

        Returns:
            RunReport describing every record's outcome
        """
        options = options or ImportOptions()
        report = RunReport(source=options.source)
        collections, tracks = self._parse(records, options, report)
        state = _BatchState()

        for collection in collections:
            self._import_collection(store, collection, options, state, report)
        for track in tracks:
            self._import_track(store, track, options, state, report)

        for collection_id in sorted(state.touched):
            if store.sync_track_count(collection_id):
                report.count("trackCountRefreshed")

        logger.info(
            f"Batch {options.source or '(unnamed)'}: created {report.created}, merged {report.merged}, "
            f"skipped {len(report.skipped)}"
        )
        return report

    def preview(self, store: CatalogStore, records: List[Any],
                options: Optional[ImportOptions] = None) -> Tuple[CatalogStore, RunReport]:
        """Dry run: apply the batch to a copy and leave the store untouched."""
        draft = store.copy()
        report = self.import_batch(draft, records, options)
        return draft, report

    def _parse(self, records: List[Any], options: ImportOptions,
               report: RunReport) -> Tuple[List[Collection], List[Track]]:
        collections: List[Collection] = []
        tracks: List[Track] = []
        for index, raw in enumerate(records):
            try:
                entity = parse_record(raw)
            except MalformedInputError as e:
                record_id = e.record_id or f"#{index}"
                logger.warning(f"Skipping malformed record {record_id}: {e}")
                report.skip(record_id, "record", SKIP_MALFORMED, str(e))
                continue
            if options.source_tags:
                entity.tags = merge_set(entity.tags, options.source_tags)
            if isinstance(entity, Collection):
                collections.append(entity)
            else:
                tracks.append(entity)
        return collections, tracks

    def _import_collection(self, store: CatalogStore, incoming: Collection, options: ImportOptions,
                           state: _BatchState, report: RunReport) -> None:
        match = self.resolver.resolve_collection(incoming, store)
        if match is None:
            self._apply(store, incoming, None, options, report)
            if incoming.id in store.collections:
                state.aliases[incoming.id] = incoming.id
                state.touch(incoming.id, store)
            return

        claim = state.conflicting_claim("collection", incoming.id, match)
        if claim:
            self._conflict(incoming, match, claim, report)
            return
        if match.warning:
            report.warn(match.warning)

        state.touch(match.entity_id, store)
        if self._apply(store, incoming, match, options, report):
            state.record_claim("collection", incoming.id, match)
            state.aliases[incoming.id] = match.entity_id

    def _import_track(self, store: CatalogStore, incoming: Track, options: ImportOptions,
                      state: _BatchState, report: RunReport) -> None:
        parent = state.aliases.get(incoming.collection_id, incoming.collection_id)
        if parent != incoming.collection_id:
            incoming = dataclasses.replace(incoming, collection_id=parent)
        if parent in store.collections:
            state.touch(parent, store)

        match = self.resolver.resolve_track(incoming, store, collection_id=parent)
        if match is None:
            if parent and parent not in store.collections:
                report.skip(incoming.id, "track", SKIP_NO_MATCH, f"collection {parent} is not in the catalog")
            elif parent and parent not in state.create_allowed:
                report.skip(
                    incoming.id, "track", SKIP_DISALLOWED_CREATE,
                    f"collection {parent} already has tracks; new tracks are only created on its first import",
                )
            else:
                self._apply(store, incoming, None, options, report)
            return

        claim = state.conflicting_claim("track", incoming.id, match)
        if claim:
            self._conflict(incoming, match, claim, report)
            return
        if match.warning:
            report.warn(match.warning)

        previous_parent = store.tracks[match.entity_id].collection_id
        rebind = (
            options.rebind_by_isrc
            and match.strategy == STRATEGY_ISRC
            and parent in store.collections
        )
        if self._apply(store, incoming, match, options, report, rebind=rebind):
            state.record_claim("track", incoming.id, match)
            current_parent = store.tracks[match.entity_id].collection_id
            if current_parent != previous_parent:
                logger.info(f"Rebound track {match.entity_id} from {previous_parent} to {current_parent}")
                report.count("rebound")
                for collection_id in (previous_parent, current_parent):
                    if collection_id in store.collections:
                        state.touched.add(collection_id)

    def _apply(self, store: CatalogStore, incoming, match: Optional[Match], options: ImportOptions,
               report: RunReport, rebind: bool = False) -> bool:
        target_id = match.entity_id if match else None
        try:
            result = store.upsert(incoming, target_id=target_id, policy=options.policy, rebind=rebind)
        except ConflictingIdentityError as e:
            logger.warning(f"Rejected {incoming.kind} {incoming.id}: {e}")
            report.skip(incoming.id, incoming.kind, SKIP_CONFLICT, str(e))
            return False
        except AriadneError as e:
            logger.warning(f"Rejected {incoming.kind} {incoming.id}: {e}")
            report.skip(incoming.id, incoming.kind, SKIP_MALFORMED, str(e))
            return False

        report.record_upsert(incoming.kind, result)
        if match:
            report.count(f"match:{match.strategy}")
        return True

    def _conflict(self, incoming, match: Match, claim: Tuple[str, str], report: RunReport) -> None:
        claimed_by, strategy = claim
        detail = (
            f"{match.entity_id} already claimed by {claimed_by} via {strategy}; "
            f"this record matched via {match.strategy}"
        )
        logger.warning(f"Conflicting identity for {incoming.kind} {incoming.id}: {detail}")
        report.skip(incoming.id, incoming.kind, SKIP_CONFLICT, detail)


def extract_batches(document: Any, default_source: str = "") -> List[Tuple[str, List[Any]]]:
    """
    Split an input document into (source, records) batches.

    Accepted shapes: a list of records, {"items": [...]},
    {"collections": [...], "tracks": [...]}, or a list of
    {"source": ..., "items": [...]} groups.

    Raises:
        MalformedInputError: If the document has none of these shapes
    """
    if isinstance(document, dict):
        source = str(document.get("source") or default_source)
        if isinstance(document.get("items"), list):
            return [(source, document["items"])]
        if isinstance(document.get("collections"), list) or isinstance(document.get("tracks"), list):
            records = list(document.get("collections") or []) + list(document.get("tracks") or [])
            return [(source, records)]
        raise MalformedInputError(ERROR_MESSAGES["NO_RECORDS"])

    if isinstance(document, list):
        grouped = document and all(
            isinstance(entry, dict) and isinstance(entry.get("items"), list) and "type" not in entry
            for entry in document
        )
        if grouped:
            return [(str(entry.get("source") or default_source), entry["items"]) for entry in document]
        return [(default_source, document)]

    raise MalformedInputError(ERROR_MESSAGES["NO_RECORDS"])


def load_record_batches(path: Union[str, Path], default_source: str = "") -> List[Tuple[str, List[Any]]]:
    """Read a records JSON file into (source, records) batches."""
    records_path = Path(path)
    with open(records_path, "r", encoding="utf-8") as f:
        document = json.load(f)
    return extract_batches(document, default_source or records_path.stem)
