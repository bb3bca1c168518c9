"""
Catalog Store Module
In-memory map of all collections and tracks, with idempotent upsert and
JSON document load/save.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.config import ERROR_MESSAGES
from ..core.exceptions import ConflictingIdentityError, MalformedInputError
from ..models.entities import Collection, Track, Entity, parse_record
from ..models.report import UpsertResult, STATUS_CREATED, STATUS_MERGED
from .merge_policy import EntityMerger, MergePolicy

logger = logging.getLogger(__name__)

SCHEMA_SPLIT = "split"    # {"collections": [...], "tracks": [...]}
SCHEMA_ITEMS = "items"    # {"items": [...]} legacy single list


class CatalogStore:
    """
    Holds every catalog entity keyed by id.

    A merge is computed on a copy and checked before it is committed, so a
    rejected merge leaves no trace visible to later lookups.
    """

    def __init__(
        self,
        collections: Optional[Iterable[Collection]] = None,
        tracks: Optional[Iterable[Track]] = None,
        extras: Optional[Dict[str, Any]] = None,
        schema: str = SCHEMA_SPLIT
    ):
        self.collections: Dict[str, Collection] = {}
        self.tracks: Dict[str, Track] = {}
        self.extras: Dict[str, Any] = dict(extras or {})
        self.unparsed: List[Any] = []
        self.schema = schema
        for collection in collections or []:
            self.collections[collection.id] = collection
        for track in tracks or []:
            self.tracks[track.id] = track

    def __len__(self) -> int:
        return len(self.collections) + len(self.tracks)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.collections or entity_id in self.tracks

    def get(self, entity_id: str) -> Optional[Entity]:
        """Look up any entity by id."""
        if not entity_id:
            return None
        return self.collections.get(entity_id) or self.tracks.get(entity_id)

    def all_collections(self) -> List[Collection]:
        return list(self.collections.values())

    def all_tracks(self) -> List[Track]:
        return list(self.tracks.values())

    def tracks_of(self, collection_id: str) -> List[Track]:
        """Tracks belonging to a collection, ordered by track number when known."""
        if not collection_id:
            return []
        found = [t for t in self.tracks.values() if t.collection_id == collection_id]
        return sorted(found, key=lambda t: (t.track_no is None, t.track_no or 0))

    def orphan_tracks(self) -> List[Track]:
        return [t for t in self.tracks.values() if not t.collection_id or t.collection_id not in self.collections]

    def tracks_by_isrc(self, isrc: str) -> List[Track]:
        if not isrc:
            return []
        return [t for t in self.tracks.values() if t.isrc == isrc]

    def upsert(
        self,
        entity: Entity,
        target_id: Optional[str] = None,
        policy: MergePolicy = MergePolicy.FILL_MISSING,
        rebind: bool = False
    ) -> UpsertResult:
        """
        Insert an entity, or merge it into an existing one.

        Args:
            entity: Incoming collection or track
            target_id: Id of the existing entity it resolved to; defaults to its own id
            policy: Merge policy for scalar fields
            rebind: Let a merged track move to the incoming collection

        Returns:
            UpsertResult with status created or merged

        Raises:
            ConflictingIdentityError: If the merge would break an invariant; nothing is changed
        """
        target_id = target_id or (entity.id if entity.id in self else None)

        if target_id is None:
            if entity.id in self:
                raise ConflictingIdentityError(f"Entity {entity.id} already exists", entity.id)
            self._check_isrc_unique(entity, exclude_id=None)
            self._put(copy.deepcopy(entity))
            logger.debug(f"Created {entity.kind} {entity.id}")
            return UpsertResult(status=STATUS_CREATED, entity_id=entity.id)

        existing = self.get(target_id)
        if existing is None:
            raise ConflictingIdentityError(f"Merge target {target_id} does not exist", target_id)
        if existing.kind != entity.kind:
            raise ConflictingIdentityError(
                f"Cannot merge {entity.kind} {entity.id} into {existing.kind} {target_id}", target_id
            )

        merged, notes = EntityMerger(policy).merge(existing, entity, rebind=rebind)
        if merged.id != existing.id:
            raise ConflictingIdentityError(f"Merge changed the id of {existing.id}", existing.id)
        self._check_isrc_unique(merged, exclude_id=merged.id)

        changed = merged != existing
        if changed:
            self._put(merged)
        logger.debug(f"Merged {entity.kind} {entity.id} into {target_id} (changed={changed})")
        return UpsertResult(status=STATUS_MERGED, entity_id=target_id, changed=changed, notes=notes)

    def update_track(self, track_id: str, fields: Dict[str, Any], policy: MergePolicy = MergePolicy.FILL_MISSING) -> bool:
        """
        Apply enrichment fields to one track through the merge policy.

        Returns:
            True if the stored track changed
        """
        existing = self.tracks.get(track_id)
        if existing is None:
            raise ConflictingIdentityError(f"Track {track_id} does not exist", track_id)
        patch = Track(id=existing.id, collection_id=existing.collection_id)
        for name, value in fields.items():
            if not hasattr(patch, name) or name in ("id", "collection_id", "isrc"):
                raise MalformedInputError(f"Track field {name} cannot be enriched", track_id)
            setattr(patch, name, copy.deepcopy(value))
        return self.upsert(patch, target_id=track_id, policy=policy).changed

    def sync_track_count(self, collection_id: str) -> bool:
        """Set a collection's trackCount from its attached tracks, when it has any."""
        collection = self.collections.get(collection_id)
        if collection is None:
            return False
        count = len(self.tracks_of(collection_id))
        if count == 0 or collection.track_count == count:
            return False
        updated = copy.deepcopy(collection)
        updated.track_count = count
        self.collections[collection_id] = updated
        return True

    def copy(self) -> "CatalogStore":
        clone = CatalogStore(schema=self.schema)
        clone.collections = copy.deepcopy(self.collections)
        clone.tracks = copy.deepcopy(self.tracks)
        clone.extras = copy.deepcopy(self.extras)
        clone.unparsed = copy.deepcopy(self.unparsed)
        return clone

    def _put(self, entity: Entity) -> None:
        if isinstance(entity, Collection):
            self.collections[entity.id] = entity
        else:
            self.tracks[entity.id] = entity

    def _check_isrc_unique(self, entity: Entity, exclude_id: Optional[str]) -> None:
        if not isinstance(entity, Track) or not entity.isrc or not entity.collection_id:
            return
        for other in self.tracks.values():
            if other.id == exclude_id:
                continue
            if other.collection_id == entity.collection_id and other.isrc == entity.isrc:
                raise ConflictingIdentityError(
                    f"ISRC {entity.isrc} already used by {other.id} in collection {entity.collection_id}",
                    entity.id,
                )

    def to_document(self) -> Dict[str, Any]:
        """Serialize the whole catalog, keeping the shape it was loaded in."""
        collections = [c.to_dict() for c in self.collections.values()]
        tracks = [t.to_dict() for t in self.tracks.values()]
        document = dict(self.extras)
        if self.schema == SCHEMA_ITEMS:
            document["items"] = collections + tracks + list(self.unparsed)
        else:
            document["collections"] = collections
            document["tracks"] = tracks
            if self.unparsed:
                document["unparsed"] = list(self.unparsed)
        return document

    @classmethod
    def from_document(cls, document: Any) -> "CatalogStore":
        """
        Build a store from a catalog document.

        Accepts {"collections": [...], "tracks": [...]} and the legacy
        {"items": [...]}. Records that fail validation are kept verbatim so
        saving never drops data.
        """
        if not isinstance(document, dict):
            raise MalformedInputError(ERROR_MESSAGES["CATALOG_NOT_OBJECT"])

        if isinstance(document.get("collections"), list) or isinstance(document.get("tracks"), list):
            schema = SCHEMA_SPLIT
            raw_records = list(document.get("collections") or []) + list(document.get("tracks") or [])
            raw_records += list(document.get("unparsed") or [])
            extras = {k: v for k, v in document.items() if k not in ("collections", "tracks", "unparsed")}
        else:
            schema = SCHEMA_ITEMS
            raw_records = list(document.get("items") or [])
            extras = {k: v for k, v in document.items() if k != "items"}

        store = cls(extras=extras, schema=schema)
        for raw in raw_records:
            try:
                entity = parse_record(raw)
            except MalformedInputError as e:
                logger.warning(f"Keeping unparsed catalog record: {e}")
                store.unparsed.append(raw)
                continue
            if entity.id in store:
                logger.warning(f"Duplicate id {entity.id} in catalog document; merging copies")
                try:
                    store.upsert(entity)
                except ConflictingIdentityError as e:
                    logger.warning(f"Keeping unparsed catalog record: {e}")
                    store.unparsed.append(raw)
                continue
            store._put(entity)
        return store


def load_catalog(path: Union[str, Path]) -> CatalogStore:
    """Read a catalog JSON file. A missing file gives an empty store."""
    catalog_path = Path(path)
    if not catalog_path.exists():
        logger.info(f"Catalog {catalog_path} does not exist yet; starting empty")
        return CatalogStore()
    with open(catalog_path, "r", encoding="utf-8") as f:
        return CatalogStore.from_document(json.load(f))


def save_catalog(store: CatalogStore, path: Union[str, Path]) -> Path:
    """Write the catalog as pretty-printed UTF-8 JSON."""
    catalog_path = Path(path)
    catalog_path.parent.mkdir(parents=True, exist_ok=True)
    with open(catalog_path, "w", encoding="utf-8") as f:
        json.dump(store.to_document(), f, ensure_ascii=False, indent=2)
        f.write("\n")
    return catalog_path
