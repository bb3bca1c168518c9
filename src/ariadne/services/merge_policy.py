"""
Merge Policy Module
Field-level rules for combining an incoming record into an existing entity.
"""

import copy
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..core.config import MERGE_CONFIG
from ..models.entities import Collection, Track
from ..utils.link_merger import merge_links, merge_embeds
from ..utils.string_utils import is_placeholder_title

logger = logging.getLogger(__name__)


class MergePolicy(Enum):
    """How scalar fields are combined."""
    FILL_MISSING = "fill_missing"
    OVERWRITE = "overwrite"

    @classmethod
    def from_name(cls, name: Union[str, "MergePolicy", None]) -> "MergePolicy":
        if isinstance(name, MergePolicy):
            return name
        if not name:
            return cls(MERGE_CONFIG["DEFAULT_POLICY"])
        try:
            return cls(str(name).strip().lower().replace("-", "_"))
        except ValueError:
            raise ValueError(f"Unknown merge policy: {name}") from None


def is_empty(value: Any) -> bool:
    """Check whether a field value counts as unset."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def merge_field(existing: Any, incoming: Any, policy: MergePolicy = MergePolicy.FILL_MISSING) -> Any:
    """
    Combine one scalar field.

    fill_missing uses the incoming value only when the existing one is
    empty; overwrite uses it whenever it is non-empty.
    """
    if is_empty(incoming):
        return existing
    if policy is MergePolicy.OVERWRITE or is_empty(existing):
        return copy.deepcopy(incoming)
    return existing


def merge_title(existing: str, incoming: str, policy: MergePolicy = MergePolicy.FILL_MISSING) -> str:
    """Like merge_field, but placeholder titles count as empty on both sides."""
    if is_placeholder_title(incoming):
        incoming = "" if not is_empty(existing) else incoming
    if is_placeholder_title(existing) and not is_empty(incoming):
        return incoming
    return merge_field(existing, incoming, policy)


def merge_set(existing: Optional[Iterable[str]], incoming: Optional[Iterable[str]]) -> List[str]:
    """Set union for additive list fields; existing order first, policy ignored."""
    out: List[str] = []
    for value in list(existing or []) + list(incoming or []):
        if value and value not in out:
            out.append(value)
    return out


def merge_count(existing: Optional[int], incoming: Optional[int], derived: bool = False) -> Optional[int]:
    """
    Combine a numeric hint.

    Always fill_missing, even under the overwrite policy, unless the
    incoming value was computed from an authoritative track list.
    """
    if incoming is None:
        return existing
    if derived or existing is None:
        return incoming
    return existing


def merge_first_writer(existing: str, incoming: str, field_name: str, entity_id: str) -> Tuple[str, Optional[str]]:
    """Keep the first non-empty value of an identity code; report a differing later value."""
    if is_empty(existing):
        return incoming, None
    if not is_empty(incoming) and incoming != existing:
        note = f"{entity_id}: kept {field_name} {existing}, ignored differing {incoming}"
        logger.warning(note)
        return existing, note
    return existing, None


def merge_refs(
    existing: Dict[str, Dict[str, str]],
    incoming: Dict[str, Dict[str, str]],
    policy: MergePolicy = MergePolicy.FILL_MISSING
) -> Dict[str, Dict[str, str]]:
    """Merge per-source identifier maps key by key under the given policy."""
    merged = copy.deepcopy(existing or {})
    for source, ids in (incoming or {}).items():
        target = merged.setdefault(source, {})
        for key, value in ids.items():
            target[key] = merge_field(target.get(key, ""), value, policy)
    return merged


class EntityMerger:
    """Applies the merge policy to whole entities. Inputs are never mutated."""

    def __init__(self, policy: MergePolicy = MergePolicy.FILL_MISSING):
        self.policy = policy

    def merge_collection(self, existing: Collection, incoming: Collection) -> Tuple[Collection, List[str]]:
        """
        Merge an incoming collection into an existing one.

        Returns:
            Tuple of (merged collection, list of conflict notes)
        """
        notes: List[str] = []
        merged = copy.deepcopy(existing)
        policy = self.policy

        merged.title = merge_title(existing.title, incoming.title, policy)
        merged.artist = merge_field(existing.artist, incoming.artist, policy)
        merged.release_date = merge_field(existing.release_date, incoming.release_date, policy)
        merged.cover = merge_field(existing.cover, incoming.cover, policy)
        merged.track_count = merge_count(existing.track_count, incoming.track_count)

        merged.upc, note = merge_first_writer(existing.upc, incoming.upc, "upc", existing.id)
        if note:
            notes.append(note)

        merged.tags = merge_set(existing.tags, incoming.tags)
        merged.style_tags = merge_set(existing.style_tags, incoming.style_tags)
        merged.links = merge_links(existing.links, incoming.links)
        merged.embeds = merge_embeds(existing.embeds, incoming.embeds)
        merged.refs = merge_refs(existing.refs, incoming.refs, policy)
        return merged, notes

    def merge_track(self, existing: Track, incoming: Track, rebind: bool = False) -> Tuple[Track, List[str]]:
        """
        Merge an incoming track into an existing one.

        Args:
            existing: Track already in the catalog
            incoming: Incoming record
            rebind: Move the track to the incoming collection when it names one

        Returns:
            Tuple of (merged track, list of conflict notes)
        """
        notes: List[str] = []
        merged = copy.deepcopy(existing)
        policy = self.policy

        merged.title = merge_title(existing.title, incoming.title, policy)
        for name in ("artist", "release_date", "cover", "lyrics", "mood",
                     "inspiration", "duration", "version", "created_at"):
            setattr(merged, name, merge_field(getattr(existing, name), getattr(incoming, name), policy))

        merged.isrc, note = merge_first_writer(existing.isrc, incoming.isrc, "isrc", existing.id)
        if note:
            notes.append(note)

        if rebind and incoming.collection_id:
            merged.collection_id = incoming.collection_id
        else:
            merged.collection_id = existing.collection_id or incoming.collection_id

        merged.track_no = merge_count(existing.track_no, incoming.track_no)
        merged.tags = merge_set(existing.tags, incoming.tags)
        merged.style_tags = merge_set(existing.style_tags, incoming.style_tags)
        merged.links = merge_links(existing.links, incoming.links)
        merged.embeds = merge_embeds(existing.embeds, incoming.embeds)
        merged.refs = merge_refs(existing.refs, incoming.refs, policy)
        return merged, notes

    def merge(self, existing, incoming, rebind: bool = False):
        if isinstance(existing, Collection) and isinstance(incoming, Collection):
            return self.merge_collection(existing, incoming)
        if isinstance(existing, Track) and isinstance(incoming, Track):
            return self.merge_track(existing, incoming, rebind=rebind)
        raise TypeError(f"Cannot merge {type(incoming).__name__} into {type(existing).__name__}")
