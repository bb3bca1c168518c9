"""
Catalog entity models and the input boundary that builds them.

Records arrive as loosely shaped dicts from importers. `parse_record`
checks the `type` discriminant before touching any other field and
returns either a Collection or a Track; nothing past this module sees a
raw dict.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..core.config import COLLECTION_TYPES, TRACK_TYPES, ERROR_MESSAGES
from ..core.exceptions import MalformedInputError
from ..utils.string_utils import to_text, normalize_code
from .links import Link, Embed


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _string_list(value: Any, field_name: str, record_id: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        raise MalformedInputError(f"{field_name} must be a list", record_id)
    out: List[str] = []
    for item in value:
        text = to_text(item)
        if text and text not in out:
            out.append(text)
    return out


def _dict_list(value: Any, field_name: str, record_id: str) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedInputError(f"{field_name} must be a list", record_id)
    return [item for item in value if isinstance(item, dict)]


def _refs(value: Any, record_id: str) -> Dict[str, Dict[str, str]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedInputError("refs must be an object", record_id)
    refs: Dict[str, Dict[str, str]] = {}
    for source, ids in value.items():
        if not isinstance(ids, dict):
            continue
        cleaned = {str(k): to_text(v) for k, v in ids.items() if to_text(v)}
        if cleaned:
            refs[str(source)] = cleaned
    return refs


@dataclass
class Collection:
    """An album, playlist, or similar grouping of tracks."""
    id: str
    type: str = "album"
    title: str = ""
    artist: str = ""
    release_date: str = ""
    cover: str = ""
    track_count: Optional[int] = None
    upc: str = ""
    tags: List[str] = field(default_factory=list)
    style_tags: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    embeds: List[Embed] = field(default_factory=list)
    refs: Dict[str, Dict[str, str]] = field(default_factory=dict)

    kind = "collection"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "artist": self.artist,
            "releaseDate": self.release_date,
            "cover": self.cover,
        }
        if self.track_count is not None:
            data["trackCount"] = self.track_count
        data["upc"] = self.upc
        data["tags"] = list(self.tags)
        if self.style_tags:
            data["styleTags"] = list(self.style_tags)
        data["links"] = [link.to_dict() for link in self.links]
        data["embeds"] = [embed.to_dict() for embed in self.embeds]
        data["refs"] = copy.deepcopy(self.refs)
        return data


@dataclass
class Track:
    """A song. Belongs to exactly one collection, or none while orphaned."""
    id: str
    title: str = ""
    artist: str = ""
    release_date: str = ""
    cover: str = ""
    collection_id: str = ""
    isrc: str = ""
    track_no: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    embeds: List[Embed] = field(default_factory=list)
    refs: Dict[str, Dict[str, str]] = field(default_factory=dict)
    lyrics: str = ""
    mood: str = ""
    style_tags: List[str] = field(default_factory=list)
    inspiration: Optional[Dict[str, Any]] = None
    duration: str = ""
    version: str = ""
    created_at: str = ""

    kind = "track"
    type = "song"

    @property
    def playable(self) -> bool:
        return bool(self.embeds)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "artist": self.artist,
            "releaseDate": self.release_date,
            "cover": self.cover,
            "collectionId": self.collection_id,
            "isrc": self.isrc,
        }
        if self.track_no is not None:
            data["trackNo"] = self.track_no
        data["tags"] = list(self.tags)
        data["links"] = [link.to_dict() for link in self.links]
        data["embeds"] = [embed.to_dict() for embed in self.embeds]
        data["refs"] = copy.deepcopy(self.refs)
        # Enrichment fields are only written once known
        for key, value in (
            ("lyrics", self.lyrics),
            ("mood", self.mood),
            ("duration", self.duration),
            ("version", self.version),
            ("createdAt", self.created_at),
        ):
            if value:
                data[key] = value
        if self.style_tags:
            data["styleTags"] = list(self.style_tags)
        if self.inspiration:
            data["inspiration"] = copy.deepcopy(self.inspiration)
        return data


Entity = Union[Collection, Track]


def derive_id(kind: str, upc: str = "", isrc: str = "") -> str:
    """Derive a stable id from a content code, or return '' when there is none."""
    if kind == "collection" and upc:
        return f"upc-{upc}"
    if kind == "track" and isrc:
        return f"isrc-{isrc}"
    return ""


def parse_record(data: Any) -> Entity:
    """
    Validate one incoming record and build the matching entity.

    Args:
        data: Raw record as produced by an importer

    Returns:
        Collection or Track

    Raises:
        MalformedInputError: If the record has no usable type or id, or a field has the wrong shape
    """
    if not isinstance(data, dict):
        raise MalformedInputError("Record must be an object")

    record_type = to_text(data.get("type")).lower()
    raw_id = to_text(data.get("id"))
    if not record_type:
        raise MalformedInputError(ERROR_MESSAGES["MISSING_TYPE"], raw_id)

    if record_type in COLLECTION_TYPES:
        return _parse_collection(data, record_type, raw_id)
    if record_type in TRACK_TYPES:
        return _parse_track(data, raw_id)
    raise MalformedInputError(f"{ERROR_MESSAGES['UNKNOWN_TYPE']} ({record_type})", raw_id)


def _parse_collection(data: Dict[str, Any], record_type: str, raw_id: str) -> Collection:
    upc = normalize_code(data.get("upc"))
    record_id = raw_id or derive_id("collection", upc=upc)
    if not record_id:
        raise MalformedInputError(ERROR_MESSAGES["MISSING_ID"])

    return Collection(
        id=record_id,
        type=record_type,
        title=to_text(data.get("title")),
        artist=to_text(data.get("artist")),
        release_date=to_text(data.get("releaseDate")),
        cover=to_text(data.get("cover")),
        track_count=_int_or_none(data.get("trackCount")),
        upc=upc,
        tags=_string_list(data.get("tags"), "tags", record_id),
        style_tags=_string_list(data.get("styleTags"), "styleTags", record_id),
        links=[Link.from_dict(d) for d in _dict_list(data.get("links"), "links", record_id)],
        embeds=[Embed.from_dict(d) for d in _dict_list(data.get("embeds"), "embeds", record_id)],
        refs=_refs(data.get("refs"), record_id),
    )


def _parse_track(data: Dict[str, Any], raw_id: str) -> Track:
    isrc = normalize_code(data.get("isrc"))
    record_id = raw_id or derive_id("track", isrc=isrc)
    if not record_id:
        raise MalformedInputError(ERROR_MESSAGES["MISSING_ID"])

    inspiration = data.get("inspiration")
    if inspiration is not None and not isinstance(inspiration, dict):
        raise MalformedInputError("inspiration must be an object", record_id)

    return Track(
        id=record_id,
        title=to_text(data.get("title")),
        artist=to_text(data.get("artist")),
        release_date=to_text(data.get("releaseDate")),
        cover=to_text(data.get("cover")),
        collection_id=to_text(data.get("collectionId")),
        isrc=isrc,
        track_no=_int_or_none(data.get("trackNo")),
        tags=_string_list(data.get("tags"), "tags", record_id),
        links=[Link.from_dict(d) for d in _dict_list(data.get("links"), "links", record_id)],
        embeds=[Embed.from_dict(d) for d in _dict_list(data.get("embeds"), "embeds", record_id)],
        refs=_refs(data.get("refs"), record_id),
        lyrics=to_text(data.get("lyrics")),
        mood=to_text(data.get("mood")),
        style_tags=_string_list(data.get("styleTags"), "styleTags", record_id),
        inspiration=copy.deepcopy(inspiration) if inspiration else None,
        duration=to_text(data.get("duration")),
        version=to_text(data.get("version")),
        created_at=to_text(data.get("createdAt")),
    )
