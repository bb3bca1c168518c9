"""
Enrichment record model.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.exceptions import MalformedInputError
from ..utils.string_utils import to_text, normalize_code


@dataclass
class EnrichmentRecord:
    """Metadata for a track known only by title (and maybe its collection title or ISRC)."""
    title: str
    collection_title: str = ""
    isrc: str = ""
    lyrics: str = ""
    mood: str = ""
    style_tags: List[str] = field(default_factory=list)
    inspiration: Optional[Dict[str, Any]] = None
    duration: str = ""
    version: str = ""
    created_at: str = ""
    source: str = ""

    @property
    def label(self) -> str:
        if self.collection_title:
            return f"{self.collection_title} / {self.title}"
        return self.title or self.collection_title

    @classmethod
    def from_dict(cls, data: Any) -> "EnrichmentRecord":
        if not isinstance(data, dict):
            raise MalformedInputError("Enrichment record must be an object")
        title = to_text(data.get("title"))
        collection_title = to_text(data.get("collectionTitle"))
        isrc = normalize_code(data.get("isrc"))
        if not title and not collection_title and not isrc:
            raise MalformedInputError("Enrichment record needs a title, collectionTitle or isrc")

        inspiration = data.get("inspiration")
        if inspiration is not None and not isinstance(inspiration, dict):
            raise MalformedInputError("inspiration must be an object", title)

        style_tags = data.get("styleTags") or []
        if not isinstance(style_tags, list):
            raise MalformedInputError("styleTags must be a list", title)

        return cls(
            title=title,
            collection_title=collection_title,
            isrc=isrc,
            lyrics=to_text(data.get("lyrics")),
            mood=to_text(data.get("mood")),
            style_tags=[to_text(t) for t in style_tags if to_text(t)],
            inspiration=copy.deepcopy(inspiration) if inspiration else None,
            duration=to_text(data.get("duration")),
            version=to_text(data.get("version")),
            created_at=to_text(data.get("createdAt")),
            source=to_text(data.get("source")),
        )

    def track_fields(self) -> Dict[str, Any]:
        """Non-empty track fields carried by this record, keyed by attribute name."""
        fields = {
            "lyrics": self.lyrics,
            "mood": self.mood,
            "style_tags": list(self.style_tags),
            "inspiration": self.inspiration,
            "duration": self.duration,
            "version": self.version,
            "created_at": self.created_at,
        }
        return {name: value for name, value in fields.items() if value}
