"""
Platform link and playable embed models.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..utils.string_utils import to_text


@dataclass
class Link:
    """External platform link. One per platform per entity; url may be empty."""
    platform: str
    label: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        return cls(
            platform=to_text(data.get("platform")),
            label=to_text(data.get("label")),
            url=to_text(data.get("url")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"platform": self.platform, "label": self.label, "url": self.url}


@dataclass
class Embed:
    """Playable resource on a platform."""
    platform: str
    label: str = ""
    url: str = ""
    height: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Embed":
        height = data.get("height")
        if isinstance(height, bool) or not isinstance(height, (int, float)):
            height = None
        return cls(
            platform=to_text(data.get("platform")),
            label=to_text(data.get("label")),
            url=to_text(data.get("url")),
            height=int(height) if height is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"platform": self.platform, "label": self.label, "url": self.url}
        if self.height is not None:
            data["height"] = self.height
        return data
