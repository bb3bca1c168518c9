"""
Link and embed merging.

Links are unique per normalized platform key; embeds are unique per
(platform key, url) pair. Both merges are pure: inputs are never mutated
and merging a list with itself returns an equal list.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from ..core.config import MERGE_CONFIG
from ..models.links import Link, Embed
from .string_utils import platform_key, to_text


def _canonical_platform(link_platform: str) -> str:
    """Keep the display spelling unless the platform is folded into another one."""
    raw = to_text(link_platform)
    key = platform_key(raw)
    folded = raw.lower().replace(" ", "")
    if key != folded:
        return key
    return raw


def _has_generic_label(link: Link) -> bool:
    label = to_text(link.label).lower()
    if not label:
        return True
    return label in (platform_key(link.platform), to_text(link.platform).lower(), MERGE_CONFIG["GENERIC_LINK_LABEL"])


def merge_links(existing: Iterable[Link], incoming: Iterable[Link]) -> List[Link]:
    """
    Union two link lists, one entry per platform.

    For a platform present on both sides the existing link is kept; its
    url is filled when empty and its label replaced only when it is empty,
    the bare platform name, or the generic "Link" placeholder.
    """
    by_platform: Dict[str, Link] = {}

    for link in existing or []:
        key = platform_key(link.platform)
        if not key:
            continue
        if key in by_platform:
            # Existing list already had a duplicate; fold it like an incoming link
            by_platform[key] = _combine(by_platform[key], link)
            continue
        by_platform[key] = replace(link, platform=_canonical_platform(link.platform))

    for link in incoming or []:
        key = platform_key(link.platform)
        if not key:
            continue
        previous = by_platform.get(key)
        if previous is None:
            by_platform[key] = replace(link, platform=_canonical_platform(link.platform))
            continue
        by_platform[key] = _combine(previous, link)

    return list(by_platform.values())


def _combine(previous: Link, link: Link) -> Link:
    merged = replace(previous)
    if not merged.url and link.url:
        merged.url = link.url
    if link.label and _has_generic_label(merged):
        merged.label = link.label
    return merged


def merge_embeds(existing: Iterable[Embed], incoming: Iterable[Embed]) -> List[Embed]:
    """
    Union two embed lists, deduplicated by (platform key, url).

    A platform may offer several distinct playable resources, so two embeds
    are the same only when both platform and url match. Embeds without a
    url are dropped since there is nothing to play.
    """
    seen: Dict[Tuple[str, str], Embed] = {}
    for embed in list(existing or []) + list(incoming or []):
        url = to_text(embed.url)
        if not url:
            continue
        key = (platform_key(embed.platform), url)
        if key in seen:
            previous = seen[key]
            if previous.height is None and embed.height is not None:
                seen[key] = replace(previous, height=embed.height)
            continue
        seen[key] = replace(embed, url=url)
    return list(seen.values())
