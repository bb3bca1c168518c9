"""
Data models for Ariadne.
"""

from .links import Link, Embed
from .entities import Collection, Track, Entity, parse_record, derive_id
from .report import RunReport, SkipEntry, UpsertResult
from .enrichment import EnrichmentRecord

__all__ = [
    'Link',
    'Embed',
    'Collection',
    'Track',
    'Entity',
    'parse_record',
    'derive_id',
    'RunReport',
    'SkipEntry',
    'UpsertResult',
    'EnrichmentRecord',
]
