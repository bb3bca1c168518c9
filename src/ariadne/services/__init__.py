"""
Core services for Ariadne.
"""

from .merge_policy import MergePolicy, EntityMerger
from .catalog_store import CatalogStore, load_catalog, save_catalog
from .identity_resolver import IdentityResolver, Match
from .ambiguity_guard import AmbiguityGuard, is_ambiguous
from .importer import BatchImporter, ImportOptions
from .enrichment import Enricher
from .fetch_pool import FetchPool
from .lyrics_sync import LyricsSyncService
from .lyrics_report import missing_lyrics_report
from .cross_link import CrossLinker
from .playlist_attach import PlaylistAttacher
from .lyrics_placeholder import fill_lyrics_placeholder

__all__ = [
    'MergePolicy',
    'EntityMerger',
    'CatalogStore',
    'load_catalog',
    'save_catalog',
    'IdentityResolver',
    'Match',
    'AmbiguityGuard',
    'is_ambiguous',
    'BatchImporter',
    'ImportOptions',
    'Enricher',
    'FetchPool',
    'LyricsSyncService',
    'missing_lyrics_report',
    'CrossLinker',
    'PlaylistAttacher',
    'fill_lyrics_placeholder'
]
