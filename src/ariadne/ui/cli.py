"""
Ariadne CLI Module
Command-line interface for merging, enriching and auditing the catalog.
"""

import argparse
import json
from pathlib import Path
from typing import List, Optional

from ..core.config import (
    PROJECT_NAME, PROJECT_VERSION, FETCH_CONFIG, CROSS_LINK_CONFIG, PLAYLIST_CONFIG, LYRICS_PLACEHOLDER_CONFIG
)
from ..core.exceptions import AriadneError
from ..core.logger import get_logger, setup_logging
from ..services.catalog_store import CatalogStore, load_catalog, save_catalog
from ..services.cross_link import CrossLinker
from ..services.enrichment import Enricher
from ..services.fetch_pool import FetchPool
from ..services.importer import BatchImporter, ImportOptions, load_record_batches
from ..services.lyrics_placeholder import fill_lyrics_placeholder
from ..services.lyrics_report import missing_lyrics_report
from ..services.lyrics_sync import LyricsSyncService
from ..services.merge_policy import MergePolicy
from ..services.playlist_attach import PlaylistAttacher, load_playlist
from .display import DisplayManager

logger = get_logger("cli")


class AriadneCLI:
    """Main CLI class for the Ariadne catalog merge tool."""

    def __init__(self, display_manager: Optional[DisplayManager] = None,
                 lyrics_service: Optional[LyricsSyncService] = None):
        self.display_manager = display_manager or DisplayManager()
        self.importer = BatchImporter()
        self.lyrics_service = lyrics_service

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog=PROJECT_NAME.lower(),
            description=f"{PROJECT_NAME} - Music catalog merge engine v{PROJECT_VERSION}",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s merge distrokid.json catalog.json --source distrokid --tag distrokid --rebind-by-isrc
  %(prog)s merge netease-albums.json catalog.json --apply
  %(prog)s enrich local-metadata.json catalog.json --apply
  %(prog)s sync-lyrics catalog.json --collection-id netease-album-1 --concurrency 4 --apply
  %(prog)s missing-lyrics catalog.json --out missing-lyrics.json
  %(prog)s cross-link catalog.json --from netease --to distrokid --apply
  %(prog)s attach-playlist catalog.json --collection-id distrokid-album-1 --records youtube-playlist.json
  %(prog)s attach-playlist catalog.json --collection-id distrokid-album-1 --by-index PLxyz
  %(prog)s fill-lyrics catalog.json --instrumental --apply

All writing commands are dry runs unless --apply is given.
            """
        )

        parser.add_argument(
            '--version',
            action='version',
            version=f'{PROJECT_NAME} {PROJECT_VERSION}'
        )

        parser.add_argument(
            '-v', '--verbose',
            action='store_true',
            help='Show debug logging'
        )

        subparsers = parser.add_subparsers(
            dest='mode',
            help='Available commands',
            required=True
        )

        merge_parser = subparsers.add_parser(
            'merge',
            help='Merge collection and track records into the catalog'
        )
        self._add_merge_args(merge_parser)

        enrich_parser = subparsers.add_parser(
            'enrich',
            help='Apply title-keyed metadata (lyrics, mood, tags) to existing tracks'
        )
        self._add_enrich_args(enrich_parser)

        sync_parser = subparsers.add_parser(
            'sync-lyrics',
            help='Fetch lyrics from NetEase for tracks with a NetEase song id'
        )
        self._add_sync_lyrics_args(sync_parser)

        missing_parser = subparsers.add_parser(
            'missing-lyrics',
            help='Report tracks that have no lyrics yet'
        )
        missing_parser.add_argument('catalog', help='Catalog JSON file')
        missing_parser.add_argument('--out', help='Write the JSON report to this path')
        missing_parser.add_argument('--json', action='store_true', help='Print the report as JSON')

        cross_parser = subparsers.add_parser(
            'cross-link',
            help="Copy links, embeds and ids between two sources' copies of the same releases"
        )
        self._add_cross_link_args(cross_parser)

        playlist_parser = subparsers.add_parser(
            'attach-playlist',
            help='Attach playlist links and embeds to the tracks of an existing collection'
        )
        self._add_attach_playlist_args(playlist_parser)

        placeholder_parser = subparsers.add_parser(
            'fill-lyrics',
            help='Write a placeholder into the lyrics of instrumental tracks'
        )
        self._add_fill_lyrics_args(placeholder_parser)

        return parser

    def _add_write_args(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Write changes to the catalog (default: dry run)'
        )
        parser.add_argument(
            '--overwrite',
            action='store_true',
            help='Replace existing values instead of only filling missing ones'
        )
        parser.add_argument(
            '--json',
            action='store_true',
            help='Print the run report as JSON'
        )

    def _add_merge_args(self, parser: argparse.ArgumentParser):
        """Add arguments for merge mode."""
        parser.add_argument('records', help='Records JSON file')
        parser.add_argument('catalog', help='Catalog JSON file (created if missing)')
        self._add_write_args(parser)
        parser.add_argument(
            '--rebind-by-isrc',
            action='store_true',
            help='Move tracks matched by ISRC to the collection named by the incoming record'
        )
        parser.add_argument(
            '--source',
            default='',
            help='Source name used in the report (default: records file name)'
        )
        parser.add_argument(
            '--tag',
            action='append',
            default=[],
            help='Tag added to every touched entity (repeatable)'
        )

    def _add_enrich_args(self, parser: argparse.ArgumentParser):
        """Add arguments for enrich mode."""
        parser.add_argument('records', help='Enrichment records JSON file')
        parser.add_argument('catalog', help='Catalog JSON file')
        self._add_write_args(parser)
        parser.add_argument(
            '--keep-noise',
            action='store_true',
            help='Do not filter lyrics that look like captured app screens'
        )

    def _add_sync_lyrics_args(self, parser: argparse.ArgumentParser):
        """Add arguments for sync-lyrics mode."""
        parser.add_argument('catalog', help='Catalog JSON file')
        self._add_write_args(parser)
        parser.add_argument(
            '--collection-id',
            action='append',
            default=[],
            help='Only tracks of this collection (repeatable)'
        )
        parser.add_argument(
            '--limit',
            type=int,
            help='Only the first N matched tracks'
        )
        parser.add_argument(
            '--concurrency',
            type=int,
            default=FETCH_CONFIG["MAX_WORKERS"],
            help=f'Parallel fetches (default: {FETCH_CONFIG["MAX_WORKERS"]}, max: {FETCH_CONFIG["MAX_WORKERS_LIMIT"]})'
        )
        parser.add_argument(
            '--deadline',
            type=float,
            help='Stop starting new fetches after this many seconds'
        )

    def _add_cross_link_args(self, parser: argparse.ArgumentParser):
        """Add arguments for cross-link mode."""
        parser.add_argument('catalog', help='Catalog JSON file')
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Write changes to the catalog (default: dry run)'
        )
        parser.add_argument('--json', action='store_true', help='Print the run report as JSON')
        parser.add_argument(
            '--from',
            dest='source',
            default=CROSS_LINK_CONFIG["DEFAULT_SOURCE"],
            help=f'Source whose links and embeds are copied (default: {CROSS_LINK_CONFIG["DEFAULT_SOURCE"]})'
        )
        parser.add_argument(
            '--to',
            dest='target',
            default=CROSS_LINK_CONFIG["DEFAULT_TARGET"],
            help=f'Source whose collections receive them (default: {CROSS_LINK_CONFIG["DEFAULT_TARGET"]})'
        )
        parser.add_argument('--collection-id', help='Only this target collection')

    def _add_attach_playlist_args(self, parser: argparse.ArgumentParser):
        """Add arguments for attach-playlist mode."""
        parser.add_argument('catalog', help='Catalog JSON file')
        parser.add_argument('--collection-id', required=True, help='Collection that receives the playlist')
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Write changes to the catalog (default: dry run)'
        )
        parser.add_argument('--json', action='store_true', help='Print the run report as JSON')
        source_group = parser.add_mutually_exclusive_group(required=True)
        source_group.add_argument(
            '--records',
            help='Playlist records JSON file (one playlist collection and its songs)'
        )
        source_group.add_argument(
            '--by-index',
            metavar='PLAYLIST_ID',
            help='Link every track to its position in this playlist instead of pairing records'
        )
        parser.add_argument('--playlist-id', help='Playlist collection id inside --records')
        parser.add_argument(
            '--platform',
            default=PLAYLIST_CONFIG["PLATFORM"],
            help=f'Platform tag added to touched entities (default: {PLAYLIST_CONFIG["PLATFORM"]})'
        )

    def _add_fill_lyrics_args(self, parser: argparse.ArgumentParser):
        """Add arguments for fill-lyrics mode."""
        parser.add_argument('catalog', help='Catalog JSON file')
        self._add_write_args(parser)
        parser.add_argument(
            '--placeholder',
            default=LYRICS_PLACEHOLDER_CONFIG["PLACEHOLDER"],
            help=f'Lyrics text to write (default: {LYRICS_PLACEHOLDER_CONFIG["PLACEHOLDER"]})'
        )
        parser.add_argument(
            '--collection-id',
            action='append',
            default=[],
            help='Tracks of this collection (repeatable)'
        )
        parser.add_argument(
            '--collection-title',
            action='append',
            default=[],
            help='Tracks of collections with this title (repeatable)'
        )
        parser.add_argument(
            '--tag',
            action='append',
            default=[],
            help='Tracks carrying this tag, or in a collection carrying it (repeatable)'
        )
        parser.add_argument(
            '--instrumental',
            action='store_true',
            help=f'Add the instrumental tags: {", ".join(LYRICS_PLACEHOLDER_CONFIG["INSTRUMENTAL_TAGS"])}'
        )

    def _policy(self, parsed_args) -> MergePolicy:
        if getattr(parsed_args, 'overwrite', False):
            return MergePolicy.OVERWRITE
        return MergePolicy.from_name(None)

    def _working_copy(self, store: CatalogStore, apply: bool) -> CatalogStore:
        return store if apply else store.copy()

    def _finish(self, store: CatalogStore, catalog_path: str, apply: bool):
        if apply:
            path = save_catalog(store, catalog_path)
            logger.info(f"Wrote catalog {path}")
            self.display_manager.display_success(f"Catalog written: {path}")

    def handle_merge(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        batches = load_record_batches(parsed_args.records, parsed_args.source)

        reports = []
        for source, records in batches:
            options = ImportOptions(
                source=parsed_args.source or source,
                policy=self._policy(parsed_args),
                rebind_by_isrc=parsed_args.rebind_by_isrc,
                source_tags=list(parsed_args.tag),
            )
            reports.append(self.importer.import_batch(working, records, options))

        if parsed_args.json:
            self.display_manager.print_json({"apply": parsed_args.apply, "batches": [r.to_dict() for r in reports]})
        else:
            for report in reports:
                self.display_manager.display_run_report(report, applied=parsed_args.apply)
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def handle_enrich(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        enricher = Enricher(policy=self._policy(parsed_args), filter_noise=not parsed_args.keep_noise)

        reports = []
        for source, records in load_record_batches(parsed_args.records):
            reports.append(enricher.enrich(working, records, source=source))

        if parsed_args.json:
            self.display_manager.print_json({"apply": parsed_args.apply, "batches": [r.to_dict() for r in reports]})
        else:
            for report in reports:
                self.display_manager.display_run_report(report, applied=parsed_args.apply, title="ENRICHMENT REPORT")
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def handle_sync_lyrics(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        service = self.lyrics_service or LyricsSyncService(
            pool=FetchPool(max_workers=parsed_args.concurrency, deadline=parsed_args.deadline)
        )
        report = service.sync(
            working,
            policy=self._policy(parsed_args),
            collection_ids=parsed_args.collection_id,
            limit=parsed_args.limit,
        )

        if parsed_args.json:
            data = report.to_dict()
            data["apply"] = parsed_args.apply
            self.display_manager.print_json(data)
        else:
            self.display_manager.display_lyrics_sync(report, applied=parsed_args.apply)
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def handle_missing_lyrics(self, parsed_args) -> int:
        report = missing_lyrics_report(load_catalog(parsed_args.catalog))
        if parsed_args.out:
            out_path = Path(parsed_args.out)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with open(out_path, "w", encoding="utf-8") as f:
                json.dump(report, f, ensure_ascii=False, indent=2)
                f.write("\n")
            self.display_manager.display_success(
                f"Report written: {out_path} ({report['missingLyricsSongs']} of {report['totalSongs']} songs)"
            )
        elif parsed_args.json:
            self.display_manager.print_json(report)
        else:
            self.display_manager.display_missing_lyrics(report)
        return 0

    def handle_cross_link(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        linker = CrossLinker(source=parsed_args.source, target=parsed_args.target)
        report = linker.link(working, collection_id=parsed_args.collection_id)

        data = report.to_dict()
        if parsed_args.json:
            data["apply"] = parsed_args.apply
            self.display_manager.print_json(data)
        else:
            self.display_manager.display_summary("CROSS-LINK", data, applied=parsed_args.apply)
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def handle_attach_playlist(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        attacher = PlaylistAttacher(platform=parsed_args.platform)
        if parsed_args.by_index:
            report = attacher.attach_by_index(working, parsed_args.collection_id, parsed_args.by_index)
        else:
            records = [r for _, batch in load_record_batches(parsed_args.records) for r in batch]
            playlist, items = load_playlist(records, parsed_args.playlist_id)
            report = attacher.attach(working, parsed_args.collection_id, playlist, items)

        data = report.to_dict()
        if parsed_args.json:
            data["apply"] = parsed_args.apply
            self.display_manager.print_json(data)
        else:
            self.display_manager.display_summary("PLAYLIST ATTACH", data, applied=parsed_args.apply)
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def handle_fill_lyrics(self, parsed_args) -> int:
        store = load_catalog(parsed_args.catalog)
        working = self._working_copy(store, parsed_args.apply)
        tags = list(parsed_args.tag)
        if parsed_args.instrumental:
            tags += [t for t in LYRICS_PLACEHOLDER_CONFIG["INSTRUMENTAL_TAGS"] if t not in tags]
        data = fill_lyrics_placeholder(
            working,
            placeholder=parsed_args.placeholder,
            policy=self._policy(parsed_args),
            collection_ids=parsed_args.collection_id,
            collection_titles=parsed_args.collection_title,
            tags=tags,
        )

        if parsed_args.json:
            data["apply"] = parsed_args.apply
            self.display_manager.print_json(data)
        else:
            self.display_manager.display_summary("LYRICS PLACEHOLDER", data, applied=parsed_args.apply)
        self._finish(working, parsed_args.catalog, parsed_args.apply)
        return 0

    def run(self, args: List[str] = None) -> int:
        """Run the CLI with given arguments and return the exit code."""
        parser = self.create_parser()
        parsed_args = parser.parse_args(args)
        if parsed_args.verbose:
            setup_logging(level="DEBUG")

        handlers = {
            'merge': self.handle_merge,
            'enrich': self.handle_enrich,
            'sync-lyrics': self.handle_sync_lyrics,
            'missing-lyrics': self.handle_missing_lyrics,
            'cross-link': self.handle_cross_link,
            'attach-playlist': self.handle_attach_playlist,
            'fill-lyrics': self.handle_fill_lyrics,
        }
        try:
            return handlers[parsed_args.mode](parsed_args)
        except KeyboardInterrupt:
            self.display_manager.console.print("\n[yellow]⚠[/yellow] Operation cancelled by user.")
            return 1
        except (AriadneError, OSError, ValueError) as e:
            logger.debug(f"{parsed_args.mode} failed", exc_info=True)
            self.display_manager.display_error(f"An error occurred: {e}")
            return 1
