"""
Tests for batch import.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.core.exceptions import MalformedInputError
from ariadne.models.entities import Collection, Track
from ariadne.models.report import SKIP_MALFORMED, SKIP_NO_MATCH, SKIP_DISALLOWED_CREATE, SKIP_CONFLICT
from ariadne.services.catalog_store import CatalogStore
from ariadne.services.importer import BatchImporter, ImportOptions, extract_batches, load_record_batches
from ariadne.services.merge_policy import MergePolicy


def album(**fields):
    return dict({"type": "album"}, **fields)


def song(**fields):
    return dict({"type": "song"}, **fields)


class TestCreate:
    """Tests for records that create new entities."""

    def test_new_collection_with_tracks(self, empty_store):
        """Test a first import: id derived from UPC, tracks attached, count derived."""
        records = [
            album(title="New Album", upc="UPC9"),
            song(id="n-1", title="One", collectionId="upc-UPC9", trackNo=1),
            song(id="n-2", title="Two", collectionId="upc-UPC9", trackNo=2),
        ]
        report = BatchImporter().import_batch(empty_store, records, ImportOptions(source="netease"))

        assert report.created == {"collection": 1, "track": 2}
        assert empty_store.get("upc-UPC9").track_count == 2
        assert [t.id for t in empty_store.tracks_of("upc-UPC9")] == ["n-1", "n-2"]
        assert report.counters["trackCountRefreshed"] == 1

    def test_orphan_track_is_created(self, empty_store):
        """Test that a track without a collection may be created."""
        report = BatchImporter().import_batch(empty_store, [song(isrc="USXXX0000001", title="Loose")])

        assert report.created["track"] == 1
        assert empty_store.get("isrc-USXXX0000001").title == "Loose"

    def test_source_tags_are_added(self, empty_store):
        """Test that batch tags land on every entity."""
        options = ImportOptions(source="distrokid", source_tags=["distrokid"])
        BatchImporter().import_batch(empty_store, [album(id="a1", tags=["x"])], options)

        assert empty_store.get("a1").tags == ["x", "distrokid"]


class TestMerge:
    """Tests for records that resolve to existing entities."""

    def test_album_merge_by_upc_with_placeholder_title(self, sample_store):
        """Test that a placeholder title neither matches nor overwrites."""
        records = [
            album(id="netease-album-9", title="(未命名专辑)", upc="UPC1", cover="cover.jpg"),
            song(id="netease-song-1", title="Intro", collectionId="netease-album-9"),
        ]
        report = BatchImporter().import_batch(sample_store, records, ImportOptions(source="netease"))

        spring = sample_store.get("spring")
        assert spring.title == "Spring"
        assert spring.cover == "cover.jpg"
        assert report.merged == {"collection": 1, "track": 1}
        assert report.created == {"collection": 0, "track": 0}
        assert "netease-album-9" not in sample_store
        assert "netease-song-1" not in sample_store
        assert report.counters["match:upc"] == 1
        assert report.counters["match:title"] == 1

    def test_track_merge_by_isrc(self, sample_store):
        """Test that ISRC matches a track with a different title."""
        records = [song(id="dk-1", title="Opening", isrc="usaaa 2400001", collectionId="spring", lyrics="la")]
        report = BatchImporter().import_batch(sample_store, records)

        assert report.merged["track"] == 1
        assert sample_store.get("spring-1").lyrics == "la"
        assert sample_store.get("spring-1").title == "Intro"

    def test_overwrite_policy(self, sample_store):
        """Test that overwrite replaces non-empty values but keeps the UPC."""
        records = [album(id="spring", artist="Renamed", upc="OTHER")]
        report = BatchImporter().import_batch(
            sample_store, records, ImportOptions(policy=MergePolicy.OVERWRITE)
        )

        assert sample_store.get("spring").artist == "Renamed"
        assert sample_store.get("spring").upc == "UPC1"
        assert len(report.warnings) == 1

    def test_reimport_is_idempotent(self, sample_store):
        """Test that importing the same batch twice changes nothing the second time."""
        records = [
            album(id="netease-album-9", upc="UPC1", cover="cover.jpg"),
            song(id="netease-song-2", title="Blossom", collectionId="netease-album-9", lyrics="petals"),
        ]
        importer = BatchImporter()
        importer.import_batch(sample_store, records)
        once = sample_store.to_document()
        report = importer.import_batch(sample_store, records)

        assert sample_store.to_document() == once
        assert report.unchanged == 2

    def test_isrc_filled_by_containment_then_title_kept(self):
        """Test that a later record carrying the same ISRC keeps the longer existing title."""
        store = CatalogStore(
            collections=[Collection(id="a1", title="Singles")],
            tracks=[Track(id="t1", title="Song A (Remix Edit)", collection_id="a1")],
        )
        importer = BatchImporter()

        first = importer.import_batch(store, [song(id="s-1", title="Song A", isrc="USXYZ1234567", collectionId="a1")])
        assert first.counters["match:containment"] == 1
        assert store.get("t1").isrc == "USXYZ1234567"

        second = importer.import_batch(store, [song(id="s-2", title="Song A", isrc="USXYZ1234567")])
        assert second.counters["match:isrc"] == 1
        assert store.get("t1").title == "Song A (Remix Edit)"
        assert len(store.tracks_of("a1")) == 1

    def test_preview_leaves_store_untouched(self, sample_store):
        """Test that a dry run only changes the draft."""
        before = sample_store.to_document()
        draft, report = BatchImporter().preview(sample_store, [album(id="spring", cover="c.jpg")])

        assert sample_store.to_document() == before
        assert draft.get("spring").cover == "c.jpg"
        assert report.merged["collection"] == 1


class TestSkips:
    """Tests for records that are skipped and reported."""

    def test_malformed_records_do_not_abort(self, empty_store):
        """Test that bad records are reported and the rest applied."""
        records = [{"title": "no type"}, 5, song(), album(id="a1")]
        report = BatchImporter().import_batch(empty_store, records)

        malformed = report.skips_for(SKIP_MALFORMED)
        assert [entry.entity_id for entry in malformed] == ["#0", "#1", "#2"]
        assert report.created["collection"] == 1

    def test_track_of_unknown_collection(self, sample_store):
        """Test that a track whose collection is missing is a no-match."""
        report = BatchImporter().import_batch(sample_store, [song(id="x", title="X", collectionId="ghost")])

        assert report.no_match == 1
        assert report.skips_for(SKIP_NO_MATCH)[0].entity_id == "x"
        assert "x" not in sample_store

    def test_no_new_tracks_in_populated_collection(self, sample_store):
        """Test that a collection that already has tracks gets no new ones."""
        records = [
            album(id="netease-album-9", upc="UPC1"),
            song(id="netease-song-9", title="Thunder", collectionId="netease-album-9"),
        ]
        report = BatchImporter().import_batch(sample_store, records)

        assert report.skips_for(SKIP_DISALLOWED_CREATE)[0].entity_id == "netease-song-9"
        assert len(sample_store.tracks_of("spring")) == 2

    def test_conflicting_claims(self, sample_store):
        """Test that two records claiming one entity by different strategies conflict."""
        records = [
            album(id="x1", upc="UPC1"),
            album(id="x2", title="Spring", releaseDate="2024-01-01", cover="x2.jpg"),
        ]
        report = BatchImporter().import_batch(sample_store, records)

        conflicts = report.skips_for(SKIP_CONFLICT)
        assert [entry.entity_id for entry in conflicts] == ["x2"]
        assert sample_store.get("spring").cover == ""

    def test_same_strategy_claims_merge(self, sample_store):
        """Test that two records matching by the same strategy both merge."""
        records = [album(id="x1", upc="UPC1"), album(id="x2", upc="UPC1", cover="x2.jpg")]
        report = BatchImporter().import_batch(sample_store, records)

        assert report.skipped == []
        assert report.merged["collection"] == 2
        assert sample_store.get("spring").cover == "x2.jpg"

    def test_duplicate_isrc_is_rejected(self, sample_store):
        """Test that a merge creating a duplicate ISRC in a collection is skipped."""
        report = BatchImporter().import_batch(sample_store, [song(id="spring-2", isrc="USAAA2400001")])

        assert report.skips_for(SKIP_CONFLICT)[0].entity_id == "spring-2"
        assert sample_store.get("spring-2").isrc == ""


    def test_rejected_record_does_not_claim(self, sample_store):
        """Test that a record rejected on merge leaves the entity free for the next one."""
        records = [
            song(id="spring-2", isrc="USAAA2400001"),
            song(id="dk-2", title="Blossom", collectionId="spring", lyrics="petals"),
        ]
        report = BatchImporter().import_batch(sample_store, records)

        assert [entry.entity_id for entry in report.skips_for(SKIP_CONFLICT)] == ["spring-2"]
        assert report.merged["track"] == 1
        assert sample_store.get("spring-2").lyrics == "petals"


class TestRebind:
    """Tests for moving tracks between collections by ISRC."""

    RECORD = {"type": "song", "id": "dk-1", "title": "Intro", "isrc": "USAAA2400001", "collectionId": "winter"}

    def test_rebind_by_isrc(self, sample_store):
        """Test that an ISRC match moves the track when rebinding is on."""
        report = BatchImporter().import_batch(sample_store, [self.RECORD], ImportOptions(rebind_by_isrc=True))

        assert sample_store.get("spring-1").collection_id == "winter"
        assert report.counters["rebound"] == 1
        assert sample_store.get("spring").track_count == 1
        assert sample_store.get("winter").track_count == 3

    def test_no_rebind_by_default(self, sample_store):
        """Test that the track stays put without the option."""
        BatchImporter().import_batch(sample_store, [self.RECORD])

        assert sample_store.get("spring-1").collection_id == "spring"
        assert sample_store.get("winter").track_count == 2


class TestExtractBatches:
    """Tests for input document shapes."""

    def test_plain_list(self):
        """Test a bare record list."""
        assert extract_batches([album(id="a")], "src") == [("src", [album(id="a")])]

    def test_items_object(self):
        """Test an items object with its own source."""
        assert extract_batches({"source": "netease", "items": []}, "src") == [("netease", [])]

    def test_split_object(self):
        """Test a collections/tracks object."""
        batches = extract_batches({"collections": [album(id="a")], "tracks": [song(id="t")]})
        assert batches == [("", [album(id="a"), song(id="t")])]

    def test_grouped_list(self):
        """Test a list of per-source groups."""
        document = [{"source": "a", "items": [album(id="1")]}, {"items": []}]
        assert extract_batches(document, "default") == [("a", [album(id="1")]), ("default", [])]

    @pytest.mark.parametrize("document", [{"foo": 1}, "text", None])
    def test_unusable_documents(self, document):
        """Test that documents without records are rejected."""
        with pytest.raises(MalformedInputError):
            extract_batches(document)

    def test_load_uses_file_name_as_source(self, write_json):
        """Test the default source name."""
        path = write_json("distrokid.json", [album(id="a")])
        assert load_record_batches(path) == [("distrokid", [album(id="a")])]
        assert load_record_batches(path, "manual")[0][0] == "manual"
