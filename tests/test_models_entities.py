"""
Tests for catalog entity models and the input boundary.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.core.exceptions import MalformedInputError
from ariadne.models.entities import Collection, Track, parse_record, derive_id
from ariadne.models.enrichment import EnrichmentRecord
from ariadne.models.links import Link, Embed


class TestParseRecord:
    """Tests for parse_record function."""

    def test_parse_collection(self):
        """Test a complete album record."""
        entity = parse_record({
            "id": "netease-album-1",
            "type": "album",
            "title": "Spring",
            "artist": "Test Artist",
            "releaseDate": "2024-01-01",
            "trackCount": "10",
            "upc": " upc1 ",
            "tags": ["netease", "netease", ""],
            "links": [{"platform": "netease", "label": "NetEase", "url": "https://music.163.com/album?id=1"}],
            "refs": {"netease": {"albumId": 1}},
        })

        assert isinstance(entity, Collection)
        assert entity.kind == "collection"
        assert entity.track_count == 10
        assert entity.upc == "UPC1"
        assert entity.tags == ["netease"]
        assert entity.links == [Link("netease", "NetEase", "https://music.163.com/album?id=1")]
        assert entity.refs == {"netease": {"albumId": "1"}}

    @pytest.mark.parametrize("record_type", ["album", "collection", "playlist"])
    def test_parse_collection_types(self, record_type):
        """Test that every collection type is accepted and kept."""
        entity = parse_record({"id": "c", "type": record_type})
        assert isinstance(entity, Collection)
        assert entity.type == record_type

    def test_parse_track(self):
        """Test a song record with enrichment fields."""
        entity = parse_record({
            "id": "t1",
            "type": "song",
            "title": "Song A",
            "collectionId": "a1",
            "isrc": "usxyz1234567",
            "trackNo": 3,
            "embeds": [{"platform": "netease", "url": "https://163/player?id=9", "height": 86}],
            "lyrics": "la la",
            "inspiration": {"theme": "rain"},
        })

        assert isinstance(entity, Track)
        assert entity.isrc == "USXYZ1234567"
        assert entity.collection_id == "a1"
        assert entity.track_no == 3
        assert entity.embeds == [Embed("netease", "", "https://163/player?id=9", 86)]
        assert entity.playable is True
        assert entity.inspiration == {"theme": "rain"}

    def test_parse_derives_collection_id_from_upc(self):
        """Test that a collection without id gets one from its UPC."""
        entity = parse_record({"type": "album", "upc": "UPC1", "title": "Spring"})
        assert entity.id == "upc-UPC1"

    def test_parse_derives_track_id_from_isrc(self):
        """Test that a track without id gets one from its ISRC."""
        entity = parse_record({"type": "song", "isrc": "usxyz1234567"})
        assert entity.id == "isrc-USXYZ1234567"

    def test_parse_missing_id_and_code(self):
        """Test that a record with no id and no code is rejected."""
        with pytest.raises(MalformedInputError):
            parse_record({"type": "song", "title": "Nameless"})

    def test_parse_missing_type(self):
        """Test that the type discriminant is required."""
        with pytest.raises(MalformedInputError) as exc_info:
            parse_record({"id": "x", "title": "No type"})
        assert exc_info.value.record_id == "x"

    def test_parse_unknown_type(self):
        """Test that unknown types are rejected."""
        with pytest.raises(MalformedInputError):
            parse_record({"id": "x", "type": "video"})

    def test_parse_not_a_dict(self):
        """Test that non-object records are rejected."""
        with pytest.raises(MalformedInputError):
            parse_record(["id", "x"])

    @pytest.mark.parametrize("field_name, value", [
        ("tags", "rock"),
        ("links", {"platform": "x"}),
        ("refs", ["x"]),
        ("inspiration", "rain"),
    ])
    def test_parse_wrong_field_shapes(self, field_name, value):
        """Test that wrongly shaped fields are rejected at the boundary."""
        with pytest.raises(MalformedInputError):
            parse_record({"id": "t", "type": "song", field_name: value})

    def test_parse_ignores_bad_embed_height(self):
        """Test that a non-numeric embed height is dropped."""
        entity = parse_record({"id": "t", "type": "song", "embeds": [{"platform": "yt", "url": "u", "height": "tall"}]})
        assert entity.embeds[0].height is None


class TestDeriveId:
    """Tests for derive_id function."""

    def test_derive_id(self):
        """Test id derivation per kind."""
        assert derive_id("collection", upc="UPC1") == "upc-UPC1"
        assert derive_id("track", isrc="ISRC1") == "isrc-ISRC1"
        assert derive_id("track", upc="UPC1") == ""


class TestToDict:
    """Tests for entity serialization."""

    def test_collection_round_trip(self):
        """Test that a serialized collection parses back equal."""
        collection = Collection(id="a1", title="Spring", upc="UPC1", track_count=2, style_tags=["lofi"])
        data = collection.to_dict()

        assert data["trackCount"] == 2
        assert data["styleTags"] == ["lofi"]
        assert parse_record(data) == collection

    def test_track_omits_unknown_enrichment(self):
        """Test that unset enrichment fields are not written."""
        data = Track(id="t1", title="Song").to_dict()

        assert data["type"] == "song"
        assert "lyrics" not in data
        assert "trackNo" not in data
        assert "inspiration" not in data


class TestEnrichmentRecord:
    """Tests for EnrichmentRecord model."""

    def test_from_dict(self):
        """Test a full enrichment record."""
        record = EnrichmentRecord.from_dict({
            "title": "Intro",
            "collectionTitle": "Spring",
            "lyrics": "la la",
            "styleTags": ["lofi", ""],
            "createdAt": "2024-01-01",
        })

        assert record.label == "Spring / Intro"
        assert record.track_fields() == {"lyrics": "la la", "style_tags": ["lofi"], "created_at": "2024-01-01"}

    def test_from_dict_requires_a_key(self):
        """Test that a record must name a title, collection or ISRC."""
        with pytest.raises(MalformedInputError):
            EnrichmentRecord.from_dict({"lyrics": "orphan"})

    def test_from_dict_rejects_bad_inspiration(self):
        """Test that inspiration must be an object."""
        with pytest.raises(MalformedInputError):
            EnrichmentRecord.from_dict({"title": "Intro", "inspiration": "rain"})
