"""
Tests for run report models.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.models.report import (
    RunReport,
    UpsertResult,
    SKIP_NO_MATCH,
    SKIP_MALFORMED,
    SKIP_AMBIGUOUS,
    STATUS_CREATED,
    STATUS_MERGED,
)


class TestRunReport:
    """Tests for RunReport."""

    def test_record_upsert_counts_by_kind(self):
        """Test created and merged tallies per kind."""
        report = RunReport()
        report.record_upsert("collection", UpsertResult(STATUS_CREATED, "a1"))
        report.record_upsert("track", UpsertResult(STATUS_MERGED, "t1"))
        report.record_upsert("track", UpsertResult(STATUS_MERGED, "t2", changed=False))

        assert report.created == {"collection": 1, "track": 0}
        assert report.merged == {"collection": 0, "track": 2}
        assert report.unchanged == 1

    def test_record_upsert_keeps_notes_as_warnings(self):
        """Test that merge notes show up as warnings."""
        report = RunReport()
        report.record_upsert("collection", UpsertResult(STATUS_MERGED, "a1", notes=["kept upc"]))
        assert report.warnings == ["kept upc"]

    def test_skip_reasons(self):
        """Test per-entity skip entries and counts."""
        report = RunReport()
        report.skip("x", "track", SKIP_NO_MATCH, "nothing")
        report.skip("y", "record", SKIP_MALFORMED)

        assert report.no_match == 1
        assert report.skip_counts() == {SKIP_NO_MATCH: 1, SKIP_MALFORMED: 1}
        assert [entry.entity_id for entry in report.skips_for(SKIP_MALFORMED)] == ["y"]

    def test_ambiguous_samples_are_capped(self):
        """Test that ambiguity tallies all attempts but samples only a few."""
        report = RunReport(max_samples=2)
        for i in range(5):
            report.ambiguous(f"r{i}", "intro", ["a", "b"])

        assert report.skipped_ambiguous == 5
        assert len(report.ambiguous_samples) == 2
        assert report.skip_counts() == {SKIP_AMBIGUOUS: 5}

    def test_fail_counts_and_samples(self):
        """Test failures are counted and sampled with extra fields."""
        report = RunReport()
        report.fail("t1", "timeout", songId="42")

        assert report.counters["failed"] == 1
        assert report.failures == [{"id": "t1", "reason": "timeout", "songId": "42"}]

    def test_to_dict(self):
        """Test the JSON shape of a report."""
        report = RunReport(source="distrokid")
        report.record_upsert("collection", UpsertResult(STATUS_CREATED, "a1"))
        report.ambiguous("Intro", "intro", ["a", "b"])
        data = report.to_dict()

        assert data["source"] == "distrokid"
        assert data["created"]["collection"] == 1
        assert data["skippedAmbiguous"] == 1
        assert data["ambiguousSamples"] == [{"id": "Intro", "key": "intro", "candidates": ["a", "b"]}]
        assert data["skipDetails"][0]["reason"] == SKIP_AMBIGUOUS
