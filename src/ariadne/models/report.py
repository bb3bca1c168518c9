"""
Run report models.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.config import REPORT_CONFIG

# Skip reasons
SKIP_MALFORMED = "malformed"
SKIP_AMBIGUOUS = "ambiguous"
SKIP_NO_MATCH = "no-match"
SKIP_DISALLOWED_CREATE = "disallowed-create"
SKIP_CONFLICT = "conflict"

STATUS_CREATED = "created"
STATUS_MERGED = "merged"


@dataclass
class UpsertResult:
    """Outcome of one store upsert."""
    status: str
    entity_id: str
    changed: bool = True
    notes: List[str] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.status == STATUS_CREATED


@dataclass
class SkipEntry:
    """One record that was not applied, and why."""
    entity_id: str
    kind: str
    reason: str
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.entity_id, "kind": self.kind, "reason": self.reason, "detail": self.detail}


@dataclass
class RunReport:
    """Counts and diagnostics for one batch run, enough to audit it by hand."""
    source: str = ""
    created: Dict[str, int] = field(default_factory=lambda: {"collection": 0, "track": 0})
    merged: Dict[str, int] = field(default_factory=lambda: {"collection": 0, "track": 0})
    unchanged: int = 0
    updated: int = 0
    skipped: List[SkipEntry] = field(default_factory=list)
    skipped_ambiguous: int = 0
    no_match: int = 0
    ambiguous_samples: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)
    max_samples: int = REPORT_CONFIG["MAX_SAMPLES"]

    def record_upsert(self, kind: str, result: UpsertResult) -> None:
        if result.created:
            self.created[kind] = self.created.get(kind, 0) + 1
        else:
            self.merged[kind] = self.merged.get(kind, 0) + 1
            if not result.changed:
                self.unchanged += 1
        for note in result.notes:
            self.warn(note)

    def skip(self, entity_id: str, kind: str, reason: str, detail: str = "") -> None:
        self.skipped.append(SkipEntry(entity_id=entity_id, kind=kind, reason=reason, detail=detail))
        if reason == SKIP_NO_MATCH:
            self.no_match += 1

    def ambiguous(self, entity_id: str, key: str, candidates: List[str], kind: str = "track") -> None:
        """Tally an enrichment withheld because its key is shared by several tracks."""
        self.skipped_ambiguous += 1
        self.skipped.append(
            SkipEntry(entity_id=entity_id, kind=kind, reason=SKIP_AMBIGUOUS, detail=f"key '{key}' matches {len(candidates)} tracks")
        )
        if len(self.ambiguous_samples) < self.max_samples:
            self.ambiguous_samples.append({"id": entity_id, "key": key, "candidates": list(candidates)})

    def warn(self, message: str) -> None:
        if len(self.warnings) < self.max_samples:
            self.warnings.append(message)

    def fail(self, entity_id: str, reason: str, **extra: Any) -> None:
        self.count("failed")
        if len(self.failures) < self.max_samples:
            entry = {"id": entity_id, "reason": reason}
            entry.update(extra)
            self.failures.append(entry)

    def count(self, name: str, amount: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + amount

    def skip_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for entry in self.skipped:
            counts[entry.reason] = counts.get(entry.reason, 0) + 1
        return counts

    def skips_for(self, reason: str) -> List[SkipEntry]:
        return [entry for entry in self.skipped if entry.reason == reason]

    def to_dict(self, detail_limit: Optional[int] = None) -> Dict[str, Any]:
        limit = self.max_samples if detail_limit is None else detail_limit
        return {
            "source": self.source,
            "created": dict(self.created),
            "merged": dict(self.merged),
            "unchanged": self.unchanged,
            "updated": self.updated,
            "skipped": self.skip_counts(),
            "skippedAmbiguous": self.skipped_ambiguous,
            "noMatch": self.no_match,
            "skipDetails": [entry.to_dict() for entry in self.skipped[:limit]],
            "ambiguousSamples": list(self.ambiguous_samples),
            "warnings": list(self.warnings),
            "failures": list(self.failures),
            "counters": dict(self.counters),
        }
