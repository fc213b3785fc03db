from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"CRITICAL": 4, "HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]


@dataclass(frozen=True)
class Finding:
    """One occurrence of a rule's construct in a build script"""

    id: str
    rule_id: str
    severity: Severity
    title: str
    description: str
    file_path: Path
    line_number: int
    matched_text: str
    explanation: str
    suggested_fix: str
    auto_fixable: bool
    affected_modules: frozenset[str] = frozenset()


@dataclass
class Report:
    """Findings plus project metadata for one analysis run"""

    project_path: Path
    project_name: str
    gradle_version: str = "unknown"
    multi_module: bool = False
    modules: list[str] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    skipped_files: list[Path] = field(default_factory=list)

    # Counts are derived from the findings list on every access
    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def critical_findings(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    @property
    def auto_fixable_findings(self) -> int:
        return sum(1 for f in self.findings if f.auto_fixable)

    def get_findings(self, finding_ids: Iterable[str]) -> list[Finding]:
        """Resolve ids to findings, in the order the ids were given. Unknown ids are ignored."""
        by_id = {f.id: f for f in self.findings}
        return [by_id[fid] for fid in finding_ids if fid in by_id]

    def remove_findings(self, finding_ids: Iterable[str]) -> int:
        ids = set(finding_ids)
        before = len(self.findings)
        self.findings = [f for f in self.findings if f.id not in ids]
        return before - len(self.findings)

    def discard_fixed(self, batch: "BatchResult") -> int:
        """Drop every finding whose fix succeeded in the given batch"""
        return self.remove_findings(r.finding_id for r in batch.results if r.success)


@dataclass
class FixResult:
    finding_id: str
    file_path: Path
    success: bool
    message: str
    backup_path: Path | None = None
    original_code: str | None = None
    fixed_code: str | None = None


@dataclass
class BatchResult:
    results: list[FixResult] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return self.total_processed - self.success_count
