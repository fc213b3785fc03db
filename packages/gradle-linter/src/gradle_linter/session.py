from pathlib import Path
from typing import Iterable

from .autofix import AutoFixEngine
from .engine import ProjectScanner
from .errors import FixRequestError
from .models import BatchResult, FixResult, Report
from .project import validate_project_path
from .registry import RuleRegistry

ERROR_FINDING_IDS_REQUIRED = "Finding IDs are required"
ERROR_NO_PROJECT_IN_SESSION = "No project analysis found in session"
ERROR_NO_MATCHING_FINDINGS = "No matching findings found"


class MigrationSession:
    """Caller-owned analysis context: one Report and the fixes applied against it.

    Not thread-safe; a serving layer keeps one session per user.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        scanner: ProjectScanner | None = None,
        fixer: AutoFixEngine | None = None,
    ):
        self.registry = registry or RuleRegistry()
        self.scanner = scanner or ProjectScanner(self.registry)
        self.fixer = fixer or AutoFixEngine(self.registry)
        self.report: Report | None = None

    def analyze(self, project_path: str | Path) -> Report:
        root = validate_project_path(project_path)
        self.report = self.scanner.scan(root)
        return self.report

    def fix(self, finding_ids: Iterable[str] | None) -> BatchResult:
        ids = [fid for fid in (finding_ids or []) if fid]
        if not ids:
            raise FixRequestError(ERROR_FINDING_IDS_REQUIRED)
        if self.report is None:
            raise FixRequestError(ERROR_NO_PROJECT_IN_SESSION)

        findings = self.report.get_findings(ids)
        if not findings:
            raise FixRequestError(ERROR_NO_MATCHING_FINDINGS)

        batch = self.fixer.apply_multiple_fixes(findings)
        self.report.discard_fixed(batch)
        return batch

    def restore(self, fix_result: FixResult) -> bool:
        if fix_result.backup_path is None:
            return False
        return self.fixer.backups.restore(fix_result.backup_path, fix_result.file_path)

    def clear(self):
        self.report = None
