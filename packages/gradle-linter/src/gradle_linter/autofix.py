import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable

from .backup import BackupManager
from .engine import read_source
from .models import BatchResult, Finding, FixResult
from .registry import RuleRegistry

logger = logging.getLogger(__name__)

MSG_NOT_FIXABLE = "This issue is not auto-fixable and requires manual intervention."
MSG_NO_CHANGES = "No changes were made. The pattern might have already been fixed."


def write_source(file_path: Path, content: str):
    with open(file_path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class AutoFixEngine:
    """Apply rule fixes to build scripts, one whole file per finding"""

    def __init__(self, registry: RuleRegistry | None = None, backups: BackupManager | None = None):
        self.registry = registry or RuleRegistry()
        self.backups = backups or BackupManager()
        # path -> [lock, number of fixes holding or waiting for it]
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def can_fix(self, finding: Finding) -> bool:
        return finding.auto_fixable

    def apply_fix(self, finding: Finding) -> FixResult:
        file_path = Path(finding.file_path)
        result = FixResult(finding_id=finding.id, file_path=file_path, success=False, message="")

        if not self.can_fix(finding):
            result.message = MSG_NOT_FIXABLE
            return result

        # Read-transform-write must not interleave for the same file
        with self._lock_for(file_path):
            if not file_path.is_file():
                result.message = f"File not found: {file_path}"
                return result

            try:
                content = read_source(file_path)
            except (OSError, UnicodeDecodeError) as e:
                result.message = f"Error applying fix: {e}"
                return result

            fixed = self._transform(content, finding)
            if fixed == content:
                result.message = MSG_NO_CHANGES
                return result

            try:
                result.backup_path = self.backups.snapshot(file_path)
                write_source(file_path, fixed)
            except OSError as e:
                logger.warning("Fix for %s in %s failed: %s", finding.rule_id, file_path, e)
                result.message = f"Error applying fix: {e}"
                return result

        logger.info("Applied %s fix to %s", finding.rule_id, file_path)
        result.success = True
        result.message = f"Successfully applied fix to {file_path.name}"
        result.original_code = finding.matched_text
        result.fixed_code = finding.suggested_fix
        return result

    def apply_multiple_fixes(self, findings: Iterable[Finding], workers: int = 1) -> BatchResult:
        """Fix each finding independently; one failure never stops the others.

        With workers > 1 different files are fixed concurrently, while findings
        for the same file are still applied one after another in input order.
        """
        findings = list(findings)
        if workers <= 1:
            return BatchResult(results=[self.apply_fix(f) for f in findings])

        groups: dict[Path, list[int]] = {}
        for idx, finding in enumerate(findings):
            groups.setdefault(Path(finding.file_path), []).append(idx)

        results: list[FixResult | None] = [None] * len(findings)

        def fix_group(indices: list[int]):
            for idx in indices:
                results[idx] = self.apply_fix(findings[idx])

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(fix_group, groups.values()))

        return BatchResult(results=results)

    def _transform(self, content: str, finding: Finding) -> str:
        rule = self.registry.get(finding.rule_id)
        if rule is None:
            # Unknown rule: replace the first literal occurrence only
            if not finding.matched_text:
                return content
            return content.replace(finding.matched_text, finding.suggested_fix, 1)
        return rule.transform(content)

    @contextmanager
    def _lock_for(self, file_path: Path):
        """Hold the lock for file_path; the lock is dropped once no fix is using it."""
        key = str(file_path.resolve())
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]
