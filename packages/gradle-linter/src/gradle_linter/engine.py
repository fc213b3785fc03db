import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator

from .errors import InvalidProjectError
from .models import Finding, Report
from .project import (
    DEFAULT_EXCLUDE_DIRS,
    ERROR_NOT_GRADLE_PROJECT,
    detect_gradle_version,
    detect_modules,
    is_gradle_project,
    is_scannable,
    module_for,
)
from .registry import RuleRegistry
from .rules.base import MigrationRule, line_of

logger = logging.getLogger(__name__)

MAX_FINDINGS_PER_RULE = 100


def read_source(file_path: Path) -> str:
    """Read a script without newline translation so offsets match the bytes on disk"""
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        return f.read()


class ProjectScanner:
    """Walks a Gradle project and reports every deprecated construct"""

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        rules: Iterable[MigrationRule] | None = None,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        workers: int = 1,
    ):
        self.registry = registry or RuleRegistry()
        self.rules = tuple(rules) if rules is not None else self.registry.get_all_rules()
        self.exclude_dirs = frozenset(exclude_dirs)
        self.workers = max(1, workers)

    def scan(self, project_root: Path) -> Report:
        root = Path(project_root)
        if not root.is_dir() or not is_gradle_project(root):
            raise InvalidProjectError(f"{ERROR_NOT_GRADLE_PROJECT}: {root}")

        modules = detect_modules(root)
        report = Report(
            project_path=root,
            project_name=root.name,
            gradle_version=detect_gradle_version(root),
            multi_module=bool(modules),
            modules=modules,
        )

        files = list(self.iter_script_files(root))
        logger.info("Scanning %d build scripts under %s", len(files), root)

        if self.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # map() yields in input order, keeping the report deterministic
                per_file = list(pool.map(lambda p: self._scan_one(p, root), files))
        else:
            per_file = [self._scan_one(p, root) for p in files]

        for file_path, findings in zip(files, per_file):
            if findings is None:
                report.skipped_files.append(file_path)
                continue
            report.findings.extend(findings)

        return report

    def iter_script_files(self, root: Path) -> Iterator[Path]:
        """Build scripts under root in sorted path order, excluding build/cache dirs"""
        for path in sorted(root.rglob("*")):
            if path.is_file() and is_scannable(path, root, self.exclude_dirs):
                yield path

    def scan_file(self, file_path: Path, project_root: Path) -> list[Finding]:
        """Run every rule over one file. Raises OSError/UnicodeDecodeError if unreadable."""
        content = read_source(file_path)
        module = module_for(file_path, project_root)
        findings: list[Finding] = []

        for rule in self.rules:
            count = 0
            for match in rule.find_matches(content):
                if count >= MAX_FINDINGS_PER_RULE:
                    logger.debug("%s: capped %s at %d findings", file_path, rule.rule_id, count)
                    break
                findings.append(self._create_finding(rule, file_path, content, match, module))
                count += 1

        return findings

    def _scan_one(self, file_path: Path, root: Path) -> list[Finding] | None:
        try:
            return self.scan_file(file_path, root)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable file %s: %s", file_path, e)
            return None

    def _create_finding(self, rule, file_path, content, match, module) -> Finding:
        matched_text = match.group().strip()
        context = line_of(content, match.start(), match.end())
        return Finding(
            id=str(uuid.uuid4()),
            rule_id=rule.rule_id,
            severity=rule.severity,
            title=rule.title,
            description=rule.description,
            file_path=file_path,
            line_number=content.count("\n", 0, match.start()) + 1,
            matched_text=matched_text,
            explanation=rule.explain(matched_text),
            suggested_fix=rule.suggest_fix(matched_text, context),
            auto_fixable=rule.is_fixable(content, match),
            affected_modules=frozenset({module}),
        )
