import logging
from pathlib import Path
from typing import List, Optional

import typer
from gradle_linter.autofix import AutoFixEngine
from gradle_linter.backup import BackupManager
from gradle_linter.engine import ProjectScanner
from gradle_linter.errors import MigrationError
from gradle_linter.models import Finding, Severity
from gradle_linter.project import validate_project_path
from gradle_linter.registry import RuleRegistry
from gradle_linter.session import MigrationSession

from .config import MigrateConfig
from .converters import batch_result_to_model, model_to_report, report_to_model
from .models import ReportModel

CONFIG_FILE_NAME = ".gradle-migrate.toml"

app = typer.Typer(help="Gradle 9 Migration Linter - find and fix constructs removed in Gradle 9")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def _load_config(config_file: Optional[Path], project: Optional[Path]) -> MigrateConfig:
    if config_file is None and project is not None:
        config_file = project / CONFIG_FILE_NAME
    return MigrateConfig(config_file)


def _build_scanner(config: MigrateConfig, workers: Optional[int]):
    registry = RuleRegistry(config.rules_file) if config.rules_file else RuleRegistry()
    scanner = ProjectScanner(
        registry,
        rules=config.apply_to_registry(registry),
        exclude_dirs=config.exclude_dirs,
        workers=workers or config.workers,
    )
    return registry, scanner


def _fail(message: str, code: int = 2):
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=code)


def _display_path(path: Path, root: Path) -> str:
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return str(path)


@app.command()
def analyze(
    project: Path = typer.Argument(..., help="Gradle project root"),
    severity: Severity = typer.Option(
        Severity.LOW, case_sensitive=False, help="Minimum severity to show"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    output: Optional[Path] = typer.Option(None, help="Write the JSON report to this file"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    workers: Optional[int] = typer.Option(None, help="Scan files on this many threads"),
):
    """Scan a Gradle project for constructs removed in Gradle 9"""
    config = _load_config(config_file, project)
    try:
        root = validate_project_path(project.resolve())
        _, scanner = _build_scanner(config, workers)
        report = scanner.scan(root)
    except MigrationError as e:
        _fail(str(e))

    model = report_to_model(report)
    if output:
        output.write_text(model.model_dump_json(indent=2), encoding="utf-8")

    if json_output:
        typer.echo(model.model_dump_json(indent=2))
    else:
        typer.echo(f"Project: {report.project_name} (Gradle {report.gradle_version})")
        if report.multi_module:
            typer.echo(f"Modules: {', '.join(report.modules)}")

        min_rank = severity.rank
        reported_count = 0
        for finding in report.findings:
            if finding.severity.rank < min_rank:
                continue
            typer.echo(
                f"{finding.severity.value}: {_display_path(finding.file_path, root)}:"
                f"{finding.line_number} [{finding.rule_id}] - {finding.title}"
            )
            reported_count += 1

        for skipped in report.skipped_files:
            typer.echo(f"Skipped unreadable file: {_display_path(skipped, root)}")

        typer.echo(
            f"\nTotal findings: {report.total_findings} ({reported_count} reported, "
            f"{report.critical_findings} critical, {report.auto_fixable_findings} auto-fixable)"
        )

    if report.critical_findings > 0:
        raise typer.Exit(code=1)


def _one_per_file_and_rule(findings: List[Finding]) -> List[Finding]:
    """A fix rewrites the whole file, so one finding per (file, rule) is enough"""
    seen = set()
    selected = []
    for finding in findings:
        key = (str(finding.file_path), finding.rule_id)
        if key not in seen:
            seen.add(key)
            selected.append(finding)
    return selected


@app.command()
def fix(
    project: Optional[Path] = typer.Argument(None, help="Gradle project root to scan and fix"),
    rule: Optional[List[str]] = typer.Option(None, "--rule", help="Only fix these rule ids"),
    report_file: Optional[Path] = typer.Option(
        None, "--report", help="Saved report from 'analyze --output'"
    ),
    finding_ids: Optional[List[str]] = typer.Option(None, "--id", help="Finding ids to fix"),
    json_output: bool = typer.Option(False, "--json", help="Print the batch result as JSON"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    workers: Optional[int] = typer.Option(None, help="Fix different files on this many threads"),
):
    """Apply automatic fixes, backing up every file before it is rewritten"""
    config = _load_config(config_file, project)
    try:
        registry, scanner = _build_scanner(config, workers)
        fixer = AutoFixEngine(registry)
        if report_file is not None:
            session = MigrationSession(registry, scanner, fixer)
            session.report = model_to_report(
                ReportModel.model_validate_json(report_file.read_text(encoding="utf-8"))
            )
            batch = session.fix(finding_ids)
            # Saved report keeps only the findings that are still open
            report_file.write_text(
                report_to_model(session.report).model_dump_json(indent=2), encoding="utf-8"
            )
            root = session.report.project_path
        elif project is not None:
            root = validate_project_path(project.resolve())
            report = scanner.scan(root)
            selected = [f for f in report.findings if fixer.can_fix(f)]
            if rule:
                wanted = {r.upper() for r in rule}
                selected = [f for f in selected if f.rule_id in wanted]
            selected = _one_per_file_and_rule(selected)
            if not selected:
                typer.echo("Nothing to fix.")
                return
            batch = fixer.apply_multiple_fixes(selected, workers=workers or config.workers)
        else:
            _fail("Provide a project path or --report")
    except MigrationError as e:
        _fail(str(e))
    except (OSError, ValueError) as e:
        _fail(f"Cannot read report: {e}")

    if json_output:
        typer.echo(batch_result_to_model(batch).model_dump_json(indent=2))
    else:
        for result in batch.results:
            status = "FIXED" if result.success else "FAILED"
            line = f"{status}: {_display_path(result.file_path, root)} - {result.message}"
            if result.backup_path:
                line += f" (backup: {result.backup_path.name})"
            typer.echo(line)
        typer.echo(
            f"\nProcessed {batch.total_processed}: "
            f"{batch.success_count} fixed, {batch.failure_count} failed"
        )

    if batch.failure_count > 0:
        raise typer.Exit(code=1)


@app.command()
def restore(
    path: Path = typer.Argument(..., help="Backup file, or a fixed file to restore from its newest backup"),
    original: Optional[Path] = typer.Option(None, help="File to restore over (derived from the backup name by default)"),
):
    """Roll a fixed file back from its backup"""
    backups = BackupManager()
    backup_path = path
    if backups.original_for(path) is None:
        candidates = backups.find_backups(path)
        if not candidates:
            _fail(f"No backups found for {path}", code=1)
        backup_path = candidates[0]
        original = original or path

    if backups.restore(backup_path, original):
        typer.echo(f"Restored {original or backups.original_for(backup_path)} from {backup_path.name}")
    else:
        _fail(f"Could not restore from {backup_path}", code=1)


@app.command()
def rules(
    config_file: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
):
    """List the migration rules"""
    config = MigrateConfig(config_file)
    try:
        registry = RuleRegistry(config.rules_file) if config.rules_file else RuleRegistry()
    except MigrationError as e:
        _fail(str(e))

    enabled = {r.rule_id for r in config.apply_to_registry(registry)}
    for rule in registry.get_all_rules():
        mode = "auto-fix" if rule.auto_fixable else "manual"
        marker = "" if rule.rule_id in enabled else " (disabled)"
        typer.echo(f"{rule.rule_id:<30} {rule.severity.value:<9} {mode:<9} {rule.title}{marker}")


if __name__ == "__main__":
    app()
