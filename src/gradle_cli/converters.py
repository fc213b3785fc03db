from pathlib import Path

from gradle_linter.models import BatchResult, Finding, FixResult, Report

from .models import BatchResultModel, FindingModel, FixResultModel, ReportModel


def finding_to_model(finding: Finding) -> FindingModel:
    """Convert an internal dataclass finding to an external Pydantic finding"""
    return FindingModel(
        id=finding.id,
        rule_id=finding.rule_id,
        severity=finding.severity,
        title=finding.title,
        description=finding.description,
        file_path=str(finding.file_path),
        line_number=finding.line_number,
        matched_text=finding.matched_text,
        explanation=finding.explanation,
        suggested_fix=finding.suggested_fix,
        auto_fixable=finding.auto_fixable,
        affected_modules=sorted(finding.affected_modules),
    )


def model_to_finding(model: FindingModel) -> Finding:
    return Finding(
        id=model.id,
        rule_id=model.rule_id,
        severity=model.severity,
        title=model.title,
        description=model.description,
        file_path=Path(model.file_path),
        line_number=model.line_number,
        matched_text=model.matched_text,
        explanation=model.explanation,
        suggested_fix=model.suggested_fix,
        auto_fixable=model.auto_fixable,
        affected_modules=frozenset(model.affected_modules),
    )


def report_to_model(report: Report) -> ReportModel:
    return ReportModel(
        project_path=str(report.project_path),
        project_name=report.project_name,
        gradle_version=report.gradle_version,
        multi_module=report.multi_module,
        modules=list(report.modules),
        findings=[finding_to_model(f) for f in report.findings],
        skipped_files=[str(p) for p in report.skipped_files],
        total_findings=report.total_findings,
        critical_findings=report.critical_findings,
        auto_fixable_findings=report.auto_fixable_findings,
    )


def model_to_report(model: ReportModel) -> Report:
    """Rebuild a Report from saved JSON. Stored counts are ignored and recomputed."""
    return Report(
        project_path=Path(model.project_path),
        project_name=model.project_name,
        gradle_version=model.gradle_version,
        multi_module=model.multi_module,
        modules=list(model.modules),
        findings=[model_to_finding(f) for f in model.findings],
        skipped_files=[Path(p) for p in model.skipped_files],
    )


def fix_result_to_model(result: FixResult) -> FixResultModel:
    return FixResultModel(
        finding_id=result.finding_id,
        file_path=str(result.file_path),
        success=result.success,
        message=result.message,
        backup_path=str(result.backup_path) if result.backup_path else None,
        original_code=result.original_code,
        fixed_code=result.fixed_code,
    )


def batch_result_to_model(batch: BatchResult) -> BatchResultModel:
    return BatchResultModel(
        results=[fix_result_to_model(r) for r in batch.results],
        total_processed=batch.total_processed,
        success_count=batch.success_count,
        failure_count=batch.failure_count,
    )
