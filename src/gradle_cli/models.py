from typing import List, Optional

from pydantic import BaseModel, Field
from gradle_linter.models import Severity


class FindingModel(BaseModel):
    id: str
    rule_id: str
    severity: Severity
    title: str
    description: str
    file_path: str
    line_number: int
    matched_text: str
    explanation: str
    suggested_fix: str
    auto_fixable: bool = False
    affected_modules: List[str] = Field(default_factory=list)


class ReportModel(BaseModel):
    project_path: str
    project_name: str
    gradle_version: str = "unknown"
    multi_module: bool = False
    modules: List[str] = Field(default_factory=list)
    findings: List[FindingModel] = Field(default_factory=list)
    skipped_files: List[str] = Field(default_factory=list)
    total_findings: int = 0
    critical_findings: int = 0
    auto_fixable_findings: int = 0


class FixResultModel(BaseModel):
    finding_id: str
    file_path: str
    success: bool
    message: str
    backup_path: Optional[str] = None
    original_code: Optional[str] = None
    fixed_code: Optional[str] = None


class BatchResultModel(BaseModel):
    results: List[FixResultModel] = Field(default_factory=list)
    total_processed: int = 0
    success_count: int = 0
    failure_count: int = 0
