"""
Gradle Linter - find and fix constructs removed in Gradle 9

This package provides:
- A data-driven rule registry of deprecated Gradle constructs
- A project scanner producing line-accurate findings
- An auto-fix engine with backups and no-op detection
"""

__version__ = "0.1.0"

from .autofix import AutoFixEngine
from .backup import BackupManager
from .engine import ProjectScanner
from .errors import FixRequestError, InvalidProjectError, MigrationError, RuleCatalogError
from .models import BatchResult, Finding, FixResult, Report, Severity
from .registry import RuleRegistry
from .session import MigrationSession

__all__ = [
    "AutoFixEngine",
    "BackupManager",
    "BatchResult",
    "Finding",
    "FixRequestError",
    "FixResult",
    "InvalidProjectError",
    "MigrationError",
    "MigrationSession",
    "ProjectScanner",
    "Report",
    "RuleCatalogError",
    "RuleRegistry",
    "Severity",
]
