"""
Project-level helpers: recognising a Gradle project root, validating a
caller-supplied path and reading best-effort metadata (modules, wrapper version).
"""

import logging
import re
from pathlib import Path

from .errors import InvalidProjectError

logger = logging.getLogger(__name__)

BUILD_FILES = ("build.gradle", "build.gradle.kts")
SETTINGS_FILES = ("settings.gradle", "settings.gradle.kts")
WRAPPER_PROPERTIES = Path("gradle") / "wrapper" / "gradle-wrapper.properties"

SCRIPT_SUFFIXES = (".gradle", ".gradle.kts")
EXTRA_SCANNED_NAMES = frozenset({WRAPPER_PROPERTIES.name})
DEFAULT_EXCLUDE_DIRS = frozenset({"build", ".gradle"})

UNKNOWN_VERSION = "unknown"

ERROR_PROJECT_PATH_REQUIRED = "Project path is required"
ERROR_PROJECT_PATH_INVALID = "Project path must be absolute"
ERROR_PROJECT_NOT_FOUND = "Project directory not found"
ERROR_NOT_GRADLE_PROJECT = "Not a valid Gradle project (missing build.gradle or settings.gradle)"

INCLUDE_STATEMENT = re.compile(r"^\s*include\b(.*)$", re.MULTILINE)
QUOTED_NAME = re.compile(r"['\"]([^'\"]+)['\"]")
VERSION_TOKEN = re.compile(r"gradle-(\d+\.\d+(?:\.\d+)?(?:-(?!bin\b|all\b)\w+(?:-\d+)?)?)")


def is_gradle_project(directory: Path) -> bool:
    return any((directory / name).is_file() for name in BUILD_FILES + SETTINGS_FILES)


def validate_project_path(project_path: str | Path | None) -> Path:
    """Check a caller-supplied project root, raising InvalidProjectError with the reason."""
    if project_path is None or not str(project_path).strip():
        raise InvalidProjectError(ERROR_PROJECT_PATH_REQUIRED)

    path = Path(str(project_path).strip())
    if not path.is_absolute():
        raise InvalidProjectError(ERROR_PROJECT_PATH_INVALID)
    if not path.is_dir():
        raise InvalidProjectError(ERROR_PROJECT_NOT_FOUND)
    if not is_gradle_project(path):
        raise InvalidProjectError(ERROR_NOT_GRADLE_PROJECT)
    return path


def extract_modules(settings_content: str) -> list[str]:
    """Module names declared by include statements, in declaration order"""
    modules: list[str] = []
    for statement in INCLUDE_STATEMENT.finditer(settings_content):
        for name in QUOTED_NAME.findall(statement.group(1)):
            name = name.lstrip(":")
            if name and name not in modules:
                modules.append(name)
    return modules


def extract_gradle_version(wrapper_content: str) -> str:
    match = VERSION_TOKEN.search(wrapper_content)
    return match.group(1) if match else UNKNOWN_VERSION


def detect_modules(root: Path) -> list[str]:
    for name in SETTINGS_FILES:
        settings = root / name
        if settings.is_file():
            try:
                return extract_modules(settings.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s: %s", settings, e)
                return []
    return []


def detect_gradle_version(root: Path) -> str:
    wrapper = root / WRAPPER_PROPERTIES
    if not wrapper.is_file():
        return UNKNOWN_VERSION
    try:
        return extract_gradle_version(wrapper.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", wrapper, e)
        return UNKNOWN_VERSION


def module_for(file_path: Path, root: Path) -> str:
    """First directory segment below the root, or "root" for top-level files"""
    try:
        parts = file_path.relative_to(root).parts
    except ValueError:
        return "root"
    if len(parts) > 1 and parts[0]:
        return parts[0]
    return "root"


def is_scannable(file_path: Path, root: Path, exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS) -> bool:
    name = file_path.name
    if not (name.endswith(SCRIPT_SUFFIXES) or name in EXTRA_SCANNED_NAMES):
        return False
    try:
        dirs = file_path.relative_to(root).parts[:-1]
    except ValueError:
        return False
    return not any(part in exclude_dirs for part in dirs)
