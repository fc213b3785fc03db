import logging
import tomllib
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError

from gradle_linter.project import DEFAULT_EXCLUDE_DIRS

logger = logging.getLogger(__name__)

CONFIG_TABLE = "gradle-migrate"


class ConfigTable(BaseModel):
    """Schema of the [tool.gradle-migrate] table"""

    select: List[str] = Field(default_factory=lambda: ["ALL"])
    ignore: List[str] = Field(default_factory=list)
    exclude_dirs: List[str] = Field(default_factory=list)
    rules_file: Optional[str] = None
    workers: int = Field(default=1, ge=1)


class MigrateConfig:
    """Handles loading of .gradle-migrate.toml configuration"""

    def __init__(self, config_path: Path | None = None):
        self.select: list[str] = ["ALL"]
        self.ignore: list[str] = []
        self.exclude_dirs: set[str] = set(DEFAULT_EXCLUDE_DIRS)
        self.rules_file: Path | None = None
        self.workers: int = 1

        if config_path and config_path.exists():
            self._load_from_file(config_path)

    def _load_from_file(self, path: Path):
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Ignoring config %s: %s", path, e)
            return

        tool = data.get("tool", {})
        migrate_data = tool.get(CONFIG_TABLE, {}) if isinstance(tool, dict) else {}
        try:
            table = ConfigTable.model_validate(migrate_data)
        except ValidationError as e:
            logger.warning("Ignoring config %s: %s", path, e)
            return

        self.select = table.select
        self.ignore = table.ignore
        # Extra exclusions add to the defaults, never replace them
        self.exclude_dirs |= set(table.exclude_dirs)
        self.workers = table.workers

        if table.rules_file:
            # Relative catalog paths are resolved against the config file
            self.rules_file = (path.parent / table.rules_file).resolve()

    def apply_to_registry(self, registry: Any) -> list[Any]:
        """Return list of enabled rules based on this config"""
        return registry.get_enabled_rules(select=self.select, ignore=self.ignore)
