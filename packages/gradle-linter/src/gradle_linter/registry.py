import re
import tomllib
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError

from .errors import RuleCatalogError
from .models import Severity
from .rules.base import MigrationRule, Substitution
from .rules.task_rules import LeftShiftTaskRule

# Rule kinds whose fix is structural rather than a list of substitutions
RULE_KINDS: dict[str, type[MigrationRule]] = {
    "substitution": MigrationRule,
    "task-leftshift": LeftShiftTaskRule,
}


class RuleEntry(BaseModel):
    """Schema of one [[rules]] table in a catalog file"""

    id: str
    severity: Severity
    title: str
    description: str
    pattern: str
    auto_fixable: bool = False
    kind: str = "substitution"
    explanation: str | None = None
    substitutions: list[tuple[str, str]] = Field(default_factory=list)


class RuleCatalog(BaseModel):
    rules: list[RuleEntry]


def _compile(rule_id: str, pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise RuleCatalogError(f"Rule {rule_id}: invalid pattern {pattern!r}: {e}") from e


def build_rule(entry: RuleEntry) -> MigrationRule:
    """Turn a validated catalog entry into an immutable rule"""
    rule_cls = RULE_KINDS.get(entry.kind)
    if rule_cls is None:
        raise RuleCatalogError(f"Rule {entry.id}: unknown kind '{entry.kind}'")
    if entry.auto_fixable and rule_cls is MigrationRule and not entry.substitutions:
        raise RuleCatalogError(f"Rule {entry.id} is auto-fixable but declares no substitutions")

    return rule_cls(
        rule_id=entry.id,
        pattern=_compile(entry.id, entry.pattern),
        severity=entry.severity,
        title=entry.title,
        description=entry.description,
        auto_fixable=entry.auto_fixable,
        explanation=entry.explanation,
        substitutions=tuple(
            Substitution(_compile(entry.id, pattern), replacement)
            for pattern, replacement in entry.substitutions
        ),
    )


class RuleRegistry:
    """Read-only table of migration rules, loaded once from a catalog file"""

    def __init__(self, catalog_path: Path | None = None):
        self._rules: dict[str, MigrationRule] = {}
        if catalog_path is None:
            self._load_builtin_rules()
        else:
            self._load_catalog(Path(catalog_path).read_text(encoding="utf-8"), str(catalog_path))
        self._rules = MappingProxyType(self._rules)

    def get(self, rule_id: str) -> MigrationRule | None:
        return self._rules.get(rule_id)

    def get_all_rules(self) -> tuple[MigrationRule, ...]:
        return tuple(self._rules.values())

    def get_enabled_rules(
        self, select: Iterable[str] = ("ALL",), ignore: Iterable[str] = ()
    ) -> list[MigrationRule]:
        """Rules matching any select entry and no ignore entry.

        Entries are rule ids or severity names; "ALL" matches every rule.
        """
        select = {s.upper() for s in select}
        ignore = {s.upper() for s in ignore}

        def matches(rule: MigrationRule, keys: set[str]) -> bool:
            return "ALL" in keys or rule.rule_id in keys or rule.severity.value in keys

        return [
            rule
            for rule in self._rules.values()
            if matches(rule, select) and not (ignore and matches(rule, ignore))
        ]

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def _load_builtin_rules(self):
        text = resources.files("gradle_linter.rules").joinpath("catalog.toml").read_text(
            encoding="utf-8"
        )
        self._load_catalog(text, "built-in catalog")

    def _load_catalog(self, text: str, source: str):
        try:
            catalog = RuleCatalog.model_validate(tomllib.loads(text))
        except tomllib.TOMLDecodeError as e:
            raise RuleCatalogError(f"Cannot parse {source}: {e}") from e
        except ValidationError as e:
            raise RuleCatalogError(f"Invalid rule entry in {source}: {e}") from e

        for entry in catalog.rules:
            if entry.id in self._rules:
                raise RuleCatalogError(f"Duplicate rule id '{entry.id}' in {source}")
            self._rules[entry.id] = build_rule(entry)
