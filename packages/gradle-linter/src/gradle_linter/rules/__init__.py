from .base import MigrationRule, Substitution
from .task_rules import LeftShiftTaskRule

__all__ = ["MigrationRule", "Substitution", "LeftShiftTaskRule"]
