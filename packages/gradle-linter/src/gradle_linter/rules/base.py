import re
from dataclasses import dataclass
from typing import Iterator

from ..models import Severity

GENERIC_EXPLANATION = (
    "This code pattern is deprecated or removed in Gradle 9 and requires migration."
)
MANUAL_FIX_PLACEHOLDER = "// Manual migration required - see explanation"


def line_of(content: str, start: int, end: int | None = None) -> str:
    """Return the full source line(s) spanning content[start:end]."""
    if end is None:
        end = start
    line_start = content.rfind("\n", 0, start) + 1
    line_end = content.find("\n", end)
    if line_end == -1:
        line_end = len(content)
    return content[line_start:line_end]


@dataclass(frozen=True)
class Substitution:
    """One ordered text substitution in a rule's fix"""

    pattern: re.Pattern
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


@dataclass(frozen=True)
class MigrationRule:
    """A deprecated Gradle construct: how to find it, explain it and rewrite it.

    The default behavior is driven entirely by catalog data: ``pattern`` finds
    occurrences and ``substitutions`` are applied in order to rewrite them.
    Subclasses override ``transform`` when a fix needs more than substitutions.
    """

    rule_id: str
    pattern: re.Pattern
    severity: Severity
    title: str
    description: str
    auto_fixable: bool = False
    explanation: str | None = None
    substitutions: tuple[Substitution, ...] = ()

    def find_matches(self, content: str) -> Iterator[re.Match]:
        return self.pattern.finditer(content)

    def explain(self, matched_text: str) -> str:
        if not self.explanation:
            return GENERIC_EXPLANATION
        # Plain replace: templates quote Groovy blocks with literal braces
        return self.explanation.replace("{matched}", matched_text)

    def suggest_fix(self, matched_text: str, context: str | None = None) -> str:
        """Replacement text for a match, computed on its source line when given."""
        source = context if context is not None else matched_text
        fixed = self.transform(source)
        if fixed == source:
            return MANUAL_FIX_PLACEHOLDER
        return fixed.strip()

    def is_fixable(self, content: str, match: re.Match) -> bool:
        if not self.auto_fixable:
            return False
        line = line_of(content, match.start(), match.end())
        return self.transform(line) != line

    def transform(self, content: str) -> str:
        """Rewrite every occurrence in content. Must be idempotent."""
        for substitution in self.substitutions:
            content = substitution.apply(content)
        return content
