import re
from dataclasses import dataclass

from .base import MANUAL_FIX_PLACEHOLDER, MigrationRule

TASK_CLOSURE_HEADER = re.compile(r"\btask\s+(\w+)\s*<<\s*\{")
TASK_LEFTSHIFT = re.compile(r"\btask\s+(\w+)\s*<<\s*\{?")


def _skip_string(content: str, start: int) -> int:
    """Index just past the string literal opening at start (end of content if unterminated)."""
    quote = content[start]
    delim = quote * 3 if content.startswith(quote * 3, start) else quote
    i = start + len(delim)
    while i < len(content):
        if content[i] == "\\":
            i += 2
            continue
        if content.startswith(delim, i):
            return i + len(delim)
        if len(delim) == 1 and content[i] == "\n":
            return i
        i += 1
    return len(content)


def _find_closing_brace(content: str, open_idx: int) -> int | None:
    """Index of the brace closing the one at open_idx, or None if unbalanced.

    Braces inside quoted strings and comments do not count.
    """
    depth = 0
    i = open_idx
    while i < len(content):
        char = content[i]
        if char in "'\"":
            i = _skip_string(content, i)
            continue
        if content.startswith("//", i):
            newline = content.find("\n", i)
            i = len(content) if newline == -1 else newline
            continue
        if content.startswith("/*", i):
            close = content.find("*/", i + 2)
            i = len(content) if close == -1 else close + 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


@dataclass(frozen=True)
class LeftShiftTaskRule(MigrationRule):
    """``task name << { body }`` becomes ``task name { doLast { body } }``"""

    def transform(self, content: str) -> str:
        # Bottom-up so offsets of earlier tasks stay valid
        for match in reversed(list(TASK_CLOSURE_HEADER.finditer(content))):
            close_idx = _find_closing_brace(content, match.end() - 1)
            if close_idx is None:
                continue
            content = (
                content[: match.start()]
                + f"task {match.group(1)} {{ doLast {{"
                + content[match.end() : close_idx + 1]
                + " }"
                + content[close_idx + 1 :]
            )
        return content

    def suggest_fix(self, matched_text: str, context: str | None = None) -> str:
        source = context if context is not None else matched_text
        fixed = self.transform(source)
        if fixed == source:
            # Closure body spans several lines: suggest the new header only
            fixed = TASK_LEFTSHIFT.sub(lambda m: f"task {m.group(1)} {{ doLast {{", source)
        if fixed == source:
            return MANUAL_FIX_PLACEHOLDER
        return fixed.strip()

    def is_fixable(self, content: str, match: re.Match) -> bool:
        if not self.auto_fixable:
            return False
        header = TASK_CLOSURE_HEADER.match(content, match.start())
        if header is None:
            return False
        return _find_closing_brace(content, header.end() - 1) is not None
