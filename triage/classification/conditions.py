"""
Rule condition matching.

Each condition kind has one matcher in CONDITION_MATCHERS. Keyword and label
matching is case-insensitive substring matching. Patterns are written either
as a bare regular expression or as `/regex/flags`; they are always compiled
case-insensitive.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from triage.logging import engine_logger
from triage.models import IssueInput, RuleConditions


class ConditionKind(str, Enum):
    TITLE_KEYWORD = "title_keyword"
    BODY_KEYWORD = "body_keyword"
    LABEL = "label"
    TITLE_PATTERN = "title_pattern"
    BODY_PATTERN = "body_pattern"
    EXCLUDE_KEYWORD = "exclude_keyword"


# Kinds that add confidence; EXCLUDE_KEYWORD only vetoes
SIGNAL_KINDS = (
    ConditionKind.TITLE_KEYWORD,
    ConditionKind.BODY_KEYWORD,
    ConditionKind.LABEL,
    ConditionKind.TITLE_PATTERN,
    ConditionKind.BODY_PATTERN,
)


@dataclass(frozen=True)
class IssueText:
    """Issue text prepared once per classification."""
    title: str
    body: str
    labels: Tuple[str, ...]

    @classmethod
    def from_issue(cls, issue: IssueInput) -> "IssueText":
        return cls(
            title=issue.title,
            body=issue.text_body,
            labels=tuple(label.lower() for label in issue.labels),
        )

    @property
    def title_lower(self) -> str:
        return self.title.lower()

    @property
    def body_lower(self) -> str:
        return self.body.lower()


# =============================================================================
# Patterns
# =============================================================================

_DELIMITED_PATTERN = re.compile(r"^/(.*)/([a-z]*)$", re.DOTALL)

_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> Optional[re.Pattern]:
    """Compile a rule pattern. Returns None (and logs once) when it is invalid."""
    text = pattern.strip()
    delimited = _DELIMITED_PATTERN.match(text)
    source, flag_letters = (delimited.group(1), delimited.group(2)) if delimited else (text, "")

    flags = re.IGNORECASE
    for letter in flag_letters:
        # g, u and y have no Python counterpart and are ignored
        flags |= _PATTERN_FLAGS.get(letter, 0)

    try:
        return re.compile(source, flags)
    except re.error as e:
        engine_logger.warning("invalid_rule_pattern", pattern=pattern, error=str(e))
        return None


def invalid_patterns(patterns: Sequence[str]) -> List[str]:
    return [pattern for pattern in patterns if compile_pattern(pattern) is None]


# =============================================================================
# Matchers
# =============================================================================

def _keyword_hits(text: str, keywords: Sequence[str]) -> List[str]:
    return [keyword for keyword in keywords if keyword.strip() and keyword.lower() in text]


def _pattern_hits(text: str, patterns: Sequence[str]) -> List[str]:
    hits = []
    for pattern in patterns:
        compiled = compile_pattern(pattern)
        if compiled is not None and compiled.search(text):
            hits.append(pattern)
    return hits


def _match_title_keywords(text: IssueText, conditions: RuleConditions) -> List[str]:
    return _keyword_hits(text.title_lower, conditions.title_keywords)


def _match_body_keywords(text: IssueText, conditions: RuleConditions) -> List[str]:
    return _keyword_hits(text.body_lower, conditions.body_keywords)


def _match_labels(text: IssueText, conditions: RuleConditions) -> List[str]:
    return [
        wanted
        for wanted in conditions.labels
        if wanted.strip() and any(wanted.lower() in label for label in text.labels)
    ]


def _match_title_patterns(text: IssueText, conditions: RuleConditions) -> List[str]:
    return _pattern_hits(text.title, conditions.title_patterns)


def _match_body_patterns(text: IssueText, conditions: RuleConditions) -> List[str]:
    return _pattern_hits(text.body, conditions.body_patterns)


def _match_exclusions(text: IssueText, conditions: RuleConditions) -> List[str]:
    combined = f"{text.title_lower}\n{text.body_lower}"
    return _keyword_hits(combined, conditions.exclude_keywords)


CONDITION_MATCHERS: Dict[ConditionKind, Callable[[IssueText, RuleConditions], List[str]]] = {
    ConditionKind.TITLE_KEYWORD: _match_title_keywords,
    ConditionKind.BODY_KEYWORD: _match_body_keywords,
    ConditionKind.LABEL: _match_labels,
    ConditionKind.TITLE_PATTERN: _match_title_patterns,
    ConditionKind.BODY_PATTERN: _match_body_patterns,
    ConditionKind.EXCLUDE_KEYWORD: _match_exclusions,
}


def match_condition(kind: ConditionKind, text: IssueText, conditions: RuleConditions) -> List[str]:
    """Return the terms of one condition kind that match the issue."""
    return CONDITION_MATCHERS[kind](text, conditions)


__all__ = [
    "CONDITION_MATCHERS",
    "ConditionKind",
    "IssueText",
    "SIGNAL_KINDS",
    "compile_pattern",
    "invalid_patterns",
    "match_condition",
]
