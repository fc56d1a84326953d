"""Text signals recorded in classification metadata."""

import re
from datetime import datetime, timezone
from typing import Dict, Optional

from triage.constants import (
    CODE_BLOCK_MARKERS,
    EXPECTED_BEHAVIOR_PATTERNS,
    STEPS_TO_REPRODUCE_PATTERNS,
)
from triage.models import IssueInput

# Pre-compiled regex patterns for performance
_STEPS_PATTERN = re.compile("|".join(STEPS_TO_REPRODUCE_PATTERNS), re.IGNORECASE)
_EXPECTED_PATTERN = re.compile("|".join(EXPECTED_BEHAVIOR_PATTERNS), re.IGNORECASE)

_SECONDS_PER_DAY = 86400.0


def has_code_blocks(body: str) -> bool:
    return any(marker in body for marker in CODE_BLOCK_MARKERS)


def has_steps_to_reproduce(body: str) -> bool:
    return bool(_STEPS_PATTERN.search(body))


def has_expected_behavior(body: str) -> bool:
    return bool(_EXPECTED_PATTERN.search(body))


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC, as GitHub reports them
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def issue_age_days(created_at: Optional[datetime], now: datetime) -> Optional[float]:
    """Days since creation, never negative. None when the creation time is unknown."""
    if created_at is None:
        return None
    delta = _as_utc(now) - _as_utc(created_at)
    return max(0.0, delta.total_seconds() / _SECONDS_PER_DAY)


def describe_issue(issue: IssueInput, now: datetime) -> Dict:
    """Collect the metadata fields derived from an issue's text and timestamps."""
    body = issue.text_body
    return {
        "title_length": len(issue.title),
        "body_length": len(body),
        "has_code_blocks": has_code_blocks(body),
        "has_steps_to_reproduce": has_steps_to_reproduce(body),
        "has_expected_behavior": has_expected_behavior(body),
        "label_count": len(issue.labels),
        "existing_labels": list(issue.labels),
        "age_days": issue_age_days(issue.created_at, now),
    }
