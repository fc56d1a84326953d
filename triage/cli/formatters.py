# Output formatters for classification results

import json
from typing import Any, Iterable, List, Optional, Sequence

from triage.models import EnhancedIssueClassification, TopTasksResult

CLASSIFICATION_COLUMNS = ["#", "Issue", "Category", "Confidence", "Priority", "Score"]
TASK_COLUMNS = ["#", "Title", "Category", "Priority", "Score", "URL"]


def classification_rows(results: Iterable[EnhancedIssueClassification]) -> List[dict]:
    """Flatten classification results into display rows."""
    rows = []
    for result in results:
        primary = result.classifications[0] if result.classifications else None
        rows.append(
            {
                "issue": f"#{result.issue_number}" if result.issue_number is not None else str(result.issue_id or "-"),
                "category": result.primary_category.value,
                "confidence": f"{result.primary_confidence:.2f}",
                "priority": result.estimated_priority.value,
                "score": f"{result.score:.2f}",
                "reasons": primary.reasons if primary else [],
                "diagnostics": result.metadata.diagnostics,
                "cache_hit": result.cache_hit,
            }
        )
    return rows


def task_rows(top: TopTasksResult) -> List[dict]:
    return [
        {
            "title": task.title,
            "category": task.category.value,
            "priority": task.priority.value,
            "score": f"{task.score:.2f}",
            "url": task.url or "",
            "reasons": task.reasons,
        }
        for task in top.tasks
    ]


def format_text(rows: List[dict], verbose: bool = False) -> str:
    """
    Format rows as plain text.

    Returns - Formatted text string
    """
    if not rows:
        return "No issues found.\n"

    output = []
    for i, row in enumerate(rows, 1):
        heading = row.get("title") or f"Issue {row.get('issue', '-')}"
        output.append(f"\n{i}. {heading}")
        output.append(f"   Category: {row.get('category')} ({row.get('confidence', '-')})")
        output.append(f"   Priority: {row.get('priority')}")
        output.append(f"   Score: {row.get('score')}")
        if row.get("url"):
            output.append(f"   URL: {row['url']}")
        if verbose:
            for reason in row.get("reasons", []):
                output.append(f"   - {reason}")
            for note in row.get("diagnostics", []):
                output.append(f"   ! {note}")
        output.append("")

    return "\n".join(output)


def format_json(data: Any) -> str:
    """
    Format data as JSON.

    Returns - JSON string
    """
    return json.dumps(data, indent=2, default=str)


def format_table(rows: List[dict], columns: Sequence[str]) -> str:
    """
    Format rows as a table.

    Returns - Table string
    """
    if not rows:
        return "No issues found.\n"

    def cell(row: dict, index: int, column: str) -> str:
        if column == "#":
            return str(index)
        return str(row.get(column.lower(), ""))[:50]

    widths = {column: len(column) for column in columns}
    for index, row in enumerate(rows, 1):
        for column in columns:
            widths[column] = max(widths[column], len(cell(row, index, column)))

    header = " | ".join(column.ljust(widths[column]) for column in columns)
    output = [header, "-" * len(header)]
    for index, row in enumerate(rows, 1):
        output.append(" | ".join(cell(row, index, column).ljust(widths[column]) for column in columns))

    return "\n".join(output) + "\n"


def format_output(
    rows: List[dict],
    output_format: str = "text",
    columns: Optional[Sequence[str]] = None,
    documents: Any = None,
    verbose: bool = False,
) -> str:
    """
    Render rows in the requested format.

    JSON output uses `documents` (the full result documents) when given.
    """
    if output_format == "json":
        return format_json(documents if documents is not None else rows)
    if output_format == "table":
        return format_table(rows, columns or CLASSIFICATION_COLUMNS)
    return format_text(rows, verbose=verbose)
