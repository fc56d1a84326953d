"""
Issue Triage Engine CLI.

Classifies issue JSON files with the configured rules and manages the
configuration documents the engine reads.
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv

from triage.cli.formatters import (
    CLASSIFICATION_COLUMNS,
    TASK_COLUMNS,
    classification_rows,
    format_json,
    format_output,
    task_rows,
)
from triage.config import get_settings
from triage.configuration import ConfigurationStore
from triage.logging import cli_logger, configure_logging
from triage.models import RepositoryContext, UpdateOperation
from triage.services import ClassificationService

load_dotenv()


def _build_store(args) -> ConfigurationStore:
    return ConfigurationStore(config_paths=args.config or None, profiles_dir=args.profiles_dir)


def _context(args) -> Optional[RepositoryContext]:
    if args.owner and args.repo:
        return RepositoryContext(owner=args.owner, repo=args.repo)
    return None


def _read_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_issues(path: str) -> List[Any]:
    data = _read_json(path)
    return data if isinstance(data, list) else [data]


def _parse_value(raw: Optional[str]) -> Any:
    """Values are JSON when they parse as JSON, plain strings otherwise."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


# =============================================================================
# Commands
# =============================================================================


def cmd_classify(args) -> int:
    """Classify one issue or a list of issues."""
    service = ClassificationService(_build_store(args))
    issues = _read_issues(args.input)
    context = _context(args)
    results = [service.classify(issue, context, args.profile) for issue in issues]

    print(
        format_output(
            classification_rows(results),
            args.format,
            columns=CLASSIFICATION_COLUMNS,
            documents=[result.to_document() for result in results],
            verbose=args.verbose,
        )
    )
    return 0


def cmd_batch(args) -> int:
    """Classify a list of issues with the batch processor."""
    service = ClassificationService(_build_store(args))
    batch = service.classify_batch(
        _read_issues(args.input),
        _context(args),
        args.profile,
        batch_size=args.batch_size,
        parallelism=args.parallelism,
    )

    if args.format == "json":
        print(format_json(batch.to_document()))
    else:
        print(format_output(classification_rows(batch.results), args.format, verbose=args.verbose))
        print(
            f"Processed {batch.processed_issues}/{batch.total_issues} issues "
            f"({batch.failed_issues} failed) in {batch.processing_time_ms:.1f} ms; "
            f"average confidence {batch.average_confidence:.2f}"
        )
        for error in batch.errors:
            print(f"  Error (issue {error.issue_id}): {error.error}")
    return 1 if batch.failed_issues else 0


def cmd_top(args) -> int:
    """Show the highest-scoring open issues."""
    service = ClassificationService(_build_store(args))
    top = service.top_tasks(_read_issues(args.input), args.limit, _context(args), args.profile)

    print(
        format_output(
            task_rows(top),
            args.format,
            columns=TASK_COLUMNS,
            documents=top.to_document(),
            verbose=args.verbose,
        )
    )
    if args.format != "json":
        print(f"Analyzed {top.total_analyzed} open issues; average score {top.average_score:.2f}")
    return 0


def cmd_validate_config(args) -> int:
    """Validate a configuration document without loading it."""
    store = _build_store(args)
    try:
        document = _read_json(args.path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: cannot read {args.path}: {e}")
        return 1

    report = store.validate_configuration(document)
    if args.format == "json":
        print(format_json({"valid": report.valid, "errors": report.errors, "warnings": report.warnings}))
    else:
        print(f"{args.path}: {'valid' if report.valid else 'INVALID'}")
        for error in report.errors:
            print(f"  Error: {error}")
        for warning in report.warnings:
            print(f"  Warning: {warning}")
    return 0 if report.valid else 1


def cmd_show_config(args) -> int:
    """Print the effective configuration."""
    store = _build_store(args)
    loaded = store.load_config(_context(args), args.profile)

    print(format_json(loaded.config.to_document()))
    print(f"Source: {loaded.source.value}" + (f" ({loaded.path})" if loaded.path else ""), file=sys.stderr)
    for warning in loaded.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    for error in loaded.errors:
        print(f"Error: {error}", file=sys.stderr)
    return 1 if loaded.errors else 0


def cmd_update_config(args) -> int:
    """Apply one update to the effective configuration and optionally save it."""
    store = _build_store(args)
    result = store.update_configuration(
        {"path": args.path, "value": _parse_value(args.value), "operation": args.operation},
        _context(args),
    )

    for warning in result.warnings:
        print(f"Warning: {warning}")
    if not result.success:
        for error in result.errors:
            print(f"Error: {error}")
        return 1
    if not result.applied:
        print("Update not applied.")
        return 0

    print(f"Updated {args.path} ({args.operation}).")
    if args.save:
        saved = store.save_config(result.config, args.output)
        if not saved.success:
            for error in saved.errors:
                print(f"Error: {error}")
            return 1
        print(f"Saved configuration to {saved.path}")
    return 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Issue Triage Engine - classify, prioritize and score issues"
    )
    parser.add_argument(
        "--config", action="append", help="Configuration file to search (repeatable, in order)"
    )
    parser.add_argument("--profiles-dir", help="Directory holding <profile>.json documents")
    parser.add_argument("--log-level", help="Override TRIAGE_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_target_args(sub):
        sub.add_argument("--owner", help="Repository owner")
        sub.add_argument("--repo", help="Repository name")
        sub.add_argument("--profile", help="Configuration profile id")

    def add_output_args(sub, formats=("text", "json", "table")):
        sub.add_argument("--format", choices=list(formats), default="text")
        sub.add_argument("--verbose", "-v", action="store_true")

    classify_parser = subparsers.add_parser("classify", help="Classify issues from a JSON file")
    classify_parser.add_argument("--input", "-i", required=True, help="JSON file ('-' for stdin)")
    add_target_args(classify_parser)
    add_output_args(classify_parser)

    batch_parser = subparsers.add_parser("batch", help="Classify a list of issues in parallel")
    batch_parser.add_argument("--input", "-i", required=True, help="JSON file ('-' for stdin)")
    batch_parser.add_argument("--batch-size", type=int, help="Issues per chunk")
    batch_parser.add_argument("--parallelism", type=int, help="Chunks processed at once")
    add_target_args(batch_parser)
    add_output_args(batch_parser)

    top_parser = subparsers.add_parser("top", help="Show the highest-scoring open issues")
    top_parser.add_argument("--input", "-i", required=True, help="JSON file ('-' for stdin)")
    top_parser.add_argument("--limit", type=int, default=3)
    add_target_args(top_parser)
    add_output_args(top_parser)

    validate_parser = subparsers.add_parser("validate-config", help="Validate a configuration file")
    validate_parser.add_argument("path", help="Configuration document to check")
    validate_parser.add_argument("--format", choices=["text", "json"], default="text")

    show_parser = subparsers.add_parser("show-config", help="Print the effective configuration")
    add_target_args(show_parser)

    update_parser = subparsers.add_parser("update-config", help="Apply one configuration update")
    update_parser.add_argument("path", help="Dot path, e.g. performance.caching.ttl")
    update_parser.add_argument("--value", help="New value (parsed as JSON when possible)")
    update_parser.add_argument(
        "--operation", choices=[op.value for op in UpdateOperation], default=UpdateOperation.SET.value
    )
    update_parser.add_argument("--save", action="store_true", help="Write the result to disk")
    update_parser.add_argument("--output", "-o", help="Destination (default: first config path)")
    update_parser.add_argument("--owner", help="Repository owner")
    update_parser.add_argument("--repo", help="Repository name")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        configure_logging(args.log_level)

    errors, warnings = get_settings().validate_runtime_config()
    for warning in warnings:
        cli_logger.warning("settings_warning", message=warning)
    if errors:
        for error in errors:
            print(f"Error: {error}")
        return 1

    commands = {
        "classify": cmd_classify,
        "batch": cmd_batch,
        "top": cmd_top,
        "validate-config": cmd_validate_config,
        "show-config": cmd_show_config,
        "update-config": cmd_update_config,
    }

    if args.command not in commands:
        parser.print_help()
        return 2

    try:
        return commands[args.command](args)
    except (OSError, json.JSONDecodeError) as e:
        cli_logger.error("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
