"""
Batch classification.

Issues are split into chunks of `batch_size`; at most `parallelism` chunks are
in flight on a thread pool at any time. A failing issue is recorded and the
rest of the batch carries on. Cancellation is cooperative: the event is
checked before each chunk starts, so chunks already running complete.
"""

import threading
import time
import uuid
from collections.abc import Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from triage.classification import ClassificationEngine
from triage.classification.engine import ContextLike, IssueLike
from triage.logging import LogContext, batch_logger
from triage.models import (
    BatchClassificationResult,
    BatchError,
    BatchProcessingConfig,
    EnhancedIssueClassification,
)


@dataclass
class _ChunkOutcome:
    results: List[Tuple[int, EnhancedIssueClassification]] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)


def _issue_id(issue: Any) -> Optional[int]:
    value = getattr(issue, "id", None)
    if value is None and isinstance(issue, Mapping):
        value = issue.get("id")
    return value if isinstance(value, int) else None


class BatchProcessor:
    """Classifies many issues with one engine."""

    def __init__(
        self,
        engine: ClassificationEngine,
        batch_size: Optional[int] = None,
        parallelism: Optional[int] = None,
        enabled: Optional[bool] = None,
    ):
        performance = engine.config.performance
        defaults = performance.batch_processing if performance else BatchProcessingConfig()
        self.engine = engine
        self.batch_size = max(1, batch_size or defaults.batch_size)
        self.parallelism = max(1, parallelism or defaults.parallelism)
        self.enabled = defaults.enabled if enabled is None else enabled

    def _process_chunk(
        self, offset: int, chunk: List[IssueLike], context: ContextLike
    ) -> _ChunkOutcome:
        outcome = _ChunkOutcome()
        for position, issue in enumerate(chunk, start=offset):
            try:
                outcome.results.append((position, self.engine.classify_issue(issue, context)))
            except Exception as e:
                issue_id = _issue_id(issue)
                batch_logger.warning("batch_item_failed", issue_id=issue_id, position=position, error=str(e))
                outcome.errors.append(BatchError(issue_id=issue_id, error=str(e)))
        return outcome

    def classify_batch(
        self,
        issues: Iterable[IssueLike],
        repository_context: ContextLike = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchClassificationResult:
        started = time.perf_counter()
        items = list(issues)
        chunks = [
            (offset, items[offset: offset + self.batch_size])
            for offset in range(0, len(items), self.batch_size)
        ]
        results: Dict[int, EnhancedIssueClassification] = {}
        errors: List[BatchError] = []
        cancelled = False

        def collect(outcome: _ChunkOutcome) -> None:
            results.update(outcome.results)
            errors.extend(outcome.errors)

        def should_stop() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        with LogContext(batch_id=uuid.uuid4().hex[:8]):
            batch_logger.info(
                "batch_started",
                total=len(items),
                chunks=len(chunks),
                parallelism=self.parallelism if self.enabled else 1,
            )

            if not self.enabled or self.parallelism == 1:
                for offset, chunk in chunks:
                    if should_stop():
                        cancelled = True
                        break
                    collect(self._process_chunk(offset, chunk, repository_context))
            else:
                pending_chunks = iter(chunks)
                with ThreadPoolExecutor(max_workers=self.parallelism) as executor:
                    in_flight: set[Future] = set()

                    def submit_next() -> bool:
                        nonlocal cancelled
                        next_chunk = next(pending_chunks, None)
                        if next_chunk is None:
                            return False
                        if should_stop():
                            cancelled = True
                            return False
                        offset, chunk = next_chunk
                        in_flight.add(
                            executor.submit(self._process_chunk, offset, chunk, repository_context)
                        )
                        return True

                    for _ in range(self.parallelism):
                        if not submit_next():
                            break

                    while in_flight:
                        done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                        for future in done:
                            collect(future.result())
                            if not cancelled:
                                submit_next()

            ordered = [results[position] for position in sorted(results)]
            processed = len(ordered) + len(errors)
            average = (
                round(sum(r.primary_confidence for r in ordered) / len(ordered), 4) if ordered else 0.0
            )
            result = BatchClassificationResult(
                total_issues=len(items),
                processed_issues=processed,
                successful_issues=len(ordered),
                failed_issues=len(errors),
                results=ordered,
                errors=errors,
                processing_time_ms=round((time.perf_counter() - started) * 1000, 3),
                average_confidence=average,
                cancelled=cancelled,
            )
            batch_logger.info(
                "batch_completed",
                processed=processed,
                failed=len(errors),
                cancelled=cancelled,
                duration_ms=result.processing_time_ms,
            )
        return result


__all__ = ["BatchProcessor"]
