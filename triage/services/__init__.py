"""
Service layer.

Usage:
    from triage.services import ClassificationService

    service = ClassificationService()
    result = service.classify({"id": 1, "title": "Crash on save", "labels": ["bug"]})
"""

from triage.services.batch_service import BatchProcessor
from triage.services.classification_service import ClassificationService, build_result_cache

__all__ = ["BatchProcessor", "ClassificationService", "build_result_cache"]
