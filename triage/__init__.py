"""
Issue Triage Engine Core Library.

This package classifies issues into categories, estimates their priority and
computes a task score, all driven by a validated, hot-swappable configuration.

Usage:
    # Config
    from triage.config import get_settings, Settings

    # Logging
    from triage.logging import get_logger, configure_logging

    # Classification
    from triage.configuration import ConfigurationStore
    from triage.services import ClassificationService

    service = ClassificationService(ConfigurationStore())
    result = service.classify({"id": 1, "title": "App crashes on start", "labels": ["bug"]})
"""

__version__ = "1.0.0"

# Lazy imports to avoid circular dependencies
# Users should import directly from submodules:
#   from triage.config import get_settings
#   from triage.services import ClassificationService
