"""
Configuration store.

Usage:
    from triage.configuration import ConfigurationStore

    store = ConfigurationStore()
    loaded = store.load_config(profile_id="strict")
    if loaded.errors:
        ...
    store.update_configuration({"path": "minConfidence", "value": 0.6})
"""

from triage.configuration.cache import ConfigCache, ConfigCacheEntry, InMemoryConfigCache
from triage.configuration.defaults import default_config, default_config_document
from triage.configuration.patches import (
    AppendPatch,
    MergePatch,
    Patch,
    RemovePatch,
    SetPatch,
    apply_patch,
    evaluate_conditions,
    patch_from_update,
)
from triage.configuration.store import (
    ConfigLoadResult,
    ConfigSaveResult,
    ConfigUpdateResult,
    ConfigurationStore,
    ValidationReport,
    deep_merge,
    upgrade_legacy_document,
)

__all__ = [
    "AppendPatch",
    "ConfigCache",
    "ConfigCacheEntry",
    "ConfigLoadResult",
    "ConfigSaveResult",
    "ConfigUpdateResult",
    "ConfigurationStore",
    "InMemoryConfigCache",
    "MergePatch",
    "Patch",
    "RemovePatch",
    "SetPatch",
    "ValidationReport",
    "apply_patch",
    "deep_merge",
    "default_config",
    "default_config_document",
    "evaluate_conditions",
    "patch_from_update",
    "upgrade_legacy_document",
]
