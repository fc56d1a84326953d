"""
Configuration store.

Loads the effective classification configuration from a search list of JSON
documents, layers an optional profile on top, caches the result with a TTL
and applies validated runtime updates.

Loading never raises: any failure resolves to the built-in configuration and
is reported through the result's `errors` and `warnings`.
"""

import json
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from triage.cache.cache_keys import CacheKeys
from triage.classification.conditions import invalid_patterns
from triage.config import get_settings
from triage.exceptions import PatchError, format_validation_error
from triage.logging import config_logger, log_timing
from triage.models import (
    ConfigMetadata,
    ConfigSource,
    ConfigurationProfile,
    ConfigurationUpdate,
    EnhancedClassificationConfig,
    RepositoryContext,
)

from .cache import ConfigCache, InMemoryConfigCache
from .defaults import DEFAULT_CONFIG_VERSION, default_config, default_config_document
from .patches import apply_patch, evaluate_conditions, patch_from_update

# Profile lists that are concatenated onto the base instead of replacing it
CONCATENATED_KEYS = ("rules", "customRules", "repositories")


@dataclass
class ConfigLoadResult:
    config: EnhancedClassificationConfig
    source: ConfigSource
    load_time_ms: float = 0.0
    from_cache: bool = False
    path: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ConfigUpdateResult:
    success: bool
    applied: bool = False
    config: Optional[EnhancedClassificationConfig] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ConfigSaveResult:
    success: bool
    path: Optional[str] = None
    errors: List[str] = field(default_factory=list)


@dataclass
class ValidationReport:
    valid: bool
    config: Optional[EnhancedClassificationConfig] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# Document helpers
# =============================================================================

def _major_version(document: Dict[str, Any]) -> int:
    try:
        return int(str(document.get("version", "")).split(".")[0])
    except ValueError:
        return 0


def is_enhanced_document(document: Dict[str, Any]) -> bool:
    """Version 2+ documents that carry `repositories` are taken as-is."""
    return _major_version(document) >= 2 and "repositories" in document


def upgrade_legacy_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Lay a legacy document over the built-in configuration."""
    return {
        **default_config_document(),
        **document,
        "version": DEFAULT_CONFIG_VERSION,
        "repositories": [],
        "customRules": [],
    }


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge `override` onto `base` without modifying either.

    Nested objects merge recursively, rule and repository lists concatenate,
    everything else in `override` replaces the base value.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if key in CONCATENATED_KEYS and isinstance(current, list) and isinstance(value, list):
            merged[key] = [*current, *value]
        elif isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _duplicate_rule_ids(config: EnhancedClassificationConfig) -> List[str]:
    seen = set()
    duplicates = []
    for rule in [*config.rules, *config.custom_rules]:
        if rule.id in seen and rule.id not in duplicates:
            duplicates.append(rule.id)
        seen.add(rule.id)
    return duplicates


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


# =============================================================================
# Store
# =============================================================================

class ConfigurationStore:
    """
    Loads, caches and updates classification configuration.

    Caches are injected so each store owns its state; by default both are
    in-memory TTL caches. All cache writes are serialized by one lock.

    Usage:
        store = ConfigurationStore(config_paths=["config/enhanced-classification.json"])
        loaded = store.load_config(RepositoryContext(owner="octo", repo="app"), profile_id="strict")
        loaded.config.min_confidence
    """

    def __init__(
        self,
        config_paths: Optional[Sequence[Union[str, Path]]] = None,
        profiles_dir: Optional[Union[str, Path]] = None,
        cache: Optional[ConfigCache] = None,
        profile_cache: Optional[ConfigCache] = None,
        cache_ttl: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        settings = get_settings()
        paths = config_paths if config_paths is not None else settings.config_path_list
        self.config_paths = [Path(path) for path in paths]
        self.profiles_dir = Path(profiles_dir if profiles_dir is not None else settings.profiles_dir)
        self.cache_ttl = settings.config_cache_ttl if cache_ttl is None else cache_ttl
        self._cache = cache if cache is not None else InMemoryConfigCache(self.cache_ttl, clock)
        self._profile_cache = (
            profile_cache if profile_cache is not None else InMemoryConfigCache(self.cache_ttl, clock)
        )
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    # =========================================================================
    # Loading
    # =========================================================================

    def _read_document(self, path: Path) -> Dict[str, Any]:
        """Read a JSON object from disk. Raises OSError or ValueError."""
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def _load_base(
        self, errors: List[str], warnings: List[str]
    ) -> Tuple[EnhancedClassificationConfig, ConfigSource, Optional[str]]:
        for path in self.config_paths:
            if not path.is_file():
                continue
            try:
                document = self._read_document(path)
            except (OSError, ValueError) as e:
                errors.append(f"{path}: {e}")
                config_logger.warning("config_read_failed", path=str(path), error=str(e))
                continue

            if not is_enhanced_document(document):
                document = upgrade_legacy_document(document)
                warnings.append(f"{path}: upgraded legacy configuration to version {DEFAULT_CONFIG_VERSION}")

            try:
                config = EnhancedClassificationConfig.model_validate(document)
            except ValidationError as e:
                messages = format_validation_error(e)
                errors.extend(f"{path}: {message}" for message in messages)
                config_logger.warning("config_invalid", path=str(path), errors=messages)
                continue
            return config, ConfigSource.FILE, str(path)

        if errors:
            warnings.append("No valid configuration file; using built-in defaults")
        else:
            warnings.append("No configuration file found; using built-in defaults")
        return default_config(), ConfigSource.FALLBACK, None

    def load_profile(
        self, profile_id: str, errors: List[str], warnings: List[str]
    ) -> Optional[ConfigurationProfile]:
        key = CacheKeys.profile_key(profile_id)
        cached = self._profile_cache.get(key)
        if cached is not None:
            return cached

        path = self.profiles_dir / f"{profile_id}.json"
        if not path.is_file():
            warnings.append(f"Profile '{profile_id}' not found; using base configuration")
            return None
        try:
            profile = ConfigurationProfile.model_validate(self._read_document(path))
        except (OSError, ValueError) as e:
            # ValidationError is a ValueError
            if isinstance(e, ValidationError):
                errors.extend(f"{path}: {message}" for message in format_validation_error(e))
            else:
                errors.append(f"{path}: {e}")
            config_logger.warning("profile_load_failed", profile_id=profile_id, error=str(e))
            return None

        with self._lock:
            self._profile_cache.set(key, profile)
        return profile

    def _apply_profile(
        self,
        config: EnhancedClassificationConfig,
        profile: ConfigurationProfile,
        errors: List[str],
    ) -> EnhancedClassificationConfig:
        # Only the fields the profile document actually sets take part
        overrides = profile.config.model_dump(
            mode="json", by_alias=True, exclude_unset=True, exclude_none=True
        )
        merged = deep_merge(config.to_document(), overrides)
        try:
            return EnhancedClassificationConfig.model_validate(merged)
        except ValidationError as e:
            errors.extend(f"profile {profile.id}: {message}" for message in format_validation_error(e))
            return config

    @staticmethod
    def _apply_repository(
        config: EnhancedClassificationConfig, context: RepositoryContext
    ) -> EnhancedClassificationConfig:
        repository = config.find_repository(context.owner, context.repo)
        if repository is None or not repository.enabled:
            return config
        metadata = config.metadata or ConfigMetadata()
        tag = f"repository:{context.slug}"
        tags = metadata.tags if tag in metadata.tags else [*metadata.tags, tag]
        return config.model_copy(update={"metadata": metadata.model_copy(update={"tags": tags})})

    def load_config(
        self,
        repository_context: Optional[RepositoryContext] = None,
        profile_id: Optional[str] = None,
    ) -> ConfigLoadResult:
        """Load the effective configuration for a repository and profile."""
        started = time.perf_counter()
        owner = repository_context.owner if repository_context else None
        repo = repository_context.repo if repository_context else None
        key = CacheKeys.config_key(owner, repo, profile_id)

        cached = self._cache.get(key)
        if cached is not None:
            with self._lock:
                self._hits += 1
            config_logger.debug("config_cache_hit", key=key)
            return ConfigLoadResult(
                config=cached,
                source=ConfigSource.MEMORY,
                load_time_ms=_elapsed_ms(started),
                from_cache=True,
            )

        with self._lock:
            self._misses += 1
        errors: List[str] = []
        warnings: List[str] = []
        config, source, path = self._load_base(errors, warnings)

        if profile_id:
            profile = self.load_profile(profile_id, errors, warnings)
            if profile is not None:
                config = self._apply_profile(config, profile, errors)

        if repository_context is not None:
            config = self._apply_repository(config, repository_context)

        if not errors:
            with self._lock:
                self._cache.set(key, config)

        result = ConfigLoadResult(
            config=config,
            source=source,
            load_time_ms=_elapsed_ms(started),
            path=path,
            errors=errors,
            warnings=warnings,
        )
        config_logger.info(
            "config_loaded",
            key=key,
            source=source.value,
            path=path,
            version=config.version,
            errors=len(errors),
            warnings=len(warnings),
            load_time_ms=result.load_time_ms,
        )
        return result

    def get_effective_config(
        self,
        repository_context: Optional[RepositoryContext] = None,
        profile_id: Optional[str] = None,
    ) -> EnhancedClassificationConfig:
        return self.load_config(repository_context, profile_id).config

    # =========================================================================
    # Updates
    # =========================================================================

    def update_configuration(
        self,
        update: Union[ConfigurationUpdate, Dict[str, Any]],
        repository_context: Optional[RepositoryContext] = None,
    ) -> ConfigUpdateResult:
        """
        Apply one update to the cached effective configuration.

        Nothing is cached unless the patched configuration validates. Unmet
        conditions are not a failure: the update is simply not applied.
        """
        try:
            if not isinstance(update, ConfigurationUpdate):
                update = ConfigurationUpdate.model_validate(update)
        except ValidationError as e:
            return ConfigUpdateResult(success=False, errors=format_validation_error(e))

        owner = repository_context.owner if repository_context else None
        repo = repository_context.repo if repository_context else None
        key = CacheKeys.config_key(owner, repo)

        with self._lock:
            loaded = self.load_config(repository_context)
            document = loaded.config.to_document()

            unmet = evaluate_conditions(document, update.conditions)
            if unmet:
                config_logger.info("config_update_skipped", path=update.path, unmet=unmet)
                return ConfigUpdateResult(
                    success=True, applied=False, config=loaded.config, warnings=unmet
                )

            try:
                patched = apply_patch(document, patch_from_update(update))
                if update.metadata is not None:
                    patched = self._stamp_metadata(patched, update)
                config = EnhancedClassificationConfig.model_validate(patched)
            except PatchError as e:
                return ConfigUpdateResult(success=False, errors=[str(e)])
            except ValidationError as e:
                return ConfigUpdateResult(success=False, errors=format_validation_error(e))

            self._cache.set(key, config)

        config_logger.info(
            "config_updated", path=update.path, operation=update.operation.value, key=key
        )
        return ConfigUpdateResult(success=True, applied=True, config=config)

    @staticmethod
    def _stamp_metadata(document: Dict[str, Any], update: ConfigurationUpdate) -> Dict[str, Any]:
        metadata = dict(document.get("metadata") or {})
        timestamp = update.metadata.timestamp or datetime.now(timezone.utc)
        metadata["updatedAt"] = timestamp.isoformat()
        if update.metadata.user:
            metadata["updatedBy"] = update.metadata.user
        return {**document, "metadata": metadata}

    # =========================================================================
    # Saving and validation
    # =========================================================================

    @log_timing("config_save")
    def save_config(
        self,
        config: Union[EnhancedClassificationConfig, Dict[str, Any]],
        path: Optional[Union[str, Path]] = None,
    ) -> ConfigSaveResult:
        """Validate and write a configuration document, then drop cached configs."""
        target = Path(path) if path is not None else self.config_paths[0]
        document = config.to_document() if isinstance(config, EnhancedClassificationConfig) else config

        try:
            validated = EnhancedClassificationConfig.model_validate(document)
        except ValidationError as e:
            return ConfigSaveResult(success=False, path=str(target), errors=format_validation_error(e))

        with self._lock:
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(
                    json.dumps(validated.to_document(), indent=2) + "\n", encoding="utf-8"
                )
            except OSError as e:
                config_logger.error("config_save_failed", path=str(target), error=str(e))
                return ConfigSaveResult(success=False, path=str(target), errors=[str(e)])
            self._cache.clear()
        config_logger.info("config_saved", path=str(target), version=validated.version)
        return ConfigSaveResult(success=True, path=str(target))

    def validate_configuration(self, data: Dict[str, Any]) -> ValidationReport:
        """Check a document without loading or caching it."""
        if not isinstance(data, dict):
            return ValidationReport(valid=False, errors=["Configuration must be a JSON object"])

        warnings = []
        if not is_enhanced_document(data):
            warnings.append(
                f"Document is in the legacy format and will be upgraded to {DEFAULT_CONFIG_VERSION} on load"
            )
        try:
            config = EnhancedClassificationConfig.model_validate(data)
        except ValidationError as e:
            return ValidationReport(valid=False, errors=format_validation_error(e), warnings=warnings)

        for rule in [*config.rules, *config.custom_rules]:
            patterns = [*rule.conditions.title_patterns, *rule.conditions.body_patterns]
            for pattern in invalid_patterns(patterns):
                warnings.append(f"Rule '{rule.id}' has an invalid pattern {pattern!r}; it will be ignored")
        for rule_id in _duplicate_rule_ids(config):
            warnings.append(f"Rule id '{rule_id}' is used more than once")

        return ValidationReport(valid=True, config=config, warnings=warnings)

    # =========================================================================
    # Cache management
    # =========================================================================

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._profile_cache.clear()
        config_logger.info("config_cache_cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        with self._lock:
            hits, misses = self._hits, self._misses
        lookups = hits + misses
        return {
            "config_entries": len(self._cache),
            "profile_entries": len(self._profile_cache),
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / lookups, 4) if lookups else 0.0,
            "ttl": self.cache_ttl,
        }
