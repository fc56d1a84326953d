"""
Pytest fixtures for Issue Triage Engine tests.

Every store gets its own caches and a controllable clock, so tests never share
configuration state.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from triage.classification import ClassificationEngine
from triage.configuration import ConfigurationStore, default_config, default_config_document

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def base_config():
    """Built-in configuration."""
    return default_config()


@pytest.fixture
def base_document():
    """Built-in configuration as a camelCase JSON document."""
    return default_config_document()


@pytest.fixture
def engine(base_config):
    return ClassificationEngine(base_config, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_issue():
    """Factory for raw issue payloads."""

    def _make(
        issue_id=1,
        title="Untitled",
        body="",
        labels=None,
        state="open",
        age_days=None,
        **extra,
    ):
        issue = {
            "id": issue_id,
            "number": issue_id,
            "title": title,
            "body": body,
            "labels": labels or [],
            "state": state,
            **extra,
        }
        if age_days is not None:
            issue["created_at"] = (FIXED_NOW - timedelta(days=age_days)).isoformat()
        return issue

    return _make


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON document under tmp_path and return its path."""

    def _write(name, document):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "enhanced-classification.json"


@pytest.fixture
def profiles_dir(tmp_path):
    path = tmp_path / "profiles"
    path.mkdir()
    return path


@pytest.fixture
def store(config_path, profiles_dir, clock):
    """Store reading a single config path, with isolated caches."""
    return ConfigurationStore(
        config_paths=[config_path],
        profiles_dir=profiles_dir,
        cache_ttl=300,
        clock=clock,
    )
