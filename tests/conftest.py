"""
Pytest configuration and shared fixtures for voiceagent testing.

Every test runs against one frozen instant, Wednesday 2025-11-05 16:37 in
Riga, so relative dates and weekday rollover are deterministic.
"""

import os
from pathlib import Path
from unittest.mock import Mock

import pytest
import yaml

from voiceagent.core import FixedClock, LoggingManager
from voiceagent.core.config_manager import ProcessingConfig
from voiceagent.intelligence import TaskParser
from voiceagent.processors import get_language_profile

from .fixtures.sample_data import FIXED_NOW, TEST_CONFIGURATION, TIMEZONES


@pytest.fixture(scope="session", autouse=True)
def quiet_logging(tmp_path_factory):
    """Console-only logging so test runs leave no log files behind"""
    LoggingManager().configure(
        log_dir=str(tmp_path_factory.mktemp("logs")),
        level="WARNING",
        file_logging=False,
    )


# Clock Fixtures
@pytest.fixture
def clock():
    """Clock frozen at the shared test instant"""
    return FixedClock(FIXED_NOW, TIMEZONES)


@pytest.fixture
def now(clock):
    """Frozen instant in Riga"""
    return clock.now("lv")


@pytest.fixture
def now_et(clock):
    """Frozen instant in Tallinn"""
    return clock.now("et")


# Processing Fixtures
@pytest.fixture
def lv_profile():
    return get_language_profile("lv")


@pytest.fixture
def et_profile():
    return get_language_profile("et")


@pytest.fixture
def parser():
    """Fast-path parser with default processing settings"""
    return TaskParser(ProcessingConfig())


# Configuration Fixtures
@pytest.fixture
def temp_config_dir(tmp_path):
    """Temporary directory holding a default_config.yaml"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    config = dict(TEST_CONFIGURATION)
    config["gold_log"] = dict(config["gold_log"], db_path=str(tmp_path / "gold_log.db"))
    config["logging"] = dict(config["logging"], log_dir=str(tmp_path / "logs"))

    with open(config_dir / "default_config.yaml", "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, allow_unicode=True)

    return config_dir


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment variables that would leak into configuration"""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("VOICEAGENT_ENV", raising=False)
    for key in list(os.environ):
        if key.startswith("VOICEAGENT_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


# Gold Log Fixtures
@pytest.fixture
def gold_log_path(tmp_path) -> Path:
    return tmp_path / "audit" / "gold_log.db"


@pytest.fixture
def mock_gold_log():
    """Gold log sink that records appended entries"""
    sink = Mock()
    sink.entries = []
    sink.append.side_effect = sink.entries.append
    return sink


@pytest.fixture
def mock_teacher():
    """Teacher resolver stub; set ``resolve.return_value`` per test"""
    teacher = Mock()
    teacher.resolve = Mock()
    return teacher


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# Test Collection Hooks
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location"""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
