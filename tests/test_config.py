"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from targethash.config import Settings, load_settings


def test_defaults(monkeypatch):
    for var in ("TARGETHASH_BAZEL_PATH", "TARGETHASH_CONTENT_HASHES", "TARGETHASH_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings()
    assert settings.bazel_path == "bazel"
    assert settings.query_expression == "//...:all-targets"
    assert settings.query_timeout_seconds == 600
    assert settings.content_hashes is False
    assert settings.strict_generated_files is False
    assert settings.log_level == "WARNING"


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("TARGETHASH_BAZEL_PATH", "/usr/local/bin/bazelisk")
    monkeypatch.setenv("TARGETHASH_CONTENT_HASHES", "true")
    monkeypatch.setenv("TARGETHASH_QUERY_TIMEOUT_SECONDS", "42")
    settings = load_settings()
    assert settings.bazel_path == "/usr/local/bin/bazelisk"
    assert settings.content_hashes is True
    assert settings.query_timeout_seconds == 42


def test_overrides_beat_environment(monkeypatch):
    monkeypatch.setenv("TARGETHASH_BAZEL_PATH", "from-env")
    assert load_settings(bazel_path="from-flag").bazel_path == "from-flag"


def test_none_overrides_ignored(monkeypatch):
    monkeypatch.setenv("TARGETHASH_BAZEL_PATH", "from-env")
    assert load_settings(bazel_path=None).bazel_path == "from-env"


def test_log_level_normalized():
    assert load_settings(log_level="debug").log_level == "DEBUG"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError, match="unknown log level"):
        load_settings(log_level="chatty")


@pytest.mark.parametrize("timeout", [0, -5])
def test_non_positive_timeout_rejected(timeout):
    with pytest.raises(ValidationError, match="must be positive"):
        load_settings(query_timeout_seconds=timeout)
