from __future__ import annotations

import pytest
from pydantic import ValidationError

from batching import Batch, BatchingConfigError, BatchOptions, deep_equal


def test_defaults_use_structural_equality_and_no_logging():
    options = BatchOptions()

    assert options.log_start is False
    assert options.log_finish is False
    assert options.parameters_equal is deep_equal
    assert options.contexts_equal is deep_equal


def test_build_accepts_mapping_instance_and_overrides():
    base = BatchOptions.build({"log_start": True})
    assert base.log_start is True

    assert BatchOptions.build(base) is base
    merged = BatchOptions.build(base, log_finish=True)
    assert merged.log_start is True
    assert merged.log_finish is True


def test_invalid_options_raise_config_error():
    with pytest.raises(BatchingConfigError):
        Batch(unknown_option=True)
    with pytest.raises(BatchingConfigError):
        Batch(parameters_equal="not callable")
    with pytest.raises(BatchingConfigError, match="mapping or BatchOptions"):
        Batch(["log_start"])


def test_options_are_immutable():
    options = BatchOptions()

    with pytest.raises(ValidationError):
        options.log_start = True  # type: ignore[misc]


def test_merge_keeps_unchanged_fields():
    def loose(a, b):
        return True

    options = BatchOptions(log_start=True).merge({"parameters_equal": loose})

    assert options.log_start is True
    assert options.parameters_equal is loose
    assert options.contexts_equal is deep_equal


def test_from_env_reads_log_flags(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BATCHING_LOG", "true")
    monkeypatch.setenv("BATCHING_LOG_FINISH", "off")

    options = BatchOptions.from_env()

    assert options.log_start is True
    assert options.log_finish is False


def test_from_env_defaults_to_disabled(monkeypatch: pytest.MonkeyPatch):
    for name in ("BATCHING_LOG", "BATCHING_LOG_START", "BATCHING_LOG_FINISH"):
        monkeypatch.delenv(name, raising=False)

    options = BatchOptions.from_env()

    assert options.log_start is False
    assert options.log_finish is False


def test_from_env_rejects_garbage(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BATCHING_LOG_START", "sometimes")

    with pytest.raises(BatchingConfigError, match="BATCHING_LOG_START"):
        BatchOptions.from_env()


def test_configure_swaps_equality_policy():
    engine = Batch()

    engine.configure(parameters_equal=lambda a, b: True)

    assert engine.options.parameters_equal(("a",), ("b",)) is True
    assert engine.options.contexts_equal is deep_equal
