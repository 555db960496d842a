"""
Unit tests for logging modules.

Tests cover:
1. Correlation ID management
2. JSON formatter and structured adapter
3. Centralized logging configuration
"""

import pytest
import logging
import json
import threading

from eegspec.common.logging import (
    CorrelationLogFilter,
    JSONFormatter,
    LoggingConfig,
    StructuredLogAdapter,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    get_session_id,
    set_correlation_id,
    set_session_id,
)


def _record(msg="Test message", level=logging.INFO, name="test", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


# =============================================================================
# Correlation ID Tests
# =============================================================================

@pytest.mark.unit
class TestCorrelationID:
    """Tests for correlation ID management."""

    def test_set_and_get_correlation_id(self):
        set_correlation_id("test-correlation-123")
        try:
            assert get_correlation_id() == "test-correlation-123"
        finally:
            set_correlation_id(None)

    def test_generate_correlation_id(self):
        corr_id = generate_correlation_id()

        assert isinstance(corr_id, str)
        assert len(corr_id) == 8

    def test_correlation_id_uniqueness(self):
        ids = [generate_correlation_id() for _ in range(10)]

        assert len(set(ids)) == len(ids)

    def test_correlation_scope_restores_previous(self):
        """correlation_scope binds an ID and restores the outer one on exit."""
        with correlation_scope("outer"):
            with correlation_scope() as inner:
                assert get_correlation_id() == inner
                assert inner != "outer"
            assert get_correlation_id() == "outer"
        assert get_correlation_id() is None

    def test_correlation_id_thread_isolation(self):
        """Each thread sees only its own correlation ID."""
        results = {}

        def set_and_get(thread_id):
            set_correlation_id(f"thread-{thread_id}")
            results[thread_id] = get_correlation_id()

        threads = [threading.Thread(target=set_and_get, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for i in range(5):
            assert results[i] == f"thread-{i}"

    def test_filter_injects_context(self):
        set_session_id("ws-1")
        try:
            with correlation_scope("req-7"):
                record = _record()
                assert CorrelationLogFilter().filter(record) is True
        finally:
            set_session_id(None)

        assert record.correlation_id == "req-7"
        assert record.session_id == "ws-1"
        assert get_session_id() is None


# =============================================================================
# JSONFormatter Tests
# =============================================================================

@pytest.mark.unit
class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_json_formatter_basic(self):
        parsed = json.loads(JSONFormatter().format(_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_structured_data(self):
        record = _record()
        record.structured_data = {"nblocks": 57, "montage": "LL"}

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["data"] == {"nblocks": 57, "montage": "LL"}

    def test_correlation_and_session(self):
        record = _record()
        record.correlation_id = "test-correlation-789"
        record.session_id = "session-1"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["correlation_id"] == "test-correlation-789"
        assert parsed["session_id"] == "session-1"

    def test_exception_info(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            import sys
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "Test error"

    @pytest.mark.parametrize("logger_name,component", [
        ("eegspec.modules.spectrogram.engine", "spectrogram.engine"),
        ("eegspec.core.cache.handle_cache", "core.cache.handle_cache"),
        ("__main__", "main"),
        ("uvicorn.error", "uvicorn.error"),
    ])
    def test_component(self, logger_name, component):
        parsed = json.loads(JSONFormatter().format(_record(name=logger_name)))

        assert parsed["component"] == component

    def test_extra_fields(self):
        parsed = json.loads(JSONFormatter(extra_fields={"service": "eeg"}).format(_record()))

        assert parsed["service"] == "eeg"

    def test_non_serializable_data(self):
        record = _record()
        record.structured_data = {"path": object()}

        parsed = json.loads(JSONFormatter().format(record))

        assert isinstance(parsed["data"]["path"], str)


# =============================================================================
# StructuredLogAdapter Tests
# =============================================================================

@pytest.mark.unit
class TestStructuredLogAdapter:
    """Tests for the data= keyword."""

    def test_data_becomes_structured_data(self):
        base = logging.getLogger("test.structured")
        base.setLevel(logging.DEBUG)
        handler = ListHandler()
        base.addHandler(handler)
        try:
            adapter = StructuredLogAdapter(base)
            adapter.info("Spectrogram computed", data={"montage": "RP"})
            adapter.debug("No data")
        finally:
            base.removeHandler(handler)

        assert handler.records[0].structured_data == {"montage": "RP"}
        assert not hasattr(handler.records[1], "structured_data")


# =============================================================================
# LoggingConfig Tests
# =============================================================================

@pytest.mark.unit
class TestLoggingConfig:
    """Tests for centralized logging-config.yaml handling."""

    @pytest.fixture
    def config(self, tmp_path, monkeypatch):
        for var in ("LOG_LEVEL", "LOG_LEVEL_SERVER", "LOG_LEVEL_CLI", "LOG_JSON"):
            monkeypatch.delenv(var, raising=False)
        path = tmp_path / "logging-config.yaml"
        path.write_text(
            "default_level: WARNING\n"
            "components:\n"
            "  server:\n"
            "    level: debug\n"
            "    json_format: true\n"
            "  cli: ERROR\n"
            "frameworks:\n"
            "  uvicorn: info\n"
        )
        return LoggingConfig(str(path))

    def test_component_levels(self, config):
        assert config.get_level("server") == "DEBUG"
        assert config.get_level("cli") == "ERROR"
        assert config.get_level("other") == "WARNING"

    def test_env_overrides(self, config, monkeypatch):
        """LOG_LEVEL_<COMPONENT> beats LOG_LEVEL beats the file."""
        monkeypatch.setenv("LOG_LEVEL", "info")
        assert config.get_level("server") == "INFO"

        monkeypatch.setenv("LOG_LEVEL_SERVER", "error")
        assert config.get_level("server") == "ERROR"
        assert config.get_level("cli") == "INFO"

    def test_json_format(self, config, monkeypatch):
        assert config.get_json_format("server") is True
        assert config.get_json_format("cli") is False

        monkeypatch.setenv("LOG_JSON", "0")
        assert config.get_json_format("server") is False

    def test_frameworks(self, config):
        assert config.get_framework_level("uvicorn") == "INFO"
        assert config.get_framework_level("fastapi") is None

    def test_missing_file_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_LEVEL_SERVER", raising=False)

        config = LoggingConfig(str(tmp_path / "absent.yaml"))

        assert config.get_level("server") == "INFO"
        assert config.frameworks == {}
