import json
import logging
import sys

from rentory.core.config import settings
from rentory.core.logging import (
    add_to_log_context,
    clear_log_context,
    get_log_context,
    get_logger,
    log_exception_with_context,
    setup_exception_logging,
    setup_logging,
)
from rentory.core.logging.config import get_logging_config, load_config_from_yaml
from rentory.core.logging.filters import CombinedContextFilter, NoiseReductionFilter, OperationIdFilter
from rentory.core.logging.formatters import ProductionFormatter


def _record(message="Allocating capacity", level=logging.INFO, exc_info=None):
    return logging.LogRecord("rentory.test", level, __file__, 10, message, None, exc_info)


class TestLoggingConfig:
    """Test cases for the environment specific logging configuration"""

    def test_local_config(self):
        config = get_logging_config("local")

        assert config["root"]["handlers"] == ["console"]
        assert config["loggers"]["rentory"]["level"] == "DEBUG"
        assert config["handlers"]["error_file"]["level"] == "ERROR"

    def test_production_config(self):
        """Test JSON output with noise reduction in production."""
        config = get_logging_config("production")

        assert config["loggers"]["rentory"]["level"] == "INFO"
        assert config["formatters"]["production"]["()"].endswith("ProductionFormatter")
        assert "noise_reduction" in config["handlers"]["json_stdout"]["filters"]
        assert config["handlers"]["error_stderr"]["stream"] == "ext://sys.stderr"

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "logging.yaml"
        path.write_text("version: 1\nroot:\n  level: INFO\n", encoding="utf-8")

        assert load_config_from_yaml(path) == {"version": 1, "root": {"level": "INFO"}}

    def test_missing_or_invalid_yaml(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("version: [1\n", encoding="utf-8")

        assert load_config_from_yaml(tmp_path / "missing.yaml") is None
        assert load_config_from_yaml(broken) is None


class TestLogContext:
    """Test cases for contextual log enrichment"""

    def setup_method(self):
        clear_log_context()

    def teardown_method(self):
        clear_log_context()

    def test_context_is_scoped(self):
        with add_to_log_context(product_id="gid://rentory/Product/abc", actor="alice"):
            with add_to_log_context(instance_id="gid://rentory/Instance/def"):
                assert get_log_context() == {
                    "product_id": "gid://rentory/Product/abc",
                    "actor": "alice",
                    "instance_id": "gid://rentory/Instance/def",
                }
            assert "instance_id" not in get_log_context()

        assert get_log_context() == {}

    def test_combined_filter_copies_context(self):
        record = _record()

        with add_to_log_context(reservation_line_id="gid://rentory/ReservationLine/xyz"):
            assert CombinedContextFilter().filter(record) is True

        assert record.reservation_line_id == "gid://rentory/ReservationLine/xyz"
        assert record.hostname

    def test_operation_id_is_shared(self):
        """Test that records of the same task share one generated operation id."""
        first, second = _record(), _record()

        OperationIdFilter().filter(first)
        OperationIdFilter().filter(second)

        assert first.operation_id == second.operation_id
        assert get_log_context()["operation_id"] == first.operation_id

    def test_noise_reduction(self):
        noise = NoiseReductionFilter(suppress_patterns=["SELECT 1"], min_level=logging.INFO)

        assert noise.filter(_record("SELECT 1")) is False
        assert noise.filter(_record("debug", level=logging.DEBUG)) is False
        assert noise.filter(_record()) is True


class TestStructuredOutput:
    """Test cases for JSON formatting of records"""

    def test_production_formatter_structures_exceptions(self):
        try:
            raise ValueError("counter would be negative")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        payload = json.loads(ProductionFormatter().format(record))

        assert payload["level"] == "ERROR"
        assert payload["logger"] == "rentory.test"
        assert payload["exception"]["type"] == "ValueError"
        assert payload["exception"]["message"] == "counter would be negative"

    def test_log_exception_with_context(self, caplog):
        logger = get_logger("rentory.test")

        with caplog.at_level(logging.ERROR, logger="rentory.test"):
            with add_to_log_context(actor="alice"):
                log_exception_with_context(RuntimeError("boom"), "Allocation failed", target=logger)

        record = caplog.records[-1]
        assert record.exception_type == "RuntimeError"
        assert record.actor == "alice"
        assert "Allocation failed" in record.getMessage()


class TestSetup:
    """Test cases for process level logging setup"""

    def test_setup_logging_with_override(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "BASE_DIR", str(tmp_path))

        setup_logging({"version": 1, "disable_existing_loggers": False, "loggers": {"rentory.setup": {"level": "WARNING"}}})

        assert (tmp_path / "logs").is_dir()
        assert logging.getLogger("rentory.setup").level == logging.WARNING

    def test_setup_logging_reads_environment_yaml(self, monkeypatch, tmp_path):
        """Test that config/logging.{environment}.yaml wins over the built-in configuration."""
        monkeypatch.setattr(settings, "BASE_DIR", str(tmp_path))
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "logging.local.yaml").write_text(
            "version: 1\ndisable_existing_loggers: false\nloggers:\n  rentory.yaml:\n    level: ERROR\n",
            encoding="utf-8",
        )

        setup_logging()

        assert logging.getLogger("rentory.yaml").level == logging.ERROR

    def test_uncaught_exceptions_are_logged(self, monkeypatch, caplog):
        calls = []
        monkeypatch.setattr(sys, "excepthook", lambda *args: calls.append(args))

        setup_exception_logging()
        error = ValueError("ledger row rejected")

        with caplog.at_level(logging.CRITICAL, logger="rentory.core.logging.exceptions"):
            sys.excepthook(ValueError, error, None)

        assert len(calls) == 1
        assert caplog.records[-1].exception_type == "ValueError"
