"""Tests for settings and notebook config loading."""

import logging

import pytest

from lens.core import logging_config
from lens.core.config import NotebookConfig, get_settings, load_notebook_config
from lens.core.exceptions import ConfigError, LensError


class TestSettings:
    """pydantic-settings environment handling."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.polling.interval_seconds == 4.0
        assert settings.polling.max_stale_ticks == 8
        assert settings.polling.timeout_seconds == 300.0
        assert settings.discovery.max_depth == 4
        assert settings.webhooks.timeout == 90.0

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LENS_CHECK_STATUS_URL", "http://backend/status")
        monkeypatch.setenv("LENS_DISCOVERY_MAX_DEPTH", "6")
        settings = get_settings()
        assert settings.webhooks.check_status_url == "http://backend/status"
        assert settings.discovery.max_depth == 6

    def test_cached(self):
        assert get_settings() is get_settings()


class TestLoadNotebookConfig:
    """YAML notebook config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_notebook_config(tmp_path / "absent.yaml")
        assert config == NotebookConfig()
        assert config.active_strategy_id == "fusion"

    def test_load(self, tmp_path):
        path = tmp_path / "notebook.yaml"
        path.write_text(
            """
active_strategy_id: multi-query
embedding_model: text-embedding-3-large
strategies:
  multi-query:
    retrieval_webhook: http://r/mq
    agentic_webhook: http://a/rag
inference:
  temperature: 0.1
"""
        )
        config = load_notebook_config(path)
        assert config.active_strategy_id == "multi-query"
        assert config.endpoints_for().retrieval_webhook == "http://r/mq"
        assert config.endpoints_for("fusion").retrieval_webhook == ""
        assert config.inference == {"temperature": 0.1}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "notebook.yaml"
        path.write_text("")
        assert load_notebook_config(path) == NotebookConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "notebook.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError) as exc_info:
            load_notebook_config(path)
        assert isinstance(exc_info.value, LensError)
        assert exc_info.value.context["path"] == str(path)

    def test_path_from_settings(self, tmp_path, monkeypatch):
        path = tmp_path / "nb.yaml"
        path.write_text("active_strategy_id: agentic-sql\n")
        monkeypatch.setenv("LENS_NOTEBOOK_CONFIG", str(path))
        assert load_notebook_config().active_strategy_id == "agentic-sql"


class TestLogging:
    """Logging setup."""

    def test_setup_is_idempotent(self, monkeypatch, tmp_path):
        monkeypatch.setattr(logging_config, "LOG_DIR", tmp_path)
        monkeypatch.setattr(logging_config, "SYSTEM_LOG_FILE", tmp_path / "system.log")
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        try:
            logging_config.setup_logging(level="DEBUG", log_to_console=False)
            handlers = root.handlers[:]
            logging_config.setup_logging(level="INFO", log_to_console=False)

            assert root.handlers == handlers
            assert root.level == logging.DEBUG
            assert logging_config.get_system_log_path() == tmp_path / "system.log"
            assert (tmp_path / "system.log").exists()
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            logging_config.reset_logging()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

    def test_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        try:
            logging_config.setup_logging(log_to_console=False, log_to_file=False)
            assert root.level == logging.WARNING
        finally:
            logging_config.reset_logging()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

    def test_startup_marker_names_log_file(self, monkeypatch, tmp_path):
        log_file = tmp_path / "system.log"
        monkeypatch.setattr(logging_config, "LOG_DIR", tmp_path)
        monkeypatch.setattr(logging_config, "SYSTEM_LOG_FILE", log_file)
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        try:
            logging_config.setup_logging(level="DEBUG", log_to_console=False)
        finally:
            logging_config.reset_logging()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

        assert f"file={log_file}" in log_file.read_text()

    def test_get_logger(self):
        assert logging_config.get_logger("lens.test").name == "lens.test"
