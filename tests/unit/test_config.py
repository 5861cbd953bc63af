"""
Unit tests for workflow configuration and logging setup.
"""

import logging

import pytest

from portal_agent.config import WorkflowConfig, configure_logging, get_log_level
from portal_agent.errors import ConfigurationError


class TestWorkflowConfig:
    """Defaults, request-key overlays and validation."""

    def test_defaults(self):
        config = WorkflowConfig()

        assert config.max_iterations == 15
        assert config.require_review is True
        assert config.auto_retry is True
        assert config.retry_limit == 2
        assert config.timeout_ms == 300000
        assert config.replan_on_failure is False
        assert config.max_replans == 1

    def test_from_mapping_accepts_request_keys(self):
        config = WorkflowConfig.from_mapping({
            "maxIterations": 3,
            "requireReview": False,
            "autoRetry": False,
            "retryLimit": 5,
            "timeout": 1000,
        })

        assert config.max_iterations == 3
        assert config.require_review is False
        assert config.auto_retry is False
        assert config.retry_limit == 5
        assert config.timeout_ms == 1000

    def test_from_mapping_accepts_field_names_over_base(self):
        base = WorkflowConfig(retry_limit=7)
        config = WorkflowConfig.from_mapping({"timeout_ms": 10}, base=base)

        assert config.timeout_ms == 10
        assert config.retry_limit == 7
        assert base.timeout_ms == 300000

    def test_from_mapping_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = WorkflowConfig.from_mapping({"colour": "blue"})

        assert config == WorkflowConfig()
        assert "colour" in caplog.text

    def test_from_mapping_none(self):
        assert WorkflowConfig.from_mapping(None) == WorkflowConfig()

    @pytest.mark.parametrize("field", ["max_iterations", "retry_limit", "timeout_ms", "max_replans"])
    def test_negative_values_rejected(self, field):
        with pytest.raises(ConfigurationError):
            WorkflowConfig(**{field: -1})

    def test_non_integer_rejected(self):
        with pytest.raises(ConfigurationError):
            WorkflowConfig.from_mapping({"retryLimit": "two"})

    def test_boolean_strings_coerced(self):
        config = WorkflowConfig.from_mapping({"requireReview": "false", "replanOnFailure": " TRUE "})

        assert config.require_review is False
        assert config.replan_on_failure is True

    @pytest.mark.parametrize("value", ["no", "0", 1, None])
    def test_non_boolean_rejected(self, value):
        with pytest.raises(ConfigurationError, match="auto_retry"):
            WorkflowConfig.from_mapping({"autoRetry": value})

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_MAX_ITERATIONS", "4")
        monkeypatch.setenv("WORKFLOW_REQUIRE_REVIEW", "false")
        monkeypatch.setenv("WORKFLOW_TIMEOUT_MS", "2500")
        monkeypatch.setenv("WORKFLOW_REPLAN_ON_FAILURE", "yes")

        config = WorkflowConfig.from_env()

        assert config.max_iterations == 4
        assert config.require_review is False
        assert config.timeout_ms == 2500
        assert config.replan_on_failure is True

    def test_from_env_bad_integer(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_RETRY_LIMIT", "many")
        with pytest.raises(ConfigurationError):
            WorkflowConfig.from_env()


class TestLogging:
    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    def test_invalid_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        assert get_log_level() == logging.INFO

    def test_configure_logging_quiets_third_party(self):
        configure_logging(level=logging.INFO)

        assert logging.getLogger("portal_agent").level == logging.INFO
        assert logging.getLogger("playwright").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
