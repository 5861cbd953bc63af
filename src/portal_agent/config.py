"""
Configuration and Logging Setup

Provides centralized configuration and logging for the portal agent.
Reads LOG_LEVEL and WORKFLOW_* settings from environment variables
(a local .env file is loaded first).

Usage:
    from portal_agent.config import configure_logging, get_logger, WorkflowConfig

    # Configure at application startup
    configure_logging()

    # Get logger in any module
    logger = get_logger(__name__)

    # Workflow settings from environment, overridden by a request payload
    config = WorkflowConfig.from_mapping({"retryLimit": 1}, base=WorkflowConfig.from_env())
"""

import logging
import os
import sys
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables
load_dotenv()

# Default configuration
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s: %(message)s"

# Valid log levels
VALID_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# External (camelCase) request keys mapped to WorkflowConfig fields
CONFIG_KEY_ALIASES = {
    "maxIterations": "max_iterations",
    "requireReview": "require_review",
    "autoRetry": "auto_retry",
    "retryLimit": "retry_limit",
    "timeout": "timeout_ms",
    "replanOnFailure": "replan_on_failure",
    "maxReplans": "max_replans",
}

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


@dataclass
class WorkflowConfig:
    """
    Configuration for one workflow run.

    Attributes:
        max_iterations: Upper bound on loop iterations
        require_review: Gate plans and task results through the reviewer
        auto_retry: Re-attempt a task whose result the reviewer rejected
        retry_limit: Retries allowed per task after the first attempt
        timeout_ms: Wall-clock budget, sampled between iterations
        replan_on_failure: Revise the plan when a task fails
        max_replans: Failure-driven revisions allowed per run
        verbose: Render agent progress to the terminal
    """

    max_iterations: int = 15
    require_review: bool = True
    auto_retry: bool = True
    retry_limit: int = 2
    timeout_ms: int = 300000
    replan_on_failure: bool = False
    max_replans: int = 1
    verbose: bool = False

    def __post_init__(self) -> None:
        for name in ("max_iterations", "retry_limit", "timeout_ms", "max_replans"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")

        # Request payloads may carry "true"/"false" strings
        for name in ("require_review", "auto_retry", "replan_on_failure", "verbose"):
            value = getattr(self, name)
            if isinstance(value, str) and value.strip().lower() in ("true", "false"):
                value = value.strip().lower() == "true"
                setattr(self, name, value)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be a boolean, got {value!r}")

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        """
        Create WorkflowConfig from environment variables.

        Environment variables:
            WORKFLOW_MAX_ITERATIONS: int (default: 15)
            WORKFLOW_REQUIRE_REVIEW: true/false (default: true)
            WORKFLOW_AUTO_RETRY: true/false (default: true)
            WORKFLOW_RETRY_LIMIT: int (default: 2)
            WORKFLOW_TIMEOUT_MS: int in ms (default: 300000)
            WORKFLOW_REPLAN_ON_FAILURE: true/false (default: false)
            WORKFLOW_MAX_REPLANS: int (default: 1)
        """
        return cls(
            max_iterations=_env_int("WORKFLOW_MAX_ITERATIONS", 15),
            require_review=_env_bool("WORKFLOW_REQUIRE_REVIEW", True),
            auto_retry=_env_bool("WORKFLOW_AUTO_RETRY", True),
            retry_limit=_env_int("WORKFLOW_RETRY_LIMIT", 2),
            timeout_ms=_env_int("WORKFLOW_TIMEOUT_MS", 300000),
            replan_on_failure=_env_bool("WORKFLOW_REPLAN_ON_FAILURE", False),
            max_replans=_env_int("WORKFLOW_MAX_REPLANS", 1),
        )

    @classmethod
    def from_mapping(
        cls,
        mapping: Optional[Mapping[str, Any]],
        base: Optional["WorkflowConfig"] = None,
    ) -> "WorkflowConfig":
        """
        Overlay a partial request config onto a base config.

        Accepts both the camelCase request keys (maxIterations, timeout, ...)
        and the dataclass field names. Unknown keys are logged and ignored.

        Args:
            mapping: Partial configuration, may be None
            base: Configuration to start from (defaults if None)

        Returns:
            New WorkflowConfig instance
        """
        base = base or cls()
        if not mapping:
            return replace(base)

        known = {f.name for f in fields(cls)}
        updates: dict[str, Any] = {}
        for key, value in mapping.items():
            name = CONFIG_KEY_ALIASES.get(key, key)
            if name not in known:
                logger.warning("Ignoring unknown workflow config key %r", key)
                continue
            updates[name] = value

        return replace(base, **updates)


def get_log_level() -> int:
    """
    Get the log level from LOG_LEVEL environment variable.

    Returns:
        Logging level constant (e.g., logging.INFO)
    """
    level_str = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    if level_str not in VALID_LEVELS:
        print(
            f"Warning: Invalid LOG_LEVEL '{level_str}'. "
            f"Valid values: {', '.join(VALID_LEVELS.keys())}. "
            f"Using {DEFAULT_LOG_LEVEL}.",
            file=sys.stderr,
        )
        return VALID_LEVELS[DEFAULT_LOG_LEVEL]

    return VALID_LEVELS[level_str]


def configure_logging(
    level: Optional[int] = None,
    verbose: bool = False,
) -> None:
    """
    Configure logging for the portal agent.

    Should be called once at application startup.

    Args:
        level: Override log level (default: from LOG_LEVEL env var)
        verbose: Use detailed format with timestamps (default: simple format)
    """
    if level is None:
        level = get_log_level()

    log_format = LOG_FORMAT if verbose else LOG_FORMAT_SIMPLE

    logging.basicConfig(
        level=level,
        format=log_format,
        stream=sys.stderr,
        force=True,
    )

    logging.getLogger("portal_agent").setLevel(level)

    # Quiet noisy third-party loggers in non-debug mode
    if level > logging.DEBUG:
        logging.getLogger("playwright").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("anthropic").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
