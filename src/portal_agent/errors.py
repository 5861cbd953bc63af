"""Exceptions for the portal automation workflow."""

from typing import Optional


class PortalAgentError(Exception):
    """Base exception for portal agent errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """
        Initialize the error.

        Args:
            message: Error message
            original_error: Underlying exception, if any
        """
        super().__init__(message)
        self.original_error = original_error


class ReasoningError(PortalAgentError):
    """A call to the reasoning capability failed."""


class AutomationError(PortalAgentError):
    """The automation backend could not perform an action."""

    def __init__(
        self,
        action: str,
        message: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(f"{action}: {message}", original_error=original_error)
        self.action = action


class ConfigurationError(PortalAgentError):
    """Invalid workflow or backend configuration."""
