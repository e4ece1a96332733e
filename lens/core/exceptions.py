"""Custom exceptions for notebook-lens."""

from typing import Any, Optional


class LensError(Exception):
    """Base exception for notebook-lens."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigError(LensError):
    """Configuration errors."""

    pass


class ResponseParseError(LensError):
    """A backend response body could not be decoded as JSON."""

    pass


class WebhookError(LensError):
    """A backend webhook call failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code


class RetrievalError(WebhookError):
    """Retrieval call failed."""

    pass


class AgentError(WebhookError):
    """Agent generation call failed."""

    pass


class EnhancementTriggerError(WebhookError):
    """Enhancement, reingest or publish trigger failed."""

    def __init__(
        self,
        message: str,
        action: str,
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, status_code, context)
        self.action = action


class StatusCheckError(WebhookError):
    """Enhancement status check failed (never fatal to polling)."""

    pass
