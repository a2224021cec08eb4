"""History Bot Exception Hierarchy.

Provides structured error handling with context preservation
and proper HTTP status code mapping.
"""

from __future__ import annotations

from typing import Any


class HistoryBotError(Exception):
    """Base exception for all History Bot errors.

    All custom exceptions should inherit from this class.
    Provides:
    - Structured error context
    - HTTP status code mapping
    - Logging-friendly representation
    """

    status_code: int = 500
    error_code: str = "HISTORY_BOT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context for debugging
            cause: Original exception if wrapping
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        """String representation for logging."""
        parts = [f"{self.error_code}: {self.message}"]
        if self.details:
            parts.append(f"details={self.details}")
        if self.cause:
            parts.append(f"cause={self.cause}")
        return " | ".join(parts)


# =============================================================================
# Integration Errors
# =============================================================================


class IntegrationError(HistoryBotError):
    """Base class for external cognitive service errors."""

    status_code = 502
    error_code = "INTEGRATION_ERROR"


class RecognizerError(IntegrationError):
    """Intent recognizer (LUIS) call failed."""

    error_code = "RECOGNIZER_ERROR"


class KnowledgeBaseError(IntegrationError):
    """Knowledge base (QnA Maker) call failed."""

    error_code = "KNOWLEDGE_BASE_ERROR"


# =============================================================================
# State Errors
# =============================================================================


class StateStoreError(HistoryBotError):
    """Reading or writing conversation memory failed."""

    status_code = 503
    error_code = "STATE_STORE_ERROR"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(HistoryBotError):
    """Bot is missing a required service or setting."""

    error_code = "CONFIGURATION_ERROR"

