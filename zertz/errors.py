"""
Zertz Error Hierarchy

Exception hierarchy for the Zertz engine. All custom exceptions inherit
from ZertzError for easy catching and filtering.

The rules core reports illegal moves through boolean / result values and
never raises for them. Exceptions are reserved for programming errors:
unsupported board sizes, unknown tree nodes, malformed payloads and bad
configuration.

Usage:
    from zertz.errors import SerializationError

    try:
        session = GameSession.from_dict(payload)
    except SerializationError as e:
        logger.warning(f"Rejected saved game: {e.message}")
"""

from typing import Any

__all__ = [
    "ConfigurationError",
    "InvalidMoveError",
    "InvalidStateError",
    "SerializationError",
    "ZertzError",
]


class ZertzError(Exception):
    """Base exception for all Zertz errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "ZERTZ_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class InvalidStateError(ZertzError):
    """Corrupted or unexpected game state.

    Raised for configurations that cannot arise through normal play,
    e.g. an unsupported board size or a reference to an unknown node.
    """
    code: str = "INVALID_STATE"


class InvalidMoveError(ZertzError):
    """Move that is structurally malformed.

    Raised when a move payload cannot even be interpreted (bad notation,
    empty capture chain), as opposed to a well-formed but illegal move.
    """
    code: str = "INVALID_MOVE"


# =============================================================================
# Persistence / Configuration Errors
# =============================================================================


class SerializationError(ZertzError):
    """Saved game or state payload could not be decoded."""
    code: str = "SERIALIZATION_ERROR"


class ConfigurationError(ZertzError):
    """Invalid configuration value.

    Attributes:
        setting: Name of the offending environment variable
    """
    code: str = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if setting:
            self.context["setting"] = setting
