"""
Result types and error hierarchy for govaudit.

This module provides:
1. Result[T, E] type for explicit handling of recoverable failures
   (unreadable files, malformed manifests) that must become verdicts
2. Domain-specific exception hierarchy for unrecoverable misconfiguration
3. Helper functions for Result operations

Usage:
    from govaudit.core.result import Ok, Err, Result, try_result

    result = try_result(lambda: path.read_text(encoding="utf-8"), OSError)
    if result.is_ok():
        text = result.value
    else:
        log(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, NoReturn, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise the contained error."""
        raise self.error


# Type alias for Result
Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Domain-specific error hierarchy
# ---------------------------------------------------------------------------


class GovAuditError(Exception):
    """Base exception for all govaudit errors.

    Carries an optional context mapping that is rendered after the message.
    """

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationError(GovAuditError):
    """Raised for configuration file issues.

    Examples:
    - Config file parse errors
    - Config root that is not a mapping
    """


class RuleConfigurationError(GovAuditError):
    """Raised when a rule is constructed with invalid parameters.

    Examples:
    - Malformed regular expression
    - Soft line limit below the hard limit
    - Rule without any target path

    This is the only error allowed to stop an audit, and it happens before
    any rule is evaluated.
    """


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def try_result(fn: Callable[[], T], error_type: type[E]) -> Result[T, E]:
    """Execute a function and wrap the result in Ok/Err.

    Only ``error_type`` is captured; anything else propagates.
    """
    try:
        return Ok(fn())
    except error_type as exc:
        return Err(exc)


__all__ = [
    "ConfigurationError",
    "Err",
    "GovAuditError",
    "Ok",
    "Result",
    "RuleConfigurationError",
    "try_result",
]
