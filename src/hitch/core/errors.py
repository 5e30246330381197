"""
Structured error types for hitch.

Every error raised by hitch itself extends :class:`HitchError` and carries
a category, a small context mapping, and an optional chained cause.
Errors coming from the underlying mapping or database layers (bad URIs,
drivers rejecting options, a connection source failing to read its own
settings) are *not* wrapped: they propagate unchanged so the host
framework sees the original exception.

Manifesto:
    - **Typed hierarchy:** configuration problems and runtime problems are
      distinguishable by type and by category
    - **Never retryable by default:** a bad gateway definition does not fix
      itself on the next reload
    - **Error chaining:** pass ``cause=`` to keep the root cause

Architecture:
    ::

        HitchError  (category, context, cause)
        ├── ConfigError                 CONFIG
        │   └── MissingGatewayConfigError
        ├── GatewayError                DATABASE
        └── ContainerNotReadyError      INTERNAL

Tags:
    error-handling, exception-hierarchy, error-context, hitch

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"             # Missing or invalid settings
    DATABASE = "DATABASE"         # Gateway / engine problems
    INTERNAL = "INTERNAL"         # Unexpected lifecycle state
    UNKNOWN = "UNKNOWN"


class HitchError(Exception):
    """
    Base exception for all hitch errors.

    Subclasses set ``default_category``.  Extra keyword context is kept in
    :attr:`context` and rendered by :meth:`to_dict` for structured logs.

    Examples:
        >>> error = HitchError("boom", context={"gateway": "default"})
        >>> error.to_dict()["context"]
        {'gateway': 'default'}
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> HitchError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(HitchError):
    """
    Configuration error.

    Raised for malformed gateway specs, unknown adapters, duplicate
    component registrations and unreadable connection settings.
    """

    default_category = ErrorCategory.CONFIG


class MissingGatewayConfigError(ConfigError):
    """One or more relations reference a gateway that was never resolved.

    Only raised when strict gateway validation is enabled.
    """

    def __init__(self, missing: dict[str, str] | Iterable[tuple[str, str]], message: str | None = None):
        self.missing = dict(missing)
        names = sorted(set(self.missing.values()))
        super().__init__(
            message or f"Gateway(s) not configured: {', '.join(names)}",
            context={"relations": dict(self.missing)},
        )

    @property
    def gateway_names(self) -> list[str]:
        return sorted(set(self.missing.values()))


# =============================================================================
# RUNTIME ERRORS
# =============================================================================


class GatewayError(HitchError):
    """A gateway could not be used (e.g. a connectivity check failed)."""

    default_category = ErrorCategory.DATABASE


class ContainerNotReadyError(HitchError):
    """A container was requested before the first reload installed one."""

    default_category = ErrorCategory.INTERNAL

    def __init__(self, message: str = "No container installed; the reload hook has not run yet"):
        super().__init__(message)


__all__ = [
    "ErrorCategory",
    "HitchError",
    "ConfigError",
    "MissingGatewayConfigError",
    "GatewayError",
    "ContainerNotReadyError",
]
