"""
Exception classes for the language pack builder.

Errors carry a category and a severity. Recoverable errors are absorbed where
they occur and turned into a skipped item; non-recoverable errors abort the
whole run.
"""

from __future__ import annotations

from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for classification and handling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling strategies."""

    NETWORK = "network"
    API = "api"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    RESOURCE = "resource"
    UNKNOWN = "unknown"


class LangPackError(Exception):
    """Base exception class for language pack builder errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        user_message: str | None = None,
        context: object | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.category: ErrorCategory = category
        self.severity: ErrorSeverity = severity
        self.user_message: str = user_message or message
        self.context: object | None = context
        self.recoverable: bool = recoverable


class MalformedTargetError(LangPackError):
    """A request target could not be built from the module or language name."""

    def __init__(
        self,
        target: str,
        reason: str,
        context: object | None = None,
    ) -> None:
        super().__init__(
            f"Malformed URL: {target} ({reason})",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            context=context,
            recoverable=True,
        )
        self.target: str = target
        self.reason: str = reason


class NetworkError(LangPackError):
    """Connection, timeout or HTTP status failures while talking to the service."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: object | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.HIGH,
            user_message=user_message or "Cannot download source files!",
            context=context,
            recoverable=False,
        )
        self.status_code: int | None = status_code


class ResponseParseError(LangPackError):
    """The service returned a body that is not the expected JSON document."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: object | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.API,
            severity=ErrorSeverity.HIGH,
            user_message=user_message or "Cannot parse source file!",
            context=context,
            recoverable=False,
        )


class OutputWriteError(LangPackError):
    """A language pack or manifest file could not be written."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: object | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.RESOURCE,
            severity=ErrorSeverity.HIGH,
            user_message=user_message,
            context=context,
            recoverable=False,
        )


class ConfigurationError(LangPackError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: object | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            recoverable=False,
            user_message=user_message,
            context=context,
        )
