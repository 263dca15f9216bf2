"""Exception hierarchy for jtlcompare.

Everything the package raises on bad input or bad configuration derives from
JtlError, so callers (the CLI, batch processing) can catch one type per file.
"""

from __future__ import annotations

from typing import Any


class JtlError(Exception):
    """Base exception for jtlcompare.

    Attributes:
        message: Short description shown to the user
        context: Extra key/value details (path, line, column, ...)
        original_error: Lower-level exception this one wraps, if any
    """

    def __init__(
        self,
        message: str,
        *args: object,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, *args)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.original_error = original_error

    @property
    def path(self) -> str | None:
        return self.context.get("path")

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append("[" + ", ".join(f"{k}={v!r}" for k, v in self.context.items()) + "]")
        if self.original_error is not None:
            parts.append(f"(caused by: {type(self.original_error).__name__}: {self.original_error})")
        return " ".join(parts)

    def with_context(self, **kwargs: Any) -> JtlError:
        """Merge ``kwargs`` into the context; returns self so it can be re-raised inline."""
        self.context.update(kwargs)
        return self


class JtlParseError(JtlError):
    """Raised when a JTL file cannot be turned into records.

    Common causes:
    - Empty or whitespace-only file
    - Header row without any known JTL column
    - Header row present but no data lines
    """


class JtlMalformedFieldError(JtlParseError):
    """Raised in strict mode when a numeric column holds a non-numeric token.

    In the default (lenient) mode the token is coerced to 0 and a warning is logged.
    """


class JtlConfigError(JtlError):
    """Raised when configuration is invalid or the file cannot be loaded.

    Common causes:
    - Config file not found
    - Invalid YAML syntax
    - Invalid APDEX thresholds (toleration <= 0, frustration <= toleration)
    - Unknown comparison metric or diff mode
    """


class JtlFileError(JtlError):
    """Raised when an input file is rejected before parsing.

    Common causes:
    - File not found or unreadable
    - Extension other than the accepted ones (.jtl, .csv by default)
    - File larger than the configured size cap
    """
