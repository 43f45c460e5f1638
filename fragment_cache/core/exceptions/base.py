"""
Base Exception Class

This module contains ONLY the base exception class that all other
fragment cache exceptions inherit from. Specialized exceptions live in
their themed modules.
"""

from typing import Any


class FragmentCacheError(Exception):
    """
    Base exception for all fragment cache errors.

    Attributes:
        message: Error message
        scope_id: ID of the fragment scope the error happened in (if any)
        details: Additional error details (dict)

    Example:
        raise BackendError(
            "Redis GET failed",
            scope_id="4f1c...",
            details={"key": "views/products/7"}
        )
    """

    def __init__(
        self, message: str, scope_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.scope_id = scope_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging.

        Returns:
            Dict with error_type, message, scope_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "scope_id": self.scope_id,
            "details": self.details,
        }

    def with_context(self, **context) -> "FragmentCacheError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        scope_id_str = f", scope_id='{self.scope_id}'" if self.scope_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{scope_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        scope_id: str | None = None,
        **details,
    ) -> "FragmentCacheError":
        """
        Create an error from another exception.

        Useful for wrapping third-party exceptions (redis, orjson) with
        additional context.

        Example:
            >>> try:
            ...     await client.get(key)
            ... except redis.ConnectionError as e:
            ...     raise BackendUnavailableError.from_exception(e, key=key)
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details,
        }
        return cls(error_message, scope_id=scope_id, details=error_details)


class ConfigurationError(FragmentCacheError):
    """Raised when configuration is invalid or missing."""
    pass
