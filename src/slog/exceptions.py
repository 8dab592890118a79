"""Exception classes for slog."""


class SlogError(Exception):
    """Base exception for slog operations."""

    error_prefix: str = "Logging failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional name of the setting or value that failed.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class ConfigurationError(SlogError):
    """Raised when logging settings cannot be interpreted."""

    error_prefix = "Invalid logging configuration"
