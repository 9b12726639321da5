"""Configuration errors and the validation error collector."""

from typing import List, Optional


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded or fails validation.

    Carries the individual validation errors and suggestions for fixing them,
    and renders all of them in ``str(error)``.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)


class ConfigurationErrorProcessor:
    """Collects validation errors and warnings reported by configured items.

    Items report problems instead of raising, so one validation pass surfaces
    every problem at once. ``raise_if_errors`` turns collected errors into a
    single ``ConfigurationError``.
    """

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def process_error(self, error) -> None:
        """Record an error (a message or an exception)."""
        self.errors.append(str(error))

    def process_warning(self, message: str) -> None:
        """Record a warning."""
        self.warnings.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_if_errors(self) -> None:
        if self.errors:
            raise ConfigurationError(
                "Configuration validation failed",
                errors=list(self.errors),
            )
