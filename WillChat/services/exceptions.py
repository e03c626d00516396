from typing import Optional


class CompletionError(Exception):
    """Base class for every failure raised by the completion client."""


class CompletionConfigError(CompletionError, ValueError):
    """Required configuration (usually the provider API key) is missing."""


class CompletionTransportError(CompletionError):
    """The request never produced an HTTP response (connection error, timeout)."""


class CompletionAPIError(CompletionError):
    """The provider answered with a non-success status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.remote_message = message or "Unknown error"
        super().__init__(f"Completion API error: {status_code} - {self.remote_message}")


class CompletionEmptyResponseError(CompletionError):
    """The provider answered successfully but returned no choices."""
