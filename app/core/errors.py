"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (vector store, chat model) fails
before any output was streamed so the API can return 502 with a user-facing message.
"""


class ConfigurationError(Exception):
    """Raised at startup when required environment variables are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. the chat model API) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class GenerationTimeoutError(Exception):
    """Raised when a chat request runs past its deadline."""

    def __init__(self, message: str = "Request exceeded its time limit") -> None:
        self.message = message
        super().__init__(message)
