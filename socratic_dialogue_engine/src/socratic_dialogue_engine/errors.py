"""
Engine Errors

Exception types raised by the dialogue engine and the text-generation client.
"""


class DialogueEngineError(Exception):
    """Base class for dialogue engine errors."""


class SessionNotStartedError(DialogueEngineError):
    """Raised when a learner turn arrives before any problem was started."""


class LLMServiceError(DialogueEngineError):
    """
    Failure talking to the text-generation service.

    Attributes:
        retryable: True for transient failures (timeouts, rate limits, 5xx),
            False for permanent ones (missing credentials, bad request).
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"LLMServiceError({str(self)!r}, retryable={self.retryable})"
