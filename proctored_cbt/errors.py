"""
errors.py

Domain exceptions for the test session core.
Silently ignored operations (mutations after submission, out-of-range
navigation, duplicate auto-submits) do not raise; see the services.
"""


class SessionError(Exception):
    """Base class for test session errors."""


class SubmissionError(SessionError):
    """
    Persisting the answer snapshot failed.

    Retryable: the session is back in ``in_progress`` and ``submit()``
    may be called again.
    """

    def __init__(self, message: str = "Failed to submit test. Please try again."):
        super().__init__(message)
        self.message = message


class ReviewNotAllowed(SessionError):
    """Review mode requested before submission or for a test without review."""
