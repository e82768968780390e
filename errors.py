"""Error types raised by the question generator and the tutor.

``str(error)`` is always a fixed, user-safe message; the underlying exception
is kept on ``cause`` for logging and is never part of the message.
"""

from typing import Optional

QUESTIONS_FAILED_MESSAGE = "Failed to generate practice questions. Please try again."
TUTOR_FAILED_MESSAGE = "Failed to get a response from the AI tutor. Please try again."


class NeetDostError(RuntimeError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class MalformedOutputError(NeetDostError):
    """The model answered, but not with a usable list of questions."""


class ServiceFailureError(NeetDostError):
    """The call to the generative service itself failed."""
