from __future__ import annotations


class QAGenerationError(Exception):
    """Base class for failures of the Q&A generation engine."""


class InputTooShortError(QAGenerationError):
    """The document (or the selected chunk) has too little content to generate from."""

    def __init__(self, message: str, length: int | None = None):
        super().__init__(message)
        self.length = length


class BackendUnavailableError(QAGenerationError):
    """The generation backend was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"[{self.status}] {self.message}"


class MalformedOutputError(QAGenerationError):
    """
    The backend answered, but no valid question/answer pair could be recovered.

    ``excerpt`` is a bounded slice of the raw response, meant for logs only.
    """

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message)
        self.excerpt = excerpt
