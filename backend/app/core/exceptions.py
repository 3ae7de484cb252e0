"""Domain errors raised by the service layer.

Routes map these onto HTTP responses; nothing below the API layer knows about
status codes.
"""


class DDQError(Exception):
    """Base exception for the questionnaire assistant."""

    pass


class NotFoundError(DDQError):
    """A project, question, session or document does not exist."""

    pass


class ValidationError(DDQError):
    """A request is well-formed but cannot be carried out."""

    pass


class ExtractionError(DDQError):
    """Text could not be extracted from a source file."""

    pass


class SourceFileNotFoundError(ExtractionError):
    pass


class UnsupportedFileTypeError(ExtractionError):
    pass


class GenerationError(DDQError):
    """The completion endpoint failed (transport, auth, rate limit, ...).

    Answer generation converts this into a low-confidence answer, it is never
    surfaced to API callers.
    """

    pass


__all__ = [
    "DDQError",
    "NotFoundError",
    "ValidationError",
    "ExtractionError",
    "SourceFileNotFoundError",
    "UnsupportedFileTypeError",
    "GenerationError",
]
