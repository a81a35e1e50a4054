"""Error taxonomy for the extraction pipeline."""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = (
    "Ocurrió un error al procesar la imagen. "
    "Asegúrate de que la imagen sea clara y que la API key sea correcta."
)


class UserInputError(ValueError):
    """Raised when the caller supplied no usable image."""


class SessionBusyError(RuntimeError):
    """Raised when a session is asked to change while an attempt is in flight."""


class ExtractionError(RuntimeError):
    """Base class for failures of a dispatched verification attempt."""


class InferenceError(ExtractionError):
    """Raised for network, auth or remote failures of the model call."""


class MalformedResponseError(ExtractionError):
    """Raised when the model completion cannot be parsed as a JSON object."""
