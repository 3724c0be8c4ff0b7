"""Exception hierarchy for the solve pipeline.

Every failure raised by the OCR and solve stages derives from
NotaSolverError. The pipeline catches these per request and records them
on the request, so none of them ever reaches a renderer.

Hierarchy::

    NotaSolverError
    ├── OcrError
    │   ├── OcrTransportError
    │   └── OcrDecodingError
    ├── SolveError
    │   ├── SolveTransportError
    │   ├── SolveDecodingError
    │   └── SolveInputEncodingError
    ├── MalformedResponse
    │   └── UnsupportedEquation
    ├── InvalidTransition
    └── ConfigurationError
"""

from __future__ import annotations


class NotaSolverError(Exception):
    """Base class for all package errors."""

    #: Stage the error belongs to ('ocr', 'solve' or '' when not stage bound).
    stage = ''

    @property
    def kind(self) -> str:
        return type(self).__name__


class OcrError(NotaSolverError):
    stage = 'ocr'


class OcrTransportError(OcrError):
    """The OCR endpoint could not be reached or answered with an error status."""


class OcrDecodingError(OcrError):
    """The OCR response was not JSON or lacked the recognized text field."""


class SolveError(NotaSolverError):
    stage = 'solve'


class SolveTransportError(SolveError):
    """The solver endpoint could not be reached or answered with an error status."""


class SolveDecodingError(SolveError):
    """The solver response was not a JSON object."""


class SolveInputEncodingError(SolveError):
    """The recognized text could not be turned into a solver query."""


class MalformedResponse(NotaSolverError):
    """The solver document failed validation and was rejected as a whole."""
    stage = 'solve'


class UnsupportedEquation(MalformedResponse):
    """The document was well formed but lacked the Input or Result section."""


class InvalidTransition(NotaSolverError):
    """A request was asked to move to a state its current state cannot reach."""


class ConfigurationError(NotaSolverError):
    """Required service credentials or settings are missing."""


# User-facing text per error kind, shown by renderers in place of pods
DISPLAY_MESSAGES = {
    'OcrTransportError': "Could not reach the handwriting recognition service.",
    'OcrDecodingError': "The handwriting could not be recognized.",
    'SolveTransportError': "Could not reach the math solver.",
    'SolveDecodingError': "The math solver returned an unreadable answer.",
    'SolveInputEncodingError': "The recognized expression could not be sent to the solver.",
    'MalformedResponse': "The math solver returned an incomplete answer.",
    'UnsupportedEquation': "The solver could not understand this equation.",
    'InternalError': "Something went wrong while solving this equation.",
}


def display_message(kind: str) -> str:
    """Return the user-facing message for an error kind."""
    return DISPLAY_MESSAGES.get(kind, DISPLAY_MESSAGES['InternalError'])
