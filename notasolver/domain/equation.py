"""Equation request records and their state machine.

An EquationRequest is an immutable snapshot of one user submission. Stage
code never edits a request in place; it calls a transition method which
validates the move against the state table and returns a new record. The
EquationStore swaps that record in under its lock.

State table::

    PENDING ─────────▶ OCR_IN_FLIGHT ─────▶ SOLVE_IN_FLIGHT ─────▶ DONE
       │                   │   │                 │   │
       │                   │   └──▶ FAILED ◀─────┘   │
       └──▶ CANCELLED ◀────┴─────────────────────────┘

DONE, FAILED and CANCELLED are terminal.

Example usage::

    from notasolver.domain import EquationRequest, StrokeSet

    request = EquationRequest.create(StrokeSet())
    request = request.start_ocr()
    request = request.ocr_succeeded('x^2 = 4')
    request = request.solve_succeeded(pods)
    assert request.state is EquationState.DONE
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from ..errors import InvalidTransition, NotaSolverError, display_message
from .geometry import StrokeSet


class EquationState(Enum):
    """Lifecycle states of an equation request."""
    PENDING = 'pending'
    OCR_IN_FLIGHT = 'ocr_in_flight'
    SOLVE_IN_FLIGHT = 'solve_in_flight'
    DONE = 'done'
    FAILED = 'failed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    EquationState.DONE, EquationState.FAILED, EquationState.CANCELLED,
})

ALLOWED_TRANSITIONS = {
    EquationState.PENDING: frozenset({
        EquationState.OCR_IN_FLIGHT, EquationState.CANCELLED,
    }),
    EquationState.OCR_IN_FLIGHT: frozenset({
        EquationState.SOLVE_IN_FLIGHT, EquationState.FAILED, EquationState.CANCELLED,
    }),
    EquationState.SOLVE_IN_FLIGHT: frozenset({
        EquationState.DONE, EquationState.FAILED, EquationState.CANCELLED,
    }),
    EquationState.DONE: frozenset(),
    EquationState.FAILED: frozenset(),
    EquationState.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class Pod:
    """One displayable result section."""
    title: str
    image_src: str

    def to_dict(self) -> dict:
        return {'title': self.title, 'image_src': self.image_src}


@dataclass(frozen=True)
class ErrorInfo:
    """Typed failure recorded on a request.

    Attributes:
        kind: Error taxonomy name, e.g. 'OcrTransportError'.
        stage: 'ocr' or 'solve'.
        message: Technical detail for logs and debugging.
        display_message: Text a renderer can show to the user.
    """
    kind: str
    stage: str
    message: str
    display_message: str

    @classmethod
    def from_exception(cls, exc: BaseException, stage: str = '') -> ErrorInfo:
        """Build from a raised exception.

        Package errors keep their own kind and stage; anything else is
        recorded as an InternalError of the given stage.
        """
        if isinstance(exc, NotaSolverError):
            kind = exc.kind
            stage = exc.stage or stage
        else:
            kind = 'InternalError'
        return cls(
            kind=kind,
            stage=stage,
            message=str(exc) or kind,
            display_message=display_message(kind),
        )

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'stage': self.stage,
            'message': self.message,
            'display_message': self.display_message,
        }


@dataclass(frozen=True)
class EquationRequest:
    """Immutable record of one submission and its progress."""
    id: str
    strokes: StrokeSet
    state: EquationState = EquationState.PENDING
    latex: Optional[str] = None
    pods: Optional[Tuple[Pod, ...]] = None
    error: Optional[ErrorInfo] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @classmethod
    def create(cls, strokes: StrokeSet) -> EquationRequest:
        """Create a new PENDING request with a fresh identity."""
        now = time.time()
        return cls(id=uuid.uuid4().hex, strokes=strokes, created_at=now, updated_at=now)

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def _move(self, target: EquationState, **changes) -> EquationRequest:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransition(
                f"request {self.id}: {self.state.value} -> {target.value} not allowed"
            )
        return replace(self, state=target, updated_at=time.time(), **changes)

    # --- Transitions ---

    def start_ocr(self) -> EquationRequest:
        return self._move(EquationState.OCR_IN_FLIGHT)

    def ocr_succeeded(self, latex: str) -> EquationRequest:
        """Record the recognized text and hand over to the solve stage."""
        if self.state is not EquationState.OCR_IN_FLIGHT:
            raise InvalidTransition(f"request {self.id}: no OCR call in flight")
        return self._move(EquationState.SOLVE_IN_FLIGHT, latex=latex)

    def solve_succeeded(self, pods: Tuple[Pod, ...]) -> EquationRequest:
        if self.state is not EquationState.SOLVE_IN_FLIGHT:
            raise InvalidTransition(f"request {self.id}: no solve call in flight")
        return self._move(EquationState.DONE, pods=tuple(pods))

    def failed(self, error: ErrorInfo) -> EquationRequest:
        return self._move(EquationState.FAILED, error=error)

    def cancelled(self) -> EquationRequest:
        return self._move(EquationState.CANCELLED)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'state': self.state.value,
            'latex': self.latex,
            'pods': [p.to_dict() for p in self.pods] if self.pods is not None else None,
            'error': self.error.to_dict() if self.error else None,
            'stroke_count': len(self.strokes),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
