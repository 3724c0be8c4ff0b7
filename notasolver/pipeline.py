"""Two-stage solve pipeline with per-request state tracking.

This module drives each equation request through OCR and then the solver
in a background thread of its own:

    submit ──▶ PENDING ──▶ OCR_IN_FLIGHT ──▶ SOLVE_IN_FLIGHT ──▶ DONE
                                │                  │
                                └──────▶ FAILED ◀──┘

Architecture:
- EquationRequestPipeline: Orchestrates the stages using injected clients
- Recognizer / Solver: Protocols for the remote services
- EquationStore: Receives every transition as an atomic keyed update

Every transition is written to the store as it happens, so a renderer
polling the store sees OCR_IN_FLIGHT and SOLVE_IN_FLIGHT, not just the
final outcome. Within one request the solve call is only issued after the
OCR result has been observed and found successful; across requests there
is no ordering and no concurrency cap.

Example:
    from notasolver.pipeline import EquationRequestPipeline

    pipeline = EquationRequestPipeline.from_config(ServiceConfig.from_env())
    request_id = pipeline.submit(region, strokes)

    # Poll progress
    request = pipeline.store.get(request_id)

    # Cancel if needed
    pipeline.cancel(request_id)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol, Sequence

from .analysis.normalizer import ResponseNormalizer
from .analysis.region import StrokeRegionExtractor
from .config import ServiceConfig
from .domain.equation import EquationRequest, EquationState, ErrorInfo
from .domain.geometry import Region, Stroke, StrokeSet
from .errors import InvalidTransition, MalformedResponse, OcrError, SolveError
from .store import EquationStore

logger = logging.getLogger(__name__)


# =============================================================================
# Protocols (Interfaces)
# =============================================================================

class Recognizer(Protocol):
    """Turns stroke geometry into LaTeX. Raises OcrError subclasses."""

    def recognize(self, strokes: StrokeSet) -> str:
        ...


class Solver(Protocol):
    """Turns LaTeX into a raw solver document. Raises SolveError subclasses."""

    def solve(self, latex: str) -> dict:
        ...


def _stage_of(request: EquationRequest) -> str:
    if request.state is EquationState.SOLVE_IN_FLIGHT:
        return 'solve'
    return 'ocr'


# =============================================================================
# Pipeline - Single Responsibility: Orchestration
# =============================================================================

class EquationRequestPipeline:
    """Runs equation requests through OCR and the solver concurrently.

    Attributes:
        ocr_client: Recognizer for the OCR stage.
        solver_client: Solver for the solve stage.
        store: EquationStore receiving every transition.
        extractor: StrokeRegionExtractor used by submit().
        normalizer: ResponseNormalizer applied to solver documents.
    """

    def __init__(
        self,
        ocr_client: Recognizer,
        solver_client: Solver,
        store: EquationStore = None,
        extractor: StrokeRegionExtractor = None,
        normalizer: ResponseNormalizer = None,
    ):
        self.ocr_client = ocr_client
        self.solver_client = solver_client
        self.store = store if store is not None else EquationStore()
        self.extractor = extractor or StrokeRegionExtractor()
        self.normalizer = normalizer or ResponseNormalizer()

        self._workers: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ServiceConfig, store: EquationStore = None) -> EquationRequestPipeline:
        """Build a pipeline talking to the configured remote services."""
        from .clients import OcrClient, SolverClient

        return cls(OcrClient.from_config(config), SolverClient.from_config(config), store=store)

    # --- Submission ---

    def submit(self, region: Region, strokes: Sequence[Stroke]) -> str:
        """Extract the strokes inside ``region`` and start solving them.

        Returns immediately with the new request id; the request is already
        in the store in PENDING state.
        """
        stroke_set = self.extractor.extract(strokes, region)
        return self.submit_strokes(stroke_set)

    def submit_strokes(self, stroke_set: StrokeSet) -> str:
        """Start solving an already extracted stroke set."""
        request = EquationRequest.create(stroke_set)
        self.store.insert(request)
        logger.info("Request %s submitted (%d paths, %d points)",
                    request.id, len(stroke_set), stroke_set.point_count)

        thread = threading.Thread(
            target=self._run, args=(request.id,),
            name=f"equation-{request.id[:8]}", daemon=True,
        )
        with self._lock:
            self._workers[request.id] = thread
        thread.start()
        return request.id

    # --- Control ---

    def cancel(self, request_id: str) -> bool:
        """Cancel a request that has not finished yet.

        Once this returns True the request is CANCELLED and its worker can
        no longer change it; results still arriving are discarded.

        Returns:
            True if cancelled, False if unknown or already finished.
        """
        try:
            updated = self.store.update(request_id, lambda r: r.cancelled())
        except InvalidTransition:
            return False
        if updated is None:
            return False
        logger.info("Request %s cancelled", request_id)
        return True

    def wait(self, request_id: str, timeout: float = None) -> Optional[EquationRequest]:
        """Block until the request's worker finishes or ``timeout`` expires.

        Returns:
            The request as currently stored, or None if unknown.
        """
        with self._lock:
            thread = self._workers.get(request_id)
        if thread is not None:
            thread.join(timeout)
        return self.store.get(request_id)

    def wait_all(self, timeout: float = None) -> bool:
        """Wait for every running worker. Returns True if none is left running."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._workers.values())
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        return not self.active_requests()

    def active_requests(self) -> list[str]:
        """Ids of requests whose worker is still running."""
        with self._lock:
            return [rid for rid, t in self._workers.items() if t.is_alive()]

    def shutdown(self, timeout: float = None) -> None:
        """Cancel every unfinished request and wait for the workers."""
        for request_id in self.active_requests():
            self.cancel(request_id)
        self.wait_all(timeout)

    # --- Worker ---

    def _advance(
        self,
        request_id: str,
        mutator: Callable[[EquationRequest], EquationRequest],
    ) -> Optional[EquationRequest]:
        """Apply one transition; None means the worker must stop."""
        try:
            updated = self.store.update(request_id, mutator)
        except InvalidTransition as e:
            logger.info("Request %s no longer accepts updates: %s", request_id, e)
            return None
        if updated is None:
            logger.info("Request %s left the store, stopping", request_id)
            return None
        logger.info("Request %s -> %s", request_id, updated.state.value)
        return updated

    def _run(self, request_id: str) -> None:
        try:
            self._process(request_id)
        except Exception as e:
            logger.exception("Request %s failed unexpectedly: %s", request_id, e)
            self._advance(
                request_id,
                lambda r: r.failed(ErrorInfo.from_exception(e, stage=_stage_of(r))),
            )
        finally:
            with self._lock:
                self._workers.pop(request_id, None)

    def _process(self, request_id: str) -> None:
        # Stage 1: OCR
        request = self._advance(request_id, lambda r: r.start_ocr())
        if request is None:
            return
        try:
            latex = self.ocr_client.recognize(request.strokes)
        except OcrError as e:
            logger.warning("OCR failed for request %s: %s", request_id, e)
            self._advance(request_id, lambda r: r.failed(ErrorInfo.from_exception(e)))
            return
        logger.info("OCR output for request %s: %s", request_id, latex)

        request = self._advance(request_id, lambda r: r.ocr_succeeded(latex))
        if request is None:
            return

        # Stage 2: solve and normalize
        try:
            document = self.solver_client.solve(latex)
            pods = self.normalizer.normalize(document)
        except (SolveError, MalformedResponse) as e:
            logger.warning("Solve failed for request %s: %s", request_id, e)
            self._advance(request_id, lambda r: r.failed(ErrorInfo.from_exception(e)))
            return

        self._advance(request_id, lambda r: r.solve_succeeded(pods))
