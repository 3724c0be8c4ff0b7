"""NotaSolver package.

Solves hand-drawn math expressions: the strokes inside a user-selected
region are sent to an OCR service for LaTeX, the LaTeX is sent to a
symbolic math solver, and the step-by-step answer is flattened into an
ordered list of display pods.

Architecture Overview:
    domain: Value objects (Point, Region, Stroke, StrokeSet) and the
        EquationRequest record with its state machine.
    analysis: Pure steps; StrokeRegionExtractor and ResponseNormalizer.
    clients: HTTP clients for the OCR and solver services.
    store: Thread-safe, identity-keyed EquationStore.
    pipeline: EquationRequestPipeline running each request in its own
        worker thread through OCR and solve.
    web, routes: Flask JSON API over the pipeline.
    cli: ``notasolver`` command-line entry point.

Example usage:
    Solve a selection::

        from notasolver import EquationRequestPipeline, Region, ServiceConfig

        pipeline = EquationRequestPipeline.from_config(ServiceConfig.from_env())
        request_id = pipeline.submit(Region(200, 450, 400, 150), strokes)
        request = pipeline.wait(request_id, timeout=60)
        for pod in request.pods or ():
            print(pod.title, pod.image_src)

Attributes:
    __version__ (str): Package version string.
    __all__ (list): List of public symbols exported by this package.
"""

from .analysis import ResponseNormalizer, StrokeRegionExtractor
from .config import ServiceConfig
from .domain import (
    EquationRequest,
    EquationState,
    ErrorInfo,
    Point,
    Pod,
    Region,
    Stroke,
    StrokeSet,
)
from .pipeline import EquationRequestPipeline
from .store import EquationStore

__all__ = [
    # Domain objects
    'Point', 'Region', 'Stroke', 'StrokeSet',
    'EquationState', 'EquationRequest', 'Pod', 'ErrorInfo',
    # Pipeline
    'StrokeRegionExtractor', 'ResponseNormalizer',
    'EquationStore', 'EquationRequestPipeline',
    'ServiceConfig',
]

__version__ = '1.0.0'
