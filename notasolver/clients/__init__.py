"""HTTP clients for the remote OCR and solver services."""

from .base import ServiceClient
from .ocr import OcrClient, build_stroke_payload
from .solver import SolverClient, prepare_solver_input

__all__ = [
    'ServiceClient', 'OcrClient', 'SolverClient',
    'build_stroke_payload', 'prepare_solver_input',
]
