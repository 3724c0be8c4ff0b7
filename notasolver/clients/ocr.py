"""Client for the handwriting OCR service.

The OCR service takes stroke geometry, not an image: each sub-path is sent
as a pair of parallel integer arrays of x and y samples. The recognized
expression comes back as LaTeX in the ``latex_styled`` field.

Example:
    Recognize a stroke set::

        from notasolver.clients.ocr import OcrClient

        client = OcrClient(app_id='...', app_key='...')
        latex = client.recognize(stroke_set)
"""

from __future__ import annotations

import logging
import math

import requests

from ..config import OCR_RESULT_FIELD, OCR_URL, ServiceConfig
from ..domain.geometry import StrokeSet
from ..errors import OcrDecodingError, OcrTransportError
from .base import ServiceClient

logger = logging.getLogger(__name__)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def build_stroke_payload(strokes: StrokeSet) -> dict:
    """Build the JSON body for a stroke recognition request.

    Args:
        strokes: Extracted sub-paths.

    Returns:
        Dict of the form {"strokes": {"strokes": {"x": [[...]], "y": [[...]]}}}
        with coordinates rounded to integers.
    """
    xs, ys = strokes.to_xy_arrays()
    return {
        'strokes': {
            'strokes': {
                'x': [[round_half_away(v) for v in path] for path in xs],
                'y': [[round_half_away(v) for v in path] for path in ys],
            }
        }
    }


class OcrClient(ServiceClient):
    """Sends stroke geometry to the OCR service and returns LaTeX."""

    def __init__(self, app_id: str, app_key: str, url: str = OCR_URL,
                 result_field: str = OCR_RESULT_FIELD, **kwargs):
        super().__init__(**kwargs)
        self.url = url
        self.result_field = result_field
        self.session.headers.update({
            'app_id': app_id,
            'app_key': app_key,
            'Content-Type': 'application/json',
        })

    @classmethod
    def from_config(cls, config: ServiceConfig, session: requests.Session = None) -> OcrClient:
        return cls(
            config.ocr_app_id, config.ocr_app_key, url=config.ocr_url,
            session=session, timeout=config.timeout,
            max_retries=config.max_retries, retry_delay=config.retry_delay,
        )

    def recognize(self, strokes: StrokeSet) -> str:
        """Recognize the expression drawn by ``strokes``.

        Args:
            strokes: Extracted sub-paths; may be empty, the service decides.

        Returns:
            The recognized LaTeX string.

        Raises:
            OcrTransportError: The request failed or returned an error status.
            OcrDecodingError: The response was not JSON or lacked the field.
        """
        payload = build_stroke_payload(strokes)
        logger.info("Making request to %s (%d paths)", self.url, len(strokes))
        try:
            response = self.request_with_retry('POST', self.url, json=payload)
        except requests.RequestException as e:
            raise OcrTransportError(f"OCR request failed: {e}") from e

        logger.info("Response status code: %d", response.status_code)
        if response.status_code >= 400:
            raise OcrTransportError(
                f"OCR service returned HTTP {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise OcrDecodingError(f"OCR response is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise OcrDecodingError("OCR response is not an object")

        latex = body.get(self.result_field)
        if not isinstance(latex, str):
            detail = body.get('error') or f"missing '{self.result_field}'"
            raise OcrDecodingError(f"OCR response unusable: {detail}")
        return latex
