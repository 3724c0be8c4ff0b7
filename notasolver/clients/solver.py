"""Client for the symbolic math solver service.

The solver is queried with a GET request carrying the expression and a set
of presentation hints asking for step-by-step sections rendered as images.
It answers with a JSON document; the ``queryresult`` envelope is unwrapped
so callers receive the document holding ``success``, ``error`` and ``pods``.

Example:
    Solve a recognized expression::

        from notasolver.clients.solver import SolverClient

        client = SolverClient(app_id='...')
        document = client.solve(r'\\frac{d}{dx} x^2')
"""

from __future__ import annotations

import logging
import re

import requests

from ..config import SOLVER_URL, ServiceConfig
from ..errors import SolveDecodingError, SolveInputEncodingError, SolveTransportError
from .base import ServiceClient

logger = logging.getLogger(__name__)

_PRESENTATION_COMMANDS = (r'\displaystyle', r'\textstyle')

# A dollar sign not escaped as \$
_UNESCAPED_DOLLAR = re.compile(r'(?<!\\)\$')


def _strip_dollar_delimiters(s: str) -> str:
    """Remove one ``$$...$$`` or ``$...$`` pair enclosing the whole text.

    Text with several math segments, such as ``$a$=$b$``, is returned
    unchanged.
    """
    for delim in ('$$', '$'):
        n = len(delim)
        if len(s) >= 2 * n and s.startswith(delim) and s.endswith(delim):
            inner = s[n:-n]
            if inner.endswith('\\') or _UNESCAPED_DOLLAR.search(inner):
                return s
            return inner.strip()
    return s


def prepare_solver_input(latex: str) -> str:
    """Turn OCR output into a solver query string.

    Strips display-math delimiters and presentation-only commands and
    collapses whitespace.

    Raises:
        SolveInputEncodingError: The input is not text, is empty after
            cleanup, or cannot be encoded as UTF-8.
    """
    if not isinstance(latex, str):
        raise SolveInputEncodingError(f"expected text, got {type(latex).__name__}")
    s = _strip_dollar_delimiters(latex.strip())
    if s.startswith(r'\[') and s.endswith(r'\]'):
        s = s[2:-2].strip()
    for cmd in _PRESENTATION_COMMANDS:
        s = s.replace(cmd, '')
    s = re.sub(r'\s+', ' ', s).strip()
    if not s:
        raise SolveInputEncodingError("expression is empty")
    try:
        s.encode('utf-8')
    except UnicodeEncodeError as e:
        raise SolveInputEncodingError(f"expression cannot be encoded: {e}") from e
    return s


class SolverClient(ServiceClient):
    """Queries the solver service for a step-by-step solution."""

    def __init__(self, app_id: str, url: str = SOLVER_URL, params: dict = None, **kwargs):
        super().__init__(**kwargs)
        self.app_id = app_id
        self.url = url
        self.params = dict(params) if params else ServiceConfig().solver_params

    @classmethod
    def from_config(cls, config: ServiceConfig, session: requests.Session = None) -> SolverClient:
        return cls(
            config.solver_app_id, url=config.solver_url, params=config.solver_params,
            session=session, timeout=config.timeout,
            max_retries=config.max_retries, retry_delay=config.retry_delay,
        )

    def build_params(self, latex: str) -> dict:
        """Query parameters for ``latex``; raises SolveInputEncodingError."""
        query = prepare_solver_input(latex)
        logger.debug("Solver input string (in request): %s", query)
        return {'appid': self.app_id, 'input': query, **self.params}

    def solve(self, latex: str) -> dict:
        """Ask the solver about ``latex`` and return the raw document.

        Raises:
            SolveInputEncodingError: The expression cannot form a query.
            SolveTransportError: The request failed or returned an error status.
            SolveDecodingError: The response was not a JSON object.
        """
        params = self.build_params(latex)
        logger.info("Making request to %s", self.url)
        try:
            response = self.request_with_retry('GET', self.url, params=params)
        except requests.RequestException as e:
            raise SolveTransportError(f"solver request failed: {e}") from e

        logger.info("Response status code: %d", response.status_code)
        if response.status_code >= 400:
            raise SolveTransportError(
                f"solver returned HTTP {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SolveDecodingError(f"solver response is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise SolveDecodingError("solver response is not an object")

        document = body.get('queryresult', body)
        if not isinstance(document, dict):
            raise SolveDecodingError("solver 'queryresult' is not an object")
        return document
