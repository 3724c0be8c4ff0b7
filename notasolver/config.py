"""Shared configuration for the solve pipeline.

This module centralizes the service endpoints, request tuning and default
values used by:
    - clients/ocr.py
    - clients/solver.py
    - web.py and cli.py

Credentials are read from the environment by ServiceConfig.from_env();
they are opaque strings passed through as request headers or parameters.

Environment variables:
    MATHPIX_APP_ID, MATHPIX_APP_KEY: OCR service credentials.
    WOLFRAM_APP_ID: Solver service credential.
    NOTASOLVER_OCR_URL, NOTASOLVER_SOLVER_URL: Endpoint overrides.
    NOTASOLVER_HTTP_TIMEOUT: Per-request timeout in seconds (default 30).
    NOTASOLVER_MAX_RETRIES: Attempts per HTTP call (default 3).
    NOTASOLVER_LOG_LEVEL: Log level name (default INFO).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import ConfigurationError

# OCR endpoint accepting stroke geometry
OCR_URL = 'https://api.mathpix.com/v3/strokes'

# Field of the OCR response holding the recognized LaTeX
OCR_RESULT_FIELD = 'latex_styled'

# Solver query endpoint
SOLVER_URL = 'https://api.wolframalpha.com/v2/query'

# Presentation hints sent with every solver query
SOLVER_PODSTATE = 'Step-by-step solution'
SOLVER_FORMAT = 'image'
SOLVER_MAGNIFICATION = '2.0'
SOLVER_OUTPUT = 'json'

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0

# Snipping rectangle shown when the user first opens the selector
DEFAULT_REGION = {'x': 200.0, 'y': 450.0, 'width': 400.0, 'height': 150.0}

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 5000


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ServiceConfig:
    """Settings for the OCR and solver clients.

    Attributes:
        ocr_app_id: OCR application id header value.
        ocr_app_key: OCR application key header value.
        solver_app_id: Solver application id query parameter.
        ocr_url: OCR endpoint.
        solver_url: Solver endpoint.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts per HTTP call for transient failures.
        retry_delay: Base delay for exponential backoff.
        log_level: Log level name used by the entry points.
    """
    ocr_app_id: str = ''
    ocr_app_key: str = ''
    solver_app_id: str = ''
    ocr_url: str = OCR_URL
    solver_url: str = SOLVER_URL
    timeout: float = DEFAULT_HTTP_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    log_level: str = 'INFO'
    solver_params: dict = field(default_factory=lambda: {
        'podstate': SOLVER_PODSTATE,
        'format': SOLVER_FORMAT,
        'mag': SOLVER_MAGNIFICATION,
        'output': SOLVER_OUTPUT,
    })

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Build a config from environment variables."""
        return cls(
            ocr_app_id=os.environ.get('MATHPIX_APP_ID', ''),
            ocr_app_key=os.environ.get('MATHPIX_APP_KEY', ''),
            solver_app_id=os.environ.get('WOLFRAM_APP_ID', ''),
            ocr_url=os.environ.get('NOTASOLVER_OCR_URL', OCR_URL),
            solver_url=os.environ.get('NOTASOLVER_SOLVER_URL', SOLVER_URL),
            timeout=_env_float('NOTASOLVER_HTTP_TIMEOUT', DEFAULT_HTTP_TIMEOUT),
            max_retries=max(1, _env_int('NOTASOLVER_MAX_RETRIES', DEFAULT_MAX_RETRIES)),
            log_level=os.environ.get('NOTASOLVER_LOG_LEVEL', 'INFO'),
        )

    def missing_credentials(self) -> list[str]:
        """Names of credential settings that are empty."""
        missing = []
        if not self.ocr_app_id:
            missing.append('MATHPIX_APP_ID')
        if not self.ocr_app_key:
            missing.append('MATHPIX_APP_KEY')
        if not self.solver_app_id:
            missing.append('WOLFRAM_APP_ID')
        return missing

    def require_credentials(self) -> None:
        """Raise ConfigurationError when any credential is missing."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(f"missing credentials: {', '.join(missing)}")
