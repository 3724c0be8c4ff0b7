"""Common HTTP plumbing for the remote services.

ServiceClient owns a requests.Session and provides request_with_retry,
which retries rate-limited (429) and server-error (5xx) responses as well
as connection failures and timeouts with exponential backoff. Subclasses
translate the final outcome into their own error types.

Non-idempotent methods (POST) are only re-sent when the request cannot
have reached the server: a failed connection or a 429 rejection. A 5xx
answer or a read timeout on a POST is final, so a metered call is never
billed twice.
"""

from __future__ import annotations

import logging
import math
import time

import requests

from ..config import DEFAULT_HTTP_TIMEOUT, DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS', 'PUT', 'DELETE'})


def parse_retry_after(value, default: float) -> float:
    """Delay in seconds from a Retry-After header, else ``default``.

    Missing, non-numeric, negative and non-finite values fall back to
    ``default``.
    """
    try:
        delay = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(delay) or delay < 0:
        return default
    return delay


class ServiceClient:
    """Base class for HTTP service clients.

    Attributes:
        session: HTTP session shared by all calls of this client.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts per call for transient failures.
        retry_delay: Base delay in seconds for exponential backoff.
    """

    def __init__(
        self,
        session: requests.Session = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    def request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """Make an HTTP request with retry logic for transient failures.

        Handles 429 rate limit responses, 5xx responses and connection
        errors with exponential backoff. After the last attempt a 429/5xx
        response is returned as is so the caller can report its status.
        For non-idempotent methods only connection failures and 429 are
        retried.

        Args:
            method: HTTP method ('GET', 'POST', ...).
            url: The URL to request.
            **kwargs: Additional arguments passed to requests.Session.request().

        Returns:
            The requests.Response object.

        Raises:
            requests.RequestException: If every attempt failed to connect,
                or a non-idempotent request timed out waiting for the answer.
        """
        kwargs.setdefault('timeout', self.timeout)
        idempotent = method.upper() in IDEMPOTENT_METHODS
        response = None

        for attempt in range(self.max_retries):
            last = attempt == self.max_retries - 1
            backoff = self.retry_delay * (2 ** attempt)
            try:
                response = self.session.request(method, url, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                # ConnectTimeout is a ConnectionError; ReadTimeout is not
                if last or not (idempotent or isinstance(e, requests.ConnectionError)):
                    raise
                logger.warning(
                    "Connection error on %s: %s, waiting %.1fs (attempt %d/%d)",
                    url, e, backoff, attempt + 1, self.max_retries
                )
                time.sleep(backoff)
                continue

            if last:
                return response

            if response.status_code == 429:
                delay = parse_retry_after(response.headers.get('Retry-After'), backoff)
                logger.warning(
                    "Rate limited (429) on %s, waiting %.1fs (attempt %d/%d)",
                    url, delay, attempt + 1, self.max_retries
                )
                time.sleep(delay)
                continue

            if response.status_code >= 500 and idempotent:
                logger.warning(
                    "Server error (%d) on %s, waiting %.1fs (attempt %d/%d)",
                    response.status_code, url, backoff, attempt + 1, self.max_retries
                )
                time.sleep(backoff)
                continue

            return response

        return response

    def close(self) -> None:
        self.session.close()
