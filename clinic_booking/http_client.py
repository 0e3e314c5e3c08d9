"""HTTP session with retries and connection pooling.

Pattern: requests.Session with a urllib3 retry adapter for idempotent reads
and a tenacity wrapper for connection-level failures.

Only GET is retried at the urllib3 level. A POST that reached the server
must not be replayed, or a booking could be created twice; tenacity still
retries POSTs that never connected.
"""
import logging

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.util.retry import Retry

from clinic_booking import config

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)
WRAPPED_METHODS = ("get", "post", "put", "patch", "delete")


def is_retryable(exc: BaseException) -> bool:
    """Connection errors, timeouts and 5xx/429 responses are worth another try."""
    if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
        return exc.response.status_code in RETRY_STATUSES
    return False


def _is_connect_failure(exc: BaseException) -> bool:
    # the request never reached the server, safe to resend any method
    return isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.ConnectTimeout))


def create_http_session(
    max_retries: int = config.MAX_RETRIES,
    backoff_factor: float = 1.0,
    timeout: int = config.API_TIMEOUT,
    wait_max: float = 8,
) -> requests.Session:
    """
    Create HTTP session with retry and connection pooling.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        backoff_factor: Backoff multiplier; delays are 1s, 2s, 4s at 1.0,
                        and 0 disables waiting (tests)
        timeout: Request timeout in seconds (default: 15)
        wait_max: Upper bound for a single backoff delay

    Returns:
        Configured requests.Session whose verb methods raise for status
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=list(RETRY_STATUSES),
        allowed_methods=["GET", "HEAD"],
        raise_on_status=False,
    )

    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=10,
        pool_maxsize=10,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    for method in WRAPPED_METHODS:
        idempotent = method in ("get", "put", "delete")
        wrapped = _with_retry(
            getattr(session, method),
            retry_on=is_retryable if idempotent else _is_connect_failure,
            attempts=max_retries + 1,
            backoff_factor=backoff_factor,
            wait_max=wait_max,
            timeout=timeout,
        )
        setattr(session, method, wrapped)

    return session


def _with_retry(send, retry_on, attempts, backoff_factor, wait_max, timeout):
    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=backoff_factor, min=backoff_factor, max=wait_max),
        retry=retry_if_exception(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def send_with_retry(*args, **kwargs):
        kwargs.setdefault("timeout", timeout)
        response = send(*args, **kwargs)
        response.raise_for_status()
        return response

    return send_with_retry
