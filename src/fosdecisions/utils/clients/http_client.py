"""
HTTP fetch layer with retry and exponential backoff.

All outbound page and PDF requests go through HttpFetcher so they share a
browser-like user agent, a per-request timeout and the same retry policy:
any transport error or non-2xx status is retried after
``base_delay_ms * 2 ** (attempt - 1)`` milliseconds.
"""

import time
from typing import Callable, Dict, Optional

import httpx
from loguru import logger
from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_exponential

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Fetch attempt {retry_state.attempt_number} failed ({error}); "
        f"retrying in {delay * 1000:.0f} ms"
    )


class HttpFetcher:
    """Retrying GET client used for search pages and PDF downloads."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        user_agent: str = USER_AGENT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(follow_redirects=True)
        self.user_agent = user_agent
        self.sleep = sleep

    def fetch(
        self,
        url: str,
        retries: int = 3,
        base_delay_ms: int = 1000,
        timeout_ms: int = 30000,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        GET ``url`` and return the successful response.

        Args:
            url: Absolute URL to fetch
            retries: Extra attempts after the first one
            base_delay_ms: Backoff base, doubled on every retry
            timeout_ms: Per-attempt timeout
            headers: Headers merged over the default user agent

        Raises:
            httpx.HTTPError: The last error once every attempt has failed
        """
        request_headers = {"User-Agent": self.user_agent, **(headers or {})}
        retrying = Retrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=base_delay_ms / 1000),
            sleep=self.sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(self._get, url, request_headers, timeout_ms / 1000)

    def _get(self, url: str, headers: Dict[str, str], timeout: float) -> httpx.Response:
        response = self.client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response

    def fetch_text(self, url: str, **kwargs) -> str:
        return self.fetch(url, **kwargs).text

    def download(self, url: str, **kwargs) -> bytes:
        """Fetch ``url`` and return the raw body bytes."""
        return self.fetch(url, **kwargs).content

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
