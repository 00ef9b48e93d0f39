from __future__ import annotations

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from bookgraph.settings import settings

TransientHttpError = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


def default_timeout() -> httpx.Timeout:
    # Open Library search can be slow; connects should fail fast
    return httpx.Timeout(settings.http_timeout, connect=5.0)


def default_limits() -> httpx.Limits:
    # one aggregation window never needs more than max_concurrency connections
    return httpx.Limits(
        max_connections=max(settings.max_concurrency * 2, 10),
        max_keepalive_connections=settings.max_concurrency,
    )


class HttpClientFactory:
    """Creates shared httpx clients for the bibliographic source.

    Keep one client per session or service process; do not create per-request.
    `transport` lets tests swap in httpx.MockTransport.
    """

    @staticmethod
    def client(
        base_url: str,
        headers: dict | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=default_timeout(),
            limits=default_limits(),
            follow_redirects=True,
            transport=transport,
        )


def transient_retry():
    """Retry only transport-level failures; HTTP status errors are final."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(settings.http_retries),
        wait=wait_exponential_jitter(initial=0.25, max=4.0),
        retry=retry_if_exception_type(TransientHttpError),
    )
