"""HTTP fetcher for the OpenFoodFacts endpoints.

The fetcher wraps an explicitly passed ``httpx.Client`` so tests can swap in
``httpx.MockTransport``. It never retries and never raises anything but
:class:`~offviewer.errors.TransportError` for network trouble. A non-2xx
status is a successful fetch; rejecting it is the decoder's job.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .config import Settings, settings as default_settings
from .errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    status_code: int
    body: bytes
    url: str


def build_client(settings: Settings = default_settings) -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
        timeout=settings.request_timeout_seconds,
        follow_redirects=True,
    )


class HttpFetcher:
    def __init__(self, client: Optional[httpx.Client] = None, settings: Settings = default_settings) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else build_client(settings)
        self._timeout = settings.request_timeout_seconds
        self._headers = {"User-Agent": settings.user_agent}

    def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> FetchResult:
        request = self._client.build_request("GET", url, params=params, headers=self._headers, timeout=self._timeout)
        issued = str(request.url)
        logger.debug("GET %s", issued)
        # httpx timeouts are per phase and reset on every chunk, so the whole
        # exchange is also held to a single deadline.
        deadline = time.monotonic() + self._timeout
        try:
            response = self._client.send(request, stream=True)
            try:
                chunks = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise TransportError("timeout", issued, f"body not received within {self._timeout}s")
            finally:
                response.close()
        except httpx.TimeoutException as exc:
            raise TransportError("timeout", issued, str(exc)) from exc
        except (httpx.ConnectError, httpx.UnsupportedProtocol) as exc:
            raise TransportError("connect", issued, str(exc)) from exc
        except (httpx.HTTPError, OSError) as exc:
            raise TransportError("io", issued, str(exc)) from exc
        body = b"".join(chunks)
        logger.debug("GET %s -> %s (%s bytes)", issued, response.status_code, len(body))
        return FetchResult(status_code=response.status_code, body=body, url=issued)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
