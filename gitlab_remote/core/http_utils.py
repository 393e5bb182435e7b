"""
HTTP Utilities

Shared utilities for HTTP client operations and error handling
of outbound calls to the GitLab instance.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx

from gitlab_remote.core.metrics import (
    external_api_duration_seconds,
    external_api_errors_total,
    external_api_requests_total,
)

logger = logging.getLogger(__name__)


class UpstreamRequestError(Exception):
    """Raised when a request to the remote provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@asynccontextmanager
async def upstream_errors(service_name: str, operation: str) -> AsyncGenerator[None, None]:
    """
    Translate httpx failures raised inside the block into UpstreamRequestError.

    ValueError covers bodies that are not JSON or do not match the expected
    model (json.JSONDecodeError and pydantic.ValidationError both derive
    from it), e.g. an HTML login page served by a proxy.

    Usage:
        async with upstream_errors("GitLab API", "fetch project"):
            response = await client.get(url)
            response.raise_for_status()
    """
    try:
        yield
    except httpx.TimeoutException as e:
        msg = f"Timeout during {operation} on {service_name}"
        logger.warning(msg)
        raise UpstreamRequestError(msg) from e
    except httpx.ConnectError as e:
        msg = f"Connection error during {operation} on {service_name}: {e}"
        logger.warning(msg)
        raise UpstreamRequestError(msg) from e
    except httpx.HTTPStatusError as e:
        msg = f"HTTP {e.response.status_code} during {operation} on {service_name}"
        logger.warning(msg)
        raise UpstreamRequestError(msg, status_code=e.response.status_code) from e
    except httpx.RequestError as e:
        msg = f"Request error during {operation} on {service_name}: {e}"
        logger.warning(msg)
        raise UpstreamRequestError(msg) from e
    except ValueError as e:
        msg = f"Invalid response during {operation} on {service_name}"
        logger.warning(f"{msg}: {e}")
        raise UpstreamRequestError(msg) from e


class InstrumentedAsyncClient:
    """
    httpx.AsyncClient wrapper that records the external API metrics of
    every request. Responses with an error status count as errors too.

    Usage:
        async with InstrumentedAsyncClient("GitLab API", timeout=10.0, verify=False) as client:
            response = await client.get(url)
    """

    def __init__(self, service_name: str, timeout: float = 30.0, **kwargs):
        self.service_name = service_name
        self._timeout = timeout
        self._kwargs = kwargs
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "InstrumentedAsyncClient":
        self._client = httpx.AsyncClient(timeout=self._timeout, **self._kwargs)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("Client not started. Use 'async with'.")

        labels = {"service": self.service_name}
        external_api_requests_total.labels(**labels).inc()
        start_time = time.time()
        try:
            response = await self._client.request(method, url, **kwargs)
        except Exception:
            external_api_errors_total.labels(**labels).inc()
            raise

        if response.is_error:
            external_api_errors_total.labels(**labels).inc()
        else:
            external_api_duration_seconds.labels(**labels).observe(time.time() - start_time)
        return response
