"""httpx.AsyncClient construction for pipeline invocations."""

import httpx

from nemory.constants import HTTP_CONNECT_TIMEOUT, HTTP_TOTAL_TIMEOUT


def create_http_client() -> httpx.AsyncClient:
    """Build a fresh client. Each invocation owns one and closes it when done."""
    return httpx.AsyncClient(timeout=httpx.Timeout(HTTP_TOTAL_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT))
