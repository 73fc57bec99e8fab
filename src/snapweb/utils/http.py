"""Bounded HTTP requests for the ``http:`` and ``https:`` backends.

Bodies are read chunk by chunk and rejected once they pass a size limit,
so a misbehaving server cannot exhaust memory.

See Also:
    [HTTPSite][snapweb.sites.http_site.HTTPSite]: The backend built on
        [request_bounded][snapweb.utils.http.request_bounded].
"""

from __future__ import annotations

from typing import NamedTuple

import aiohttp


class HttpResult(NamedTuple):
    """Status, body and headers of a completed request."""

    status: int
    body: bytes
    headers: dict[str, str]


async def request_bounded(  # noqa: PLR0913
    method: str,
    url: str,
    *,
    max_size: int,
    timeout: float = 30.0,  # noqa: ASYNC109
    data: bytes | None = None,
    auth: aiohttp.BasicAuth | None = None,
) -> HttpResult:
    """Issue one request and read its whole body with size enforcement.

    Non-2xx statuses are returned, not raised; callers decide what a 404
    or a 401 means for them.

    Args:
        method: HTTP method name.
        url: Absolute request URL.
        max_size: Maximum allowed response body size in bytes.
        timeout: Total request timeout in seconds.
        data: Optional request body.
        auth: Optional basic-auth credentials.

    Raises:
        aiohttp.ClientError: If the connection fails.
        TimeoutError: If the request exceeds *timeout*.
        ValueError: If the response body exceeds *max_size*.
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with (
        aiohttp.ClientSession(timeout=client_timeout, auth=auth) as session,
        session.request(method, url, data=data) as response,
    ):
        body = await read_bounded(response, max_size)
        return HttpResult(response.status, body, dict(response.headers))


async def read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read an entire response body with size enforcement.

    Accumulates chunks until EOF or until the limit is exceeded, which also
    handles chunked transfer-encoding where one read may return fewer bytes
    than are available.

    Args:
        response: An aiohttp response whose body has not yet been consumed.
        max_size: Maximum allowed response body size in bytes.

    Raises:
        ValueError: If the response body exceeds *max_size*.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)
