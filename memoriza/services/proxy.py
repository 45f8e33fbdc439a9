import logging
from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from memoriza import config

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}

# Dropped from the inbound request; httpx sets host and length for the target.
_REQUEST_SKIP_HEADERS = {"connection", "host", "content-length"}
_RESPONSE_SKIP_HEADERS = {"connection", "keep-alive", "transfer-encoding"}


def _forward_headers(request: Request) -> list[tuple[str, str]]:
    return [
        (key, value)
        for key, value in request.headers.items()
        if key.lower() not in _REQUEST_SKIP_HEADERS
    ]


async def _close(response: httpx.Response, client: httpx.AsyncClient):
    await response.aclose()
    await client.aclose()


async def forward(
    request: Request, target_url: str, content: Optional[bytes] = None
):
    """Relay `request` to `target_url` and stream the upstream reply back.

    The inbound method, headers and query string are kept. For POST, PUT and
    PATCH the inbound body bytes are sent unless `content` replaces them.
    """
    method = request.method.upper()
    if request.url.query:
        target_url = f"{target_url}?{request.url.query}"

    body = None
    if method in BODY_METHODS:
        body = content if content is not None else await request.body()

    logger.info("Proxying %s request to %s", method, target_url)

    client = httpx.AsyncClient(timeout=config.get_upstream_timeout())
    upstream_request = client.build_request(
        method, target_url, headers=_forward_headers(request), content=body
    )
    try:
        upstream_response = await client.send(upstream_request, stream=True)
    except httpx.RequestError as err:
        await client.aclose()
        logger.error("Proxy to %s failed: %s", target_url, err)
        return JSONResponse(
            status_code=502, content={"error": "Failed to connect to upstream"}
        )

    logger.info("Proxy response %s from %s", upstream_response.status_code, target_url)
    headers = {
        key: value
        for key, value in upstream_response.headers.items()
        if key.lower() not in _RESPONSE_SKIP_HEADERS
    }
    return StreamingResponse(
        upstream_response.aiter_raw(),
        status_code=upstream_response.status_code,
        headers=headers,
        background=BackgroundTask(_close, upstream_response, client),
    )
