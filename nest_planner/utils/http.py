"""
HTTP access for media payloads.

Media assets referenced by URL (existing cover images, generated video
files) are downloaded with aiohttp so they can be re-encoded inline.
"""

from urllib.parse import urlsplit

import aiohttp

from nest_planner.utils.error_handling import ProviderError, wrap_provider_errors
from nest_planner.utils.logging import ServiceLogger

HTTP_STATUS_OK = 200
HTTP_STATUS_REDIRECT = 300
DEFAULT_TIMEOUT_SECONDS = 120


def _redact(url: str) -> str:
    """Drop the query string so credentials never reach the logs."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


async def fetch_bytes(
    url: str,
    service_name: str = "media",
    session: aiohttp.ClientSession | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[bytes, str | None]:
    """
    Download a URL and return its body and content type.

    Args:
        url: Absolute URL to fetch
        service_name: Name used in ProviderError messages
        session: Existing session to reuse (optional)
        timeout_seconds: Total request timeout

    Returns:
        Tuple of (body bytes, content type or None)

    Raises:
        ProviderError: On transport failure or a non-2xx status
    """
    owns_session = session is None
    if session is None:
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout_seconds)
        )

    log = ServiceLogger(service_name)
    log.log_api_request(service_name, _redact(url))
    try:
        with wrap_provider_errors(service_name):
            async with session.get(url) as response:
                log.log_api_response(service_name, _redact(url), response.status)
                if not (HTTP_STATUS_OK <= response.status < HTTP_STATUS_REDIRECT):
                    raise ProviderError(
                        f"Failed to download {_redact(url)}",
                        service_name=service_name,
                        status_code=response.status,
                    )
                body = await response.read()
                content_type = response.headers.get("Content-Type")
                if content_type:
                    content_type = content_type.split(";")[0].strip()
                return body, content_type
    finally:
        if owns_session:
            await session.close()
