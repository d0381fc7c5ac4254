"""Kroki image rendering client.

Posts D2 text to a Kroki server (``POST {endpoint}/d2/{format}``) and returns
the encoded image. Kroki renders D2 to SVG only.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType

import httpx
import structlog

from kubetopo.errors import KrokiError

_log = structlog.get_logger(component="render.kroki")

DEFAULT_ENDPOINT = "https://kroki.io"
SUPPORTED_FORMATS = frozenset({"svg"})


def image_path(path: str | Path, output_format: str = "svg") -> Path:
    """Force the image file suffix to match the rendered format."""
    target = Path(path)
    if target.suffix.lower() != f".{output_format}":
        target = target.with_suffix(f".{output_format}")
    return target


class KrokiClient:
    """Async client for a Kroki server.

    Args:
        endpoint: Base URL of the Kroki server.
        timeout:  Request timeout in seconds. Defaults to 30.
        client:   Optional preconfigured ``httpx.AsyncClient`` (tests, proxies).
                  The caller keeps ownership; ``aclose`` leaves it open.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Kroki endpoint must not be empty")
        self._endpoint = endpoint.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> KrokiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def render(self, diagram: str, output_format: str = "svg") -> bytes:
        """Render *diagram* and return the image bytes.

        Raises:
            KrokiError: unsupported format, transport failure, or non-200 reply.
        """
        if output_format not in SUPPORTED_FORMATS:
            raise KrokiError(f"Unsupported image format for D2: {output_format}")

        url = f"{self._endpoint}/d2/{output_format}"
        try:
            response = await self._client.post(
                url,
                content=diagram.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
            )
        except httpx.TimeoutException as exc:
            _log.warning("kroki_request_timeout", url=url)
            raise KrokiError(f"Kroki request timed out: {url}") from exc
        except httpx.HTTPError as exc:
            _log.warning("kroki_http_error", url=url, error=str(exc))
            raise KrokiError(f"Sending request to Kroki failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            body = response.text[:200]
            _log.warning("kroki_non_200_response", status_code=response.status_code, body=body)
            raise KrokiError(f"Kroki returned status {response.status_code}: {body}", response.status_code)

        _log.debug("kroki_image_rendered", url=url, size=len(response.content))
        return response.content
