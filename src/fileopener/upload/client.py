"""HTTP client for the File Opener agent.

Sends one multipart ``POST /upload`` per call with two fields:

* ``file``   -- the raw bytes of the selected file
* ``openNow`` -- literal ``"true"``, asking the agent to open it at once

The encoded body is streamed through an async generator that reports
cumulative bytes sent against the ``Content-Length`` of the body.  When
the length cannot be determined up front no progress is reported.

``GET /open/<name>`` re-opens a file the agent stored earlier and
``GET /health`` tells whether the agent is up.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator
from types import TracebackType
from typing import Any, Callable
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_delay,
    wait_exponential,
)

from fileopener.config import UploadConfig
from fileopener.models import SelectedFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class AgentClient:
    """Thin wrapper around :class:`httpx.AsyncClient` for the agent.

    Usage::

        async with AgentClient(load_upload_config()) as client:
            response = await client.send(selected, on_progress=print)

    Args:
        config: Endpoint and field names.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: UploadConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or UploadConfig()
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(None, connect=self.config.connect_timeout),
        )

    async def __aenter__(self) -> AgentClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def send(
        self,
        file: SelectedFile,
        on_progress: ProgressCallback | None = None,
    ) -> httpx.Response:
        """Upload *file* and return the agent's fully read response.

        The file is opened for the duration of this call only.

        Raises:
            OSError: If the file can no longer be read.
            httpx.TransportError: On connection-level failures.
        """
        config = self.config
        with open(file.raw_handle, "rb") as fh:
            encoded = self._client.build_request(
                "POST",
                config.endpoint,
                data={config.open_now_field: "true" if config.open_now else "false"},
                files={config.file_field: (file.name, fh)},
            )
            total = _content_length(encoded)
            request = httpx.Request(
                "POST",
                encoded.url,
                headers=encoded.headers,
                content=_report_progress(
                    encoded.stream, total, on_progress, config.chunk_size
                ),
            )
            logger.debug(
                "POST %s (%s, %s bytes)", request.url, file.name, total or "unknown"
            )
            response = await self._client.send(request)

        logger.debug("Agent answered %d for %s", response.status_code, file.name)
        return response

    async def open_uploaded(self, filename: str) -> httpx.Response:
        """Ask the agent to open a file it already stored under *filename*.

        The reply carries the same ``{success, filePath, errorMessage}``
        document as an upload; the agent answers 404 for an unknown name
        and 400 for a name that tries to leave its upload directory.

        Raises:
            httpx.TransportError: On connection-level failures.
        """
        url = self.config.open_endpoint.rstrip("/") + "/" + quote(filename, safe="")
        logger.debug("GET %s", url)
        response = await self._client.get(url)
        logger.debug("Agent answered %d for open %s", response.status_code, filename)
        return response

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_health(self) -> dict[str, Any]:
        """Return the agent's health document (``{"status": "OK", ...}``).

        Raises:
            httpx.HTTPError: If the agent is unreachable or answers non-2xx.
        """
        response = await self._client.get(self.config.health_endpoint)
        response.raise_for_status()
        return response.json()

    async def wait_until_healthy(self, timeout: float) -> dict[str, Any]:
        """Poll :meth:`check_health` with exponential backoff.

        Raises:
            httpx.HTTPError: The last failure once *timeout* seconds pass.
        """
        async for attempt in AsyncRetrying(
            wait=wait_exponential(min=0.5, max=5),
            stop=stop_after_delay(timeout),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        ):
            with attempt:
                return await self.check_health()
        raise AssertionError("unreachable")  # pragma: no cover


def _content_length(request: httpx.Request) -> int | None:
    value = request.headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def _report_progress(
    stream: AsyncIterable[bytes],
    total: int | None,
    on_progress: ProgressCallback | None,
    chunk_size: int,
) -> AsyncIterator[bytes]:
    """Yield *stream* in chunks of at most *chunk_size*, reporting bytes sent.

    A chunk counts as sent once the transport has pulled it, so the
    report for a chunk happens when the next one is requested.
    """
    sent = 0
    async for part in stream:
        for offset in range(0, len(part), chunk_size):
            chunk = part[offset : offset + chunk_size]
            yield chunk
            sent += len(chunk)
            if on_progress is not None and total:
                on_progress(sent, total)
