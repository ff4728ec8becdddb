from __future__ import annotations

import asyncio
import json
import logging
from types import TracebackType
from typing import Any, Protocol

import aiohttp
from yarl import URL

from tasmoscan.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class Transport(Protocol):
    async def get(self, url: str) -> str: ...

    async def get_json(self, url: str) -> Any: ...


class HttpTransport:
    """Plain HTTP GET with a fixed timeout, backed by one aiohttp session."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, limit: int = 0) -> None:
        # limit caps open connections; 0 means unlimited
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._limit = limit
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpTransport:
        connector = aiohttp.TCPConnector(limit=self._limit)
        self._session = aiohttp.ClientSession(
            timeout=self._timeout, connector=connector
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def connection_limit(self) -> int:
        return self._limit

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(self, url: str) -> str:
        if self._session is None:
            raise RuntimeError("HttpTransport used outside of 'async with'")
        try:
            async with self._session.get(URL(url, encoded=True)) as response:
                if not 200 <= response.status < 300:
                    raise TransportError(
                        url, f"HTTP {response.status}", status=response.status
                    )
                return await response.text(errors="replace")
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise TransportError(url, "timeout") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(url, str(exc) or type(exc).__name__) from exc

    async def get_json(self, url: str) -> Any:
        body = await self.get(url)
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise TransportError(url, f"invalid JSON: {exc}") from exc
