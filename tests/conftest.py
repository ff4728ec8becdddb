from __future__ import annotations

import asyncio
import json
from urllib.parse import urlsplit

import pytest

from tasmoscan.config import ENV_OVERRIDES, get_settings
from tasmoscan.errors import TransportError

DEVICE_A = {"Status": {"DeviceName": "A"}, "StatusFWR": {"Version": "1.0.0(tasmota)"}}
DEVICE_B = {"Status": {"DeviceName": "B"}, "StatusFWR": {"Version": "2.0.0(sensors)"}}


class FakeTransport:
    """In-memory transport keyed by host; unknown hosts time out."""

    def __init__(
        self,
        responses: dict[str, object] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.responses = responses or {}
        self.delays = delays or {}
        self.requests: list[str] = []

    async def get(self, url: str) -> str:
        self.requests.append(url)
        host = urlsplit(url).hostname or ""
        delay = self.delays.get(host)
        if delay:
            await asyncio.sleep(delay)
        response = self.responses.get(host)
        if response is None:
            raise TransportError(url, "timeout")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)

    async def get_json(self, url: str) -> object:
        return json.loads(await self.get(url))


class FakeFeed:
    def __init__(self, tag: str | Exception) -> None:
        self.tag = tag
        self.calls = 0

    async def latest_tag(self, transport: object) -> str:
        self.calls += 1
        if isinstance(self.tag, Exception):
            raise self.tag
        return self.tag


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.delenv("TASMOSCAN_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
