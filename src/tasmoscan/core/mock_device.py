from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from aiohttp import web

logger = logging.getLogger(__name__)


@dataclass
class MockTasmotaDevice:
    """Answers the subset of the Tasmota ``/cm`` web API that tasmoscan uses."""

    name: str = "mock-plug-1"
    firmware_version: str = "9.1.0"
    firmware_variant: str = "tasmota"
    password: str = ""
    host: str = "0.0.0.0"
    port: int = 8080

    ota_url: str = "http://ota.tasmota.com/tasmota/release/tasmota.bin"
    upgrade_requests: int = 0
    commands: list[str] = field(default_factory=list, repr=False)

    _runner: web.AppRunner | None = field(default=None, repr=False)

    def status(self) -> dict[str, Any]:
        return {
            "Status": {
                "Module": 1,
                "DeviceName": self.name,
                "FriendlyName": [self.name],
                "Topic": self.name.replace(" ", "_").lower(),
                "Power": 0,
            },
            "StatusFWR": {
                "Version": f"{self.firmware_version}({self.firmware_variant})",
                "Core": "2_7_4_9",
                "SDK": "2.2.2-dev(38a443e)",
                "Hardware": "ESP8266EX",
            },
        }

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/cm", self._handle_command)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(
            "Mock device '%s' listening on %s:%d", self.name, self.host, self.port
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Mock device '%s' stopped", self.name)

    async def run_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    def _authorized(self, request: web.Request) -> bool:
        if not self.password:
            return True
        return (
            request.query.get("user") == "admin"
            and request.query.get("password") == self.password
        )

    def execute(self, command_line: str) -> dict[str, Any]:
        command, _, argument = command_line.strip().partition(" ")
        command = command.lower()
        argument = argument.strip()
        self.commands.append(command_line)

        if command == "status" and argument == "0":
            return self.status()
        if command == "otaurl":
            if argument:
                self.ota_url = argument
                logger.info("OTA url set to %s", argument)
            return {"OtaUrl": self.ota_url}
        if command == "upgrade" and argument == "1":
            self.upgrade_requests += 1
            logger.info("Upgrade requested from %s", self.ota_url)
            return {"Upgrade": f"Version {self.firmware_version} from {self.ota_url}"}
        return {"Command": "Unknown"}

    async def _handle_command(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response(
                {"WARNING": "Need user=<username>&password=<password>"}, status=401
            )
        return web.json_response(self.execute(request.query.get("cmnd", "")))


async def run_mock_device(
    name: str = "mock-plug-1",
    firmware_version: str = "9.1.0",
    firmware_variant: str = "tasmota",
    port: int = 8080,
    host: str = "0.0.0.0",
    password: str = "",
) -> None:
    device = MockTasmotaDevice(
        name=name,
        firmware_version=firmware_version,
        firmware_variant=firmware_variant,
        host=host,
        port=port,
        password=password,
    )
    await device.run_forever()
