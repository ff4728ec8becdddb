from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

APP_NAME = "tasmoscan"
CONFIG_FILENAME = "config.toml"
CONFIG_ENV_VAR = "TASMOSCAN_CONFIG"

DEFAULT_OTA_URL = "http://ota.tasmota.com/tasmota/release/"

# environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TASMOSCAN_CIDR": ("scanning", "cidr"),
    "TASMOSCAN_TIMEOUT": ("scanning", "timeout"),
    "TASMOSCAN_PARALLEL_SCANS": ("scanning", "parallel_scans"),
    "TASMOSCAN_PASSWORD": ("device", "password"),
    "TASMOSCAN_OTAURL": ("updates", "ota_url"),
    "TASMOSCAN_DOUPDATES": ("updates", "enabled"),
    "TASMOSCAN_DAEMON": ("daemon", "enabled"),
}


def default_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(config_home) / APP_NAME / CONFIG_FILENAME


def expand_path(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value)))


class ScanningConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    cidr: str = "192.168.0.0/24"
    timeout: float = Field(default=10.0, gt=0)
    parallel_scans: int = Field(default=64, ge=1, le=1024)


class DeviceConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    password: str = ""


class UpdateConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = False
    ota_url: str = DEFAULT_OTA_URL


class DaemonConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = False
    interval_hours: float = Field(default=24.0, gt=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    scanning: ScanningConfig = Field(default_factory=ScanningConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    updates: UpdateConfig = Field(default_factory=UpdateConfig)
    daemon: DaemonConfig = Field(default_factory=DaemonConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc


def apply_env_overrides(
    data: dict[str, Any], environ: dict[str, str] | None = None
) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    merged = {section: dict(values) for section, values in data.items()}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None:
            continue
        merged.setdefault(section, {})[key] = value
    return merged


def load_settings(path: Path | None, environ: dict[str, str] | None = None) -> Settings:
    data = _read_toml(path) if path is not None else {}
    data = apply_env_overrides(data, environ)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        source = path if path is not None else "environment"
        raise ValueError(f"Invalid configuration ({source})\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    return load_settings(path if exists else None)


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# tasmoscan configuration",
        "",
        "[scanning]",
        f"cidr = {_toml_string(settings.scanning.cidr)}",
        f"timeout = {settings.scanning.timeout}",
        f"parallel_scans = {settings.scanning.parallel_scans}",
        "",
        "[device]",
        "# password of the web admin user, empty if none is set",
        f"password = {_toml_string(settings.device.password)}",
        "",
        "[updates]",
        f"enabled = {_toml_bool(settings.updates.enabled)}",
        f"ota_url = {_toml_string(settings.updates.ota_url)}",
        "",
        "[daemon]",
        f"enabled = {_toml_bool(settings.daemon.enabled)}",
        f"interval_hours = {settings.daemon.interval_hours}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
