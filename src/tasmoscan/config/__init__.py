from __future__ import annotations

from .settings import (
    APP_NAME,
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    DEFAULT_OTA_URL,
    ENV_OVERRIDES,
    DaemonConfig,
    DeviceConfig,
    ScanningConfig,
    Settings,
    UpdateConfig,
    apply_env_overrides,
    default_config_path,
    expand_path,
    get_settings,
    load_settings,
    render_settings_toml,
    resolve_config_path,
    write_settings,
)

__all__ = [
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_OTA_URL",
    "ENV_OVERRIDES",
    "DaemonConfig",
    "DeviceConfig",
    "ScanningConfig",
    "Settings",
    "UpdateConfig",
    "apply_env_overrides",
    "default_config_path",
    "expand_path",
    "get_settings",
    "load_settings",
    "render_settings_toml",
    "resolve_config_path",
    "write_settings",
]
