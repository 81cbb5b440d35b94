from __future__ import annotations

import configparser
from pathlib import Path

from sgsst_cli.exceptions import ConfigError
from sgsst_cli.models.config import DEFAULT_TIMEOUT, AppConfig

CONFIG_FILENAME = ".sgsst-cli.ini"
_SECTION = "sgsst"
_REQUIRED_KEYS = ("api_url", "empresa_id")


def config_exists(directory: Path) -> bool:
    return (directory / CONFIG_FILENAME).is_file()


def write_config(directory: Path, config: AppConfig) -> None:
    cp = configparser.ConfigParser()
    cp[_SECTION] = {
        "api_url": config.api_url,
        "empresa_id": config.empresa_id,
        "timeout": f"{config.timeout:g}",
        "count_not_applicable": "true" if config.count_not_applicable else "false",
    }
    path = directory / CONFIG_FILENAME
    with open(path, "w", encoding="utf-8") as f:
        cp.write(f)


def read_config(directory: Path) -> AppConfig:
    path = directory / CONFIG_FILENAME
    if not path.is_file():
        raise ConfigError(
            "Configuration not found. Run sgsst-cli --init first."
        )

    cp = configparser.ConfigParser()
    try:
        cp.read(str(path), encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(
            f"Invalid configuration format in {CONFIG_FILENAME}. "
            "Run sgsst-cli --init to reconfigure."
        ) from exc

    if not cp.has_section(_SECTION):
        raise ConfigError(
            f"Invalid configuration: missing [{_SECTION}] section in {CONFIG_FILENAME}."
        )

    for key in _REQUIRED_KEYS:
        if not cp.has_option(_SECTION, key) or not cp.get(_SECTION, key).strip():
            raise ConfigError(
                f"Invalid configuration: missing or empty '{key}' in {CONFIG_FILENAME}. "
                "Run sgsst-cli --init to reconfigure."
            )

    try:
        timeout = cp.getfloat(_SECTION, "timeout", fallback=DEFAULT_TIMEOUT)
        count_not_applicable = cp.getboolean(_SECTION, "count_not_applicable", fallback=True)
    except ValueError as exc:
        raise ConfigError(
            f"Invalid configuration value in {CONFIG_FILENAME}: {exc}"
        ) from exc

    return AppConfig(
        api_url=cp.get(_SECTION, "api_url").strip(),
        empresa_id=cp.get(_SECTION, "empresa_id").strip(),
        timeout=timeout,
        count_not_applicable=count_not_applicable,
    )
