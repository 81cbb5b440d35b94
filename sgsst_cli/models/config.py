from __future__ import annotations

from dataclasses import dataclass

from sgsst_cli.exceptions import ConfigError

DEFAULT_TIMEOUT = 30.0


@dataclass
class AppConfig:
    api_url: str
    empresa_id: str
    timeout: float = DEFAULT_TIMEOUT
    count_not_applicable: bool = True

    def __post_init__(self) -> None:
        if not self.api_url:
            raise ConfigError("API URL cannot be empty.")
        if not self.api_url.startswith("https://"):
            raise ConfigError("API URL must start with https://")
        if not self.empresa_id:
            raise ConfigError("Company ID cannot be empty.")
        if self.timeout <= 0:
            raise ConfigError("Timeout must be a positive number of seconds.")
