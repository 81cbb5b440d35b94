from __future__ import annotations

from pathlib import Path

import pytest

from sgsst_cli.config import (
    CONFIG_FILENAME,
    config_exists,
    read_config,
    write_config,
)
from sgsst_cli.exceptions import ConfigError
from sgsst_cli.models.config import AppConfig

_URL = "https://script.google.com/macros/s/abc123/exec"


def _make_config(
    api_url: str = _URL,
    empresa_id: str = "EMP-001",
    timeout: float = 30.0,
    count_not_applicable: bool = True,
) -> AppConfig:
    return AppConfig(
        api_url=api_url,
        empresa_id=empresa_id,
        timeout=timeout,
        count_not_applicable=count_not_applicable,
    )


class TestAppConfig:
    def test_valid_config(self) -> None:
        cfg = _make_config()
        assert cfg.api_url == _URL
        assert cfg.empresa_id == "EMP-001"
        assert cfg.timeout == 30.0
        assert cfg.count_not_applicable is True

    def test_defaults(self) -> None:
        cfg = AppConfig(api_url=_URL, empresa_id="EMP-001")
        assert cfg.timeout == 30.0
        assert cfg.count_not_applicable is True

    def test_empty_api_url_raises(self) -> None:
        with pytest.raises(ConfigError, match="API URL cannot be empty"):
            _make_config(api_url="")

    def test_plain_http_raises(self) -> None:
        with pytest.raises(ConfigError, match="must start with https://"):
            _make_config(api_url="http://script.google.com/exec")

    def test_empty_empresa_id_raises(self) -> None:
        with pytest.raises(ConfigError, match="Company ID cannot be empty"):
            _make_config(empresa_id="")

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_non_positive_timeout_raises(self, timeout: float) -> None:
        with pytest.raises(ConfigError, match="Timeout must be a positive"):
            _make_config(timeout=timeout)


class TestConfigExists:
    def test_exists_false(self, tmp_path: Path) -> None:
        assert config_exists(tmp_path) is False

    def test_exists_true(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sgsst]\n", encoding="utf-8")
        assert config_exists(tmp_path) is True


class TestWriteReadRoundTrip:
    def test_round_trip(self, tmp_path: Path) -> None:
        original = _make_config(timeout=12.5, count_not_applicable=False)
        write_config(tmp_path, original)

        assert (tmp_path / CONFIG_FILENAME).is_file()

        loaded = read_config(tmp_path)
        assert loaded == original

    def test_optional_keys_default(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"[sgsst]\napi_url = {_URL}\nempresa_id = EMP-9\n",
            encoding="utf-8",
        )
        loaded = read_config(tmp_path)
        assert loaded.timeout == 30.0
        assert loaded.count_not_applicable is True

    def test_boolean_spellings(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"[sgsst]\napi_url = {_URL}\nempresa_id = EMP-9\ncount_not_applicable = no\n",
            encoding="utf-8",
        )
        assert read_config(tmp_path).count_not_applicable is False


class TestReadConfigErrors:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Configuration not found"):
            read_config(tmp_path)

    def test_missing_section(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[wrong]\nkey = val\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="missing \\[sgsst\\] section"):
            read_config(tmp_path)

    def test_missing_key(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"[sgsst]\napi_url = {_URL}\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigError, match="missing or empty 'empresa_id'"):
            read_config(tmp_path)

    def test_empty_value(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            "[sgsst]\napi_url =\nempresa_id = EMP-1\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigError, match="missing or empty 'api_url'"):
            read_config(tmp_path)

    def test_malformed_ini_syntax(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"not-an-ini\napi_url = {_URL}\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigError, match="Invalid configuration format"):
            read_config(tmp_path)

    def test_unparsable_timeout(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"[sgsst]\napi_url = {_URL}\nempresa_id = EMP-1\ntimeout = soon\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            read_config(tmp_path)

    def test_unparsable_boolean(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            f"[sgsst]\napi_url = {_URL}\nempresa_id = EMP-1\ncount_not_applicable = maybe\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            read_config(tmp_path)
