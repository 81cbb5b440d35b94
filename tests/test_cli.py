from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sgsst_cli.cli import main, _SUBDIRS
from sgsst_cli.config import CONFIG_FILENAME, read_config, write_config
from sgsst_cli.exceptions import ConfigError
from sgsst_cli.models.config import AppConfig

_URL = "https://script.google.com/macros/s/abc123/exec"


def _write_config(path: Path, count_not_applicable: bool = True) -> None:
    write_config(path, AppConfig(
        api_url=_URL, empresa_id="EMP-001", count_not_applicable=count_not_applicable,
    ))


class TestNoArgs:
    def test_no_args_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("sys.argv", ["sgsst-cli"]):
            main()
        captured = capsys.readouterr()
        assert "usage:" in captured.out.lower()


class TestInit:
    def test_init_creates_config_and_dirs(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", "--init", _URL]), \
             patch("builtins.input", return_value="EMP-001"):
            main()

        assert (tmp_path / CONFIG_FILENAME).is_file()
        for subdir in _SUBDIRS:
            assert (tmp_path / subdir).is_dir()

        config = read_config(tmp_path)
        assert config.api_url == _URL
        assert config.empresa_id == "EMP-001"
        assert config.timeout == 30.0
        assert config.count_not_applicable is True

    def test_init_prints_success(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", "--init", _URL]), \
             patch("builtins.input", return_value="EMP-001"):
            main()
        captured = capsys.readouterr()
        assert "Configuration saved to .sgsst-cli.ini" in captured.out
        assert "Created directories: riesgos/, estandares/" in captured.out

    def test_init_strips_company_id(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", "--init", _URL]), \
             patch("builtins.input", return_value="  EMP-002 \n"):
            main()
        assert read_config(tmp_path).empresa_id == "EMP-002"

    def test_init_existing_dirs_no_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "riesgos").mkdir()
        with patch("sys.argv", ["sgsst-cli", "--init", _URL]), \
             patch("builtins.input", return_value="EMP-001"):
            main()
        assert (tmp_path / "riesgos").is_dir()


class TestInitErrors:
    def test_invalid_url_scheme(self) -> None:
        with patch("sys.argv", ["sgsst-cli", "--init", "http://script.google.com/exec"]):
            with pytest.raises(ConfigError, match="must start with https://"):
                main()

    def test_empty_company_id(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", "--init", _URL]), \
             patch("builtins.input", return_value="   "):
            with pytest.raises(ConfigError, match="Company ID cannot be empty"):
                main()
        assert not (tmp_path / CONFIG_FILENAME).exists()


class TestCopyFlagsRequireConfig:
    @pytest.mark.parametrize("flag", [
        "--copy-all", "--copy-risks", "--copy-risk", "--copy-standards", "--copy-std",
    ])
    def test_copy_flags_fail_without_config(
        self, flag: str, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", flag]):
            with pytest.raises(ConfigError, match="Configuration not found"):
                main()


class TestScore:
    def test_score_prints_evaluation(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("sys.argv", ["sgsst-cli", "--score", "10", "4", "100"]):
            main()
        out = capsys.readouterr().out
        assert "Probability (NP): 40 (Very High)" in out
        assert "Risk (NR): 4000 (Level I)" in out
        assert "Acceptability: Not Acceptable" in out

    def test_score_zero_deficiency(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("sys.argv", ["sgsst-cli", "--score", "0", "4", "100"]):
            main()
        out = capsys.readouterr().out
        assert "Probability (NP): 0 (Low)" in out
        assert "Risk (NR): 0 (Level IV)" in out
        assert "Acceptability: Acceptable" in out

    @pytest.mark.parametrize("values, message", [
        (["5", "4", "100"], "ND must be one of 10, 6, 2, 0"),
        (["10", "5", "100"], "NE must be one of 4, 3, 2, 1"),
        (["10", "4", "50"], "NC must be one of 100, 60, 25, 10"),
    ])
    def test_score_rejects_unknown_levels(
        self, values: list, message: str, capsys: pytest.CaptureFixture[str],
    ) -> None:
        with patch("sys.argv", ["sgsst-cli", "--score", *values]):
            with pytest.raises(SystemExit) as raised:
                main()
        assert raised.value.code == 2
        assert message in capsys.readouterr().err

    def test_score_rejects_non_integer(self) -> None:
        with patch("sys.argv", ["sgsst-cli", "--score", "high", "4", "100"]):
            with pytest.raises(SystemExit) as raised:
                main()
        assert raised.value.code == 2


class TestClassify:
    def test_classify_saves_bracket(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        _write_config(tmp_path)
        client = MagicMock()
        with patch("sys.argv", ["sgsst-cli", "--classify", "25", "ii"]), \
             patch("sgsst_cli.cli.SgsstClient", return_value=client):
            main()

        client.update_company.assert_called_once_with("EMP-001", {
            "numero_trabajadores": 25,
            "nivel_riesgo": "II",
            "clasificacion_tipo": "ESTANDARES_21",
        })
        out = capsys.readouterr().out
        assert "Classification: Medium standards (21 items)" in out
        assert "Saved classification ESTANDARES_21 for company EMP-001" in out

    def test_classify_high_risk_is_maximal(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        _write_config(tmp_path)
        client = MagicMock()
        with patch("sys.argv", ["sgsst-cli", "--classify", "3", "V"]), \
             patch("sgsst_cli.cli.SgsstClient", return_value=client):
            main()
        fields = client.update_company.call_args.args[1]
        assert fields["clasificacion_tipo"] == "ESTANDARES_60"

    @pytest.mark.parametrize("values, message", [
        (["many", "I"], "WORKERS must be a whole number"),
        (["0", "I"], "WORKERS must be greater than zero"),
        (["10", "VI"], "RISK_CLASS must be one of I, II, III, IV, V"),
    ])
    def test_classify_validation(
        self, values: list, message: str, capsys: pytest.CaptureFixture[str],
    ) -> None:
        with patch("sys.argv", ["sgsst-cli", "--classify", *values]):
            with pytest.raises(SystemExit) as raised:
                main()
        assert raised.value.code == 2
        assert message in capsys.readouterr().err

    def test_classify_requires_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("sys.argv", ["sgsst-cli", "--classify", "5", "I"]):
            with pytest.raises(ConfigError):
                main()


class TestExclusiveFlags:
    def test_score_and_copy_are_exclusive(self) -> None:
        with patch("sys.argv", ["sgsst-cli", "--copy-all", "--score", "10", "4", "100"]):
            with pytest.raises(SystemExit) as raised:
                main()
        assert raised.value.code == 2


class TestInitSubprocess:
    def test_python_m_init_creates_config_and_dirs(self, tmp_path: Path) -> None:
        repo_root = Path(__file__).resolve().parents[1]
        env = os.environ.copy()
        env["PYTHONPATH"] = str(repo_root)
        completed = subprocess.run(
            [sys.executable, "-m", "sgsst_cli", "--init", _URL],
            cwd=tmp_path,
            env=env,
            input="EMP-001\n",
            text=True,
            capture_output=True,
            check=False,
        )

        assert completed.returncode == 0
        assert (tmp_path / CONFIG_FILENAME).is_file()
        for subdir in _SUBDIRS:
            assert (tmp_path / subdir).is_dir()

        cfg = read_config(tmp_path)
        assert cfg.api_url == _URL
        assert cfg.empresa_id == "EMP-001"

    def test_python_m_config_error_exits_one(self, tmp_path: Path) -> None:
        repo_root = Path(__file__).resolve().parents[1]
        env = os.environ.copy()
        env["PYTHONPATH"] = str(repo_root)
        completed = subprocess.run(
            [sys.executable, "-m", "sgsst_cli", "--copy-all"],
            cwd=tmp_path,
            env=env,
            text=True,
            capture_output=True,
            check=False,
        )

        assert completed.returncode == 1
        assert completed.stderr.startswith("Error: Configuration not found")
