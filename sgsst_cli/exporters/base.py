from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from sgsst_cli.client import SgsstClient
from sgsst_cli.formatters.json_formatter import JsonFormatter
from sgsst_cli.formatters.markdown_formatter import MarkdownFormatter
from sgsst_cli.formatters.yaml_formatter import YamlFormatter


class BaseExporter(ABC):
    def __init__(
        self,
        client: SgsstClient,
        output_dir: Path,
        empresa_id: str,
        *,
        force: bool = False,
        keep_raw_json: bool = False,
    ) -> None:
        self.client = client
        self.output_dir = output_dir
        self.empresa_id = empresa_id
        self.force = force
        self.keep_raw_json = keep_raw_json
        self._overwrite_all = False
        self._md_formatter = MarkdownFormatter()
        self._json_formatter = JsonFormatter()
        self._yaml_formatter = YamlFormatter()

    @abstractmethod
    def export(self) -> None:
        """Fetch the company's records from the backend and write to output_dir."""
        ...

    def _ensure_output_dir(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _log(self, message: str) -> None:
        print(message)

    def _should_write(self, path: Path) -> bool:
        """Check whether *path* should be written, prompting if needed."""
        if not path.exists():
            return True
        if self.force or self._overwrite_all:
            return True
        while True:
            answer = input(
                f"Overwrite existing {path.name}? [Yes/No/All] "
            ).strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            if answer in ("a", "all"):
                self._overwrite_all = True
                return True

    def _write_text(self, path: Path, content: str) -> None:
        if self._should_write(path):
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)

    def _write_raw_json(self, name: str, data: Any) -> None:
        if not self.keep_raw_json:
            return
        json_path = self.output_dir / (name + ".json")
        if self._should_write(json_path):
            self._json_formatter.write(data, json_path)

    def _write_document(self, name: str, data: Any) -> None:
        """Write data in Markdown and YAML formats, plus JSON when requested."""
        md_path = self.output_dir / (name + ".md")
        if self._should_write(md_path):
            self._md_formatter.write(data, md_path)

        self._write_raw_json(name, data)

        yaml_path = self.output_dir / (name + ".yaml")
        if self._should_write(yaml_path):
            self._yaml_formatter.write(data, yaml_path)
