from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from sgsst_cli.formatters.base import BaseFormatter, to_plain


class YamlFormatter(BaseFormatter):
    def write(self, data: Any, output_path: Path) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                to_plain(data),
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )

    def file_extension(self) -> str:
        return ".yaml"
