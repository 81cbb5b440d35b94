from __future__ import annotations

import sys

from sgsst_cli.cli import main as cli_main
from sgsst_cli.exceptions import SgsstError


def main() -> None:
    try:
        cli_main()
    except SgsstError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
