"""Arranque de holidays-explorer desde el checkout.

`python -m main holidays CA` equivale al script `holidays-explorer` instalado:
añade `src/` al path (los paquetes `core`, `adapters` y `cli` viven ahí) y
delega en `cli.main.run`.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Workaround for UnicodeEncodeError on Windows terminals (cp1252 vs utf-8).
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
