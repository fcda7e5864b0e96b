"""Launcher for the scene console demo window.

Supports both `python -m scene_console` and running this file directly.
"""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Put the repository root on ``sys.path`` when run as a plain script.

    ``python scene_console/__main__.py`` does not make the package importable;
    inserting the package's parent directory lets the absolute import resolve.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # package import
    from .app import run  # type: ignore[attr-defined]
except ImportError:
    # plain script: the package is not importable yet
    _ensure_repo_root_on_path()
    from scene_console.app import run  # type: ignore[attr-defined]


def main() -> int:
    """Open the console demo window; returns the process exit code."""
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
