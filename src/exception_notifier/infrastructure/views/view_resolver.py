# src/exception_notifier/infrastructure/views/view_resolver.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Static error page resolution.

Summary:
    Locate the HTML page to render for a status code (``"404"``) or a
    custom page name derived from a fault (``"payment_declined"``).

Search order (first existing file wins):
    1. ``<project_root>/<public_dir>/<name>.html``  (application override)
    2. ``<project_root>/<view_path>/<name>.html``   (configured custom views)
    3. ``<bundled_dir>/<name>.html``                (shipped defaults)
    4. ``<bundled_dir>/500.html``                   (last resort)

Notes:
    ``resolve`` never raises. Missing names, names that would escape the
    search directories, and filesystem errors all count as misses.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

BUNDLED_VIEWS_DIR: Final[Path] = Path(__file__).resolve().parents[2] / "views"
FALLBACK_PAGE: Final[str] = "500"


class ViewResolver:
    """Resolve error page paths.

    Args:
        project_root: Application root directory.
        public_dir: Project-relative directory holding application pages.
        view_path: Optional project-relative directory with custom pages.
        bundled_dir: Directory holding the shipped pages.
    """

    def __init__(
        self,
        project_root: str | Path,
        *,
        public_dir: str = "public",
        view_path: str | None = None,
        bundled_dir: Path = BUNDLED_VIEWS_DIR,
    ) -> None:
        root = Path(project_root)
        dirs = [root / public_dir]
        if view_path:
            dirs.append(root / view_path)
        dirs.append(bundled_dir)
        self._search_dirs: tuple[Path, ...] = tuple(dirs)
        self._fallback = bundled_dir / f"{FALLBACK_PAGE}.html"

    @property
    def search_dirs(self) -> tuple[Path, ...]:
        return self._search_dirs

    def resolve(self, name: str | None) -> str:
        """Return the page path for ``name``; always a non-empty string."""
        if _is_safe_name(name):
            for directory in self._search_dirs:
                candidate = directory / f"{name}.html"
                try:
                    if candidate.is_file():
                        return str(candidate)
                except OSError:
                    continue
        return str(self._fallback)


def _is_safe_name(name: str | None) -> bool:
    if not name:
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return not name.startswith(".")
