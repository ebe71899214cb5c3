# src/exception_notifier/application/services/blame_resolver.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Blame resolver.

Purpose:
    Attribute a fault to the author of the line it is blamed on.

    * Template faults carry their own file and line; the template file
      (under the configured template directory) is looked up directly.
    * Other faults are blamed on the innermost frame that lives inside the
      project tree, in a directory that exists, and outside any vendored
      path. Vendored frames never qualify wherever they sit in the trace.

    Every failure degrades to ``None``; the notification goes out without
    attribution.

Layer:
    application/services
"""

from __future__ import annotations

import os
import posixpath
import re
from collections.abc import Sequence
from typing import Final

from exception_notifier.application.interfaces.blame_gateway import BlameGateway
from exception_notifier.domain.entities.blame import BlameRecord
from exception_notifier.domain.entities.fault import Fault, Frame
from exception_notifier.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

DEFAULT_VENDORED_MARKERS: Final[tuple[str, ...]] = (
    "vendor/plugins",
    "site-packages",
    "dist-packages",
    ".venv",
)

_AUTHOR_RE: Final[re.Pattern[str]] = re.compile(r"^author (.+)$", re.MULTILINE)


def parse_author(output: str | None) -> str | None:
    """Extract the ``author`` field from porcelain blame output."""
    if not output:
        return None
    match = _AUTHOR_RE.search(output)
    return match.group(1).strip() if match else None


class BlameResolver:
    """Resolve :class:`BlameRecord` values for faults.

    Args:
        gateway: Attribution lookup.
        repo_path: Repository root; ``None`` disables attribution.
        project_root: Root of the project tree frames must fall under.
        template_dir: Project-relative directory holding templates.
        vendored_markers: Path fragments that mark third-party code.
    """

    def __init__(
        self,
        gateway: BlameGateway,
        *,
        repo_path: str | None,
        project_root: str,
        template_dir: str = "templates",
        vendored_markers: Sequence[str] = DEFAULT_VENDORED_MARKERS,
    ) -> None:
        self._gateway = gateway
        self._repo_path = repo_path or None
        self._project_root = posixpath.normpath(project_root)
        self._template_dir = template_dir.strip("/")
        self._vendored_markers = tuple(vendored_markers)

    @property
    def enabled(self) -> bool:
        return self._repo_path is not None

    def resolve(self, fault: Fault) -> BlameRecord | None:
        """Return the attribution for ``fault``, or ``None``."""
        repo_path = self._repo_path
        if repo_path is None:
            return None

        if fault.template_origin is not None:
            origin = fault.template_origin
            path = posixpath.join(self._template_dir, origin.file_name.lstrip("/"))
            author = self._lookup_author(repo_path, path, origin.line_number)
            if author is None:
                return None
            return BlameRecord(author=author, file=origin.file_name, line=origin.line_number)

        frame = self.first_project_frame(fault.origin)
        if frame is None:
            logger.debug("blame.no_project_frame", extra={"frames": len(fault.origin)})
            return None
        relative = posixpath.relpath(posixpath.normpath(frame.file), self._project_root)
        author = self._lookup_author(repo_path, relative, frame.line)
        if author is None:
            return None
        return BlameRecord(author=author, file=relative, line=frame.line)

    def _lookup_author(self, repo_path: str, path: str, line: int) -> str | None:
        try:
            output = self._gateway.blame(repo_path, path, line)
        except Exception:  # noqa: BLE001
            logger.warning("blame.lookup_raised", extra={"path": path, "line": line}, exc_info=True)
            return None
        return parse_author(output)

    def first_project_frame(self, frames: Sequence[Frame]) -> Frame | None:
        """Return the first frame (innermost-first order) owned by the project."""
        for frame in frames:
            if self.in_project(frame.file):
                return frame
        return None

    def in_project(self, path: str) -> bool:
        """Return True for paths inside the project, in a real directory, not vendored."""
        normalized = posixpath.normpath(path)
        if not (
            normalized == self._project_root
            or normalized.startswith(self._project_root.rstrip("/") + "/")
        ):
            return False
        if not os.path.isdir(posixpath.dirname(normalized)):
            return False
        relative = posixpath.relpath(normalized, self._project_root)
        return not any(marker in relative for marker in self._vendored_markers)
