# src/exception_notifier/infrastructure/vcs/git_blame.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Git blame gateway.

Summary:
    Runs ``git blame --porcelain`` for a single line of a single file. The
    repository is passed with ``git -C`` so the process-wide working
    directory is never changed, which keeps concurrent lookups safe.

Contract:
    • Never raises: a missing ``git`` binary, a non-zero exit (file not in
      history, not a repository) or a timeout all yield ``None``.
    • Blocking: callers on an event loop should run it in a worker thread.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Final

from exception_notifier.infrastructure.logging.logger import get_json_logger

_logger: logging.Logger = get_json_logger(__name__)

DEFAULT_TIMEOUT_S: Final[float] = 5.0


class GitBlameGateway:
    """Attribution lookups through the ``git`` command line.

    Args:
        timeout_s: Upper bound for a single lookup, in seconds.
        git_binary: Executable to invoke.
    """

    def __init__(self, *, timeout_s: float = DEFAULT_TIMEOUT_S, git_binary: str = "git") -> None:
        self._timeout_s = float(timeout_s)
        self._git = git_binary

    def command(self, repo_path: str, path: str, line: int) -> list[str]:
        """Return the argv used for a lookup."""
        return [
            self._git,
            "-C",
            repo_path,
            "blame",
            "-p",
            "-L",
            f"{line},{line}",
            "--",
            path,
        ]

    def blame(self, repo_path: str, path: str, line: int) -> str | None:
        """Return porcelain blame output for ``path:line``, or ``None`` on failure."""
        argv = self.command(repo_path, path, line)
        try:
            result = subprocess.run(  # noqa: S603
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired:
            _logger.warning(
                "blame.timeout",
                extra={"repo": repo_path, "path": path, "line": line, "timeout_s": self._timeout_s},
            )
            return None
        except OSError as exc:
            _logger.warning(
                "blame.unavailable",
                extra={"repo": repo_path, "path": path, "error": str(exc)},
            )
            return None

        if result.returncode != 0:
            _logger.warning(
                "blame.failed",
                extra={
                    "repo": repo_path,
                    "path": path,
                    "line": line,
                    "returncode": result.returncode,
                    "stderr": (result.stderr or "").strip()[:500],
                },
            )
            return None
        return result.stdout
