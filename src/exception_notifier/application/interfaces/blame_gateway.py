# src/exception_notifier/application/interfaces/blame_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Blame Gateway Port.

Synopsis:
    Point-in-time attribution lookup for a single line of a single file.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class BlameGateway(Protocol):
    """Version-control attribution lookup."""

    def blame(self, repo_path: str, path: str, line: int) -> str | None:
        """Return raw attribution output for ``path:line``.

        Args:
            repo_path: Repository root, passed explicitly to the lookup.
            path: File path relative to the repository.
            line: 1-based line number.

        Returns:
            Raw lookup text, or ``None`` if the lookup failed. Implementations
            must not raise.
        """
