# src/exception_notifier/domain/entities/blame.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Blame Record Entity.

Purpose:
    Source-control attribution of the line a fault is blamed on.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BlameRecord:
    """Author of the last change to a single line.

    Attributes:
        author: Author name as reported by the history lookup.
        file: Project-relative path of the blamed file.
        line: 1-based line number.
    """

    author: str
    file: str
    line: int
