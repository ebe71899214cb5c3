# src/exception_notifier/domain/services/status_classifier.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Status classification for captured faults.

Purpose:
    Map a fault kind to the HTTP status used both for the response and for
    notification-rule matching. Kinds missing from the table fall back to
    ``"500"``; kinds mapped to a blank status or to ``"200"`` render a
    per-exception page at ``"200"``.

Layer:
    domain/services

Notes:
    - Pure domain module:
        * No logging.
        * No HTTP or transport concerns.
    - ``classify`` is total over any input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

DEFAULT_STATUS: Final[str] = "500"
CUSTOM_TEMPLATE_STATUS: Final[str] = "200"

HTTP_ERROR_CODES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "400": "Bad Request",
        "403": "Forbidden",
        "404": "Not Found",
        "405": "Method Not Allowed",
        "410": "Gone",
        "500": "Internal Server Error",
        "501": "Not Implemented",
        "503": "Service Unavailable",
    }
)

DEFAULT_ERROR_CLASS_CODES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "NameError": "503",
        "TypeError": "503",
        "RuntimeError": "500",
        "RecordNotFound": "400",
        "UnknownController": "404",
        "MissingTemplate": "404",
        "MethodNotAllowed": "405",
        "UnknownAction": "501",
        "RoutingError": "404",
    }
)

_CAMEL_HUMP = re.compile(r"([A-Za-z])([A-Z])")


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying a fault kind.

    Attributes:
        status_code: Status string to respond with.
        custom_template: True when the page name must be derived from the
            fault's string form instead of the status code.
    """

    status_code: str
    custom_template: bool = False


class StatusClassifier:
    """Classify fault kinds against a kind → status table."""

    def __init__(self, codes: Mapping[str, str] | None = None) -> None:
        self._codes: Mapping[str, str] = MappingProxyType(
            dict(DEFAULT_ERROR_CLASS_CODES if codes is None else codes)
        )

    @property
    def codes(self) -> Mapping[str, str]:
        return self._codes

    def classify(self, kind: str | None) -> Classification:
        """Resolve the status for ``kind``.

        Args:
            kind: Fault kind discriminant; any value is accepted.

        Returns:
            Classification: ``"500"`` when unmapped, ``"200"`` with
            ``custom_template`` when mapped to a blank status or to ``"200"``,
            else the mapped status.
        """
        if kind is None or kind not in self._codes:
            return Classification(DEFAULT_STATUS)
        mapped = "" if self._codes[kind] is None else str(self._codes[kind]).strip()
        if not mapped or mapped == CUSTOM_TEMPLATE_STATUS:
            return Classification(CUSTOM_TEMPLATE_STATUS, custom_template=True)
        return Classification(mapped)


def exception_to_filename(text: str) -> str:
    """Derive a page name from a fault's string form.

    Colons are dropped, camel humps split with ``_`` and the result is
    lower-cased: ``"CustomPage:Oops"`` → ``"custom_page_oops"``.
    """
    return _CAMEL_HUMP.sub(r"\1_\2", text.replace(":", "")).lower()


def status_line(status_code: str, table: Mapping[str, str] = HTTP_ERROR_CODES) -> str:
    """Return ``"<code> <phrase>"`` when the code is known, else the bare code."""
    phrase = table.get(status_code)
    return f"{status_code} {phrase}" if phrase else status_code
