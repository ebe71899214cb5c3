# src/exception_notifier/application/interfaces/extra_data_provider.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Extra Data Provider.

Synopsis:
    Application hook contributing extra key/value pairs to a notification.
    Called once per notified fault with the request snapshot, or ``None``
    for background faults. May return a mapping or an awaitable of one.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, Protocol

from exception_notifier.domain.entities.request_context import RequestContext


class ExtraDataProvider(Protocol):
    """Produce extra diagnostic data for a notification."""

    def __call__(
        self, context: RequestContext | None
    ) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]:
        """Return extra data for the fault being reported."""
