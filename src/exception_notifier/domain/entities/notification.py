# src/exception_notifier/domain/entities/notification.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Notification Entities.

Purpose:
    The diagnostic payload mailed for a notified fault, and the resolution
    handed back to the framework for rendering.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from exception_notifier.domain.entities.blame import BlameRecord
from exception_notifier.domain.entities.fault import Fault
from exception_notifier.domain.entities.request_context import RequestContext


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    """Structured body of an exception notification.

    Attributes:
        fault: The captured fault.
        backtrace: Sanitized frames, innermost-first.
        location: ``controller#action`` or the first sanitized frame.
        project_root: Normalized project root the backtrace was made relative to.
        sections: Body sections to render, in order.
        request: Request snapshot; ``None`` for background faults.
        host: Origin host for request faults.
        data: Extra key/value pairs from the extra-data provider.
        blame: Attribution of the failing line, if resolved.
    """

    fault: Fault
    backtrace: tuple[str, ...]
    location: str
    project_root: str
    sections: tuple[str, ...]
    request: RequestContext | None = None
    host: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    blame: BlameRecord | None = None

    def as_context(self) -> dict[str, Any]:
        """Return a flat mapping suitable for template rendering."""
        return {
            "fault": self.fault,
            "exception": self.fault.exception,
            "backtrace": list(self.backtrace),
            "location": self.location,
            "project_root": self.project_root,
            "sections": list(self.sections),
            "request": self.request,
            "host": self.host,
            "data": {str(key): value for key, value in self.data.items()},
            "the_blamed": self.blame,
        }


@dataclass(frozen=True, slots=True)
class FaultResolution:
    """What the framework should render for a fault.

    Attributes:
        status_code: Status string, e.g. ``"404"``.
        status_line: Human-readable status, e.g. ``"404 Not Found"``.
        view_path: Filesystem path of the page to render.
        notify: Whether a notification was scheduled.
        fault: The captured fault.
    """

    status_code: str
    status_line: str
    view_path: str
    notify: bool
    fault: Fault

    @property
    def http_status(self) -> int:
        """Integer status for the response; non-numeric codes render as 500."""
        try:
            return int(self.status_code)
        except ValueError:
            return 500
