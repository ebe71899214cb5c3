# src/exception_notifier/domain/services/report_builder.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Report builder.

Purpose:
    Assemble the structured payload mailed for a notified fault.

Layer:
    domain/services
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

from exception_notifier.domain.entities.blame import BlameRecord
from exception_notifier.domain.entities.fault import Fault
from exception_notifier.domain.entities.notification import NotificationPayload
from exception_notifier.domain.entities.request_context import RequestContext

PROJECT_ROOT_PLACEHOLDER: Final[str] = "[PROJECT_ROOT]"
DEFAULT_SECTIONS: Final[tuple[str, ...]] = ("request", "session", "environment", "backtrace")
REQUEST_ONLY_SECTIONS: Final[frozenset[str]] = frozenset({"request", "session", "environment"})


def sanitize_backtrace(trace: Iterable[str], project_root: str) -> list[str]:
    """Rewrite project-rooted paths to a placeholder and normalize them.

    Args:
        trace: Rendered frames.
        project_root: Root directory to hide.

    Returns:
        list[str]: Sanitized frames, same order.
    """
    root = posixpath.normpath(project_root)
    pattern = re.compile(rf"^{re.escape(root)}(?=/|:|$)")
    return [posixpath.normpath(pattern.sub(PROJECT_ROOT_PLACEHOLDER, line)) for line in trace]


class ReportBuilder:
    """Build :class:`NotificationPayload` objects for one project root."""

    def __init__(self, project_root: str, sections: Sequence[str] = DEFAULT_SECTIONS) -> None:
        self._project_root = posixpath.normpath(project_root)
        self._sections = tuple(sections)

    @property
    def project_root(self) -> str:
        return self._project_root

    def build(
        self,
        fault: Fault,
        request: RequestContext | None,
        data: Mapping[str, Any] | None = None,
        blame: BlameRecord | None = None,
    ) -> NotificationPayload:
        """Assemble the payload.

        With a request, the location is ``controller#action`` and every
        configured section is kept. Without one (background faults), the
        location is the first sanitized frame and the request, session and
        environment sections are dropped.

        Args:
            fault: The fault being reported.
            request: Request snapshot, or ``None`` outside a request.
            data: Extra key/value pairs supplied by the application.
            blame: Attribution of the failing line, if any.

        Returns:
            NotificationPayload: Immutable payload.
        """
        backtrace = tuple(sanitize_backtrace(fault.backtrace, self._project_root))
        if request is not None:
            location = request.location
            sections = self._sections
            host = request.host
        else:
            location = backtrace[0] if backtrace else ""
            sections = tuple(s for s in self._sections if s not in REQUEST_ONLY_SECTIONS)
            host = None

        return NotificationPayload(
            fault=fault,
            backtrace=backtrace,
            location=location,
            project_root=self._project_root,
            sections=sections,
            request=request,
            host=host,
            data=dict(data or {}),
            blame=blame,
        )
