# src/exception_notifier/domain/exceptions/base.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Base Notifier Exceptions.

Summary:
    Canonical base class for package exceptions plus a small set of
    framework-style faults that the default classification table maps to
    HTTP statuses. Applications may raise these directly or subclass them.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class NotifierError(Exception):
    """Base class for all exception-notifier errors.

    Attributes:
        code:
            Stable error code suitable for logs and metrics.
        details:
            Optional machine-readable diagnostic payload.
    """

    code: str = "NOTIFIER_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize a NotifierError instance.

        Args:
            message:
                Human-readable error message.
            details:
                Optional structured diagnostic payload for logs.
        """
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class RecordNotFound(NotifierError, LookupError):
    """A requested record does not exist (400, silent by default)."""

    code = "RECORD_NOT_FOUND"


class RoutingError(NotifierError):
    """No route matched the request (404, silent by default)."""

    code = "ROUTING_ERROR"


class UnknownController(NotifierError):
    """The routed controller does not exist (404, silent by default)."""

    code = "UNKNOWN_CONTROLLER"


class UnknownAction(NotifierError):
    """The routed action does not exist on its controller (501, silent by default)."""

    code = "UNKNOWN_ACTION"


class MethodNotAllowed(NotifierError):
    """The route exists but not for this HTTP method (405, silent by default)."""

    code = "METHOD_NOT_ALLOWED"


class MissingTemplate(NotifierError):
    """A view template could not be located (404)."""

    code = "MISSING_TEMPLATE"


class TemplateRenderError(NotifierError):
    """Rendering a template failed at a known file and line.

    Faults of this type are attributed directly to the template line rather
    than by scanning the Python backtrace.
    """

    code = "TEMPLATE_RENDER_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        file_name: str,
        line_number: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.file_name = file_name
        self.line_number = line_number
