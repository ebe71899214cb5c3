# src/exception_notifier/infrastructure/middleware/exception_notifier.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Exception Notifier Middleware.

Summary:
    Fault boundary for the request pipeline. Any exception escaping the
    downstream handler is handed to :class:`FaultHandler`, which decides the
    status, the page and whether to notify; the middleware then renders that
    page in place of the failed response.

Contract:
    • Reads:  request.client, scope["endpoint"], scope["session"] (optional)
    • Writes: the resolved error page (HTML clients) or an empty body
    • Stores: request.state.fault_id (str) on faults
    • Never raises for a fault the handler resolved

Usage:
    app.add_middleware(ExceptionNotifierMiddleware, handler=fault_handler)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import FileResponse, Response
from starlette.types import ASGIApp

from exception_notifier.application.use_cases.handle_fault import FaultHandler
from exception_notifier.domain.entities.request_context import RequestContext
from exception_notifier.infrastructure.logging.logger import get_json_logger

_logger: logging.Logger = get_json_logger(__name__)

_HTML_TYPES = ("text/html", "application/xhtml+xml", "*/*")


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept")
    if not accept:
        return True
    return any(kind in accept for kind in _HTML_TYPES)


def _endpoint_names(scope: Mapping[str, Any]) -> tuple[str, str]:
    endpoint = scope.get("endpoint")
    if endpoint is None:
        return "", ""
    controller = getattr(endpoint, "__module__", None) or ""
    qualname = getattr(endpoint, "__qualname__", "") or ""
    owner, _, _ = qualname.rpartition(".")
    if owner and "<locals>" not in owner:
        controller = f"{controller}.{owner}" if controller else owner
    action = getattr(endpoint, "__name__", None) or type(endpoint).__name__
    return controller, action


def _cgi_environment(request: Request) -> dict[str, Any]:
    """Return a CGI-style view of the ASGI scope for the report."""
    scope = request.scope
    server = scope.get("server") or (None, None)
    env: dict[str, Any] = {
        "REQUEST_METHOD": request.method,
        "SCRIPT_NAME": scope.get("root_path", ""),
        "PATH_INFO": request.url.path,
        "QUERY_STRING": request.url.query,
        "SERVER_NAME": server[0],
        "SERVER_PORT": server[1],
        "SERVER_PROTOCOL": f"HTTP/{scope.get('http_version', '1.1')}",
        "REMOTE_ADDR": request.client.host if request.client else None,
        "url_scheme": request.url.scheme,
    }
    for name, value in request.headers.items():
        key = name.upper().replace("-", "_")
        if key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            env[key] = value
        else:
            env[f"HTTP_{key}"] = value
    return env


def build_request_context(request: Request) -> RequestContext:
    """Snapshot ``request`` into a framework-neutral :class:`RequestContext`.

    Args:
        request: Incoming HTTP request (after routing, when it got that far).

    Returns:
        RequestContext: Snapshot for locality checks and the report.
    """
    scope = request.scope
    controller, action = _endpoint_names(scope)
    params: dict[str, Any] = dict(request.query_params)
    params.update(scope.get("path_params") or {})
    session = scope.get("session")
    return RequestContext(
        remote_addr=request.client.host if request.client else None,
        controller_name=controller,
        action_name=action,
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers),
        params=params,
        session=dict(session) if isinstance(session, Mapping) else {},
        environment=_cgi_environment(request),
        request=request,
    )


class ExceptionNotifierMiddleware(BaseHTTPMiddleware):
    """Render error pages and notify for unhandled exceptions.

    Args:
        app: Downstream ASGI application.
        handler: Fault decision and notification entry point.
    """

    def __init__(self, app: ASGIApp, handler: FaultHandler) -> None:
        super().__init__(app)
        self.handler = handler

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Pass the request through; turn an escaping exception into a page.

        Args:
            request: Incoming HTTP request.
            call_next: Next handler in the ASGI chain.

        Returns:
            The downstream response, or the resolved error page.
        """
        self.handler.dispatcher.bind_loop(asyncio.get_running_loop())
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            context = build_request_context(request)
            resolution = self.handler.handle(exc, context)
            request.state.fault_id = resolution.fault.fault_id
            return self._render(request, resolution.view_path, resolution.http_status)

    def _render(self, request: Request, view_path: str, status: int) -> Response:
        if not _wants_html(request):
            return Response(status_code=status)
        _logger.debug("fault.render", extra={"view": view_path, "status": status})
        return FileResponse(view_path, status_code=status, media_type="text/html")
