# src/exception_notifier/domain/entities/request_context.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Request Context Entity.

Purpose:
    Framework-neutral snapshot of the request that was being served when a
    fault occurred. Adapters build it from their native request object; the
    core never touches the framework directly.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Request snapshot used for locality checks and report sections.

    Attributes:
        remote_addr:
            Client address as seen by the server (may be a non-IP label).
        controller_name:
            Module (or class) that owns the endpoint.
        action_name:
            Endpoint function name.
        method:
            HTTP method.
        url:
            Full request URL.
        headers:
            Request headers (lower-cased names).
        params:
            Query and path parameters.
        session:
            Session contents, empty when no session is installed.
        environment:
            CGI-style environment built from the server scope.
        request:
            Native request object, available to extra-data providers.
    """

    remote_addr: str | None = None
    controller_name: str = ""
    action_name: str = ""
    method: str = ""
    url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    session: Mapping[str, Any] = field(default_factory=dict)
    environment: Mapping[str, Any] = field(default_factory=dict)
    request: Any = field(default=None, compare=False, repr=False)

    @property
    def location(self) -> str:
        """Return ``controller#action``."""
        return f"{self.controller_name}#{self.action_name}"

    @property
    def host(self) -> str | None:
        """Best-effort origin host: X-Real-IP, then X-Forwarded-Host, then Host."""
        for name in ("x-real-ip", "x-forwarded-host", "host"):
            value = self.headers.get(name)
            if value:
                return value
        return None
