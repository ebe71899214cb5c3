# Copyright (c)
# SPDX-License-Identifier: MIT
"""Domain entities (immutable values, no I/O)."""

from __future__ import annotations

from .blame import BlameRecord
from .fault import Fault, Frame, TemplateOrigin
from .notification import FaultResolution, NotificationPayload
from .request_context import RequestContext
from .rules import LocalAddressSet, NotificationRules

__all__ = [
    "BlameRecord",
    "Fault",
    "FaultResolution",
    "Frame",
    "LocalAddressSet",
    "NotificationPayload",
    "NotificationRules",
    "RequestContext",
    "TemplateOrigin",
]
