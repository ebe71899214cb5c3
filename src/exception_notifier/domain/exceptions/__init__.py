# Copyright (c)
# SPDX-License-Identifier: MIT
"""Package exceptions and framework-style faults."""

from __future__ import annotations

from .base import (
    MethodNotAllowed,
    MissingTemplate,
    NotifierError,
    RecordNotFound,
    RoutingError,
    TemplateRenderError,
    UnknownAction,
    UnknownController,
)

__all__ = [
    "MethodNotAllowed",
    "MissingTemplate",
    "NotifierError",
    "RecordNotFound",
    "RoutingError",
    "TemplateRenderError",
    "UnknownAction",
    "UnknownController",
]
