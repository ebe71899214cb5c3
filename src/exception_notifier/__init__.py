# src/exception_notifier/__init__.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Exception notifier for FastAPI/Starlette applications."""

from exception_notifier.application.use_cases.handle_fault import FaultHandler
from exception_notifier.config.settings import NotifierSettings, get_settings
from exception_notifier.dependencies.core.bootstrap import (
    attach_exception_notifier,
    bootstrap,
    build_fault_handler,
)
from exception_notifier.infrastructure.middleware.exception_notifier import (
    ExceptionNotifierMiddleware,
)

__all__ = [
    "ExceptionNotifierMiddleware",
    "FaultHandler",
    "NotifierSettings",
    "attach_exception_notifier",
    "bootstrap",
    "build_fault_handler",
    "get_settings",
]
