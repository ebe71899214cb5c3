# src/exception_notifier/dependencies/core/bootstrap.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Core wiring for the exception notifier.

This module turns :class:`NotifierSettings` into a ready :class:`FaultHandler`
and installs it on a FastAPI application. Configuration is read from
settings; all behaviour lives in the application and infrastructure layers.

Public surface:
    * :func:`build_fault_handler` builds the handler graph.
    * :func:`attach_exception_notifier` installs the middleware (call before
      the app starts).
    * :func:`bootstrap` is an async context manager for the app lifespan that
      drains pending notifications on shutdown.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from exception_notifier.application.interfaces.blame_gateway import BlameGateway
from exception_notifier.application.interfaces.extra_data_provider import ExtraDataProvider
from exception_notifier.application.interfaces.mail_transport import MailTransport
from exception_notifier.application.services.blame_resolver import BlameResolver
from exception_notifier.application.services.notification_dispatcher import (
    NotificationDispatcher,
)
from exception_notifier.application.use_cases.handle_fault import FaultHandler
from exception_notifier.config.settings import NotifierSettings, get_settings
from exception_notifier.domain.entities.rules import LocalAddressSet, NotificationRules
from exception_notifier.domain.services.report_builder import ReportBuilder
from exception_notifier.domain.services.status_classifier import (
    DEFAULT_ERROR_CLASS_CODES,
    StatusClassifier,
)
from exception_notifier.infrastructure.logging.logger import get_json_logger
from exception_notifier.infrastructure.mail.logging_transport import LoggingMailTransport
from exception_notifier.infrastructure.mail.renderer import NotificationRenderer
from exception_notifier.infrastructure.mail.smtp_transport import SmtpMailTransport
from exception_notifier.infrastructure.middleware.exception_notifier import (
    ExceptionNotifierMiddleware,
)
from exception_notifier.infrastructure.vcs.git_blame import GitBlameGateway
from exception_notifier.infrastructure.views.view_resolver import ViewResolver

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: NotifierSettings
    handler: FaultHandler


def build_transport(settings: NotifierSettings) -> MailTransport:
    """Return the SMTP transport when a host is configured, else the log transport."""
    if not settings.smtp_host:
        return LoggingMailTransport()
    password = settings.smtp_password.get_secret_value() if settings.smtp_password else None
    return SmtpMailTransport(
        settings.smtp_host,
        settings.smtp_port,
        username=settings.smtp_username,
        password=password,
        start_tls=settings.smtp_use_tls,
        timeout_s=settings.smtp_timeout_s,
    )


def build_fault_handler(
    settings: NotifierSettings,
    *,
    transport: MailTransport | None = None,
    data_provider: ExtraDataProvider | None = None,
    blame_gateway: BlameGateway | None = None,
) -> FaultHandler:
    """Build the fault handler graph from ``settings``.

    Args:
        settings: Validated settings.
        transport: Mail transport; derived from the SMTP settings when omitted.
        data_provider: Optional extra-data provider for notification bodies.
        blame_gateway: Attribution lookup; ``git`` when omitted.

    Returns:
        FaultHandler: Ready to be passed to the middleware.

    Raises:
        ValueError: If a local address entry is invalid.
    """
    rules = NotificationRules(
        silent_kinds=frozenset(settings.silent_kinds),
        always_notify_kinds=frozenset(settings.notify_kinds),
        notify_status_codes=frozenset(settings.notify_status_codes),
        notify_on_others=settings.notify_other_errors,
        render_only=settings.render_only,
        skip_local=settings.skip_local_notification,
    )
    blame = BlameResolver(
        blame_gateway or GitBlameGateway(timeout_s=settings.git_blame_timeout_s),
        repo_path=settings.git_repo_path,
        project_root=settings.project_root,
        template_dir=settings.template_dir,
    )
    transport = transport or build_transport(settings)
    dispatcher = NotificationDispatcher(
        transport,
        report_builder=ReportBuilder(settings.project_root, settings.sections),
        blame_resolver=blame,
        renderer=NotificationRenderer(),
        sender=settings.sender_address,
        recipients=settings.exception_recipients,
        email_prefix=settings.email_prefix,
        data_provider=data_provider,
    )
    handler = FaultHandler(
        classifier=StatusClassifier({**DEFAULT_ERROR_CLASS_CODES, **settings.error_class_codes}),
        rules=rules,
        local_addresses=LocalAddressSet(settings.local_addresses),
        view_resolver=ViewResolver(
            settings.project_root,
            public_dir=settings.public_dir,
            view_path=settings.view_path,
        ),
        dispatcher=dispatcher,
        consider_all_local=settings.consider_all_requests_local,
        verbose=settings.verbose,
    )
    logger.info(
        "notifier.configured",
        extra={
            "environment": settings.environment.value,
            "recipients": len(settings.exception_recipients),
            "transport": type(transport).__name__,
            "blame_enabled": blame.enabled,
        },
    )
    return handler


def attach_exception_notifier(
    app: FastAPI,
    settings: NotifierSettings | None = None,
    *,
    transport: MailTransport | None = None,
    data_provider: ExtraDataProvider | None = None,
    blame_gateway: BlameGateway | None = None,
) -> FaultHandler:
    """Install the fault boundary on ``app``.

    The handler is stored on ``app.state.fault_handler`` so application
    exception handlers can call :meth:`FaultHandler.report_handled`.

    Returns:
        FaultHandler: The installed handler.
    """
    settings = settings or get_settings()
    handler = build_fault_handler(
        settings,
        transport=transport,
        data_provider=data_provider,
        blame_gateway=blame_gateway,
    )
    app.add_middleware(ExceptionNotifierMiddleware, handler=handler)
    app.state.fault_handler = handler
    app.state.notifier_settings = settings
    return handler


@asynccontextmanager
async def bootstrap(app: FastAPI) -> AsyncGenerator[BootstrapState, None]:
    """Expose the installed handler for the app lifespan; drain on exit.

    Args:
        app: FastAPI application already passed to
            :func:`attach_exception_notifier`.

    Yields:
        BootstrapState: Resolved settings and the fault handler.

    Raises:
        RuntimeError: If the notifier was never attached to ``app``.
    """
    handler: FaultHandler | None = getattr(app.state, "fault_handler", None)
    if handler is None:
        raise RuntimeError("attach_exception_notifier(app) must run before the app starts")
    logger.info("bootstrap.start")
    try:
        handler.dispatcher.bind_loop(asyncio.get_running_loop())
        yield BootstrapState(settings=app.state.notifier_settings, handler=handler)
    finally:
        try:
            await handler.dispatcher.drain()
        except Exception:
            logger.exception("bootstrap.drain_failed")
        logger.info("bootstrap.stop")
