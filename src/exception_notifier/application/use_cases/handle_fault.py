# src/exception_notifier/application/use_cases/handle_fault.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use Case: Handle Fault.

Synopsis:
    Top-level entry point invoked by the request pipeline when an exception
    escapes a handler. Classifies the fault, decides once whether to notify,
    resolves the page to render and, when notifying, schedules delivery
    without waiting for it.

Layer:
    application/use_cases

Contract:
    ``handle`` always returns a :class:`FaultResolution`; nothing about
    notification (scheduling, attribution, transport) can make it fail.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from exception_notifier.application.services.notification_dispatcher import (
    NotificationDispatcher,
)
from exception_notifier.domain.entities.fault import Fault
from exception_notifier.domain.entities.notification import FaultResolution
from exception_notifier.domain.entities.request_context import RequestContext
from exception_notifier.domain.entities.rules import LocalAddressSet, NotificationRules
from exception_notifier.domain.services.notification_policy import is_local, should_notify
from exception_notifier.domain.services.status_classifier import (
    HTTP_ERROR_CODES,
    StatusClassifier,
    exception_to_filename,
    status_line,
)
from exception_notifier.infrastructure.logging.logger import get_json_logger, set_fault_context
from exception_notifier.infrastructure.observability.metrics import record_fault
from exception_notifier.infrastructure.views.view_resolver import ViewResolver

logger = get_json_logger(__name__)


class FaultHandler:
    """Decide, render and notify for faults at the request boundary.

    Args:
        classifier: Kind → status classification.
        rules: Notification rules.
        local_addresses: Address ranges treated as local.
        view_resolver: Error page lookup.
        dispatcher: Notification delivery.
        consider_all_local: Treat every request as local.
        status_table: Status code → phrase table for status lines.
        verbose: Log the full decision record for every fault.
    """

    def __init__(
        self,
        *,
        classifier: StatusClassifier,
        rules: NotificationRules,
        local_addresses: LocalAddressSet,
        view_resolver: ViewResolver,
        dispatcher: NotificationDispatcher,
        consider_all_local: bool = False,
        status_table: Mapping[str, str] = HTTP_ERROR_CODES,
        verbose: bool = False,
    ) -> None:
        self.classifier = classifier
        self.rules = rules
        self.local_addresses = local_addresses
        self.view_resolver = view_resolver
        self.dispatcher = dispatcher
        self.consider_all_local = consider_all_local
        self.status_table = status_table
        self.verbose = verbose

    def is_local(self, request: RequestContext | None) -> bool:
        """Return True when ``request`` originates from a local address."""
        remote = request.remote_addr if request is not None else None
        return is_local(remote, self.local_addresses, consider_all_local=self.consider_all_local)

    def resolve(self, exc: BaseException, request: RequestContext | None) -> FaultResolution:
        """Classify ``exc`` and decide; no side effects beyond logging.

        Args:
            exc: Exception caught at the boundary.
            request: Request snapshot.

        Returns:
            FaultResolution: Status, page and notification decision.
        """
        fault = Fault.from_exception(exc)
        set_fault_context(fault_id=fault.fault_id)

        classification = self.classifier.classify(fault.kind)
        status_code = classification.status_code
        page = exception_to_filename(fault.message) if classification.custom_template else status_code
        view_path = self.view_resolver.resolve(page)
        local = self.is_local(request)
        notify = should_notify(fault, status_code, local, self.rules)

        resolution = FaultResolution(
            status_code=status_code,
            status_line=status_line(status_code, self.status_table),
            view_path=view_path,
            notify=notify,
            fault=fault,
        )
        self._log_decision(resolution, request, local)
        return resolution

    def handle(self, exc: BaseException, request: RequestContext | None) -> FaultResolution:
        """Resolve ``exc`` and schedule its notification when warranted.

        The notification is scheduled before this returns, so a failure
        while rendering the page cannot suppress it.
        """
        resolution = self.resolve(exc, request)
        record_fault(resolution.status_code, notify=resolution.notify)
        if resolution.notify:
            self._schedule(resolution.fault, request)
        return resolution

    def report_handled(self, exc: BaseException, request: RequestContext | None) -> bool:
        """Notify for a fault the application already handled itself.

        No status is resolved for such faults, so the status-code rule does
        not apply.

        Returns:
            bool: Whether a notification was scheduled.
        """
        fault = Fault.from_exception(exc)
        set_fault_context(fault_id=fault.fault_id)
        notify = should_notify(fault, None, self.is_local(request), self.rules)
        if self.verbose:
            logger.info(
                "fault.handled_decision",
                extra={"kind": fault.kind, "fault_message": fault.message, "notify": notify},
            )
        if notify:
            self._schedule(fault, request)
        return notify

    async def notify_background(
        self, exc: BaseException, data: Mapping[str, Any] | None = None
    ) -> bool:
        """Notify for a fault raised outside any request (jobs, workers).

        Only render-only mode suppresses these; locality and kind rules are
        request concepts. Delivery is awaited.

        Returns:
            bool: True when the transport accepted the message.
        """
        if self.rules.render_only:
            return False
        fault = Fault.from_exception(exc)
        return await self.dispatcher.notify(fault, None, extra=data)

    def _schedule(self, fault: Fault, request: RequestContext | None) -> None:
        try:
            self.dispatcher.dispatch(fault, request)
        except Exception:  # noqa: BLE001
            logger.exception("notification.schedule_failed", extra={"kind": fault.kind})

    def _log_decision(
        self, resolution: FaultResolution, request: RequestContext | None, local: bool
    ) -> None:
        fault = resolution.fault
        level = logging.ERROR if resolution.http_status >= 500 else logging.WARNING
        logger.log(
            level,
            "fault.intercepted",
            extra={
                "kind": fault.kind,
                "status": resolution.status_code,
                "notify": resolution.notify,
            },
            exc_info=fault.exception if level == logging.ERROR else None,
        )
        if not self.verbose:
            return
        logger.info(
            "fault.decision",
            extra={
                "kind": fault.kind,
                "fault_message": fault.message,
                "status_code": resolution.status_code,
                "status_line": resolution.status_line,
                "view": resolution.view_path,
                "view_dirs": [str(d) for d in self.view_resolver.search_dirs],
                "local": local,
                "notify": resolution.notify,
                "request_url": request.url if request is not None else None,
                "request_env": dict(request.environment) if request is not None else None,
            },
        )
