# src/exception_notifier/application/services/notification_dispatcher.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Notification dispatcher.

Purpose:
    Assemble and deliver the notification for a fault without holding up
    the response. ``dispatch`` schedules the whole pipeline (attribution,
    extra data, payload, body, delivery) on the application loop and
    returns immediately, also when called from a worker thread. ``notify``
    runs the same pipeline inline for background jobs.

    Nothing raised inside the pipeline escapes: a broken extra-data
    provider, template or transport is logged and counted, never turned
    into a second error for the user. Delivery is attempted once.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import json
import threading
from collections.abc import Mapping, Sequence
from typing import Any

from exception_notifier.application.interfaces.extra_data_provider import ExtraDataProvider
from exception_notifier.application.interfaces.mail_transport import MailMessage, MailTransport
from exception_notifier.application.services.blame_resolver import BlameResolver
from exception_notifier.domain.entities.blame import BlameRecord
from exception_notifier.domain.entities.fault import Fault
from exception_notifier.domain.entities.notification import NotificationPayload
from exception_notifier.domain.entities.request_context import RequestContext
from exception_notifier.domain.services.report_builder import ReportBuilder
from exception_notifier.infrastructure.logging.logger import get_json_logger, set_fault_context
from exception_notifier.infrastructure.mail.renderer import NotificationRenderer
from exception_notifier.infrastructure.observability.metrics import record_notification

logger = get_json_logger(__name__)

PendingNotification = asyncio.Future[bool] | concurrent.futures.Future[bool]


class NotificationDispatcher:
    """Compose and deliver exception notifications.

    Args:
        transport: Mail transport collaborator.
        report_builder: Payload assembly.
        blame_resolver: Attribution lookup; ``None`` disables attribution.
        renderer: Body renderer.
        sender: ``From`` address.
        recipients: ``To`` addresses; empty means nothing is delivered.
        email_prefix: Subject prefix.
        data_provider: Optional extra-data provider.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        report_builder: ReportBuilder,
        blame_resolver: BlameResolver | None = None,
        renderer: NotificationRenderer | None = None,
        sender: str,
        recipients: Sequence[str] = (),
        email_prefix: str = "",
        data_provider: ExtraDataProvider | None = None,
    ) -> None:
        self._transport = transport
        self._builder = report_builder
        self._blame = blame_resolver
        self._renderer = renderer or NotificationRenderer()
        self._sender = sender
        self._recipients = tuple(recipients)
        self._prefix = email_prefix
        self._data_provider = data_provider
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()
        self._pending: set[PendingNotification] = set()

    @property
    def pending(self) -> int:
        """Number of dispatches still in flight."""
        return len(self._pending)

    def subject(self, payload: NotificationPayload) -> str:
        """Return ``<prefix><location> (<kind>) "<message>"``."""
        message = json.dumps(payload.fault.message, ensure_ascii=False)
        return f"{self._prefix}{payload.location} ({payload.fault.kind}) {message}"

    def compose(self, payload: NotificationPayload) -> MailMessage:
        """Render ``payload`` into a deliverable message."""
        return MailMessage(
            sender=self._sender,
            recipients=self._recipients,
            subject=self.subject(payload),
            body=self._renderer.render(payload),
            payload=payload,
        )

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the event loop that off-loop dispatches are handed to."""
        self._loop = loop

    def dispatch(self, fault: Fault, request: RequestContext | None = None) -> PendingNotification:
        """Schedule a notification and return without waiting for it.

        On the loop thread the pipeline becomes a task on the running loop.
        From any other thread (sync exception handlers run in a threadpool)
        it is submitted to the bound loop, or to a worker thread with its own
        loop when no running loop is bound.

        Args:
            fault: Fault to report.
            request: Request snapshot, if any.

        Returns:
            The in-flight future (resolves to whether the message was
            delivered). It never raises.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self._dispatch_off_loop(fault, request)

        self._loop = loop
        task = loop.create_task(
            self.notify(fault, request), name=f"exception-notification-{fault.fault_id}"
        )
        self._track(task)
        return task

    def _dispatch_off_loop(
        self, fault: Fault, request: RequestContext | None
    ) -> concurrent.futures.Future[bool]:
        loop = self._loop
        bound = loop is not None and loop.is_running()
        if bound:
            future = asyncio.run_coroutine_threadsafe(self.notify(fault, request), loop)
        else:
            future = concurrent.futures.Future()
            threading.Thread(
                target=self._notify_in_thread,
                args=(future, fault, request),
                name=f"exception-notification-{fault.fault_id}",
                daemon=True,
            ).start()
        logger.debug("notification.dispatched_off_loop", extra={"bound_loop": bound})
        self._track(future)
        return future

    def _notify_in_thread(
        self,
        future: concurrent.futures.Future[bool],
        fault: Fault,
        request: RequestContext | None,
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(asyncio.run(self.notify(fault, request)))
        except BaseException as exc:
            future.set_exception(exc)

    def _track(self, future: PendingNotification) -> None:
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._untrack)

    def _untrack(self, future: PendingNotification) -> None:
        with self._lock:
            self._pending.discard(future)

    async def drain(self) -> None:
        """Wait for every in-flight dispatch (shutdown hooks, tests)."""
        while True:
            with self._lock:
                pending = tuple(self._pending)
            if not pending:
                return
            await asyncio.gather(
                *(
                    f if isinstance(f, asyncio.Future) else asyncio.wrap_future(f)
                    for f in pending
                ),
                return_exceptions=True,
            )

    async def notify(
        self,
        fault: Fault,
        request: RequestContext | None = None,
        *,
        extra: Mapping[str, Any] | None = None,
    ) -> bool:
        """Assemble and deliver a notification inline.

        Args:
            fault: Fault to report.
            request: Request snapshot, if any.
            extra: Data merged over the provider's output.

        Returns:
            bool: True when the transport accepted the message.
        """
        set_fault_context(fault_id=fault.fault_id)
        try:
            blame = await self._resolve_blame(fault)
            data = {**await self._collect_data(request), **(extra or {})}
            payload = self._builder.build(fault, request, data, blame)

            if not self._recipients:
                logger.warning("notification.no_recipients", extra={"kind": fault.kind})
                record_notification("skipped")
                return False

            message = self.compose(payload)
            await self._transport.deliver(message)
        except Exception:  # noqa: BLE001
            logger.exception("notification.delivery_failed", extra={"kind": fault.kind})
            record_notification("failed")
            return False

        logger.info(
            "notification.sent",
            extra={"kind": fault.kind, "location": payload.location, "subject": message.subject},
        )
        record_notification("sent")
        return True

    async def _resolve_blame(self, fault: Fault) -> BlameRecord | None:
        if self._blame is None or not self._blame.enabled:
            return None
        try:
            return await asyncio.to_thread(self._blame.resolve, fault)
        except Exception:  # noqa: BLE001
            logger.warning("blame.resolve_failed", exc_info=True)
            return None

    async def _collect_data(self, request: RequestContext | None) -> Mapping[str, Any]:
        if self._data_provider is None:
            return {}
        try:
            data = self._data_provider(request)
            if inspect.isawaitable(data):
                data = await data
        except Exception as exc:  # noqa: BLE001
            logger.exception("notification.data_provider_failed")
            return {"data_error": f"{type(exc).__name__}: {exc}"}
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            logger.warning("notification.data_provider_invalid", extra={"type": type(data).__name__})
            return {"data_error": f"provider returned {type(data).__name__}, expected a mapping"}
        return data
