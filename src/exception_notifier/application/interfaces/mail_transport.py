# src/exception_notifier/application/interfaces/mail_transport.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Mail Transport Port.

Synopsis:
    Delivery of a composed exception notification. Enables swapping SMTP,
    a job queue, or an in-memory sink without touching the dispatcher.

Layer:
    application/interfaces
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from exception_notifier.domain.entities.notification import NotificationPayload


@dataclass(frozen=True, slots=True)
class MailMessage:
    """A composed notification ready for delivery.

    Attributes:
        sender: ``From`` address.
        recipients: ``To`` addresses.
        subject: Subject line.
        body: Rendered plain-text body.
        payload: Structured payload the body was rendered from.
    """

    sender: str
    recipients: tuple[str, ...]
    subject: str
    body: str
    payload: NotificationPayload


class MailTransport(Protocol):
    """Deliver composed messages.

    Implementations may raise on failure; the dispatcher isolates and logs
    every exception, and never retries.
    """

    async def deliver(self, message: MailMessage) -> None:
        """Deliver ``message``.

        Args:
            message: Composed notification.
        """
