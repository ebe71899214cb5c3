# src/exception_notifier/infrastructure/mail/smtp_transport.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""SMTP mail transport (aiosmtplib).

Summary:
    Delivers composed notifications over SMTP with optional STARTTLS and
    authentication. One connection per message; no pooling and no retry.
    Failures propagate to the dispatcher, which logs and isolates them.
"""

from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

import aiosmtplib

from exception_notifier.application.interfaces.mail_transport import MailMessage
from exception_notifier.infrastructure.logging.logger import get_json_logger

_logger: logging.Logger = get_json_logger(__name__)


def build_email(message: MailMessage) -> EmailMessage:
    """Convert a :class:`MailMessage` into a MIME message."""
    email = EmailMessage()
    email["From"] = message.sender
    email["To"] = ", ".join(message.recipients)
    email["Subject"] = message.subject
    email["Date"] = formatdate(localtime=True)
    email["Message-ID"] = make_msgid(domain="exception-notifier")
    email["X-Fault-Id"] = message.payload.fault.fault_id
    email.set_content(message.body)
    return email


class SmtpMailTransport:
    """Async SMTP transport.

    Args:
        host: SMTP server host.
        port: SMTP server port.
        username: Optional login.
        password: Optional password.
        start_tls: Upgrade the connection with STARTTLS.
        timeout_s: Connect/command timeout in seconds.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = True,
        timeout_s: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self._username = username
        self._password = password
        self._start_tls = start_tls
        self._timeout_s = timeout_s

    async def deliver(self, message: MailMessage) -> None:
        """Send ``message`` through the configured server."""
        await aiosmtplib.send(
            build_email(message),
            hostname=self.host,
            port=self.port,
            username=self._username,
            password=self._password,
            start_tls=self._start_tls,
            timeout=self._timeout_s,
        )
        _logger.info(
            "smtp.delivered",
            extra={"host": self.host, "port": self.port, "recipients": len(message.recipients)},
        )
