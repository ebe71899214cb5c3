# src/exception_notifier/infrastructure/mail/logging_transport.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Logging mail transport.

Used when no SMTP host is configured: the notification is written to the
JSON log instead of being mailed, so development setups still see it.
"""

from __future__ import annotations

import logging

from exception_notifier.application.interfaces.mail_transport import MailMessage
from exception_notifier.infrastructure.logging.logger import get_json_logger

_logger: logging.Logger = get_json_logger(__name__)


class LoggingMailTransport:
    """Write notifications to the log at a fixed level."""

    def __init__(self, level: int = logging.ERROR) -> None:
        self._level = level

    async def deliver(self, message: MailMessage) -> None:
        _logger.log(
            self._level,
            "notification.logged",
            extra={
                "sender": message.sender,
                "recipients": list(message.recipients),
                "subject": message.subject,
                "body": message.body,
            },
        )
