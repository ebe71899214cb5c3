# src/exception_notifier/infrastructure/mail/renderer.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Plain-text rendering of exception notifications (Jinja2)."""

from __future__ import annotations

from typing import Final

from jinja2 import Environment, PackageLoader, StrictUndefined

from exception_notifier.domain.entities.notification import NotificationPayload

DEFAULT_TEMPLATE: Final[str] = "exception_notification.txt.j2"


class NotificationRenderer:
    """Render a :class:`NotificationPayload` into a mail body.

    Args:
        environment: Jinja2 environment; defaults to the bundled templates.
        template_name: Template to render.
    """

    def __init__(
        self,
        environment: Environment | None = None,
        *,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> None:
        self._env = environment or Environment(
            loader=PackageLoader("exception_notifier", "infrastructure/mail/templates"),
            autoescape=False,  # noqa: S701 - plain-text mail body
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._template_name = template_name

    def render(self, payload: NotificationPayload) -> str:
        """Return the rendered body for ``payload``."""
        return self._env.get_template(self._template_name).render(**payload.as_context())
