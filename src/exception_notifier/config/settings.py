# src/exception_notifier/config/settings.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Exception Notifier Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for fault interception and notification.
    Built once per deployment and handed to the wiring in
    :mod:`exception_notifier.dependencies.core.bootstrap`; nothing else reads
    the process environment.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch typos.
    - Explicit field declarations with upper-case env aliases.
    - List-valued settings are read as comma-separated strings and exposed
      through parsed properties.
    - Sender address and subject prefix default from the environment name.
    - Singleton accessor `get_settings()` with LRU cache.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exception_notifier.domain.services.report_builder import DEFAULT_SECTIONS

logger = logging.getLogger(__name__)

_DEFAULT_SILENT_KINDS = "RecordNotFound,UnknownController,UnknownAction,RoutingError,MethodNotAllowed"


def _csv(raw: str | None) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


class NotifierSettings(BaseSettings):
    """Typed configuration for the exception notifier."""

    # ---------------------------
    # Environment
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment; names the default sender and prefix.",
        validation_alias="ENVIRONMENT",
    )

    # ---------------------------
    # Mail envelope
    # ---------------------------
    sender_address_override: str | None = Field(
        default=None,
        description='Sender address. Defaults to "<Env> Error" <errors@example.com>.',
        validation_alias="EXCEPTION_SENDER_ADDRESS",
    )
    recipients_raw: str | None = Field(
        default=None,
        description="Comma-separated notification recipients.",
        validation_alias="EXCEPTION_RECIPIENTS",
    )
    email_prefix_override: str | None = Field(
        default=None,
        description="Subject prefix. Defaults to '[<Env> ERROR] '.",
        validation_alias="EXCEPTION_EMAIL_PREFIX",
    )
    sections_raw: str | None = Field(
        default=None,
        description="Comma-separated body sections (request, session, environment, backtrace).",
        validation_alias="EXCEPTION_SECTIONS",
    )

    # ---------------------------
    # Notification rules
    # ---------------------------
    render_only: bool = Field(
        default=False,
        description="Render error pages but never notify.",
        validation_alias="EXCEPTION_RENDER_ONLY",
    )
    skip_local_notification: bool = Field(
        default=True,
        description="Do not notify for requests from local addresses.",
        validation_alias="EXCEPTION_SKIP_LOCAL_NOTIFICATION",
    )
    consider_all_requests_local: bool = Field(
        default=False,
        description="Treat every request as local.",
        validation_alias="CONSIDER_ALL_REQUESTS_LOCAL",
    )
    local_addresses_raw: str | None = Field(
        default=None,
        description="Comma-separated addresses/CIDRs treated as local (loopback always is).",
        validation_alias="LOCAL_ADDRESSES",
    )
    notify_status_codes_raw: str = Field(
        default="405,500,503",
        description="Comma-separated status codes that notify.",
        validation_alias="EXCEPTION_NOTIFY_STATUS_CODES",
    )
    notify_kinds_raw: str | None = Field(
        default=None,
        description="Comma-separated fault kinds that always notify.",
        validation_alias="EXCEPTION_NOTIFY_KINDS",
    )
    silent_kinds_raw: str = Field(
        default=_DEFAULT_SILENT_KINDS,
        description="Comma-separated fault kinds that never notify.",
        validation_alias="EXCEPTION_SILENT_KINDS",
    )
    notify_other_errors: bool = Field(
        default=True,
        description="Notify for faults no other rule matched.",
        validation_alias="EXCEPTION_NOTIFY_OTHER_ERRORS",
    )
    error_class_codes: dict[str, str] = Field(
        default_factory=dict,
        description="JSON mapping of fault kind to status, merged over the defaults.",
        validation_alias="EXCEPTION_ERROR_CLASS_CODES",
    )

    # ---------------------------
    # Pages & project layout
    # ---------------------------
    project_root: str = Field(
        default_factory=os.getcwd,
        description="Project root; backtraces are made relative to it.",
        validation_alias="PROJECT_ROOT",
    )
    public_dir: str = Field(
        default="public",
        description="Project-relative directory with application error pages.",
        validation_alias="PUBLIC_DIR",
    )
    view_path: str | None = Field(
        default=None,
        description="Project-relative directory with custom error pages.",
        validation_alias="EXCEPTION_VIEW_PATH",
    )
    template_dir: str = Field(
        default="templates",
        description="Project-relative directory holding templates (for template blame).",
        validation_alias="TEMPLATE_DIR",
    )

    # ---------------------------
    # Blame
    # ---------------------------
    git_repo_path: str | None = Field(
        default=None,
        description="Repository root for blame lookups; unset disables attribution.",
        validation_alias="GIT_REPO_PATH",
    )
    git_blame_timeout_s: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        description="Timeout for a single blame lookup in seconds.",
        validation_alias="GIT_BLAME_TIMEOUT_S",
    )

    # ---------------------------
    # SMTP
    # ---------------------------
    smtp_host: str | None = Field(
        default=None,
        description="SMTP host; unset logs notifications instead of mailing them.",
        validation_alias="SMTP_HOST",
    )
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP port.",
        validation_alias="SMTP_PORT",
    )
    smtp_username: str | None = Field(
        default=None,
        description="SMTP login.",
        validation_alias="SMTP_USERNAME",
    )
    smtp_password: SecretStr | None = Field(
        default=None,
        description="SMTP password.",
        validation_alias="SMTP_PASSWORD",
    )
    smtp_use_tls: bool = Field(
        default=True,
        description="Upgrade SMTP connections with STARTTLS.",
        validation_alias="SMTP_USE_TLS",
    )
    smtp_timeout_s: float = Field(
        default=30.0,
        ge=0.1,
        le=300.0,
        description="SMTP connect/command timeout in seconds.",
        validation_alias="SMTP_TIMEOUT_S",
    )

    # ---------------------------
    # Logging
    # ---------------------------
    verbose: bool = Field(
        default=False,
        description="Log the full decision record for every fault.",
        validation_alias="EXCEPTION_NOTIFIER_VERBOSE",
    )
    log_level: str | None = Field(
        default=None,
        description="Override log level (e.g., 'DEBUG', 'INFO').",
        validation_alias="LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _validate_lists(self) -> NotifierSettings:
        """Validate list-valued settings early.

        Raises:
            ValueError: On malformed addresses, status codes or sections.
        """
        for entry in self.local_addresses:
            try:
                ipaddress.ip_network(entry, strict=False)
            except ValueError as exc:
                raise ValueError(f"LOCAL_ADDRESSES entry {entry!r} is not an address") from exc

        bad_codes = [c for c in self.notify_status_codes if not c.isdigit()]
        if bad_codes:
            raise ValueError(f"EXCEPTION_NOTIFY_STATUS_CODES must be numeric: {bad_codes}")

        unknown = set(self.sections) - set(DEFAULT_SECTIONS)
        if unknown:
            raise ValueError(f"EXCEPTION_SECTIONS has unknown sections: {sorted(unknown)}")
        return self

    # --------------------------------------------------------------------- #
    # Parsed views
    # --------------------------------------------------------------------- #
    @property
    def sender_address(self) -> str:
        env = self.environment.value.capitalize()
        return self.sender_address_override or f'"{env} Error" <errors@example.com>'

    @property
    def email_prefix(self) -> str:
        if self.email_prefix_override is not None:
            return self.email_prefix_override
        return f"[{self.environment.value.capitalize()} ERROR] "

    @property
    def exception_recipients(self) -> list[str]:
        return _csv(self.recipients_raw)

    @property
    def sections(self) -> list[str]:
        return _csv(self.sections_raw) if self.sections_raw else list(DEFAULT_SECTIONS)

    @property
    def local_addresses(self) -> list[str]:
        return _csv(self.local_addresses_raw)

    @property
    def notify_status_codes(self) -> list[str]:
        return _csv(self.notify_status_codes_raw)

    @property
    def notify_kinds(self) -> list[str]:
        return _csv(self.notify_kinds_raw)

    @property
    def silent_kinds(self) -> list[str]:
        return _csv(self.silent_kinds_raw)


@lru_cache(maxsize=1)
def get_settings() -> NotifierSettings:
    """Return a cached singleton `NotifierSettings` instance.

    Returns:
        NotifierSettings: Validated settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = NotifierSettings()
        logger.info(
            "Exception notifier settings initialized",
            extra={
                "environment": settings.environment.value,
                "recipients_count": len(settings.exception_recipients),
                "render_only": settings.render_only,
                "skip_local_notification": settings.skip_local_notification,
                "consider_all_requests_local": settings.consider_all_requests_local,
                "notify_status_codes": settings.notify_status_codes,
                "notify_kinds": settings.notify_kinds,
                "silent_kinds": settings.silent_kinds,
                "view_path": settings.view_path,
                "blame_enabled": settings.git_repo_path is not None,
                "smtp_host_set": bool(settings.smtp_host),
            },
        )
        return settings
    except ValidationError as exc:
        logger.exception("Invalid exception notifier configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
