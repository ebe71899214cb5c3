# tests/unit/config/test_settings.py
from __future__ import annotations

import pytest
from pydantic import ValidationError

from exception_notifier.config.settings import Environment, NotifierSettings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    settings = NotifierSettings(_env_file=None)

    assert settings.environment is Environment.DEVELOPMENT
    assert settings.sender_address == '"Development Error" <errors@example.com>'
    assert settings.email_prefix == "[Development ERROR] "
    assert settings.exception_recipients == []
    assert settings.sections == ["request", "session", "environment", "backtrace"]
    assert settings.notify_status_codes == ["405", "500", "503"]
    assert "RecordNotFound" in settings.silent_kinds
    assert settings.skip_local_notification is True
    assert settings.render_only is False


def test_env_parsing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("EXCEPTION_RECIPIENTS", " ops@example.com , dev@example.com,,")
    monkeypatch.setenv("EXCEPTION_SECTIONS", "request,backtrace")
    monkeypatch.setenv("LOCAL_ADDRESSES", "10.0.0.0/8, ::1")
    monkeypatch.setenv("EXCEPTION_NOTIFY_KINDS", "PaymentDeclined")
    monkeypatch.setenv("EXCEPTION_ERROR_CLASS_CODES", '{"PaymentDeclined": "", "KeyError": "404"}')
    monkeypatch.setenv("EXCEPTION_RENDER_ONLY", "true")
    monkeypatch.setenv("SMTP_PASSWORD", "s3cret")

    settings = get_settings()

    assert settings.environment is Environment.PRODUCTION
    assert settings.sender_address == '"Production Error" <errors@example.com>'
    assert settings.email_prefix == "[Production ERROR] "
    assert settings.exception_recipients == ["ops@example.com", "dev@example.com"]
    assert settings.sections == ["request", "backtrace"]
    assert settings.local_addresses == ["10.0.0.0/8", "::1"]
    assert settings.notify_kinds == ["PaymentDeclined"]
    assert settings.error_class_codes == {"PaymentDeclined": "", "KeyError": "404"}
    assert settings.render_only is True
    assert settings.smtp_password is not None
    assert settings.smtp_password.get_secret_value() == "s3cret"  # noqa: S105
    assert "s3cret" not in repr(settings)


def test_explicit_sender_and_prefix_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXCEPTION_SENDER_ADDRESS", "alerts@example.com")
    monkeypatch.setenv("EXCEPTION_EMAIL_PREFIX", "")

    settings = NotifierSettings(_env_file=None)

    assert settings.sender_address == "alerts@example.com"
    assert settings.email_prefix == ""


def test_forbids_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        NotifierSettings(_env_file=None, not_a_setting=True)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("LOCAL_ADDRESSES", "10.0.0.0/8,not-an-ip"),
        ("EXCEPTION_NOTIFY_STATUS_CODES", "500,five-hundred"),
        ("EXCEPTION_SECTIONS", "request,cookies"),
        ("GIT_BLAME_TIMEOUT_S", "0"),
    ],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        NotifierSettings(_env_file=None)


def test_get_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SMTP_PORT", "not-a-port")
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        get_settings()


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
