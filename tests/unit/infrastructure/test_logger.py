# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import json
import logging

import pytest

from exception_notifier.infrastructure.logging.logger import (
    _JsonFormatter,  # internal but importable
    configure_root_logging,
    get_fault_id,
    set_fault_context,
)


def _render(msg: str, level: int = logging.INFO, exc_info=None, **extra) -> dict:  # type: ignore[no-untyped-def]
    """Build a record with arbitrary extra and return the parsed JSON payload."""
    logger = logging.getLogger("test.logger")
    record = logger.makeRecord(
        name=logger.name,
        level=level,
        fn="test_logger",
        lno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
        extra=extra or None,
    )
    return json.loads(_JsonFormatter().format(record))


@pytest.fixture(autouse=True)
def _clear_fault_context() -> None:
    set_fault_context(fault_id=None)


def test_configure_root_logging_installs_json_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    try:
        configure_root_logging()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, _JsonFormatter)

        configure_root_logging("warning")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_basic_fields() -> None:
    payload = _render("fault.intercepted")
    assert payload["message"] == "fault.intercepted"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert "ts" in payload
    assert "fault_id" not in payload


def test_extra_fields_are_merged() -> None:
    payload = _render("notification.sent", kind="RuntimeError", recipients=["a@x"], obj=object())
    assert payload["kind"] == "RuntimeError"
    assert payload["recipients"] == ["a@x"]
    assert isinstance(payload["obj"], str)


def test_fault_id_comes_from_context() -> None:
    set_fault_context(fault_id="f-123")
    assert get_fault_id() == "f-123"
    assert _render("x")["fault_id"] == "f-123"


def test_exception_info_is_summarized() -> None:
    try:
        raise ValueError("bad value")
    except ValueError as exc:
        payload = _render("boom", logging.ERROR, exc_info=(type(exc), exc, exc.__traceback__))
    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "bad value"
