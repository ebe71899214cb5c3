# tests/unit/application/test_handle_fault.py
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import RecordingTransport

from exception_notifier.application.use_cases.handle_fault import FaultHandler
from exception_notifier.domain.entities.request_context import RequestContext
from exception_notifier.domain.exceptions import RecordNotFound
from exception_notifier.infrastructure.views.view_resolver import BUNDLED_VIEWS_DIR

pytestmark = pytest.mark.anyio

REMOTE = RequestContext(remote_addr="203.0.113.9", controller_name="app.orders", action_name="show")
LOCAL = RequestContext(remote_addr="127.0.0.1", controller_name="app.orders", action_name="show")


class PaymentDeclined(Exception):
    pass


async def test_unhandled_runtime_error_notifies(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler()

    resolution = handler.handle(RuntimeError("boom"), REMOTE)
    await handler.dispatcher.drain()

    assert resolution.status_code == "500"
    assert resolution.status_line == "500 Internal Server Error"
    assert resolution.view_path == str(BUNDLED_VIEWS_DIR / "500.html")
    assert resolution.notify is True
    assert len(recording_transport.messages) == 1
    assert recording_transport.messages[0].subject.startswith(
        "[Production ERROR] app.orders#show (RuntimeError)"
    )


async def test_silent_kind_renders_without_notifying(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler()

    resolution = handler.handle(RecordNotFound("order 42"), REMOTE)
    await handler.dispatcher.drain()

    assert resolution.status_code == "400"
    assert resolution.view_path.endswith("400.html")
    assert resolution.notify is False
    assert recording_transport.messages == []


async def test_local_request_is_not_notified(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler()

    resolution = handler.handle(RuntimeError("boom"), LOCAL)
    await handler.dispatcher.drain()

    assert resolution.notify is False
    assert recording_transport.messages == []


async def test_unmapped_kind_renders_500_and_follows_notify_others(
    make_handler: Callable[..., FaultHandler],
) -> None:
    handler = make_handler(notify_other_errors=False, notify_status_codes_raw="503")

    resolution = handler.handle(ZeroDivisionError("x"), REMOTE)

    assert resolution.status_code == "500"
    assert resolution.notify is False


@pytest.mark.parametrize("mapped", ["", "200"])
async def test_blank_or_200_mapping_renders_custom_page_at_200(
    make_handler: Callable[..., FaultHandler], tmp_path: Path, mapped: str
) -> None:
    (tmp_path / "public").mkdir()
    page = tmp_path / "public" / "card_declined.html"
    page.write_text("<p>declined</p>")
    handler = make_handler(error_class_codes={"PaymentDeclined": mapped})

    resolution = handler.handle(PaymentDeclined("CardDeclined"), REMOTE)
    await handler.dispatcher.drain()

    assert resolution.status_code == "200"
    assert resolution.http_status == 200
    assert resolution.view_path == str(page)


async def test_render_only_never_notifies(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler(render_only=True)

    handler.handle(RuntimeError("boom"), REMOTE)
    assert handler.report_handled(RuntimeError("boom"), REMOTE) is False
    assert await handler.notify_background(RuntimeError("job")) is False
    await handler.dispatcher.drain()

    assert recording_transport.messages == []


async def test_report_handled_skips_status_rule(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler(notify_other_errors=False)

    assert handler.report_handled(RuntimeError("rescued"), REMOTE) is False

    handler = make_handler(notify_other_errors=False, notify_kinds_raw="RuntimeError")
    assert handler.report_handled(RuntimeError("rescued"), REMOTE) is True
    await handler.dispatcher.drain()
    assert len(recording_transport.messages) == 1


async def test_notify_background_ignores_locality_and_kind_rules(
    make_handler: Callable[..., FaultHandler], recording_transport: RecordingTransport
) -> None:
    handler = make_handler(consider_all_requests_local=True, silent_kinds_raw="RuntimeError")

    assert await handler.notify_background(RuntimeError("job"), {"job": "sync"}) is True

    payload = recording_transport.messages[0].payload
    assert payload.request is None
    assert payload.data == {"job": "sync"}


def test_is_local_uses_configured_ranges(make_handler: Callable[..., FaultHandler]) -> None:
    handler = make_handler(local_addresses_raw="10.0.0.0/8")
    assert handler.is_local(RequestContext(remote_addr="10.2.3.4")) is True
    assert handler.is_local(REMOTE) is False
    assert handler.is_local(None) is False


def _records(caplog: pytest.LogCaptureFixture, message: str) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.getMessage() == message]


async def test_verbose_mode_logs_the_full_decision(
    make_handler: Callable[..., FaultHandler], caplog: pytest.LogCaptureFixture
) -> None:
    handler = make_handler(verbose=True)

    with caplog.at_level(logging.INFO):
        handler.handle(RuntimeError("boom"), LOCAL)
        await handler.dispatcher.drain()

    (record,) = _records(caplog, "fault.decision")
    assert record.kind == "RuntimeError"
    assert record.fault_message == "boom"
    assert record.status_code == "500"
    assert record.status_line == "500 Internal Server Error"
    assert record.view == str(BUNDLED_VIEWS_DIR / "500.html")
    assert str(BUNDLED_VIEWS_DIR) in record.view_dirs
    assert record.local is True
    assert record.notify is False


async def test_quiet_mode_logs_no_decision(
    make_handler: Callable[..., FaultHandler], caplog: pytest.LogCaptureFixture
) -> None:
    handler = make_handler()

    with caplog.at_level(logging.INFO):
        handler.handle(RuntimeError("boom"), REMOTE)
        handler.report_handled(RuntimeError("rescued"), REMOTE)
        await handler.dispatcher.drain()

    assert _records(caplog, "fault.decision") == []
    assert _records(caplog, "fault.handled_decision") == []
    assert len(_records(caplog, "fault.intercepted")) == 1


async def test_verbose_mode_logs_handled_fault_decisions(
    make_handler: Callable[..., FaultHandler], caplog: pytest.LogCaptureFixture
) -> None:
    handler = make_handler(
        verbose=True, notify_other_errors=False, notify_kinds_raw="PaymentDeclined"
    )

    with caplog.at_level(logging.INFO):
        handler.report_handled(PaymentDeclined("CardDeclined"), REMOTE)
        handler.report_handled(RuntimeError("rescued"), REMOTE)
        await handler.dispatcher.drain()

    records = _records(caplog, "fault.handled_decision")
    assert [(r.kind, r.fault_message, r.notify) for r in records] == [
        ("PaymentDeclined", "CardDeclined", True),
        ("RuntimeError", "rescued", False),
    ]
