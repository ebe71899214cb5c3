# tests/unit/domain/test_report_builder.py
from __future__ import annotations

from exception_notifier.domain.entities.blame import BlameRecord
from exception_notifier.domain.entities.fault import Fault, Frame
from exception_notifier.domain.entities.request_context import RequestContext
from exception_notifier.domain.services.report_builder import (
    DEFAULT_SECTIONS,
    ReportBuilder,
    sanitize_backtrace,
)


def _fault() -> Fault:
    return Fault(
        kind="RuntimeError",
        message="boom",
        origin=(
            Frame("/srv/app/orders/views.py", 10, "show"),
            Frame("/usr/lib/python3/site-packages/starlette/routing.py", 70, "app"),
        ),
    )


def test_sanitize_backtrace_replaces_root_and_normalizes() -> None:
    trace = [
        "/srv/app/orders/../orders/views.py:10:in `show`",
        "/srv/application/other.py:1:in `x`",
        "/usr/lib/python3/a.py:2:in `y`",
    ]
    assert sanitize_backtrace(trace, "/srv/app/") == [
        "[PROJECT_ROOT]/orders/views.py:10:in `show`",
        "/srv/application/other.py:1:in `x`",
        "/usr/lib/python3/a.py:2:in `y`",
    ]


def test_request_payload_uses_controller_action_and_all_sections() -> None:
    request = RequestContext(
        remote_addr="203.0.113.9",
        controller_name="app.orders",
        action_name="show",
        headers={"host": "shop.example.com", "x-forwarded-host": "edge.example.com"},
    )
    blame = BlameRecord(author="Ada", file="orders/views.py", line=10)

    payload = ReportBuilder("/srv/app").build(_fault(), request, {"user": 7}, blame)

    assert payload.location == "app.orders#show"
    assert payload.sections == DEFAULT_SECTIONS
    assert payload.host == "edge.example.com"
    assert payload.backtrace[0] == "[PROJECT_ROOT]/orders/views.py:10:in `show`"
    assert payload.data == {"user": 7}
    assert payload.as_context()["the_blamed"] is blame


def test_background_payload_uses_first_frame_and_drops_request_sections() -> None:
    payload = ReportBuilder("/srv/app").build(_fault(), None)

    assert payload.location == "[PROJECT_ROOT]/orders/views.py:10:in `show`"
    assert payload.sections == ("backtrace",)
    assert payload.request is None
    assert payload.host is None
    assert payload.data == {}


def test_background_payload_without_frames_has_empty_location() -> None:
    payload = ReportBuilder("/srv/app", ["request", "backtrace"]).build(Fault("E", "m"), None)
    assert payload.location == ""
    assert payload.sections == ("backtrace",)
