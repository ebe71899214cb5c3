# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from exception_notifier.application.interfaces.mail_transport import MailMessage
from exception_notifier.application.use_cases.handle_fault import FaultHandler
from exception_notifier.config.settings import NotifierSettings, get_settings
from exception_notifier.dependencies.core.bootstrap import build_fault_handler


class RecordingTransport:
    """In-memory transport capturing every delivered message."""

    def __init__(self) -> None:
        self.messages: list[MailMessage] = []

    async def deliver(self, message: MailMessage) -> None:
        self.messages.append(message)


class FailingTransport:
    """Transport whose every delivery fails."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConnectionRefusedError("smtp down")
        self.attempts = 0

    async def deliver(self, message: MailMessage) -> None:
        self.attempts += 1
        raise self.exc


class FakeBlameGateway:
    """Blame gateway returning canned porcelain output and recording calls."""

    def __init__(self, author: str | None = "Ada Lovelace") -> None:
        self.author = author
        self.calls: list[tuple[str, str, int]] = []

    def blame(self, repo_path: str, path: str, line: int) -> str | None:
        self.calls.append((repo_path, path, line))
        if self.author is None:
            return None
        return f"abc123 {line} {line} 1\nauthor {self.author}\nauthor-mail <ada@example.com>\n"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _settings_cache_isolated() -> Generator[None, None, None]:
    """Ensure no test observes another test's cached settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., NotifierSettings]:
    """Build settings rooted at a temporary project directory."""

    def _make(**overrides: Any) -> NotifierSettings:
        values: dict[str, Any] = {
            "project_root": str(tmp_path),
            "recipients_raw": "ops@example.com,dev@example.com",
            "environment": "production",
        }
        values.update(overrides)
        return NotifierSettings(**values)

    return _make


@pytest.fixture
def make_handler(
    make_settings: Callable[..., NotifierSettings],
    recording_transport: RecordingTransport,
) -> Callable[..., FaultHandler]:
    """Build a fault handler wired to the recording transport by default."""

    def _make(*, transport: Any = None, **overrides: Any) -> FaultHandler:
        return build_fault_handler(
            make_settings(**overrides),
            transport=transport or recording_transport,
            blame_gateway=FakeBlameGateway(),
        )

    return _make
