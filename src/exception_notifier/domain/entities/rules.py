# src/exception_notifier/domain/entities/rules.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Notification Rule Entities.

Purpose:
    Rule sets consulted by the notification policy, and the set of address
    ranges whose requests count as local.

Layer:
    domain/entities

Notes:
    Both objects are built once at startup and read without locking.
    ``LocalAddressSet`` is append-only; nothing removes entries.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Final

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

LOOPBACK: Final[str] = "127.0.0.1"


@dataclass(frozen=True, slots=True)
class NotificationRules:
    """Configured notification rules.

    Attributes:
        silent_kinds: Fault kinds that never notify.
        always_notify_kinds: Fault kinds that always notify (after silencing).
        notify_status_codes: Status codes that notify.
        notify_on_others: Outcome when no rule matched.
        render_only: Disable every notification.
        skip_local: Do not notify for local requests.
    """

    silent_kinds: frozenset[str] = frozenset()
    always_notify_kinds: frozenset[str] = frozenset()
    notify_status_codes: frozenset[str] = frozenset({"405", "500", "503"})
    notify_on_others: bool = True
    render_only: bool = False
    skip_local: bool = True


class LocalAddressSet:
    """Address ranges treated as local; always contains the loopback address."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._networks: list[IPNetwork] = [ipaddress.ip_network(LOOPBACK)]
        self.consider_local(*entries)

    def consider_local(self, *entries: str) -> None:
        """Append addresses or CIDR ranges.

        Args:
            *entries: IPv4/IPv6 addresses or networks (``"10.0.0.0/8"``).

        Raises:
            ValueError: If an entry is not a valid address or network.
        """
        for entry in entries:
            self._networks.append(ipaddress.ip_network(entry.strip(), strict=False))

    def contains(self, address: str | None) -> bool:
        """Return True when ``address`` falls inside any configured range.

        Non-IP labels and ``None`` are never local.
        """
        if not address:
            return False
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        return any(ip.version == net.version and ip in net for net in self._networks)

    def __iter__(self) -> Iterator[IPNetwork]:
        return iter(tuple(self._networks))

    def __len__(self) -> int:
        return len(self._networks)
