# src/exception_notifier/domain/services/notification_policy.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Notification policy.

Purpose:
    Decide whether a fault warrants an operator notification. Rules are
    evaluated in a fixed order and the first match wins:

        1. render-only mode            -> no
        2. skip-local and local origin -> no
        3. silent kind                 -> no
        4. always-notify kind          -> yes
        5. status in notify codes      -> yes
        6. otherwise                   -> ``notify_on_others``

Layer:
    domain/services

Notes:
    - Pure and deterministic for a given fault, status, locality and rules.
    - Kind rules match through the fault's lineage, so naming a base class
      covers its subclasses.
"""

from __future__ import annotations

from exception_notifier.domain.entities.fault import Fault
from exception_notifier.domain.entities.rules import LocalAddressSet, NotificationRules


def should_notify(
    fault: Fault,
    status_code: str | None,
    is_local: bool,
    rules: NotificationRules,
) -> bool:
    """Return True when ``fault`` should be notified.

    Args:
        fault: Captured fault.
        status_code: Resolved status, or ``None`` when the fault was already
            handled by the application and no status was resolved here.
        is_local: Whether the request originated locally.
        rules: Configured rule set.

    Returns:
        bool: Notification decision.
    """
    if rules.render_only:
        return False
    if rules.skip_local and is_local:
        return False
    if fault.is_a(rules.silent_kinds):
        return False
    if fault.is_a(rules.always_notify_kinds):
        return True
    if status_code is not None and status_code in rules.notify_status_codes:
        return True
    return rules.notify_on_others


def is_local(
    remote_addr: str | None,
    addresses: LocalAddressSet,
    *,
    consider_all_local: bool = False,
) -> bool:
    """Return True when the request origin counts as local.

    Args:
        remote_addr: Client address; non-IP labels are never local.
        addresses: Configured local ranges.
        consider_all_local: Global override treating every request as local.
    """
    return consider_all_local or addresses.contains(remote_addr)
