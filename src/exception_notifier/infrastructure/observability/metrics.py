# src/exception_notifier/infrastructure/observability/metrics.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Fault and notification counters (Prometheus).

Counters are created lazily against whatever ``prometheus_client.REGISTRY``
is active when first requested. Swapping the default registry (tests, hot
reload) drops the local cache; a collector already registered under the same
name is reused instead of re-registered.

Exposed series:
    exception_notifier_faults_total{status, notify}
    exception_notifier_notifications_total{outcome}

The ``record_*`` helpers swallow metric errors after logging them; counting
must never turn a handled fault into a second failure.
"""

from __future__ import annotations

import logging
import threading

import prometheus_client as prom
from prometheus_client import Counter

_log = logging.getLogger(__name__)

FAULTS_METRIC = "exception_notifier_faults"
NOTIFICATIONS_METRIC = "exception_notifier_notifications"

_guard = threading.RLock()
_bound_registry: object | None = None
_counters: dict[str, Counter] = {}


def _registered(name: str) -> Counter | None:
    """Return the collector the active registry holds for ``name``, if it is a Counter."""
    collectors = getattr(prom.REGISTRY, "_names_to_collectors", {})
    found = collectors.get(name) if isinstance(collectors, dict) else None
    return found if isinstance(found, Counter) else None


def _counter(name: str, documentation: str, labels: tuple[str, ...]) -> Counter:
    """Return the process-wide counter ``name`` bound to the active registry.

    Raises:
        ValueError: If registration fails for a reason other than a
            concurrent registration of the same name.
    """
    global _bound_registry
    with _guard:
        if _bound_registry is not prom.REGISTRY:
            _counters.clear()
            _bound_registry = prom.REGISTRY

        counter = _counters.get(name) or _registered(name)
        if counter is None:
            try:
                counter = Counter(name, documentation, labels, registry=prom.REGISTRY)
            except ValueError:
                counter = _registered(name)
                if counter is None:
                    _log.exception("metrics.register_failed", extra={"metric": name})
                    raise
        _counters[name] = counter
        return counter


def get_faults_total() -> Counter:
    """Faults intercepted at the request boundary, by status and decision."""
    return _counter(
        FAULTS_METRIC,
        "Faults intercepted by the exception notifier.",
        ("status", "notify"),
    )


def get_notifications_total() -> Counter:
    """Notification attempts, by outcome (sent, failed, skipped)."""
    return _counter(
        NOTIFICATIONS_METRIC,
        "Exception notification delivery attempts.",
        ("outcome",),
    )


def record_fault(status_code: str, *, notify: bool) -> None:
    """Count an intercepted fault; never raises."""
    try:
        get_faults_total().labels(status=status_code, notify=str(notify).lower()).inc()
    except Exception:  # noqa: BLE001
        _log.warning("metrics.fault_record_failed", exc_info=True)


def record_notification(outcome: str) -> None:
    """Count a notification outcome; never raises."""
    try:
        get_notifications_total().labels(outcome=outcome).inc()
    except Exception:  # noqa: BLE001
        _log.warning("metrics.notification_record_failed", exc_info=True)
