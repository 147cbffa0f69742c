"""Tests for alert cooldown policy."""

from __future__ import annotations

from core.alert_policy import AlertPolicy
from core.ops_models import AlertSeverity


def test_zero_cooldown_allows_every_warning() -> None:
    policy = AlertPolicy()

    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 0.0) is True
    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 0.0) is True


def test_cooldown_is_tracked_per_key() -> None:
    policy = AlertPolicy(cooldown_s=10.0)

    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 0.0) is True
    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 5.0) is False
    assert policy.allow("svc-1:memory", AlertSeverity.WARNING, 5.0) is True
    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 10.0) is True


def test_critical_alerts_bypass_cooldown() -> None:
    policy = AlertPolicy(cooldown_s=60.0)

    assert policy.allow("svc-1:fault", AlertSeverity.CRITICAL, 0.0) is True
    assert policy.allow("svc-1:fault", AlertSeverity.CRITICAL, 1.0) is True


def test_reset_clears_cooldown() -> None:
    policy = AlertPolicy(cooldown_s=60.0)
    policy.allow("svc-1:cpu", AlertSeverity.WARNING, 0.0)

    policy.reset("svc-1:cpu")

    assert policy.allow("svc-1:cpu", AlertSeverity.WARNING, 1.0) is True
