"""Alert policy deciding which alerts reach the alert log."""

from __future__ import annotations

from core.ops_models import AlertSeverity


class AlertPolicy:
    """Per-key cooldown gate for warning alerts.

    Critical alerts always pass. A cooldown of zero lets every warning
    through, so each monitoring tick that sees a threshold crossing records
    a fresh alert.
    """

    def __init__(self, *, cooldown_s: float = 0.0) -> None:
        self._cooldown_s = max(float(cooldown_s), 0.0)
        self._last_emitted: dict[str, float] = {}

    @property
    def cooldown_s(self) -> float:
        return self._cooldown_s

    def allow(self, key: str, severity: AlertSeverity, now: float) -> bool:
        if severity is AlertSeverity.CRITICAL or self._cooldown_s <= 0:
            self._last_emitted[key] = now
            return True
        last_sent = self._last_emitted.get(key)
        if last_sent is not None and (now - last_sent) < self._cooldown_s:
            return False
        self._last_emitted[key] = now
        return True

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._last_emitted.clear()
        else:
            self._last_emitted.pop(key, None)
