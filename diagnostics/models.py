"""Result types shared by the subsystem probes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class DiagnosticResult:
    """Outcome of one subsystem check run by ``main --diagnostics``."""

    name: str
    status: DiagnosticStatus
    details: str
