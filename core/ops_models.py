"""Models for service lifecycle orchestration and health tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ServiceState(str, Enum):
    """Lifecycle state for a managed service."""

    PROVISIONING = "provisioning"
    RUNNING = "running"
    SCALING = "scaling"
    DEGRADED = "degraded"
    TERMINATED = "terminated"


class AlertSeverity(str, Enum):
    """Severity attached to an alert record."""

    WARNING = "warning"
    CRITICAL = "critical"


class HealthStatus(str, Enum):
    """Overall health classification for the cluster."""

    OK = "ok"
    DEGRADED = "degraded"
    FAILING = "failing"


@dataclass(frozen=True)
class OpsEvent:
    """Entry in the orchestrator event log."""

    timestamp: float
    message: str


@dataclass(frozen=True)
class AlertRecord:
    """Entry in the orchestrator alert log."""

    timestamp: float
    message: str
    severity: AlertSeverity = AlertSeverity.WARNING


@dataclass(frozen=True)
class ServiceStatus:
    """Read-only projection of a service, rounded for display."""

    state: ServiceState
    instance_count: int
    cpu_load: float
    memory_load: float
    throughput: int


@dataclass
class OrchestratorCounters:
    """Aggregate counters; only ever incremented."""

    provisioned: int = 0
    failed_injections: int = 0
    recoveries_initiated: int = 0


@dataclass(frozen=True)
class ClusterSummary:
    """Headline numbers for a dashboard."""

    deployed: int
    running: int
    failed: int
    recovered: int


@dataclass(frozen=True)
class HealthSnapshot:
    """Snapshot of cluster health state."""

    timestamp: float
    status: HealthStatus
    summary: str
    details: Mapping[str, str | float | int] = field(default_factory=dict)
