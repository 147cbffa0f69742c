"""Health probes for managed services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from core.ops_models import HealthStatus, ServiceState
from services.service import Service


@dataclass(frozen=True)
class HealthProbeResult:
    """Result of probing a single service."""

    name: str
    status: HealthStatus
    summary: str
    details: Mapping[str, str | float | int] = field(default_factory=dict)


def probe_service(
    service: Service,
    *,
    cpu_threshold: float = 85.0,
    memory_threshold: float = 85.0,
) -> HealthProbeResult:
    """Classify one service from its state and load."""

    details: dict[str, str | float | int] = {
        "state": service.state.value,
        "instances": service.instance_count,
        "cpu": round(service.cpu_load, 1),
        "memory": round(service.memory_load, 1),
        "errors": service.error_count,
    }
    state = service.state
    if state is ServiceState.DEGRADED:
        status = HealthStatus.FAILING
        summary = f"{service.service_id} degraded ({service.error_count} error(s))"
    elif state is ServiceState.RUNNING:
        hot = []
        if service.cpu_load > cpu_threshold:
            hot.append("cpu")
        if service.memory_load > memory_threshold:
            hot.append("memory")
        if hot:
            status = HealthStatus.DEGRADED
            summary = f"{service.service_id} under pressure ({', '.join(hot)})"
        else:
            status = HealthStatus.OK
            summary = f"{service.service_id} running"
    elif state is ServiceState.TERMINATED:
        status = HealthStatus.OK
        summary = f"{service.service_id} terminated"
    else:
        status = HealthStatus.OK
        summary = f"{service.service_id} {state.value}"

    return HealthProbeResult(
        name=service.service_id,
        status=status,
        summary=summary,
        details=details,
    )


def derive_overall_status(results: Iterable[HealthProbeResult]) -> HealthStatus:
    statuses = [result.status for result in results]
    if any(status == HealthStatus.FAILING for status in statuses):
        return HealthStatus.FAILING
    if any(status == HealthStatus.DEGRADED for status in statuses):
        return HealthStatus.DEGRADED
    return HealthStatus.OK


def summarize_health(status: HealthStatus, results: list[HealthProbeResult]) -> str:
    if not results:
        return "No services deployed"
    if status == HealthStatus.OK:
        return "All services nominal"
    impacted = [result.name for result in results if result.status != HealthStatus.OK]
    if status == HealthStatus.FAILING:
        return f"Critical issues: {', '.join(impacted)}"
    return f"Degraded: {', '.join(impacted)}"
