"""Application runtime entry points and lifecycle helpers."""

from __future__ import annotations

from dataclasses import dataclass
import threading

from core.logging import log_error, log_info, log_warning, logger as LOGGER
from core.ops_models import AlertSeverity
from core.scheduler import Scheduler
from services.orchestrator import ServiceOrchestrator


@dataclass(frozen=True)
class AppConfig:
    """Configuration for a scripted simulation run.

    Attributes:
        service_count: Number of services to provision at startup.
        duration_s: Wall-clock length of the run.
        report_interval_s: Period between status reports.
    """

    service_count: int = 3
    duration_s: float = 12.0
    report_interval_s: float = 2.0


@dataclass(frozen=True)
class ScenarioStep:
    """One scripted command fired at ``at_s`` seconds into the run."""

    at_s: float
    command: str
    service_id: str
    instances: int = 0


def build_scenario(config: AppConfig) -> list[ScenarioStep]:
    """Construct the default scale, fault, recover and terminate script.

    Args:
        config: Run configuration.

    Returns:
        Steps ordered by start offset.
    """

    ids = service_ids(config.service_count)
    if not ids:
        return []
    faulty = ids[1] if len(ids) > 1 else ids[0]
    steps = [
        ScenarioStep(at_s=3.0, command="scale", service_id=ids[0], instances=3),
        ScenarioStep(at_s=5.0, command="fault", service_id=faulty),
        ScenarioStep(at_s=7.0, command="recover", service_id=faulty),
    ]
    if len(ids) > 2:
        steps.append(
            ScenarioStep(at_s=max(config.duration_s - 2.0, 8.0), command="terminate", service_id=ids[-1])
        )
    return [step for step in steps if step.at_s < config.duration_s]


def service_ids(count: int) -> list[str]:
    return [f"svc-{index}" for index in range(1, max(count, 0) + 1)]


def apply_step(orchestrator: ServiceOrchestrator, step: ScenarioStep) -> None:
    if step.command == "scale":
        orchestrator.scale_service(step.service_id, step.instances)
    elif step.command == "fault":
        orchestrator.inject_fault(step.service_id)
    elif step.command == "recover":
        orchestrator.recover_service(step.service_id)
    elif step.command == "terminate":
        orchestrator.terminate_service(step.service_id)
    else:
        raise ValueError(f"Unknown scenario command: {step.command}")


def schedule_scenario(
    orchestrator: ServiceOrchestrator,
    scheduler: Scheduler,
    steps: list[ScenarioStep],
) -> None:
    for step in steps:
        scheduler.call_later(
            step.at_s,
            lambda step=step: apply_step(orchestrator, step),
            name=f"scenario:{step.command}:{step.service_id}",
        )


def report_status(orchestrator: ServiceOrchestrator) -> None:
    summary = orchestrator.get_summary()
    LOGGER.info(
        "Services deployed=%s running=%s failed=%s recovered=%s",
        summary.deployed,
        summary.running,
        summary.failed,
        summary.recovered,
    )
    for service_id, status in orchestrator.snapshot().items():
        LOGGER.info(
            "  %s state=%s instances=%s cpu=%.1f%% memory=%.1f%% throughput=%s",
            service_id,
            status.state.value,
            status.instance_count,
            status.cpu_load,
            status.memory_load,
            status.throughput,
        )


def report_alerts(orchestrator: ServiceOrchestrator, limit: int = 5) -> None:
    """Log the most recent alerts oldest first, styled by severity."""

    for alert in reversed(orchestrator.recent_alerts(limit)):
        line = f"Alert [{alert.severity.value}] {alert.message}"
        if alert.severity is AlertSeverity.CRITICAL:
            log_error(line)
        else:
            log_warning(line)


def run(
    config: AppConfig,
    orchestrator: ServiceOrchestrator,
    stop_event: threading.Event | None = None,
) -> int:
    """Run the scripted simulation against a live orchestrator.

    Args:
        config: Run configuration.
        orchestrator: Orchestrator bound to a running scheduler.
        stop_event: Optional event that ends the run early.

    Returns:
        Process exit code (0 for success).
    """

    stop_event = stop_event or threading.Event()
    log_info(f"Starting CSM simulation with {config.service_count} service(s)", style="bold cyan")

    for service_id in service_ids(config.service_count):
        orchestrator.provision_service(service_id)
    orchestrator.start_monitoring()
    schedule_scenario(orchestrator, orchestrator.scheduler, build_scenario(config))

    elapsed = 0.0
    interval = max(config.report_interval_s, 0.1)
    try:
        while elapsed < config.duration_s and not stop_event.is_set():
            wait_s = min(interval, config.duration_s - elapsed)
            stop_event.wait(timeout=wait_s)
            elapsed += wait_s
            report_status(orchestrator)
    finally:
        orchestrator.shutdown()

    report_alerts(orchestrator)
    health = orchestrator.get_health()
    log_info(f"Final health: {health.status.value} ({health.summary})")
    return 0
