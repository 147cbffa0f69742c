"""Diagnostics routines for the services subsystem."""

from __future__ import annotations

import random

from config.controller import OrchestratorSettings
from core.ops_models import ServiceState
from core.scheduler import ManualScheduler
from diagnostics.models import DiagnosticResult, DiagnosticStatus
from services.orchestrator import ServiceOrchestrator


def probe(settings: OrchestratorSettings | None = None) -> DiagnosticResult:
    """Drive one service through provision, fault and recovery on a virtual clock.

    Args:
        settings: Optional orchestrator settings; defaults when omitted.

    Returns:
        Diagnostic result indicating lifecycle readiness.
    """

    name = "services"
    settings = settings or OrchestratorSettings()
    scheduler = ManualScheduler()
    orchestrator = ServiceOrchestrator(scheduler, settings, rng=random.Random(0))
    service_id = "diagnostic-probe"

    orchestrator.provision_service(service_id)
    scheduler.advance(settings.provision_delay_s)
    service = orchestrator.get_service(service_id)
    if service is None or service.state is not ServiceState.RUNNING:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Service did not settle into running after provisioning",
        )

    orchestrator.inject_fault(service_id)
    orchestrator.recover_service(service_id)
    scheduler.advance(settings.recovery_delay_s)
    orchestrator.terminate_service(service_id)

    if service.state is not ServiceState.TERMINATED or service.error_count != 0:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Unexpected lifecycle outcome: state={service.state.value}",
        )
    if scheduler.errors:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Lifecycle completed with {scheduler.errors} callback error(s)",
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Lifecycle completed ({orchestrator.event_count()} events logged)",
    )
