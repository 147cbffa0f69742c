"""Service orchestrator: lifecycle commands, monitoring tick, event and alert logs."""

from __future__ import annotations

from dataclasses import replace
import random

from config.controller import OrchestratorSettings
from core.alert_policy import AlertPolicy
from core.event_log import BoundedLog
from core.logging import logger as LOGGER
from core.ops_models import (
    AlertRecord,
    AlertSeverity,
    ClusterSummary,
    HealthSnapshot,
    OpsEvent,
    OrchestratorCounters,
    ServiceState,
    ServiceStatus,
)
from core.scheduler import ScheduledCall, Scheduler
from services.health_probes import (
    derive_overall_status,
    probe_service,
    summarize_health,
)
from services.service import Service, ServiceTimings


class ServiceOrchestrator:
    """Own a set of services and drive them through their lifecycle.

    Commands against unknown ids, or against services whose state does not
    permit the command, are silent no-ops. All commands and all scheduled
    callbacks hold ``scheduler.lock``, so they never interleave.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        settings: OrchestratorSettings | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._settings = settings or OrchestratorSettings()
        self._lock = scheduler.lock
        self._rng = rng or random.Random(self._settings.seed)
        self._timings = ServiceTimings(
            provision_delay_s=self._settings.provision_delay_s,
            scale_delay_s=self._settings.scale_delay_s,
            recovery_delay_s=self._settings.recovery_delay_s,
        )
        self._services: dict[str, Service] = {}
        self._events: BoundedLog[OpsEvent] = BoundedLog(self._settings.event_capacity, name="events")
        self._alerts: BoundedLog[AlertRecord] = BoundedLog(self._settings.alert_capacity, name="alerts")
        self._counters = OrchestratorCounters()
        self._alert_policy = AlertPolicy(cooldown_s=self._settings.alert_cooldown_s)
        self._monitor_call: ScheduledCall | None = None
        self._ticks = 0

    @property
    def settings(self) -> OrchestratorSettings:
        return self._settings

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    # Commands

    def provision_service(self, service_id: str) -> Service:
        with self._lock:
            existing = self._services.get(service_id)
            if existing is not None:
                LOGGER.debug("[Orchestrator] %s already provisioned.", service_id)
                return existing
            service = Service(
                service_id,
                self._scheduler,
                service_type=self._settings.service_type,
                timings=self._timings,
                rng=self._rng,
            )
            self._services[service_id] = service
            service.provision()
            self._log_event(f"Service {service_id} provisioning initiated")
            self._counters.provisioned += 1
            return service

    def get_service(self, service_id: str) -> Service | None:
        with self._lock:
            return self._services.get(service_id)

    def scale_service(self, service_id: str, instances: int) -> None:
        with self._lock:
            service = self._lookup(service_id, "scale")
            if service is None:
                return
            self._log_event(f"Scaling service {service_id} to {instances} instances")
            service.scale(instances)

    def inject_fault(self, service_id: str) -> None:
        with self._lock:
            service = self._lookup(service_id, "inject_fault")
            if service is None:
                return
            service.inject_fault()
            self._log_event(f"FAULT INJECTED: Service {service_id} degraded")
            self._add_alert(
                f"CRITICAL: Service {service_id} in degraded state",
                AlertSeverity.CRITICAL,
                key=f"{service_id}:fault",
            )
            self._counters.failed_injections += 1

    def recover_service(self, service_id: str) -> None:
        with self._lock:
            service = self._lookup(service_id, "recover")
            if service is None:
                return
            if service.state is not ServiceState.DEGRADED:
                LOGGER.debug(
                    "[Orchestrator] Recovery skipped for %s (state=%s).",
                    service_id,
                    service.state.value,
                )
                return
            self._log_event(f"Recovery initiated for service {service_id}")
            service.recover()
            self._counters.recoveries_initiated += 1

    def terminate_service(self, service_id: str) -> None:
        with self._lock:
            service = self._lookup(service_id, "terminate")
            if service is None:
                return
            service.terminate()
            self._log_event(f"Service {service_id} terminated")

    # Monitoring

    def start_monitoring(self) -> None:
        with self._lock:
            if self._monitor_call is not None:
                return
            self._monitor_call = self._scheduler.call_every(
                self._settings.monitoring_interval_s,
                self.monitor_services,
                name="monitoring_tick",
            )
            self._log_event("Monitoring started")

    def stop_monitoring(self) -> None:
        with self._lock:
            if self._monitor_call is not None:
                self._monitor_call.cancel()
                self._monitor_call = None
            self._log_event("Monitoring stopped")

    def is_monitoring_active(self) -> bool:
        with self._lock:
            return self._monitor_call is not None

    def monitor_services(self) -> None:
        """Run one monitoring tick over every running service."""

        with self._lock:
            self._ticks += 1
            for service in self._services.values():
                if service.state is not ServiceState.RUNNING:
                    continue
                service.update_metrics()
                if service.cpu_load > self._settings.cpu_threshold:
                    self._add_alert(
                        f"WARNING: Service {service.service_id} high CPU: {service.cpu_load:.1f}%",
                        AlertSeverity.WARNING,
                        key=f"{service.service_id}:cpu",
                    )
                if service.memory_load > self._settings.memory_threshold:
                    self._add_alert(
                        f"WARNING: Service {service.service_id} high memory: "
                        f"{service.memory_load:.1f}%",
                        AlertSeverity.WARNING,
                        key=f"{service.service_id}:memory",
                    )

    def shutdown(self) -> None:
        self.stop_monitoring()
        self._scheduler.stop()
        LOGGER.info("[Orchestrator] Shutdown complete after %s tick(s).", self._ticks)

    # Queries

    def snapshot(self) -> dict[str, ServiceStatus]:
        with self._lock:
            return {
                service_id: ServiceStatus(
                    state=service.state,
                    instance_count=service.instance_count,
                    cpu_load=round(service.cpu_load, 1),
                    memory_load=round(service.memory_load, 1),
                    throughput=int(round(service.throughput)),
                )
                for service_id, service in self._services.items()
            }

    def recent_events(self, limit: int = 10) -> list[OpsEvent]:
        with self._lock:
            return self._events.recent(limit)

    def recent_alerts(self, limit: int = 5) -> list[AlertRecord]:
        with self._lock:
            return self._alerts.recent(limit)

    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    def alert_count(self) -> int:
        with self._lock:
            return len(self._alerts)

    def get_counters(self) -> OrchestratorCounters:
        with self._lock:
            return replace(self._counters)

    def get_summary(self) -> ClusterSummary:
        with self._lock:
            running = sum(
                1 for service in self._services.values() if service.state is ServiceState.RUNNING
            )
            return ClusterSummary(
                deployed=len(self._services),
                running=running,
                failed=self._counters.failed_injections,
                recovered=self._counters.recoveries_initiated,
            )

    def get_health(self) -> HealthSnapshot:
        with self._lock:
            results = [
                probe_service(
                    service,
                    cpu_threshold=self._settings.cpu_threshold,
                    memory_threshold=self._settings.memory_threshold,
                )
                for service in self._services.values()
            ]
            status = derive_overall_status(results)
            details: dict[str, str | float | int] = {"services": len(results)}
            for result in results:
                details[f"{result.name}_status"] = result.status.value
            return HealthSnapshot(
                timestamp=self._scheduler.now(),
                status=status,
                summary=summarize_health(status, results),
                details=details,
            )

    def _lookup(self, service_id: str, command: str) -> Service | None:
        service = self._services.get(service_id)
        if service is None:
            LOGGER.debug("[Orchestrator] %s ignored for unknown service %s.", command, service_id)
        return service

    def _log_event(self, message: str) -> None:
        self._events.append(OpsEvent(timestamp=self._scheduler.now(), message=message))
        LOGGER.info("[Orchestrator] %s", message)

    def _add_alert(self, message: str, severity: AlertSeverity, *, key: str) -> None:
        now = self._scheduler.now()
        if not self._alert_policy.allow(key, severity, now):
            LOGGER.debug("[Orchestrator] Alert %s suppressed by cooldown.", key)
            return
        self._alerts.append(AlertRecord(timestamp=now, message=message, severity=severity))
        if severity is AlertSeverity.CRITICAL:
            LOGGER.error("[Orchestrator] %s", message)
        else:
            LOGGER.warning("[Orchestrator] %s", message)
