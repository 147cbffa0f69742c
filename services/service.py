"""State machine for a single simulated managed workload."""

from __future__ import annotations

from dataclasses import dataclass
import random

from core.logging import logger as LOGGER
from core.ops_models import ServiceState
from core.scheduler import Scheduler


CPU_RANGE = (40.0, 95.0)
MEMORY_RANGE = (50.0, 95.0)
THROUGHPUT_RANGE = (800.0, 2000.0)
CPU_JITTER = 5.0
MEMORY_JITTER = 4.0
THROUGHPUT_JITTER = 50.0
RECOVERED_THROUGHPUT = 1000.0


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


@dataclass(frozen=True)
class ServiceTimings:
    """Delays, in seconds, before a pending transition settles into running."""

    provision_delay_s: float = 2.0
    scale_delay_s: float = 1.5
    recovery_delay_s: float = 1.0


class Service:
    """One managed workload.

    Commands issued from a state that does not allow them are ignored and
    return ``False``. Delayed transitions re-check their source state when
    they fire, so a service terminated in the meantime stays terminated.
    """

    def __init__(
        self,
        service_id: str,
        scheduler: Scheduler,
        *,
        service_type: str = "mapreduce",
        timings: ServiceTimings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._service_id = service_id
        self._service_type = service_type
        self._scheduler = scheduler
        self._timings = timings or ServiceTimings()
        self._rng = rng or random.Random()
        self._state = ServiceState.PROVISIONING
        self._instance_count = 1
        self._cpu_load = 50.0
        self._memory_load = 60.0
        self._throughput = 1000.0
        self._error_count = 0
        self._created_at = scheduler.now()
        self._last_heartbeat = self._created_at

    def __repr__(self) -> str:
        return (
            f"Service(id={self._service_id!r}, state={self._state.value}, "
            f"instances={self._instance_count})"
        )

    @property
    def service_id(self) -> str:
        return self._service_id

    @property
    def service_type(self) -> str:
        return self._service_type

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def instance_count(self) -> int:
        return self._instance_count

    @property
    def cpu_load(self) -> float:
        return self._cpu_load

    @property
    def memory_load(self) -> float:
        return self._memory_load

    @property
    def throughput(self) -> float:
        return self._throughput

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def created_at(self) -> float:
        return self._created_at

    @property
    def last_heartbeat(self) -> float:
        return self._last_heartbeat

    def provision(self) -> bool:
        if self._state is not ServiceState.PROVISIONING:
            return False
        self._scheduler.call_later(
            self._timings.provision_delay_s,
            self._complete_provisioning,
            name=f"{self._service_id}:provision",
        )
        return True

    def scale(self, instances: int) -> bool:
        if self._state is not ServiceState.RUNNING:
            LOGGER.debug("[Service] %s ignored scale while %s.", self._service_id, self._state.value)
            return False
        if instances < 1:
            LOGGER.debug("[Service] %s ignored scale to %s instances.", self._service_id, instances)
            return False
        self._state = ServiceState.SCALING
        self._scheduler.call_later(
            self._timings.scale_delay_s,
            lambda: self._complete_scaling(instances),
            name=f"{self._service_id}:scale",
        )
        return True

    def inject_fault(self) -> bool:
        if self._state is not ServiceState.RUNNING:
            LOGGER.debug("[Service] %s ignored fault while %s.", self._service_id, self._state.value)
            return False
        self._state = ServiceState.DEGRADED
        self._error_count += 1
        self._cpu_load = _clamp(self._cpu_load + 30.0, 0.0, 100.0)
        self._throughput *= 0.5
        return True

    def recover(self) -> bool:
        if self._state is not ServiceState.DEGRADED:
            LOGGER.debug("[Service] %s ignored recover while %s.", self._service_id, self._state.value)
            return False
        self._scheduler.call_later(
            self._timings.recovery_delay_s,
            self._complete_recovery,
            name=f"{self._service_id}:recover",
        )
        return True

    def terminate(self) -> bool:
        if self._state is ServiceState.TERMINATED:
            return False
        self._state = ServiceState.TERMINATED
        self._instance_count = 0
        return True

    def update_metrics(self) -> None:
        """Jitter load metrics while running and refresh the heartbeat."""

        if self._state is ServiceState.TERMINATED:
            return
        if self._state is ServiceState.RUNNING:
            self._cpu_load = _clamp(
                self._cpu_load + self._rng.uniform(-CPU_JITTER, CPU_JITTER),
                *CPU_RANGE,
            )
            self._memory_load = _clamp(
                self._memory_load + self._rng.uniform(-MEMORY_JITTER, MEMORY_JITTER),
                *MEMORY_RANGE,
            )
            self._throughput = _clamp(
                self._throughput + self._rng.uniform(-THROUGHPUT_JITTER, THROUGHPUT_JITTER),
                *THROUGHPUT_RANGE,
            )
        self._last_heartbeat = self._scheduler.now()

    def _complete_provisioning(self) -> None:
        if self._state is not ServiceState.PROVISIONING:
            return
        self._state = ServiceState.RUNNING
        self.update_metrics()
        LOGGER.debug("[Service] %s is running.", self._service_id)

    def _complete_scaling(self, instances: int) -> None:
        if self._state is not ServiceState.SCALING:
            return
        self._instance_count = instances
        self._state = ServiceState.RUNNING
        self._cpu_load = max(20.0, self._cpu_load - 10.0 * (instances - 1))
        self.update_metrics()
        LOGGER.debug("[Service] %s scaled to %s instances.", self._service_id, instances)

    def _complete_recovery(self) -> None:
        if self._state is not ServiceState.DEGRADED:
            return
        self._state = ServiceState.RUNNING
        # Refresh before the resets: recovered throughput is exactly the baseline.
        self.update_metrics()
        self._error_count = 0
        self._cpu_load = max(40.0, self._cpu_load - 20.0)
        self._throughput = RECOVERED_THROUGHPUT
        LOGGER.debug("[Service] %s recovered.", self._service_id)
