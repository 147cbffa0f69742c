"""Tests for the service lifecycle state machine."""

from __future__ import annotations

import random

from core.ops_models import ServiceState
from core.scheduler import ManualScheduler
from services.service import Service, ServiceTimings


class _FixedRng:
    """Random source whose ``uniform`` always lands on one end of the range."""

    def __init__(self, pick: str = "mid") -> None:
        self._pick = pick

    def uniform(self, low: float, high: float) -> float:
        if self._pick == "high":
            return high
        if self._pick == "low":
            return low
        return (low + high) / 2.0


def _make_service(rng=None, start_time: float = 1000.0) -> tuple[Service, ManualScheduler]:
    scheduler = ManualScheduler(start_time=start_time)
    service = Service("svc-1", scheduler, rng=rng or random.Random(7))
    return service, scheduler


def _running_service(rng=None) -> tuple[Service, ManualScheduler]:
    service, scheduler = _make_service(rng)
    service.provision()
    scheduler.advance(2.0)
    return service, scheduler


def test_new_service_waits_for_provisioning_delay() -> None:
    service, scheduler = _make_service()

    assert service.provision() is True
    assert service.state is ServiceState.PROVISIONING
    assert service.instance_count == 1

    scheduler.advance(1.99)
    assert service.state is ServiceState.PROVISIONING

    scheduler.advance(0.01)
    assert service.state is ServiceState.RUNNING
    assert service.instance_count == 1
    assert service.last_heartbeat == 1002.0
    assert service.created_at == 1000.0


def test_provision_is_ignored_once_running() -> None:
    service, scheduler = _running_service()

    assert service.provision() is False
    assert scheduler.pending() == 0


def test_scale_settles_with_new_instance_count() -> None:
    service, scheduler = _running_service(_FixedRng())

    assert service.scale(3) is True
    assert service.state is ServiceState.SCALING
    assert service.instance_count == 1

    scheduler.advance(1.5)
    assert service.state is ServiceState.RUNNING
    assert service.instance_count == 3
    # 50 - 20 = 30, then the running refresh clamps into [40, 95].
    assert service.cpu_load == 40.0


def test_scale_ignored_outside_running_or_below_one_instance() -> None:
    service, scheduler = _make_service()
    service.provision()

    assert service.scale(4) is False
    scheduler.advance(2.0)
    assert service.scale(0) is False
    assert service.scale(-2) is False
    assert service.state is ServiceState.RUNNING
    assert service.instance_count == 1


def test_inject_fault_degrades_running_service() -> None:
    service, _ = _running_service()
    previous_errors = service.error_count
    previous_throughput = service.throughput
    previous_cpu = service.cpu_load

    assert service.inject_fault() is True
    assert service.state is ServiceState.DEGRADED
    assert service.error_count == previous_errors + 1
    assert service.throughput == previous_throughput * 0.5
    assert service.cpu_load == min(100.0, previous_cpu + 30.0)


def test_inject_fault_ignored_when_not_running() -> None:
    service, _ = _make_service()

    assert service.inject_fault() is False
    assert service.state is ServiceState.PROVISIONING
    assert service.error_count == 0


def test_recover_only_from_degraded() -> None:
    service, scheduler = _running_service()

    assert service.recover() is False
    assert scheduler.pending() == 0

    service.inject_fault()
    assert service.recover() is True
    assert service.state is ServiceState.DEGRADED

    scheduler.advance(1.0)
    assert service.state is ServiceState.RUNNING
    assert service.error_count == 0
    assert service.throughput == 1000.0
    assert service.cpu_load >= 40.0


def test_terminate_is_absorbing() -> None:
    service, scheduler = _running_service()

    assert service.terminate() is True
    assert service.terminate() is False
    heartbeat = service.last_heartbeat

    assert service.scale(2) is False
    assert service.inject_fault() is False
    assert service.recover() is False
    service.update_metrics()
    scheduler.advance(10.0)

    assert service.state is ServiceState.TERMINATED
    assert service.instance_count == 0
    assert service.last_heartbeat == heartbeat


def test_pending_transitions_do_not_revive_terminated_service() -> None:
    service, scheduler = _make_service()
    service.provision()
    service.terminate()

    scheduler.advance(2.0)
    assert service.state is ServiceState.TERMINATED

    other, other_scheduler = _running_service()
    other.scale(5)
    other.terminate()
    other_scheduler.advance(1.5)
    assert other.state is ServiceState.TERMINATED
    assert other.instance_count == 0


def test_pending_recovery_is_a_no_op_after_termination() -> None:
    service, scheduler = _running_service()
    service.inject_fault()
    service.recover()
    service.terminate()

    scheduler.advance(1.0)

    assert service.state is ServiceState.TERMINATED
    assert service.error_count == 1


def test_update_metrics_stays_within_bounds() -> None:
    service, _ = _running_service(random.Random(1234))

    for _ in range(500):
        service.update_metrics()
        assert 40.0 <= service.cpu_load <= 95.0
        assert 50.0 <= service.memory_load <= 95.0
        assert 800.0 <= service.throughput <= 2000.0


def test_update_metrics_clamps_at_upper_bounds() -> None:
    service, _ = _running_service(_FixedRng("high"))

    for _ in range(40):
        service.update_metrics()

    assert service.cpu_load == 95.0
    assert service.memory_load == 95.0
    assert service.throughput == 2000.0


def test_update_metrics_only_refreshes_heartbeat_when_not_running() -> None:
    service, scheduler = _make_service(_FixedRng("high"))
    service.provision()

    scheduler.advance(0.5)
    service.update_metrics()

    assert service.cpu_load == 50.0
    assert service.memory_load == 60.0
    assert service.throughput == 1000.0
    assert service.last_heartbeat == 1000.5


def test_custom_timings_are_respected() -> None:
    scheduler = ManualScheduler()
    service = Service(
        "svc-fast",
        scheduler,
        timings=ServiceTimings(provision_delay_s=0.1, scale_delay_s=0.2, recovery_delay_s=0.3),
        service_type="batch",
    )
    service.provision()
    scheduler.advance(0.1)

    assert service.state is ServiceState.RUNNING
    assert service.service_type == "batch"
