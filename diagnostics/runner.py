"""Run subsystem probes and turn their results into a report and exit code."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from core.logging import logger as LOGGER
from diagnostics.models import DiagnosticResult, DiagnosticStatus


Probe = Callable[[], DiagnosticResult]


def tally(results: Iterable[DiagnosticResult]) -> Counter[DiagnosticStatus]:
    counts: Counter[DiagnosticStatus] = Counter({status: 0 for status in DiagnosticStatus})
    counts.update(result.status for result in results)
    return counts


def format_results(results: Sequence[DiagnosticResult]) -> str:
    """Render one line per probe followed by a status tally."""

    counts = tally(results)
    lines = ["Diagnostics report", "-" * 60]
    lines.extend(f"[{result.status.value}] {result.name}: {result.details}" for result in results)
    lines.append("-" * 60)
    lines.append(
        f"{len(results)} check(s): "
        + ", ".join(f"{counts[status]} {status.value}" for status in DiagnosticStatus)
    )
    return "\n".join(lines)


def exit_code(results: Iterable[DiagnosticResult]) -> int:
    """Return 1 when any probe failed; warnings do not fail the run."""

    return 1 if tally(results)[DiagnosticStatus.FAIL] else 0


def run_diagnostics(probes: Iterable[Probe]) -> list[DiagnosticResult]:
    """Run each probe, converting a raised exception into a FAIL result."""

    results: list[DiagnosticResult] = []
    for probe in probes:
        name = getattr(probe, "__name__", "unknown_probe")
        try:
            result = probe()
        except Exception as exc:  # noqa: BLE001 - one broken probe must not hide the rest
            LOGGER.exception("[Diagnostics] Probe %s raised", name)
            result = DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Probe raised exception: {exc}",
            )
        results.append(result)
    return results
