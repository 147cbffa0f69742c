"""Diagnostics routines for the core subsystem."""

from __future__ import annotations

from rich.logging import RichHandler

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Check that the simulator logger is wired to a rich console handler.

    Returns:
        Diagnostic result indicating core readiness.
    """

    name = "core"
    from core import logging as core_logging

    logger = core_logging.logger
    if logger is None:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Core logger failed to initialize",
        )
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Logger {logger.name!r} has no rich console handler",
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Rich logging enabled on {logger.name!r}",
    )
