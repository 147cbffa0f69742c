"""Diagnostics routines for the configuration subsystem."""

from __future__ import annotations

from pathlib import Path

import yaml

from config.controller import ConfigController, OrchestratorSettings
from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(config_dir: Path | None = None) -> DiagnosticResult:
    """Load and normalize the configuration.

    Args:
        config_dir: Optional directory holding ``default.yaml``; the packaged
            defaults are used when omitted.

    Returns:
        Diagnostic result indicating config readiness.
    """

    name = "config"
    try:
        controller = ConfigController(config_dir=config_dir)
        settings = OrchestratorSettings.from_config(controller.get_config())
    except FileNotFoundError as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Missing default config: {exc.filename}",
        )
    except (OSError, yaml.YAMLError, ValueError, TypeError) as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Config invalid: {exc}",
        )

    if not controller.paths.override_file.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.PASS,
            details=(
                f"Defaults loaded from {controller.paths.config_dir} "
                f"(tick={settings.monitoring_interval_s}s)"
            ),
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Defaults and overrides loaded from {controller.paths.config_dir}",
    )
