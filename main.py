"""Command-line entry point for the CSM simulator."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys

from config.controller import ConfigController, OrchestratorSettings
from core.app import AppConfig, run
from core.logging import disable_file_logging, enable_file_logging, logger, set_level
from core.scheduler import TimerScheduler
from services.orchestrator import ServiceOrchestrator


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Simulate service provisioning, scaling, faults and recovery."
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding default.yaml and an optional override.yaml.",
    )
    parser.add_argument("--services", type=int, default=3, help="Services to provision.")
    parser.add_argument(
        "--duration",
        type=float,
        default=12.0,
        help="Length of the run in seconds.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for metric jitter.")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level.")
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    return parser.parse_args(argv)


def run_diagnostics_report(config_dir: Path | None) -> int:
    from config.diagnostics import probe as config_probe
    from core.diagnostics import probe as core_probe
    from diagnostics.runner import exit_code, format_results, run_diagnostics
    from services.diagnostics import probe as services_probe

    results = run_diagnostics(
        [
            lambda: config_probe(config_dir),
            core_probe,
            services_probe,
        ]
    )
    print(format_results(results))
    return exit_code(results)


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    if args.diagnostics:
        return run_diagnostics_report(args.config_dir)

    config = ConfigController(config_dir=args.config_dir).get_config()
    set_level(args.log_level or config.get("logging_level", "INFO"))
    file_logging = bool(config.get("file_logging_enabled", False))
    if file_logging:
        log_file_path = Path(config.get("log_file") or "logs/csm.log")
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    settings = OrchestratorSettings.from_config(config)
    if args.seed is not None:
        settings = replace(settings, seed=args.seed)

    scheduler = TimerScheduler()
    scheduler.start()
    orchestrator = ServiceOrchestrator(scheduler, settings)
    app_config = AppConfig(service_count=args.services, duration_s=args.duration)

    try:
        return run(app_config, orchestrator)
    except KeyboardInterrupt:
        logger.info("Simulation interrupted by user")
        return 0
    except Exception as exc:
        logger.exception("An unexpected error occurred: %s", exc)
        return 1
    finally:
        if file_logging:
            disable_file_logging()


if __name__ == "__main__":
    raise SystemExit(main())
