"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml


DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent

_DEFAULTS: dict[str, dict[str, Any]] = {
    "simulation": {
        "seed": None,
        "service_type": "mapreduce",
    },
    "timings": {
        "provision_delay_s": 2.0,
        "scale_delay_s": 1.5,
        "recovery_delay_s": 1.0,
    },
    "monitoring": {
        "interval_s": 2.0,
        "cpu_threshold": 85.0,
        "memory_threshold": 85.0,
    },
    "logs": {
        "event_capacity": 100,
        "alert_capacity": 50,
    },
    "alerts": {
        "cooldown_s": 0.0,
    },
}


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


class ConfigController:
    """Load the default configuration and merge overrides on top of it."""

    def __init__(
        self,
        config_dir: str | Path | None = None,
        config_file: str = "default.yaml",
    ) -> None:
        resolved_dir = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
        self.paths = ConfigPaths(
            config_dir=resolved_dir,
            config_file=resolved_dir / config_file,
            override_file=resolved_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from default and override YAML files."""

        with self.paths.config_file.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}

        if self.paths.override_file.exists():
            with self.paths.override_file.open("r", encoding="utf-8") as file:
                override_config = yaml.safe_load(file) or {}
            if override_config:
                config = self._deep_merge(config, override_config)

        self.config = self._normalize_config(config)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    def get_section(self, name: str) -> dict[str, Any]:
        return dict(self.config.get(name) or {})

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _normalize_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Fill missing sections with defaults and coerce value types."""

        normalized = self._deep_merge(_DEFAULTS, dict(config))
        for section, defaults in _DEFAULTS.items():
            if not isinstance(normalized.get(section), dict):
                normalized[section] = dict(defaults)
        normalized["logging_level"] = str(normalized.get("logging_level", "INFO")).upper()
        normalized["file_logging_enabled"] = bool(normalized.get("file_logging_enabled", False))

        simulation_cfg = dict(normalized["simulation"])
        seed = simulation_cfg.get("seed")
        simulation_cfg["seed"] = int(seed) if seed is not None else None
        simulation_cfg["service_type"] = str(simulation_cfg.get("service_type") or "mapreduce")
        normalized["simulation"] = simulation_cfg

        timings_cfg = dict(normalized["timings"])
        for key in ("provision_delay_s", "scale_delay_s", "recovery_delay_s"):
            value = float(timings_cfg[key])
            if value < 0:
                raise ValueError(f"timings.{key} must be >= 0, got {value}")
            timings_cfg[key] = value
        normalized["timings"] = timings_cfg

        monitoring_cfg = dict(normalized["monitoring"])
        monitoring_cfg["interval_s"] = float(monitoring_cfg["interval_s"])
        if monitoring_cfg["interval_s"] <= 0:
            raise ValueError(
                f"monitoring.interval_s must be positive, got {monitoring_cfg['interval_s']}"
            )
        monitoring_cfg["cpu_threshold"] = float(monitoring_cfg["cpu_threshold"])
        monitoring_cfg["memory_threshold"] = float(monitoring_cfg["memory_threshold"])
        normalized["monitoring"] = monitoring_cfg

        logs_cfg = dict(normalized["logs"])
        for key in ("event_capacity", "alert_capacity"):
            value = int(logs_cfg[key])
            if value <= 0:
                raise ValueError(f"logs.{key} must be positive, got {value}")
            logs_cfg[key] = value
        normalized["logs"] = logs_cfg

        alerts_cfg = dict(normalized["alerts"])
        alerts_cfg["cooldown_s"] = float(alerts_cfg.get("cooldown_s", 0.0))
        normalized["alerts"] = alerts_cfg
        return normalized


@dataclass(frozen=True)
class OrchestratorSettings:
    """Typed settings consumed by the orchestrator and its services."""

    service_type: str = "mapreduce"
    seed: int | None = None
    provision_delay_s: float = 2.0
    scale_delay_s: float = 1.5
    recovery_delay_s: float = 1.0
    monitoring_interval_s: float = 2.0
    cpu_threshold: float = 85.0
    memory_threshold: float = 85.0
    event_capacity: int = 100
    alert_capacity: int = 50
    alert_cooldown_s: float = 0.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "OrchestratorSettings":
        simulation_cfg = config.get("simulation") or {}
        timings_cfg = config.get("timings") or {}
        monitoring_cfg = config.get("monitoring") or {}
        logs_cfg = config.get("logs") or {}
        alerts_cfg = config.get("alerts") or {}
        seed = simulation_cfg.get("seed")
        return cls(
            service_type=str(simulation_cfg.get("service_type", cls.service_type)),
            seed=int(seed) if seed is not None else None,
            provision_delay_s=float(timings_cfg.get("provision_delay_s", cls.provision_delay_s)),
            scale_delay_s=float(timings_cfg.get("scale_delay_s", cls.scale_delay_s)),
            recovery_delay_s=float(timings_cfg.get("recovery_delay_s", cls.recovery_delay_s)),
            monitoring_interval_s=float(monitoring_cfg.get("interval_s", cls.monitoring_interval_s)),
            cpu_threshold=float(monitoring_cfg.get("cpu_threshold", cls.cpu_threshold)),
            memory_threshold=float(monitoring_cfg.get("memory_threshold", cls.memory_threshold)),
            event_capacity=int(logs_cfg.get("event_capacity", cls.event_capacity)),
            alert_capacity=int(logs_cfg.get("alert_capacity", cls.alert_capacity)),
            alert_cooldown_s=float(alerts_cfg.get("cooldown_s", cls.alert_cooldown_s)),
        )
