"""Tests for the rich logging helpers and file logging."""

from __future__ import annotations

import logging
import logging.handlers
import random

import pytest
from rich.text import Text

import core.logging as csm_logging
import main
from core.app import report_alerts
from core.scheduler import ManualScheduler
from services.orchestrator import ServiceOrchestrator


class _RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def records():
    handler = _RecordingHandler()
    previous_level = csm_logging.logger.level
    csm_logging.logger.setLevel(logging.DEBUG)
    csm_logging.logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        csm_logging.logger.removeHandler(handler)
        csm_logging.logger.setLevel(previous_level)


def test_helpers_emit_styled_text(records) -> None:
    csm_logging.log_info("banner", style="bold cyan")
    csm_logging.log_warning("careful")
    csm_logging.log_error("broken")

    assert [record.levelno for record in records] == [logging.INFO, logging.WARNING, logging.ERROR]
    assert all(isinstance(record.msg, Text) for record in records)
    assert [str(record.msg.style) for record in records] == ["bold cyan", "bold yellow", "bold red"]
    assert records[0].getMessage() == "banner"


def test_set_level_falls_back_to_info_for_unknown_names() -> None:
    previous_level = csm_logging.logger.level
    try:
        assert csm_logging.set_level("debug") == logging.DEBUG
        assert csm_logging.set_level("chatty") == logging.INFO
    finally:
        csm_logging.logger.setLevel(previous_level)


def test_report_alerts_styles_by_severity(records) -> None:
    scheduler = ManualScheduler()
    orchestrator = ServiceOrchestrator(scheduler, rng=random.Random(1))
    orchestrator.provision_service("svc-1")
    scheduler.advance(2.0)
    orchestrator.inject_fault("svc-1")

    report_alerts(orchestrator)

    alert_records = [record for record in records if isinstance(record.msg, Text)]
    assert len(alert_records) == 1
    assert alert_records[0].levelno == logging.ERROR
    assert alert_records[0].getMessage() == "Alert [critical] CRITICAL: Service svc-1 in degraded state"


def test_file_logging_writes_and_detaches(tmp_path) -> None:
    log_path = tmp_path / "logs" / "csm.log"

    csm_logging.enable_file_logging(log_path)
    try:
        csm_logging.log_warning("written to disk")
    finally:
        csm_logging.disable_file_logging()

    assert "written to disk" in log_path.read_text(encoding="utf-8")
    assert not any(
        isinstance(handler, logging.handlers.QueueHandler)
        for handler in csm_logging.logger.handlers
    )


def test_main_run_logs_to_file_and_detaches(tmp_path) -> None:
    log_path = tmp_path / "run.log"
    (tmp_path / "default.yaml").write_text(
        f"file_logging_enabled: true\nlog_file: {log_path.as_posix()}\n",
        encoding="utf-8",
    )

    exit_code = main.main(["--config-dir", str(tmp_path), "--services", "1", "--duration", "0"])

    assert exit_code == 0
    content = log_path.read_text(encoding="utf-8")
    assert "Starting CSM simulation with 1 service(s)" in content
    assert "Final health" in content
    assert csm_logging._queue_listener is None
