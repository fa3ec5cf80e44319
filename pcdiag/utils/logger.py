"""
Logger Utility for PC Diag
Provides consistent logging configuration and the metric audit trail
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler


FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def setup_logger(verbosity: int = 1,
                 log_file: Optional[str] = None,
                 logger_name: str = "pcdiag") -> logging.Logger:
    """Set up logger with console and file output."""

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if verbosity >= 2 else logging.INFO)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with rich formatting
    console = Console(stderr=True)
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=(verbosity >= 2),
        rich_tracebacks=True,
        markup=False
    )

    if verbosity <= 0:
        console_level = logging.WARNING
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = logs_dir / f"pcdiag_{timestamp}.log"

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)

    logger.debug(f"Detailed logs saved to: {log_path}")
    return logger


class MetricAuditLogger:
    """Audit trail for discarded metrics and remediation gate decisions."""

    def __init__(self, audit_log_file: Optional[str] = None):
        self.logger = logging.getLogger("pcdiag.audit")
        self.logger.setLevel(logging.DEBUG)
        self.audit_log_file = Path(audit_log_file) if audit_log_file else None

        if self.audit_log_file:
            self.audit_log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(self.audit_log_file, encoding='utf-8')
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(
                "%(asctime)s - AUDIT - %(levelname)s - %(message)s"
            ))
            self.logger.addHandler(handler)

    def log_rejection(self, metric: str, value: Any, rule: str, reason: str):
        """Log a reading rejected as sentinel or out of range."""
        self.logger.warning(
            f"METRIC_REJECTED - Metric: {metric} - Value: {value} - "
            f"Rule: {rule} - Reason: {reason}"
        )

    def log_merge(self, metric: str, source: str, detail: str):
        """Log which producer won a merge."""
        self.logger.debug(
            f"METRIC_MERGE - Metric: {metric} - Source: {source} - {detail}"
        )

    def log_sanitized(self, metric: str, value: Any, reason: str):
        """Log a native sensor reading hidden by the sanitizer."""
        self.logger.info(
            f"SANITIZE - Metric: {metric} - Value: {value} - Hidden: {reason}"
        )

    def log_gate_decision(self, allowed: bool, score: int, reason: Optional[str] = None):
        """Log the remediation gate outcome."""
        status = "ALLOWED" if allowed else "BLOCKED"
        self.logger.info(
            f"AUTOFIX_GATE - Status: {status} - Readiness: {score} - "
            f"Reason: {reason or 'None'}"
        )

    def log_fallback(self, stage: str, error: str):
        """Log a stage that fell back to its pessimistic result."""
        self.logger.error(f"PESSIMISTIC_FALLBACK - Stage: {stage} - Error: {error}")


audit_logger = MetricAuditLogger()
