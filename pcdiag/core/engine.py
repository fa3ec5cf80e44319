"""
PC Diag Engine
Main orchestrator running the diagnostic stages over one snapshot
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pcdiag import __version__
from pcdiag.core import diagnostics as collector
from pcdiag.core import readiness as remediation
from pcdiag.core.composite import ENGINE_ERROR_MESSAGE, CompositeEngine
from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.evidence import SnapshotError, build_health_report, extract_sensors, merge_sensor_metrics
from pcdiag.core.findings import FindingsBuilder
from pcdiag.core.grade_engine import FALLBACK_VERDICT, GradeEngine
from pcdiag.core.model import (
    CompositeIndex,
    Finding,
    GradeResult,
    HealthReport,
    RemediationReadiness,
    SensorSnapshot,
)
from pcdiag.core.rule_loader import RuleLoader
from pcdiag.utils.logger import audit_logger


@dataclass
class DiagnosticResult:
    """Outputs of one diagnostic run. ``timestamp`` and ``duration_seconds`` are not compared."""

    report: HealthReport
    grade: GradeResult
    composite: CompositeIndex
    readiness: RemediationReadiness
    diagnostics: CollectorDiagnostics
    confidence_score: int = 0
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat(), compare=False)
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def findings(self) -> List[Finding]:
        return self.composite.findings

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": {
                "tool": "PC Diag",
                "version": __version__,
                "generated_at": self.timestamp,
                "duration_seconds": round(self.duration_seconds, 3),
                "error": self.error,
            },
            "composite": asdict(self.composite),
            "grade": asdict(self.grade),
            "readiness": asdict(self.readiness),
            "confidence_score": self.confidence_score,
            "collection": {
                "status": self.diagnostics.collection_status,
                "status_label": self.diagnostics.status_label,
                "status_message": self.diagnostics.status_message,
                "collector_errors_logical": self.diagnostics.collector_errors_logical,
                "errors": self.diagnostics.error_strings(),
                "missing_data": list(self.diagnostics.missing_data),
                "invalidated_metrics": list(self.diagnostics.invalidated_metrics),
            },
            "report": asdict(self.report),
        }


class DiagnosticEngine:
    """Runs validation, scoring, finding classification, readiness and the composite index."""

    def __init__(self,
                 rules_dir: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

        self.rule_loader = RuleLoader(rules_dir)
        loaded_count = self.rule_loader.load_all_rules()
        if loaded_count == 0:
            self.logger.warning("No finding rules loaded - only section and collector findings will be reported")

        self.grade_engine = GradeEngine()
        self.composite_engine = CompositeEngine(FindingsBuilder(self.rule_loader))

    def run(self,
            snapshot: Dict[str, Any],
            sensors: Optional[SensorSnapshot] = None) -> DiagnosticResult:
        """Assess one snapshot. Never raises; an internal failure yields the pessimistic result."""
        start_time = time.monotonic()
        try:
            result = self._run(snapshot, sensors)
        except Exception as e:
            self.logger.error(f"Diagnostic run failed: {e}", exc_info=True)
            audit_logger.log_fallback("engine", str(e))
            result = self.pessimistic_result(str(e))

        result.duration_seconds = time.monotonic() - start_time
        return result

    def _run(self, snapshot: Dict[str, Any], sensors: Optional[SensorSnapshot]) -> DiagnosticResult:
        if not isinstance(snapshot, dict):
            raise SnapshotError(f"Snapshot root must be an object, got {type(snapshot).__name__}")

        if sensors is None:
            sensors = extract_sensors(snapshot)

        # Stage 1: collection context and metric reconciliation
        diagnostics = collector.analyze(snapshot, sensors)
        merged = merge_sensor_metrics(sensors, snapshot)
        report = build_health_report(snapshot, diagnostics, merged)

        report.confidence = collector.compute_confidence(report, diagnostics.sanitized_sensors)
        confidence_score = collector.apply_confidence_gating(report.confidence.confidence_score, diagnostics)
        self.logger.info(f"Confidence: {report.confidence.confidence_score} (gated: {confidence_score})")

        # Stages 2-3: domain scores and global grade
        grade = self.grade_engine.apply_grades(report)

        # Stage 5: remediation readiness
        readiness = remediation.evaluate(report, diagnostics, confidence_score)

        # Stages 4 and 6: findings and composite index
        composite = self.composite_engine.compute(report, snapshot, diagnostics.sanitized_sensors, diagnostics)

        self.logger.info(
            f"Run complete: grade {grade.grade} ({grade.final_score}/100), composite {composite.composite_score}, "
            f"{len(composite.findings)} findings, auto-fix {'allowed' if readiness.auto_fix_allowed else 'blocked'}"
        )

        return DiagnosticResult(
            report=report,
            grade=grade,
            composite=composite,
            readiness=readiness,
            diagnostics=diagnostics,
            confidence_score=confidence_score,
        )

    @staticmethod
    def pessimistic_result(error: str) -> DiagnosticResult:
        return DiagnosticResult(
            report=HealthReport(global_score=0, grade="?", global_message=FALLBACK_VERDICT),
            grade=GradeResult(raw_score=0, final_score=0, grade="?", verdict=FALLBACK_VERDICT),
            composite=CompositeIndex(composite_score=0, grade="?", message=ENGINE_ERROR_MESSAGE),
            readiness=RemediationReadiness(
                readiness_score=0,
                auto_fix_allowed=False,
                block_reason=ENGINE_ERROR_MESSAGE,
            ),
            diagnostics=CollectorDiagnostics(),
            confidence_score=0,
            error=error,
        )
