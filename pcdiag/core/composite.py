"""
Composite Score Orchestrator for PC Diag
Combines machine health, data reliability and diagnostic clarity into the
single composite index of one run
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pcdiag.core import analyzers, reliability
from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.findings import FindingsBuilder, evaluate_safety_gate
from pcdiag.core.grade_engine import determine_grade
from pcdiag.core.model import (
    CompositeIndex,
    HealthDomain,
    HealthReport,
    SectionSummary,
    SensorSnapshot,
)
from pcdiag.core.rule_loader import RuleContext
from pcdiag.data.heuristics import contains_any, heuristics
from pcdiag.utils.logger import audit_logger

logger = logging.getLogger(__name__)

# How much a degraded domain drags the composite index; distinct from the
# letter-grade domain weights.
DOMAIN_PRIORITY = {
    HealthDomain.OS: "Critical",
    HealthDomain.STORAGE: "Critical",
    HealthDomain.CPU: "High",
    HealthDomain.GPU: "High",
    HealthDomain.RAM: "High",
    HealthDomain.STABILITY: "High",
    HealthDomain.NETWORK: "Medium",
    HealthDomain.DRIVERS: "Low",
}

PRIORITY_WEIGHTS = {
    "Critical": 25,
    "High": 20,
    "Medium": 10,
    "Low": 5,
}

MAX_SECTION_DEDUCTION = 15

HEALTH_WEIGHT = 0.7
RELIABILITY_WEIGHT = 0.2
CLARITY_WEIGHT = 0.1

COMPOSITE_MESSAGES = (
    (95, "État excellent — diagnostic fiable."),
    (80, "Bon état — quelques points à surveiller."),
    (60, "État dégradé — actions recommandées."),
    (40, "État préoccupant — intervention conseillée."),
)
CRITICAL_MESSAGE = "État critique — intervention urgente."
ENGINE_ERROR_MESSAGE = "Impossible d'évaluer — erreur moteur."


def _clamp(value: float) -> int:
    return max(0, min(100, int(value)))


def domain_priority(domain: str) -> str:
    return DOMAIN_PRIORITY.get(domain, "Low")


def composite_message(score: int) -> str:
    for threshold, message in COMPOSITE_MESSAGES:
        if score >= threshold:
            return message
    return CRITICAL_MESSAGE


def _temperature(reading) -> Optional[float]:
    if reading is None or not reading.available:
        return None
    return reading.number


def compute_machine_health(report: HealthReport,
                           sensors: Optional[SensorSnapshot]) -> Tuple[int, Dict[str, int]]:
    """Machine health score and the uncapped deduction total per priority."""
    score = 100
    breakdown = {priority: 0 for priority in PRIORITY_WEIGHTS}

    for section in report.sections:
        if not section.has_data:
            continue
        priority = domain_priority(section.domain)
        weight = PRIORITY_WEIGHTS.get(priority, 5)
        penalty = 100 - max(0, min(100, section.score))
        if penalty > 0:
            deduct = int(round(penalty * weight / 25.0))
            score -= min(deduct, MAX_SECTION_DEDUCTION)
            breakdown[priority] += deduct

    if any(contains_any(e.code, heuristics["hardware_error_code_markers"]) for e in report.errors):
        score -= 10
    if any(contains_any(e.code, heuristics["security_error_code_markers"])
           or contains_any(e.message, heuristics["security_error_message_markers"])
           for e in report.errors):
        score -= 15

    if sensors is not None:
        cpu_temp = _temperature(sensors.cpu_temp)
        if cpu_temp is not None and cpu_temp > 90:
            score -= 20
        elif cpu_temp is not None and cpu_temp > 80:
            score -= 10

        gpu_temp = _temperature(sensors.gpu_temp)
        if gpu_temp is not None and gpu_temp > 95:
            score -= 20
        elif gpu_temp is not None and gpu_temp > 85:
            score -= 10

    return _clamp(score), breakdown


def compute_clarity(report: HealthReport, diagnostics: Optional[CollectorDiagnostics]) -> int:
    score = 100
    if diagnostics is not None:
        if diagnostics.invalidated_metrics:
            score -= min(20, 5 * len(diagnostics.invalidated_metrics))
        if len(diagnostics.missing_data) > 5:
            score -= 10
    if report.findings_count() == 0 and not any(section.has_data for section in report.sections):
        score -= 15
    return _clamp(score)


def combine(machine_health: int, data_reliability: int, diagnostic_clarity: int) -> int:
    raw = HEALTH_WEIGHT * machine_health + RELIABILITY_WEIGHT * data_reliability + CLARITY_WEIGHT * diagnostic_clarity
    return _clamp(round(raw))


def section_status(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Bon"
    if score >= 50:
        return "À surveiller"
    if score >= 30:
        return "Dégradé"
    return "Critique"


def build_sections_summary(report: HealthReport) -> List[SectionSummary]:
    summaries = []
    for section in report.sections:
        findings = section.all_findings()
        summaries.append(SectionSummary(
            section_name=section.domain,
            score=section.score,
            status=section_status(section.score),
            priority=domain_priority(section.domain),
            has_data=section.has_data,
            recommendation=findings[0].description if findings else "",
        ))
    return summaries


class CompositeEngine:
    """Computes the composite index of one graded report."""

    def __init__(self, findings_builder: Optional[FindingsBuilder] = None):
        self.logger = logging.getLogger(__name__)
        self.findings_builder = findings_builder or FindingsBuilder()

    def compute(self,
                report: HealthReport,
                snapshot: Optional[Dict[str, Any]],
                sensors: Optional[SensorSnapshot],
                diagnostics: Optional[CollectorDiagnostics]) -> CompositeIndex:
        try:
            return self._compute(report, snapshot, sensors, diagnostics)
        except Exception as e:
            self.logger.error(f"Composite computation failed: {e}", exc_info=True)
            audit_logger.log_fallback("composite", str(e))
            return CompositeIndex(composite_score=0, grade="?", message=ENGINE_ERROR_MESSAGE)

    def _compute(self,
                 report: HealthReport,
                 snapshot: Optional[Dict[str, Any]],
                 sensors: Optional[SensorSnapshot],
                 diagnostics: Optional[CollectorDiagnostics]) -> CompositeIndex:
        index = CompositeIndex()
        collector_errors = report.collector_errors_logical
        missing = list(report.missing_data)

        has_security = reliability.has_security_data(missing)
        has_smart = reliability.has_smart_data(report)
        smart_suspect = reliability.is_smart_suspect(report)

        index.data_reliability_score = reliability.compute(collector_errors, missing, has_security, has_smart)
        index.machine_health_score, index.machine_health_breakdown = compute_machine_health(report, sensors)
        index.diagnostic_clarity_score = compute_clarity(report, diagnostics)

        index.composite_score = combine(
            index.machine_health_score, index.data_reliability_score, index.diagnostic_clarity_score
        )
        index.grade, _ = determine_grade(index.composite_score)
        index.message = composite_message(index.composite_score)

        if snapshot is not None:
            index.cpu_performance_tier = analyzers.analyze_cpu_profile(snapshot).performance_tier
            index.system_stability_index = analyzers.compute_stability_index(
                analyzers.extract_stability_inputs(snapshot)
            )

            boot = analyzers.analyze_boot(snapshot)
            index.boot_health_score = boot.score
            index.boot_health_tier = boot.tier
            index.boot_time_seconds = boot.boot_time_seconds

            storage_io = analyzers.analyze_storage_io(snapshot)
            index.storage_io_score = storage_io.score
            index.storage_io_status = storage_io.status

        thermal = analyzers.analyze_thermal(sensors)
        index.thermal_score = thermal.score
        index.thermal_status = thermal.status

        index.sections_summary = build_sections_summary(report)

        context = RuleContext(
            confidence=index.data_reliability_score,
            sensors=sensors,
            report=report,
            missing_data=missing,
        )
        index.findings = self.findings_builder.build(report, snapshot, index.data_reliability_score, context)
        index.auto_fix_allowed, index.block_reason = evaluate_safety_gate(
            index.data_reliability_score,
            collector_errors,
            has_security,
            smart_suspect and not has_smart,
        )

        self.logger.info(
            f"Composite: MHS={index.machine_health_score} DRS={index.data_reliability_score} "
            f"DCS={index.diagnostic_clarity_score} => {index.composite_score} Grade={index.grade}"
        )
        return index


def compute_composite(report: HealthReport,
                      snapshot: Optional[Dict[str, Any]],
                      sensors: Optional[SensorSnapshot],
                      diagnostics: Optional[CollectorDiagnostics]) -> CompositeIndex:
    return CompositeEngine().compute(report, snapshot, sensors, diagnostics)
