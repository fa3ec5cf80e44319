"""
Remediation Readiness Gate for PC Diag
Decides whether automated fixes may run and sorts every detected issue into
Fixable, SuggestOnly or NotEnoughData
"""

import logging
from typing import List

from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.model import (
    Actionability,
    HealthDomain,
    HealthFinding,
    HealthReport,
    RemediationItem,
    RemediationReadiness,
)
from pcdiag.data.heuristics import contains_any, heuristics
from pcdiag.utils.logger import audit_logger

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 60
BLOCKED_SCORE_CAP = 40
SAFE_FIX_BONUS = 5
NOT_ENOUGH_DATA_MALUS = 10

ITEMS_PER_BUCKET = 3
SAFE_RULES_SHOWN = 4
BOX_WIDTH = 77


def _markers(key: str) -> List[str]:
    return heuristics["readiness_markers"].get(key, [])


def _domain_findings(report: HealthReport, domain: str) -> List[HealthFinding]:
    findings: List[HealthFinding] = []
    for section in report.sections:
        if section.domain == domain:
            findings.extend(section.all_findings())
    return findings


def has_only_safe_errors(diagnostics: CollectorDiagnostics) -> bool:
    markers = heuristics["safe_error_code_markers"]
    return all(contains_any(error.code, markers) for error in diagnostics.errors)


def _classify_updates(readiness: RemediationReadiness, report: HealthReport,
                      diagnostics: CollectorDiagnostics) -> None:
    for finding in _domain_findings(report, HealthDomain.OS):
        if contains_any(finding.source, _markers("update")) or contains_any(finding.description, _markers("update")):
            readiness.fixable.append(RemediationItem(
                issue_id="WU_SERVICE",
                description="Windows Update service arrêté ou mises à jour en attente",
                category="Windows Update",
                actionability=Actionability.FIXABLE,
                suggested_action="Start-Service wuauserv; Get-WindowsUpdate -Install -AcceptAll",
                safety_note=("Redémarrer le service Windows Update est safe. "
                             "L'installation des mises à jour nécessite confirmation."),
                is_safe=True,
                confidence_required=50,
            ))

    for error in diagnostics.errors:
        if not (contains_any(error.code, _markers("update_error_codes"))
                or contains_any(error.message, _markers("update_error_messages"))):
            continue
        if any(item.issue_id == "WU_SERVICE" for item in readiness.fixable):
            continue
        readiness.fixable.append(RemediationItem(
            issue_id="WU_ERROR",
            description=f"Erreur Windows Update: {error.message}",
            category="Windows Update",
            actionability=Actionability.FIXABLE,
            suggested_action="Start-Service wuauserv",
            is_safe=True,
        ))


def _classify_thermal(readiness: RemediationReadiness, report: HealthReport,
                      diagnostics: CollectorDiagnostics) -> None:
    for finding in _domain_findings(report, HealthDomain.STORAGE):
        if contains_any(finding.description, _markers("disk_thermal")):
            readiness.suggest_only.append(RemediationItem(
                issue_id="DISK_THERMAL",
                description=finding.description or "Température disque élevée",
                category="Thermal",
                actionability=Actionability.SUGGEST_ONLY,
                suggested_action="Vérifier ventilation, nettoyer poussière, vérifier emplacement du PC",
                safety_note="Intervention physique requise, non automatisable",
            ))

    cpu_temp_valid = not any(
        contains_any(metric, _markers("cpu_temp_invalid")) for metric in diagnostics.invalidated_metrics
    )
    for finding in _domain_findings(report, HealthDomain.CPU):
        if not contains_any(finding.description, _markers("cpu_thermal")):
            continue
        if cpu_temp_valid:
            readiness.suggest_only.append(RemediationItem(
                issue_id="CPU_THERMAL",
                description=finding.description or "Température CPU élevée",
                category="Thermal",
                actionability=Actionability.SUGGEST_ONLY,
                suggested_action="Vérifier pâte thermique, ventilateur CPU, airflow boîtier",
            ))
        else:
            readiness.not_enough_data.append(RemediationItem(
                issue_id="CPU_THERMAL_INVALID",
                description="Température CPU invalide (capteur défaillant)",
                category="Thermal",
                actionability=Actionability.NOT_ENOUGH_DATA,
                safety_note="Capteur invalide, impossible d'évaluer",
            ))


def _classify_invalid_metrics(readiness: RemediationReadiness, diagnostics: CollectorDiagnostics) -> None:
    for metric in diagnostics.invalidated_metrics:
        readiness.not_enough_data.append(RemediationItem(
            issue_id="INVALID_METRIC",
            description=metric,
            category="Collecte",
            actionability=Actionability.NOT_ENOUGH_DATA,
            safety_note="Métrique invalidée par DataSanitizer",
        ))


def _classify_drivers(readiness: RemediationReadiness, report: HealthReport) -> None:
    for finding in _domain_findings(report, HealthDomain.DRIVERS):
        readiness.suggest_only.append(RemediationItem(
            issue_id="DRIVER_ISSUE",
            description=finding.description or "Problème de pilote",
            category="Drivers",
            actionability=Actionability.SUGGEST_ONLY,
            suggested_action="Mettre à jour le pilote via Windows Update ou le site du fabricant",
        ))


def _classify_disk_space(readiness: RemediationReadiness, report: HealthReport) -> None:
    for finding in _domain_findings(report, HealthDomain.STORAGE):
        if contains_any(finding.description, _markers("disk_space")):
            readiness.fixable.append(RemediationItem(
                issue_id="DISK_SPACE",
                description=finding.description or "Espace disque faible",
                category="Storage",
                actionability=Actionability.FIXABLE,
                suggested_action="Clear-RecycleBin; Remove-Item $env:TEMP\\* -Recurse; cleanmgr /sagerun:1",
                safety_note="Nettoyage fichiers temporaires et corbeille est safe",
                is_safe=True,
                confidence_required=40,
            ))


def readiness_score(readiness: RemediationReadiness, confidence_score: int) -> int:
    score = confidence_score
    score += SAFE_FIX_BONUS * sum(1 for item in readiness.fixable if item.is_safe)
    score -= NOT_ENOUGH_DATA_MALUS * len(readiness.not_enough_data)
    if not readiness.auto_fix_allowed:
        score = min(score, BLOCKED_SCORE_CAP)
    return max(0, min(100, score))


def evaluate(report: HealthReport, diagnostics: CollectorDiagnostics, confidence_score: int) -> RemediationReadiness:
    """Evaluate the remediation gate and classify every detected issue.

    The gate and the classification are independent: issues are bucketed even
    when automated fixes are blocked.
    """
    readiness = RemediationReadiness()

    if confidence_score < MIN_CONFIDENCE:
        readiness.block_reason = f"Confiance trop faible ({confidence_score}/100 < {MIN_CONFIDENCE})"
    elif diagnostics.collector_errors_logical > 0 and not has_only_safe_errors(diagnostics):
        readiness.block_reason = f"Erreurs collecteur non-safe ({diagnostics.collector_errors_logical})"
    else:
        readiness.auto_fix_allowed = True

    _classify_updates(readiness, report, diagnostics)
    _classify_thermal(readiness, report, diagnostics)
    _classify_invalid_metrics(readiness, diagnostics)
    _classify_drivers(readiness, report)
    _classify_disk_space(readiness, report)

    readiness.readiness_score = readiness_score(readiness, confidence_score)

    audit_logger.log_gate_decision(readiness.auto_fix_allowed, readiness.readiness_score, readiness.block_reason)
    logger.info(
        f"Readiness: score={readiness.readiness_score}, fixable={len(readiness.fixable)}, "
        f"suggest_only={len(readiness.suggest_only)}, not_enough_data={len(readiness.not_enough_data)}"
    )
    return readiness


def format_readiness_section(readiness: RemediationReadiness) -> str:
    """Fixed-width text block for the plain-text report."""
    lines = [
        "  ┌─ LLM AUTOFIX READINESS " + "─" * (BOX_WIDTH - 27) + "┐",
        f"  │  Score Readiness    : {readiness.readiness_score}/100",
        f"  │  AutoFix            : {'✅ AUTORISÉ' if readiness.auto_fix_allowed else '❌ BLOQUÉ'}",
    ]
    if not readiness.auto_fix_allowed and readiness.block_reason:
        lines.append(f"  │  Raison blocage     : {readiness.block_reason}")

    lines.append("  │")
    buckets = (
        ("📗 Fixable (auto)   ", readiness.fixable),
        ("📙 Suggest-only     ", readiness.suggest_only),
        ("📕 Not enough data  ", readiness.not_enough_data),
    )
    for label, items in buckets:
        lines.append(f"  │  {label}: {len(items)} item(s)")
        for item in items[:ITEMS_PER_BUCKET]:
            lines.append(f"  │    • {item.description}")

    lines.append("  │")
    lines.append("  │  🔒 RÈGLES SAFE (AutoFix autorisé sans confirmation):")
    for rule in readiness.safe_rules[:SAFE_RULES_SHOWN]:
        lines.append(f"  │    ✓ {rule}")
    lines.append("  └" + "─" * BOX_WIDTH + "┘")

    return "\n".join(lines)
