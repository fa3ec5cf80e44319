"""
Collector Diagnostics for PC Diag
Error, missing-data and invalid-metric context threaded through one run,
plus the confidence model and its gating
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pcdiag.core.model import ConfidenceModel, HealthDomain, HealthReport, ScanError, SensorSnapshot
from pcdiag.core.sanitizer import sanitize_sensors
from pcdiag.data.heuristics import contains_any, heuristics
from pcdiag.utils.lookup import get_int, lookup

logger = logging.getLogger(__name__)


class CollectionStatus:
    OK = "OK"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"

    LABELS = {OK: "COMPLÈTE", PARTIAL: "PARTIELLE", FAILED: "ÉCHOUÉE"}


@dataclass
class CollectorDiagnostics:
    """Per-run collection context. Built once, then read by every later stage."""

    errors: List[ScanError] = field(default_factory=list)
    missing_data: List[str] = field(default_factory=list)
    top_penalties: List[Dict[str, Any]] = field(default_factory=list)
    invalidated_metrics: List[str] = field(default_factory=list)
    collector_errors_logical: int = 0
    collection_status: str = CollectionStatus.OK
    status_message: str = "Collecte complète"
    sanitized_sensors: Optional[SensorSnapshot] = None

    @property
    def status_label(self) -> str:
        return CollectionStatus.LABELS.get(self.collection_status, self.collection_status)

    def error_strings(self) -> List[str]:
        return [str(error) for error in self.errors]


def _number_text(value: Any) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def _value_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _number_text(value)
    return json.dumps(value, ensure_ascii=False)


def parse_errors(snapshot: Dict[str, Any]) -> List[ScanError]:
    errors = []
    raw_errors = snapshot.get("errors") if isinstance(snapshot, dict) else None
    if not isinstance(raw_errors, list):
        return errors
    for entry in raw_errors:
        if isinstance(entry, dict):
            errors.append(ScanError.from_dict(entry))
    return errors


def parse_missing_data(snapshot: Dict[str, Any]) -> List[str]:
    """Normalize ``missingData`` (list of strings, list of objects or object) into strings."""
    missing: List[str] = []
    if not isinstance(snapshot, dict) or "missingData" not in snapshot:
        return missing

    raw = snapshot["missingData"]
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, str):
                if item:
                    missing.append(item)
            elif isinstance(item, dict):
                for key, value in item.items():
                    missing.append(f"{key}: {_value_text(value)}")
    elif isinstance(raw, dict):
        for key, value in raw.items():
            if isinstance(value, bool):
                missing.append(f"{key}: {'missing' if value else 'disabled'}")
            else:
                missing.append(f"{key}: {_value_text(value)}")
    else:
        logger.debug(f"missingData has unexpected type {type(raw).__name__}")

    return missing


def parse_top_penalties(snapshot: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Normalize ``scoreV2.topPenalties`` (list or object) into penalty dicts."""
    raw = lookup(snapshot, "scoreV2.topPenalties")
    penalties: List[Dict[str, Any]] = []

    if isinstance(raw, list):
        for item in raw:
            if not isinstance(item, dict):
                continue
            penalties.append({
                "source": str(item.get("source") or ""),
                "penalty": get_int(item, "penalty", 0),
                "message": str(item.get("message") or item.get("msg") or ""),
                "type": str(item.get("type") or ""),
            })
    elif isinstance(raw, dict):
        for key, value in raw.items():
            penalty = {"source": key, "penalty": 0, "message": "", "type": ""}
            if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
                penalty["penalty"] = int(value)
            elif isinstance(value, dict):
                penalty["penalty"] = get_int(value, "penalty", 0)
                penalty["message"] = str(value.get("msg") or "")
            elif isinstance(value, str):
                penalty["message"] = value
            penalties.append(penalty)

    return penalties


def _determine_status(diagnostics: CollectorDiagnostics) -> str:
    if diagnostics.collector_errors_logical > 3:
        return CollectionStatus.FAILED
    if diagnostics.collector_errors_logical > 0 or diagnostics.missing_data or diagnostics.invalidated_metrics:
        return CollectionStatus.PARTIAL
    return CollectionStatus.OK


def _status_message(diagnostics: CollectorDiagnostics) -> str:
    if diagnostics.collection_status == CollectionStatus.FAILED:
        return f"Collecte échouée ({diagnostics.collector_errors_logical} erreurs)"
    if diagnostics.collection_status == CollectionStatus.PARTIAL:
        return (f"Collecte partielle ({len(diagnostics.missing_data)} données manquantes, "
                f"{len(diagnostics.invalidated_metrics)} métriques invalides)")
    return "Collecte complète"


def analyze(snapshot: Dict[str, Any], sensors: Optional[SensorSnapshot]) -> CollectorDiagnostics:
    """Build the collection context for one run. The raw snapshot is never modified."""
    diagnostics = CollectorDiagnostics(
        errors=parse_errors(snapshot),
        missing_data=parse_missing_data(snapshot),
        top_penalties=parse_top_penalties(snapshot),
    )

    sanitized, invalidated = sanitize_sensors(sensors)
    diagnostics.sanitized_sensors = sanitized
    diagnostics.invalidated_metrics = invalidated

    diagnostics.collector_errors_logical = len(diagnostics.errors) + len(diagnostics.invalidated_metrics)
    diagnostics.collection_status = _determine_status(diagnostics)
    diagnostics.status_message = _status_message(diagnostics)

    logger.info(
        f"Collector diagnostics: errors={len(diagnostics.errors)}, missing={len(diagnostics.missing_data)}, "
        f"invalid={len(diagnostics.invalidated_metrics)}, logical={diagnostics.collector_errors_logical}, "
        f"status={diagnostics.collection_status}"
    )
    return diagnostics


def compute_confidence(report: HealthReport, sensors: Optional[SensorSnapshot]) -> ConfidenceModel:
    """Score how much the collected data can be trusted (0-100)."""
    model = ConfidenceModel()
    score = 100

    if sensors is None:
        score -= 20
        model.warnings.append("Capteurs hardware natifs non collectés")
    else:
        if not sensors.cpu_temp.available:
            score -= 8
            model.warnings.append(f"Température CPU indisponible ({sensors.cpu_temp.reason or 'capteur absent'})")
        if not sensors.gpu_temp.available:
            score -= 5
            model.warnings.append(f"Température GPU indisponible ({sensors.gpu_temp.reason or 'capteur absent'})")
        if not sensors.vram_total.available or not sensors.vram_used.available:
            score -= 3
            model.warnings.append("VRAM indisponible (limitation driver ou permissions)")
        if not sensors.gpu_load.available:
            score -= 2
            model.warnings.append("Charge GPU indisponible")
        with_temp = sum(1 for disk in sensors.disks if disk.temp.available)
        if sensors.disks and with_temp == 0:
            score -= 5
            model.warnings.append(f"Aucune température disque disponible (0/{len(sensors.disks)} disques)")

    if report.partial_failure:
        score -= 10
        model.warnings.append("Scan partiel - certaines sections manquantes")

    covered = sum(1 for section in report.sections if section.has_data)
    coverage = covered / len(HealthDomain.ALL)
    if coverage < 0.7:
        score -= 8
        model.warnings.append(f"Couverture des sections faible ({coverage:.0%})")

    collector_errors = report.collector_errors_logical or report.breakdown.collector_errors
    if collector_errors > 0:
        penalty = min(collector_errors * 3, 15)
        score -= penalty
        model.warnings.append(f"Erreurs collecteur: {collector_errors} (pénalité -{penalty})")

    if report.breakdown.timeouts > 0:
        penalty = min(report.breakdown.timeouts * 5, 15)
        score -= penalty
        model.warnings.append(f"Timeouts: {report.breakdown.timeouts} (pénalité -{penalty})")

    if report.missing_data:
        penalty = min(len(report.missing_data) * 2, 10)
        score -= penalty
        model.warnings.append(f"Données manquantes: {len(report.missing_data)} éléments")

    critical_errors = sum(
        1 for error in report.errors
        if contains_any(error.code, heuristics["confidence_error_code_markers"])
        or contains_any(error.message, heuristics["confidence_error_message_markers"])
    )
    if critical_errors:
        score -= critical_errors * 3
        model.warnings.append(f"Erreurs critiques détectées: {critical_errors} (WMI/SMART/invalid)")

    model.confidence_score = max(0, min(100, score))
    model.confidence_level = confidence_level(model.confidence_score)
    logger.debug(f"Confidence model: score={model.confidence_score}, warnings={len(model.warnings)}")
    return model


def confidence_level(score: int) -> str:
    if score >= 80:
        return "Élevée"
    if score >= 60:
        return "Moyenne"
    return "Faible"


def apply_confidence_gating(base_confidence: int, diagnostics: CollectorDiagnostics) -> int:
    """Cap a confidence score according to the collection context."""
    confidence = base_confidence

    if diagnostics.collector_errors_logical > 5:
        confidence = min(confidence, 70)
        logger.debug(f"Confidence capped to 70 ({diagnostics.collector_errors_logical} collector errors)")
    elif diagnostics.collector_errors_logical > 0:
        confidence = min(confidence, 85)
        logger.debug(f"Confidence capped to 85 ({diagnostics.collector_errors_logical} collector errors)")

    critical_missing = [m for m in diagnostics.missing_data
                        if contains_any(m, heuristics["critical_missing_markers"])]
    if critical_missing:
        confidence = min(confidence, 75)
        logger.debug(f"Confidence capped to 75 ({len(critical_missing)} critical missing items)")

    if len(diagnostics.invalidated_metrics) > 2:
        confidence = min(confidence, 65)
        logger.debug(f"Confidence capped to 65 ({len(diagnostics.invalidated_metrics)} invalidated metrics)")

    return confidence
