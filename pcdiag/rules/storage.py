"""
Storage Rules for PC Diag
SMART health status and disk temperatures reported by the SMART collector
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.data.heuristics import heuristics
from pcdiag.utils.lookup import get_list, get_str, has_path, lookup


METADATA = {
    "id": "storage",
    "name": "Disk Health Checks",
    "category": "storage",
    "severity_hint": "Critical",
    "order": 50,
    "issue_types": ["SmartWarning", "HighDiskTemperature"],
    "implemented": True,
}


def _disk_findings(disk: Dict[str, Any]) -> List[Finding]:
    findings = []
    model = get_str(disk, "model") or "Disque inconnu"

    bad_health = {value.lower() for value in heuristics["smart_bad_health"]}
    health = get_str(disk, "health")
    if health and health.lower() in bad_health:
        findings.append(Finding(
            issue_type="SmartWarning",
            severity=FindingSeverity.CRITICAL,
            confidence=95,
            auto_fix_possible=False,
            risk_level=RiskLevel.NOT_APPLICABLE,
            description=f"Disque {model}: SMART indique problème ({health})",
            suggested_action="URGENT: Sauvegarder immédiatement toutes données importantes, planifier remplacement disque dès que possible",
            source="SmartDetails",
        ))

    temp = lookup(disk, "temperature")
    if isinstance(temp, (int, float)) and not isinstance(temp, bool) and temp > 50:
        temp = int(temp)
        findings.append(Finding(
            issue_type="HighDiskTemperature",
            severity=FindingSeverity.HIGH if temp > 60 else FindingSeverity.MEDIUM,
            confidence=90,
            auto_fix_possible=False,
            risk_level=RiskLevel.NOT_APPLICABLE,
            description=f"Disque {model}: Température élevée {temp}°C (recommandé < 45°C)",
            suggested_action="Améliorer ventilation boîtier, vérifier circulation d'air, nettoyer ventilateurs",
            source="SmartDetails",
        ))

    return findings


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    findings: List[Finding] = []
    for disk in get_list(snapshot, "sections.SmartDetails.data.disks"):
        # Entries without a model key are not disk records
        if not has_path(disk, "model"):
            continue
        findings.extend(_disk_findings(disk))
    return findings
