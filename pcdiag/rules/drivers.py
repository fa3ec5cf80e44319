"""
Driver Rules for PC Diag
Devices reporting errors and unsigned drivers
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.utils.lookup import get_int


METADATA = {
    "id": "drivers",
    "name": "Driver Checks",
    "category": "drivers",
    "severity_hint": "Medium",
    "order": 70,
    "issue_types": ["DriversInError", "UnsignedDrivers"],
    "implemented": True,
}


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    findings: List[Finding] = []

    error_devices = get_int(snapshot, "sections.DevicesDrivers.data.errorDevices")
    if error_devices is not None and error_devices > 0:
        findings.append(Finding(
            issue_type="DriversInError",
            severity=FindingSeverity.HIGH if error_devices > 3 else FindingSeverity.MEDIUM,
            confidence=100,
            auto_fix_possible=True,
            risk_level=RiskLevel.MEDIUM,
            description=f"{error_devices} périphériques en erreur détectés",
            suggested_action=("Ouvrir Gestionnaire de périphériques (devmgmt.msc), identifier périphériques avec "
                              "icône jaune/rouge, clic droit > Mettre à jour le pilote ou Désinstaller puis redémarrer"),
            source="DevicesDrivers",
        ))

    total = get_int(snapshot, "sections.DevicesDrivers.data.totalDrivers")
    signed = get_int(snapshot, "sections.DevicesDrivers.data.signedDrivers")
    if total is not None and signed is not None and total - signed > 0:
        findings.append(Finding(
            issue_type="UnsignedDrivers",
            severity=FindingSeverity.MEDIUM,
            confidence=95,
            auto_fix_possible=False,
            risk_level=RiskLevel.NOT_APPLICABLE,
            description=f"{total - signed} pilotes non signés détectés (risque sécurité)",
            suggested_action=("Identifier pilotes non signés dans Gestionnaire de périphériques, remplacer par "
                              "versions officielles signées du fabricant"),
            source="DevicesDrivers",
        ))

    return findings
