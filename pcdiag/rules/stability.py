"""
Stability Rules for PC Diag
Restore points, application crashes and memory dumps
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.utils.lookup import get_int


METADATA = {
    "id": "stability",
    "name": "Stability Checks",
    "category": "stability",
    "severity_hint": "High",
    "order": 30,
    "issue_types": ["NoRecentRestorePoint", "FrequentAppCrashes", "SystemCrashes"],
    "implemented": True,
}


def _restore_points(snapshot: Dict[str, Any]) -> List[Finding]:
    count = get_int(snapshot, "sections.RestorePoints.data.restorePointCount")
    if count is None:
        return []

    if count == 0:
        description = "Aucun point de restauration système"
        action = ("Enable-ComputerRestore -Drive 'C:\\'; Checkpoint-Computer -Description "
                  "'PCDiagnostic_Manual_Checkpoint' -RestorePointType 'MODIFY_SETTINGS'")
    else:
        age = get_int(snapshot, "sections.RestorePoints.data.lastPointAgeDays")
        if age is None or age <= 30:
            return []
        description = f"Dernier point de restauration: il y a {age} jours"
        action = "Checkpoint-Computer -Description 'PCDiagnostic_Manual_Checkpoint' -RestorePointType 'MODIFY_SETTINGS'"

    return [Finding(
        issue_type="NoRecentRestorePoint",
        severity=FindingSeverity.MEDIUM,
        confidence=100,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=description,
        suggested_action=action,
        source="RestorePoints",
    )]


def _app_crashes(snapshot: Dict[str, Any]) -> List[Finding]:
    crashes = get_int(snapshot, "sections.ReliabilityHistory.data.appCrashes")
    if crashes is None or crashes <= 10:
        return []
    return [Finding(
        issue_type="FrequentAppCrashes",
        severity=FindingSeverity.MEDIUM,
        confidence=85,
        auto_fix_possible=False,
        risk_level=RiskLevel.NOT_APPLICABLE,
        description=f"{crashes} crashes d'applications détectés (30 derniers jours)",
        suggested_action=("Ouvrir Reliability Monitor (perfmon /rel), identifier applications problématiques, "
                          "mettre à jour ou désinstaller"),
        source="ReliabilityHistory",
    )]


def _system_crashes(snapshot: Dict[str, Any]) -> List[Finding]:
    dumps = get_int(snapshot, "sections.MinidumpAnalysis.data.minidumpCount")
    if dumps is None or dumps <= 3:
        return []
    return [Finding(
        issue_type="SystemCrashes",
        severity=FindingSeverity.HIGH,
        confidence=90,
        auto_fix_possible=False,
        risk_level=RiskLevel.NOT_APPLICABLE,
        description=f"{dumps} dumps mémoire détectés (Blue Screen of Death / BSOD)",
        suggested_action=("Analyser dumps avec WinDbg, vérifier pilotes récemment installés, tester mémoire RAM "
                          "avec Windows Memory Diagnostic (mdsched.exe)"),
        source="MinidumpAnalysis",
    )]


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    findings: List[Finding] = []
    findings.extend(_restore_points(snapshot))
    findings.extend(_app_crashes(snapshot))
    findings.extend(_system_crashes(snapshot))
    return findings
