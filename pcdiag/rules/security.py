"""
Security Rules for PC Diag
Defender, UAC, firewall profiles, Windows Update backlog and critical events
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.utils.lookup import get_bool, get_int, lookup


METADATA = {
    "id": "security",
    "name": "Security Checks",
    "category": "security",
    "severity_hint": "Critical",
    "order": 20,
    "issue_types": [
        "DefenderDisabled",
        "UacDisabled",
        "FirewallDisabled",
        "CriticalUpdates",
        "UpdateCheckOverdue",
        "HighCriticalEvents",
    ],
    "implemented": True,
}

FIREWALL_PROFILES = ("Domain", "Private", "Public")


def _defender(snapshot: Dict[str, Any]) -> List[Finding]:
    if get_bool(snapshot, "sections.Security.data.defenderEnabled") is not False:
        return []
    return [Finding(
        issue_type="DefenderDisabled",
        severity=FindingSeverity.CRITICAL,
        confidence=100,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description="Windows Defender est désactivé",
        suggested_action="Set-MpPreference -DisableRealtimeMonitoring $false; Update-MpSignature; Start-MpScan -ScanType QuickScan",
        source="Security",
    )]


def _uac(snapshot: Dict[str, Any]) -> List[Finding]:
    if get_bool(snapshot, "sections.Security.data.uacEnabled") is not False:
        return []
    return [Finding(
        issue_type="UacDisabled",
        severity=FindingSeverity.HIGH,
        confidence=100,
        auto_fix_possible=True,
        risk_level=RiskLevel.MEDIUM,
        description="UAC (Contrôle de compte utilisateur) désactivé",
        suggested_action=("Set-ItemProperty -Path 'HKLM:\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\Policies\\System' "
                          "-Name 'EnableLUA' -Value 1; Write-Host 'Redémarrage requis'"),
        source="Security",
    )]


def _firewall(snapshot: Dict[str, Any]) -> List[Finding]:
    profiles = lookup(snapshot, "sections.Security.data.firewallProfiles")
    # Only an explicit false counts as disabled
    disabled = [name for name in FIREWALL_PROFILES if get_bool(profiles, name) is False]
    if not disabled:
        return []
    return [Finding(
        issue_type="FirewallDisabled",
        severity=FindingSeverity.CRITICAL,
        confidence=100,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=f"Pare-feu Windows désactivé pour: {', '.join(disabled)}",
        suggested_action=f"Set-NetFirewallProfile -Profile {','.join(disabled)} -Enabled True",
        source="Security",
    )]


def _pending_updates(snapshot: Dict[str, Any]) -> List[Finding]:
    pending = get_int(snapshot, "sections.WindowsUpdate.data.pendingCount")
    if pending is None or pending <= 10:
        return []
    return [Finding(
        issue_type="CriticalUpdates",
        severity=FindingSeverity.HIGH,
        confidence=95,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=f"{pending} mises à jour Windows en attente",
        suggested_action="Install-Module PSWindowsUpdate -Force; Get-WindowsUpdate -Install -AcceptAll -AutoReboot",
        source="WindowsUpdate",
    )]


def _update_check(snapshot: Dict[str, Any]) -> List[Finding]:
    days = get_int(snapshot, "sections.WindowsUpdate.data.lastCheckDays")
    if days is None or days <= 30:
        return []
    return [Finding(
        issue_type="UpdateCheckOverdue",
        severity=FindingSeverity.MEDIUM,
        confidence=90,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=f"Dernière vérification Windows Update: il y a {days} jours",
        suggested_action="Start-Service wuauserv; (New-Object -ComObject Microsoft.Update.AutoUpdate).DetectNow()",
        source="WindowsUpdate",
    )]


def _critical_events(snapshot: Dict[str, Any]) -> List[Finding]:
    system = get_int(snapshot, "sections.EventLogs.data.logs.System.criticalCount")
    application = get_int(snapshot, "sections.EventLogs.data.logs.Application.criticalCount")
    if system is None and application is None:
        return []
    total = (system or 0) + (application or 0)
    if total <= 50:
        return []
    return [Finding(
        issue_type="HighCriticalEvents",
        severity=FindingSeverity.MEDIUM,
        confidence=80,
        auto_fix_possible=False,
        risk_level=RiskLevel.NOT_APPLICABLE,
        description=f"{total} événements critiques détectés dans Event Viewer (7 derniers jours)",
        suggested_action=("Ouvrir Event Viewer (eventvwr.msc) > Journaux Windows > Système et Application, "
                          "analyser événements critiques récurrents"),
        source="EventLogs",
    )]


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    """Run the security checks."""
    findings: List[Finding] = []
    findings.extend(_defender(snapshot))
    findings.extend(_uac(snapshot))
    findings.extend(_firewall(snapshot))
    findings.extend(_pending_updates(snapshot))
    findings.extend(_update_check(snapshot))
    findings.extend(_critical_events(snapshot))
    return findings
