"""
Network Rules for PC Diag
Latency, packet loss and DNS resolution time
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.utils.lookup import get_number


METADATA = {
    "id": "network",
    "name": "Network Quality Checks",
    "category": "network",
    "severity_hint": "Medium",
    "order": 40,
    "issue_types": ["HighNetworkLatency", "PacketLoss", "SlowDns"],
    "implemented": True,
}


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    findings: List[Finding] = []

    latency = get_number(snapshot, "sections.Network.data.latencyP95")
    if latency is not None and latency > 100:
        findings.append(Finding(
            issue_type="HighNetworkLatency",
            severity=FindingSeverity.HIGH if latency > 200 else FindingSeverity.MEDIUM,
            confidence=85,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description=f"Latence réseau P95: {latency:.1f}ms (normal < 50ms)",
            suggested_action="ipconfig /flushdns; netsh winsock reset; netsh int ip reset; Test-Connection 8.8.8.8 -Count 10",
            source="Network",
        ))

    loss = get_number(snapshot, "sections.Network.data.packetLoss")
    if loss is not None and loss > 1:
        findings.append(Finding(
            issue_type="PacketLoss",
            severity=FindingSeverity.HIGH if loss > 5 else FindingSeverity.MEDIUM,
            confidence=80,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description=f"Perte de paquets réseau: {loss:.1f}%",
            suggested_action=("Vérifier câble réseau Ethernet, redémarrer routeur/modem, mettre à jour pilote "
                              "carte réseau via Gestionnaire de périphériques"),
            source="Network",
        ))

    dns = get_number(snapshot, "sections.Network.data.dnsDurationP95")
    if dns is not None and dns > 100:
        findings.append(Finding(
            issue_type="SlowDns",
            severity=FindingSeverity.LOW,
            confidence=75,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description=f"Résolution DNS lente: {dns:.0f}ms P95 (recommandé < 50ms)",
            suggested_action=("Changer DNS vers Google (8.8.8.8 / 8.8.4.4) ou Cloudflare (1.1.1.1 / 1.0.0.1): "
                              "Set-DnsClientServerAddress -InterfaceAlias 'Ethernet' -ServerAddresses ('8.8.8.8','8.8.4.4')"),
            source="Network",
        ))

    return findings
