"""
Performance Rules for PC Diag
CPU, memory and disk usage, disk queue, critical services and process count
"""

from typing import Any, Dict, List

from pcdiag.core.model import Finding, FindingSeverity, RiskLevel
from pcdiag.core.validation import counter_value
from pcdiag.data.heuristics import heuristics
from pcdiag.utils.lookup import get_int, get_list, get_number, get_str, lookup


METADATA = {
    "id": "performance",
    "name": "Performance Checks",
    "category": "performance",
    "severity_hint": "Medium",
    "order": 10,
    "issue_types": [
        "HighCpuUsage",
        "HighMemoryUsage",
        "HighDiskUsage",
        "HighDiskQueue",
        "CriticalServiceStopped",
        "TooManyProcesses",
    ],
    "implemented": True,
}


def _cpu_usage(snapshot: Dict[str, Any], confidence: int) -> List[Finding]:
    cpu_avg = counter_value(lookup(snapshot, "sections.DynamicSignals.data.cpu.average"), "cpuLoadPercent")
    if cpu_avg is None or cpu_avg <= 80:
        return []
    return [Finding(
        issue_type="HighCpuUsage",
        severity=FindingSeverity.MEDIUM,
        confidence=min(90, confidence),
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=f"Utilisation CPU élevée: {cpu_avg:.1f}% (normal < 70%)",
        suggested_action="Get-Process | Sort-Object CPU -Descending | Select-Object -First 10 Name,CPU,WorkingSet | Format-Table",
        source="DynamicSignals",
    )]


def _memory_usage(snapshot: Dict[str, Any]) -> List[Finding]:
    used = get_number(snapshot, "sections.MemoryInfo.data.UsedPercent")
    if used is None or used <= 85:
        return []
    return [Finding(
        issue_type="HighMemoryUsage",
        severity=FindingSeverity.HIGH if used > 95 else FindingSeverity.MEDIUM,
        confidence=95,
        auto_fix_possible=True,
        risk_level=RiskLevel.LOW,
        description=f"Utilisation mémoire élevée: {used:.1f}% (recommandé < 85%)",
        suggested_action=("Get-Process | Sort-Object WorkingSet -Descending | Select-Object -First 10 | "
                          "ForEach-Object { $_.CloseMainWindow(); Start-Sleep 1 }"),
        source="MemoryInfo",
    )]


def _disk_usage(snapshot: Dict[str, Any]) -> List[Finding]:
    findings = []
    for disk in get_list(snapshot, "sections.Disks.data.disks"):
        letter = get_str(disk, "DriveLetter")
        used = get_number(disk, "UsedPercent")
        if letter is None or used is None or used <= 90:
            continue
        drive = letter.rstrip(":")
        findings.append(Finding(
            issue_type="HighDiskUsage",
            severity=FindingSeverity.CRITICAL if used > 95 else FindingSeverity.HIGH,
            confidence=98,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description=f"Disque {letter} à {used:.1f}% de capacité",
            suggested_action=(
                "Remove-Item $env:TEMP\\* -Recurse -Force -ErrorAction SilentlyContinue; "
                f"Clear-RecycleBin -DriveLetter {drive} -Force -ErrorAction SilentlyContinue; "
                "cleanmgr /sagerun:1"
            ),
            source="Disks",
        ))
    return findings


def _disk_queue(snapshot: Dict[str, Any]) -> List[Finding]:
    queue = counter_value(lookup(snapshot, "sections.DynamicSignals.data.disk.queueLength"), "diskQueueLength")
    if queue is None or queue <= 2:
        return []
    return [Finding(
        issue_type="HighDiskQueue",
        severity=FindingSeverity.MEDIUM,
        confidence=85,
        auto_fix_possible=False,
        risk_level=RiskLevel.NOT_APPLICABLE,
        description=f"File d'attente disque élevée: {queue:.1f} (normal < 2)",
        suggested_action="Vérifier santé SMART du disque, défragmenter si HDD, envisager upgrade vers SSD",
        source="DynamicSignals",
    )]


def _stopped_services(snapshot: Dict[str, Any]) -> List[Finding]:
    critical = {name.lower() for name in heuristics["critical_services"]}
    findings = []
    for service in get_list(snapshot, "sections.Services.data.services"):
        name = get_str(service, "Name")
        status = get_str(service, "Status")
        if not name or not status:
            continue
        if name.lower() in critical and status.lower() == "stopped":
            findings.append(Finding(
                issue_type="CriticalServiceStopped",
                severity=FindingSeverity.CRITICAL,
                confidence=100,
                auto_fix_possible=True,
                risk_level=RiskLevel.LOW,
                description=f"Service critique arrêté: {name}",
                suggested_action=(f"Start-Service {name} -ErrorAction SilentlyContinue; "
                                  f"Set-Service {name} -StartupType Automatic"),
                source="Services",
            ))
    return findings


def _process_count(snapshot: Dict[str, Any]) -> List[Finding]:
    count = get_int(snapshot, "sections.Processes.data.totalCount")
    if count is None or count <= 200:
        return []
    return [Finding(
        issue_type="TooManyProcesses",
        severity=FindingSeverity.LOW,
        confidence=70,
        auto_fix_possible=True,
        risk_level=RiskLevel.MEDIUM,
        description=f"{count} processus en cours (normal: 80-150)",
        suggested_action="Désactiver programmes au démarrage inutiles via msconfig ou Gestionnaire des tâches > Démarrage",
        source="Processes",
    )]


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    """Run the performance checks."""
    findings: List[Finding] = []
    findings.extend(_cpu_usage(snapshot, context.confidence))
    findings.extend(_memory_usage(snapshot))
    findings.extend(_disk_usage(snapshot))
    findings.extend(_disk_queue(snapshot))
    findings.extend(_stopped_services(snapshot))
    findings.extend(_process_count(snapshot))
    return findings
