"""
Evidence Builder for PC Diag
Loads raw snapshots and builds the health report sections (DomainEvidence)
from the script sections and the merged sensor metrics
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.model import (
    HealthDomain,
    HealthFinding,
    HealthReport,
    HealthSection,
    HealthSeverity,
    ScoreBreakdown,
    SensorSnapshot,
    ValidatedMetric,
)
from pcdiag.core.validation import MetricKind, counter_value, merge, validate
from pcdiag.data.heuristics import contains_any, heuristics
from pcdiag.utils.lookup import format_number, get_bool, get_int, get_list, get_number, get_str, lookup

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot document cannot be used at all."""


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return json.load(f)
    except OSError as e:
        raise SnapshotError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in {path}: {e}") from e


def load_snapshot(path: str) -> Dict[str, Any]:
    """Load a raw collector snapshot; the top level must be an object."""
    data = _read_json(Path(path))
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot root must be an object, got {type(data).__name__}")
    return data


def load_sensors(path: str) -> SensorSnapshot:
    data = _read_json(Path(path))
    if not isinstance(data, dict):
        raise SnapshotError(f"Sensor snapshot root must be an object, got {type(data).__name__}")
    return SensorSnapshot.from_dict(data)


def extract_sensors(snapshot: Dict[str, Any]) -> Optional[SensorSnapshot]:
    """Native sensors embedded in the snapshot under ``sensors``, if any."""
    embedded = lookup(snapshot, "sensors")
    if isinstance(embedded, dict):
        return SensorSnapshot.from_dict(embedded)
    return None


@dataclass
class MergedMetrics:
    """Authoritative per-concept values after the script/native merge."""

    cpu_temp: ValidatedMetric = field(default_factory=ValidatedMetric)
    gpu_temp: ValidatedMetric = field(default_factory=ValidatedMetric)


def merge_sensor_metrics(sensors: Optional[SensorSnapshot], snapshot: Dict[str, Any]) -> MergedMetrics:
    native_cpu = validate(sensors.cpu_temp, MetricKind.CPU_TEMP, "CPU Temp") if sensors else None
    native_gpu = validate(sensors.gpu_temp, MetricKind.GPU_TEMP, "GPU Temp") if sensors else None
    return MergedMetrics(
        cpu_temp=merge(native_cpu, lookup(snapshot, "sections.CPU.data.temperature"), "CPU Temp"),
        gpu_temp=merge(native_gpu, lookup(snapshot, "sections.GPU.data.temperature"), "GPU Temp"),
    )


def _section_data(snapshot: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    data = lookup(snapshot, ["sections", name, "data"])
    return data if isinstance(data, dict) and data else None


def _section_status(snapshot: Dict[str, Any], name: str) -> str:
    status = get_str(snapshot, ["sections", name, "status"])
    return status.upper() if status else "OK"


def _temperature_text(metric: ValidatedMetric) -> Optional[str]:
    if not metric.is_valid:
        return None
    return f"{format_number(round(float(metric.value), 1))}°C"


def _os_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    caption = get_str(snapshot, "sections.OS.data.caption")
    if caption:
        evidence["Version"] = caption
    pending = get_int(snapshot, "sections.WindowsUpdate.data.pendingCount")
    if pending is not None:
        evidence["UpdateStatus"] = f"{pending} mises à jour en attente (obsolète)" if pending > 0 else "À jour"
    return evidence


def _cpu_evidence(snapshot: Dict[str, Any], merged: MergedMetrics) -> Dict[str, str]:
    evidence = {}
    name = get_str(snapshot, "sections.CPU.data.name")
    if not name:
        cpus = get_list(snapshot, "cpuList")
        if cpus and isinstance(cpus[0], dict):
            name = cpus[0].get("name")
    if name:
        evidence["Modèle"] = str(name)
    temperature = _temperature_text(merged.cpu_temp)
    if temperature:
        evidence["Temperature"] = temperature
    load = counter_value(lookup(snapshot, "sections.DynamicSignals.data.cpu.average"), "cpuLoadPercent")
    if load is not None:
        evidence["Load"] = f"{format_number(round(load, 1))}%"
    return evidence


def _gpu_evidence(snapshot: Dict[str, Any], merged: MergedMetrics) -> Dict[str, str]:
    evidence = {}
    name = get_str(snapshot, "sections.GPU.data.name")
    if name:
        evidence["Modèle"] = name
    temperature = _temperature_text(merged.gpu_temp)
    if temperature:
        evidence["Temperature"] = temperature
    return evidence


def _ram_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    total = get_number(snapshot, "sections.MemoryInfo.data.totalGB")
    available = get_number(snapshot, "sections.MemoryInfo.data.availableGB")
    if available is None:
        available = get_number(snapshot, "sections.MemoryInfo.data.freeGB")
    if total is not None and total > 0:
        evidence["Total"] = f"{total:.1f} GB"
        if available is not None:
            evidence["Disponible"] = f"{available:.1f} GB"
    return evidence


def _storage_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    free_values = []
    for disk in get_list(snapshot, "sections.Disks.data.disks"):
        free = get_number(disk, "freeGB")
        if free is None:
            free = get_number(disk, "freeSpaceGB")
        if free is not None:
            free_values.append(free)
    if free_values:
        evidence["EspaceLibre"] = f"{min(free_values):.1f} GB"
    return evidence


def _network_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    latency = get_number(snapshot, "sections.Network.data.latencyP95")
    if latency is not None:
        evidence["Latency"] = f"{format_number(round(latency, 1))} ms"
    return evidence


def _stability_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    crashes = get_int(snapshot, "sections.ReliabilityHistory.data.appCrashes")
    if crashes is not None:
        evidence["Crashs applicatifs"] = str(crashes)
    dumps = get_int(snapshot, "sections.MinidumpAnalysis.data.minidumpCount")
    if dumps is not None:
        evidence["Minidumps"] = str(dumps)
    return evidence


def _drivers_evidence(snapshot: Dict[str, Any]) -> Dict[str, str]:
    evidence = {}
    total = get_int(snapshot, "sections.DevicesDrivers.data.totalDrivers")
    if total is not None:
        evidence["Pilotes"] = str(total)
    errors = get_int(snapshot, "sections.DevicesDrivers.data.errorDevices")
    if errors is not None:
        evidence["Périphériques en erreur"] = str(errors)
    return evidence


# Raw sections whose presence gives a domain data
DOMAIN_SOURCES = {
    HealthDomain.OS: ("OS", "WindowsUpdate"),
    HealthDomain.CPU: ("CPU", "DynamicSignals"),
    HealthDomain.GPU: ("GPU",),
    HealthDomain.RAM: ("MemoryInfo",),
    HealthDomain.STORAGE: ("Disks", "SmartDetails"),
    HealthDomain.NETWORK: ("Network",),
    HealthDomain.STABILITY: ("EventLogs", "ReliabilityHistory", "MinidumpAnalysis"),
    HealthDomain.DRIVERS: ("DevicesDrivers",),
}


def _derive_sections(snapshot: Dict[str, Any], merged: MergedMetrics) -> List[HealthSection]:
    builders = {
        HealthDomain.OS: lambda: _os_evidence(snapshot),
        HealthDomain.CPU: lambda: _cpu_evidence(snapshot, merged),
        HealthDomain.GPU: lambda: _gpu_evidence(snapshot, merged),
        HealthDomain.RAM: lambda: _ram_evidence(snapshot),
        HealthDomain.STORAGE: lambda: _storage_evidence(snapshot),
        HealthDomain.NETWORK: lambda: _network_evidence(snapshot),
        HealthDomain.STABILITY: lambda: _stability_evidence(snapshot),
        HealthDomain.DRIVERS: lambda: _drivers_evidence(snapshot),
    }

    sections = []
    for domain in HealthDomain.ALL:
        sources = DOMAIN_SOURCES[domain]
        present = [name for name in sources if _section_data(snapshot, name) is not None]
        evidence = builders[domain]()
        statuses = [_section_status(snapshot, name) for name in sources if has_section(snapshot, name)]
        sections.append(HealthSection(
            domain=domain,
            has_data=bool(present) or bool(evidence),
            evidence=evidence,
            collection_status="FAILED" if "FAILED" in statuses else "OK",
        ))
    return sections


def has_section(snapshot: Dict[str, Any], name: str) -> bool:
    return isinstance(lookup(snapshot, ["sections", name]), dict)


def _parse_ready_sections(raw_sections: List[Any]) -> List[HealthSection]:
    sections = []
    for entry in raw_sections:
        if not isinstance(entry, dict):
            continue
        domain = HealthDomain.normalize(str(entry.get("domain") or ""))
        if domain is None:
            logger.debug(f"Skipping section with unknown domain: {entry.get('domain')}")
            continue
        evidence = entry.get("evidence") or {}
        findings = []
        for item in entry.get("findings") or []:
            if not isinstance(item, dict):
                continue
            findings.append(HealthFinding(
                severity=str(item.get("severity") or HealthSeverity.WARNING),
                title=str(item.get("title") or item.get("description") or ""),
                description=str(item.get("description") or ""),
                source=str(item.get("source") or ""),
                penalty_applied=get_int(item, "penaltyApplied", 0),
            ))
        sections.append(HealthSection(
            domain=domain,
            has_data=bool(entry.get("hasData", True)),
            evidence={str(k): str(v) for k, v in evidence.items()} if isinstance(evidence, dict) else {},
            collection_status=str(entry.get("collectionStatus") or "OK").upper(),
            findings=findings,
        ))
    return sections


def build_health_report(snapshot: Dict[str, Any],
                        diagnostics: CollectorDiagnostics,
                        merged: MergedMetrics) -> HealthReport:
    """Build the report graph the scoring stages consume."""
    ready = lookup(snapshot, "healthReport.sections")
    if isinstance(ready, list) and ready:
        sections = _parse_ready_sections(ready)
        logger.info(f"Using {len(sections)} producer-supplied health sections")
    else:
        sections = _derive_sections(snapshot, merged)
        logger.info(f"Derived {sum(1 for s in sections if s.has_data)}/{len(sections)} health sections from raw data")

    breakdown = ScoreBreakdown(
        critical=get_int(snapshot, "scoreV2.breakdown.critical", 0),
        collector_errors=get_int(snapshot, "scoreV2.breakdown.collectorErrors", 0),
        warnings=get_int(snapshot, "scoreV2.breakdown.warnings", 0),
        timeouts=get_int(snapshot, "scoreV2.breakdown.timeouts", 0),
    )

    partial = get_bool(snapshot, "metadata.partialFailure", False)

    return HealthReport(
        sections=sections,
        errors=list(diagnostics.errors),
        missing_data=list(diagnostics.missing_data),
        collector_errors_logical=diagnostics.collector_errors_logical,
        collection_status=diagnostics.collection_status,
        partial_failure=partial,
        breakdown=breakdown,
        top_penalties=list(diagnostics.top_penalties),
    )


def update_pending(report: HealthReport) -> bool:
    """True when the OS evidence reports pending or outdated updates."""
    section = report.section(HealthDomain.OS)
    if section is None:
        return False
    return contains_any(section.evidence.get("UpdateStatus", ""), heuristics["update_pending_markers"])
