"""
Core models for PC Diag

Defines the constants, dataclasses and report graph shared across the
validator, the scoring engines, the finding rules and the reports.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


class Validity:
    """Validity states of a validated metric."""
    VALID = "Valid"
    INVALID = "Invalid"
    MISSING = "Missing"


class MetricSource:
    """Producer a validated metric was taken from."""
    SCRIPT = "Script"
    NATIVE = "Native"
    DERIVED = "Derived"
    UNKNOWN = "Unknown"


class HealthDomain:
    """Scored hardware/software domains."""
    OS = "OS"
    CPU = "CPU"
    GPU = "GPU"
    RAM = "RAM"
    STORAGE = "Storage"
    NETWORK = "Network"
    STABILITY = "SystemStability"
    DRIVERS = "Drivers"

    ALL = (OS, CPU, GPU, RAM, STORAGE, NETWORK, STABILITY, DRIVERS)

    LABELS = {
        OS: "Le système d'exploitation",
        CPU: "Le processeur",
        GPU: "La carte graphique",
        RAM: "La mémoire vive",
        STORAGE: "Le stockage",
        NETWORK: "Le réseau",
        STABILITY: "La stabilité système",
        DRIVERS: "Les pilotes",
    }

    @classmethod
    def normalize(cls, name: str) -> Optional[str]:
        """Map a loosely spelled domain name onto its canonical constant."""
        if not name:
            return None
        lowered = name.strip().lower()
        aliases = {"stability": cls.STABILITY, "memory": cls.RAM, "disk": cls.STORAGE}
        if lowered in aliases:
            return aliases[lowered]
        for domain in cls.ALL:
            if domain.lower() == lowered:
                return domain
        return None


class HealthSeverity:
    """Business severity scale, ordered from unknown to critical."""
    UNKNOWN = "Unknown"
    EXCELLENT = "Excellent"
    HEALTHY = "Healthy"
    WARNING = "Warning"
    DEGRADED = "Degraded"
    CRITICAL = "Critical"

    RANK = {
        UNKNOWN: 0,
        EXCELLENT: 1,
        HEALTHY: 2,
        WARNING: 3,
        DEGRADED: 4,
        CRITICAL: 5,
    }

    @classmethod
    def from_score(cls, score: int) -> str:
        if score == 100:
            return cls.EXCELLENT
        if score >= 70:
            return cls.HEALTHY
        if score >= 60:
            return cls.WARNING
        if score >= 40:
            return cls.DEGRADED
        return cls.CRITICAL

    @classmethod
    def rank(cls, severity: str) -> int:
        return cls.RANK.get(severity, 0)


class FindingSeverity:
    """Severity labels carried by findings."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFO = "Info"


class RiskLevel:
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NOT_APPLICABLE = "N/A"


class Actionability:
    """Remediation buckets."""
    FIXABLE = "Fixable"
    SUGGEST_ONLY = "SuggestOnly"
    NOT_ENOUGH_DATA = "NotEnoughData"
    NO_ACTION_NEEDED = "NoActionNeeded"


SAFE_RULES_CATALOG = (
    "Start-Service wuauserv (Windows Update service)",
    "Restart-Service spooler (Print Spooler)",
    "Clear-RecycleBin (Corbeille)",
    "Remove-Item $env:TEMP\\* -Recurse (Fichiers temporaires)",
    "sfc /scannow (Vérification intégrité système)",
    "DISM /Online /Cleanup-Image /RestoreHealth",
)


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class RawReading:
    """One collector's reading for one concept."""

    value: Any = None
    available: bool = False
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawReading":
        if not isinstance(data, dict):
            return cls(available=False)
        value = data.get("value")
        numeric = _as_float(value)
        return cls(
            value=numeric if numeric is not None else value,
            available=bool(data.get("available", False)),
            reason=data.get("reason"),
        )

    @property
    def number(self) -> Optional[float]:
        return _as_float(self.value)


@dataclass(frozen=True)
class ValidatedMetric:
    """Validator output. A value is only carried when validity is Valid."""

    value: Any = None
    validity: str = Validity.MISSING
    source: str = MetricSource.UNKNOWN
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.validity != Validity.VALID and self.value is not None:
            object.__setattr__(self, "value", None)

    @property
    def is_valid(self) -> bool:
        return self.validity == Validity.VALID

    @property
    def display_value(self) -> str:
        if self.validity == Validity.VALID:
            if self.value is None:
                return "N/A"
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.validity == Validity.INVALID:
            return f"Non disponible ({self.reason or 'valeur invalide'})"
        if self.validity == Validity.MISSING:
            return f"Non collecté ({self.reason or 'donnée absente'})"
        return "N/A"


@dataclass(frozen=True)
class DiskSensor:
    name: str
    temp: RawReading


@dataclass(frozen=True)
class SensorSnapshot:
    """Typed native sensor snapshot."""

    cpu_temp: RawReading = field(default_factory=RawReading)
    cpu_load: RawReading = field(default_factory=RawReading)
    gpu_temp: RawReading = field(default_factory=RawReading)
    gpu_load: RawReading = field(default_factory=RawReading)
    vram_total: RawReading = field(default_factory=RawReading)
    vram_used: RawReading = field(default_factory=RawReading)
    disks: Tuple[DiskSensor, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "SensorSnapshot":
        if not isinstance(data, dict):
            return cls()
        cpu = data.get("cpu") or {}
        gpu = data.get("gpu") or {}
        disks = []
        for entry in data.get("disks") or []:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if isinstance(name, dict):
                name = name.get("value")
            disks.append(DiskSensor(name=str(name or "Disque"), temp=RawReading.from_dict(entry.get("tempC"))))
        return cls(
            cpu_temp=RawReading.from_dict(cpu.get("cpuTempC")),
            cpu_load=RawReading.from_dict(cpu.get("cpuLoadPercent")),
            gpu_temp=RawReading.from_dict(gpu.get("gpuTempC")),
            gpu_load=RawReading.from_dict(gpu.get("gpuLoadPercent")),
            vram_total=RawReading.from_dict(gpu.get("vramTotalMB")),
            vram_used=RawReading.from_dict(gpu.get("vramUsedMB")),
            disks=tuple(disks),
        )


@dataclass(frozen=True)
class ScanError:
    """Collector-reported error."""

    code: str = ""
    message: str = ""
    section: str = ""
    exception_type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanError":
        return cls(
            code=str(data.get("code") or ""),
            message=str(data.get("message") or ""),
            section=str(data.get("section") or ""),
            exception_type=str(data.get("exceptionType") or ""),
        )

    def __str__(self) -> str:
        return f"[{self.code}] {self.section}: {self.message}"


@dataclass
class ScoreBreakdown:
    critical: int = 0
    collector_errors: int = 0
    warnings: int = 0
    timeouts: int = 0


@dataclass
class HealthFinding:
    """Per-section observation, either supplied by the producer or derived from a penalty."""

    severity: str
    title: str
    description: str = ""
    source: str = ""
    penalty_applied: int = 0


@dataclass
class HealthSection:
    """Externally-owned section of the health report for one domain."""

    domain: str
    has_data: bool = True
    evidence: Dict[str, str] = field(default_factory=dict)
    collection_status: str = "OK"
    findings: List[HealthFinding] = field(default_factory=list)

    # Written by apply_grades
    score: int = 0
    severity: str = HealthSeverity.UNKNOWN
    status_message: str = ""
    detailed_explanation: str = ""
    penalty_findings: List[HealthFinding] = field(default_factory=list)

    def all_findings(self) -> List[HealthFinding]:
        return list(self.findings) + list(self.penalty_findings)


@dataclass
class ConfidenceModel:
    confidence_score: int = 100
    confidence_level: str = "Élevée"
    warnings: List[str] = field(default_factory=list)


@dataclass
class HealthReport:
    """Report graph consumed by the engines; only apply_grades writes back to it."""

    sections: List[HealthSection] = field(default_factory=list)
    errors: List[ScanError] = field(default_factory=list)
    missing_data: List[str] = field(default_factory=list)
    collector_errors_logical: int = 0
    collection_status: str = "OK"
    partial_failure: bool = False
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    top_penalties: List[Dict[str, Any]] = field(default_factory=list)
    confidence: ConfidenceModel = field(default_factory=ConfidenceModel)

    global_score: int = 0
    grade: str = "N/A"
    global_severity: str = HealthSeverity.UNKNOWN
    global_message: str = ""

    def section(self, domain: str) -> Optional[HealthSection]:
        for section in self.sections:
            if section.domain == domain:
                return section
        return None

    def findings_count(self) -> int:
        return sum(len(section.all_findings()) for section in self.sections)


@dataclass(frozen=True)
class DomainScore:
    """Score of one domain. Penalties keep rule-evaluation order."""

    domain: str
    score: int
    has_data: bool
    penalties: Tuple[Tuple[int, str], ...] = ()
    status_message: str = ""
    explanation: str = ""

    @property
    def total_penalty(self) -> int:
        return sum(amount for amount, _ in self.penalties)

    @property
    def top_penalty(self) -> Optional[Tuple[int, str]]:
        if not self.penalties:
            return None
        # max() keeps the first of equal amounts
        return max(self.penalties, key=lambda p: p[0])


@dataclass
class GradeResult:
    raw_score: int = 0
    final_score: int = 0
    grade: str = "?"
    verdict: str = ""
    severity: str = HealthSeverity.UNKNOWN
    domain_details: Dict[str, DomainScore] = field(default_factory=dict)
    critical_penalties: List[str] = field(default_factory=list)
    top_positives: List[str] = field(default_factory=list)
    top_negatives: List[str] = field(default_factory=list)
    user_friendly_explanation: str = ""
    explanations: List[str] = field(default_factory=list)


@dataclass
class Finding:
    """Normalized finding consumed by the remediation layer."""

    issue_type: str
    severity: str
    confidence: int
    auto_fix_possible: bool
    risk_level: str
    description: str
    suggested_action: Optional[str] = None
    source: str = ""

    def __post_init__(self) -> None:
        # Normalize severity capitalization
        severity_map = {
            "critical": FindingSeverity.CRITICAL,
            "high": FindingSeverity.HIGH,
            "medium": FindingSeverity.MEDIUM,
            "low": FindingSeverity.LOW,
            "info": FindingSeverity.INFO,
            "excellent": HealthSeverity.EXCELLENT,
            "healthy": HealthSeverity.HEALTHY,
            "warning": HealthSeverity.WARNING,
            "degraded": HealthSeverity.DEGRADED,
            "unknown": HealthSeverity.UNKNOWN,
        }
        sev = (self.severity or "").lower()
        self.severity = severity_map.get(sev, self.severity or FindingSeverity.INFO)

        # Clamp confidence
        try:
            confidence = float(self.confidence)
            self.confidence = 0 if math.isnan(confidence) else int(max(0.0, min(100.0, confidence)))
        except (TypeError, ValueError):
            self.confidence = 0


@dataclass(frozen=True)
class RemediationItem:
    issue_id: str
    description: str
    category: str
    actionability: str
    suggested_action: Optional[str] = None
    safety_note: Optional[str] = None
    is_safe: bool = False
    confidence_required: int = 60


@dataclass
class RemediationReadiness:
    readiness_score: int = 0
    auto_fix_allowed: bool = False
    block_reason: Optional[str] = None
    fixable: List[RemediationItem] = field(default_factory=list)
    suggest_only: List[RemediationItem] = field(default_factory=list)
    not_enough_data: List[RemediationItem] = field(default_factory=list)
    safe_rules: List[str] = field(default_factory=lambda: list(SAFE_RULES_CATALOG))


@dataclass(frozen=True)
class SectionSummary:
    section_name: str
    score: int
    status: str
    priority: str
    has_data: bool
    recommendation: str = ""


@dataclass
class CompositeIndex:
    """Top-level output of one diagnostic run."""

    machine_health_score: int = 0
    data_reliability_score: int = 0
    diagnostic_clarity_score: int = 0
    composite_score: int = 0
    grade: str = "N/A"
    message: str = ""
    findings: List[Finding] = field(default_factory=list)
    auto_fix_allowed: bool = False
    block_reason: Optional[str] = None

    machine_health_breakdown: Dict[str, int] = field(default_factory=dict)
    sections_summary: List[SectionSummary] = field(default_factory=list)
    thermal_score: int = 100
    thermal_status: str = "N/A"
    storage_io_score: int = 100
    storage_io_status: str = "N/A"
    boot_health_score: int = 100
    boot_health_tier: str = "N/A"
    boot_time_seconds: Optional[float] = None
    system_stability_index: int = 100
    cpu_performance_tier: str = "N/A"
