"""
Temperature Rules for PC Diag
CPU and GPU temperatures, read from the sanitized native sensors when the run
has them, otherwise from the sensor metrics embedded in the snapshot
"""

from typing import Any, Dict, List, Optional, Tuple

from pcdiag.core.model import Finding, FindingSeverity, RawReading, RiskLevel
from pcdiag.utils.lookup import lookup


METADATA = {
    "id": "temperature",
    "name": "Thermal Checks",
    "category": "temperature",
    "severity_hint": "High",
    "order": 60,
    "issue_types": ["HighCpuTemperature", "HighGpuTemperature"],
    "implemented": True,
}


def _embedded_reading(snapshot: Dict[str, Any], path: str) -> Optional[RawReading]:
    metrics = lookup(snapshot, "scan_csharp.metrics")
    if not isinstance(metrics, dict):
        metrics = lookup(snapshot, "metrics")
    if not isinstance(metrics, dict):
        return None
    raw = lookup(metrics, path)
    return RawReading.from_dict(raw) if isinstance(raw, dict) else None


def _temperatures(snapshot: Dict[str, Any], context) -> Tuple[Optional[RawReading], Optional[RawReading]]:
    sensors = getattr(context, "sensors", None)
    if sensors is not None:
        return sensors.cpu_temp, sensors.gpu_temp
    return (_embedded_reading(snapshot, "cpu.cpuTempC"),
            _embedded_reading(snapshot, "gpu.gpuTempC"))


def _reading_value(reading: Optional[RawReading]) -> Optional[float]:
    if reading is None or not reading.available:
        return None
    return reading.number


def run(snapshot: Dict[str, Any], context) -> List[Finding]:
    findings: List[Finding] = []
    cpu_reading, gpu_reading = _temperatures(snapshot, context)

    cpu_temp = _reading_value(cpu_reading)
    if cpu_temp is not None and cpu_temp > 80:
        findings.append(Finding(
            issue_type="HighCpuTemperature",
            severity=FindingSeverity.CRITICAL if cpu_temp > 90 else FindingSeverity.HIGH,
            confidence=95,
            auto_fix_possible=False,
            risk_level=RiskLevel.NOT_APPLICABLE,
            description=f"Température CPU: {cpu_temp:.1f}°C (danger > 85°C, critique > 90°C)",
            suggested_action=("Nettoyer ventilateurs CPU, remplacer pâte thermique, vérifier fonctionnement "
                              "refroidissement, réduire overclock si applicable"),
            source="Sensors",
        ))

    gpu_temp = _reading_value(gpu_reading)
    if gpu_temp is not None and gpu_temp > 85:
        findings.append(Finding(
            issue_type="HighGpuTemperature",
            severity=FindingSeverity.CRITICAL if gpu_temp > 95 else FindingSeverity.HIGH,
            confidence=95,
            auto_fix_possible=False,
            risk_level=RiskLevel.NOT_APPLICABLE,
            description=f"Température GPU: {gpu_temp:.1f}°C (danger > 90°C, critique > 95°C)",
            suggested_action=("Améliorer ventilation boîtier, nettoyer GPU et ventilateurs, limiter overclock, "
                              "réduire limites puissance si applicable"),
            source="Sensors",
        ))

    return findings
