"""
Metric Validation for PC Diag
Plausibility checks, sentinel rejection and the script/native merge policy
"""

import logging
import math
from typing import Any, Optional

from pcdiag.core.model import MetricSource, RawReading, ValidatedMetric, Validity
from pcdiag.data.heuristics import heuristics
from pcdiag.utils.logger import audit_logger
from pcdiag.utils.lookup import format_number

logger = logging.getLogger(__name__)


class MetricKind:
    CPU_TEMP = "cpu_temp"
    GPU_TEMP = "gpu_temp"
    DISK_TEMP = "disk_temp"


# Plausible ranges in °C
TEMPERATURE_RANGES = {
    MetricKind.CPU_TEMP: (5.0, 120.0),
    MetricKind.GPU_TEMP: (10.0, 120.0),
    MetricKind.DISK_TEMP: (0.0, 80.0),
}

SENTINEL_VALUES = (-1.0, -999.0, 0.0)

VRAM_TOLERANCE = 1.1


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def is_sentinel(value: Any) -> bool:
    """True for reserved placeholder readings (-1, -999, 0, NaN, ±Infinity)."""
    number = _to_float(value)
    if number is None:
        return False
    if math.isnan(number) or math.isinf(number):
        return True
    return any(abs(number - sentinel) < 0.001 for sentinel in SENTINEL_VALUES)


def _reject(name: str, value: Any, rule: str, reason: str,
            source: str = MetricSource.NATIVE) -> ValidatedMetric:
    audit_logger.log_rejection(name, value, rule, reason)
    return ValidatedMetric(validity=Validity.INVALID, source=source, reason=reason)


def validate(reading: Optional[RawReading], kind: str, name: Optional[str] = None) -> ValidatedMetric:
    """Validate one native temperature reading against its kind's plausible range."""
    if kind not in TEMPERATURE_RANGES:
        raise ValueError(f"Unknown metric kind: {kind}")

    name = name or kind
    if reading is None or not reading.available:
        reason = (reading.reason if reading is not None else None) or "Capteur non disponible"
        return ValidatedMetric(validity=Validity.MISSING, source=MetricSource.NATIVE, reason=reason)

    temp = reading.number
    if temp is None:
        return _reject(name, reading.value, "numeric", f"Valeur non numérique: {reading.value}")

    if is_sentinel(temp):
        return _reject(name, temp, "sentinel", f"Valeur sentinelle détectée: {format_number(temp)}")

    low, high = TEMPERATURE_RANGES[kind]
    if kind == MetricKind.CPU_TEMP:
        if temp < low:
            return _reject(name, temp, "range_min",
                           f"Température trop basse: {temp:.1f}°C < {format_number(low)}°C")
        if temp > high:
            return _reject(name, temp, "range_max",
                           f"Température hors plage: {temp:.1f}°C > {format_number(high)}°C")
    elif temp < low or temp > high:
        return _reject(name, temp, "range",
                       f"Température hors plage: {temp:.1f}°C (attendu {format_number(low)}-{format_number(high)}°C)")

    return ValidatedMetric(value=temp, validity=Validity.VALID, source=MetricSource.NATIVE)


def validate_vram(total: Optional[RawReading], used: Optional[RawReading]) -> ValidatedMetric:
    """Validate a VRAM pair; the valid value is ``(total_mb, used_mb)``."""
    if total is None or not total.available or used is None or not used.available:
        return ValidatedMetric(validity=Validity.MISSING, source=MetricSource.NATIVE,
                               reason="VRAM total ou utilisée non disponible")

    total_mb = total.number
    used_mb = used.number
    if total_mb is None or used_mb is None or is_sentinel(total_mb) or is_sentinel(used_mb):
        return _reject("VRAM", (total.value, used.value), "sentinel", "Valeur sentinelle détectée")

    if total_mb <= 0:
        return _reject("VRAM", total_mb, "total_positive", f"VRAM total invalide: {format_number(total_mb)} MB")

    if used_mb > total_mb * VRAM_TOLERANCE:
        return _reject("VRAM", used_mb, "used_le_total",
                       f"VRAM used ({used_mb:.0f} MB) > total ({total_mb:.0f} MB)")

    return ValidatedMetric(value=(total_mb, used_mb), validity=Validity.VALID, source=MetricSource.NATIVE)


def validate_counter(value: Any, name: str) -> ValidatedMetric:
    """Validate a performance counter using the table-driven counter rules."""
    number = _to_float(value)
    if value is None:
        return ValidatedMetric(validity=Validity.MISSING, source=MetricSource.SCRIPT,
                               reason=f"Counter '{name}' non collecté")
    if number is None:
        return _reject(name, value, "numeric", f"Counter '{name}' valeur non numérique: {value}",
                       source=MetricSource.SCRIPT)

    if is_sentinel(number):
        return _reject(name, number, "sentinel", f"Counter '{name}' valeur sentinelle: {format_number(number)}",
                       source=MetricSource.SCRIPT)

    for rule in heuristics["counter_rules"]:
        if rule["match"].lower() not in name.lower():
            continue
        if number < rule["min"] or number > rule["max"]:
            return _reject(name, number, f"counter:{rule['match']}",
                           rule["reason"].format(value=format_number(number)), source=MetricSource.SCRIPT)

    return ValidatedMetric(value=number, validity=Validity.VALID, source=MetricSource.SCRIPT)


def counter_value(value: Any, name: str) -> Optional[float]:
    """Counter value when valid, else None (rejections are audited by validate_counter)."""
    metric = validate_counter(value, name)
    return metric.value if metric.is_valid else None


def merge(native: Optional[ValidatedMetric], script_value: Any, name: str) -> ValidatedMetric:
    """Merge a validated native reading with a raw script value for the same concept.

    Precedence: a valid native reading wins; otherwise a present, non-sentinel
    script value is used; otherwise the native state is returned with its
    own reason; with neither source the metric is Missing.
    """
    if native is not None and native.is_valid:
        audit_logger.log_merge(name, MetricSource.NATIVE, "native reading valid")
        return native

    script_number = _to_float(script_value)
    if script_number is not None and not is_sentinel(script_number):
        detail = f"native {native.validity if native else 'absent'}, script={format_number(script_number)}"
        audit_logger.log_merge(name, MetricSource.SCRIPT, detail)
        return ValidatedMetric(value=script_number, validity=Validity.VALID, source=MetricSource.SCRIPT)

    if native is not None:
        audit_logger.log_merge(name, native.source, f"no usable script value, keeping {native.validity}")
        return native

    logger.debug(f"No source available for {name}")
    return ValidatedMetric(validity=Validity.MISSING, source=MetricSource.UNKNOWN,
                           reason=f"Aucune source disponible pour {name}")


def display_value(metric: ValidatedMetric) -> str:
    return metric.display_value
