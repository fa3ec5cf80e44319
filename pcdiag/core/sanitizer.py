"""
Sensor Sanitizer for PC Diag
Hides implausible native sensor readings before they reach the scoring stages
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from pcdiag.core.model import RawReading, SensorSnapshot
from pcdiag.core.validation import MetricKind, validate, validate_vram
from pcdiag.utils.logger import audit_logger

logger = logging.getLogger(__name__)


def _hide(reading: RawReading, reason: str) -> RawReading:
    return replace(reading, available=False, reason=reason)


def sanitize_sensors(sensors: Optional[SensorSnapshot]) -> Tuple[Optional[SensorSnapshot], List[str]]:
    """Return a sanitized copy of ``sensors`` and the list of invalidated metrics.

    A reading is hidden (``available=False``) when it was reported as
    available but failed validation. The input snapshot is left untouched.
    """
    if sensors is None:
        return None, []

    invalidated: List[str] = []
    sanitized = sensors

    cpu = validate(sensors.cpu_temp, MetricKind.CPU_TEMP, "CPU Temp")
    if not cpu.is_valid and sensors.cpu_temp.available:
        sanitized = replace(sanitized, cpu_temp=_hide(sensors.cpu_temp, cpu.reason))
        invalidated.append(f"CPU Temp: {cpu.reason}")
        audit_logger.log_sanitized("CPU Temp", sensors.cpu_temp.value, cpu.reason)

    gpu = validate(sensors.gpu_temp, MetricKind.GPU_TEMP, "GPU Temp")
    if not gpu.is_valid and sensors.gpu_temp.available:
        sanitized = replace(sanitized, gpu_temp=_hide(sensors.gpu_temp, gpu.reason))
        invalidated.append(f"GPU Temp: {gpu.reason}")
        audit_logger.log_sanitized("GPU Temp", sensors.gpu_temp.value, gpu.reason)

    vram = validate_vram(sensors.vram_total, sensors.vram_used)
    if not vram.is_valid and (sensors.vram_total.available or sensors.vram_used.available):
        sanitized = replace(
            sanitized,
            vram_total=_hide(sensors.vram_total, vram.reason),
            vram_used=_hide(sensors.vram_used, vram.reason),
        )
        invalidated.append(f"VRAM: {vram.reason}")
        audit_logger.log_sanitized("VRAM", (sensors.vram_total.value, sensors.vram_used.value), vram.reason)

    disks = []
    for disk in sensors.disks:
        result = validate(disk.temp, MetricKind.DISK_TEMP, f"Disk Temp ({disk.name})")
        if not result.is_valid and disk.temp.available:
            disks.append(replace(disk, temp=_hide(disk.temp, result.reason)))
            invalidated.append(f"Disk Temp ({disk.name}): {result.reason}")
            audit_logger.log_sanitized(f"Disk Temp ({disk.name})", disk.temp.value, result.reason)
        else:
            disks.append(disk)
    sanitized = replace(sanitized, disks=tuple(disks))

    if invalidated:
        logger.info(f"Sanitizer hid {len(invalidated)} sensor readings")
    return sanitized, invalidated
