"""
Sub-analyses for PC Diag
Thermal envelope, storage IO, boot time, system stability and CPU profile,
attached to the composite index for display
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pcdiag.core.model import RawReading, SensorSnapshot
from pcdiag.core.validation import counter_value
from pcdiag.utils.lookup import get_int, get_number, get_str, lookup

logger = logging.getLogger(__name__)

NOT_MEASURED = "Non mesuré"
UNMEASURED_SCORE = 70


def _reading(reading: Optional[RawReading]) -> Optional[float]:
    if reading is None or not reading.available:
        return None
    return reading.number


@dataclass
class ThermalEnvelope:
    score: int = 100
    status: str = "OK"
    cpu_temp: Optional[float] = None
    gpu_temp: Optional[float] = None
    max_disk_temp: Optional[float] = None
    is_throttling: bool = False
    is_critical: bool = False
    warnings: List[str] = field(default_factory=list)
    recommendation: str = ""


def analyze_thermal(sensors: Optional[SensorSnapshot]) -> ThermalEnvelope:
    """Thermal envelope from the live sensor readings."""
    result = ThermalEnvelope()
    if sensors is None:
        result.status = NOT_MEASURED
        result.score = UNMEASURED_SCORE
        result.recommendation = "Capteurs thermiques non disponibles."
        return result

    penalties = 0

    cpu_temp = _reading(sensors.cpu_temp)
    if cpu_temp is not None:
        result.cpu_temp = cpu_temp
        if cpu_temp > 95:
            penalties += 40
            result.is_critical = True
            result.is_throttling = True
            result.warnings.append(f"CPU critique: {cpu_temp:.0f}°C > 95°C")
        elif cpu_temp > 85:
            penalties += 20
            result.is_throttling = True
            result.warnings.append(f"CPU throttling possible: {cpu_temp:.0f}°C")
        elif cpu_temp > 75:
            penalties += 10
            result.warnings.append(f"CPU chaud: {cpu_temp:.0f}°C")

    gpu_temp = _reading(sensors.gpu_temp)
    if gpu_temp is not None:
        result.gpu_temp = gpu_temp
        if gpu_temp > 95:
            penalties += 35
            result.is_critical = True
            result.warnings.append(f"GPU critique: {gpu_temp:.0f}°C")
        elif gpu_temp > 85:
            penalties += 15
            result.warnings.append(f"GPU chaud: {gpu_temp:.0f}°C")

    disk_temps = [t for t in (_reading(disk.temp) for disk in sensors.disks) if t is not None and t > 0]
    if disk_temps:
        result.max_disk_temp = max(disk_temps)
        if result.max_disk_temp > 60:
            penalties += 20
            result.warnings.append(f"Disque chaud: {result.max_disk_temp:.0f}°C")
        elif result.max_disk_temp > 50:
            penalties += 5

    result.score = max(0, 100 - penalties)

    if result.is_critical:
        result.status = "Critique"
        result.recommendation = "Arrêtez les tâches lourdes immédiatement. Vérifiez le refroidissement."
    elif result.is_throttling:
        result.status = "Throttling"
        result.recommendation = "Réduisez la charge ou améliorez la ventilation."
    elif penalties > 10:
        result.status = "À surveiller"
        result.recommendation = "Températures élevées mais acceptables."
    else:
        result.status = "OK"
        result.recommendation = "Enveloppe thermique stable."

    return result


@dataclass
class StorageIoHealth:
    score: int = 100
    status: str = "OK"
    queue_length: Optional[float] = None
    read_bytes_per_sec: Optional[float] = None
    write_bytes_per_sec: Optional[float] = None
    idle_percent: Optional[float] = None
    warnings: List[str] = field(default_factory=list)
    recommendation: str = ""


def analyze_storage_io(snapshot: Optional[Dict[str, Any]]) -> StorageIoHealth:
    """Disk IO pressure from ``sections.PerformanceCounters``; only valid counters are scored."""
    result = StorageIoHealth()
    if snapshot is None:
        result.status = NOT_MEASURED
        result.score = UNMEASURED_SCORE
        return result

    data = lookup(snapshot, "sections.PerformanceCounters.data", {})

    result.queue_length = counter_value(lookup(data, "diskQueueLength"), "diskQueueLength")
    result.read_bytes_per_sec = counter_value(lookup(data, "diskReadBytesPerSec"), "diskReadBytesPerSec")
    result.write_bytes_per_sec = counter_value(lookup(data, "diskWriteBytesPerSec"), "diskWriteBytesPerSec")
    result.idle_percent = counter_value(lookup(data, "diskIdlePercent"), "diskIdlePercent")

    penalties = 0
    if result.queue_length is not None:
        if result.queue_length > 10:
            penalties += 30
            result.warnings.append(f"File d'attente disque élevée: {result.queue_length:.1f}")
        elif result.queue_length > 5:
            penalties += 15
            result.warnings.append(f"File d'attente disque modérée: {result.queue_length:.1f}")
        elif result.queue_length > 2:
            penalties += 5

    if result.idle_percent is not None and result.idle_percent < 20:
        penalties += 10
        result.warnings.append("Disque très sollicité (idle < 20%)")

    result.score = max(0, 100 - penalties)

    if penalties >= 30:
        result.status = "Saturé"
        result.recommendation = "Le disque est surchargé. Fermez des applications ou envisagez un SSD plus rapide."
    elif penalties >= 15:
        result.status = "Chargé"
        result.recommendation = "IO disque élevé mais acceptable."
    else:
        result.status = "OK"
        result.recommendation = "IO disque sain."

    return result


@dataclass
class BootHealth:
    boot_time_seconds: Optional[float] = None
    main_path_time_seconds: Optional[float] = None
    tier: str = "N/A"
    score: int = 100
    recommendation: str = ""


BOOT_TIERS = (
    (15, "Excellent (SSD/NVMe rapide)", 100, "Démarrage optimal."),
    (30, "Bon", 90, "Démarrage acceptable."),
    (60, "Moyen", 70, "Vérifier les programmes au démarrage."),
    (120, "Lent", 50, "Désactiver les applications inutiles au démarrage."),
)


def analyze_boot(snapshot: Optional[Dict[str, Any]]) -> BootHealth:
    result = BootHealth()
    if snapshot is not None:
        result.boot_time_seconds = get_number(snapshot, "sections.OS.data.bootTime")
        result.main_path_time_seconds = get_number(snapshot, "sections.OS.data.mainPathTime")

    seconds = result.boot_time_seconds
    if seconds is None:
        result.tier = NOT_MEASURED
        result.recommendation = "Temps de démarrage non disponible."
        return result

    for limit, tier, score, recommendation in BOOT_TIERS:
        if seconds <= limit:
            result.tier, result.score, result.recommendation = tier, score, recommendation
            return result

    result.tier = "Très lent"
    result.score = 30
    result.recommendation = "Considérer un SSD ou nettoyer le démarrage."
    return result


@dataclass
class StabilityInputs:
    bsod_count: int = 0
    kernel_crash_count: int = 0
    critical_event_logs: int = 0
    app_errors: int = 0
    system_errors: int = 0
    reliability_crashes: int = 0
    driver_crash_count: int = 0


def extract_stability_inputs(snapshot: Dict[str, Any]) -> StabilityInputs:
    """Collect crash and error counters; later sources override or raise earlier ones."""
    inputs = StabilityInputs()

    logs = lookup(snapshot, "sections.EventLogs.data.logs")
    if isinstance(logs, dict):
        inputs.system_errors = get_int(logs, "System.errorCount", 0)
        inputs.app_errors = get_int(logs, "Application.errorCount", 0)
        inputs.critical_event_logs = inputs.system_errors + inputs.app_errors
    inputs.bsod_count = get_int(snapshot, "sections.EventLogs.data.bsodCount", 0)

    reliability = lookup(snapshot, "sections.ReliabilityHistory.data", {})
    inputs.reliability_crashes = get_int(reliability, "crashCount30d", 0)
    inputs.reliability_crashes = max(inputs.reliability_crashes, get_int(reliability, "appCrashes", 0))
    inputs.bsod_count = max(inputs.bsod_count, get_int(reliability, "bsodCount", 0))

    minidump = lookup(snapshot, "sections.MinidumpAnalysis.data", {})
    inputs.bsod_count = max(inputs.bsod_count, get_int(minidump, "bsodCount", 0))
    inputs.kernel_crash_count = get_int(minidump, "kernelCrashCount", 0)

    inputs.bsod_count = max(inputs.bsod_count, get_int(snapshot, "scoreV2.breakdown.critical", 0))

    crash_count = get_int(snapshot, "reliability.crashCount")
    if crash_count is not None:
        inputs.reliability_crashes = crash_count
    bsod_count = get_int(snapshot, "reliability.bsodCount")
    if bsod_count is not None:
        inputs.bsod_count = bsod_count

    return inputs


def compute_stability_index(inputs: StabilityInputs) -> int:
    score = 100

    if inputs.bsod_count > 0:
        score -= min(50, 30 + inputs.bsod_count * 15)
    if inputs.kernel_crash_count > 0:
        score -= min(30, inputs.kernel_crash_count * 10)
    if inputs.reliability_crashes > 5:
        score -= min(25, (inputs.reliability_crashes - 5) * 3)
    elif inputs.reliability_crashes > 2:
        score -= 10

    log_errors = inputs.critical_event_logs + inputs.system_errors + inputs.app_errors
    if log_errors > 50:
        score -= 20
    elif log_errors > 20:
        score -= 10
    elif log_errors > 5:
        score -= 5

    if inputs.driver_crash_count > 0:
        score -= min(15, inputs.driver_crash_count * 5)

    return max(0, min(100, score))


@dataclass
class CpuProfile:
    brand: str = "N/A"
    model: str = "N/A"
    cores: int = 0
    threads: int = 0
    base_ghz: float = 0.0
    boost_ghz: float = 0.0
    realtime_ghz: Optional[float] = None
    performance_tier: str = "Office only"


def performance_tier(profile: CpuProfile) -> str:
    threads = profile.threads if profile.threads > 0 else profile.cores * 2
    max_ghz = profile.boost_ghz if profile.boost_ghz > 0 else profile.base_ghz

    if threads >= 8 and max_ghz >= 4.0:
        return "Gaming capable"
    if threads >= 6 and max_ghz >= 3.5:
        return "Workstation capable"
    return "Office only"


def analyze_cpu_profile(snapshot: Dict[str, Any]) -> CpuProfile:
    """Profile of the first entry of ``cpuList``."""
    profile = CpuProfile()
    cpu_list = lookup(snapshot, "cpuList")
    if not isinstance(cpu_list, list) or not cpu_list or not isinstance(cpu_list[0], dict):
        return profile
    first = cpu_list[0]

    name = get_str(first, "name")
    if name is not None:
        profile.model = name.strip()
        lowered = name.lower()
        profile.brand = "Intel" if "intel" in lowered else "AMD" if "amd" in lowered else "N/A"

    # Later keys win, matching the collector's precedence
    for key in ("cores", "physicalCores", "processors"):
        cores = get_int(first, key)
        if cores is not None:
            profile.cores = cores
    profile.threads = get_int(first, "threads", 0) or profile.cores

    profile.realtime_ghz = get_number(first, "speed")
    for key in ("speedMin", "baseClock"):
        value = get_number(first, key)
        if value is not None:
            profile.base_ghz = value
    for key in ("speedMax", "turboClock"):
        value = get_number(first, key)
        if value is not None:
            profile.boost_ghz = value

    if profile.boost_ghz <= 0 and profile.realtime_ghz is not None:
        profile.boost_ghz = profile.realtime_ghz
    if profile.base_ghz <= 0:
        profile.base_ghz = profile.boost_ghz * 0.7 if profile.boost_ghz > 0 else 2.0

    profile.performance_tier = performance_tier(profile)
    logger.debug(f"CPU profile: {profile.model} {profile.cores}C/{profile.threads}T -> {profile.performance_tier}")
    return profile
