import json
from pathlib import Path
from typing import Iterable


_HEURISTICS_PATH = Path(__file__).with_name("heuristics.json")

with open(_HEURISTICS_PATH, "r", encoding="utf-8") as f:
    _RAW = json.load(f)

heuristics = {
    "domain_error_matchers": _RAW.get("domain_error_matchers", {}),
    "update_outdated_markers": _RAW.get("update_outdated_markers", []),
    "update_pending_markers": _RAW.get("update_pending_markers", []),
    "safe_error_code_markers": _RAW.get("safe_error_code_markers", []),
    "hardware_error_code_markers": _RAW.get("hardware_error_code_markers", []),
    "security_error_code_markers": _RAW.get("security_error_code_markers", []),
    "security_error_message_markers": _RAW.get("security_error_message_markers", []),
    "confidence_error_code_markers": _RAW.get("confidence_error_code_markers", []),
    "confidence_error_message_markers": _RAW.get("confidence_error_message_markers", []),
    "security_missing_markers": _RAW.get("security_missing_markers", []),
    "smart_error_markers": _RAW.get("smart_error_markers", []),
    "critical_missing_markers": _RAW.get("critical_missing_markers", []),
    "missing_data_weights": _RAW.get("missing_data_weights", []),
    "counter_rules": _RAW.get("counter_rules", []),
    "critical_services": _RAW.get("critical_services", []),
    "smart_bad_health": _RAW.get("smart_bad_health", []),
    "readiness_markers": _RAW.get("readiness_markers", {}),
}


def contains_any(text: str, markers: Iterable[str]) -> bool:
    """Case-insensitive substring match against a marker list."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers)
