"""
Data Reliability Score for PC Diag

Measures how much the diagnostic can be trusted, not how healthy the machine
is: a partial collection lowers reliability without lowering machine health.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from pcdiag.core.model import HealthDomain, HealthReport
from pcdiag.data.heuristics import contains_any, heuristics

logger = logging.getLogger(__name__)

# Index = error count - 1
ERROR_SCORE_CURVE = (100, 95, 90, 84, 78, 72)
DEGRADATION_PER_EXTRA_ERROR = 4
MINIMUM_SCORE = 40
MISSING_PENALTY_CAP = 20
NO_SECURITY_PENALTY = 10
NO_SMART_PENALTY = 3


def _error_base_score(error_count: int) -> int:
    if error_count <= 0:
        return 100
    if error_count <= len(ERROR_SCORE_CURVE):
        return ERROR_SCORE_CURVE[error_count - 1]
    extra = error_count - len(ERROR_SCORE_CURVE)
    return max(MINIMUM_SCORE, ERROR_SCORE_CURVE[-1] - extra * DEGRADATION_PER_EXTRA_ERROR)


def _missing_weight(item: str) -> Optional[Tuple[str, int]]:
    """Return (category, penalty) of the first keyword group matching ``item``."""
    normalized = item.upper()
    for group in heuristics["missing_data_weights"]:
        if any(keyword.upper() in normalized for keyword in group["keywords"]):
            return group["category"], group["penalty"]
    return None


def has_security_data(missing_data: Iterable[str]) -> bool:
    return not any(contains_any(item, heuristics["security_missing_markers"]) for item in missing_data)


def has_smart_data(report: HealthReport) -> bool:
    return any(section.domain == HealthDomain.STORAGE and section.has_data for section in report.sections)


def is_smart_suspect(report: HealthReport) -> bool:
    markers = heuristics["smart_error_markers"]
    return any(contains_any(e.code, markers) or contains_any(e.message, markers) for e in report.errors)


def compute(collector_errors: int,
            missing_data: Optional[List[str]] = None,
            has_security: bool = True,
            has_smart: bool = True) -> int:
    """Data reliability score in [40, 100]."""
    applied = []

    score = _error_base_score(collector_errors)
    if collector_errors > 0:
        applied.append(f"CollectorErrors({collector_errors})=-{100 - score}")

    missing_penalty = 0
    for item in missing_data or []:
        if not item or not item.strip():
            continue
        weight = _missing_weight(item)
        if weight:
            category, penalty = weight
        else:
            category, penalty = "Unknown", 1
        missing_penalty += penalty
        applied.append(f"Missing_{category}=-{penalty}")

    score = max(MINIMUM_SCORE, score - min(missing_penalty, MISSING_PENALTY_CAP))

    if not has_security:
        score = max(MINIMUM_SCORE, score - NO_SECURITY_PENALTY)
        applied.append(f"NoSecurityData=-{NO_SECURITY_PENALTY}")

    if not has_smart:
        score = max(MINIMUM_SCORE, score - NO_SMART_PENALTY)
        applied.append(f"NoSmartData=-{NO_SMART_PENALTY}")

    if applied:
        logger.debug(f"DRS={score}/100 | Penalties: {', '.join(applied)}")

    return max(MINIMUM_SCORE, min(100, score))


def compute_detailed(collector_errors: int,
                     missing_data: Optional[List[str]] = None,
                     has_security: bool = True,
                     has_smart: bool = True) -> Tuple[int, List[str]]:
    """Same computation as :func:`compute` with an audit breakdown.

    Missing items matching no keyword group are not counted here.
    """
    breakdown = ["Base: 100"]
    score = 100

    if collector_errors > 0:
        error_penalty = 100 - _error_base_score(collector_errors)
        score -= error_penalty
        breakdown.append(f"CollectorErrors({collector_errors}): -{error_penalty}")

    missing_penalty = 0
    for item in missing_data or []:
        if not item or not item.strip():
            continue
        weight = _missing_weight(item)
        if weight:
            category, penalty = weight
            missing_penalty += penalty
            breakdown.append(f"Missing[{category}]: -{penalty}")

    capped = min(missing_penalty, MISSING_PENALTY_CAP)
    if capped != missing_penalty:
        breakdown.append(f"MissingPenalty capped: {missing_penalty}→{capped}")
    score = max(MINIMUM_SCORE, score - capped)

    if not has_security:
        score = max(MINIMUM_SCORE, score - NO_SECURITY_PENALTY)
        breakdown.append(f"NoSecurityData: -{NO_SECURITY_PENALTY}")

    if not has_smart:
        score = max(MINIMUM_SCORE, score - NO_SMART_PENALTY)
        breakdown.append(f"NoSmartData: -{NO_SMART_PENALTY}")

    breakdown.append(f"Final: {score}")
    return max(MINIMUM_SCORE, min(100, score)), breakdown
