"""
Domain Scorer for PC Diag
Additive penalty model scoring one hardware/software domain from its evidence
"""

import logging
from typing import Callable, Dict, Iterable, List, Tuple

from pcdiag.core.model import DomainScore, HealthDomain, HealthReport, HealthSection, ScanError
from pcdiag.data.heuristics import contains_any, heuristics
from pcdiag.utils.lookup import format_number, parse_measure

logger = logging.getLogger(__name__)

BASE_SCORE = 100

Penalties = List[Tuple[int, str]]


def count_domain_errors(domain: str, errors: Iterable[ScanError]) -> int:
    """Count collector errors attributed to ``domain`` by the configured substring matchers."""
    matcher = heuristics["domain_error_matchers"].get(domain)
    if not matcher:
        return 0
    sections = matcher.get("section", [])
    messages = matcher.get("message", [])
    return sum(
        1 for error in errors
        if contains_any(error.section, sections) or contains_any(error.message, messages)
    )


def _evaluate_os(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    update_status = section.evidence.get("UpdateStatus")
    if update_status and contains_any(update_status, heuristics["update_outdated_markers"]):
        penalties.append((20, "Windows n'est pas à jour"))

    os_errors = count_domain_errors(HealthDomain.OS, report.errors)
    if os_errors > 0:
        penalties.append((os_errors * 5, f"{os_errors} erreur(s) OS détectée(s)"))

    if report.breakdown.critical > 0:
        penalties.append((15, "Problèmes d'intégrité système détectés"))


def _evaluate_cpu(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    temp = parse_measure(section.evidence.get("Temperature"), ("°C",))
    if temp is not None:
        shown = format_number(temp)
        if temp > 90:
            penalties.append((30, f"Température CPU critique ({shown}°C)"))
        elif temp > 80:
            penalties.append((15, f"Température CPU élevée ({shown}°C)"))
        elif temp > 70:
            penalties.append((5, f"Température CPU à surveiller ({shown}°C)"))

    load = parse_measure(section.evidence.get("Load"), ("%",))
    if load is not None:
        if load > 95:
            penalties.append((20, "CPU surchargé en permanence"))
        elif load > 80:
            penalties.append((10, "Charge CPU élevée"))


def _evaluate_gpu(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    temp = parse_measure(section.evidence.get("Temperature"), ("°C",))
    if temp is not None:
        shown = format_number(temp)
        if temp > 95:
            penalties.append((30, f"Température GPU critique ({shown}°C)"))
        elif temp > 85:
            penalties.append((15, f"Température GPU élevée ({shown}°C)"))

    if count_domain_errors(HealthDomain.GPU, report.errors) > 0:
        penalties.append((10, "Problèmes de pilotes graphiques"))


def _evaluate_ram(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    total = parse_measure(section.evidence.get("Total"), ("GB",))
    available = parse_measure(section.evidence.get("Disponible"), ("GB",))
    if total is None or available is None or total <= 0:
        return

    used_percent = (total - available) / total * 100
    if used_percent > 95:
        penalties.append((30, "Mémoire presque saturée"))
    elif used_percent > 85:
        penalties.append((15, "Mémoire très utilisée"))
    elif used_percent > 75:
        penalties.append((5, "Utilisation mémoire élevée"))


def _evaluate_storage(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    free = parse_measure(section.evidence.get("EspaceLibre"), ("GB", "%"))
    if free is not None:
        if free < 5:
            penalties.append((40, "Espace disque critique (< 5 GB)"))
        elif free < 10:
            penalties.append((25, "Espace disque faible (< 10 GB)"))
        elif free < 20:
            penalties.append((10, "Espace disque limité (< 20 GB)"))

    if count_domain_errors(HealthDomain.STORAGE, report.errors) > 0:
        penalties.append((25, "Problèmes de santé disque détectés"))


def _evaluate_network(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    if section.collection_status == "FAILED":
        penalties.append((30, "Problèmes de connectivité réseau"))

    latency = parse_measure(section.evidence.get("Latency"), ("ms",))
    if latency is not None:
        if latency > 500:
            penalties.append((20, "Latence réseau très élevée"))
        elif latency > 200:
            penalties.append((10, "Latence réseau élevée"))


def _evaluate_stability(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    crashes = report.breakdown.critical
    if crashes > 5:
        penalties.append((40, f"Nombreux crashs système ({crashes})"))
    elif crashes > 2:
        penalties.append((20, f"Crashs système détectés ({crashes})"))
    elif crashes > 0:
        penalties.append((10, f"Crash système isolé ({crashes})"))

    if report.breakdown.collector_errors > 3:
        penalties.append((15, "Problèmes de collecte multiples"))


def _evaluate_drivers(section: HealthSection, report: HealthReport, penalties: Penalties) -> None:
    driver_errors = count_domain_errors(HealthDomain.DRIVERS, report.errors)
    if driver_errors > 5:
        penalties.append((30, "Nombreux pilotes problématiques"))
    elif driver_errors > 2:
        penalties.append((15, "Quelques pilotes à mettre à jour"))
    elif driver_errors > 0:
        penalties.append((5, "Pilote à vérifier"))


DOMAIN_EVALUATORS: Dict[str, Callable[[HealthSection, HealthReport, Penalties], None]] = {
    HealthDomain.OS: _evaluate_os,
    HealthDomain.CPU: _evaluate_cpu,
    HealthDomain.GPU: _evaluate_gpu,
    HealthDomain.RAM: _evaluate_ram,
    HealthDomain.STORAGE: _evaluate_storage,
    HealthDomain.NETWORK: _evaluate_network,
    HealthDomain.STABILITY: _evaluate_stability,
    HealthDomain.DRIVERS: _evaluate_drivers,
}


def domain_status(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Bon état"
    if score >= 50:
        return "À surveiller"
    if score >= 30:
        return "Problèmes détectés"
    return "Critique"


def domain_explanation(domain: str, score: int, penalties: Penalties) -> str:
    label = HealthDomain.LABELS.get(domain, "Ce composant")
    explanation = f"{label} a obtenu un score de {score}/100. "
    if not penalties:
        return explanation + "Aucun problème détecté."
    return explanation + f"Points d'attention : {', '.join(reason for _, reason in penalties)}."


def evaluate_domain(section: HealthSection, report: HealthReport) -> DomainScore:
    """Score one section. A section without data scores 0."""
    if not section.has_data:
        return DomainScore(
            domain=section.domain,
            score=0,
            has_data=False,
            status_message="Données non disponibles",
            explanation="Ce domaine n'a pas pu être analysé.",
        )

    penalties: Penalties = []
    evaluator = DOMAIN_EVALUATORS.get(section.domain)
    if evaluator:
        evaluator(section, report, penalties)
    else:
        logger.debug(f"No evaluator for domain {section.domain}")

    score = max(0, min(100, BASE_SCORE - sum(amount for amount, _ in penalties)))
    logger.debug(f"Domain {section.domain}: score={score}, penalties={len(penalties)}")

    return DomainScore(
        domain=section.domain,
        score=score,
        has_data=True,
        penalties=tuple(penalties),
        status_message=domain_status(score),
        explanation=domain_explanation(section.domain, score, penalties),
    )
