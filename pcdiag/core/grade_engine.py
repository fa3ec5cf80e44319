"""
Global Grade Engine for PC Diag
Weighted domain aggregation, critical overrides, letter grade and narrative
"""

import logging
from typing import Dict, List, Tuple

from pcdiag.core.domain_scorer import evaluate_domain
from pcdiag.core.model import (
    DomainScore,
    GradeResult,
    HealthDomain,
    HealthFinding,
    HealthReport,
    HealthSeverity,
)

# Domain weights in the global score, summing to 100
DOMAIN_WEIGHTS = {
    HealthDomain.OS: 15,
    HealthDomain.CPU: 15,
    HealthDomain.GPU: 10,
    HealthDomain.RAM: 15,
    HealthDomain.STORAGE: 20,
    HealthDomain.NETWORK: 10,
    HealthDomain.STABILITY: 10,
    HealthDomain.DRIVERS: 5,
}

# First match wins, descending
GRADE_THRESHOLDS: Tuple[Tuple[int, str, str], ...] = (
    (95, "A+", "Excellent - Votre PC est en parfait état"),
    (90, "A", "Très bien - Votre PC fonctionne optimalement"),
    (80, "B+", "Bien - Quelques optimisations mineures possibles"),
    (70, "B", "Correct - Attention recommandée sur certains points"),
    (60, "C", "Dégradé - Des problèmes affectent les performances"),
    (50, "D", "Critique - Intervention recommandée rapidement"),
    (0, "F", "Critique - Intervention urgente nécessaire"),
)

FALLBACK_VERDICT = "Impossible d'évaluer - données manquantes"

EXPLANATION_BANDS = (
    (90, "Votre PC est en excellent état général."),
    (70, "Votre PC fonctionne correctement, avec quelques points à surveiller."),
    (50, "Votre PC présente des problèmes qui affectent ses performances."),
    (0, "Votre PC nécessite une intervention rapide."),
)

MAX_NARRATIVE_DOMAINS = 3
POSITIVE_THRESHOLD = 80


def determine_grade(score: int) -> Tuple[str, str]:
    for min_score, grade, verdict in GRADE_THRESHOLDS:
        if score >= min_score:
            return grade, verdict
    return GRADE_THRESHOLDS[-1][1], GRADE_THRESHOLDS[-1][2]


def penalty_severity(amount: int) -> str:
    """Severity of the finding derived from one domain penalty."""
    if amount >= 30:
        return HealthSeverity.CRITICAL
    if amount >= 20:
        return HealthSeverity.DEGRADED
    if amount >= 10:
        return HealthSeverity.WARNING
    return HealthSeverity.HEALTHY


class GradeEngine:
    """Computes the global grade of a health report."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def compute_grade(self, report: HealthReport) -> GradeResult:
        """Compute the grade; any unexpected failure yields the pessimistic result."""
        try:
            return self._compute(report)
        except Exception as e:
            self.logger.error(f"Grade computation failed: {e}", exc_info=True)
            return GradeResult(
                final_score=0,
                grade="?",
                verdict=FALLBACK_VERDICT,
                severity=HealthSeverity.UNKNOWN,
            )

    def _compute(self, report: HealthReport) -> GradeResult:
        result = GradeResult()

        total_weight = 0
        weighted_sum = 0
        for section in report.sections:
            domain_score = evaluate_domain(section, report)
            result.domain_details[section.domain] = domain_score

            weight = DOMAIN_WEIGHTS.get(section.domain)
            if domain_score.has_data and weight:
                total_weight += weight
                weighted_sum += domain_score.score * weight

        result.raw_score = weighted_sum // total_weight if total_weight > 0 else 0
        result.final_score = self._apply_critical_penalties(result.raw_score, report, result.critical_penalties)
        result.grade, result.verdict = determine_grade(result.final_score)
        result.severity = HealthSeverity.from_score(result.final_score)

        result.top_negatives = self._top_negatives(result.domain_details)
        result.top_positives = self._top_positives(result.domain_details)
        result.user_friendly_explanation = self._user_friendly_explanation(result)
        result.explanations = self._explanations(result)

        self.logger.info(
            f"Grade computed: raw={result.raw_score}, final={result.final_score}, grade={result.grade}"
        )
        return result

    def _apply_critical_penalties(self, raw_score: int, report: HealthReport, applied: List[str]) -> int:
        final_score = raw_score

        if report.partial_failure:
            final_score -= 10
            applied.append("Scan partiel - certaines données manquantes")

        if report.breakdown.critical > 3:
            final_score -= 20
            applied.append("Nombreuses erreurs critiques détectées")

        if report.breakdown.timeouts > 2:
            final_score -= 10
            applied.append("Timeouts multiples pendant le scan")

        return max(0, min(100, final_score))

    def _worst_domains(self, details: Dict[str, DomainScore]) -> List[DomainScore]:
        candidates = [d for d in details.values() if d.has_data and d.penalties]
        # sorted() is stable: equal totals keep report order
        return sorted(candidates, key=lambda d: d.total_penalty, reverse=True)[:MAX_NARRATIVE_DOMAINS]

    def _top_negatives(self, details: Dict[str, DomainScore]) -> List[str]:
        return [f"{d.domain}: {d.top_penalty[1]}" for d in self._worst_domains(details)]

    def _top_positives(self, details: Dict[str, DomainScore]) -> List[str]:
        candidates = [d for d in details.values() if d.has_data and d.score >= POSITIVE_THRESHOLD]
        best = sorted(candidates, key=lambda d: d.score, reverse=True)[:MAX_NARRATIVE_DOMAINS]
        return [f"{d.domain} ({d.score}/100)" for d in best]

    def _user_friendly_explanation(self, result: GradeResult) -> str:
        text = next(template for minimum, template in EXPLANATION_BANDS if result.final_score >= minimum)
        if result.top_negatives:
            text += f" Principaux points d'attention : {', '.join(result.top_negatives)}."
        if result.top_positives:
            text += f" Points forts : {', '.join(result.top_positives)}."
        return text

    def _explanations(self, result: GradeResult) -> List[str]:
        explanations = [
            f"Score global : {result.final_score}/100 (Grade {result.grade})",
            result.verdict,
        ]
        for domain_score in self._worst_domains(result.domain_details):
            explanations.append(f"• {domain_score.domain}: {domain_score.top_penalty[1]}")
        for penalty in result.critical_penalties:
            explanations.append(f"⚠️ {penalty}")
        return explanations

    def apply_grades(self, report: HealthReport) -> GradeResult:
        """Write the computed grade back onto ``report``.

        Re-running on the same evidence yields the same report: derived
        penalty findings are replaced, never appended.
        """
        grade = self.compute_grade(report)

        report.global_score = grade.final_score
        report.grade = grade.grade
        report.global_severity = grade.severity
        report.global_message = grade.verdict

        for section in report.sections:
            domain_score = grade.domain_details.get(section.domain)
            if domain_score is None:
                continue
            section.score = domain_score.score
            section.severity = HealthSeverity.from_score(domain_score.score)
            section.status_message = domain_score.status_message
            section.detailed_explanation = domain_score.explanation
            section.penalty_findings = [
                HealthFinding(
                    severity=penalty_severity(amount),
                    title=reason,
                    description=reason,
                    source="GradeEngine",
                    penalty_applied=amount,
                )
                for amount, reason in domain_score.penalties
            ]

        return grade


def compute_grade(report: HealthReport) -> GradeResult:
    return GradeEngine().compute_grade(report)


def apply_grades(report: HealthReport) -> GradeResult:
    return GradeEngine().apply_grades(report)
