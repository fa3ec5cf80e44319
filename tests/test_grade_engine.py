"""
Tests for the global grade engine
"""

import pytest

from pcdiag.core.grade_engine import (
    DOMAIN_WEIGHTS,
    GRADE_THRESHOLDS,
    GradeEngine,
    determine_grade,
    penalty_severity,
)
from pcdiag.core.model import HealthDomain, HealthSeverity, ScoreBreakdown


class TestGradeThresholds:

    @pytest.mark.parametrize("score,grade", [
        (100, "A+"), (95, "A+"), (94, "A"), (90, "A"), (89, "B+"), (80, "B+"), (79, "B"),
        (70, "B"), (69, "C"), (60, "C"), (59, "D"), (50, "D"), (49, "F"), (0, "F"),
    ])
    def test_boundaries(self, score, grade):
        assert determine_grade(score)[0] == grade

    def test_every_score_maps_to_a_grade(self):
        grades = [grade for _, grade, _ in GRADE_THRESHOLDS]
        for score in range(0, 101):
            assert determine_grade(score)[0] in grades

    def test_grades_are_monotonic(self):
        ranks = {grade: index for index, (_, grade, _) in enumerate(GRADE_THRESHOLDS)}
        previous = ranks[determine_grade(0)[0]]
        for score in range(1, 101):
            current = ranks[determine_grade(score)[0]]
            assert current <= previous
            previous = current

    def test_domain_weights_sum_to_100(self):
        assert sum(DOMAIN_WEIGHTS.values()) == 100
        assert set(DOMAIN_WEIGHTS) == set(HealthDomain.ALL)

    @pytest.mark.parametrize("amount,severity", [
        (40, HealthSeverity.CRITICAL), (30, HealthSeverity.CRITICAL), (25, HealthSeverity.DEGRADED),
        (10, HealthSeverity.WARNING), (5, HealthSeverity.HEALTHY),
    ])
    def test_penalty_severity(self, amount, severity):
        assert penalty_severity(amount) == severity


class TestGradeEngine:

    @pytest.fixture
    def engine(self):
        return GradeEngine()

    def test_healthy_report(self, engine, report_factory):
        result = engine.compute_grade(report_factory())
        assert result.raw_score == 100
        assert result.final_score == 100
        assert result.grade == "A+"
        assert result.severity == HealthSeverity.EXCELLENT
        assert result.top_negatives == []

    def test_no_data_at_all(self, engine, report_factory):
        result = engine.compute_grade(report_factory(missing_domains=HealthDomain.ALL))
        assert result.raw_score == 0
        assert result.final_score == 0
        assert result.grade == "F"
        assert result.verdict == "Critique - Intervention urgente nécessaire"

    def test_missing_domains_are_excluded_from_weights(self, engine, report_factory):
        report = report_factory(missing_domains=(HealthDomain.GPU, HealthDomain.NETWORK))
        assert engine.compute_grade(report).raw_score == 100

    def test_weighted_average(self, engine, report_factory):
        report = report_factory({HealthDomain.CPU: {"Temperature": "96°C"}})
        result = engine.compute_grade(report)
        # (70 * 15 + 100 * 85) / 100
        assert result.raw_score == 95
        assert result.grade == "A+"
        assert result.domain_details[HealthDomain.CPU].score == 70
        assert result.top_negatives == ["CPU: Température CPU critique (96°C)"]

    def test_positives_are_best_three(self, engine, report_factory):
        report = report_factory({HealthDomain.CPU: {"Temperature": "96°C"}})
        result = engine.compute_grade(report)
        assert result.top_positives == ["OS (100/100)", "GPU (100/100)", "RAM (100/100)"]

    def test_partial_failure_penalty(self, engine, report_factory):
        result = engine.compute_grade(report_factory(partial_failure=True))
        assert result.final_score == 90
        assert result.critical_penalties == ["Scan partiel - certaines données manquantes"]

    def test_critical_overrides(self, engine, report_factory):
        report = report_factory(breakdown=ScoreBreakdown(critical=4, timeouts=3))
        result = engine.compute_grade(report)
        assert "Nombreuses erreurs critiques détectées" in result.critical_penalties
        assert "Timeouts multiples pendant le scan" in result.critical_penalties
        assert result.final_score == result.raw_score - 30

    def test_explanations(self, engine, report_factory):
        result = engine.compute_grade(report_factory({HealthDomain.STORAGE: {"EspaceLibre": "3 GB"}}))
        assert result.explanations[0] == f"Score global : {result.final_score}/100 (Grade {result.grade})"
        assert "• Storage: Espace disque critique (< 5 GB)" in result.explanations
        assert "Principaux points d'attention" in result.user_friendly_explanation

    def test_internal_failure_yields_pessimistic_grade(self, engine):
        result = engine.compute_grade(None)
        assert result.grade == "?"
        assert result.final_score == 0
        assert result.verdict == "Impossible d'évaluer - données manquantes"


class TestApplyGrades:

    def test_writes_scores_onto_report(self, report_factory):
        report = report_factory({HealthDomain.STORAGE: {"EspaceLibre": "3 GB"}})
        grade = GradeEngine().apply_grades(report)

        storage = report.section(HealthDomain.STORAGE)
        assert report.global_score == grade.final_score
        assert report.grade == grade.grade
        assert storage.score == 60
        assert storage.severity == HealthSeverity.WARNING
        assert len(storage.penalty_findings) == 1

        finding = storage.penalty_findings[0]
        assert finding.source == "GradeEngine"
        assert finding.severity == HealthSeverity.CRITICAL
        assert finding.penalty_applied == 40
        assert finding.description == "Espace disque critique (< 5 GB)"

    def test_apply_is_idempotent(self, report_factory):
        report = report_factory({HealthDomain.CPU: {"Temperature": "96°C"}})
        engine = GradeEngine()
        first = engine.apply_grades(report)
        findings_after_first = report.findings_count()
        second = engine.apply_grades(report)

        assert first == second
        assert report.findings_count() == findings_after_first == 1
