"""
Tests for the remediation readiness gate
"""

import pytest

from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.grade_engine import GradeEngine
from pcdiag.core.model import (
    SAFE_RULES_CATALOG,
    Actionability,
    HealthDomain,
    HealthFinding,
    RemediationItem,
    RemediationReadiness,
    ScanError,
)
from pcdiag.core.readiness import evaluate, format_readiness_section, has_only_safe_errors, readiness_score


def graded(report):
    GradeEngine().apply_grades(report)
    return report


def issue_ids(items):
    return [item.issue_id for item in items]


class TestGate:

    def test_allowed_with_good_confidence(self, report_factory):
        readiness = evaluate(graded(report_factory()), CollectorDiagnostics(), 90)
        assert readiness.auto_fix_allowed is True
        assert readiness.block_reason is None
        assert readiness.readiness_score == 90
        assert readiness.safe_rules == list(SAFE_RULES_CATALOG)

    def test_low_confidence_blocks(self, report_factory):
        readiness = evaluate(graded(report_factory()), CollectorDiagnostics(), 55)
        assert readiness.auto_fix_allowed is False
        assert readiness.block_reason == "Confiance trop faible (55/100 < 60)"
        assert readiness.readiness_score <= 40

    def test_low_confidence_dominates_collector_errors(self, report_factory):
        diagnostics = CollectorDiagnostics(errors=[ScanError(code="WMI_FAIL")], collector_errors_logical=1)
        readiness = evaluate(graded(report_factory()), diagnostics, 40)
        assert readiness.block_reason.startswith("Confiance trop faible")

    def test_unsafe_collector_errors_block(self, report_factory):
        diagnostics = CollectorDiagnostics(errors=[ScanError(code="WMI_FAIL")], collector_errors_logical=1)
        readiness = evaluate(graded(report_factory()), diagnostics, 90)
        assert readiness.auto_fix_allowed is False
        assert readiness.block_reason == "Erreurs collecteur non-safe (1)"
        assert readiness.readiness_score == 40

    def test_safe_collector_errors_allowed(self, report_factory):
        diagnostics = CollectorDiagnostics(errors=[ScanError(code="TEMP_READ_WARN")], collector_errors_logical=1)
        assert evaluate(graded(report_factory()), diagnostics, 90).auto_fix_allowed is True

    def test_has_only_safe_errors(self):
        assert has_only_safe_errors(CollectorDiagnostics())
        assert has_only_safe_errors(CollectorDiagnostics(errors=[ScanError(code="WARN_1"), ScanError(code="TEMP")]))
        assert not has_only_safe_errors(CollectorDiagnostics(errors=[ScanError(code="WARN_1"), ScanError(code="X")]))


class TestClassification:

    def test_low_disk_space_is_fixable(self, report_factory):
        report = graded(report_factory({HealthDomain.STORAGE: {"EspaceLibre": "3 GB"}}))
        readiness = evaluate(report, CollectorDiagnostics(), 90)

        assert issue_ids(readiness.fixable) == ["DISK_SPACE"]
        item = readiness.fixable[0]
        assert item.actionability == Actionability.FIXABLE
        assert item.is_safe is True
        assert item.confidence_required == 40
        assert "Remove-Item $env:TEMP" in item.suggested_action
        assert readiness.readiness_score == 95

    def test_classification_runs_when_blocked(self, report_factory):
        report = graded(report_factory({HealthDomain.STORAGE: {"EspaceLibre": "3 GB"}}))
        readiness = evaluate(report, CollectorDiagnostics(), 55)
        assert readiness.auto_fix_allowed is False
        assert issue_ids(readiness.fixable) == ["DISK_SPACE"]

    def test_hot_cpu_is_suggest_only(self, report_factory):
        report = graded(report_factory({HealthDomain.CPU: {"Temperature": "96°C"}}))
        readiness = evaluate(report, CollectorDiagnostics(), 90)
        assert issue_ids(readiness.suggest_only) == ["CPU_THERMAL"]
        assert readiness.suggest_only[0].description == "Température CPU critique (96°C)"

    def test_invalid_cpu_sensor_is_not_enough_data(self, report_factory):
        report = graded(report_factory({HealthDomain.CPU: {"Temperature": "96°C"}}))
        diagnostics = CollectorDiagnostics(invalidated_metrics=["CPU Temp: Valeur sentinelle détectée: 0"])
        readiness = evaluate(report, diagnostics, 90)

        assert readiness.suggest_only == []
        assert issue_ids(readiness.not_enough_data) == ["CPU_THERMAL_INVALID", "INVALID_METRIC"]
        assert readiness.readiness_score == 70

    def test_hot_disk_is_suggest_only(self, report_factory):
        report = graded(report_factory())
        report.section(HealthDomain.STORAGE).findings = [
            HealthFinding(severity="Warning", title="Disque chaud", description="Température disque 58°C"),
        ]
        readiness = evaluate(report, CollectorDiagnostics(), 90)
        assert issue_ids(readiness.suggest_only) == ["DISK_THERMAL"]

    def test_windows_update_finding(self, report_factory):
        report = graded(report_factory())
        report.section(HealthDomain.OS).findings = [
            HealthFinding(severity="Warning", title="Updates", description="Mises à jour en attente",
                          source="WindowsUpdate"),
        ]
        diagnostics = CollectorDiagnostics(errors=[ScanError(code="UPDATE_FAIL", message="update failed")])
        readiness = evaluate(report, diagnostics, 90)
        assert issue_ids(readiness.fixable) == ["WU_SERVICE"]

    def test_windows_update_error_without_finding(self, report_factory):
        diagnostics = CollectorDiagnostics(errors=[ScanError(code="WU", message="Update service unreachable")])
        readiness = evaluate(graded(report_factory()), diagnostics, 90)
        assert issue_ids(readiness.fixable) == ["WU_ERROR"]
        assert readiness.fixable[0].description == "Erreur Windows Update: Update service unreachable"

    def test_driver_findings(self, report_factory):
        report = graded(report_factory())
        report.section(HealthDomain.DRIVERS).findings = [HealthFinding(severity="Warning", title="Pilote",
                                                                       description="Pilote audio obsolète")]
        readiness = evaluate(report, CollectorDiagnostics(), 90)
        assert issue_ids(readiness.suggest_only) == ["DRIVER_ISSUE"]


class TestReadinessScore:

    def test_bonus_and_malus(self):
        readiness = RemediationReadiness(auto_fix_allowed=True)
        readiness.fixable = [RemediationItem("A", "a", "c", Actionability.FIXABLE, is_safe=True)] * 3
        readiness.not_enough_data = [RemediationItem("B", "b", "c", Actionability.NOT_ENOUGH_DATA)]
        assert readiness_score(readiness, 80) == 85

    @pytest.mark.parametrize("confidence,expected", [(100, 100), (0, 0)])
    def test_clamped(self, confidence, expected):
        readiness = RemediationReadiness(auto_fix_allowed=True)
        readiness.fixable = [RemediationItem("A", "a", "c", Actionability.FIXABLE, is_safe=True)] * 2
        if expected == 0:
            readiness.not_enough_data = [RemediationItem("B", "b", "c", Actionability.NOT_ENOUGH_DATA)] * 2
        assert readiness_score(readiness, confidence) == expected


class TestReadinessText:

    def test_blocked_section(self):
        readiness = RemediationReadiness(readiness_score=30, auto_fix_allowed=False,
                                         block_reason="Confiance trop faible (55/100 < 60)")
        readiness.not_enough_data = [
            RemediationItem("INVALID_METRIC", f"metric {i}", "Collecte", Actionability.NOT_ENOUGH_DATA)
            for i in range(5)
        ]
        text = format_readiness_section(readiness)

        assert "┌─ LLM AUTOFIX READINESS" in text
        assert "Score Readiness    : 30/100" in text
        assert "❌ BLOQUÉ" in text
        assert "Raison blocage     : Confiance trop faible (55/100 < 60)" in text
        assert "Not enough data  : 5 item(s)" in text
        assert "metric 2" in text
        assert "metric 3" not in text
        assert SAFE_RULES_CATALOG[3] in text
        assert SAFE_RULES_CATALOG[4] not in text

    def test_allowed_section_has_no_reason(self):
        text = format_readiness_section(RemediationReadiness(readiness_score=90, auto_fix_allowed=True))
        assert "✅ AUTORISÉ" in text
        assert "Raison blocage" not in text
        assert text.splitlines()[-1].startswith("  └")
