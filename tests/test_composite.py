"""
Tests for the composite index
"""

from unittest.mock import MagicMock

import pytest

from pcdiag.core.composite import (
    CRITICAL_MESSAGE,
    ENGINE_ERROR_MESSAGE,
    CompositeEngine,
    build_sections_summary,
    combine,
    composite_message,
    compute_clarity,
    compute_machine_health,
    domain_priority,
)
from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.findings import FindingsBuilder
from pcdiag.core.grade_engine import GradeEngine
from pcdiag.core.model import HealthDomain, RawReading, ScanError, SensorSnapshot


class TestMessages:

    @pytest.mark.parametrize("score,message", [
        (100, "État excellent — diagnostic fiable."),
        (95, "État excellent — diagnostic fiable."),
        (94, "Bon état — quelques points à surveiller."),
        (80, "Bon état — quelques points à surveiller."),
        (79, "État dégradé — actions recommandées."),
        (60, "État dégradé — actions recommandées."),
        (59, "État préoccupant — intervention conseillée."),
        (40, "État préoccupant — intervention conseillée."),
        (39, CRITICAL_MESSAGE),
        (0, CRITICAL_MESSAGE),
    ])
    def test_message_table(self, score, message):
        assert composite_message(score) == message

    def test_domain_priority(self):
        assert domain_priority(HealthDomain.STORAGE) == "Critical"
        assert domain_priority(HealthDomain.DRIVERS) == "Low"
        assert domain_priority("Bluetooth") == "Low"


class TestCombine:

    @pytest.mark.parametrize("mhs,drs,dcs,expected", [
        (100, 100, 100, 100), (50, 50, 50, 50), (0, 40, 0, 8), (0, 0, 0, 0), (90, 72, 85, 86),
    ])
    def test_weights(self, mhs, drs, dcs, expected):
        assert combine(mhs, drs, dcs) == expected

    def test_always_within_bounds(self):
        for mhs in range(0, 101, 10):
            for drs in range(40, 101, 10):
                for dcs in range(0, 101, 10):
                    assert 0 <= combine(mhs, drs, dcs) <= 100


class TestMachineHealth:

    def test_per_section_deduction_is_capped(self, report_factory):
        report = report_factory()
        report.section(HealthDomain.CPU).score = 70
        report.section(HealthDomain.STORAGE).score = 0
        for domain in HealthDomain.ALL:
            if domain not in (HealthDomain.CPU, HealthDomain.STORAGE):
                report.section(domain).score = 100

        score, breakdown = compute_machine_health(report, None)
        assert score == 70
        assert breakdown["High"] == 24
        assert breakdown["Critical"] == 100

    def test_sections_without_data_are_skipped(self, report_factory):
        report = report_factory(missing_domains=HealthDomain.ALL)
        assert compute_machine_health(report, None)[0] == 100

    def test_error_and_temperature_deductions(self, report_factory):
        report = report_factory(
            missing_domains=HealthDomain.ALL,
            errors=[ScanError(code="WMI_FAIL"), ScanError(code="X", message="Defender unreachable")],
        )
        sensors = SensorSnapshot(
            cpu_temp=RawReading(value=92.0, available=True),
            gpu_temp=RawReading(value=88.0, available=True),
        )
        # -10 hardware, -15 security, -20 CPU, -10 GPU
        assert compute_machine_health(report, sensors)[0] == 45

    def test_hidden_readings_are_ignored(self, report_factory):
        report = report_factory(missing_domains=HealthDomain.ALL)
        sensors = SensorSnapshot(cpu_temp=RawReading(value=130.0, available=False))
        assert compute_machine_health(report, sensors)[0] == 100


class TestClarity:

    def test_clear_diagnostic(self, report_factory):
        assert compute_clarity(report_factory(), CollectorDiagnostics()) == 100

    def test_invalid_and_missing(self, report_factory):
        diagnostics = CollectorDiagnostics(
            invalidated_metrics=[f"m{i}" for i in range(5)],
            missing_data=[f"d{i}" for i in range(6)],
        )
        assert compute_clarity(report_factory(), diagnostics) == 70

    def test_nothing_collected(self, report_factory):
        assert compute_clarity(report_factory(missing_domains=HealthDomain.ALL), None) == 85


class TestCompositeEngine:

    @pytest.fixture(scope="class")
    def engine(self):
        return CompositeEngine(FindingsBuilder())

    def test_healthy_machine(self, engine, report_factory, healthy_snapshot, healthy_sensors):
        report = report_factory()
        GradeEngine().apply_grades(report)
        index = engine.compute(report, healthy_snapshot, healthy_sensors, CollectorDiagnostics())

        assert index.machine_health_score == 100
        assert index.data_reliability_score == 100
        assert index.diagnostic_clarity_score == 100
        assert index.composite_score == 100
        assert index.grade == "A+"
        assert index.auto_fix_allowed is True
        assert index.findings == []
        assert index.thermal_status == "OK"
        assert index.boot_health_tier == "Excellent (SSD/NVMe rapide)"
        assert index.cpu_performance_tier == "Gaming capable"
        assert len(index.sections_summary) == len(HealthDomain.ALL)

    def test_without_snapshot(self, engine, report_factory):
        report = report_factory()
        GradeEngine().apply_grades(report)
        index = engine.compute(report, None, None, None)

        assert index.storage_io_status == "N/A"
        assert index.thermal_status == "Non mesuré"
        assert 0 <= index.composite_score <= 100

    def test_missing_security_blocks_autofix(self, engine, report_factory):
        report = report_factory(missing_data=["Defender status"])
        GradeEngine().apply_grades(report)
        index = engine.compute(report, {}, None, CollectorDiagnostics(missing_data=["Defender status"]))
        assert index.data_reliability_score == 82
        assert index.auto_fix_allowed is False
        assert index.block_reason == "Données sécurité manquantes"

    def test_section_summary(self, report_factory):
        report = report_factory({HealthDomain.STORAGE: {"EspaceLibre": "3 GB"}})
        GradeEngine().apply_grades(report)
        summary = {s.section_name: s for s in build_sections_summary(report)}

        storage = summary[HealthDomain.STORAGE]
        assert storage.score == 60
        assert storage.status == "À surveiller"
        assert storage.priority == "Critical"
        assert storage.recommendation == "Espace disque critique (< 5 GB)"

    def test_internal_failure_yields_pessimistic_index(self, report_factory):
        builder = MagicMock(spec=FindingsBuilder)
        builder.build.side_effect = RuntimeError("rule crashed")
        index = CompositeEngine(builder).compute(report_factory(), {}, None, None)

        assert index.composite_score == 0
        assert index.grade == "?"
        assert index.message == ENGINE_ERROR_MESSAGE
