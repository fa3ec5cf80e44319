"""
Tests for snapshot loading, the models and the evidence builder
"""

import json

import pytest

from pcdiag.core.diagnostics import CollectorDiagnostics
from pcdiag.core.evidence import (
    MergedMetrics,
    SnapshotError,
    build_health_report,
    extract_sensors,
    load_sensors,
    load_snapshot,
    merge_sensor_metrics,
    update_pending,
)
from pcdiag.core.model import (
    Finding,
    FindingSeverity,
    HealthDomain,
    HealthSeverity,
    MetricSource,
    SensorSnapshot,
    Validity,
)
from pcdiag.utils.lookup import get_bool, get_int, get_number, lookup, parse_measure


class TestLoading:

    def test_load_snapshot(self, snapshot_file):
        snapshot = load_snapshot(str(snapshot_file))
        assert snapshot["sections"]["OS"]["data"]["caption"] == "Windows 11 Pro"

    def test_utf8_bom_is_accepted(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"sections": {}}).encode("utf-8"))
        assert load_snapshot(str(path)) == {"sections": {}}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError):
            load_snapshot(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError):
            load_snapshot(str(tmp_path / "absent.json"))

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(SnapshotError):
            load_snapshot(str(path))

    def test_load_sensors(self, tmp_path, healthy_snapshot):
        path = tmp_path / "sensors.json"
        path.write_text(json.dumps(healthy_snapshot["sensors"]), encoding="utf-8")
        sensors = load_sensors(str(path))
        assert sensors.cpu_temp.number == 55.0
        assert sensors.disks[0].name == "Samsung SSD 980"

    def test_extract_sensors(self, healthy_snapshot):
        assert extract_sensors(healthy_snapshot).gpu_temp.available
        assert extract_sensors({}) is None


class TestModels:

    def test_sensor_snapshot_from_partial_dict(self):
        sensors = SensorSnapshot.from_dict({"cpu": {"cpuTempC": {"value": "61", "available": True}}})
        assert sensors.cpu_temp.number == 61.0
        assert sensors.gpu_temp.available is False
        assert sensors.disks == ()

    def test_sensor_snapshot_from_garbage(self):
        assert SensorSnapshot.from_dict("garbage") == SensorSnapshot()

    def test_finding_normalization(self):
        finding = Finding(issue_type="X", severity="critical", confidence=150, auto_fix_possible=False,
                          risk_level="Low", description="d")
        assert finding.severity == FindingSeverity.CRITICAL
        assert finding.confidence == 100

    @pytest.mark.parametrize("confidence", ["abc", None, float("nan")])
    def test_finding_bad_confidence(self, confidence):
        finding = Finding(issue_type="X", severity="", confidence=confidence, auto_fix_possible=False,
                          risk_level="Low", description="d")
        assert finding.confidence == 0
        assert finding.severity == FindingSeverity.INFO

    @pytest.mark.parametrize("name,domain", [
        ("stability", HealthDomain.STABILITY), ("memory", HealthDomain.RAM), (" storage ", HealthDomain.STORAGE),
        ("cpu", HealthDomain.CPU), ("bluetooth", None), ("", None),
    ])
    def test_domain_normalization(self, name, domain):
        assert HealthDomain.normalize(name) == domain

    @pytest.mark.parametrize("score,severity", [
        (100, HealthSeverity.EXCELLENT), (99, HealthSeverity.HEALTHY), (65, HealthSeverity.WARNING),
        (45, HealthSeverity.DEGRADED), (10, HealthSeverity.CRITICAL),
    ])
    def test_severity_from_score(self, score, severity):
        assert HealthSeverity.from_score(score) == severity


class TestLookup:

    def test_case_insensitive_keys(self):
        data = {"Sections": {"memoryinfo": {"Data": {"TotalGB": "16"}}}}
        assert get_number(data, "sections.MemoryInfo.data.totalGB") == 16.0

    def test_missing_path(self):
        assert lookup({"a": 1}, "a.b.c", "default") == "default"
        assert get_int({}, "x", 0) == 0

    def test_only_real_booleans(self):
        assert get_bool({"flag": "true"}, "flag") is None
        assert get_bool({"flag": False}, "flag") is False

    def test_non_finite_strings_are_rejected(self):
        assert get_number({"v": "inf"}, "v") is None

    @pytest.mark.parametrize("text,expected", [
        ("96°C", 96.0), ("96 °C", 96.0), ("3,5 GB", 3.5), ("N/A", None), (None, None), ("", None),
    ])
    def test_parse_measure(self, text, expected):
        assert parse_measure(text, ("°C", "GB")) == expected


class TestHealthReportBuilder:

    def test_derived_sections(self, healthy_snapshot, healthy_sensors):
        merged = merge_sensor_metrics(healthy_sensors, healthy_snapshot)
        report = build_health_report(healthy_snapshot, CollectorDiagnostics(), merged)

        assert [s.domain for s in report.sections] == list(HealthDomain.ALL)
        assert all(s.has_data for s in report.sections)
        assert report.section(HealthDomain.CPU).evidence["Temperature"] == "55°C"
        assert report.section(HealthDomain.STORAGE).evidence["EspaceLibre"] == "200.0 GB"
        assert report.section(HealthDomain.OS).evidence["UpdateStatus"] == "À jour"
        assert merged.cpu_temp.source == MetricSource.NATIVE

    def test_minimum_free_space_across_disks(self):
        snapshot = {"sections": {"Disks": {"data": {"disks": [{"freeGB": 120}, {"freeSpaceGB": 4.2}]}}}}
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())
        assert report.section(HealthDomain.STORAGE).evidence["EspaceLibre"] == "4.2 GB"

    def test_failed_section_status(self):
        snapshot = {"sections": {"Network": {"status": "failed", "data": {}}}}
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())
        assert report.section(HealthDomain.NETWORK).collection_status == "FAILED"

    def test_producer_sections_are_used(self):
        snapshot = {
            "healthReport": {"sections": [
                {"domain": "stability", "hasData": True, "evidence": {"Minidumps": 2},
                 "findings": [{"severity": "Warning", "description": "2 BSOD récents", "penaltyApplied": 10}]},
                {"domain": "Bluetooth", "hasData": True},
            ]},
            "scoreV2": {"breakdown": {"critical": 2, "timeouts": 1}},
            "metadata": {"partialFailure": True},
        }
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())

        assert [s.domain for s in report.sections] == [HealthDomain.STABILITY]
        section = report.sections[0]
        assert section.evidence == {"Minidumps": "2"}
        assert section.findings[0].title == "2 BSOD récents"
        assert section.findings[0].penalty_applied == 10
        assert report.breakdown.critical == 2
        assert report.partial_failure is True

    def test_non_numeric_penalty_applied(self):
        snapshot = {"healthReport": {"sections": [
            {"domain": "Drivers", "findings": [{"severity": "Warning", "description": "x", "penaltyApplied": "n/a"}]},
        ]}}
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())
        assert report.sections[0].findings[0].penalty_applied == 0

    def test_top_penalties_reach_the_report(self):
        penalties = [{"source": "Disk", "penalty": 10, "message": "Espace faible", "type": ""}]
        report = build_health_report({}, CollectorDiagnostics(top_penalties=penalties), MergedMetrics())
        assert report.top_penalties == penalties

    def test_invalid_merged_metric_has_no_evidence(self):
        snapshot = {"sections": {"CPU": {"data": {"name": "CPU", "temperature": -1}}}}
        merged = merge_sensor_metrics(None, snapshot)
        assert merged.cpu_temp.validity == Validity.MISSING
        report = build_health_report(snapshot, CollectorDiagnostics(), merged)
        assert "Temperature" not in report.section(HealthDomain.CPU).evidence

    @pytest.mark.parametrize("average,load", [(42.5, "42.5%"), (100, "100%"), (150, None), (-1, None)])
    def test_cpu_load_is_validated(self, average, load):
        snapshot = {"sections": {"DynamicSignals": {"data": {"cpu": {"average": average}}}}}
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())
        assert report.section(HealthDomain.CPU).evidence.get("Load") == load

    def test_update_pending(self):
        snapshot = {"sections": {"WindowsUpdate": {"data": {"pendingCount": 4}}}}
        report = build_health_report(snapshot, CollectorDiagnostics(), MergedMetrics())
        assert report.section(HealthDomain.OS).evidence["UpdateStatus"] == "4 mises à jour en attente (obsolète)"
        assert update_pending(report)
