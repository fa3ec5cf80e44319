"""
Tests for the per-domain penalty scorer
"""

import pytest

from pcdiag.core.domain_scorer import count_domain_errors, domain_status, evaluate_domain
from pcdiag.core.model import HealthDomain, HealthReport, HealthSection, ScanError, ScoreBreakdown


def score_section(domain, evidence=None, **report_fields):
    section = HealthSection(domain=domain, evidence=evidence or {})
    report = HealthReport(sections=[section], **report_fields)
    return evaluate_domain(section, report)


class TestCpuDomain:

    def test_critical_temperature(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "96°C"})
        assert result.score == 70
        assert result.penalties == ((30, "Température CPU critique (96°C)"),)

    def test_temperature_with_space_before_unit(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "85 °C"})
        assert result.penalties == ((15, "Température CPU élevée (85°C)"),)

    def test_temperature_and_load(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "75°C", "Load": "97%"})
        assert result.score == 75
        assert result.top_penalty == (20, "CPU surchargé en permanence")

    def test_unparseable_evidence_is_ignored(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "N/A"})
        assert result.score == 100
        assert result.penalties == ()


class TestStorageDomain:

    def test_critical_free_space(self):
        result = score_section(HealthDomain.STORAGE, {"EspaceLibre": "3 GB"})
        assert result.score == 60
        assert result.penalties == ((40, "Espace disque critique (< 5 GB)"),)

    def test_low_free_space(self):
        assert score_section(HealthDomain.STORAGE, {"EspaceLibre": "8.5 GB"}).score == 75

    def test_disk_health_errors(self):
        errors = [ScanError(code="SMART_READ", message="SMART read failed", section="SmartDetails")]
        result = score_section(HealthDomain.STORAGE, {"EspaceLibre": "150 GB"}, errors=errors)
        assert result.penalties == ((25, "Problèmes de santé disque détectés"),)


class TestOtherDomains:

    def test_outdated_os(self):
        result = score_section(HealthDomain.OS, {"UpdateStatus": "5 mises à jour en attente (obsolète)"})
        assert result.score == 80
        assert result.penalties[0] == (20, "Windows n'est pas à jour")

    def test_ram_nearly_full(self):
        result = score_section(HealthDomain.RAM, {"Total": "16.0 GB", "Disponible": "0.5 GB"})
        assert result.penalties == ((30, "Mémoire presque saturée"),)

    def test_gpu_driver_errors(self):
        errors = [ScanError(code="GPU_ERR", message="display driver crashed", section="Video")]
        result = score_section(HealthDomain.GPU, {}, errors=errors)
        assert result.penalties == ((10, "Problèmes de pilotes graphiques"),)

    def test_failed_network_collection(self):
        section = HealthSection(domain=HealthDomain.NETWORK, collection_status="FAILED")
        result = evaluate_domain(section, HealthReport(sections=[section]))
        assert result.score == 70

    def test_stability_crashes(self):
        result = score_section(HealthDomain.STABILITY, breakdown=ScoreBreakdown(critical=6, collector_errors=4))
        assert result.score == 45
        assert result.penalties == ((40, "Nombreux crashs système (6)"), (15, "Problèmes de collecte multiples"))

    def test_score_is_clamped(self):
        errors = [ScanError(section="DeviceManager") for _ in range(30)]
        result = score_section(HealthDomain.OS, {"UpdateStatus": "outdated"},
                               errors=[ScanError(section="OS") for _ in range(30)],
                               breakdown=ScoreBreakdown(critical=2))
        assert result.score == 0
        assert score_section(HealthDomain.DRIVERS, errors=errors).score == 70


class TestDomainScore:

    def test_section_without_data_scores_zero(self):
        section = HealthSection(domain=HealthDomain.GPU, has_data=False, evidence={"Temperature": "99°C"})
        result = evaluate_domain(section, HealthReport(sections=[section]))
        assert result.score == 0
        assert result.has_data is False
        assert result.penalties == ()

    def test_explanation_lists_penalties(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "96°C"})
        assert result.explanation == (
            "Le processeur a obtenu un score de 70/100. Points d'attention : Température CPU critique (96°C)."
        )
        assert result.status_message == "Bon état"

    def test_top_penalty_keeps_first_of_equal_amounts(self):
        result = score_section(HealthDomain.CPU, {"Temperature": "85°C", "Load": "85%"})
        assert result.penalties == ((15, "Température CPU élevée (85°C)"), (10, "Charge CPU élevée"))
        assert result.top_penalty == (15, "Température CPU élevée (85°C)")

    @pytest.mark.parametrize("score,status", [(100, "Excellent"), (90, "Excellent"), (70, "Bon état"),
                                              (50, "À surveiller"), (30, "Problèmes détectés"), (29, "Critique")])
    def test_domain_status(self, score, status):
        assert domain_status(score) == status

    def test_count_domain_errors(self):
        errors = [
            ScanError(section="SmartDetails"),
            ScanError(section="Volumes", message="disk offline"),
            ScanError(section="Network", message="timeout"),
        ]
        assert count_domain_errors(HealthDomain.STORAGE, errors) == 2
        assert count_domain_errors(HealthDomain.NETWORK, errors) == 0
