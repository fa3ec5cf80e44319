"""
Result Manager for PC Diag
Handles storage and JSON/HTML reporting of diagnostic runs
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

from jinja2 import Template

from pcdiag import __version__
from pcdiag.core.engine import DiagnosticResult
from pcdiag.core.model import Finding, FindingSeverity, HealthSeverity


SEVERITY_ORDER = ("Critical", "High", "Medium", "Low", "Info")

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="fr">
<head>
    <title>PC Diag - Rapport de diagnostic</title>
    <meta charset="utf-8">
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .header { background: linear-gradient(135deg, #2b5876 0%, #4e4376 100%); color: white; padding: 20px; border-radius: 10px; margin-bottom: 20px; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .card { background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .score { font-size: 42px; font-weight: bold; }
        .finding { background: white; margin: 10px 0; padding: 15px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); border-left: 4px solid #ccc; }
        .critical { border-left-color: #d32f2f; }
        .high { border-left-color: #f57c00; }
        .medium { border-left-color: #fbc02d; }
        .low { border-left-color: #388e3c; }
        .info { border-left-color: #1976d2; }
        .severity-badge { padding: 2px 8px; border-radius: 4px; color: white; font-size: 12px; font-weight: bold; }
        .action { background: #e8f5e8; padding: 10px; border-radius: 4px; margin-top: 10px; font-family: monospace; font-size: 12px; }
        .blocked { background: #fdecea; padding: 15px; border-radius: 8px; margin-bottom: 20px; border: 1px solid #f5c2c0; }
        .allowed { background: #d4edda; padding: 15px; border-radius: 8px; margin-bottom: 20px; border: 1px solid #c3e6cb; }
        table { border-collapse: collapse; width: 100%; background: white; }
        th, td { padding: 8px; border-bottom: 1px solid #ddd; text-align: left; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Rapport de diagnostic PC</h1>
        <p>Généré le {{ generated_at }} | Collecte : {{ collection_label }} | Confiance : {{ confidence_score }}/100</p>
    </div>

    {% if error %}
    <div class="blocked">
        <h3>Erreur moteur</h3>
        <p>{{ error }}</p>
    </div>
    {% endif %}

    <div class="summary">
        <div class="card">
            <h3>Indice composite</h3>
            <p class="score">{{ composite.composite_score }}/100 ({{ composite.grade }})</p>
            <p>{{ composite.message }}</p>
            <p>Santé machine : {{ composite.machine_health_score }} | Fiabilité données : {{ composite.data_reliability_score }} | Clarté : {{ composite.diagnostic_clarity_score }}</p>
        </div>

        <div class="card">
            <h3>Grade global</h3>
            <p class="score">{{ grade.final_score }}/100 ({{ grade.grade }})</p>
            <p>{{ grade.verdict }}</p>
            <p>{{ grade.user_friendly_explanation }}</p>
        </div>

        <div class="card">
            <h3>Findings par sévérité</h3>
            {% for severity, count in summary.by_severity.items() %}
            <p>{{ severity }} : {{ count }}</p>
            {% endfor %}
        </div>

        <div class="card">
            <h3>Analyses complémentaires</h3>
            <p>Thermique : {{ composite.thermal_score }} ({{ composite.thermal_status }})</p>
            <p>IO disque : {{ composite.storage_io_score }} ({{ composite.storage_io_status }})</p>
            <p>Démarrage : {{ composite.boot_health_score }} ({{ composite.boot_health_tier }})</p>
            <p>Stabilité : {{ composite.system_stability_index }}</p>
            <p>Profil CPU : {{ composite.cpu_performance_tier }}</p>
        </div>
    </div>

    <div class="{{ 'allowed' if readiness.auto_fix_allowed else 'blocked' }}">
        <h3>AutoFix : {{ 'AUTORISÉ' if readiness.auto_fix_allowed else 'BLOQUÉ' }} (readiness {{ readiness.readiness_score }}/100)</h3>
        {% if readiness.block_reason %}<p>Raison : {{ readiness.block_reason }}</p>{% endif %}
        <p>Fixable : {{ readiness.fixable | length }} | Suggest-only : {{ readiness.suggest_only | length }} | Not enough data : {{ readiness.not_enough_data | length }}</p>
        <ul>
        {% for item in readiness.fixable %}
            <li>{{ item.description }}{% if item.suggested_action %} : <code>{{ item.suggested_action }}</code>{% endif %}</li>
        {% endfor %}
        </ul>
    </div>

    <h2>Domaines</h2>
    <table>
        <tr><th>Domaine</th><th>Score</th><th>Statut</th><th>Priorité</th><th>Recommandation</th></tr>
        {% for section in composite.sections_summary %}
        <tr>
            <td>{{ section.section_name }}</td>
            <td>{% if section.has_data %}{{ section.score }}{% else %}N/A{% endif %}</td>
            <td>{{ section.status }}</td>
            <td>{{ section.priority }}</td>
            <td>{{ section.recommendation }}</td>
        </tr>
        {% endfor %}
    </table>

    <h2>Findings détaillés</h2>

    {% for finding in findings %}
    <div class="finding {{ finding.severity | lower }}">
        <div style="display: flex; justify-content: space-between; align-items: center;">
            <h3>{{ finding.issue_type }}</h3>
            <span class="severity-badge" style="background-color: {% if finding.severity == 'Critical' %}#d32f2f{% elif finding.severity == 'High' %}#f57c00{% elif finding.severity == 'Medium' %}#fbc02d{% elif finding.severity == 'Low' %}#388e3c{% else %}#1976d2{% endif %};">
                {{ finding.severity.upper() }}
            </span>
        </div>
        <p>{{ finding.description }}</p>
        <p><strong>Source :</strong> {{ finding.source }} | <strong>Confiance :</strong> {{ finding.confidence }}% | <strong>Risque :</strong> {{ finding.risk_level }} | <strong>AutoFix :</strong> {{ 'oui' if finding.auto_fix_possible else 'non' }}</p>
        {% if finding.suggested_action %}
        <div class="action">{{ finding.suggested_action }}</div>
        {% endif %}
    </div>
    {% endfor %}

    <div style="margin-top: 40px; padding: 20px; background: #f8f9fa; border-radius: 8px; text-align: center;">
        <p><strong>PC Diag v{{ version }}</strong></p>
        <p>Aucune action automatique n'est exécutée par ce rapport.</p>
    </div>
</body>
</html>
"""


def _severity_bucket(severity: str) -> str:
    # Section findings carry health severities
    mapping = {
        HealthSeverity.CRITICAL: FindingSeverity.CRITICAL,
        HealthSeverity.DEGRADED: FindingSeverity.HIGH,
        HealthSeverity.WARNING: FindingSeverity.MEDIUM,
        HealthSeverity.HEALTHY: FindingSeverity.LOW,
    }
    severity = mapping.get(severity, severity)
    return severity if severity in SEVERITY_ORDER else FindingSeverity.INFO


class ResultManager:
    """Manages diagnostic results and report generation."""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

        (self.output_dir / "json").mkdir(exist_ok=True)
        (self.output_dir / "html").mkdir(exist_ok=True)

    def get_findings_summary(self, findings: List[Finding]) -> Dict[str, Any]:
        """Generate summary statistics for findings."""
        summary = {
            "total": len(findings),
            "by_severity": {severity: 0 for severity in SEVERITY_ORDER},
            "by_issue_type": {},
            "auto_fix_possible": 0,
        }

        for finding in findings:
            summary["by_severity"][_severity_bucket(finding.severity)] += 1
            summary["by_issue_type"][finding.issue_type] = summary["by_issue_type"].get(finding.issue_type, 0) + 1
            if finding.auto_fix_possible:
                summary["auto_fix_possible"] += 1

        return summary

    def generate_json_report(self, result: DiagnosticResult) -> str:
        """Generate structured JSON report."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.output_dir / "json" / f"report_{timestamp}.json"

        report = result.to_dict()
        report["summary"] = self.get_findings_summary(result.findings)

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        self.logger.info(f"JSON report generated: {filepath}")
        return str(filepath)

    def render_html(self, result: DiagnosticResult) -> str:
        template = Template(HTML_TEMPLATE)
        return template.render(
            composite=result.composite,
            grade=result.grade,
            readiness=result.readiness,
            findings=result.findings,
            summary=self.get_findings_summary(result.findings),
            confidence_score=result.confidence_score,
            collection_label=result.diagnostics.status_label,
            error=result.error,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            version=__version__,
        )

    def generate_html_report(self, result: DiagnosticResult) -> str:
        """Generate HTML report."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.output_dir / "html" / f"report_{timestamp}.html"

        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.render_html(result))

        self.logger.info(f"HTML report generated: {filepath}")
        return str(filepath)

    def generate_reports(self, result: DiagnosticResult, formats: Iterable[str] = ("json", "html")) -> Dict[str, str]:
        """Generate the requested report formats."""
        generators = {
            "json": self.generate_json_report,
            "html": self.generate_html_report,
        }
        reports = {}

        for fmt in formats:
            generator = generators.get(fmt)
            if generator is None:
                self.logger.warning(f"Unknown report format: {fmt}")
                continue
            try:
                reports[fmt] = generator(result)
            except OSError as e:
                self.logger.error(f"Error generating {fmt} report: {e}")

        self.logger.info(f"Generated {len(reports)} reports")
        return reports

    def load_report(self, filepath: str) -> Dict[str, Any]:
        """Load a JSON report written by :meth:`generate_json_report`."""
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
