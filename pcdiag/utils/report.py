"""
Report Generation Utilities for PC Diag
Plain-text and CSV report formats plus the console summary
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from pcdiag.core.engine import DiagnosticResult
from pcdiag.core.model import Finding
from pcdiag.core.readiness import format_readiness_section


def domain_rows(result: DiagnosticResult) -> List[List[str]]:
    rows = []
    for summary in result.composite.sections_summary:
        detail = result.grade.domain_details.get(summary.section_name)
        top = detail.top_penalty[1] if detail and detail.top_penalty else ""
        rows.append([
            summary.section_name,
            summary.score if summary.has_data else "N/A",
            summary.status if summary.has_data else "Non collecté",
            summary.priority,
            top,
        ])
    return rows


def score_rows(result: DiagnosticResult) -> List[List[str]]:
    composite = result.composite
    return [
        ["Indice composite", f"{composite.composite_score}/100", composite.grade],
        ["Santé machine", f"{composite.machine_health_score}/100", ""],
        ["Fiabilité données", f"{composite.data_reliability_score}/100", ""],
        ["Clarté diagnostic", f"{composite.diagnostic_clarity_score}/100", ""],
        ["Grade global", f"{result.grade.final_score}/100", result.grade.grade],
        ["Confiance", f"{result.confidence_score}/100", result.report.confidence.confidence_level],
    ]


def console_summary(result: DiagnosticResult) -> str:
    """Generate console-friendly summary."""
    scores_table = tabulate(score_rows(result), headers=["Score", "Valeur", "Grade"], tablefmt="grid")
    domains_table = tabulate(domain_rows(result),
                             headers=["Domaine", "Score", "Statut", "Priorité", "Point principal"],
                             tablefmt="grid")

    gate = "AUTORISÉ" if result.readiness.auto_fix_allowed else f"BLOQUÉ ({result.readiness.block_reason})"

    return f"""
{scores_table}

{domains_table}

🔧 AutoFix : {gate}
   • Readiness : {result.readiness.readiness_score}/100
   • Findings  : {len(result.findings)}
"""


class ReportGenerator:
    """Generate text and CSV reports from a diagnostic result."""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

    def generate_csv_report(self, findings: List[Finding],
                            filename: Optional[str] = None) -> str:
        """Generate CSV report from findings."""
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"findings_{timestamp}.csv"

        filepath = self.output_dir / filename

        columns = [
            "IssueType", "Severity", "Confidence", "AutoFixPossible",
            "RiskLevel", "Source", "Description", "SuggestedAction",
        ]

        with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(columns)
            for finding in findings:
                writer.writerow([
                    finding.issue_type,
                    finding.severity,
                    finding.confidence,
                    finding.auto_fix_possible,
                    finding.risk_level,
                    finding.source,
                    finding.description,
                    finding.suggested_action or "",
                ])

        self.logger.info(f"CSV report generated: {filepath}")
        return str(filepath)

    def build_summary_text(self, result: DiagnosticResult) -> str:
        content = []
        content.append("=" * 78)
        content.append("PC DIAG - RAPPORT DE DIAGNOSTIC")
        content.append("=" * 78)
        content.append("")
        content.append(f"Généré le : {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        content.append(f"Collecte  : {result.diagnostics.status_label} ({result.diagnostics.status_message})")
        content.append("")

        content.append("SCORES")
        content.append("-" * 6)
        content.append(tabulate(score_rows(result), headers=["Score", "Valeur", "Grade"], tablefmt="simple"))
        content.append("")
        content.append(result.composite.message)
        content.append("")

        content.append("DOMAINES")
        content.append("-" * 8)
        content.append(tabulate(domain_rows(result),
                                headers=["Domaine", "Score", "Statut", "Priorité", "Point principal"],
                                tablefmt="simple"))
        content.append("")

        if result.grade.explanations:
            content.append("EXPLICATIONS")
            content.append("-" * 12)
            content.extend(result.grade.explanations)
            content.append("")

        if result.report.top_penalties:
            content.append("PÉNALITÉS COLLECTEUR")
            content.append("-" * 20)
            content.append(tabulate(
                [[p["source"], p["penalty"], p["message"]] for p in result.report.top_penalties],
                headers=["Source", "Pénalité", "Message"],
                tablefmt="simple",
            ))
            content.append("")

        content.append(format_readiness_section(result.readiness))
        content.append("")

        if result.findings:
            content.append("FINDINGS")
            content.append("-" * 8)
            for finding in result.findings:
                content.append(f"• [{finding.severity}] {finding.issue_type}: {finding.description}")
                if finding.suggested_action:
                    content.append(f"  Action: {finding.suggested_action}")
            content.append("")

        if result.diagnostics.errors or result.diagnostics.invalidated_metrics:
            content.append("COLLECTE")
            content.append("-" * 8)
            for error in result.diagnostics.error_strings():
                content.append(f"  ✗ {error}")
            for metric in result.diagnostics.invalidated_metrics:
                content.append(f"  ⚠ {metric}")
            content.append("")

        content.append("=" * 78)
        return "\n".join(content)

    def generate_summary_report(self, result: DiagnosticResult,
                                filename: Optional[str] = None) -> str:
        """Generate plain-text summary report."""
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"summary_{timestamp}.txt"

        filepath = self.output_dir / filename

        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.build_summary_text(result))

        self.logger.info(f"Summary report generated: {filepath}")
        return str(filepath)
