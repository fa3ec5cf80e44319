"""
Findings Builder for PC Diag
Normalizes section findings, rule findings and collector errors into one list
for the remediation layer, and evaluates the findings safety gate
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pcdiag.core.evidence import update_pending
from pcdiag.core.model import (
    Finding,
    FindingSeverity,
    HealthReport,
    HealthSeverity,
    RiskLevel,
)
from pcdiag.core.rule_loader import RuleContext, RuleLoader
from pcdiag.utils.lookup import get_int

WINDOWS_UPDATE = "WindowsUpdate"
COLLECTOR_ERROR = "CollectorError"


def section_risk(severity: str) -> str:
    rank = HealthSeverity.rank(severity)
    if rank >= HealthSeverity.rank(HealthSeverity.CRITICAL):
        return RiskLevel.HIGH
    if rank >= HealthSeverity.rank(HealthSeverity.DEGRADED):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class FindingsBuilder:
    """Builds the normalized findings of one run."""

    def __init__(self, rule_loader: Optional[RuleLoader] = None):
        self.logger = logging.getLogger(__name__)
        self.rule_loader = rule_loader or RuleLoader()
        if not self.rule_loader.loaded_rules:
            self.rule_loader.load_all_rules()

    def build(self,
              report: HealthReport,
              snapshot: Optional[Dict[str, Any]],
              reliability_score: int,
              context: Optional[RuleContext] = None) -> List[Finding]:
        findings: List[Finding] = []

        findings.extend(self._section_findings(report, reliability_score))

        if snapshot is not None:
            context = context or RuleContext(confidence=reliability_score, report=report,
                                             missing_data=list(report.missing_data))
            findings.extend(self._rule_findings(snapshot, context))
            self._add_pending_update_finding(snapshot, findings, reliability_score)

        findings.extend(self._collector_error_findings(report))
        self._add_outdated_os_finding(report, findings, reliability_score)

        self.logger.info(f"Built {len(findings)} findings")
        return findings

    def _section_findings(self, report: HealthReport, reliability_score: int) -> List[Finding]:
        findings = []
        for section in report.sections:
            for item in section.all_findings():
                findings.append(Finding(
                    issue_type=section.domain,
                    severity=item.severity,
                    confidence=min(100, reliability_score),
                    auto_fix_possible=False,
                    risk_level=section_risk(item.severity),
                    description=item.description or item.title,
                    source=item.source,
                ))
        return findings

    def _rule_findings(self, snapshot: Dict[str, Any], context: RuleContext) -> List[Finding]:
        findings = []
        for rule in self.rule_loader.ordered_rules():
            rule_id = rule.METADATA["id"]
            try:
                produced = rule.run(snapshot, context) or []
            except Exception as e:
                # A failing rule is skipped, the others still run
                self.logger.error(f"Rule {rule_id} failed: {e}", exc_info=True)
                continue

            for finding in produced:
                if self.rule_loader.validate_finding(finding):
                    findings.append(finding)
                else:
                    self.logger.warning(f"Rule {rule_id} produced an invalid finding: {finding!r}")

            self.logger.debug(f"Rule {rule_id}: {len(produced)} findings")
        return findings

    def _add_pending_update_finding(self, snapshot: Dict[str, Any], findings: List[Finding], confidence: int):
        pending = get_int(snapshot, "sections.WindowsUpdate.data.pendingCount")
        if pending is None or pending <= 0:
            return
        if any(f.issue_type == WINDOWS_UPDATE for f in findings):
            return
        findings.append(Finding(
            issue_type=WINDOWS_UPDATE,
            severity=FindingSeverity.MEDIUM,
            confidence=confidence,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description="Mises à jour Windows en attente",
            suggested_action="Install-WindowsUpdate -AcceptAll -AutoReboot",
            source="WindowsUpdate",
        ))

    def _collector_error_findings(self, report: HealthReport) -> List[Finding]:
        return [
            Finding(
                issue_type=COLLECTOR_ERROR,
                severity=FindingSeverity.HIGH,
                confidence=90,
                auto_fix_possible=False,
                risk_level=RiskLevel.MEDIUM,
                description=f"[{error.code}] {error.message}",
                source=error.section,
            )
            for error in report.errors
        ]

    def _add_outdated_os_finding(self, report: HealthReport, findings: List[Finding], confidence: int):
        if not update_pending(report):
            return
        if any(f.issue_type == WINDOWS_UPDATE for f in findings):
            return
        findings.append(Finding(
            issue_type=WINDOWS_UPDATE,
            severity=FindingSeverity.MEDIUM,
            confidence=confidence,
            auto_fix_possible=True,
            risk_level=RiskLevel.LOW,
            description="Windows : mises à jour en attente ou système obsolète",
            suggested_action="Démarrer le service Windows Update et installer les mises à jour",
            source="OS",
        ))


def evaluate_safety_gate(confidence_score: int,
                         collector_errors_logical: int,
                         has_security_data: bool,
                         smart_suspect_and_missing: bool) -> Tuple[bool, Optional[str]]:
    """Decide whether automated fixes may run on these findings; first blocking condition wins."""
    if confidence_score < 60:
        return False, f"Confiance trop faible ({confidence_score}/100 < 60)"
    if collector_errors_logical > 5:
        return False, f"Erreurs collecteur trop nombreuses ({collector_errors_logical} > 5)"
    if not has_security_data:
        return False, "Données sécurité manquantes"
    if smart_suspect_and_missing:
        return False, "SMART suspect et données manquantes"
    return True, None
