"""
Rule Loader for PC Diag
Handles finding rule discovery, loading, validation and execution
"""

import importlib.util
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pcdiag.core.model import Finding, HealthReport, SensorSnapshot

REQUIRED_METADATA = ("id", "name", "category", "severity_hint", "order", "implemented")

DEFAULT_RULES_DIR = Path(__file__).resolve().parent.parent / "rules"


@dataclass
class RuleContext:
    """Read-only inputs shared by every rule of one run."""

    confidence: int = 100
    sensors: Optional[SensorSnapshot] = None
    report: Optional[HealthReport] = None
    missing_data: List[str] = field(default_factory=list)


class RuleLoader:
    """Loads and manages finding rule modules."""

    def __init__(self, rules_dir: Optional[str] = None):
        self.rules_dir = Path(rules_dir) if rules_dir else DEFAULT_RULES_DIR
        self.loaded_rules: Dict[str, Any] = {}
        self.rule_metadata: Dict[str, Dict] = {}
        self.logger = logging.getLogger(__name__)

    def discover_rules(self) -> List[str]:
        """Discover available rule files."""
        rule_files = []

        if not self.rules_dir.exists():
            self.logger.warning(f"Rules directory {self.rules_dir} does not exist")
            return rule_files

        for rule_file in sorted(self.rules_dir.glob("*.py")):
            if rule_file.name == "__init__.py":
                continue
            rule_files.append(rule_file.stem)

        self.logger.debug(f"Discovered {len(rule_files)} rule modules: {rule_files}")
        return rule_files

    def load_rule(self, rule_name: str) -> bool:
        """Load a single rule module by name."""
        try:
            rule_path = self.rules_dir / f"{rule_name}.py"
            if not rule_path.exists():
                self.logger.error(f"Rule file not found: {rule_path}")
                return False

            spec = importlib.util.spec_from_file_location(f"pcdiag.rules.{rule_name}", rule_path)
            if spec is None or spec.loader is None:
                self.logger.error(f"Could not load spec for rule: {rule_name}")
                return False

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

            if not hasattr(module, "METADATA"):
                self.logger.error(f"Rule {rule_name} missing METADATA")
                return False

            if not hasattr(module, "run"):
                self.logger.error(f"Rule {rule_name} missing run function")
                return False

            metadata = module.METADATA
            if not isinstance(metadata, dict) or not all(k in metadata for k in REQUIRED_METADATA):
                self.logger.error(f"Rule {rule_name} metadata does not satisfy required fields {REQUIRED_METADATA}")
                return False

            # Rules are plain synchronous functions of (snapshot, context)
            run_func = module.run
            if inspect.iscoroutinefunction(run_func):
                self.logger.error(f"Rule {rule_name} run function must be synchronous")
                return False
            if len(inspect.signature(run_func).parameters) != 2:
                self.logger.error(f"Rule {rule_name} run function must accept (snapshot, context)")
                return False

            self.loaded_rules[rule_name] = module
            self.rule_metadata[rule_name] = metadata

            self.logger.debug(f"Successfully loaded rule: {rule_name}")
            return True

        except Exception as e:
            self.logger.error(f"Error loading rule {rule_name}: {e}")
            return False

    def load_all_rules(self) -> int:
        """Load all discovered rules."""
        rule_names = self.discover_rules()
        loaded_count = 0

        for rule_name in rule_names:
            if self.load_rule(rule_name):
                loaded_count += 1

        self.logger.info(f"Loaded {loaded_count}/{len(rule_names)} rule modules")
        return loaded_count

    def get_rule(self, rule_name: str) -> Optional[Any]:
        return self.loaded_rules.get(rule_name)

    def get_rule_metadata(self, rule_name: str) -> Optional[Dict]:
        return self.rule_metadata.get(rule_name)

    def ordered_rules(self) -> List[Any]:
        """Implemented rules in a fixed evaluation order (METADATA ``order``, then name)."""
        names = sorted(
            (name for name, meta in self.rule_metadata.items() if meta.get("implemented", True)),
            key=lambda name: (self.rule_metadata[name].get("order", 0), name),
        )
        return [self.loaded_rules[name] for name in names]

    def validate_finding(self, finding: Finding) -> bool:
        """Validate a finding object produced by a rule."""
        if not isinstance(finding, Finding):
            return False
        if not finding.issue_type or not finding.description:
            return False
        return True

    def get_rule_stats(self) -> Dict[str, Any]:
        """Get statistics about loaded rules."""
        stats = {
            "total_rules": len(self.loaded_rules),
            "total_issue_types": 0,
            "by_category": {},
            "by_severity": {}
        }

        for metadata in self.rule_metadata.values():
            stats["total_issue_types"] += len(metadata.get("issue_types", []))

            category = metadata.get("category", "unknown")
            stats["by_category"][category] = stats["by_category"].get(category, 0) + 1

            severity = metadata.get("severity_hint", "Info")
            stats["by_severity"][severity] = stats["by_severity"].get(severity, 0) + 1

        return stats
