"""
PC Diag (PC Health Diagnostic Core)
Telemetry reconciliation, scoring and remediation readiness

Turns the output of a script collector and a native sensor collector into
a graded, explainable health assessment with a gated auto-fix recommendation.
"""

import logging

__version__ = "1.0.0"
__author__ = "PC Diag Team"
__description__ = "PC Health Diagnostic Core"

logging.getLogger(__name__).addHandler(logging.NullHandler())
