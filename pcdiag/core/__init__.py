"""
PC Diag Core Components
Validation, scoring, finding classification and orchestration
"""

from .engine import DiagnosticEngine, DiagnosticResult
from .grade_engine import GradeEngine
from .rule_loader import RuleLoader
from .result_manager import ResultManager

__all__ = [
    "DiagnosticEngine",
    "DiagnosticResult",
    "GradeEngine",
    "RuleLoader",
    "ResultManager",
]
