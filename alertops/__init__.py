"""
alertops - Policy-driven alert interpretation.

Free-text alert -> ParsedAlert (policy patterns, then a local model cascade)
-> Decision (declarative rules) -> Report (rendered action options).
"""

from alertops.orchestrator import AnalysisResult, process_alert
from alertops.parsers.engine import ParserEngine, parse_alert
from alertops.report.formatter import format_report
from alertops.rules.decision_rules import decide

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "process_alert",
    "ParserEngine",
    "parse_alert",
    "format_report",
    "decide",
]
