"""
Alert Orchestrator - Text In, Report Out

Runs one alert through the pipeline:

1. ParserEngine.parse_alert  -> ParseResult
2. decide                    -> Decision
3. format_report             -> Report

All log lines of one run share a correlation id. An alert nothing can
interpret is a normal outcome (matched=False with an error message), not an
exception; configuration errors still propagate.
"""

import logging
import time
from typing import Optional

from pydantic import BaseModel

from alertops.models.report import Report
from alertops.parsers.engine import ParserEngine, get_parser_engine
from alertops.report.action_tools import ActionToolRegistry
from alertops.report.formatter import format_report
from alertops.rules.decision_rules import decide
from alertops.utils.logging_context import LoggingContext

logger = logging.getLogger(__name__)


class AnalysisResult(BaseModel):
    """Outcome of process_alert."""

    matched: bool
    report: Optional[Report] = None
    error: Optional[str] = None
    correlation_id: Optional[str] = None

    class Config:
        frozen = True


async def process_alert(
    text: str,
    engine: Optional[ParserEngine] = None,
    tools: Optional[ActionToolRegistry] = None,
    correlation_id: Optional[str] = None,
) -> AnalysisResult:
    """
    Parse, decide and format one alert.

    Args:
        text: Alert text as received.
        engine: Parser engine (process-wide default when None).
        tools: Remote tool registry for MCP templates.
        correlation_id: Id to tag log lines with (generated when None).

    Returns:
        AnalysisResult; report is set only when the alert was interpreted.
    """
    correlation_id = LoggingContext.set_correlation_id(correlation_id)
    engine = engine or get_parser_engine()
    start = time.time()

    try:
        logger.info(f"[Orchestrator] Processing alert ({len(text)} chars)")
        result = await engine.parse_alert(text)

        if not result.matched:
            logger.info(f"[Orchestrator] No match: {result.error}")
            return AnalysisResult(matched=False, error=result.error, correlation_id=correlation_id)

        LoggingContext.set_alert_type(result.parsed.alert_type)
        decision = decide(result.parsed, result.policy)
        report = await format_report(
            result.parsed,
            decision,
            result.policy,
            original_text=text,
            model_used=result.model_used,
            tools=tools,
        )

        logger.info(
            f"[Orchestrator] Done in {time.time() - start:.2f}s: "
            f"{result.parsed.alert_type} via {result.parsed.parse_method}, "
            f"decision={decision.decision_state.value}"
        )
        return AnalysisResult(matched=True, report=report, correlation_id=correlation_id)
    finally:
        LoggingContext.clear_context()
