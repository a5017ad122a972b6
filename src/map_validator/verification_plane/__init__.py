"""Gate, orchestration, aggregation and reporting for validation passes."""

from map_validator.verification_plane.aggregator import IssueTotals, ResultAggregator, totals_for
from map_validator.verification_plane.gate import (
    BlockingPrerequisite,
    GateDecision,
    GateVerdict,
    evaluate_gate,
)
from map_validator.verification_plane.orchestrator import (
    ValidationOrchestrator,
    ValidationOutcome,
)
from map_validator.verification_plane.report import (
    NO_ISSUES_MESSAGE,
    build_output_document,
    render_console_report,
    render_output_document,
    summary_payload,
    write_output_document,
)

__all__ = [
    "BlockingPrerequisite",
    "GateDecision",
    "GateVerdict",
    "IssueTotals",
    "NO_ISSUES_MESSAGE",
    "ResultAggregator",
    "ValidationOrchestrator",
    "ValidationOutcome",
    "build_output_document",
    "evaluate_gate",
    "render_console_report",
    "render_output_document",
    "summary_payload",
    "totals_for",
    "write_output_document",
]
