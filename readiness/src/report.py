"""Exportable readiness report.

Wraps one ReadinessAnalysis with a timestamp, a one-line verdict and
the next steps a tester should take.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from readiness.src.analyzer import Priority, ReadinessAnalysis

logger = logging.getLogger(__name__)

# Share of thresholds that must be on target for a "good" verdict.
GOOD_SHARE = 0.75


class SummaryStatus(str, Enum):
    """Overall verdict of a readiness report."""

    NEEDS_MORE_DATA = "needs_more_data"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


_NEXT_STEPS: dict[SummaryStatus, tuple[str, ...]] = {
    SummaryStatus.NEEDS_MORE_DATA: (
        "Add at least 10 test interactions",
        "Try different phrasings",
        "Rate every interaction",
    ),
    SummaryStatus.GOOD: (
        "Keep training with more testers",
        "Roll out collaborative training",
        "Collect multilingual data",
    ),
    SummaryStatus.NEEDS_IMPROVEMENT: (
        "Follow the improvement recommendations",
        "Test again after the changes",
        "Study the specific error patterns",
    ),
}


@dataclass
class ReadinessSummary:
    """One-line verdict of an analysis."""

    status: SummaryStatus
    message: str
    priority: Priority

    def to_dict(self) -> dict[str, str]:
        return {
            "status": self.status.value,
            "message": self.message,
            "priority": self.priority.value,
        }


@dataclass
class ReadinessReport:
    """A readiness analysis packaged for export.

    Attributes:
        timestamp: When the report was produced.
        analysis: The analysis it reports on.
        summary: Overall verdict.
        next_steps: What to do next.
    """

    timestamp: datetime
    analysis: ReadinessAnalysis
    summary: ReadinessSummary
    next_steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "analysis": self.analysis.to_dict(),
            "summary": self.summary.to_dict(),
            "nextSteps": list(self.next_steps),
        }


def summarize(analysis: ReadinessAnalysis) -> ReadinessSummary:
    """Reduce an analysis to a verdict.

    The verdict is good when at least three quarters of the thresholds
    are on target.

    Args:
        analysis: Analysis to summarize.

    Returns:
        ReadinessSummary.
    """
    if not analysis.has_sufficient_data:
        return ReadinessSummary(
            status=SummaryStatus.NEEDS_MORE_DATA,
            message="Add more test interactions for a complete analysis",
            priority=Priority.HIGH,
        )

    thresholds = analysis.performance.thresholds
    good = analysis.performance.good_count
    total = len(thresholds)
    if good >= total * GOOD_SHARE:
        status, priority = SummaryStatus.GOOD, Priority.LOW
    else:
        status, priority = SummaryStatus.NEEDS_IMPROVEMENT, Priority.HIGH
    return ReadinessSummary(
        status=status,
        message=f"{good}/{total} metrics are on target",
        priority=priority,
    )


def next_steps(summary: ReadinessSummary) -> list[str]:
    """Fixed follow-up steps for a verdict."""
    return list(_NEXT_STEPS[summary.status])


def build_report(analysis: ReadinessAnalysis, now: datetime | None = None) -> ReadinessReport:
    """Package an analysis as an exportable report.

    Args:
        analysis: Analysis to report on.
        now: Report time. Defaults to the current time.

    Returns:
        ReadinessReport.
    """
    summary = summarize(analysis)
    logger.info("Readiness verdict: %s (%s)", summary.status.value, summary.message)
    return ReadinessReport(
        timestamp=now or datetime.now(),
        analysis=analysis,
        summary=summary,
        next_steps=next_steps(summary),
    )
