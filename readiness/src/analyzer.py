"""Readiness analysis of the training corpus.

Decides whether the assistant is ready to ship by measuring the
interactions of a recent window (two days by default) against fixed
release thresholds. The analysis identifies concrete problems (intent
errors, low-satisfaction answers, negative feedback, slow responses),
turns every missed threshold into a recommendation, and buckets the
recommendations into an action plan.

This is a decision procedure, not a model: identical corpora analyzed
at the same instant always produce identical verdicts.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from corpus.src.models import Corpus, FeedbackRecord, TrainingExample

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 2 * 24 * 60 * 60 * 1000

IMMEDIATE_TIME_LABEL = "30 minutes"
SHORT_TERM_TIME_LABEL = "1 hour"
LONG_TERM_TIME_LABEL = "1 week"

UNKNOWN_INTENT = "unknown"

INSUFFICIENT_DATA_MESSAGE = "Not enough recent training interactions to analyze readiness."
INSUFFICIENT_DATA_RECOMMENDATION = "Add more test interactions"

# Phrasings covering the languages the host app speaks.
_TRAINING_PHRASINGS: tuple[str, ...] = (
    "I spent €25 on transport",
    "Add a €15 expense for lunch",
    "J'ai dépensé 25€ pour le transport",
    "Gasté 50€ en comestibles",
    "How is my budget doing?",
    "Give me advice",
)

_RESPONSE_EXAMPLES: tuple[dict[str, str], ...] = (
    {
        "before": "Your budget is fine",
        "after": "Your budget is 65% used. You still have €500 available this month.",
    },
    {
        "before": "You spend a lot",
        "after": (
            "You are spending 20% more than your monthly average. "
            "I recommend limiting non-essential expenses."
        ),
    },
)


# ===================================================================
# Enums and configuration
# ===================================================================


class AnalysisStatus(str, Enum):
    """Outcome of the data-sufficiency gate."""

    INSUFFICIENT_DATA = "insufficient_data"
    READY_FOR_ANALYSIS = "ready_for_analysis"


class ThresholdStatus(str, Enum):
    """Classification of one metric against its target."""

    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


class Priority(str, Enum):
    """Recommendation priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class ReadinessConfig:
    """Policy of the readiness analysis.

    Attributes:
        window_ms: Length of the recent window in milliseconds.
        accuracy_target: Minimum intent accuracy percentage.
        satisfaction_target: Minimum satisfaction percentage.
        response_time_target_ms: Maximum mean response time.
        interaction_target: Minimum number of recent interactions.
        min_sample: Fewer recent examples than this is insufficient data.
        low_satisfaction_cutoff: Satisfaction below this is a problem.
        slow_response_ms: Responses slower than this are reported.
        review_sample_size: Offending records listed for manual review.
    """

    window_ms: float = DEFAULT_WINDOW_MS
    accuracy_target: float = 80.0
    satisfaction_target: float = 85.0
    response_time_target_ms: float = 3000.0
    interaction_target: int = 20
    min_sample: int = 1
    low_satisfaction_cutoff: float = 0.6
    slow_response_ms: float = 3000.0
    review_sample_size: int = 5

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return {
            "window_ms": self.window_ms,
            "accuracy_target": self.accuracy_target,
            "satisfaction_target": self.satisfaction_target,
            "response_time_target_ms": self.response_time_target_ms,
            "interaction_target": self.interaction_target,
            "min_sample": self.min_sample,
            "low_satisfaction_cutoff": self.low_satisfaction_cutoff,
            "slow_response_ms": self.slow_response_ms,
            "review_sample_size": self.review_sample_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReadinessConfig:
        """Deserialize, falling back to defaults for missing keys."""
        defaults = cls()
        return cls(
            window_ms=data.get("window_ms", defaults.window_ms),
            accuracy_target=data.get("accuracy_target", defaults.accuracy_target),
            satisfaction_target=data.get("satisfaction_target", defaults.satisfaction_target),
            response_time_target_ms=data.get(
                "response_time_target_ms", defaults.response_time_target_ms
            ),
            interaction_target=data.get("interaction_target", defaults.interaction_target),
            min_sample=data.get("min_sample", defaults.min_sample),
            low_satisfaction_cutoff=data.get(
                "low_satisfaction_cutoff", defaults.low_satisfaction_cutoff
            ),
            slow_response_ms=data.get("slow_response_ms", defaults.slow_response_ms),
            review_sample_size=data.get("review_sample_size", defaults.review_sample_size),
        )


# ===================================================================
# Performance assessment
# ===================================================================


@dataclass
class ReadinessMetrics:
    """Metrics of the recent window."""

    accuracy: float
    satisfaction: float
    response_time_ms: float
    interaction_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "satisfaction": self.satisfaction,
            "responseTimeMs": self.response_time_ms,
            "interactionCount": self.interaction_count,
        }


@dataclass
class ThresholdCheck:
    """One metric compared with its target."""

    current: float
    target: float
    status: ThresholdStatus

    @property
    def is_good(self) -> bool:
        return self.status == ThresholdStatus.GOOD

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "target": self.target, "status": self.status.value}


@dataclass
class PerformanceAssessment:
    """Result of the sufficiency gate and the threshold checks.

    Attributes:
        status: Whether enough recent data existed.
        message: Explanation when data is insufficient.
        metrics: Recent-window metrics (None when insufficient).
        thresholds: Checks keyed by ``accuracy``, ``satisfaction``,
            ``responseTime`` and ``interactionCount``.
        recommendations: Plain-text hints (insufficient data only).
    """

    status: AnalysisStatus
    message: str | None = None
    metrics: ReadinessMetrics | None = None
    thresholds: dict[str, ThresholdCheck] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)

    @property
    def good_count(self) -> int:
        """Number of thresholds on target."""
        return sum(1 for check in self.thresholds.values() if check.is_good)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.message is not None:
            result["message"] = self.message
        if self.metrics is not None:
            result["metrics"] = self.metrics.to_dict()
        if self.thresholds:
            result["thresholds"] = {name: c.to_dict() for name, c in self.thresholds.items()}
        if self.recommendations:
            result["recommendations"] = list(self.recommendations)
        return result


# ===================================================================
# Problem report
# ===================================================================


@dataclass
class IntentErrorRecord:
    """An example whose classifier intent differs from the expected one."""

    user_input: str
    expected_intent: str
    actual_intent: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "userInput": self.user_input,
            "expectedIntent": self.expected_intent,
            "actualIntent": self.actual_intent,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class IntentRecognitionProblems:
    """Intent-recognition errors of the recent window."""

    accuracy: float
    errors: list[IntentErrorRecord] = field(default_factory=list)
    problematic_intents: list[tuple[str, int]] = field(default_factory=list)
    recommendations: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "errors": [e.to_dict() for e in self.errors],
            "problematicIntents": [
                {"intent": intent, "errorCount": count}
                for intent, count in self.problematic_intents
            ],
            "recommendations": list(self.recommendations),
        }


@dataclass
class LowSatisfactionRecord:
    """An answer whose satisfaction fell below the cutoff."""

    user_input: str
    bot_response: str
    satisfaction: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "userInput": self.user_input,
            "botResponse": self.bot_response,
            "satisfaction": self.satisfaction,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ResponseQualityProblems:
    """Low-satisfaction answers of the recent window.

    Counts and averages cover recorded examples only. Answers users
    rated below the cutoff are listed separately in ``low_rated_feedback``.
    """

    low_satisfaction_count: int
    average_satisfaction: float
    problematic_responses: list[LowSatisfactionRecord] = field(default_factory=list)
    low_rated_feedback: list[LowSatisfactionRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lowSatisfactionCount": self.low_satisfaction_count,
            "averageSatisfaction": self.average_satisfaction,
            "problematicResponses": [r.to_dict() for r in self.problematic_responses],
            "lowRatedFeedback": [r.to_dict() for r in self.low_rated_feedback],
        }


@dataclass
class UserFeedbackProblems:
    """Aggregation of explicit ratings of the recent window."""

    total_feedback: int = 0
    negative_feedback: int = 0
    positive_feedback: int = 0
    feedback_ratio: float = 0.0
    common_complaints: list[str] = field(default_factory=list)
    common_praises: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFeedback": self.total_feedback,
            "negativeFeedback": self.negative_feedback,
            "positiveFeedback": self.positive_feedback,
            "feedbackRatio": self.feedback_ratio,
            "commonComplaints": list(self.common_complaints),
            "commonPraises": list(self.common_praises),
        }


@dataclass
class ProblemPatterns:
    """Inputs worth a closer look."""

    unrecognized_inputs: list[str] = field(default_factory=list)
    low_satisfaction_inputs: list[str] = field(default_factory=list)
    slow_responses: list[tuple[str, float]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unrecognizedInputs": list(self.unrecognized_inputs),
            "lowSatisfactionPatterns": list(self.low_satisfaction_inputs),
            "slowResponsePatterns": [
                {"input": text, "responseTimeMs": ms} for text, ms in self.slow_responses
            ],
        }


@dataclass
class ProblemReport:
    """All sub-analyses of problem identification."""

    intent_recognition: IntentRecognitionProblems
    response_quality: ResponseQualityProblems
    user_feedback: UserFeedbackProblems
    patterns: ProblemPatterns

    def to_dict(self) -> dict[str, Any]:
        return {
            "intentRecognition": self.intent_recognition.to_dict(),
            "responseQuality": self.response_quality.to_dict(),
            "userFeedback": self.user_feedback.to_dict(),
            "patterns": self.patterns.to_dict(),
        }


# ===================================================================
# Recommendations and action plan
# ===================================================================


@dataclass
class Recommendation:
    """One fix suggested for a metric under target."""

    priority: Priority
    category: str
    title: str
    description: str
    actions: list[str]
    examples: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "priority": self.priority.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "actions": list(self.actions),
        }
        if self.examples:
            result["examples"] = list(self.examples)
        return result


@dataclass
class PlannedAction:
    """A time-boxed block of the action plan."""

    title: str
    time: str
    actions: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "time": self.time, "actions": list(self.actions)}


@dataclass
class ActionPlan:
    """Recommendations bucketed by urgency.

    ``long_term`` is never filled by the analyzer; people add to it
    with :meth:`schedule_long_term`.
    """

    immediate: list[PlannedAction] = field(default_factory=list)
    short_term: list[PlannedAction] = field(default_factory=list)
    long_term: list[PlannedAction] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.immediate or self.short_term or self.long_term)

    def schedule_long_term(
        self,
        title: str,
        actions: list[str],
        time: str = LONG_TERM_TIME_LABEL,
    ) -> PlannedAction:
        """Schedule work for later by hand.

        Args:
            title: What the work is about.
            actions: Steps to carry out.
            time: Time budget label.

        Returns:
            The scheduled block.
        """
        planned = PlannedAction(title=title, time=time, actions=list(actions))
        self.long_term.append(planned)
        return planned

    def to_dict(self) -> dict[str, Any]:
        return {
            "immediate": [a.to_dict() for a in self.immediate],
            "shortTerm": [a.to_dict() for a in self.short_term],
            "longTerm": [a.to_dict() for a in self.long_term],
        }


@dataclass
class ReadinessAnalysis:
    """Complete, ephemeral readiness analysis of one corpus snapshot."""

    performance: PerformanceAssessment
    problems: ProblemReport | None = None
    recommendations: list[Recommendation] = field(default_factory=list)
    action_plan: ActionPlan = field(default_factory=ActionPlan)

    @property
    def has_sufficient_data(self) -> bool:
        return self.performance.status == AnalysisStatus.READY_FOR_ANALYSIS

    def to_dict(self) -> dict[str, Any]:
        return {
            "performance": self.performance.to_dict(),
            "problems": self.problems.to_dict() if self.problems is not None else None,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "actionPlan": self.action_plan.to_dict(),
        }


# ===================================================================
# Analyzer
# ===================================================================


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class ReadinessAnalyzer:
    """Analyze a corpus snapshot against the release thresholds.

    Args:
        config: Analysis policy. Defaults to the standard thresholds.
    """

    def __init__(self, config: ReadinessConfig | None = None) -> None:
        self.config = config or ReadinessConfig()

    def analyze(self, corpus: Corpus, now: datetime | None = None) -> ReadinessAnalysis:
        """Run the full readiness analysis.

        Args:
            corpus: Snapshot to analyze. Never modified.
            now: End of the recent window. Defaults to the current time.

        Returns:
            ReadinessAnalysis. With too little recent data only the
            performance section is filled.
        """
        now = now or datetime.now()
        cutoff = now - timedelta(milliseconds=self.config.window_ms)
        examples = [e for e in corpus.examples if e.timestamp >= cutoff]

        if len(examples) < self.config.min_sample:
            logger.info(
                "Readiness analysis skipped: %d recent examples (minimum %d)",
                len(examples),
                self.config.min_sample,
            )
            return ReadinessAnalysis(
                performance=PerformanceAssessment(
                    status=AnalysisStatus.INSUFFICIENT_DATA,
                    message=INSUFFICIENT_DATA_MESSAGE,
                    recommendations=[INSUFFICIENT_DATA_RECOMMENDATION],
                )
            )

        feedback = [f for f in corpus.feedback if f.timestamp >= cutoff]
        performance = self._assess_performance(examples)
        problems = ProblemReport(
            intent_recognition=self._analyze_intent_recognition(examples),
            response_quality=self._analyze_response_quality(examples, feedback),
            user_feedback=self._analyze_user_feedback(feedback),
            patterns=self._analyze_patterns(examples),
        )
        recommendations = self._generate_recommendations(performance)
        action_plan = self._create_action_plan(recommendations)

        logger.info(
            "Readiness analysis of %d examples: %d/%d thresholds good, %d recommendations",
            len(examples),
            performance.good_count,
            len(performance.thresholds),
            len(recommendations),
        )
        return ReadinessAnalysis(
            performance=performance,
            problems=problems,
            recommendations=recommendations,
            action_plan=action_plan,
        )

    # ---------------------------------------------------------------
    # Performance
    # ---------------------------------------------------------------

    def _assess_performance(self, examples: list[TrainingExample]) -> PerformanceAssessment:
        """Compute recent metrics and classify them against the targets.

        Boundary values count as on target.
        """
        cfg = self.config
        metrics = ReadinessMetrics(
            accuracy=self._calculate_accuracy(examples),
            satisfaction=self._calculate_satisfaction(examples),
            response_time_ms=self._calculate_response_time(examples),
            interaction_count=len(examples),
        )

        def check(current: float, target: float, good: bool) -> ThresholdCheck:
            status = ThresholdStatus.GOOD if good else ThresholdStatus.NEEDS_IMPROVEMENT
            return ThresholdCheck(current=current, target=target, status=status)

        thresholds = {
            "accuracy": check(
                metrics.accuracy, cfg.accuracy_target, metrics.accuracy >= cfg.accuracy_target
            ),
            "satisfaction": check(
                metrics.satisfaction,
                cfg.satisfaction_target,
                metrics.satisfaction >= cfg.satisfaction_target,
            ),
            "responseTime": check(
                metrics.response_time_ms,
                cfg.response_time_target_ms,
                metrics.response_time_ms <= cfg.response_time_target_ms,
            ),
            "interactionCount": check(
                metrics.interaction_count,
                cfg.interaction_target,
                metrics.interaction_count >= cfg.interaction_target,
            ),
        }
        return PerformanceAssessment(
            status=AnalysisStatus.READY_FOR_ANALYSIS,
            metrics=metrics,
            thresholds=thresholds,
        )

    @staticmethod
    def _calculate_accuracy(examples: list[TrainingExample]) -> float:
        qualifying = [e for e in examples if e.has_intents]
        if not qualifying:
            return 0.0
        return 100.0 * sum(1 for e in qualifying if e.intent_matches) / len(qualifying)

    @staticmethod
    def _calculate_satisfaction(examples: list[TrainingExample]) -> float:
        return 100.0 * _mean([e.satisfaction for e in examples if e.satisfaction is not None])

    @staticmethod
    def _calculate_response_time(examples: list[TrainingExample]) -> float:
        return _mean([e.response_time_ms for e in examples if e.response_time_ms is not None])

    # ---------------------------------------------------------------
    # Problems
    # ---------------------------------------------------------------

    def _analyze_intent_recognition(
        self, examples: list[TrainingExample]
    ) -> IntentRecognitionProblems:
        """Collect intent errors and rank the intents they hit.

        Args:
            examples: Recent-window examples.

        Returns:
            IntentRecognitionProblems over examples carrying both intents.
        """
        qualifying = [e for e in examples if e.has_intents]
        errors = [
            IntentErrorRecord(
                user_input=e.user_input,
                expected_intent=e.expected_intent,  # type: ignore[arg-type]
                actual_intent=e.actual_intent,  # type: ignore[arg-type]
                timestamp=e.timestamp,
            )
            for e in qualifying
            if not e.intent_matches
        ]
        accuracy = (
            100.0 * (len(qualifying) - len(errors)) / len(qualifying) if qualifying else 0.0
        )

        # most_common keeps first-seen order among equal counts
        error_counts = Counter(error.expected_intent for error in errors)
        problematic = error_counts.most_common(3)

        recommendations: list[dict[str, Any]] = []
        if errors:
            recommendations.append(
                {
                    "type": "add_patterns",
                    "description": f"Add {min(len(errors) * 2, 10)} training patterns",
                    "examples": [error.user_input for error in errors[:3]],
                }
            )
        return IntentRecognitionProblems(
            accuracy=accuracy,
            errors=errors,
            problematic_intents=problematic,
            recommendations=recommendations,
        )

    def _analyze_response_quality(
        self, examples: list[TrainingExample], feedback: list[FeedbackRecord]
    ) -> ResponseQualityProblems:
        cutoff = self.config.low_satisfaction_cutoff
        low = [
            LowSatisfactionRecord(
                user_input=e.user_input,
                bot_response=e.actual_response,
                satisfaction=e.satisfaction,  # type: ignore[arg-type]
                timestamp=e.timestamp,
            )
            for e in examples
            if e.satisfaction is not None and e.satisfaction < cutoff
        ]
        low_rated = [
            LowSatisfactionRecord(
                user_input=f.user_input,
                bot_response=f.bot_response,
                satisfaction=f.satisfaction,
                timestamp=f.timestamp,
            )
            for f in feedback
            if f.satisfaction < cutoff
        ]
        return ResponseQualityProblems(
            low_satisfaction_count=len(low),
            average_satisfaction=self._calculate_satisfaction(examples),
            problematic_responses=low[: self.config.review_sample_size],
            low_rated_feedback=low_rated[: self.config.review_sample_size],
        )

    @staticmethod
    def _analyze_user_feedback(feedback: list[FeedbackRecord]) -> UserFeedbackProblems:
        """Split ratings into negative (< 3) and positive (>= 4).

        Args:
            feedback: Recent-window feedback records.

        Returns:
            UserFeedbackProblems; the ratio is 0 without feedback.
        """
        negative = [f for f in feedback if f.rating < 3]
        positive = [f for f in feedback if f.rating >= 4]
        ratio = 100.0 * len(positive) / len(feedback) if feedback else 0.0
        return UserFeedbackProblems(
            total_feedback=len(feedback),
            negative_feedback=len(negative),
            positive_feedback=len(positive),
            feedback_ratio=ratio,
            common_complaints=[f.note for f in negative if f.note][:3],
            common_praises=[f.note for f in positive if f.note][:3],
        )

    def _analyze_patterns(self, examples: list[TrainingExample]) -> ProblemPatterns:
        cfg = self.config
        return ProblemPatterns(
            unrecognized_inputs=[
                e.user_input
                for e in examples
                if not e.actual_intent or e.actual_intent == UNKNOWN_INTENT
            ],
            low_satisfaction_inputs=[
                e.user_input
                for e in examples
                if e.satisfaction is not None and e.satisfaction < cfg.low_satisfaction_cutoff
            ],
            slow_responses=[
                (e.user_input, e.response_time_ms)
                for e in examples
                if e.response_time_ms is not None and e.response_time_ms > cfg.slow_response_ms
            ],
        )

    # ---------------------------------------------------------------
    # Recommendations
    # ---------------------------------------------------------------

    def _generate_recommendations(
        self, performance: PerformanceAssessment
    ) -> list[Recommendation]:
        """Build one recommendation per threshold under target.

        Args:
            performance: Assessment with thresholds filled.

        Returns:
            Recommendations in a fixed order: accuracy, satisfaction,
            response time, interaction count.
        """
        checks = performance.thresholds
        recommendations: list[Recommendation] = []

        accuracy = checks["accuracy"]
        if not accuracy.is_good:
            recommendations.append(
                Recommendation(
                    priority=Priority.HIGH,
                    category="intent_recognition",
                    title="Improve intent recognition",
                    description=(
                        f"Current accuracy: {accuracy.current:.1f}% "
                        f"(target: {accuracy.target:.0f}%)"
                    ),
                    actions=[
                        "Add more training patterns",
                        "Test varied phrasings",
                        "Refine the recognition rules",
                    ],
                    examples=list(_TRAINING_PHRASINGS),
                )
            )

        satisfaction = checks["satisfaction"]
        if not satisfaction.is_good:
            recommendations.append(
                Recommendation(
                    priority=Priority.HIGH,
                    category="response_quality",
                    title="Improve response quality",
                    description=(
                        f"Current satisfaction: {satisfaction.current:.1f}% "
                        f"(target: {satisfaction.target:.0f}%)"
                    ),
                    actions=[
                        "Personalize the answers",
                        "Add context from the user's data",
                        "Make the advice more concrete",
                    ],
                    examples=[dict(example) for example in _RESPONSE_EXAMPLES],
                )
            )

        response_time = checks["responseTime"]
        if not response_time.is_good:
            recommendations.append(
                Recommendation(
                    priority=Priority.MEDIUM,
                    category="performance",
                    title="Speed up responses",
                    description=(
                        f"Current response time: {response_time.current:.0f} ms "
                        f"(target: {response_time.target:.0f} ms or less)"
                    ),
                    actions=[
                        "Simplify the calculations",
                        "Optimize the matching rules",
                        "Cache frequent answers",
                    ],
                )
            )

        interactions = checks["interactionCount"]
        if not interactions.is_good:
            recommendations.append(
                Recommendation(
                    priority=Priority.MEDIUM,
                    category="data_volume",
                    title="Collect more test interactions",
                    description=(
                        f"Current interactions: {interactions.current:.0f} "
                        f"(target: {interactions.target:.0f})"
                    ),
                    actions=[
                        "Run the test scenarios of the training package",
                        "Invite more testers",
                        "Rate every answer during testing",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _create_action_plan(recommendations: list[Recommendation]) -> ActionPlan:
        plan = ActionPlan()
        for rec in recommendations:
            if rec.priority == Priority.HIGH:
                plan.immediate.append(
                    PlannedAction(title=rec.title, time=IMMEDIATE_TIME_LABEL, actions=rec.actions[:2])
                )
            elif rec.priority == Priority.MEDIUM:
                plan.short_term.append(
                    PlannedAction(title=rec.title, time=SHORT_TERM_TIME_LABEL, actions=list(rec.actions))
                )
        return plan
