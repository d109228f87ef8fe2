"""Corpus store: recording, metrics, export and import.

``CorpusStore`` is a stateless service over a ``Corpus`` value owned by
the host. It appends interactions and feedback, computes performance
metrics over a sliding time window, and moves the corpus in and out of
JSON documents.

Example::

    store = CorpusStore(corpus)
    store.record(TrainingExample(user_input="I spent 20 on food", ...))
    metrics = store.metrics()
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from corpus.src.documents import DocumentImportError, parse_corpus_document
from corpus.src.models import (
    Corpus,
    FeedbackRecord,
    PerformanceMetrics,
    TrainingExample,
    rating_to_satisfaction,
)
from corpus.src.quality import ResponseQualityScorer

logger = logging.getLogger(__name__)

DEFAULT_METRICS_WINDOW_MS = 30 * 24 * 60 * 60 * 1000

# Thresholds of the quick improvement report.
REPORT_ACCURACY_TARGET = 80.0
REPORT_SATISFACTION_TARGET = 70.0
REPORT_RESPONSE_TIME_LIMIT_MS = 2000.0

_WORD_SPLIT = re.compile(r"\s+")


# ===================================================================
# Metric computation
# ===================================================================


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics(examples: list[TrainingExample]) -> PerformanceMetrics:
    """Compute performance metrics over a set of examples.

    Accuracy only counts examples carrying both intents; satisfaction
    and response time average over the examples that carry them.

    Args:
        examples: Examples to measure.

    Returns:
        PerformanceMetrics with finite values (0 when nothing qualifies).
    """
    qualifying = [e for e in examples if e.has_intents]
    matches = sum(1 for e in qualifying if e.intent_matches)
    accuracy = 100.0 * matches / len(qualifying) if qualifying else 0.0

    satisfactions = [e.satisfaction for e in examples if e.satisfaction is not None]
    response_times = [e.response_time_ms for e in examples if e.response_time_ms is not None]

    return PerformanceMetrics(
        accuracy=accuracy,
        user_satisfaction=100.0 * _mean(satisfactions),
        response_time_ms=_mean(response_times),
    )


def examples_since(
    examples: list[TrainingExample],
    window_ms: float,
    now: datetime,
) -> list[TrainingExample]:
    """Return the examples whose timestamp falls inside the window.

    Args:
        examples: Candidate examples.
        window_ms: Window length in milliseconds.
        now: End of the window.

    Returns:
        Examples with ``timestamp >= now - window_ms``, in order.
    """
    cutoff = now - timedelta(milliseconds=window_ms)
    return [e for e in examples if e.timestamp >= cutoff]


# ===================================================================
# Report models
# ===================================================================


@dataclass
class IntentPattern:
    """Recognition statistics for one expected intent.

    Attributes:
        intent: The expected intent.
        total: Examples expecting this intent.
        correct: Examples the classifier got right.
        examples: User inputs expecting this intent, in order.
    """

    intent: str
    total: int = 0
    correct: int = 0
    examples: list[str] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        """Recognition accuracy percentage for this intent."""
        return 100.0 * self.correct / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "total": self.total,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "examples": list(self.examples),
        }


@dataclass
class ImprovementItem:
    """One recommendation of the quick improvement report."""

    type: str
    priority: str
    description: str
    action: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "priority": self.priority,
            "description": self.description,
            "action": self.action,
        }


@dataclass
class TrainingSuggestion:
    """Keyword suggestions for an intent that is poorly recognized."""

    intent: str
    current_accuracy: float
    suggested_patterns: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "currentAccuracy": self.current_accuracy,
            "suggestedPatterns": [
                {"word": word, "frequency": count} for word, count in self.suggested_patterns
            ],
        }


@dataclass
class ImprovementReport:
    """Quick dashboard report: metrics, recommendations, suggestions."""

    performance: PerformanceMetrics
    recommendations: list[ImprovementItem] = field(default_factory=list)
    training_suggestions: list[TrainingSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "performance": self.performance.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "trainingSuggestions": [s.to_dict() for s in self.training_suggestions],
        }


# ===================================================================
# CorpusStore
# ===================================================================


class CorpusStore:
    """Stateless operations over an injected Corpus.

    Args:
        corpus: The corpus to operate on. A new empty corpus when None.
        scorer: Heuristic used when an interaction has no rating.
    """

    def __init__(
        self,
        corpus: Corpus | None = None,
        scorer: ResponseQualityScorer | None = None,
    ) -> None:
        self._corpus = corpus if corpus is not None else Corpus()
        self._scorer = scorer or ResponseQualityScorer()

    @property
    def corpus(self) -> Corpus:
        """The corpus this store operates on."""
        return self._corpus

    # ---------------------------------------------------------------
    # Recording
    # ---------------------------------------------------------------

    def record(self, example: TrainingExample) -> None:
        """Append one interaction to the corpus."""
        self._corpus.examples.append(example)
        logger.debug("Recorded example for intent %s", example.actual_intent)

    def record_feedback(self, feedback: FeedbackRecord) -> None:
        """Append one explicit user rating to the corpus."""
        self._corpus.feedback.append(feedback)
        logger.debug(
            "Recorded feedback rating=%d conversation=%s",
            feedback.rating,
            feedback.conversation_id,
        )

    def record_interaction(
        self,
        user_input: str,
        bot_response: str,
        *,
        expected_intent: str | None = None,
        actual_intent: str | None = None,
        rating: int | None = None,
        response_time_ms: float | None = None,
        timestamp: datetime | None = None,
    ) -> TrainingExample:
        """Record a bot turn, estimating satisfaction when unrated.

        An explicit rating maps to ``rating / 5``; otherwise the response
        quality heuristic scores the answer.

        Args:
            user_input: What the user typed.
            bot_response: What the bot answered.
            expected_intent: Intent the input should map to, if known.
            actual_intent: Intent the classifier picked.
            rating: Optional 1-5 user rating.
            response_time_ms: Time the bot took to answer.
            timestamp: Interaction time. Defaults to now.

        Returns:
            The recorded example.
        """
        if rating is not None:
            satisfaction = rating_to_satisfaction(rating)
        else:
            satisfaction = self._scorer.score(bot_response, expected_intent or actual_intent)

        example = TrainingExample(
            user_input=user_input,
            actual_response=bot_response,
            expected_intent=expected_intent,
            actual_intent=actual_intent,
            satisfaction=satisfaction,
            response_time_ms=response_time_ms,
            timestamp=timestamp or datetime.now(),
        )
        self.record(example)
        return example

    # ---------------------------------------------------------------
    # Metrics
    # ---------------------------------------------------------------

    def metrics(
        self,
        window_ms: float = DEFAULT_METRICS_WINDOW_MS,
        now: datetime | None = None,
    ) -> PerformanceMetrics:
        """Compute metrics over the examples of the time window.

        An empty window leaves the cached metrics untouched and returns
        them; otherwise the fresh metrics replace the cache.

        Args:
            window_ms: Window length in milliseconds.
            now: End of the window. Defaults to the current time.

        Returns:
            PerformanceMetrics for the window.
        """
        recent = examples_since(self._corpus.examples, window_ms, now or datetime.now())
        if not recent:
            return self._corpus.metrics
        self._corpus.metrics = compute_metrics(recent)
        return self._corpus.metrics

    def intent_patterns(self) -> dict[str, IntentPattern]:
        """Recognition statistics per expected intent, in first-seen order."""
        patterns: dict[str, IntentPattern] = {}
        for example in self._corpus.examples:
            if example.expected_intent is None:
                continue
            pattern = patterns.setdefault(
                example.expected_intent, IntentPattern(intent=example.expected_intent)
            )
            pattern.total += 1
            if example.intent_matches:
                pattern.correct += 1
            pattern.examples.append(example.user_input)
        return patterns

    def suggest_patterns(self, intent: str, limit: int = 5) -> list[tuple[str, int]]:
        """Most frequent words among the inputs expecting *intent*.

        Args:
            intent: Expected intent to inspect.
            limit: Maximum number of words returned.

        Returns:
            ``(word, frequency)`` pairs, most frequent first; ties keep
            first-seen order.
        """
        counts: Counter[str] = Counter()
        for example in self._corpus.examples:
            if example.expected_intent != intent:
                continue
            counts.update(w for w in _WORD_SPLIT.split(example.user_input.lower()) if w)
        return counts.most_common(limit)

    def improvement_report(self, now: datetime | None = None) -> ImprovementReport:
        """Build the quick improvement report shown on the dashboard.

        Args:
            now: End of the metrics window. Defaults to the current time.

        Returns:
            ImprovementReport with recommendations and keyword suggestions.
        """
        performance = self.metrics(now=now)
        report = ImprovementReport(performance=performance)

        if performance.accuracy < REPORT_ACCURACY_TARGET:
            report.recommendations.append(
                ImprovementItem(
                    type="intent_recognition",
                    priority="high",
                    description="Improve intent recognition",
                    action="Add more patterns and training examples",
                )
            )
        if performance.user_satisfaction < REPORT_SATISFACTION_TARGET:
            report.recommendations.append(
                ImprovementItem(
                    type="response_quality",
                    priority="high",
                    description="Improve response quality",
                    action="Review negative feedback and adjust the answers",
                )
            )
        if performance.response_time_ms > REPORT_RESPONSE_TIME_LIMIT_MS:
            report.recommendations.append(
                ImprovementItem(
                    type="response_speed",
                    priority="medium",
                    description="Speed up responses",
                    action="Optimize pattern matching and answer generation",
                )
            )

        for intent, pattern in self.intent_patterns().items():
            if pattern.accuracy < REPORT_ACCURACY_TARGET:
                report.training_suggestions.append(
                    TrainingSuggestion(
                        intent=intent,
                        current_accuracy=pattern.accuracy,
                        suggested_patterns=self.suggest_patterns(intent),
                    )
                )
        return report

    # ---------------------------------------------------------------
    # Documents
    # ---------------------------------------------------------------

    def export_document(self, now: datetime | None = None) -> dict[str, Any]:
        """Export the corpus as a document.

        Args:
            now: Export time. Defaults to the current time.

        Returns:
            ``{examples, feedback, metrics, revision, exportedAt}``.
        """
        document = self._corpus.to_dict()
        document["exportedAt"] = (now or datetime.now()).isoformat()
        return document

    def export_json(self, now: datetime | None = None) -> str:
        """Export the corpus as JSON text with sorted keys."""
        return json.dumps(self.export_document(now), indent=2, sort_keys=True, ensure_ascii=False)

    def load_document(self, doc: Any) -> None:
        """Replace the corpus state with the content of *doc*.

        The document is parsed completely before anything is replaced,
        so a failed load leaves the corpus as it was.

        Args:
            doc: A corpus document (current or legacy shape).

        Raises:
            DocumentImportError: When *doc* is not a corpus document.
        """
        try:
            loaded = parse_corpus_document(doc)
        except DocumentImportError:
            logger.warning("Rejected corpus document")
            raise
        self._corpus.examples = loaded.examples
        self._corpus.feedback = loaded.feedback
        self._corpus.metrics = loaded.metrics
        self._corpus.revision = max(self._corpus.revision, loaded.revision)
        logger.info(
            "Loaded corpus document: %d examples, %d feedback records",
            len(loaded.examples),
            len(loaded.feedback),
        )

    def reset(self) -> None:
        """Clear examples and feedback; metrics fall back to zero."""
        self._corpus.examples = []
        self._corpus.feedback = []
        self._corpus.metrics = PerformanceMetrics.zero()
        logger.info("Corpus reset")
