"""Tests for the readiness analyzer."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest

from corpus.src.models import Corpus, FeedbackRecord, TrainingExample
from readiness.src.analyzer import (
    IMMEDIATE_TIME_LABEL,
    INSUFFICIENT_DATA_RECOMMENDATION,
    SHORT_TERM_TIME_LABEL,
    ActionPlan,
    AnalysisStatus,
    Priority,
    ReadinessAnalyzer,
    ReadinessConfig,
    ThresholdStatus,
)

NOW = datetime(2026, 2, 20, 10, 0, 0)


def _make_example(**overrides: Any) -> TrainingExample:
    """Create a recent, correctly recognized example."""
    fields: dict[str, Any] = {
        "user_input": "I spent 20 on food",
        "actual_response": "Expense added: 20 in Food.",
        "expected_intent": "addExpense",
        "actual_intent": "addExpense",
        "satisfaction": 0.9,
        "response_time_ms": 1500.0,
        "timestamp": NOW - timedelta(hours=1),
    }
    fields.update(overrides)
    return TrainingExample(**fields)


def _make_feedback(rating: int, note: str | None = None, **overrides: Any) -> FeedbackRecord:
    """Create a recent feedback record."""
    fields: dict[str, Any] = {
        "conversation_id": "conv_001",
        "user_input": "hi",
        "bot_response": "Hello!",
        "rating": rating,
        "note": note,
        "timestamp": NOW - timedelta(hours=1),
    }
    fields.update(overrides)
    return FeedbackRecord(**fields)


@pytest.fixture()
def analyzer() -> ReadinessAnalyzer:
    """Analyzer with the standard policy."""
    return ReadinessAnalyzer()


@pytest.fixture()
def healthy_corpus() -> Corpus:
    """25 recent examples: 22 recognized, satisfaction 0.9, 1.5 s."""
    examples = [_make_example() for _ in range(22)]
    examples += [
        _make_example(
            user_input=f"budget question {i}",
            expected_intent="financialAnalysis",
            actual_intent="unknown",
        )
        for i in range(3)
    ]
    return Corpus(examples=examples)


@pytest.fixture()
def weak_corpus() -> Corpus:
    """Three recent examples, one misrecognized, low satisfaction."""
    return Corpus(
        examples=[
            _make_example(satisfaction=1.0, response_time_ms=800.0),
            _make_example(
                user_input="how is my budget",
                expected_intent="financialAnalysis",
                actual_intent="unknown",
                satisfaction=0.2,
                response_time_ms=1200.0,
            ),
            _make_example(
                user_input="give me advice",
                expected_intent="advice",
                actual_intent="advice",
                satisfaction=0.6,
                response_time_ms=1000.0,
            ),
        ]
    )


# ===================================================================
# Data sufficiency
# ===================================================================


class TestSufficiency:
    """Tests for the insufficient-data gate."""

    def test_empty_corpus(self, analyzer: ReadinessAnalyzer) -> None:
        """An empty corpus short-circuits with a hint."""
        analysis = analyzer.analyze(Corpus(), now=NOW)
        assert analysis.performance.status == AnalysisStatus.INSUFFICIENT_DATA
        assert analysis.performance.recommendations == [INSUFFICIENT_DATA_RECOMMENDATION]
        assert analysis.problems is None
        assert analysis.recommendations == []
        assert analysis.action_plan.is_empty
        assert analysis.has_sufficient_data is False

    def test_old_examples_do_not_count(self, analyzer: ReadinessAnalyzer) -> None:
        """Examples older than the two-day window are ignored."""
        corpus = Corpus(examples=[_make_example(timestamp=NOW - timedelta(days=3))])
        assert analyzer.analyze(corpus, now=NOW).has_sufficient_data is False

    def test_min_sample_is_configurable(self) -> None:
        """A larger minimum sample raises the bar."""
        analyzer = ReadinessAnalyzer(ReadinessConfig(min_sample=5))
        corpus = Corpus(examples=[_make_example() for _ in range(4)])
        assert analyzer.analyze(corpus, now=NOW).has_sufficient_data is False

    def test_insufficient_to_dict(self, analyzer: ReadinessAnalyzer) -> None:
        """The serialized result carries no problems section."""
        data = analyzer.analyze(Corpus(), now=NOW).to_dict()
        assert data["performance"]["status"] == "insufficient_data"
        assert data["problems"] is None


# ===================================================================
# Performance assessment
# ===================================================================


class TestPerformance:
    """Tests for metrics and threshold classification."""

    def test_healthy_corpus_is_all_good(
        self, analyzer: ReadinessAnalyzer, healthy_corpus: Corpus
    ) -> None:
        """88 % accuracy, 90 % satisfaction, 1.5 s, 25 interactions."""
        analysis = analyzer.analyze(healthy_corpus, now=NOW)
        metrics = analysis.performance.metrics
        assert metrics is not None
        assert metrics.accuracy == pytest.approx(88.0)
        assert metrics.satisfaction == pytest.approx(90.0)
        assert metrics.response_time_ms == pytest.approx(1500.0)
        assert metrics.interaction_count == 25
        assert analysis.performance.good_count == 4
        assert analysis.recommendations == []
        assert analysis.action_plan.is_empty

    def test_accuracy_boundary_is_good(self, analyzer: ReadinessAnalyzer) -> None:
        """Exactly on target counts as good."""
        examples = [_make_example() for _ in range(4)]
        examples.append(_make_example(actual_intent="advice"))
        analysis = analyzer.analyze(Corpus(examples=examples), now=NOW)
        check = analysis.performance.thresholds["accuracy"]
        assert check.current == pytest.approx(80.0)
        assert check.status == ThresholdStatus.GOOD

    def test_just_below_target_needs_improvement(self) -> None:
        """A hair under target needs improvement."""
        analyzer = ReadinessAnalyzer(ReadinessConfig(accuracy_target=80.01))
        examples = [_make_example() for _ in range(4)]
        examples.append(_make_example(actual_intent="advice"))
        check = analyzer.analyze(Corpus(examples=examples), now=NOW).performance.thresholds[
            "accuracy"
        ]
        assert check.status == ThresholdStatus.NEEDS_IMPROVEMENT

    def test_response_time_boundary_is_good(self, analyzer: ReadinessAnalyzer) -> None:
        """A mean response time equal to the limit is good."""
        corpus = Corpus(examples=[_make_example(response_time_ms=3000.0)])
        check = analyzer.analyze(corpus, now=NOW).performance.thresholds["responseTime"]
        assert check.is_good

    def test_examples_without_intents_excluded_from_accuracy(
        self, analyzer: ReadinessAnalyzer
    ) -> None:
        """Only examples carrying both intents count toward accuracy."""
        corpus = Corpus(
            examples=[_make_example(), _make_example(expected_intent=None, actual_intent=None)]
        )
        metrics = analyzer.analyze(corpus, now=NOW).performance.metrics
        assert metrics is not None
        assert metrics.accuracy == 100.0
        assert metrics.interaction_count == 2

    def test_corpus_not_modified(self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus) -> None:
        """Analysis never mutates the snapshot."""
        before = list(weak_corpus.examples)
        analyzer.analyze(weak_corpus, now=NOW)
        assert weak_corpus.examples == before


# ===================================================================
# Problems
# ===================================================================


class TestProblems:
    """Tests for problem identification."""

    def test_problematic_intents_top_three(self, analyzer: ReadinessAnalyzer) -> None:
        """Most frequent failing intents first; ties keep first-seen order."""
        failing = ["advice", "prediction", "prediction", "advice", "addExpense", "other"]
        corpus = Corpus(
            examples=[
                _make_example(user_input=f"input {i}", expected_intent=intent, actual_intent="unknown")
                for i, intent in enumerate(failing)
            ]
        )
        problems = analyzer.analyze(corpus, now=NOW).problems
        assert problems is not None
        intent_problems = problems.intent_recognition
        assert intent_problems.problematic_intents == [
            ("advice", 2),
            ("prediction", 2),
            ("addExpense", 1),
        ]
        assert intent_problems.accuracy == 0.0
        rec = intent_problems.recommendations[0]
        assert rec["description"] == "Add 10 training patterns"
        assert rec["examples"] == ["input 0", "input 1", "input 2"]

    def test_single_error_pattern_count(
        self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus
    ) -> None:
        """One error suggests two new patterns."""
        problems = analyzer.analyze(weak_corpus, now=NOW).problems
        assert problems is not None
        assert problems.intent_recognition.recommendations[0]["description"] == (
            "Add 2 training patterns"
        )

    def test_low_satisfaction_sample(self) -> None:
        """All low answers are counted, only a sample is listed."""
        analyzer = ReadinessAnalyzer(ReadinessConfig(review_sample_size=2))
        corpus = Corpus(examples=[_make_example(satisfaction=0.1) for _ in range(4)])
        problems = analyzer.analyze(corpus, now=NOW).problems
        assert problems is not None
        assert problems.response_quality.low_satisfaction_count == 4
        assert len(problems.response_quality.problematic_responses) == 2
        assert problems.response_quality.average_satisfaction == pytest.approx(10.0)

    def test_low_rated_feedback_listed(self, analyzer: ReadinessAnalyzer) -> None:
        """Answers rated below 3 are listed next to the low examples."""
        corpus = Corpus(
            examples=[_make_example(satisfaction=0.9)],
            feedback=[
                _make_feedback(2, bot_response="No idea."),
                _make_feedback(3),
                _make_feedback(5),
            ],
        )
        problems = analyzer.analyze(corpus, now=NOW).problems
        assert problems is not None
        quality = problems.response_quality
        assert quality.low_satisfaction_count == 0
        assert [r.bot_response for r in quality.low_rated_feedback] == ["No idea."]
        assert quality.to_dict()["lowRatedFeedback"][0]["satisfaction"] == pytest.approx(0.4)

    def test_user_feedback(self, analyzer: ReadinessAnalyzer) -> None:
        """Ratings split into negative (< 3) and positive (>= 4)."""
        corpus = Corpus(
            examples=[_make_example()],
            feedback=[
                _make_feedback(1, "Wrong answer"),
                _make_feedback(2),
                _make_feedback(3, "Okay"),
                _make_feedback(4, "Helpful"),
                _make_feedback(5, "Great"),
                _make_feedback(5, "Old praise", timestamp=NOW - timedelta(days=5)),
            ],
        )
        problems = analyzer.analyze(corpus, now=NOW).problems
        assert problems is not None
        feedback = problems.user_feedback
        assert feedback.total_feedback == 5
        assert feedback.negative_feedback == 2
        assert feedback.positive_feedback == 2
        assert feedback.feedback_ratio == pytest.approx(40.0)
        assert feedback.common_complaints == ["Wrong answer"]
        assert feedback.common_praises == ["Helpful", "Great"]

    def test_no_feedback_ratio_is_zero(
        self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus
    ) -> None:
        """Without feedback the ratio is 0, not NaN."""
        problems = analyzer.analyze(weak_corpus, now=NOW).problems
        assert problems is not None
        assert problems.user_feedback.feedback_ratio == 0.0

    def test_patterns(self, analyzer: ReadinessAnalyzer) -> None:
        """Unrecognized, low-satisfaction and slow inputs are listed."""
        corpus = Corpus(
            examples=[
                _make_example(user_input="mystery", actual_intent=None),
                _make_example(user_input="huh", actual_intent="unknown", satisfaction=0.3),
                _make_example(user_input="slow one", response_time_ms=4200.0),
            ]
        )
        problems = analyzer.analyze(corpus, now=NOW).problems
        assert problems is not None
        assert problems.patterns.unrecognized_inputs == ["mystery", "huh"]
        assert problems.patterns.low_satisfaction_inputs == ["huh"]
        assert problems.patterns.slow_responses == [("slow one", 4200.0)]


# ===================================================================
# Recommendations and action plan
# ===================================================================


class TestRecommendations:
    """Tests for recommendation generation and the action plan."""

    def test_weak_corpus_recommendations(
        self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus
    ) -> None:
        """Accuracy, satisfaction and volume misses each yield one item."""
        recs = analyzer.analyze(weak_corpus, now=NOW).recommendations
        assert [r.category for r in recs] == ["intent_recognition", "response_quality", "data_volume"]
        assert [r.priority for r in recs] == [Priority.HIGH, Priority.HIGH, Priority.MEDIUM]
        assert recs[0].description == "Current accuracy: 66.7% (target: 80%)"
        assert recs[1].description == "Current satisfaction: 60.0% (target: 85%)"
        assert recs[2].description == "Current interactions: 3 (target: 20)"
        assert len(recs[0].examples) == 6

    def test_slow_responses_recommendation(self, analyzer: ReadinessAnalyzer) -> None:
        """A slow mean response time yields a medium performance item."""
        corpus = Corpus(examples=[_make_example(response_time_ms=4500.0) for _ in range(20)])
        recs = analyzer.analyze(corpus, now=NOW).recommendations
        assert [r.category for r in recs] == ["performance"]
        assert recs[0].description == "Current response time: 4500 ms (target: 3000 ms or less)"

    def test_action_plan_buckets(self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus) -> None:
        """High items are immediate, medium ones short term."""
        plan = analyzer.analyze(weak_corpus, now=NOW).action_plan
        assert [a.title for a in plan.immediate] == [
            "Improve intent recognition",
            "Improve response quality",
        ]
        assert all(a.time == IMMEDIATE_TIME_LABEL for a in plan.immediate)
        assert all(len(a.actions) == 2 for a in plan.immediate)
        assert [a.title for a in plan.short_term] == ["Collect more test interactions"]
        assert plan.short_term[0].time == SHORT_TERM_TIME_LABEL
        assert len(plan.short_term[0].actions) == 3
        assert plan.long_term == []

    def test_schedule_long_term(self) -> None:
        """People can add long-term work by hand."""
        plan = ActionPlan()
        planned = plan.schedule_long_term("Add Spanish vocabulary", ["Collect phrasings"])
        assert plan.long_term == [planned]
        assert planned.time == "1 week"
        assert plan.to_dict()["longTerm"][0]["title"] == "Add Spanish vocabulary"

    def test_to_dict_shape(self, analyzer: ReadinessAnalyzer, weak_corpus: Corpus) -> None:
        """The serialized analysis exposes every section."""
        data = analyzer.analyze(weak_corpus, now=NOW).to_dict()
        assert set(data) == {"performance", "problems", "recommendations", "actionPlan"}
        assert set(data["actionPlan"]) == {"immediate", "shortTerm", "longTerm"}
        assert data["performance"]["thresholds"]["accuracy"]["status"] == "needs_improvement"


class TestReadinessConfig:
    """Tests for ReadinessConfig serialization."""

    def test_round_trip(self) -> None:
        """to_dict then from_dict reproduces the config."""
        config = ReadinessConfig(accuracy_target=75.0, min_sample=3)
        assert ReadinessConfig.from_dict(config.to_dict()) == config

    def test_from_dict_defaults(self) -> None:
        """Missing keys fall back to defaults."""
        assert ReadinessConfig.from_dict({}) == ReadinessConfig()
