"""Tests for CorpusStore: recording, metrics, reports and documents."""

from __future__ import annotations

import json
import math
from datetime import datetime, timedelta

import pytest

from corpus.src.documents import DocumentImportError
from corpus.src.models import Corpus, FeedbackRecord, PerformanceMetrics, TrainingExample
from corpus.src.store import (
    DEFAULT_METRICS_WINDOW_MS,
    CorpusStore,
    compute_metrics,
    examples_since,
)

NOW = datetime(2026, 2, 20, 10, 0, 0)


# ===================================================================
# compute_metrics / examples_since
# ===================================================================


class TestComputeMetrics:
    """Tests for the metric helpers."""

    def test_sample_corpus(self, sample_corpus: Corpus) -> None:
        """Two of three intents match; satisfaction and latency average."""
        metrics = compute_metrics(sample_corpus.examples)
        assert metrics.accuracy == pytest.approx(66.666, rel=1e-3)
        assert metrics.user_satisfaction == pytest.approx(60.0)
        assert metrics.response_time_ms == pytest.approx(1000.0)

    def test_ratings_map_to_satisfaction(self) -> None:
        """Ratings 5, 3 and 1 average to 60 % satisfaction."""
        examples = [TrainingExample.from_rating("q", "a", r, timestamp=NOW) for r in (5, 3, 1)]
        assert compute_metrics(examples).user_satisfaction == pytest.approx(60.0)

    def test_accuracy_ignores_examples_without_intents(self) -> None:
        """Examples missing an intent do not count toward accuracy."""
        examples = [
            TrainingExample("a", expected_intent="advice", actual_intent="advice", timestamp=NOW),
            TrainingExample("b", expected_intent="advice", timestamp=NOW),
        ]
        assert compute_metrics(examples).accuracy == 100.0

    def test_empty_is_zero_not_nan(self) -> None:
        """No examples yields zeros."""
        metrics = compute_metrics([])
        assert metrics == PerformanceMetrics.zero()
        assert not math.isnan(metrics.accuracy)

    def test_examples_since_inclusive(self) -> None:
        """An example exactly at the cutoff is inside the window."""
        at_cutoff = TrainingExample("edge", timestamp=NOW - timedelta(hours=1))
        too_old = TrainingExample("old", timestamp=NOW - timedelta(hours=1, seconds=1))
        recent = examples_since([at_cutoff, too_old], 60 * 60 * 1000, NOW)
        assert recent == [at_cutoff]


# ===================================================================
# Recording and metrics
# ===================================================================


class TestRecording:
    """Tests for the recording operations."""

    def test_record_appends(self, store: CorpusStore) -> None:
        """record() appends to the examples."""
        store.record(TrainingExample("hello", timestamp=NOW))
        assert len(store.corpus.examples) == 4
        assert store.corpus.examples[-1].user_input == "hello"

    def test_record_feedback_appends(self, store: CorpusStore) -> None:
        """record_feedback() appends to the feedback list."""
        store.record_feedback(FeedbackRecord("c2", "hi", "hello", rating=5, timestamp=NOW))
        assert [f.conversation_id for f in store.corpus.feedback] == ["conv_001", "c2"]

    def test_record_interaction_with_rating(self) -> None:
        """A rating maps to rating / 5."""
        store = CorpusStore()
        example = store.record_interaction("hi", "Hello!", rating=4, timestamp=NOW)
        assert example.satisfaction == pytest.approx(0.8)
        assert store.corpus.examples == [example]

    def test_record_interaction_scores_unrated_answers(self) -> None:
        """Without a rating the quality heuristic supplies satisfaction."""
        store = CorpusStore()
        example = store.record_interaction(
            "I spent 20 on food",
            "Expense added: amount 20 in category Food.",
            expected_intent="addExpense",
            actual_intent="addExpense",
            response_time_ms=650,
            timestamp=NOW,
        )
        assert example.satisfaction == pytest.approx(0.7)
        assert example.response_time_ms == 650.0


class TestMetrics:
    """Tests for windowed metrics and their cache."""

    def test_metrics_over_window(self, store: CorpusStore) -> None:
        """Metrics cover the examples of the window and are cached."""
        metrics = store.metrics(now=NOW)
        assert metrics.accuracy == pytest.approx(66.666, rel=1e-3)
        assert store.corpus.metrics == metrics

    def test_empty_window_returns_cached_metrics(self, store: CorpusStore) -> None:
        """An empty window leaves the cached metrics in place."""
        cached = store.metrics(now=NOW)
        later = NOW + timedelta(milliseconds=DEFAULT_METRICS_WINDOW_MS + 1)
        assert store.metrics(now=later) == cached

    def test_empty_corpus_metrics_are_zero(self) -> None:
        """A new corpus reports zero metrics, never NaN."""
        assert CorpusStore().metrics(now=NOW) == PerformanceMetrics.zero()

    def test_short_window(self, store: CorpusStore) -> None:
        """A 15-minute window only sees the last example."""
        metrics = store.metrics(window_ms=15 * 60 * 1000, now=NOW)
        assert metrics.accuracy == 100.0
        assert metrics.user_satisfaction == pytest.approx(60.0)


# ===================================================================
# Patterns and reports
# ===================================================================


class TestPatterns:
    """Tests for intent patterns and keyword suggestions."""

    def test_intent_patterns(self, store: CorpusStore) -> None:
        """Statistics per expected intent, in first-seen order."""
        patterns = store.intent_patterns()
        assert list(patterns) == ["addExpense", "financialAnalysis", "advice"]
        assert patterns["financialAnalysis"].total == 1
        assert patterns["financialAnalysis"].accuracy == 0.0
        assert patterns["addExpense"].accuracy == 100.0

    def test_examples_without_expected_intent_skipped(self) -> None:
        """Examples with no expected intent are not grouped."""
        store = CorpusStore(Corpus(examples=[TrainingExample("hi", timestamp=NOW)]))
        assert store.intent_patterns() == {}

    def test_suggest_patterns(self) -> None:
        """Most frequent lowercase words, ties in first-seen order."""
        store = CorpusStore()
        for text in ("Budget summary please", "my budget", "budget  analysis"):
            store.record(TrainingExample(text, expected_intent="financialAnalysis", timestamp=NOW))
        suggestions = store.suggest_patterns("financialAnalysis", limit=3)
        assert suggestions == [("budget", 3), ("summary", 1), ("please", 1)]

    def test_improvement_report(self, store: CorpusStore) -> None:
        """Low accuracy and satisfaction produce high-priority items."""
        report = store.improvement_report(now=NOW)
        types = [r.type for r in report.recommendations]
        assert types == ["intent_recognition", "response_quality"]
        assert [s.intent for s in report.training_suggestions] == ["financialAnalysis"]
        data = report.to_dict()
        assert data["trainingSuggestions"][0]["suggestedPatterns"][0] == {
            "word": "how",
            "frequency": 1,
        }


# ===================================================================
# Documents
# ===================================================================


class TestDocuments:
    """Tests for export, load and reset."""

    def test_export_document(self, store: CorpusStore) -> None:
        """The export carries all collections and the export time."""
        doc = store.export_document(now=NOW)
        assert len(doc["examples"]) == 3
        assert len(doc["feedback"]) == 1
        assert doc["exportedAt"] == "2026-02-20T10:00:00"

    def test_export_json_is_deterministic(self, store: CorpusStore) -> None:
        """Two exports of the same state are byte-identical."""
        assert store.export_json(now=NOW) == store.export_json(now=NOW)
        assert json.loads(store.export_json(now=NOW))["revision"] == 0

    def test_export_then_load_restores_state(self, store: CorpusStore) -> None:
        """Loading an export into a fresh store restores the records."""
        fresh = CorpusStore()
        fresh.load_document(store.export_document(now=NOW))
        assert fresh.corpus.examples == store.corpus.examples
        assert fresh.corpus.feedback == store.corpus.feedback

    def test_load_keeps_highest_revision(self) -> None:
        """The revision never goes backwards on load."""
        store = CorpusStore(Corpus(revision=5))
        store.load_document({"examples": [], "revision": 2})
        assert store.corpus.revision == 5

    def test_failed_load_leaves_corpus_unchanged(self, store: CorpusStore) -> None:
        """A malformed document changes nothing."""
        before = list(store.corpus.examples)
        with pytest.raises(DocumentImportError):
            store.load_document(["not", "a", "document"])
        assert store.corpus.examples == before

    def test_load_wrongly_typed_collections(self, store: CorpusStore) -> None:
        """Collections of the wrong type load as empty instead of failing."""
        store.load_document({"examples": {"a": 1}, "feedback": "x"})
        assert store.corpus.examples == []
        assert store.corpus.feedback == []

    def test_reset(self, store: CorpusStore) -> None:
        """reset() clears the records and zeroes the metrics."""
        store.metrics(now=NOW)
        store.reset()
        assert store.corpus.examples == []
        assert store.corpus.feedback == []
        assert store.corpus.metrics == PerformanceMetrics.zero()
