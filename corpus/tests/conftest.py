"""Shared fixtures for corpus tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from corpus.src.models import Corpus, FeedbackRecord, TrainingExample
from corpus.src.store import CorpusStore

NOW = datetime(2026, 2, 20, 10, 0, 0)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for windowed computations."""
    return NOW


@pytest.fixture
def empty_corpus() -> Corpus:
    """A corpus with no records."""
    return Corpus()


@pytest.fixture
def sample_corpus() -> Corpus:
    """A small corpus: three examples in the last hour, one rating."""
    examples = [
        TrainingExample(
            user_input="I spent 20 on food",
            actual_response="Expense added: 20 in Food.",
            expected_intent="addExpense",
            actual_intent="addExpense",
            satisfaction=1.0,
            response_time_ms=800.0,
            timestamp=NOW - timedelta(minutes=30),
        ),
        TrainingExample(
            user_input="how is my budget",
            actual_response="I did not understand.",
            expected_intent="financialAnalysis",
            actual_intent="unknown",
            satisfaction=0.2,
            response_time_ms=1200.0,
            timestamp=NOW - timedelta(minutes=20),
        ),
        TrainingExample(
            user_input="give me advice",
            actual_response="Try to save 10% of your income.",
            expected_intent="advice",
            actual_intent="advice",
            satisfaction=0.6,
            response_time_ms=1000.0,
            timestamp=NOW - timedelta(minutes=10),
        ),
    ]
    feedback = [
        FeedbackRecord(
            conversation_id="conv_001",
            user_input="how is my budget",
            bot_response="I did not understand.",
            rating=1,
            note="Did not answer",
            timestamp=NOW - timedelta(minutes=19),
        )
    ]
    return Corpus(examples=examples, feedback=feedback)


@pytest.fixture
def store(sample_corpus: Corpus) -> CorpusStore:
    """CorpusStore over the sample corpus."""
    return CorpusStore(sample_corpus)
