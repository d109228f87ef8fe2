"""Corpus data models for chatbot training.

Defines the recorded bot interaction (TrainingExample), explicit user
ratings (FeedbackRecord), cached performance metrics, and the Corpus
aggregate that owns them. Models serialize to camelCase documents
because corpus documents are exchanged with the host UI and with
external testers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

MIN_RATING = 1
MAX_RATING = 5
NEUTRAL_RATING = 3

# Timestamp used when a document record carries none; keeps the record
# outside every time window instead of making it look recent.
EPOCH = datetime.fromtimestamp(0)


# ===================================================================
# Coercion helpers
# ===================================================================


def normalize_timestamp(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time.

    Args:
        value: Naive or timezone-aware datetime.

    Returns:
        Naive datetime comparable with ``datetime.now()``.
    """
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_timestamp(value: Any) -> datetime:
    """Parse a document timestamp.

    Accepts datetimes, ISO-8601 strings and epoch milliseconds (the
    format written by older versions of the host app).

    Args:
        value: Raw timestamp value.

    Returns:
        Naive local datetime, or EPOCH when the value is unusable.
    """
    if isinstance(value, datetime):
        return normalize_timestamp(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return EPOCH
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return normalize_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return EPOCH
    return EPOCH


def coerce_float(value: Any) -> float | None:
    """Return *value* as a finite float, or None.

    Args:
        value: Raw numeric value (numbers and numeric strings accepted).

    Returns:
        Finite float or None for missing/invalid values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def clamp_rating(rating: Any) -> int:
    """Clamp a rating to the 1..5 scale, rounding fractional values."""
    number = coerce_float(rating)
    if number is None:
        return NEUTRAL_RATING
    return max(MIN_RATING, min(MAX_RATING, int(round(number))))


def rating_to_satisfaction(rating: Any) -> float:
    """Map a 1-5 rating onto the 0-1 satisfaction scale (rating / 5)."""
    return clamp_rating(rating) / MAX_RATING


# ===================================================================
# TrainingExample
# ===================================================================


@dataclass(frozen=True)
class TrainingExample:
    """One recorded bot interaction.

    Examples are immutable: merges replace the stored instance with an
    updated copy rather than mutating it.

    Attributes:
        user_input: What the user typed.
        actual_response: What the bot answered.
        expected_intent: Intent the input should have mapped to (optional).
        actual_intent: Intent the classifier picked (optional).
        expected_response: Reference answer (optional).
        satisfaction: Quality score in [0, 1] (optional, clamped).
        response_time_ms: Time the bot took to answer (optional).
        timestamp: When the interaction happened.
    """

    user_input: str
    actual_response: str = ""
    expected_intent: str | None = None
    actual_intent: str | None = None
    expected_response: str | None = None
    satisfaction: float | None = None
    response_time_ms: float | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        satisfaction = coerce_float(self.satisfaction)
        if satisfaction is not None:
            satisfaction = min(1.0, max(0.0, satisfaction))
        object.__setattr__(self, "satisfaction", satisfaction)

        response_time = coerce_float(self.response_time_ms)
        if response_time is not None:
            response_time = max(0.0, response_time)
        object.__setattr__(self, "response_time_ms", response_time)

        object.__setattr__(self, "timestamp", normalize_timestamp(self.timestamp))

    @classmethod
    def from_rating(
        cls,
        user_input: str,
        actual_response: str,
        rating: int,
        **kwargs: Any,
    ) -> TrainingExample:
        """Build an example whose satisfaction derives from a 1-5 rating.

        Args:
            user_input: What the user typed.
            actual_response: What the bot answered.
            rating: User rating on the 1-5 scale.
            **kwargs: Any other TrainingExample field.

        Returns:
            TrainingExample with ``satisfaction = rating / 5``.
        """
        return cls(
            user_input=user_input,
            actual_response=actual_response,
            satisfaction=rating_to_satisfaction(rating),
            **kwargs,
        )

    @property
    def has_intents(self) -> bool:
        """True when both the expected and the actual intent are known."""
        return self.expected_intent is not None and self.actual_intent is not None

    @property
    def intent_matches(self) -> bool:
        """True when both intents are known and equal."""
        return self.has_intents and self.expected_intent == self.actual_intent

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a corpus document record."""
        return {
            "userInput": self.user_input,
            "expectedIntent": self.expected_intent,
            "actualIntent": self.actual_intent,
            "expectedResponse": self.expected_response,
            "actualResponse": self.actual_response,
            "satisfaction": self.satisfaction,
            "responseTimeMs": self.response_time_ms,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrainingExample:
        """Deserialize from a corpus document record.

        Missing fields fall back to neutral values. Legacy keys
        (``userSatisfaction``, ``responseTime``) are accepted.
        """
        satisfaction = data.get("satisfaction", data.get("userSatisfaction"))
        response_time = data.get("responseTimeMs", data.get("responseTime"))
        user_input = data.get("userInput")
        actual_response = data.get("actualResponse")
        return cls(
            user_input="" if user_input is None else str(user_input),
            actual_response="" if actual_response is None else str(actual_response),
            expected_intent=_optional_str(data.get("expectedIntent")),
            actual_intent=_optional_str(data.get("actualIntent")),
            expected_response=_optional_str(data.get("expectedResponse")),
            satisfaction=coerce_float(satisfaction),
            response_time_ms=coerce_float(response_time),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


# ===================================================================
# FeedbackRecord
# ===================================================================


@dataclass
class FeedbackRecord:
    """An explicit user rating of one bot answer.

    Feedback is correlated with examples only through text equality;
    the interaction it rates may no longer exist.

    Attributes:
        conversation_id: Conversation the rated answer belongs to.
        user_input: The user's message.
        bot_response: The rated bot answer.
        rating: Rating on the 1-5 scale (clamped).
        note: Optional free-text comment.
        timestamp: When the rating was given.
    """

    conversation_id: str
    user_input: str
    bot_response: str
    rating: int
    note: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.rating = clamp_rating(self.rating)
        self.timestamp = normalize_timestamp(self.timestamp)

    @property
    def satisfaction(self) -> float:
        """Rating mapped onto the 0-1 satisfaction scale."""
        return self.rating / MAX_RATING

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a corpus document record."""
        return {
            "conversationId": self.conversation_id,
            "userInput": self.user_input,
            "botResponse": self.bot_response,
            "rating": self.rating,
            "note": self.note,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedbackRecord:
        """Deserialize from a corpus document record.

        The legacy ``feedback`` key is read as the note.
        """
        note = data.get("note", data.get("feedback"))
        return cls(
            conversation_id=str(data.get("conversationId") or ""),
            user_input=str(data.get("userInput") or ""),
            bot_response=str(data.get("botResponse") or ""),
            rating=clamp_rating(data.get("rating")),
            note=_optional_str(note),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


# ===================================================================
# PerformanceMetrics
# ===================================================================


@dataclass
class PerformanceMetrics:
    """Point-in-time quality metrics.

    Attributes:
        accuracy: Intent accuracy percentage (0-100).
        user_satisfaction: Mean satisfaction percentage (0-100).
        response_time_ms: Mean response time in milliseconds.
    """

    accuracy: float = 0.0
    user_satisfaction: float = 0.0
    response_time_ms: float = 0.0

    @classmethod
    def zero(cls) -> PerformanceMetrics:
        """Return neutral metrics for an empty corpus."""
        return cls()

    def to_dict(self) -> dict[str, float]:
        """Serialize to a corpus document record."""
        return {
            "accuracy": self.accuracy,
            "userSatisfaction": self.user_satisfaction,
            "responseTimeMs": self.response_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PerformanceMetrics:
        """Deserialize, replacing missing or non-finite values with 0."""
        response_time = data.get("responseTimeMs", data.get("responseTime"))
        return cls(
            accuracy=coerce_float(data.get("accuracy")) or 0.0,
            user_satisfaction=coerce_float(data.get("userSatisfaction")) or 0.0,
            response_time_ms=coerce_float(response_time) or 0.0,
        )


# ===================================================================
# Corpus
# ===================================================================


@dataclass
class Corpus:
    """The interaction corpus owned by one host instance.

    The host holds the Corpus value and hands it to the stateless
    services (CorpusStore, ReadinessAnalyzer, CollaborativeMerger).

    Attributes:
        examples: Recorded interactions in chronological order.
        feedback: Explicit user ratings in arrival order.
        metrics: Last computed metrics (a cache, not authoritative).
        revision: Number of times the corpus has been persisted.
    """

    examples: list[TrainingExample] = field(default_factory=list)
    feedback: list[FeedbackRecord] = field(default_factory=list)
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics.zero)
    revision: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted corpus document."""
        return {
            "examples": [e.to_dict() for e in self.examples],
            "feedback": [f.to_dict() for f in self.feedback],
            "metrics": self.metrics.to_dict(),
            "revision": self.revision,
        }

    def snapshot(self) -> Corpus:
        """Return a copy whose collections are independent of this corpus."""
        return Corpus(
            examples=list(self.examples),
            feedback=[replace(f) for f in self.feedback],
            metrics=replace(self.metrics),
            revision=self.revision,
        )

    def restore(self, snapshot: Corpus) -> None:
        """Put this corpus back to the state captured by *snapshot*.

        The Corpus object itself is kept, since the host and the
        services hold references to it.
        """
        self.examples = list(snapshot.examples)
        self.feedback = list(snapshot.feedback)
        self.metrics = snapshot.metrics
        self.revision = snapshot.revision
