"""Heuristic response-quality scoring.

Scores a bot answer in [0, 1] when the user gave no explicit rating,
so every recorded interaction still carries a satisfaction estimate.
The score rewards a readable length, intent-relevant vocabulary,
structured formatting, and an encouraging tone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Vocabulary expected in a good answer for each intent, one tuple per
# language the host app speaks (English, French).
_INTENT_KEYWORDS: dict[str, tuple[tuple[str, ...], ...]] = {
    "addExpense": (
        ("added", "expense", "amount", "category"),
        ("ajouté", "dépense", "montant", "catégorie"),
    ),
    "financialAnalysis": (
        ("analysis", "summary", "balance", "percent"),
        ("analyse", "résumé", "solde", "pourcent"),
    ),
    "advice": (
        ("advice", "recommend", "suggest", "tip"),
        ("conseil", "recommande", "suggère", "astuce"),
    ),
    "prediction": (
        ("forecast", "predict", "end of month", "trend"),
        ("prévision", "prédiction", "fin du mois", "tendance"),
    ),
}

_POSITIVE_WORDS: tuple[str, ...] = (
    "great", "excellent", "well done", "congratulations", "good job",
    "super", "bravo", "félicitations", "parfait",
)

_STRUCTURE_MARKERS: tuple[str, ...] = ("\n", "•")


@dataclass
class QualityWeights:
    """Weights of the scoring components.

    Attributes:
        length: Awarded when the answer length is within bounds.
        keywords: Scaled by the share of intent keywords present.
        structure: Awarded for line breaks or bullet points.
        tone: Awarded for encouraging words.
        min_length: Shortest answer considered readable.
        max_length: Longest answer considered readable.
    """

    length: float = 0.3
    keywords: float = 0.4
    structure: float = 0.2
    tone: float = 0.1
    min_length: int = 20
    max_length: int = 500


@dataclass
class ResponseQualityScorer:
    """Score bot answers with a keyword and formatting heuristic."""

    weights: QualityWeights = field(default_factory=QualityWeights)
    intent_keywords: dict[str, tuple[tuple[str, ...], ...]] = field(
        default_factory=lambda: dict(_INTENT_KEYWORDS)
    )

    def keyword_coverage(self, bot_response: str, intent: str | None) -> float:
        """Share of the intent's vocabulary found in the answer.

        The best-covered language wins.

        Args:
            bot_response: The bot's answer.
            intent: Intent the answer is meant to serve.

        Returns:
            Coverage in [0, 1]; 0 for unknown intents.
        """
        text = bot_response.lower()
        best = 0.0
        for vocabulary in self.intent_keywords.get(intent or "", ()):
            if not vocabulary:
                continue
            hits = sum(1 for word in vocabulary if word in text)
            best = max(best, hits / len(vocabulary))
        return best

    def score(self, bot_response: str, intent: str | None = None) -> float:
        """Estimate the quality of one answer.

        Args:
            bot_response: The bot's answer.
            intent: Intent the answer is meant to serve, if known.

        Returns:
            Score in [0, 1].
        """
        w = self.weights
        text = bot_response.lower()
        total = 0.0

        if w.min_length <= len(bot_response) <= w.max_length:
            total += w.length

        total += w.keywords * self.keyword_coverage(bot_response, intent)

        if any(marker in bot_response for marker in _STRUCTURE_MARKERS):
            total += w.structure

        if any(word in text for word in _POSITIVE_WORDS):
            total += w.tone

        result = min(1.0, max(0.0, total))
        logger.debug("Scored response for intent %s: %.2f", intent, result)
        return result
