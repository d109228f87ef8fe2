"""Collaborative training: package export and external merge.

Testers receive a training package (instructions, the scenario library
and the current corpus), use the assistant, and send back their corpus
export. ``CollaborativeMerger`` folds that export into the local corpus
without duplicating examples: an incoming example whose user input is
already known has its satisfaction averaged into the local one.

Example::

    merger = CollaborativeMerger()
    package = merger.build_package(corpus)
    # ... tester round-trip ...
    report = merger.merge_external(corpus, returned_document)
    print(merger.summarize_merge(report).to_dict())
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from collab.src.scenarios import (
    EXPORT_INSTRUCTIONS,
    GUIDE_EXPORT_STEPS,
    PACKAGE_INSTRUCTIONS,
    SCENARIO_LIBRARY,
    TESTING_STEPS,
    ScenarioLibrary,
)
from corpus.src.documents import (
    DocumentImportError,
    parse_corpus_document,
    parse_json_document,
    unwrap_corpus_document,
)
from corpus.src.models import Corpus, PerformanceMetrics, TrainingExample
from corpus.src.store import DEFAULT_METRICS_WINDOW_MS, CorpusStore

logger = logging.getLogger(__name__)

PACKAGE_VERSION = "1.0.0"


# ===================================================================
# Configuration and results
# ===================================================================


@dataclass
class MergeConfig:
    """Merge policy.

    Attributes:
        normalize_keys: Compare user inputs after trimming and
            casefolding instead of exactly.
        metrics_window_ms: Window of the before/after metrics.
    """

    normalize_keys: bool = False
    metrics_window_ms: float = DEFAULT_METRICS_WINDOW_MS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return {
            "normalize_keys": self.normalize_keys,
            "metrics_window_ms": self.metrics_window_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MergeConfig:
        """Deserialize, falling back to defaults for missing keys."""
        return cls(
            normalize_keys=bool(data.get("normalize_keys", False)),
            metrics_window_ms=data.get("metrics_window_ms", DEFAULT_METRICS_WINDOW_MS),
        )


@dataclass
class MergeReport:
    """Outcome of one merge call. Informational, never persisted.

    Attributes:
        imported: Incoming examples appended as new.
        merged: Incoming examples that matched a known input.
        conflicts: Matches whose two satisfactions disagreed.
        improvements: Human-readable metric improvements.
        feedback_imported: Incoming feedback records appended.
    """

    imported: int = 0
    merged: int = 0
    conflicts: int = 0
    improvements: list[str] = field(default_factory=list)
    feedback_imported: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "imported": self.imported,
            "merged": self.merged,
            "conflicts": self.conflicts,
            "improvements": list(self.improvements),
            "feedbackImported": self.feedback_imported,
        }


@dataclass
class MergeRecommendation:
    """Follow-up hint after a merge (success, improvement or warning)."""

    type: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass
class MergeSummary:
    """Presentation of a MergeReport for the host UI."""

    title: str
    report: MergeReport
    recommendations: list[MergeRecommendation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": {
                "imported": self.report.imported,
                "merged": self.report.merged,
                "conflicts": self.report.conflicts,
                "feedbackImported": self.report.feedback_imported,
            },
            "improvements": list(self.report.improvements),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class TrainingPackage:
    """Everything a tester needs for one testing round.

    Attributes:
        version: Package format version.
        timestamp: When the package was built.
        instructions: How to test.
        test_scenarios: The scenario library.
        current_training_data: Corpus export at build time.
        export_instructions: How to send data back.
    """

    version: str
    timestamp: datetime
    instructions: dict[str, Any]
    test_scenarios: ScenarioLibrary
    current_training_data: dict[str, Any]
    export_instructions: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "instructions": copy.deepcopy(self.instructions),
            "testScenarios": self.test_scenarios.to_dict(),
            "scenarioLibraryVersion": self.test_scenarios.version,
            "currentTrainingData": copy.deepcopy(self.current_training_data),
            "exportInstructions": copy.deepcopy(self.export_instructions),
        }


# ===================================================================
# Merger
# ===================================================================


def _merge_satisfaction(
    local: float | None, incoming: float | None
) -> tuple[float | None, bool]:
    """Combine two satisfactions.

    Args:
        local: Satisfaction of the stored example.
        incoming: Satisfaction of the incoming example.

    Returns:
        ``(merged value, conflict)``; a conflict means both values were
        present and different.
    """
    if local is None:
        return incoming, False
    if incoming is None:
        return local, False
    return (local + incoming) / 2, local != incoming


def _describe_improvements(
    before: PerformanceMetrics, after: PerformanceMetrics
) -> list[str]:
    improvements = []
    if after.accuracy > before.accuracy:
        improvements.append(
            f"accuracy improved: {before.accuracy:.1f}% → {after.accuracy:.1f}%"
        )
    if after.user_satisfaction > before.user_satisfaction:
        improvements.append(
            f"satisfaction improved: {before.user_satisfaction:.1f}% → "
            f"{after.user_satisfaction:.1f}%"
        )
    if 0 < after.response_time_ms < before.response_time_ms:
        improvements.append(
            f"response time improved: {before.response_time_ms:.0f} ms → "
            f"{after.response_time_ms:.0f} ms"
        )
    return improvements


class CollaborativeMerger:
    """Build training packages and merge tester data back.

    Args:
        config: Merge policy. Defaults to exact key matching.
        library: Scenario library shipped in packages.
    """

    def __init__(
        self,
        config: MergeConfig | None = None,
        library: ScenarioLibrary = SCENARIO_LIBRARY,
    ) -> None:
        self.config = config or MergeConfig()
        self.library = library

    def _key(self, user_input: str) -> str:
        if self.config.normalize_keys:
            return user_input.strip().casefold()
        return user_input

    # ---------------------------------------------------------------
    # Export
    # ---------------------------------------------------------------

    def build_package(self, corpus: Corpus, now: datetime | None = None) -> TrainingPackage:
        """Bundle instructions, scenarios and the corpus for a tester.

        Args:
            corpus: Corpus to ship. Not modified.
            now: Build time. Defaults to the current time.

        Returns:
            TrainingPackage; identical for identical corpus, library
            version and build time.
        """
        now = now or datetime.now()
        training_data = corpus.to_dict()
        training_data["exportedAt"] = now.isoformat()
        logger.info(
            "Built training package v%s with %d examples (scenarios v%s)",
            PACKAGE_VERSION,
            len(corpus.examples),
            self.library.version,
        )
        return TrainingPackage(
            version=PACKAGE_VERSION,
            timestamp=now,
            instructions=copy.deepcopy(PACKAGE_INSTRUCTIONS),
            test_scenarios=self.library,
            current_training_data=training_data,
            export_instructions=copy.deepcopy(EXPORT_INSTRUCTIONS),
        )

    def tester_guide(self) -> dict[str, Any]:
        """Guide handed to testers: how to test, scenarios, how to export."""
        return {
            "title": PACKAGE_INSTRUCTIONS["title"],
            "introduction": (
                "Help us improve the assistant by trying these scenarios "
                "and rating every answer."
            ),
            "sections": [
                {"title": "How to test", "steps": list(TESTING_STEPS)},
                {"title": "Test scenarios", "scenarios": self.library.to_dict()},
                {"title": "How to export your data", "steps": list(GUIDE_EXPORT_STEPS)},
            ],
        }

    # ---------------------------------------------------------------
    # Import
    # ---------------------------------------------------------------

    def _parse_incoming(self, incoming: Any) -> Corpus:
        """Turn any accepted incoming shape into a Corpus.

        Raises:
            DocumentImportError: When *incoming* is not a package or
                corpus document.
        """
        if isinstance(incoming, TrainingPackage):
            return parse_corpus_document(incoming.current_training_data)
        if isinstance(incoming, Corpus):
            return Corpus(examples=list(incoming.examples), feedback=list(incoming.feedback))
        if isinstance(incoming, (str, bytes)):
            incoming = parse_json_document(incoming)
        if not isinstance(incoming, Mapping):
            raise DocumentImportError(
                f"Expected a training package or corpus document, got {type(incoming).__name__}"
            )
        return parse_corpus_document(unwrap_corpus_document(incoming))

    def merge_external(
        self,
        local: Corpus,
        incoming: Any,
        now: datetime | None = None,
    ) -> MergeReport:
        """Fold tester data into the local corpus.

        Incoming data is parsed completely before *local* is touched,
        so a malformed document leaves the corpus unchanged. The caller
        persists the mutated corpus.

        Args:
            local: Corpus to merge into (mutated).
            incoming: TrainingPackage, Corpus, package document, corpus
                document, or the JSON text of a document.
            now: End of the metrics window. Defaults to the current time.

        Returns:
            MergeReport.

        Raises:
            DocumentImportError: When *incoming* cannot be parsed.
        """
        parsed = self._parse_incoming(incoming)
        now = now or datetime.now()
        window = self.config.metrics_window_ms
        store = CorpusStore(local)
        before = copy.copy(store.metrics(window, now))

        report = MergeReport()
        index: dict[str, int] = {}
        for position, example in enumerate(local.examples):
            index.setdefault(self._key(example.user_input), position)

        for example in parsed.examples:
            key = self._key(example.user_input)
            position = index.get(key)
            if position is None:
                local.examples.append(example)
                index[key] = len(local.examples) - 1
                report.imported += 1
                continue
            existing: TrainingExample = local.examples[position]
            satisfaction, conflict = _merge_satisfaction(existing.satisfaction, example.satisfaction)
            local.examples[position] = replace(existing, satisfaction=satisfaction)
            report.merged += 1
            if conflict:
                report.conflicts += 1

        local.feedback.extend(parsed.feedback)
        report.feedback_imported = len(parsed.feedback)

        after = store.metrics(window, now)
        report.improvements = _describe_improvements(before, after)
        logger.info(
            "Merged external data: %d imported, %d merged, %d conflicts, %d feedback",
            report.imported,
            report.merged,
            report.conflicts,
            report.feedback_imported,
        )
        return report

    def summarize_merge(self, report: MergeReport) -> MergeSummary:
        """Present a merge report with follow-up recommendations."""
        recommendations: list[MergeRecommendation] = []
        if report.imported > 0:
            recommendations.append(
                MergeRecommendation(
                    type="success",
                    message=f"{report.imported} new training examples added",
                )
            )
        if report.improvements:
            recommendations.append(
                MergeRecommendation(
                    type="improvement",
                    message="Performance improved thanks to the new data",
                )
            )
        if report.conflicts > 0:
            recommendations.append(
                MergeRecommendation(
                    type="warning",
                    message=f"{report.conflicts} conflicts detected, check the ratings for consistency",
                )
            )
        return MergeSummary(
            title="Training data merge report",
            report=report,
            recommendations=recommendations,
        )
