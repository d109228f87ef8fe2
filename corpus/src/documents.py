"""Corpus document parsing.

Turns loosely-shaped JSON documents (persisted corpora, exports sent
back by testers, training packages, and legacy documents written by
older versions of the host app) into a fully-built ``Corpus``. Parsing
never touches an existing corpus, so callers can swap the result in
only once it succeeded.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from corpus.src.models import (
    Corpus,
    FeedbackRecord,
    PerformanceMetrics,
    TrainingExample,
)

logger = logging.getLogger(__name__)

# Current key first, then keys written by older versions of the host app.
_EXAMPLE_KEYS = ("examples", "trainingData")
_FEEDBACK_KEYS = ("feedback", "userFeedback")
_METRICS_KEYS = ("metrics", "performanceMetrics")

PACKAGE_CORPUS_KEY = "currentTrainingData"


class CorpusError(Exception):
    """Base class for corpus errors."""


class DocumentImportError(CorpusError, ValueError):
    """Raised when a document is not structurally a corpus document."""


def _first_present(doc: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if doc.get(key) is not None:
            return doc[key]
    return None


def _parse_records(raw: Any, name: str, factory: Any) -> list[Any]:
    """Parse one record collection.

    Args:
        raw: The collection value from the document (None when absent).
        name: Collection name, used in messages.
        factory: ``from_dict`` callable building one record.

    Returns:
        Parsed records, in document order. A collection that is not a
        list yields no records.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Ignoring %s of type %s", name, type(raw).__name__)
        return []
    records = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("Skipping %s[%d]: not an object (%s)", name, index, type(item).__name__)
            continue
        records.append(factory(item))
    return records


def parse_corpus_document(doc: Any) -> Corpus:
    """Build a Corpus from a corpus document.

    Missing collections become empty lists and missing scalars take
    neutral values. Legacy collection keys (``trainingData``,
    ``userFeedback``, ``performanceMetrics``) are accepted.

    Args:
        doc: Parsed JSON document.

    Returns:
        A new Corpus.

    Raises:
        DocumentImportError: When *doc* is not a mapping.
    """
    if not isinstance(doc, Mapping):
        raise DocumentImportError(
            f"Corpus document must be an object, got {type(doc).__name__}"
        )

    examples = _parse_records(_first_present(doc, _EXAMPLE_KEYS), "examples", TrainingExample.from_dict)
    feedback = _parse_records(_first_present(doc, _FEEDBACK_KEYS), "feedback", FeedbackRecord.from_dict)

    raw_metrics = _first_present(doc, _METRICS_KEYS)
    if raw_metrics is None:
        metrics = PerformanceMetrics.zero()
    elif isinstance(raw_metrics, Mapping):
        metrics = PerformanceMetrics.from_dict(raw_metrics)
    else:
        logger.warning("Ignoring metrics of type %s", type(raw_metrics).__name__)
        metrics = PerformanceMetrics.zero()

    revision = doc.get("revision")
    if not isinstance(revision, int) or isinstance(revision, bool) or revision < 0:
        revision = 0

    return Corpus(examples=examples, feedback=feedback, metrics=metrics, revision=revision)


def unwrap_corpus_document(doc: Any) -> Any:
    """Return the corpus document carried by *doc*.

    Training packages carry the corpus under ``currentTrainingData``;
    anything else is assumed to be a corpus document already.

    Args:
        doc: A package document or a corpus document.

    Returns:
        The corpus document.
    """
    if isinstance(doc, Mapping) and isinstance(doc.get(PACKAGE_CORPUS_KEY), Mapping):
        return doc[PACKAGE_CORPUS_KEY]
    return doc


def parse_json_document(text: str | bytes) -> dict[str, Any]:
    """Parse JSON text whose top level must be an object.

    Args:
        text: Raw JSON text.

    Returns:
        The parsed object.

    Raises:
        DocumentImportError: On invalid JSON or a non-object top level.
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DocumentImportError(f"Document is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise DocumentImportError(
            f"Document must be a JSON object, got {type(document).__name__}"
        )
    return document
