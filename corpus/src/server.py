"""FastAPI router for the corpus store.

Exposes REST endpoints the host UI calls on every bot turn (recording
interactions and ratings) and for corpus maintenance (metrics, export,
import, reset). Designed to be mounted at ``/api/corpus/`` by the
parent application.

Example::

    from fastapi import FastAPI
    from corpus.src.server import configure, router

    configure(CorpusStore(corpus), CorpusFile("data/trainer/corpus.json"))
    app = FastAPI()
    app.include_router(router, prefix="/api/corpus")
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel, Field

from corpus.src.documents import DocumentImportError
from corpus.src.models import Corpus, FeedbackRecord, TrainingExample
from corpus.src.persistence import ConcurrentWriteError, CorpusFile, PersistenceError
from corpus.src.store import DEFAULT_METRICS_WINDOW_MS, CorpusStore
from shared.hardening import ErrorFormatter

logger = logging.getLogger(__name__)

_formatter = ErrorFormatter()

# ===================================================================
# Pydantic request models
# ===================================================================


class RecordExampleRequest(BaseModel):
    """Request body for recording a fully-described interaction."""

    user_input: str = Field(..., min_length=1, max_length=10_000)
    actual_response: str = Field(default="", max_length=20_000)
    expected_intent: str | None = Field(default=None, max_length=200)
    actual_intent: str | None = Field(default=None, max_length=200)
    expected_response: str | None = Field(default=None, max_length=20_000)
    satisfaction: float | None = Field(default=None, ge=0.0, le=1.0)
    response_time_ms: float | None = Field(default=None, ge=0.0)
    timestamp: datetime | None = None


class RecordInteractionRequest(BaseModel):
    """Request body for recording one bot turn as it happens."""

    user_input: str = Field(..., min_length=1, max_length=10_000)
    bot_response: str = Field(..., max_length=20_000)
    expected_intent: str | None = Field(default=None, max_length=200)
    actual_intent: str | None = Field(default=None, max_length=200)
    rating: int | None = Field(default=None, ge=1, le=5)
    response_time_ms: float | None = Field(default=None, ge=0.0)


class RecordFeedbackRequest(BaseModel):
    """Request body for an explicit user rating."""

    conversation_id: str = Field(..., min_length=1, max_length=200)
    user_input: str = Field(..., max_length=10_000)
    bot_response: str = Field(..., max_length=20_000)
    rating: int = Field(..., ge=1, le=5)
    note: str | None = Field(default=None, max_length=5_000)
    timestamp: datetime | None = None


# ===================================================================
# Shared state
# ===================================================================

_state: dict[str, Any] = {
    "store": None,
    "corpus_file": None,
    "revision": None,
}


def get_store() -> CorpusStore:
    """Return the configured CorpusStore, raising 503 if not configured.

    Raises:
        HTTPException: 503 if configure() was not called.
    """
    store = _state.get("store")
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Corpus store not initialised. Call configure() first.",
        )
    return store


def configure(store: CorpusStore, corpus_file: CorpusFile | None = None) -> None:
    """Inject the store and its optional backing file.

    The corpus revision at this point is taken as the revision on
    disk; saves are refused with 409 once the file moved past it.

    Args:
        store: Store over the host's corpus.
        corpus_file: File mutations are persisted to. Nothing is
            persisted when None.
    """
    _state["store"] = store
    _state["corpus_file"] = corpus_file
    _state["revision"] = store.corpus.revision


def persist_corpus(before: Corpus) -> None:
    """Write the corpus to the configured file, if any.

    When the write fails the in-memory corpus is restored to *before*,
    so a client retrying after an error does not apply its change twice.

    Args:
        before: Snapshot of the corpus taken before the mutation.

    Raises:
        HTTPException: 409 when another writer moved the file on,
            500 when the file cannot be written.
    """
    corpus_file: CorpusFile | None = _state.get("corpus_file")
    if corpus_file is None:
        return
    corpus = get_store().corpus
    try:
        corpus_file.save(corpus, expected_revision=_state.get("revision"))
    except ConcurrentWriteError as exc:
        corpus.restore(before)
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except PersistenceError as exc:
        corpus.restore(before)
        logger.exception("Failed to persist corpus, changes rolled back")
        detail = _formatter.format_storage_error(exc.__cause__ or exc).to_dict()
        raise HTTPException(status_code=500, detail=detail) from exc
    _state["revision"] = corpus.revision


# ===================================================================
# Router
# ===================================================================

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    """Return corpus service health status."""
    store: CorpusStore | None = _state.get("store")
    corpus_file: CorpusFile | None = _state.get("corpus_file")
    return {
        "status": "ok" if store is not None else "not_configured",
        "version": "0.1.0",
        "components": {
            "store": store is not None,
            "persistence": corpus_file is not None,
        },
        "examples": len(store.corpus.examples) if store is not None else 0,
        "feedback": len(store.corpus.feedback) if store is not None else 0,
    }


# -------------------------------------------------------------------
# Recording
# -------------------------------------------------------------------


@router.post("/examples", status_code=201)
async def record_example(request: RecordExampleRequest) -> dict[str, Any]:
    """Record a fully-described interaction.

    Args:
        request: Example fields.

    Returns:
        The recorded example document.
    """
    try:
        store = get_store()
        before = store.corpus.snapshot()
        example = TrainingExample(
            user_input=request.user_input,
            actual_response=request.actual_response,
            expected_intent=request.expected_intent,
            actual_intent=request.actual_intent,
            expected_response=request.expected_response,
            satisfaction=request.satisfaction,
            response_time_ms=request.response_time_ms,
            timestamp=request.timestamp or datetime.now(),
        )
        store.record(example)
        persist_corpus(before)
        return example.to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to record example")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.post("/interactions", status_code=201)
async def record_interaction(request: RecordInteractionRequest) -> dict[str, Any]:
    """Record one bot turn, estimating satisfaction when unrated.

    Args:
        request: The turn as seen by the host UI.

    Returns:
        The recorded example document.
    """
    try:
        store = get_store()
        before = store.corpus.snapshot()
        example = store.record_interaction(
            request.user_input,
            request.bot_response,
            expected_intent=request.expected_intent,
            actual_intent=request.actual_intent,
            rating=request.rating,
            response_time_ms=request.response_time_ms,
        )
        persist_corpus(before)
        return example.to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to record interaction")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.post("/feedback", status_code=201)
async def record_feedback(request: RecordFeedbackRequest) -> dict[str, Any]:
    """Record an explicit user rating.

    Args:
        request: Rating details.

    Returns:
        The recorded feedback document.
    """
    try:
        store = get_store()
        before = store.corpus.snapshot()
        feedback = FeedbackRecord(
            conversation_id=request.conversation_id,
            user_input=request.user_input,
            bot_response=request.bot_response,
            rating=request.rating,
            note=request.note,
            timestamp=request.timestamp or datetime.now(),
        )
        store.record_feedback(feedback)
        persist_corpus(before)
        return feedback.to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to record feedback")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


# -------------------------------------------------------------------
# Metrics and reports
# -------------------------------------------------------------------


@router.get("/metrics")
async def get_metrics(
    window_ms: float = Query(default=DEFAULT_METRICS_WINDOW_MS, gt=0),
) -> dict[str, Any]:
    """Return performance metrics over the time window.

    Args:
        window_ms: Window length in milliseconds (default 30 days).

    Returns:
        Metrics document.
    """
    try:
        return get_store().metrics(window_ms=window_ms).to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute metrics")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/patterns")
async def get_patterns(
    limit: int = Query(default=5, ge=1, le=50),
) -> dict[str, Any]:
    """Return recognition statistics and keyword suggestions per intent.

    Args:
        limit: Number of suggested words per intent.

    Returns:
        Dictionary keyed by intent.
    """
    try:
        store = get_store()
        patterns = {}
        for intent, pattern in store.intent_patterns().items():
            entry = pattern.to_dict()
            entry["suggestedPatterns"] = [
                {"word": word, "frequency": count}
                for word, count in store.suggest_patterns(intent, limit=limit)
            ]
            patterns[intent] = entry
        return {"patterns": patterns}
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to analyze intent patterns")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/improvement-report")
async def get_improvement_report() -> dict[str, Any]:
    """Return the quick improvement report."""
    try:
        return get_store().improvement_report().to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to build improvement report")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


# -------------------------------------------------------------------
# Documents
# -------------------------------------------------------------------


@router.get("/document")
async def export_document() -> dict[str, Any]:
    """Export the corpus as a document."""
    try:
        return get_store().export_document()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to export corpus")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.put("/document")
async def import_document(document: Any = Body(...)) -> dict[str, Any]:
    """Replace the corpus with an imported document.

    Args:
        document: Corpus document (current or legacy shape).

    Returns:
        Counts of the loaded records.
    """
    try:
        store = get_store()
        before = store.corpus.snapshot()
        store.load_document(document)
        persist_corpus(before)
        return {
            "examples": len(store.corpus.examples),
            "feedback": len(store.corpus.feedback),
            "revision": store.corpus.revision,
        }
    except DocumentImportError as exc:
        detail = _formatter.format_import_error(exc).to_dict()
        raise HTTPException(status_code=400, detail=detail) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to import corpus document")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.post("/reset")
async def reset_corpus() -> dict[str, Any]:
    """Clear all examples and feedback."""
    try:
        store = get_store()
        before = store.corpus.snapshot()
        store.reset()
        persist_corpus(before)
        return {"status": "reset", "revision": store.corpus.revision}
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to reset corpus")
        raise HTTPException(status_code=500, detail="Internal server error") from exc
