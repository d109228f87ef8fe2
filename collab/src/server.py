"""FastAPI router for collaborative training.

Builds training packages for testers and merges the data they send
back into the host's corpus. Uses the corpus router's store and
persistence, so it must be mounted next to it, at ``/api/collab/``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from collab.src.merger import CollaborativeMerger, MergeConfig
from corpus.src.documents import DocumentImportError
from corpus.src.server import get_store, persist_corpus
from shared.hardening import ErrorFormatter

logger = logging.getLogger(__name__)

_formatter = ErrorFormatter()

_state: dict[str, Any] = {"merger": None}


def get_merger() -> CollaborativeMerger:
    """Return the configured merger, creating a default one on first use."""
    merger = _state.get("merger")
    if merger is None:
        merger = CollaborativeMerger()
        _state["merger"] = merger
    return merger


def configure(config: MergeConfig | None = None) -> None:
    """Set the merge policy.

    Args:
        config: Merge policy. Defaults to exact key matching.
    """
    _state["merger"] = CollaborativeMerger(config)


router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    """Return collaborative training service health status."""
    merger = get_merger()
    return {
        "status": "ok",
        "version": "0.1.0",
        "scenario_library": merger.library.version,
        "config": merger.config.to_dict(),
    }


@router.get("/package")
async def get_package() -> dict[str, Any]:
    """Build a training package from the current corpus."""
    try:
        store = get_store()
        return get_merger().build_package(store.corpus).to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to build training package")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/guide")
async def get_guide() -> dict[str, Any]:
    """Return the tester guide."""
    return get_merger().tester_guide()


@router.post("/merge")
async def merge(document: Any = Body(...)) -> dict[str, Any]:
    """Merge a tester's package or corpus export into the corpus.

    Args:
        document: Training package document or corpus document.

    Returns:
        The merge report and its summary.
    """
    try:
        store = get_store()
        merger = get_merger()
        before = store.corpus.snapshot()
        report = merger.merge_external(store.corpus, document)
        persist_corpus(before)
        return {
            "report": report.to_dict(),
            "summary": merger.summarize_merge(report).to_dict(),
        }
    except DocumentImportError as exc:
        detail = _formatter.format_import_error(exc, component="collab").to_dict()
        raise HTTPException(status_code=400, detail=detail) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to merge external training data")
        raise HTTPException(status_code=500, detail="Internal server error") from exc
