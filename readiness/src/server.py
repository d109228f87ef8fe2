"""FastAPI router for readiness analysis.

Serves the readiness dashboard of the host UI. Reads the corpus from
the corpus router's store, so it must be mounted next to it, at
``/api/readiness/``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from corpus.src.server import get_store
from readiness.src.analyzer import ReadinessAnalyzer, ReadinessConfig
from readiness.src.report import build_report
from shared.hardening import ErrorFormatter

logger = logging.getLogger(__name__)

_formatter = ErrorFormatter()

_state: dict[str, Any] = {"analyzer": None}


def get_analyzer() -> ReadinessAnalyzer:
    """Return the configured analyzer, creating a default one on first use."""
    analyzer = _state.get("analyzer")
    if analyzer is None:
        analyzer = ReadinessAnalyzer()
        _state["analyzer"] = analyzer
    return analyzer


def configure(config: ReadinessConfig | None = None) -> None:
    """Set the analysis policy.

    Args:
        config: Thresholds and window. Defaults to the standard policy.
    """
    _state["analyzer"] = ReadinessAnalyzer(config)


router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    """Return readiness service health status."""
    analyzer = get_analyzer()
    return {
        "status": "ok",
        "version": "0.1.0",
        "config": analyzer.config.to_dict(),
    }


@router.get("/analysis")
async def get_analysis() -> dict[str, Any]:
    """Analyze the current corpus against the release thresholds."""
    try:
        store = get_store()
        return get_analyzer().analyze(store.corpus).to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Readiness analysis failed")
        detail = _formatter.format_analysis_error(exc).to_dict()
        raise HTTPException(status_code=500, detail=detail) from exc


@router.get("/report")
async def get_report() -> dict[str, Any]:
    """Analyze the corpus and return the exportable report."""
    try:
        store = get_store()
        analysis = get_analyzer().analyze(store.corpus)
        return build_report(analysis).to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Readiness report failed")
        detail = _formatter.format_analysis_error(exc).to_dict()
        raise HTTPException(status_code=500, detail=detail) from exc
