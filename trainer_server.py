"""Chatbot trainer unified backend server.

Mounts the three trainer backends (Corpus, Readiness, Collab) under a
single FastAPI application for the host UI. Each router is mounted in
its own guarded step so that a failure in one component does not keep
the server from starting; the unified health endpoint reports which
components loaded.

Usage::

    # Development (auto-reload)
    uvicorn trainer_server:app --reload --port 8430

    # Or run directly
    python trainer_server.py

The corpus is persisted to ``data/trainer/corpus.json``; set
``TRAINER_DATA_DIR`` to use another directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("trainer")

DEFAULT_DATA_DIR = Path("data/trainer")
CORPUS_FILENAME = "corpus.json"

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Chatbot Trainer API",
    description=(
        "Feedback-driven training data pipeline for the assistant: "
        "Corpus (interaction recording), Readiness (release verdicts), "
        "Collab (tester packages and merges)."
    ),
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow local Electron / Vite dev server origins
# ---------------------------------------------------------------------------

_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8430",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8430",
    "app://.",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Component loading state
# ---------------------------------------------------------------------------

_tool_status: dict[str, dict[str, Any]] = {
    "corpus": {"loaded": False, "error": None},
    "readiness": {"loaded": False, "error": None},
    "collab": {"loaded": False, "error": None},
}


def data_dir() -> Path:
    """Directory holding the persisted corpus."""
    return Path(os.environ.get("TRAINER_DATA_DIR", str(DEFAULT_DATA_DIR)))


# ---------------------------------------------------------------------------
# Corpus (interaction recording)
# ---------------------------------------------------------------------------


def _mount_corpus() -> None:
    """Mount the Corpus router at ``/api/corpus/``.

    Loads the persisted corpus (an empty one when the file is missing
    or malformed) and injects it into the router.
    """
    try:
        from corpus.src.persistence import CorpusFile
        from corpus.src.server import configure, router as corpus_router
        from corpus.src.store import CorpusStore

        corpus_file = CorpusFile(data_dir() / CORPUS_FILENAME)
        configure(CorpusStore(corpus_file.load()), corpus_file)

        app.include_router(corpus_router, prefix="/api/corpus", tags=["corpus"])
        _tool_status["corpus"]["loaded"] = True
        logger.info("Corpus router mounted at /api/corpus/ (file: %s)", corpus_file.path)
    except Exception as exc:
        _tool_status["corpus"]["error"] = str(exc)
        logger.warning("Corpus router failed to load: %s", exc)


# ---------------------------------------------------------------------------
# Readiness (release verdicts)
# ---------------------------------------------------------------------------


def _mount_readiness() -> None:
    """Mount the Readiness router at ``/api/readiness/``."""
    try:
        from readiness.src.server import configure, router as readiness_router

        configure()
        app.include_router(readiness_router, prefix="/api/readiness", tags=["readiness"])
        _tool_status["readiness"]["loaded"] = True
        logger.info("Readiness router mounted at /api/readiness/")
    except Exception as exc:
        _tool_status["readiness"]["error"] = str(exc)
        logger.warning("Readiness router failed to load: %s", exc)


# ---------------------------------------------------------------------------
# Collab (tester packages and merges)
# ---------------------------------------------------------------------------


def _mount_collab() -> None:
    """Mount the Collab router at ``/api/collab/``."""
    try:
        from collab.src.server import configure, router as collab_router

        configure()
        app.include_router(collab_router, prefix="/api/collab", tags=["collab"])
        _tool_status["collab"]["loaded"] = True
        logger.info("Collab router mounted at /api/collab/")
    except Exception as exc:
        _tool_status["collab"]["error"] = str(exc)
        logger.warning("Collab router failed to load: %s", exc)


# ---------------------------------------------------------------------------
# Unified health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def unified_health() -> dict[str, Any]:
    """Return health status for all trainer components.

    Returns:
        Dictionary with overall status ("ok", "degraded" or "error")
        and per-component breakdown.
    """
    all_loaded = all(t["loaded"] for t in _tool_status.values())
    any_loaded = any(t["loaded"] for t in _tool_status.values())

    if all_loaded:
        status = "ok"
    elif any_loaded:
        status = "degraded"
    else:
        status = "error"

    return {
        "status": status,
        "version": "0.1.0",
        "tools": _tool_status,
    }


# ---------------------------------------------------------------------------
# Mount all components
# ---------------------------------------------------------------------------

_mount_corpus()
_mount_readiness()
_mount_collab()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_server(host: str = "127.0.0.1", port: int = 8430) -> None:
    """Start the trainer server via uvicorn.

    Args:
        host: Bind address. Defaults to localhost.
        port: Port number. Defaults to 8430.
    """
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    run_server()
