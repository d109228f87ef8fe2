"""Tests for the collaborative training FastAPI router."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from collab.src import server as collab_server
from collab.src.merger import MergeConfig
from corpus.src import server as corpus_server
from corpus.src.models import Corpus, TrainingExample
from corpus.src.persistence import CorpusFile
from corpus.src.store import CorpusStore
from shared.hardening import RetryConfig


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """TestClient with corpus and collab routers mounted, unconfigured."""
    monkeypatch.setitem(corpus_server._state, "store", None)
    monkeypatch.setitem(corpus_server._state, "corpus_file", None)
    monkeypatch.setitem(collab_server._state, "merger", None)
    app = FastAPI()
    app.include_router(corpus_server.router, prefix="/api/corpus")
    app.include_router(collab_server.router, prefix="/api/collab")
    return TestClient(app)


@pytest.fixture()
def store(tmp_path: Path) -> CorpusStore:
    """Configure a file-backed store with one example."""
    example = TrainingExample(
        "hi", actual_response="Hello!", satisfaction=0.4, timestamp=datetime.now()
    )
    corpus = Corpus(examples=[example])
    store = CorpusStore(corpus)
    corpus_server.configure(store, CorpusFile(tmp_path / "corpus.json"))
    return store


class TestCollabRouter:
    """Tests for the collab endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Health reports the scenario library and merge policy."""
        collab_server.configure(MergeConfig(normalize_keys=True))
        data = client.get("/api/collab/health").json()
        assert data["status"] == "ok"
        assert data["scenario_library"] == "1.0.0"
        assert data["config"]["normalize_keys"] is True

    def test_guide(self, client: TestClient) -> None:
        """The guide is available without a corpus."""
        data = client.get("/api/collab/guide").json()
        assert len(data["sections"]) == 3

    def test_package(self, client: TestClient, store: CorpusStore) -> None:
        """GET /package ships the current corpus."""
        data = client.get("/api/collab/package").json()
        assert data["currentTrainingData"]["examples"][0]["userInput"] == "hi"
        assert "testScenarios" in data

    def test_package_requires_corpus(self, client: TestClient) -> None:
        """Without a corpus store the package is unavailable."""
        assert client.get("/api/collab/package").status_code == 503

    def test_merge_package_round_trip(
        self, client: TestClient, store: CorpusStore, tmp_path: Path
    ) -> None:
        """A returned package merges and is persisted."""
        package = client.get("/api/collab/package").json()
        package["currentTrainingData"]["examples"].append(
            {"userInput": "give me advice", "satisfaction": 0.9}
        )
        package["currentTrainingData"]["examples"][0]["satisfaction"] = 0.8

        resp = client.post("/api/collab/merge", json=package)

        assert resp.status_code == 200
        data = resp.json()
        assert data["report"]["imported"] == 1
        assert data["report"]["merged"] == 1
        assert data["report"]["conflicts"] == 1
        assert data["summary"]["title"] == "Training data merge report"
        assert len(store.corpus.examples) == 2
        saved = json.loads((tmp_path / "corpus.json").read_text(encoding="utf-8"))
        assert len(saved["examples"]) == 2

    def test_merge_malformed(self, client: TestClient, store: CorpusStore) -> None:
        """A malformed upload is rejected with a readable 400."""
        resp = client.post("/api/collab/merge", json="just text")
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["component"] == "collab"
        assert detail["error_code"] == "IMPT_005"
        assert len(store.corpus.examples) == 1

    def test_merge_non_object(self, client: TestClient, store: CorpusStore) -> None:
        """A JSON array is not a training document."""
        resp = client.post("/api/collab/merge", json=[1, 2])
        assert resp.status_code == 400

    def test_merge_wrongly_typed_collections(
        self, client: TestClient, store: CorpusStore
    ) -> None:
        """Unusable collections merge nothing instead of failing."""
        resp = client.post("/api/collab/merge", json={"examples": 5, "feedback": "x"})
        assert resp.status_code == 200
        assert resp.json()["report"]["imported"] == 0
        assert resp.json()["report"]["feedbackImported"] == 0
        assert len(store.corpus.examples) == 1

    def test_failed_save_rolls_back_merge(self, client: TestClient, tmp_path: Path) -> None:
        """A merge that cannot be saved can be retried without double counting."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        corpus = Corpus(
            examples=[TrainingExample("hi", satisfaction=0.4, timestamp=datetime.now())]
        )
        store = CorpusStore(corpus)
        corpus_server.configure(
            store,
            CorpusFile(
                blocker / "corpus.json",
                retry_config=RetryConfig(max_attempts=1),
                sleep_func=lambda _: None,
            ),
        )
        upload = {
            "examples": [{"userInput": "hi", "satisfaction": 0.8}],
            "feedback": [
                {"conversationId": "c1", "userInput": "hi", "botResponse": "Hello!", "rating": 5}
            ],
        }

        for _ in range(2):
            assert client.post("/api/collab/merge", json=upload).status_code == 500

        assert len(store.corpus.examples) == 1
        assert store.corpus.examples[0].satisfaction == 0.4
        assert store.corpus.feedback == []
