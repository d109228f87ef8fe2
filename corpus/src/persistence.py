"""Whole-document persistence of the corpus.

``CorpusFile`` reads and writes one JSON corpus document. Writes are
atomic (temporary file in the same directory, then ``os.replace``) and
can be guarded by a revision check so two writers sharing a file do not
silently overwrite each other.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from corpus.src.documents import DocumentImportError, parse_corpus_document
from corpus.src.models import Corpus
from shared.hardening import (
    InputValidator,
    RetriesExhaustedError,
    RetryConfig,
    ValidationError,
    retry_io,
)

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


class PersistenceError(Exception):
    """Raised when the corpus file cannot be read or written."""


class ConcurrentWriteError(PersistenceError):
    """Raised when the file changed since the corpus was loaded.

    Attributes:
        expected: Revision the writer based its changes on.
        actual: Revision found on disk.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Corpus file is at revision {actual}, expected {expected}. "
            "Reload the corpus before saving."
        )


class CorpusFile:
    """A corpus document stored as one JSON file.

    Args:
        path: Location of the ``.json`` file.
        retry_config: Retry policy for transient I/O errors.
        sleep_func: Injectable sleep for tests.

    Raises:
        ValidationError: When *path* is not an acceptable ``.json`` path.
    """

    def __init__(
        self,
        path: str | Path,
        retry_config: RetryConfig | None = None,
        sleep_func: Callable[[float], None] | None = None,
    ) -> None:
        self._validator = InputValidator()
        self._path = self._validator.validate_file_path(
            path, must_exist=False, allowed_extensions=(".json",)
        )
        self._retry = retry_config or RetryConfig()
        self._sleep = sleep_func

    @property
    def path(self) -> Path:
        """Resolved location of the corpus file."""
        return self._path

    def exists(self) -> bool:
        """True when the corpus file is present on disk."""
        return self._path.is_file()

    # ---------------------------------------------------------------
    # Reading
    # ---------------------------------------------------------------

    def _read_document(self) -> dict[str, Any]:
        return retry_io(
            lambda: self._validator.validate_json_document(self._path),
            f"Reading {self._path.name}",
            self._retry,
            self._sleep,
        )

    def load(self) -> Corpus:
        """Load the corpus from disk.

        A missing file yields an empty corpus. A malformed file is moved
        aside (``<name>.corrupt``) and an empty corpus is returned.

        Returns:
            The loaded Corpus.

        Raises:
            PersistenceError: When the file exists but cannot be read.
        """
        if not self.exists():
            logger.info("No corpus file at %s, starting empty", self._path)
            return Corpus()

        try:
            corpus = parse_corpus_document(self._read_document())
        except (ValidationError, DocumentImportError) as exc:
            logger.warning("Corpus file %s is malformed (%s)", self._path, exc)
            self._quarantine()
            return Corpus()
        except RetriesExhaustedError as exc:
            raise PersistenceError(f"Cannot read corpus file: {exc.last_error}") from exc

        logger.info(
            "Loaded corpus from %s: %d examples, %d feedback records, revision %d",
            self._path,
            len(corpus.examples),
            len(corpus.feedback),
            corpus.revision,
        )
        return corpus

    def read_revision(self) -> int | None:
        """Revision of the document on disk, or None when unavailable."""
        if not self.exists():
            return None
        try:
            document = self._read_document()
        except (ValidationError, RetriesExhaustedError):
            return None
        revision = document.get("revision", 0)
        if not isinstance(revision, int) or isinstance(revision, bool):
            return 0
        return revision

    def _quarantine(self) -> None:
        target = self._path.with_name(self._path.name + CORRUPT_SUFFIX)
        try:
            os.replace(self._path, target)
        except OSError as exc:
            logger.warning("Could not move malformed corpus file aside: %s", exc)
            return
        logger.warning("Moved malformed corpus file to %s", target)

    # ---------------------------------------------------------------
    # Writing
    # ---------------------------------------------------------------

    def save(self, corpus: Corpus, expected_revision: int | None = None) -> int:
        """Write the corpus atomically and bump its revision.

        Args:
            corpus: The corpus to write. Its ``revision`` is updated only
                once the write succeeded.
            expected_revision: When given, the write is refused unless
                the file on disk is still at this revision.

        Returns:
            The new revision.

        Raises:
            ConcurrentWriteError: When the file moved past *expected_revision*.
            PersistenceError: When the file cannot be written.
        """
        on_disk = self.read_revision()
        if expected_revision is not None and on_disk is not None and on_disk != expected_revision:
            raise ConcurrentWriteError(expected_revision, on_disk)

        new_revision = max(corpus.revision, on_disk or 0) + 1
        document = corpus.to_dict()
        document["revision"] = new_revision
        payload = json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)

        try:
            retry_io(
                lambda: self._write_atomic(payload),
                f"Writing {self._path.name}",
                self._retry,
                self._sleep,
            )
        except RetriesExhaustedError as exc:
            raise PersistenceError(f"Cannot write corpus file: {exc.last_error}") from exc

        corpus.revision = new_revision
        logger.info(
            "Saved corpus to %s: %d examples, revision %d",
            self._path,
            len(corpus.examples),
            new_revision,
        )
        return new_revision

    def _write_atomic(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.stem}-", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
