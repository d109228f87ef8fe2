"""Hardening utilities shared by the trainer components.

Provides retry logic for corpus file I/O, user-friendly error formatting
for API responses, and input validation for file paths and JSON
documents handed over by the host application or by external testers.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 1. Retrying corpus file I/O
# ---------------------------------------------------------------------------


@dataclass
class RetryConfig:
    """Retry policy for reading and writing the corpus file.

    Only ``OSError`` (``TimeoutError`` included) is retried. The wait
    doubles after each failed attempt and never exceeds ``max_delay``.

    Attributes:
        max_attempts: Attempts in total, the first one included.
        base_delay: Seconds to wait before the first retry.
        max_delay: Longest wait between two attempts.
    """

    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 2.0

    def delay_before(self, retry: int) -> float:
        """Seconds to wait before retry number *retry* (1-based)."""
        return min(self.base_delay * 2 ** (retry - 1), self.max_delay)


class RetriesExhaustedError(Exception):
    """Raised when a file operation kept failing.

    Attributes:
        last_error: The OSError of the final attempt.
        attempts: Number of attempts made.
    """

    def __init__(self, description: str, last_error: OSError, attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"{description} failed {attempts} times: {last_error}")


def retry_io(
    operation: Callable[[], Any],
    description: str,
    config: RetryConfig | None = None,
    sleep_func: Callable[[float], None] | None = None,
) -> Any:
    """Run a file operation, retrying it while it raises ``OSError``.

    Other exceptions (a malformed document, for instance) propagate on
    the first attempt.

    Args:
        operation: Zero-argument callable doing the I/O.
        description: What the operation does, for logs and errors.
        config: Retry policy. Uses defaults when None.
        sleep_func: Injectable sleep for tests. Defaults to time.sleep.

    Returns:
        Whatever *operation* returns.

    Raises:
        RetriesExhaustedError: When the last allowed attempt failed.
    """
    cfg = config or RetryConfig()
    do_sleep = sleep_func or time.sleep
    attempt = 1
    while True:
        try:
            return operation()
        except OSError as exc:
            if attempt >= cfg.max_attempts:
                raise RetriesExhaustedError(description, exc, attempt) from exc
            delay = cfg.delay_before(attempt)
            logger.warning(
                "%s failed (%s), retry %d of %d in %.2fs",
                description,
                exc,
                attempt,
                cfg.max_attempts - 1,
                delay,
            )
            do_sleep(delay)
            attempt += 1


# ---------------------------------------------------------------------------
# 2. Error Formatting
# ---------------------------------------------------------------------------


@dataclass
class UserFriendlyError:
    """A structured error meant for the host UI.

    Attributes:
        message: Clear description for the user.
        suggestion: Actionable guidance.
        component: Originating subsystem (corpus, readiness, collab).
        error_code: Machine-readable identifier (e.g. "IMPT_005").
        technical_detail: Debugging info for logs only, never shown to users.
    """

    message: str
    suggestion: str
    component: str
    error_code: str
    technical_detail: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize for API responses (excludes technical_detail)."""
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "component": self.component,
            "error_code": self.error_code,
        }


class ErrorFormatter:
    """Convert internal exceptions to user-friendly messages.

    Every method returns a ``UserFriendlyError`` and never exposes
    internal paths or stack traces to the user.
    """

    def format_storage_error(self, error: Exception) -> UserFriendlyError:
        """Format an error raised while reading or writing the corpus file.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, component="corpus", code_prefix="STOR")

    def format_import_error(self, error: Exception, component: str = "corpus") -> UserFriendlyError:
        """Format an error raised while importing a corpus or package document.

        Args:
            error: The caught exception.
            component: Subsystem that received the document.

        Returns:
            User-friendly error with actionable suggestion.
        """
        formatted = self._format(error, component=component, code_prefix="IMPT")
        if isinstance(error, ValueError) and not isinstance(error, json.JSONDecodeError):
            formatted.message = "The training data document could not be read."
            formatted.suggestion = (
                "Select a training package or a corpus file exported by the "
                "trainer, then try again."
            )
        return formatted

    def format_analysis_error(self, error: Exception) -> UserFriendlyError:
        """Format an error raised while analyzing readiness.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, component="readiness", code_prefix="ANLY")

    # ------------------------------------------------------------------

    def _format(
        self,
        error: Exception,
        *,
        component: str,
        code_prefix: str,
    ) -> UserFriendlyError:
        message, suggestion, code_suffix = _classify_error(error)
        return UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component=component,
            error_code=f"{code_prefix}_{code_suffix}",
            technical_detail=repr(error),
        )


def _classify_error(error: Exception) -> tuple[str, str, str]:
    """Map an exception to (message, suggestion, code_suffix).

    Args:
        error: The caught exception.

    Returns:
        Tuple of user message, suggestion text, and error code suffix.
    """
    if isinstance(error, RetriesExhaustedError):
        return _classify_error(error.last_error)
    if isinstance(error, FileNotFoundError):
        return (
            "The training data file could not be found.",
            "Check that the data directory exists and is accessible.",
            "001",
        )
    if isinstance(error, PermissionError):
        return (
            "Permission denied when accessing the training data.",
            "Check file permissions and ensure the application has access.",
            "002",
        )
    if isinstance(error, TimeoutError):
        return (
            "The operation timed out.",
            "Try again. If the problem persists, check disk activity.",
            "003",
        )
    if isinstance(error, OSError):
        return (
            "The training data could not be written to disk.",
            "Check free disk space and try again.",
            "004",
        )
    if isinstance(error, json.JSONDecodeError):
        return (
            "The document contains invalid JSON.",
            "Export the data again from the trainer and retry.",
            "006",
        )
    if isinstance(error, (ValueError, ValidationError)):
        return (
            "Invalid input was provided.",
            "Check the input values and try again.",
            "005",
        )
    return (
        "An unexpected error occurred.",
        "If this keeps happening, please report the issue.",
        "999",
    )


# ---------------------------------------------------------------------------
# 3. Input Validation
# ---------------------------------------------------------------------------

_TRAVERSAL_PATTERN = re.compile(r"(\.\.[\\/]|[\\/]\.\.)")
_NULL_BYTE = re.compile(r"\x00")


class ValidationError(Exception):
    """Raised when input validation fails."""


class InputValidator:
    """Validate inputs at system boundaries.

    All methods raise ``ValidationError`` on failure.
    """

    def validate_file_path(
        self,
        path: str | Path,
        *,
        must_exist: bool = True,
        allowed_extensions: tuple[str, ...] | None = None,
        base_directory: Path | None = None,
    ) -> Path:
        """Validate a file path, preventing traversal attacks.

        Args:
            path: Raw path from configuration or user input.
            must_exist: Require the file to exist on disk.
            allowed_extensions: Restrict to these suffixes (e.g. (".json",)).
            base_directory: Confine the resolved path under this directory.

        Returns:
            Resolved, validated Path.

        Raises:
            ValidationError: On any validation failure.
        """
        raw = str(path)
        self._check_traversal(raw)
        resolved = Path(raw).resolve()

        if base_directory is not None:
            base = base_directory.resolve()
            if not _is_subpath(resolved, base):
                raise ValidationError("Path is outside the allowed directory.")

        if allowed_extensions is not None:
            if resolved.suffix.lower() not in {e.lower() for e in allowed_extensions}:
                allowed = ", ".join(allowed_extensions)
                raise ValidationError(f"File type not allowed. Accepted types: {allowed}")

        if must_exist and not resolved.exists():
            raise ValidationError("File does not exist.")

        return resolved

    def validate_json_document(self, path: str | Path) -> dict[str, Any]:
        """Read a JSON file whose top level must be an object.

        Args:
            path: Path to the ``.json`` file.

        Returns:
            The parsed document.

        Raises:
            ValidationError: When the file is not UTF-8, not JSON, or not
                a JSON object.
            OSError: When the file cannot be read.
        """
        validated_path = self.validate_file_path(
            path, must_exist=True, allowed_extensions=(".json",)
        )
        try:
            text = validated_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("File is not valid UTF-8 text.") from exc
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid JSON at line {exc.lineno}.") from exc
        if not isinstance(document, dict):
            raise ValidationError("Top level of the document is not a JSON object.")
        return document

    # ------------------------------------------------------------------

    @staticmethod
    def _check_traversal(raw: str) -> None:
        """Reject paths with traversal sequences or null bytes.

        Raises:
            ValidationError: On dangerous patterns.
        """
        if _NULL_BYTE.search(raw):
            raise ValidationError("Path contains null bytes.")
        if _TRAVERSAL_PATTERN.search(raw):
            raise ValidationError("Path traversal is not allowed.")


def _is_subpath(child: Path, parent: Path) -> bool:
    """Return True when *child* is equal to or nested inside *parent*."""
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False
