# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Credential history storage.

Handles loading and saving the current and previous access tokens to a
single JSON file (tokens.json). The file is owned by one process; there is
no cross-process locking.
"""

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .error_handler import StorageError
from .failure_logger import CATEGORY_ACCESS_TOKEN
from .types import CredentialHistory

lib_logger = logging.getLogger("credential_keeper")


class ReadOutcome(str, Enum):
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"
    SUCCESS = "success"


@dataclass
class ReadResult:
    """Outcome of reading tokens.json, inspectable by callers and tests."""

    outcome: ReadOutcome
    history: Optional[CredentialHistory] = None
    error: Optional[StorageError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is ReadOutcome.SUCCESS


class CredentialStore:
    """
    Reads and writes the credential history file.

    Features:
    - Distinguishes a missing file from an unreadable one
    - Writes to a temp file first, then moves it into place
    - Restricts file permissions to the owner where supported
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.exists()

    def load(self) -> ReadResult:
        """
        Load the history file.

        Returns:
            ReadResult with outcome NOT_FOUND, PARSE_ERROR or SUCCESS
        """
        if not self.exists():
            return ReadResult(ReadOutcome.NOT_FOUND)

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            history = CredentialHistory.from_dict(data)
        except (OSError, json.JSONDecodeError, ValueError, TypeError) as e:
            error = StorageError(
                f"Failed to read credential history from '{self.file_path}': {e}",
                path=str(self.file_path),
            )
            return ReadResult(ReadOutcome.PARSE_ERROR, error=error)

        return ReadResult(ReadOutcome.SUCCESS, history=history)

    def read(self) -> Optional[CredentialHistory]:
        """
        Return the stored history, or None when the file is missing or broken.

        A broken file is logged, never raised.
        """
        result = self.load()
        if result.outcome is ReadOutcome.PARSE_ERROR:
            lib_logger.error(
                str(result.error), extra={"category": CATEGORY_ACCESS_TOKEN}
            )
        return result.history

    def write(self, history: CredentialHistory) -> None:
        """
        Serialize the full history and overwrite the file.

        Raises:
            StorageError: if the file could not be written
        """
        parent_dir = self.file_path.parent
        tmp_fd = None
        tmp_path = None
        try:
            parent_dir.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=parent_dir, prefix=".tmp_", suffix=".json", text=True
            )

            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                tmp_fd = None
                json.dump(history.to_dict(), f, indent=2)

            try:
                os.chmod(tmp_path, 0o600)
            except (OSError, AttributeError):
                pass

            shutil.move(tmp_path, self.file_path)
            tmp_path = None
            lib_logger.debug(f"Saved credential history to '{self.file_path}'.")

        except (OSError, TypeError, ValueError) as e:
            if tmp_fd is not None:
                try:
                    os.close(tmp_fd)
                except OSError:
                    pass
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StorageError(
                f"Failed to write credential history to '{self.file_path}': {e}",
                path=str(self.file_path),
            ) from e
