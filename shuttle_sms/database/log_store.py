"""
Send log: append-only record of every dispatch attempt.

The default backend is a single JSON array file rewritten on every append.
There is no locking, the dispatcher is expected to be the only writer.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
import json
import logging
import os

from pydantic import ValidationError

from shuttle_sms.core.config import settings
from shuttle_sms.core.models import DispatchResult

logger = logging.getLogger(__name__)


class LogStore(ABC):
    """Append-only store of DispatchResult entries"""

    def ensure_exists(self) -> None:
        """Create the empty store if it does not exist yet"""

    @abstractmethod
    def append(self, entry: DispatchResult) -> None:
        """Persist one entry; visible to read_all() as soon as this returns"""

    @abstractmethod
    def read_all(self) -> List[DispatchResult]:
        """All entries, most recent first"""

    def close(self) -> None:
        """Release connections held by the store"""


class JsonFileLogStore(LogStore):
    """JSON array file, read-modify-write on every append"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.LOG_FILE)

    def ensure_exists(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("[]", encoding="utf-8")
            logger.info(f"Created empty send log at {self.path}")

    def _load(self) -> list:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw or "[]")
        except (OSError, ValueError) as e:
            logger.warning(f"Send log {self.path} unreadable, treating as empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Send log {self.path} is not a JSON array, treating as empty")
            return []
        return data

    def append(self, entry: DispatchResult) -> None:
        logs = self._load()
        logs.append(entry.to_log_dict())
        # Escaped ASCII, fully encoded before the live file is touched
        data = json.dumps(logs, indent=2).encode("utf-8")

        tmp = self.path.with_name(f"{self.path.name}.tmp")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, self.path)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise

    def read_all(self) -> List[DispatchResult]:
        entries = []
        for item in self._load():
            try:
                entries.append(DispatchResult.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed send log entry: {e}")
        entries.reverse()
        return entries


def get_log_store(backend: str = settings.LOG_BACKEND) -> LogStore:
    """Build the send log selected by configuration"""
    key = (backend or "").strip().lower()
    if key == "json":
        return JsonFileLogStore(settings.LOG_FILE)
    if key == "sql":
        from shuttle_sms.database.sql_log_store import SqlLogStore
        return SqlLogStore(settings.LOG_DATABASE_URL)
    raise ValueError(f"Unknown log backend: {backend!r} (expected 'json' or 'sql')")
