"""
services/drafts.py

Optional draft autosave for in-progress sessions.

Disabled by default: without a draft store a reload forfeits unsaved
answers. When enabled, the session saves on every mutation and every
``interval_seconds`` timer ticks, and discards the draft once submitted.
"""

import json
import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class DraftPolicy:
    """
    When drafts are written.

    Attributes:
        enabled:          Off by default; a reload then starts from scratch.
        interval_seconds: Timer ticks between periodic saves.
    """

    enabled: bool = False
    interval_seconds: int = 30


class DraftStore(Protocol):
    """Key-value storage for draft dicts. Values must be JSON serialisable."""

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, key: str, draft: Dict[str, Any]) -> None:
        ...

    def discard(self, key: str) -> None:
        ...


class MemoryDraftStore:
    """Process-local drafts. load() and save() work on JSON copies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drafts: Dict[str, Dict[str, Any]] = {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            draft = self._drafts.get(key)
            return json.loads(json.dumps(draft)) if draft is not None else None

    def save(self, key: str, draft: Dict[str, Any]) -> None:
        with self._lock:
            self._drafts[key] = json.loads(json.dumps(draft))

    def discard(self, key: str) -> None:
        with self._lock:
            self._drafts.pop(key, None)


class JsonDraftStore:
    """One JSON file per draft key under ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Draft {path.name} could not be read, ignoring: {e}")
            return None

    def save(self, key: str, draft: Dict[str, Any]) -> None:
        """
        Write ``draft`` atomically (temp file, then rename).

        Raises:
            OSError: the directory is not writable.
        """
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(draft, f, ensure_ascii=False, indent=2)
        tmp.replace(path)

    def discard(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
