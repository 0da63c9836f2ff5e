"""
Study progress per level, expiring after a fixed time.
"""

import json
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List

from ..config import Config
from ..errors import CardStoreError


logger = logging.getLogger(__name__)


class ProgressStore:
    """
    Remembers which cards of a level were completed.

    Progress for a level is discarded once it is older than ``ttl_hours``.
    The file layout is ``{"<level>": {"completed": [ids], "timestamp": iso}}``.
    """

    def __init__(self, path: str = None, ttl_hours: int = Config.PROGRESS_TTL_HOURS,
                 clock: Callable[[], datetime] = datetime.now):
        self.path = Path(path or Path(Config.DATA_DIR) / "progress.json")
        self.ttl = timedelta(hours=ttl_hours)
        self.clock = clock
        self._lock = threading.Lock()

    def get_progress(self, level: int) -> List[int]:
        """Completed card ids for a level, empty if none or expired."""
        with self._lock:
            data = self._load()
            entry = data.get(str(level))
            if not entry:
                return []
            if self._is_expired(entry):
                logger.info(f"Progress for level {level} expired")
                del data[str(level)]
                self._save(data)
                return []
            return list(entry.get('completed', []))

    def mark_completed(self, level: int, card_id: int) -> List[int]:
        """Add a card to the completed set and refresh the timestamp."""
        with self._lock:
            data = self._load()
            entry = data.get(str(level))
            completed = [] if not entry or self._is_expired(entry) else list(entry.get('completed', []))
            if card_id not in completed:
                completed.append(card_id)
            data[str(level)] = {'completed': completed, 'timestamp': self.clock().isoformat()}
            self._save(data)
            return completed

    def reset(self, level: int = None) -> None:
        """Clear one level, or all levels when level is None."""
        with self._lock:
            data = {} if level is None else self._load()
            data.pop(str(level), None)
            self._save(data)

    def _is_expired(self, entry: Dict) -> bool:
        try:
            timestamp = datetime.fromisoformat(entry['timestamp'])
        except (KeyError, TypeError, ValueError):
            return True
        return self.clock() - timestamp > self.ttl

    def _load(self) -> Dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Progress file unreadable, starting fresh: {e}")
            return {}

    def _save(self, data: Dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding='utf-8')
        except OSError as e:
            raise CardStoreError("Failed to save progress", details=str(e))
