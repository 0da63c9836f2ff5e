"""
File-backed card storage, one JSON file per level.
"""

import json
import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import Config
from ..errors import CardStoreError, InputValidationError
from ..models import Card


logger = logging.getLogger(__name__)


class CardStore:
    """
    Manages the cards of every level.

    Each level lives in ``level_<n>.json`` as
    ``{level, cards, lastUpdated, totalCards}``.
    """

    def __init__(self, data_dir: str = None, levels=Config.LEVELS):
        """
        Initialize the CardStore.

        Args:
            data_dir: Directory for level files. Defaults to Config.DATA_DIR.
            levels: Valid level numbers
        """
        self.data_dir = Path(data_dir or Config.DATA_DIR).resolve()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.levels = tuple(levels)
        self._lock = threading.RLock()

    def initialize(self, seed_cards: Optional[Dict[int, List[Dict[str, Any]]]] = None) -> None:
        """
        Create missing level files.

        Args:
            seed_cards: Optional cards per level written into newly created files
        """
        for level in self.levels:
            path = self._level_path(level)
            if path.exists():
                continue
            cards = []
            if seed_cards and level in seed_cards:
                cards = [Card.from_dict({**card, 'level': level}) for card in seed_cards[level]]
            self._write_level(level, cards)
            logger.info(f"Created level file {path.name} with {len(cards)} cards")

    def validate_level(self, level: int) -> int:
        try:
            level = int(level)
        except (TypeError, ValueError):
            raise InputValidationError(f"Invalid level: {level!r}")
        if level not in self.levels:
            raise InputValidationError(
                f"Invalid level: {level}",
                details=f"Levels are {', '.join(str(l) for l in self.levels)}"
            )
        return level

    def list_cards(self, level: int) -> List[Card]:
        """Return the cards of a level in stored order."""
        level = self.validate_level(level)
        with self._lock:
            data = self._read_level(level)
        return [Card.from_dict({**card, 'level': card.get('level', level)}) for card in data['cards']]

    def get_card(self, card_id: int) -> Optional[Card]:
        """Find a card by id across all levels."""
        for level in self.levels:
            for card in self.list_cards(level):
                if card.id == card_id:
                    return card
        return None

    def get_level_info(self, level: int) -> Dict[str, Any]:
        level = self.validate_level(level)
        with self._lock:
            data = self._read_level(level)
        return {
            'level': level,
            'totalCards': len(data['cards']),
            'lastUpdated': data.get('lastUpdated')
        }

    def save_cards(self, level: int, cards: List[Dict[str, Any]]) -> List[Card]:
        """Replace all cards of a level."""
        level = self.validate_level(level)
        parsed = [self._parse(card, level) for card in cards]
        with self._lock:
            self._write_level(level, parsed)
        logger.info(f"Saved {len(parsed)} cards for level {level}")
        return parsed

    def add_cards(self, level: int, cards: List[Dict[str, Any]]) -> List[Card]:
        """
        Append uploaded cards to a level, assigning fresh ids.

        Returns:
            The newly added cards
        """
        level = self.validate_level(level)
        base_id = int(time.time() * 1000)

        with self._lock:
            existing = self.list_cards(level)
            used_ids = {card.id for level_no in self.levels for card in self.list_cards(level_no)}
            new_cards = []
            for index, card in enumerate(cards):
                if not isinstance(card, dict):
                    raise InputValidationError(f"Card must be an object, got {type(card).__name__}")
                card_id = base_id + index
                while card_id in used_ids:
                    card_id += len(cards)
                used_ids.add(card_id)
                new_cards.append(self._parse({**card, 'id': card_id}, level))
            self._write_level(level, existing + new_cards)

        logger.info(f"Added {len(new_cards)} cards to level {level}")
        return new_cards

    def delete_card(self, level: int, card_id: int) -> bool:
        """
        Remove a card from a level.

        Returns:
            True if a card was removed
        """
        level = self.validate_level(level)
        with self._lock:
            cards = self.list_cards(level)
            remaining = [card for card in cards if card.id != card_id]
            if len(remaining) == len(cards):
                return False
            self._write_level(level, remaining)
        logger.info(f"Deleted card {card_id} from level {level}")
        return True

    def export_backup(self) -> Dict[str, Any]:
        """Snapshot of every level, keyed ``level_<n>``."""
        backup = {}
        with self._lock:
            for level in self.levels:
                try:
                    backup[f"level_{level}"] = self._read_level(level)
                except CardStoreError:
                    backup[f"level_{level}"] = {'level': level, 'cards': []}
        backup['backupDate'] = datetime.now().isoformat()
        return backup

    def _parse(self, card: Dict[str, Any], level: int) -> Card:
        if not isinstance(card, dict):
            raise InputValidationError(f"Card must be an object, got {type(card).__name__}")
        try:
            return Card.from_dict({**card, 'level': level})
        except (TypeError, ValueError) as e:
            raise InputValidationError(f"Invalid card: {e}", context={'card': card})

    def _level_path(self, level: int) -> Path:
        return self.data_dir / f"level_{level}.json"

    def _read_level(self, level: int) -> Dict[str, Any]:
        path = self._level_path(level)
        if not path.exists():
            return {'level': level, 'cards': []}
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise CardStoreError(f"Failed to read cards data for level {level}", details=str(e))
        data.setdefault('cards', [])
        return data

    def _write_level(self, level: int, cards: List[Card]) -> None:
        data = {
            'level': level,
            'cards': [card.to_dict() for card in cards],
            'lastUpdated': datetime.now().isoformat(),
            'totalCards': len(cards)
        }
        path = self._level_path(level)
        tmp_path = path.with_suffix('.json.tmp')
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding='utf-8')
            tmp_path.replace(path)
        except OSError as e:
            raise CardStoreError(f"Failed to save cards data for level {level}", details=str(e))
