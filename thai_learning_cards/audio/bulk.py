"""
Bulk audio generation for a set of cards.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

from ..config import Config
from ..errors import ErrorHandler, ResolutionFailure
from ..models import Card
from .resolver import AudioSourceResolver


logger = logging.getLogger(__name__)


@dataclass
class BulkGenerationResult:
    """Counts from a bulk generation run."""
    success_count: int = 0
    fail_count: int = 0
    failed_texts: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Generated {self.success_count} audio files, {self.fail_count} failed"


def generate_bulk_audio(cards: List[Card], resolver: AudioSourceResolver,
                        language: str = Config.DEFAULT_LANGUAGE,
                        delay: float = Config.BULK_GENERATION_DELAY,
                        sleep: Callable[[float], None] = time.sleep,
                        error_handler: ErrorHandler = None) -> BulkGenerationResult:
    """
    Make sure headword and example audio exist for every card.

    Audio already cached or stored is counted as a success without contacting
    the TTS service. A pause between cards keeps the request rate down.

    Args:
        cards: Cards to process
        resolver: Resolver used for lookup and generation
        language: Language tag for all texts
        delay: Seconds to wait between cards
        sleep: Sleep function
        error_handler: Optional collector for per-text failures

    Returns:
        BulkGenerationResult with success and failure counts
    """
    result = BulkGenerationResult()

    for index, card in enumerate(cards):
        for text in (card.headword, card.example):
            if not text:
                continue
            locator = resolver.pregenerate(text, language)
            if locator:
                result.success_count += 1
            else:
                result.fail_count += 1
                result.failed_texts.append(text)
                if error_handler is not None:
                    error_handler.add_error(ResolutionFailure(
                        f"Audio generation failed for card {card.id}",
                        details=text,
                        context={'card_id': card.id}
                    ).processing_error)

        if index < len(cards) - 1:
            sleep(delay)

    logger.info(result.message)
    return result
