"""
In-process cache of resolved audio locators.
"""

import hashlib
import threading
from typing import Dict, Optional, Tuple


def audio_key(text: str, language: str) -> str:
    """
    Stable storage key for a piece of text in a language.

    Args:
        text: Text that is spoken
        language: Language tag such as 'th'

    Returns:
        MD5 hex digest usable as a filename
    """
    return hashlib.md5(f"{text}_{language}".encode('utf-8')).hexdigest()


class AudioCache:
    """
    Maps (text, language) to a resolved locator.

    Entries are added on the first successful resolution and are never evicted
    for the lifetime of the cache.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def get(self, text: str, language: str) -> Optional[str]:
        with self._lock:
            return self._entries.get((text, language))

    def set(self, text: str, language: str, locator: str) -> None:
        with self._lock:
            self._entries[(text, language)] = locator
