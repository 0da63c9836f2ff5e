"""
Persistent storage for generated audio.

Each entry is a JSON metadata file plus, when the download succeeded, an mp3
copy of the audio so later lookups do not depend on the remote service.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

import requests

from ..config import Config
from ..models import StoredAudio
from .loader import AudioLoader, AudioLoadError


logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,128}$')


def is_valid_key(text_key: str) -> bool:
    return bool(text_key) and bool(KEY_PATTERN.match(text_key))


class AudioStore:
    """
    Filesystem-backed stored-audio collaborator.

    Files live under ``audio_dir`` as ``<key>.json`` and ``<key>.mp3``.
    """

    def __init__(self, audio_dir: str = None, loader: Optional[AudioLoader] = None):
        self.audio_dir = Path(audio_dir or Config.AUDIO_DIR).resolve()
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        self.loader = loader or AudioLoader()

    def get_stored_audio(self, text_key: str) -> Optional[StoredAudio]:
        """
        Look up stored audio by key.

        Returns:
            StoredAudio if metadata exists, None otherwise
        """
        if not is_valid_key(text_key):
            return None

        meta_path = self.audio_dir / f"{text_key}.json"
        if not meta_path.exists():
            return None

        try:
            data = json.loads(meta_path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable audio metadata {meta_path.name}: {e}")
            return None

        local_file = data.get('localFile')
        local_path = None
        if local_file:
            candidate = self.audio_dir / local_file
            if candidate.is_file():
                local_path = str(candidate)
            else:
                local_file = None

        return StoredAudio(
            key=text_key,
            audio_url=data.get('audioUrl', ''),
            text=data.get('text', ''),
            local_file=local_file,
            local_path=local_path,
            created_at=data.get('createdAt')
        )

    def store_audio(self, text_key: str, locator: str, text: str) -> bool:
        """
        Persist audio metadata and try to keep a local copy of the mp3.

        Returns:
            True if the metadata was written, False otherwise
        """
        if not is_valid_key(text_key):
            logger.warning(f"Refusing to store audio under invalid key: {text_key!r}")
            return False

        local_file = None
        try:
            content = self.loader.load_bytes(locator)
            local_file = f"{text_key}.mp3"
            (self.audio_dir / local_file).write_bytes(content)
            logger.info(f"Audio file saved: {local_file}")
        except (AudioLoadError, OSError) as e:
            logger.warning(f"Failed to download audio for '{text}': {e}")
            local_file = None

        metadata = {
            'key': text_key,
            'audioUrl': locator,
            'localFile': local_file,
            'text': text,
            'createdAt': datetime.now().isoformat()
        }
        try:
            (self.audio_dir / f"{text_key}.json").write_text(
                json.dumps(metadata, ensure_ascii=False, indent=2), encoding='utf-8'
            )
        except OSError as e:
            logger.error(f"Failed to write audio metadata for '{text}': {e}")
            return False
        return True

    def file_path(self, filename: str) -> Optional[Path]:
        """Resolve a stored audio filename, rejecting anything outside the store."""
        path = (self.audio_dir / filename).resolve()
        if path.parent != self.audio_dir or not path.is_file():
            return None
        return path


class RemoteAudioStore:
    """Stored-audio collaborator backed by the web API of a running server."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = Config.HTTP_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_stored_audio(self, text_key: str) -> Optional[StoredAudio]:
        try:
            response = self.session.get(f"{self.base_url}/api/audio/{text_key}", timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Stored audio lookup failed for {text_key}: {e}")
            return None

        local_url = data.get('localUrl')
        return StoredAudio(
            key=text_key,
            audio_url=data.get('audioUrl', ''),
            text=data.get('text', ''),
            local_file=data.get('localFile'),
            local_path=f"{self.base_url}{local_url}" if local_url else None,
            created_at=data.get('createdAt')
        )

    def store_audio(self, text_key: str, locator: str, text: str) -> bool:
        try:
            response = self.session.post(
                f"{self.base_url}/api/audio/store",
                json={'key': text_key, 'audioUrl': locator, 'text': text},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Failed to store audio for '{text}': {e}")
            return False
        return True
