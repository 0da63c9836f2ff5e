"""
Client for the soundoftext.com text-to-speech service.

Generation is a two step job: submit the text, then poll the job until it
reports a location for the rendered mp3.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import requests

from ..config import Config
from ..errors import GenerationError


logger = logging.getLogger(__name__)


class JobState(Enum):
    """States reported by the TTS job status endpoint."""
    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class JobStatus:
    """Status of a remote generation job."""
    state: JobState
    locator: Optional[str] = None


class SoundOfTextClient:
    """
    Submits and inspects soundoftext.com generation jobs.

    Any HTTP failure during submission raises GenerationError. Status checks
    that fail at the HTTP level are reported as pending so the caller's poll
    loop keeps going until its budget runs out.
    """

    def __init__(self, base_url: str = Config.TTS_API_URL,
                 voices: Dict[str, str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: float = Config.HTTP_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.voices = voices or dict(Config.TTS_VOICES)
        self.session = session or requests.Session()
        self.timeout = timeout

    def voice_for(self, language: str) -> str:
        """Map a language tag to the service's voice name."""
        return self.voices.get(language.split('-')[0], language)

    def submit_job(self, text: str, language: str) -> str:
        """
        Submit a generation job.

        Args:
            text: Text to render
            language: Language tag such as 'th'

        Returns:
            Job identifier

        Raises:
            GenerationError: If the service is unreachable or refuses the job
        """
        payload = {
            'engine': Config.TTS_ENGINE,
            'data': {
                'text': text,
                'voice': self.voice_for(language)
            }
        }
        try:
            response = self.session.post(
                f"{self.base_url}/sounds", json=payload, timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationError(f"TTS job submission failed: {e}", context={'text': text})

        if not result.get('success') or not result.get('id'):
            raise GenerationError(
                "TTS service refused the job",
                details=str(result.get('message', '')),
                context={'text': text}
            )

        logger.debug(f"Submitted TTS job {result['id']} for '{text}'")
        return result['id']

    def get_job_status(self, job_id: str) -> JobStatus:
        """Return the current status of a generation job."""
        try:
            response = self.session.get(f"{self.base_url}/sounds/{job_id}", timeout=self.timeout)
            if not response.ok:
                logger.debug(f"TTS status check for {job_id} returned HTTP {response.status_code}")
                return JobStatus(JobState.PENDING)
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"TTS status check for {job_id} failed: {e}")
            return JobStatus(JobState.PENDING)

        status = str(result.get('status', '')).lower()
        if status == 'done' and result.get('location'):
            return JobStatus(JobState.DONE, result['location'])
        if status == 'error':
            return JobStatus(JobState.ERROR)
        return JobStatus(JobState.PENDING)
