import logging
from typing import Any, Dict
from urllib.parse import unquote, urlparse

import httpx
from pydantic import BaseModel

from synapse.config.settings import settings
from synapse.core.errors import TranscriptionError
from synapse.models.document import WordSegment

logger = logging.getLogger(__name__)

class Transcript(BaseModel):
    transcript: str
    words: list[WordSegment]

class DeepgramClient:
    """
    Deepgram pre-recorded transcription over plain HTTP.
    Requests word timestamps with diarization, punctuation and paragraphing.
    Remote URLs are handed to Deepgram; file:// URLs are uploaded as the request body.
    """

    def __init__(self):
        self.api_key = settings.deepgram_api_key
        self.config = settings.transcription
        self.listen_url = f"{self.config.base_url.rstrip('/')}/listen"
        self.params = {
            "model": self.config.model,
            "smart_format": "true",
            "punctuate": "true",
            "paragraphs": "true",
            "utterances": "true",
            "diarize": "true",
            "language": self.config.language,
        }

    def transcribe(self, audio_url: str, mime_type: str = "audio/mpeg") -> Transcript:
        if not self.api_key:
            logger.warning("DEEPGRAM_API_KEY is not set. Transcription calls will fail.")

        headers = {"Authorization": f"Token {self.api_key}"}
        try:
            with httpx.Client(timeout=self.config.timeout) as client:
                parsed = urlparse(audio_url)
                if parsed.scheme == "file":
                    with open(unquote(parsed.path), "rb") as f:
                        headers["Content-Type"] = mime_type
                        response = client.post(self.listen_url, params=self.params, headers=headers, content=f.read())
                else:
                    response = client.post(self.listen_url, params=self.params, headers=headers, json={"url": audio_url})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, OSError, ValueError) as e:
            raise TranscriptionError(f"Failed to transcribe audio: {e}") from e

        return self._parse_response(data)

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> Transcript:
        try:
            alternative = data["results"]["channels"][0]["alternatives"][0]
        except (KeyError, IndexError, TypeError):
            alternative = None
        if not alternative:
            raise TranscriptionError("No transcription results found")

        words = [
            WordSegment(
                text=w.get("word") or "",
                start=w.get("start") or 0,
                end=w.get("end") or 0
            )
            for w in alternative.get("words") or []
        ]
        return Transcript(transcript=alternative.get("transcript") or "", words=words)
