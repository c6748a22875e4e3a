import logging
from enum import Enum
from typing import Callable, Dict, Optional

from synapse.core.errors import UnsupportedFormatError
from synapse.core.parse.pdf_parser import PDFParser
from synapse.core.parse.text_cleaner import clean_markdown, clean_plain_text
from synapse.core.transcribe.deepgram_client import DeepgramClient, Transcript
from synapse.models.document import ExtractedText, ExtractionMetadata
from synapse.storage.base import BlobStore

logger = logging.getLogger(__name__)

class FileKind(str, Enum):
    pdf = "pdf"
    audio = "audio"
    markdown = "markdown"
    text = "text"

def file_kind_for(mime_type: str) -> FileKind:
    """Maps a declared MIME type onto the supported source kinds."""
    if mime_type == "application/pdf":
        return FileKind.pdf
    if mime_type.startswith("audio/"):
        return FileKind.audio
    if mime_type == "text/markdown":
        return FileKind.markdown
    if mime_type == "text/plain":
        return FileKind.text
    raise UnsupportedFormatError(mime_type)

def extract_markdown(data: bytes) -> ExtractedText:
    return ExtractedText(content=clean_markdown(data.decode("utf-8", errors="replace")))

def extract_plain_text(data: bytes) -> ExtractedText:
    return ExtractedText(content=clean_plain_text(data.decode("utf-8", errors="replace")))

def extract_audio(transcript: Transcript, duration: float) -> ExtractedText:
    return ExtractedText(
        content=transcript.transcript,
        metadata=ExtractionMetadata(duration=duration, timestamps=transcript.words)
    )

class TextExtractor:
    """
    Turns a stored blob into plain text plus extraction metadata.
    Byte-based kinds go through a single dispatch table; audio is transcribed from its URL.
    """

    def __init__(self, blob_store: BlobStore, transcriber: Optional[DeepgramClient] = None):
        self.blob_store = blob_store
        self._transcriber = transcriber
        self.pdf_parser = PDFParser()
        self._byte_extractors: Dict[FileKind, Callable[[bytes], ExtractedText]] = {
            FileKind.pdf: self.pdf_parser.parse,
            FileKind.markdown: extract_markdown,
            FileKind.text: extract_plain_text,
        }

    @property
    def transcriber(self) -> DeepgramClient:
        # Built lazily so text-only deployments need no Deepgram credentials
        if self._transcriber is None:
            self._transcriber = DeepgramClient()
        return self._transcriber

    def extract(self,
                mime_type: str,
                storage_id: str,
                url: str,
                audio_duration: Optional[float] = None) -> ExtractedText:
        kind = file_kind_for(mime_type)
        logger.info(f"Extracting {kind.value} content from {storage_id}")

        if kind == FileKind.audio:
            transcript = self.transcriber.transcribe(url, mime_type=mime_type)
            return extract_audio(transcript, audio_duration or 0)

        data = self.blob_store.read(storage_id)
        return self._byte_extractors[kind](data)
