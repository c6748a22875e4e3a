import re
from typing import List, Optional
from synapse.models.chat import AudioReference
from synapse.models.chunk import StoredChunk
from synapse.core.retrieve.timecodes import parse_timestamp

TIMESTAMP_MARKER = re.compile(r"\[(\d{1,2}:\d{2}(?::\d{2})?)\]")

# Window assumed for a chunk that has a start time but no end time
DEFAULT_WINDOW_SECONDS = 300
DEFAULT_DURATION_SECONDS = 30

CONTEXT_BEFORE = 50
CONTEXT_AFTER = 100


def _containing_chunk(timestamp: int, chunks: List[StoredChunk]) -> Optional[StoredChunk]:
    for chunk in chunks:
        start = chunk.metadata.start_time
        if start is None:
            continue
        end = chunk.metadata.end_time or start + DEFAULT_WINDOW_SECONDS
        if start <= timestamp <= end:
            return chunk
    return None


def extract_audio_references(response_text: str, chunks: List[StoredChunk]) -> List[AudioReference]:
    """
    Links every [M:SS] / [H:MM:SS] marker in a generated answer to the first chunk
    whose audio window contains it. Markers outside every window are dropped.
    References come back in marker order.
    """
    references = []

    for match in TIMESTAMP_MARKER.finditer(response_text):
        timestamp = parse_timestamp(match.group(1))
        chunk = _containing_chunk(timestamp, chunks)
        if chunk is None:
            continue

        start_idx = max(0, match.start() - CONTEXT_BEFORE)
        end_idx = min(len(response_text), match.start() + CONTEXT_AFTER)

        if chunk.metadata.end_time:
            duration = chunk.metadata.end_time - chunk.metadata.start_time
        else:
            duration = DEFAULT_DURATION_SECONDS

        references.append(AudioReference(
            timestamp=timestamp,
            duration=duration,
            text=response_text[start_idx:end_idx].strip(),
            chunk_id=chunk.chunk_id
        ))

    return references
