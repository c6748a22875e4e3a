from typing import List
from synapse.models.chunk import StoredChunk
from synapse.core.retrieve.timecodes import format_timestamp

class ContextBuilder:
    """
    Assembles retrieved chunks into the excerpt block of the chat prompt.
    Chunks keep their retrieval order and are labelled 1..n.
    """

    @staticmethod
    def label(position: int, chunk: StoredChunk, include_timestamps: bool) -> str:
        start_time = chunk.metadata.start_time
        if include_timestamps and start_time is not None:
            end_time = chunk.metadata.end_time
            end = format_timestamp(end_time) if end_time else "end"
            return f"[Chunk {position} - Audio {format_timestamp(start_time)} to {end}]"
        return f"[Chunk {position}]"

    @classmethod
    def build(cls, chunks: List[StoredChunk], include_timestamps: bool = False) -> str:
        parts = [
            f"{cls.label(i, chunk, include_timestamps)}:\n{chunk.content}"
            for i, chunk in enumerate(chunks, start=1)
        ]
        return "\n\n".join(parts)
