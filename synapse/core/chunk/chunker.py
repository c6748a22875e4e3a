import bisect
from typing import List, Optional, Sequence, Tuple
from synapse.models.chunk import ContentChunk, ChunkMetadata
from synapse.models.document import WordSegment
from synapse.config.settings import settings

class Chunker:
    """
    Splits extracted text into overlapping chunks.
    - Cuts at most max_chunk_size chars, preferring the latest sentence end in range.
    - Drops slices shorter than min_chunk_size after trimming (cursor still advances).
    - Consecutive chunks overlap by `overlap` chars.
    - Offsets are the untrimmed slice bounds; content is the trimmed slice.
    """

    def __init__(self,
                 max_chunk_size: Optional[int] = None,
                 min_chunk_size: Optional[int] = None,
                 overlap: Optional[int] = None):
        self.config = settings.chunking
        self.max_chunk_size = max_chunk_size or self.config.max_chunk_size
        self.min_chunk_size = min_chunk_size or self.config.min_chunk_size
        self.overlap = overlap if overlap is not None else self.config.overlap
        self.sentence_enders = self.config.sentence_enders

    def chunk(self, text: str, timestamp_segments: Optional[Sequence[WordSegment]] = None) -> List[ContentChunk]:
        chunks = []
        if not text or not text.strip():
            return chunks

        text_len = len(text)
        cursor = 0
        chunk_index = 0

        while cursor < text_len:
            chunk_end = min(cursor + self.max_chunk_size, text_len)
            if chunk_end < text_len:
                chunk_end = self._find_sentence_boundary(text, cursor, chunk_end)

            content = text[cursor:chunk_end].strip()
            if len(content) >= self.min_chunk_size:
                start_time, end_time = None, None
                if timestamp_segments:
                    start_time, end_time = self._time_range(timestamp_segments, cursor, chunk_end)

                chunks.append(ContentChunk(
                    index=chunk_index,
                    content=content,
                    metadata=ChunkMetadata(
                        start_offset=cursor,
                        end_offset=chunk_end,
                        start_time=start_time,
                        end_time=end_time
                    )
                ))
                chunk_index += 1

            # The tail has been covered; stepping back by the overlap would only re-emit it
            if chunk_end >= text_len:
                break
            cursor = max(cursor + 1, chunk_end - self.overlap)

        return chunks

    def _find_sentence_boundary(self, text: str, cursor: int, candidate_end: int) -> int:
        """Latest sentence end in [cursor + min_chunk_size, candidate_end], or the candidate itself."""
        i = candidate_end
        while i >= cursor + self.min_chunk_size:
            for ender in self.sentence_enders:
                boundary = i + len(ender)
                if boundary <= candidate_end and text.startswith(ender, i):
                    return boundary
            i -= 1
        return candidate_end

    def _time_range(self,
                    segments: Sequence[WordSegment],
                    start_offset: int,
                    end_offset: int) -> Tuple[Optional[float], Optional[float]]:
        """
        Approximates the audio window of a character range.
        Segment offsets are rebuilt by assuming one separator char between words,
        so drift against the real transcript spacing is expected.
        """
        start_time = None
        end_time = None
        offset = 0

        for segment in segments:
            segment_end = offset + len(segment.text)

            if offset <= start_offset < segment_end:
                start_time = segment.start

            if offset < end_offset <= segment_end:
                end_time = segment.end
                break

            if segment_end <= end_offset:
                end_time = segment.end

            offset = segment_end + 1

        if start_time is not None and end_time is not None and end_time < start_time:
            end_time = start_time
        return start_time, end_time


def assign_page_numbers(chunks: List[ContentChunk], page_offsets: Sequence[int]) -> List[ContentChunk]:
    """Sets page_number to the page whose text contains each chunk's start offset."""
    if not page_offsets:
        return chunks
    for chunk in chunks:
        page_idx = bisect.bisect_right(page_offsets, chunk.metadata.start_offset)
        chunk.metadata.page_number = max(page_idx, 1)
    return chunks
