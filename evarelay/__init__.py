"""evarelay - relays Discord messages to an AI worker and chunks its replies."""

from evarelay.chunking import Chunk, Segment, chunk_text, reassemble, split_message, split_segments

__version__ = "0.1.0"

__all__ = [
    "Chunk",
    "Segment",
    "chunk_text",
    "reassemble",
    "split_message",
    "split_segments",
]
