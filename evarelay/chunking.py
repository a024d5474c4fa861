"""Fence-aware message chunking.

Splits generated text into pieces that fit a transport's hard length limit
(Discord: 2000 characters per message).

Splitting priority:
1. By code block boundaries (``` markers): fenced blocks become their own segments
2. By paragraph (double newline)
3. By line (single newline)
4. By word (space)
5. By character (hard split)

A fenced block that is too long is split on its content and every piece is
re-wrapped in fences, so each chunk renders as a complete code block.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

FENCE = "```"
DEFAULT_MAX_LENGTH = 2000

# Priority order matters: the first separator found wins.
SEPARATORS = ("\n\n", "\n", " ")


@dataclass(frozen=True)
class Segment:
    """A run of text entirely outside or entirely inside a code fence.

    For fenced segments ``text`` is the content between the delimiters.
    ``terminated`` is False for a trailing block whose closing fence is missing.
    """

    text: str
    fenced: bool = False
    terminated: bool = True

    @property
    def wrapped(self) -> str:
        """The segment as sent: fenced content is always closed."""
        if self.fenced:
            return f"{FENCE}{self.text}{FENCE}"
        return self.text

    @property
    def source(self) -> str:
        """The segment exactly as it appeared in the input."""
        if not self.fenced:
            return self.text
        return f"{FENCE}{self.text}{FENCE if self.terminated else ''}"


@dataclass(frozen=True)
class Chunk:
    """One deliverable piece of a message.

    ``text`` is what gets sent. ``body`` is the slice of the input this chunk
    accounts for, so joining every body in order gives back the input.
    ``fenced`` marks chunks whose text is a complete code block.
    """

    text: str
    body: str
    fenced: bool = False
    segment: int = 0


def split_segments(text: str | None) -> list[Segment]:
    """Partition text into alternating plain and fenced segments.

    Empty plain runs are dropped; fenced runs are kept even when empty.
    An odd number of fences leaves the last block open to end of text.
    """
    if not text:
        return []

    parts = text.split(FENCE)
    # An even part count means the final fence was never closed.
    open_index = len(parts) - 1 if len(parts) % 2 == 0 else -1

    segments: list[Segment] = []
    for i, part in enumerate(parts):
        if i % 2 == 1:
            segments.append(Segment(part, fenced=True, terminated=i != open_index))
        elif part:
            segments.append(Segment(part))
    return segments


def _find_cut(text: str, limit: int) -> int:
    """Return the end of the first prefix to carve off ``text``.

    The separator is kept in the prefix and the prefix never exceeds limit.
    """
    for sep in SEPARATORS:
        idx = text.rfind(sep, 0, limit)
        if idx != -1:
            return idx + len(sep)
    return limit


def carve(text: str, limit: int) -> Iterator[str]:
    """Yield consecutive pieces of ``text``, each at most ``limit`` long."""
    remaining = text
    while len(remaining) > limit:
        cut = _find_cut(remaining, limit)
        yield remaining[:cut]
        remaining = remaining[cut:]
    if remaining:
        yield remaining


def _chunk_segment(segment: Segment, index: int, max_len: int) -> Iterator[Chunk]:
    wrapped = segment.wrapped
    if len(wrapped) <= max_len:
        yield Chunk(wrapped, segment.source, segment.fenced, index)
        return

    budget = max_len - 2 * len(FENCE)
    if not segment.fenced or budget < 1:
        # Plain text, or no room for two fences plus content.
        for piece in carve(segment.source, max_len):
            yield Chunk(piece, piece, False, index)
        return

    pieces = list(carve(segment.text, budget))
    last = len(pieces) - 1
    for i, piece in enumerate(pieces):
        body = piece
        if i == 0:
            body = FENCE + body
        if i == last and segment.terminated:
            body = body + FENCE
        yield Chunk(f"{FENCE}{piece}{FENCE}", body, True, index)


def chunk_text(text: str | None, max_len: int = DEFAULT_MAX_LENGTH) -> list[Chunk]:
    """Split text into ordered chunks with segment metadata.

    Args:
        text: The message text to split. Empty or None yields no chunks.
        max_len: Maximum characters per chunk.

    Returns:
        Chunks in delivery order, each at most max_len characters.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be positive, got {max_len}")

    chunks: list[Chunk] = []
    for index, segment in enumerate(split_segments(text)):
        chunks.extend(_chunk_segment(segment, index, max_len))
    return chunks


def split_message(text: str | None, max_len: int = DEFAULT_MAX_LENGTH) -> list[str]:
    """Split a long message into chunks within the character limit.

    Args:
        text: The message text to split.
        max_len: Maximum characters per chunk.

    Returns:
        List of message chunks, each within max_len characters.
        Empty or missing text gives an empty list.
    """
    return [chunk.text for chunk in chunk_text(text, max_len)]


def reassemble(chunks: Iterable[Chunk]) -> str:
    """Rebuild the original text from chunks produced by :func:`chunk_text`."""
    return "".join(chunk.body for chunk in chunks)
