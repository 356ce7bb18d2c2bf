from __future__ import annotations

import codecs
from collections.abc import AsyncIterable, AsyncIterator


class FrameDecoder:
    """Splits a chunked byte/text stream into newline-delimited frames.

    Chunks can end anywhere, including mid-frame or mid UTF-8 sequence; the
    unfinished tail is held until the next `feed`. `\\r\\n` and `\\n` both
    terminate a frame. Call `flush` once the stream ends to get the tail.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pieces: list[str] = []

    @property
    def pending(self) -> str:
        return "".join(self._pieces)

    def feed(self, chunk: bytes | str) -> list[str]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []
        if "\n" not in chunk:
            self._pieces.append(chunk)
            return []

        # Held pieces join the first line of the new chunk.
        first, *complete, rest = chunk.split("\n")
        complete.insert(0, "".join(self._pieces) + first)
        self._pieces = [rest] if rest else []
        return [line[:-1] if line.endswith("\r") else line for line in complete]

    def flush(self) -> str | None:
        tail = "".join(self._pieces) + self._decoder.decode(b"", final=True)
        self._pieces = []
        if tail.endswith("\r"):
            tail = tail[:-1]
        return tail or None


async def aiter_frames(
    chunks: AsyncIterable[bytes | str], decoder: FrameDecoder | None = None
) -> AsyncIterator[str]:
    """Yield complete frames from `chunks` as soon as each is available."""
    decoder = decoder or FrameDecoder()
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
    tail = decoder.flush()
    if tail is not None:
        yield tail
