"""Incremental ingestion of a streamed knowledge graph.

- `frames`: newline-delimited frame decoding over chunked reads
- `events`: classification of a frame into an event, ignorable, or parse failure
- `coordinator`: the pull loop that accumulates entities and relationships
"""

from .coordinator import GraphStreamCoordinator, StreamState
from .events import EventKind, FrameOutcome, Ignored, ParseFailure, StreamEvent, classify_frame
from .frames import FrameDecoder, aiter_frames

__all__ = [
    "GraphStreamCoordinator",
    "StreamState",
    "EventKind",
    "FrameOutcome",
    "Ignored",
    "ParseFailure",
    "StreamEvent",
    "classify_frame",
    "FrameDecoder",
    "aiter_frames",
]
