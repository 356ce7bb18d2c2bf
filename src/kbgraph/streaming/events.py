from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from pydantic import ValidationError

from kbgraph.models import Entity, Relationship

DATA_PREFIX = "data: "


class EventKind(str, Enum):
    entities = "entities"
    relationships = "relationships"
    complete = "complete"


@dataclass(frozen=True, slots=True)
class StreamEvent:
    kind: EventKind
    records: list[Entity] | list[Relationship] = field(default_factory=list)
    # One message per record of the frame that failed validation
    rejected: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Ignored:
    """Frame carries nothing to apply (no prefix, blank, or unknown type)."""

    reason: str
    event_type: str | None = None


@dataclass(frozen=True, slots=True)
class ParseFailure:
    error: str
    payload: str


FrameOutcome = Union[StreamEvent, Ignored, ParseFailure]


def extract_payload(frame: str) -> str | None:
    if not frame.strip() or not frame.startswith(DATA_PREFIX):
        return None
    return frame[len(DATA_PREFIX):].strip() or None


def classify_frame(frame: str) -> FrameOutcome:
    """Turn one decoded frame into an outcome. Never raises on bad input."""
    payload = extract_payload(frame)
    if payload is None:
        return Ignored(reason="no event payload")

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        return ParseFailure(error=f"invalid JSON: {e}", payload=payload)
    if not isinstance(data, dict):
        return ParseFailure(error=f"expected a JSON object, got {type(data).__name__}", payload=payload)

    event_type = data.get("type")
    if event_type == EventKind.complete.value:
        return StreamEvent(kind=EventKind.complete)

    if event_type == EventKind.entities.value:
        model = Entity
    elif event_type == EventKind.relationships.value:
        model = Relationship
    else:
        return Ignored(
            reason="unrecognized event type",
            event_type=event_type if isinstance(event_type, str) else repr(event_type),
        )

    records = data.get("data")
    if not isinstance(records, list):
        return ParseFailure(error=f"'{event_type}' event without a data list", payload=payload)
    valid = []
    rejected = []
    for i, raw in enumerate(records):
        try:
            valid.append(model.model_validate(raw))
        except ValidationError as e:
            rid = raw.get("id") if isinstance(raw, dict) else None
            rejected.append(f"record {i} (id={rid!r}): {e.error_count()} validation error(s)")
    return StreamEvent(kind=EventKind(event_type), records=valid, rejected=rejected)
