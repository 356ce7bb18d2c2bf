from __future__ import annotations

import json

import httpx
import pytest

from kbgraph.client import KnowledgeGraphClient

BASE_URL = "http://kb.test"


def _entity(id: int, **overrides) -> dict:
    rec = {
        "id": id,
        "knowledge_base_id": 1,
        "name": f"entity-{id}",
        "description": f"description of entity {id}",
        "meta": {"source": "doc.md"},
        "entity_type": "original",
        "synopsis_info": None,
    }
    rec.update(overrides)
    return rec


def _relationship(id: int, source: int = 1, target: int = 2, **overrides) -> dict:
    rec = {
        "id": id,
        "knowledge_base_id": 1,
        "source_entity_id": source,
        "target_entity_id": target,
        "description": f"{source} relates to {target}",
        "last_modified_at": "2024-05-01T12:00:00",
        "meta": {},
        "weight": 1,
    }
    rec.update(overrides)
    return rec


def _frame(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n"


@pytest.fixture
def entity_record():
    return _entity


@pytest.fixture
def relationship_record():
    return _relationship


@pytest.fixture
def frame():
    return _frame


@pytest.fixture
def make_client():
    """Build a client whose requests are answered by `handler`."""

    def _make(handler) -> KnowledgeGraphClient:
        return KnowledgeGraphClient(
            base_url=BASE_URL,
            api_key="test-key",
            session_cookie="",
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def chunked():
    """Response body that arrives as the given separate network reads."""

    def _chunked(*chunks: str | bytes):
        async def body():
            for c in chunks:
                yield c.encode("utf-8") if isinstance(c, str) else c

        return body()

    return _chunked
