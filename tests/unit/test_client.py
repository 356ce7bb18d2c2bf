"""Unit tests for KnowledgeGraphClient one-shot endpoints."""

import json

import httpx
import pytest

from kbgraph.errors import GraphAPIError, ResponseValidationError
from kbgraph.models import (
    CreateSynopsisEntityParams,
    EntityType,
    GraphSearchParams,
    KnowledgeGraphRetrievalConfig,
    MetadataFilter,
    RetrievalConfig,
    RetrieveKnowledgeGraphParams,
    UpdateEntityParams,
    UpdateRelationshipParams,
)

GRAPH = "/api/v1/admin/knowledge_bases/7/graph"


class Recorder:
    """MockTransport handler that records requests and replies with `payload`."""

    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self):
        return json.loads(self.last.content)


@pytest.mark.asyncio
async def test_get_entity(make_client, entity_record):
    rec = Recorder(entity_record(42))
    async with make_client(rec) as client:
        entity = await client.get_entity(7, 42)

    assert entity.id == 42
    assert entity.entity_type is EntityType.original
    assert rec.last.method == "GET"
    assert rec.last.url.path == f"{GRAPH}/entities/42"
    assert rec.last.headers["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_search_entity_sends_query_and_top_k(make_client, entity_record):
    rec = Recorder([entity_record(1), entity_record(2)])
    async with make_client(rec) as client:
        entities = await client.search_entity(7, "rivers", top_k=2)

    assert [e.id for e in entities] == [1, 2]
    assert rec.last.url.path == f"{GRAPH}/entities/search"
    assert rec.last.url.params["query"] == "rivers"
    assert rec.last.url.params["top_k"] == "2"


@pytest.mark.asyncio
async def test_search_entity_default_top_k(make_client):
    rec = Recorder([])
    async with make_client(rec) as client:
        assert await client.search_entity(7, "x") == []

    assert rec.last.url.params["top_k"] == "10"


@pytest.mark.asyncio
async def test_update_entity_sends_nulls_for_unchanged_fields(make_client, entity_record):
    rec = Recorder(entity_record(3, name="renamed"))
    async with make_client(rec) as client:
        entity = await client.update_entity(7, 3, UpdateEntityParams(name="renamed"))

    assert entity.name == "renamed"
    assert rec.last.method == "PUT"
    assert rec.last.url.path == f"{GRAPH}/entities/3"
    assert rec.last.headers["Content-Type"] == "application/json"
    assert rec.last_json == {"name": "renamed", "description": None, "meta": None}


@pytest.mark.asyncio
async def test_create_synopsis_entity(make_client, entity_record):
    created = entity_record(
        9, entity_type="synopsis", synopsis_info={"entities": [1, 2], "topic": "water"}
    )
    rec = Recorder(created)
    params = CreateSynopsisEntityParams(
        name="Water", description="all about water", meta={"k": "v"}, topic="water", entities=[1, 2]
    )
    async with make_client(rec) as client:
        entity = await client.create_synopsis_entity(7, params)

    assert entity.entity_type is EntityType.synopsis
    assert entity.synopsis_info.topic == "water"
    assert rec.last.method == "POST"
    assert rec.last.url.path == f"{GRAPH}/entities/synopsis"
    assert rec.last_json == {
        "name": "Water",
        "description": "all about water",
        "meta": {"k": "v"},
        "topic": "water",
        "entities": [1, 2],
    }


@pytest.mark.asyncio
async def test_get_entity_subgraph(make_client, entity_record, relationship_record):
    rec = Recorder({"entities": [entity_record(1), entity_record(2)], "relationships": [relationship_record(5)]})
    async with make_client(rec) as client:
        graph = await client.get_entity_subgraph(7, 1)

    assert rec.last.url.path == f"{GRAPH}/entities/1/subgraph"
    assert len(graph.entities) == 2
    assert graph.relationships[0].last_modified_at.year == 2024


@pytest.mark.asyncio
async def test_search_omits_unset_options(make_client):
    rec = Recorder({"entities": [], "relationships": []})
    async with make_client(rec) as client:
        graph = await client.search(7, GraphSearchParams(query="who", depth=2))

    assert graph.entities == [] and graph.relationships == []
    assert rec.last.url.path == f"{GRAPH}/search"
    assert rec.last_json == {"query": "who", "depth": 2}


@pytest.mark.asyncio
async def test_get_entire_knowledge_graph(make_client, entity_record):
    rec = Recorder({"entities": [entity_record(1)], "relationships": []})
    params = RetrieveKnowledgeGraphParams(
        query="q",
        llm_id=4,
        retrieval_config=RetrievalConfig(
            knowledge_graph=KnowledgeGraphRetrievalConfig(
                depth=2, metadata_filter=MetadataFilter(enabled=True, filters={"lang": "en"})
            )
        ),
    )
    async with make_client(rec) as client:
        graph = await client.get_entire_knowledge_graph(7, params)

    assert [e.id for e in graph.entities] == [1]
    assert rec.last.url.path == f"{GRAPH}/entire_graph"
    assert rec.last_json == {
        "query": "q",
        "llm_id": 4,
        "retrieval_config": {
            "knowledge_graph": {"depth": 2, "metadata_filter": {"enabled": True, "filters": {"lang": "en"}}}
        },
    }


@pytest.mark.asyncio
async def test_get_and_update_relationship(make_client, relationship_record):
    rec = Recorder(relationship_record(8, 1, 2, weight=0.25))
    async with make_client(rec) as client:
        got = await client.get_relationship(7, 8)
        updated = await client.update_relationship(7, 8, UpdateRelationshipParams(weight=0.25))

    assert got.weight == 0.25
    assert updated.id == 8
    assert rec.requests[0].url.path == f"{GRAPH}/relationships/8"
    assert rec.last.method == "PUT"
    assert rec.last_json == {"description": None, "meta": None, "weight": 0.25}


@pytest.mark.asyncio
async def test_error_status_raises_with_detail(make_client):
    rec = Recorder({"detail": "Entity not found"}, status_code=404)
    async with make_client(rec) as client:
        with pytest.raises(GraphAPIError) as exc_info:
            await client.get_entity(7, 404)

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Entity not found"
    assert len(rec.requests) == 1


@pytest.mark.asyncio
async def test_error_status_without_json_uses_reason(make_client):
    def handler(request):
        return httpx.Response(503, text="upstream down")

    async with make_client(handler) as client:
        with pytest.raises(GraphAPIError, match="503 Service Unavailable"):
            await client.get_relationship(7, 1)


@pytest.mark.asyncio
async def test_schema_mismatch_raises_validation_error(make_client):
    rec = Recorder({"id": 1, "name": "missing fields"})
    async with make_client(rec) as client:
        with pytest.raises(ResponseValidationError):
            await client.get_entity(7, 1)


@pytest.mark.asyncio
async def test_non_json_body_raises_validation_error(make_client):
    def handler(request):
        return httpx.Response(200, text="<html>login</html>")

    async with make_client(handler) as client:
        with pytest.raises(ResponseValidationError):
            await client.get_entity_subgraph(7, 1)
