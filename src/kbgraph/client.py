from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from kbgraph.errors import GraphAPIError, ResponseValidationError
from kbgraph.http import HttpClientFactory, authentication_headers, transient_retry
from kbgraph.models import (
    CreateSynopsisEntityParams,
    Entity,
    GraphSearchParams,
    KnowledgeGraph,
    Relationship,
    RetrieveKnowledgeGraphParams,
    UpdateEntityParams,
    UpdateRelationshipParams,
    entity_list_adapter,
)
from kbgraph.settings import settings
from kbgraph.streaming import GraphStreamCoordinator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_entity = TypeAdapter(Entity)
_relationship = TypeAdapter(Relationship)
_graph = TypeAdapter(KnowledgeGraph)


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.reason_phrase
    if isinstance(body, dict):
        for key in ("detail", "message"):
            if isinstance(body.get(key), str):
                return body[key]
    return r.reason_phrase


def handle_response(r: httpx.Response, adapter: TypeAdapter[T]) -> T:
    """Raise on a non-success status, otherwise validate the JSON body."""
    if not r.is_success:
        raise GraphAPIError(r.status_code, _error_detail(r))
    try:
        return adapter.validate_python(r.json())
    except (ValidationError, json.JSONDecodeError) as e:
        raise ResponseValidationError(f"{r.request.method} {r.request.url.path}: {e}") from e


def _body(params: BaseModel, *, exclude_none: bool = False) -> dict[str, Any]:
    return params.model_dump(mode="json", exclude_none=exclude_none)


class KnowledgeGraphClient:
    """Knowledge-base graph API client.

    Every method except the streaming one is a single request/response
    exchange validated against a pydantic schema. Reads are retried on
    transient network errors; mutations are not.

    Use as an async context manager, or call `aclose()` when done.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        session_cookie: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        cookie = session_cookie if session_cookie is not None else settings.session_cookie
        self._client = HttpClientFactory.client(
            base_url=base_url or settings.base_url,
            headers=authentication_headers(api_key),
            cookies={"session": cookie} if cookie else None,
            transport=transport,
        )
        self._log = log or logger

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> KnowledgeGraphClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @staticmethod
    def _path(kb_id: int, suffix: str) -> str:
        return f"/api/v1/admin/knowledge_bases/{kb_id}/graph{suffix}"

    # --- Graph ---

    @transient_retry()
    async def search(self, kb_id: int, params: GraphSearchParams) -> KnowledgeGraph:
        r = await self._client.post(self._path(kb_id, "/search"), json=_body(params, exclude_none=True))
        return handle_response(r, _graph)

    @transient_retry()
    async def get_entire_knowledge_graph(
        self, kb_id: int, params: RetrieveKnowledgeGraphParams
    ) -> KnowledgeGraph:
        r = await self._client.post(
            self._path(kb_id, "/entire_graph"), json=_body(params, exclude_none=True)
        )
        return handle_response(r, _graph)

    def open_graph_stream(
        self, kb_id: int, log: logging.Logger | logging.LoggerAdapter | None = None
    ) -> GraphStreamCoordinator:
        """Coordinator for one streamed read of the whole graph; call `run()` on it."""
        return GraphStreamCoordinator(
            self._client,
            self._path(kb_id, "/entire_graph/stream"),
            headers={"Accept": "text/event-stream"},
            log=log or self._log,
        )

    async def stream_entire_knowledge_graph(self, kb_id: int) -> KnowledgeGraph:
        coordinator = self.open_graph_stream(kb_id)
        graph = await coordinator.run()
        if not coordinator.terminated_by_server:
            self._log.warning(f"Graph stream for knowledge base {kb_id} closed without a complete event")
        return graph

    # --- Entities ---

    @transient_retry()
    async def search_entity(self, kb_id: int, query: str, top_k: int = 10) -> list[Entity]:
        r = await self._client.get(
            self._path(kb_id, "/entities/search"), params={"query": query, "top_k": top_k}
        )
        return handle_response(r, entity_list_adapter)

    @transient_retry()
    async def get_entity(self, kb_id: int, entity_id: int) -> Entity:
        r = await self._client.get(self._path(kb_id, f"/entities/{entity_id}"))
        return handle_response(r, _entity)

    async def update_entity(self, kb_id: int, entity_id: int, params: UpdateEntityParams) -> Entity:
        r = await self._client.put(self._path(kb_id, f"/entities/{entity_id}"), json=_body(params))
        return handle_response(r, _entity)

    async def create_synopsis_entity(self, kb_id: int, params: CreateSynopsisEntityParams) -> Entity:
        r = await self._client.post(self._path(kb_id, "/entities/synopsis"), json=_body(params))
        return handle_response(r, _entity)

    @transient_retry()
    async def get_entity_subgraph(self, kb_id: int, entity_id: int) -> KnowledgeGraph:
        r = await self._client.get(self._path(kb_id, f"/entities/{entity_id}/subgraph"))
        return handle_response(r, _graph)

    # --- Relationships ---

    @transient_retry()
    async def get_relationship(self, kb_id: int, relationship_id: int) -> Relationship:
        r = await self._client.get(self._path(kb_id, f"/relationships/{relationship_id}"))
        return handle_response(r, _relationship)

    async def update_relationship(
        self, kb_id: int, relationship_id: int, params: UpdateRelationshipParams
    ) -> Relationship:
        r = await self._client.put(
            self._path(kb_id, f"/relationships/{relationship_id}"), json=_body(params)
        )
        return handle_response(r, _relationship)
