from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter


class EntityType(str, Enum):
    original = "original"
    synopsis = "synopsis"


class SynopsisInfo(BaseModel):
    """Which entities a synopsis entity summarizes, and under what topic."""

    entities: list[int]
    topic: str


class Entity(BaseModel):
    id: int
    knowledge_base_id: int | None = None
    name: str
    description: str
    meta: dict[str, Any]
    entity_type: EntityType
    # Only set for synopsis entities
    synopsis_info: SynopsisInfo | None = None


class Relationship(BaseModel):
    """A directed edge from `source_entity_id` to `target_entity_id`."""

    id: int
    knowledge_base_id: int | None = None
    source_entity_id: int
    target_entity_id: int
    description: str
    last_modified_at: datetime | None = None
    meta: dict[str, Any]
    weight: float


class KnowledgeGraph(BaseModel):
    """Entities and relationships in arrival order. No deduplication."""

    entities: list[Entity] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)


entity_list_adapter = TypeAdapter(list[Entity])


# --- Request bodies ---


class UpdateEntityParams(BaseModel):
    name: str | None = None
    description: str | None = None
    meta: dict[str, Any] | None = None


class CreateSynopsisEntityParams(BaseModel):
    name: str
    description: str
    meta: dict[str, Any] = Field(default_factory=dict)
    topic: str
    entities: list[int]


class UpdateRelationshipParams(BaseModel):
    description: str | None = None
    meta: dict[str, Any] | None = None
    weight: float | None = None


class GraphSearchParams(BaseModel):
    query: str
    include_meta: bool | None = None
    depth: int | None = None
    with_degree: bool | None = None


class MetadataFilter(BaseModel):
    enabled: bool | None = None
    filters: dict[str, Any] | None = None


class KnowledgeGraphRetrievalConfig(BaseModel):
    depth: int | None = None
    include_meta: bool | None = None
    with_degree: bool | None = None
    metadata_filter: MetadataFilter | None = None


class RetrievalConfig(BaseModel):
    knowledge_graph: KnowledgeGraphRetrievalConfig = Field(default_factory=KnowledgeGraphRetrievalConfig)


class RetrieveKnowledgeGraphParams(BaseModel):
    query: str
    llm_id: int
    retrieval_config: RetrievalConfig = Field(default_factory=RetrievalConfig)
