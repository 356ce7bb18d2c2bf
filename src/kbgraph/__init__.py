"""Client for a knowledge-base graph service.

Retrieve, search and edit entities and relationships, or stream a whole
knowledge graph incrementally.
"""

from .client import KnowledgeGraphClient
from .errors import (
    GraphAPIError,
    GraphClientError,
    ResponseValidationError,
    StreamConnectionError,
    StreamError,
    StreamTransportError,
)
from .models import Entity, EntityType, KnowledgeGraph, Relationship, SynopsisInfo

__version__ = "0.1.0"

__all__ = [
    "KnowledgeGraphClient",
    "GraphAPIError",
    "GraphClientError",
    "ResponseValidationError",
    "StreamConnectionError",
    "StreamError",
    "StreamTransportError",
    "Entity",
    "EntityType",
    "KnowledgeGraph",
    "Relationship",
    "SynopsisInfo",
]
