"""Infrastructure layer: concrete implementations of application ports."""

from famtree.infrastructure.memory_store import InMemoryDocumentStore
from famtree.infrastructure.persistence.neo4j_store import (
    Neo4jDocumentStore,
    ensure_id_constraints,
)
from famtree.infrastructure.phone import normalize_phone, phone_href

__all__ = [
    "InMemoryDocumentStore",
    "Neo4jDocumentStore",
    "ensure_id_constraints",
    "normalize_phone",
    "phone_href",
]
