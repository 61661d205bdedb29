"""
famtree core: clean-architecture layout.

- domain: entities (Person, Family, Relationship) and pure inference rules.
- application: RelationshipStore, MigrationTransformer, the DocumentStore port, DTOs.
- infrastructure: adapters (InMemoryDocumentStore, Neo4jDocumentStore), phone formatting.
"""

from famtree.application import (
    DocumentNotFound,
    DocumentStore,
    FamilyMember,
    LegacyBranch,
    LegacyMember,
    MigrationError,
    MigrationResult,
    MigrationTransformer,
    PersonFamily,
    RelationshipStore,
    Suggestion,
    UpcomingBirthday,
    estimate_families,
)
from famtree.domain import Family, Person, Relationship
from famtree.infrastructure import InMemoryDocumentStore, Neo4jDocumentStore

__all__ = [
    "DocumentNotFound",
    "DocumentStore",
    "Family",
    "FamilyMember",
    "InMemoryDocumentStore",
    "LegacyBranch",
    "LegacyMember",
    "MigrationError",
    "MigrationResult",
    "MigrationTransformer",
    "Neo4jDocumentStore",
    "Person",
    "PersonFamily",
    "Relationship",
    "RelationshipStore",
    "Suggestion",
    "UpcomingBirthday",
    "estimate_families",
]
