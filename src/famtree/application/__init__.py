"""Application layer: the relationship store, the migration, ports, and DTOs. Depends only on domain."""

from famtree.application.dto import (
    FamilyMember,
    LegacyBranch,
    LegacyMember,
    MigrationResult,
    PersonFamily,
    Suggestion,
    UpcomingBirthday,
)
from famtree.application.migration import (
    MigrationError,
    MigrationTransformer,
    estimate_families,
)
from famtree.application.ports import DocumentNotFound, DocumentStore
from famtree.application.relationship_store import RelationshipStore

__all__ = [
    "DocumentNotFound",
    "DocumentStore",
    "FamilyMember",
    "LegacyBranch",
    "LegacyMember",
    "MigrationError",
    "MigrationResult",
    "MigrationTransformer",
    "PersonFamily",
    "RelationshipStore",
    "Suggestion",
    "UpcomingBirthday",
    "estimate_families",
]
