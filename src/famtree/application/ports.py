"""Application ports (interfaces). Implemented by infrastructure adapters."""

from typing import Any, Protocol

COLLECTION_PEOPLE = "people_v2"
COLLECTION_FAMILIES = "families_v2"
COLLECTION_RELATIONSHIPS = "family_relationships_v2"
COLLECTIONS = (COLLECTION_PEOPLE, COLLECTION_FAMILIES, COLLECTION_RELATIONSHIPS)

Document = dict[str, Any]


class DocumentNotFound(LookupError):
    """No document with the given id exists in the collection."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"{collection}/{document_id} not found")
        self.collection = collection
        self.document_id = document_id


class DocumentStore(Protocol):
    """Generic document database: collections of documents keyed by generated ids."""

    def insert(self, collection: str, document: Document) -> str:
        """Store a new document and return its generated id."""
        ...

    def get(self, collection: str, document_id: str) -> Document | None:
        """Return the document with the given id (active or not), or None."""
        ...

    def find(self, collection: str, **equals: Any) -> list[tuple[str, Document]]:
        """Return (id, document) pairs whose fields equal every given value."""
        ...

    def update(self, collection: str, document_id: str, fields: Document) -> None:
        """Merge fields into an existing document. Raises DocumentNotFound."""
        ...
