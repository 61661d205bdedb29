"""In-memory implementation of DocumentStore (no DB)."""

import copy
import uuid
from typing import Any

from famtree.application.ports import Document, DocumentNotFound


class InMemoryDocumentStore:
    """Stores documents in dicts per collection. Order preserved by insertion.
    Documents are copied on the way in and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def insert(self, collection: str, document: Document) -> str:
        document_id = str(uuid.uuid4())
        self._collections.setdefault(collection, {})[document_id] = copy.deepcopy(document)
        return document_id

    def get(self, collection: str, document_id: str) -> Document | None:
        document = self._collections.get(collection, {}).get(document_id)
        return copy.deepcopy(document) if document is not None else None

    def find(self, collection: str, **equals: Any) -> list[tuple[str, Document]]:
        return [
            (document_id, copy.deepcopy(document))
            for document_id, document in self._collections.get(collection, {}).items()
            if all(document.get(k) == v for k, v in equals.items())
        ]

    def update(self, collection: str, document_id: str, fields: Document) -> None:
        document = self._collections.get(collection, {}).get(document_id)
        if document is None:
            raise DocumentNotFound(collection, document_id)
        document.update(copy.deepcopy(fields))
