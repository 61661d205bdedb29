"""Neo4j implementation of DocumentStore.
One node label per collection; a document is the node's property map plus an `id` property.
(:Person {id, first_name, ...}), (:Family {id, name, ...}), (:FamilyRelationship {id, person_id, family_id, ...}).
Relationships are kept as nodes, not graph edges, so they can be archived and queried like any other document.
"""

import uuid
from typing import Any

from famtree.application.ports import (
    COLLECTION_FAMILIES,
    COLLECTION_PEOPLE,
    COLLECTION_RELATIONSHIPS,
    Document,
    DocumentNotFound,
)

_LABELS = {
    COLLECTION_PEOPLE: "Person",
    COLLECTION_FAMILIES: "Family",
    COLLECTION_RELATIONSHIPS: "FamilyRelationship",
}

# Labels cannot be query parameters; they only ever come from _LABELS.
_CONSTRAINT_QUERY = """
CREATE CONSTRAINT {name} IF NOT EXISTS
FOR (n:{label}) REQUIRE n.id IS UNIQUE
"""

_INSERT_QUERY = """
CREATE (n:{label})
SET n = $props, n.id = $id
RETURN n.id AS id
"""

_GET_QUERY = """
MATCH (n:{label} {{id: $id}})
RETURN properties(n) AS doc
"""

_FIND_QUERY = """
MATCH (n:{label})
WHERE all(k IN keys($equals) WHERE n[k] = $equals[k])
RETURN properties(n) AS doc
ORDER BY n.created_at
"""

_UPDATE_QUERY = """
MATCH (n:{label} {{id: $id}})
SET n += $fields
RETURN n.id AS id
"""


def _label(collection: str) -> str:
    try:
        return _LABELS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def ensure_id_constraints(driver) -> None:
    """Create a unique constraint on id for every collection label if missing."""
    with driver.session() as session:
        for label in _LABELS.values():
            session.run(
                _CONSTRAINT_QUERY.format(name=f"{label.lower()}_id_unique", label=label)
            )


def _split_id(doc: dict[str, Any]) -> tuple[str, Document]:
    doc = dict(doc)
    return doc.pop("id"), doc


class Neo4jDocumentStore:
    """Stores documents as Neo4j nodes. Datetimes are expected as ISO strings.
    Setting a field to None removes the property, which reads back as missing.
    """

    def __init__(self, driver: object) -> None:
        self._driver = driver

    def insert(self, collection: str, document: Document) -> str:
        query = _INSERT_QUERY.format(label=_label(collection))
        props = {k: v for k, v in document.items() if k != "id"}
        with self._driver.session() as session:
            result = session.run(query, props=props, id=str(uuid.uuid4()))
            record = result.single()
        if not record:
            raise RuntimeError("insert: expected one result")
        return record["id"]

    def get(self, collection: str, document_id: str) -> Document | None:
        query = _GET_QUERY.format(label=_label(collection))
        with self._driver.session() as session:
            record = session.run(query, id=document_id).single()
        if not record:
            return None
        return _split_id(record["doc"])[1]

    def find(self, collection: str, **equals: Any) -> list[tuple[str, Document]]:
        query = _FIND_QUERY.format(label=_label(collection))
        with self._driver.session() as session:
            result = session.run(query, equals=equals)
            return [_split_id(rec["doc"]) for rec in result]

    def update(self, collection: str, document_id: str, fields: Document) -> None:
        query = _UPDATE_QUERY.format(label=_label(collection))
        fields = {k: v for k, v in fields.items() if k != "id"}
        with self._driver.session() as session:
            record = session.run(query, id=document_id, fields=fields).single()
        if not record:
            raise DocumentNotFound(collection, document_id)
