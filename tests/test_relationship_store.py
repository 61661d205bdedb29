"""Unit tests for RelationshipStore over the in-memory document store."""

import logging
from datetime import datetime, timezone

import pytest

from famtree.application import DocumentNotFound, RelationshipStore
from famtree.application.ports import COLLECTION_FAMILIES, COLLECTION_PEOPLE
from famtree.domain import Family, Person, Relationship
from famtree.infrastructure import InMemoryDocumentStore

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


class FlakyDocumentStore(InMemoryDocumentStore):
    """Fails reads of the named collections."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()

    def find(self, collection, **equals):
        if collection in self.failing:
            raise RuntimeError(f"{collection} unavailable")
        return super().find(collection, **equals)


def _store(docs=None) -> RelationshipStore:
    return RelationshipStore(docs or InMemoryDocumentStore(), clock=lambda: NOW)


def _family_of(store, *people, name="Smith Family", roles=None):
    family = store.create_family(Family(name=name))
    for i, person in enumerate(people):
        role = roles[i] if roles else "child"
        store.add_relationship(
            Relationship(person_id=person.id, family_id=family.id, role=role)
        )
    return family


def test_add_person_assigns_id_and_stamps() -> None:
    store = _store()
    person = store.add_person(
        Person(first_name="Ann", last_name="Smith", created_by="alice", is_active=False)
    )
    assert person.id
    assert person.created_at == NOW
    assert person.created_by == "alice"
    assert person.is_active is True

    fetched = store.fetch_person(person.id)
    assert fetched == person


def test_writes_do_not_touch_cache_until_reload() -> None:
    store = _store()
    person = store.add_person(Person(first_name="Ann", last_name="Smith"))
    assert store.people == ()

    store.load_all()
    assert [p.id for p in store.people] == [person.id]

    store.update_person(person.id, {"notes": "Loves gardening"})
    assert store.get_person(person.id).notes == ""
    store.load_people()
    assert store.get_person(person.id).notes == "Loves gardening"
    assert store.get_person(person.id).updated_at == NOW


def test_update_rejects_id_and_unknown_fields() -> None:
    store = _store()
    person = store.add_person(Person(first_name="Ann"))
    with pytest.raises(ValueError, match="id"):
        store.update_person(person.id, {"id": "other"})
    with pytest.raises(ValueError, match="nickname"):
        store.update_person(person.id, {"nickname": "Annie"})


def test_update_rejects_null_for_non_optional_fields() -> None:
    store = _store()
    person = store.add_person(Person(first_name="Ann", last_name="Smith"))
    with pytest.raises(ValueError, match="last_name"):
        store.update_person(person.id, {"last_name": None})
    assert store.fetch_person(person.id).last_name == "Smith"
    store.update_person(person.id, {"birth_year": None})
    rel = store.add_relationship(Relationship(person_id=person.id, family_id="f1"))
    with pytest.raises(ValueError, match="role"):
        store.update_relationship(rel.id, {"role": None})
    store.update_relationship(rel.id, {"end_date": None})


def test_update_missing_record_raises() -> None:
    store = _store()
    with pytest.raises(DocumentNotFound):
        store.update_family("missing", {"name": "X"})
    with pytest.raises(DocumentNotFound):
        store.delete_person("missing")


def test_delete_person_is_soft() -> None:
    store = _store()
    person = store.add_person(Person(first_name="Ann", last_name="Smith"))
    store.delete_person(person.id)

    archived = store.fetch_person(person.id)
    assert archived is not None
    assert archived.is_active is False
    assert archived.deleted_at == NOW

    store.load_all()
    assert store.get_person(person.id) is None


def test_delete_family_cascades_to_its_relationships_only() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    bob = store.add_person(Person(first_name="Bob", last_name="Smith"))
    smiths = _family_of(store, ann, bob)
    other = _family_of(store, ann, name="Garden Club")
    store.load_all()
    other_rel = store.family_members(other.id)[0].relationship

    smith_rels = [m.relationship for m in store.family_members(smiths.id)]
    store.delete_family(smiths.id)

    assert store.fetch_family(smiths.id).is_active is False
    for rel in smith_rels:
        assert store.fetch_relationship(rel.id).is_active is False
    assert store.fetch_relationship(other_rel.id).is_active is True

    store.load_all()
    assert store.get_family(smiths.id) is None
    assert store.family_members(smiths.id) == []
    assert [pf.family.name for pf in store.person_families(ann.id)] == ["Garden Club"]


def test_membership_joins_agree() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    bob = store.add_person(Person(first_name="Bob", last_name="Jones"))
    smiths = _family_of(store, ann, roles=["parent"])
    joneses = _family_of(store, bob, ann, name="Jones Family", roles=["child", "spouse"])
    store.load_all()

    for family in (smiths, joneses):
        for member in store.family_members(family.id):
            families = [pf.family.id for pf in store.person_families(member.person.id)]
            assert family.id in families
    for person in (ann, bob):
        for pf in store.person_families(person.id):
            members = [m.person.id for m in store.family_members(pf.family.id)]
            assert person.id in members

    roles = {pf.family.name: pf.role for pf in store.person_families(ann.id)}
    assert roles == {"Smith Family": "parent", "Jones Family": "spouse"}


def test_family_members_tolerates_archived_person() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    family = _family_of(store, ann)
    store.delete_person(ann.id)
    store.load_all()

    members = store.family_members(family.id)
    assert len(members) == 1
    assert members[0].person is None
    assert members[0].relationship.person_id == ann.id


def test_removed_relationship_leaves_joins() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann"))
    family = _family_of(store, ann)
    store.load_all()
    rel = store.relationships_for_person(ann.id)[0]

    store.remove_relationship(rel.id)
    store.load_all()
    assert store.relationships_for_person(ann.id) == []
    assert store.family_members(family.id) == []


def test_load_failure_keeps_stale_collection(caplog) -> None:
    docs = FlakyDocumentStore()
    store = _store(docs)
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    first = store.create_family(Family(name="First"))
    store.load_all()

    store.create_family(Family(name="Second"))
    store.add_person(Person(first_name="Bob", last_name="Smith"))
    docs.failing = {COLLECTION_FAMILIES}
    with caplog.at_level(logging.ERROR):
        store.load_all()

    assert [f.id for f in store.families] == [first.id]
    assert len(store.people) == 2
    assert store.get_person(ann.id) is not None
    assert "Error loading families" in caplog.text


def test_load_failure_on_first_load_leaves_empty_cache() -> None:
    docs = FlakyDocumentStore()
    store = _store(docs)
    store.add_person(Person(first_name="Ann"))
    docs.failing = {COLLECTION_PEOPLE}
    store.load_all()
    assert store.people == ()
    assert store.loaded_at == NOW


def test_search_people() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    bob = store.add_person(Person(first_name="Bob", last_name="Annson"))
    cid = store.add_person(Person(first_name="Cid", last_name="Jones"))
    family = _family_of(store, ann, cid, roles=["parent", "child"])
    store.load_all()

    assert [p.id for p in store.search_people("ann")] == [ann.id, bob.id]
    assert [p.id for p in store.search_people("", role="parent")] == [ann.id]
    assert [p.id for p in store.search_people(family_id=family.id)] == [ann.id, cid.id]
    assert store.search_people("ann", role="child") == []
    assert len(store.search_people()) == 3


def test_search_families() -> None:
    store = _store()
    store.create_family(Family(name="Smith Family", family_type="nuclear"))
    store.create_family(
        Family(name="Old Country", description="The Smith ancestors", family_type="ancestral")
    )
    store.load_all()

    assert len(store.search_families("SMITH")) == 2
    assert [f.name for f in store.search_families("smith", family_type="ancestral")] == [
        "Old Country"
    ]
    assert store.search_families("nobody") == []


def test_suggestions_same_last_name_and_no_family() -> None:
    store = _store()
    ann = store.add_person(Person(first_name="Ann", last_name="Smith"))
    bob = store.add_person(Person(first_name="Bob", last_name="Smith"))
    store.add_person(Person(first_name="Cid", last_name="Jones"))
    store.load_all()

    suggestions = store.suggest_relationships(ann.id)
    assert [s.kind for s in suggestions] == ["create_family", "create_nuclear_family"]
    assert suggestions[0].title == "Create Smith Family"
    assert suggestions[0].description == "Create a family with 2 Smith members"
    assert [p.id for p in suggestions[0].people] == [ann.id, bob.id]
    assert suggestions[1].title == "Create Nuclear Family for Ann"


def test_suggestions_for_attached_loner() -> None:
    store = _store()
    cid = store.add_person(Person(first_name="Cid", last_name="Jones"))
    _family_of(store, cid)
    store.load_all()
    assert store.suggest_relationships(cid.id) == []
    assert store.suggest_relationships("unknown") == []
