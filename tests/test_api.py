"""API tests against an in-memory store. /health and the routes below do not require Neo4j."""

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_store
from famtree.application import RelationshipStore
from famtree.application.ports import COLLECTION_FAMILIES
from famtree.infrastructure import InMemoryDocumentStore


@pytest.fixture
def store():
    return RelationshipStore(InMemoryDocumentStore())


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _add_person(client, first, last, **extra):
    r = client.post("/people", json={"first_name": first, "last_name": last, **extra})
    assert r.status_code == 201
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_and_list_people(client):
    r = client.post(
        "/people",
        json={"first_name": "Ann", "last_name": "Smith", "birth_month": "June", "birth_day": 3},
        headers={"X-User-Id": "alice"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["id"]
    assert body["created_by"] == "alice"
    assert body["is_active"] is True

    listed = client.get("/people").json()
    assert [p["first_name"] for p in listed] == ["Ann"]
    assert client.get("/people", params={"q": "nobody"}).json() == []


def test_update_and_soft_delete_person(client):
    ann = _add_person(client, "Ann", "Smith")
    r = client.patch(f"/people/{ann['id']}", json={"notes": "Gardener"})
    assert r.status_code == 204
    assert client.get(f"/people/{ann['id']}").json()["notes"] == "Gardener"

    assert client.delete(f"/people/{ann['id']}").status_code == 204
    assert client.get("/people").json() == []
    archived = client.get(f"/people/{ann['id']}").json()
    assert archived["is_active"] is False
    assert archived["deleted_at"] is not None


def test_update_errors(client):
    ann = _add_person(client, "Ann", "Smith")
    assert client.patch("/people/missing", json={"notes": "x"}).status_code == 404
    assert client.patch(f"/people/{ann['id']}", json={"id": "other"}).status_code == 422
    assert client.get("/people/missing").status_code == 404


def test_null_for_required_field_rejected(client):
    ann = _add_person(client, "Ann", "Smith", birth_month="June")
    r = client.patch(f"/people/{ann['id']}", json={"last_name": None})
    assert r.status_code == 400
    assert client.get(f"/people/{ann['id']}").json()["last_name"] == "Smith"
    assert client.get("/people", params={"q": "x"}).status_code == 200
    # optional fields can still be cleared
    assert client.patch(f"/people/{ann['id']}", json={"birth_month": None}).status_code == 204
    assert client.get(f"/people/{ann['id']}").json()["birth_month"] is None


def test_family_with_members_and_cascade(client, store):
    ann = _add_person(client, "Ann", "Smith")
    bob = _add_person(client, "Bob", "Smith")
    r = client.post(
        "/families",
        json={
            "name": "Smith Family",
            "family_type": "nuclear",
            "members": [
                {"person_id": ann["id"], "role": "parent"},
                {"person_id": bob["id"], "role": "child"},
            ],
        },
    )
    assert r.status_code == 201
    family_id = r.json()["id"]

    members = client.get(f"/families/{family_id}/members").json()
    assert {m["person"]["first_name"]: m["role"] for m in members} == {
        "Ann": "parent",
        "Bob": "child",
    }
    families = client.get(f"/people/{ann['id']}/families").json()
    assert [f["family"]["name"] for f in families] == ["Smith Family"]
    rel_ids = [m["relationship"]["id"] for m in members]

    assert client.delete(f"/families/{family_id}").status_code == 204
    assert client.get("/families").json() == []
    assert client.get(f"/families/{family_id}/members").json() == []
    assert all(store.fetch_relationship(rid).is_active is False for rid in rel_ids)


def test_invalid_family_type_rejected(client):
    r = client.post("/families", json={"name": "X", "family_type": "tribe"})
    assert r.status_code == 422


def test_relationship_lifecycle(client):
    ann = _add_person(client, "Ann", "Smith")
    family = client.post("/families", json={"name": "Smiths"}).json()
    r = client.post(
        "/relationships",
        json={"person_id": ann["id"], "family_id": family["id"], "role": "guardian"},
    )
    assert r.status_code == 201
    rel_id = r.json()["id"]

    assert client.patch(f"/relationships/{rel_id}", json={"role": "parent"}).status_code == 204
    assert client.get(f"/families/{family['id']}/members").json()[0]["role"] == "parent"
    assert client.patch(f"/relationships/{rel_id}", json={"role": None}).status_code == 400
    assert client.patch(f"/families/{family['id']}", json={"name": None}).status_code == 400
    assert client.get("/cards/families").status_code == 200

    assert client.delete(f"/relationships/{rel_id}").status_code == 204
    assert client.get(f"/families/{family['id']}/members").json() == []


def test_suggestions(client):
    ann = _add_person(client, "Ann", "Smith")
    _add_person(client, "Bob", "Smith")
    kinds = [s["kind"] for s in client.get(f"/people/{ann['id']}/suggestions").json()]
    assert kinds == ["create_family", "create_nuclear_family"]


MIGRATION = {
    "familyMembers": [
        {"id": "1", "firstName": "John", "lastName": "Smith", "familyBranch": "Smiths", "relationship": "Father"},
        {"id": "2", "firstName": "Tim", "lastName": "Jones"},
        {"id": "3", "firstName": "Kate", "lastName": "Jones"},
        {"id": "4", "firstName": "Bo", "lastName": "Lee"},
    ],
    "familyBranches": [{"name": "Smiths", "branchType": "nuclear_family"}],
}


def test_migration_estimate(client):
    r = client.post("/migrations/estimate", json=MIGRATION)
    assert r.json() == {"people": 4, "families": 2}


def test_migration_run(client):
    r = client.post("/migrations", json=MIGRATION)
    assert r.status_code == 200
    body = r.json()
    assert body["people_created"] == 4
    assert body["families_created"] == 2
    assert body["relationships_created"] == 3
    names = sorted(f["name"] for f in client.get("/families").json())
    assert names == ["Jones Family", "Smiths"]


def test_migration_without_members(client):
    r = client.post("/migrations", json={"familyMembers": [], "familyBranches": []})
    assert r.status_code == 400


def test_html_cards(client):
    _add_person(client, "Ann", "Smith", mobile_phone="+1 202 555 1234")
    client.post("/families", json={"name": "Smith Family"})

    r = client.get("/cards/people")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Ann Smith" in r.text

    assert "Smith Family" in client.get("/cards/families").text
    assert "No upcoming birthdays" in client.get("/cards/birthdays").text


def test_migration_coerces_numeric_branch_and_relationship(client):
    r = client.post(
        "/migrations",
        json={
            "familyMembers": [
                {"id": "1", "firstName": "Ann", "lastName": "Smith", "familyBranch": 7, "relationship": 3}
            ],
            "familyBranches": [],
        },
    )
    assert r.status_code == 200
    assert r.json()["people_created"] == 1


class FamilyWritesFail(InMemoryDocumentStore):
    def insert(self, collection, document):
        if collection == COLLECTION_FAMILIES:
            raise RuntimeError("write rejected")
        return super().insert(collection, document)


def test_migration_failure_reloads_committed_people():
    store = RelationshipStore(FamilyWritesFail())
    app.dependency_overrides[get_store] = lambda: store
    try:
        client = TestClient(app)
        r = client.post("/migrations", json=MIGRATION)
        assert r.status_code == 500
        assert r.json()["created"]["people_created"] == 4
        assert r.json()["created"]["families_created"] == 0
        assert len(client.get("/people").json()) == 4
    finally:
        app.dependency_overrides.clear()
