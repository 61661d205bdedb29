"""
FastAPI backend: REST API over the relationship store, HTML cards, and the legacy migration.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager, contextmanager
from dataclasses import asdict
from datetime import date
from typing import Any, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from neo4j import GraphDatabase
from pydantic import BaseModel, ConfigDict, Field

from api.cards import render_birthdays, render_families_view, render_people_grid
from famtree.application import (
    DocumentNotFound,
    LegacyBranch,
    LegacyMember,
    MigrationError,
    MigrationTransformer,
    RelationshipStore,
    estimate_families,
)
from famtree.domain import Family, Person, Relationship
from famtree.infrastructure import Neo4jDocumentStore, ensure_id_constraints

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

# Who is making the change; stored as created_by.
USER_ID_HEADER = "X-User-Id"
DEFAULT_USER_ID = "default"


def _get_driver():
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    return GraphDatabase.driver(uri, auth=(user, password))


def _phone_region() -> str | None:
    return os.environ.get("PHONE_REGION", "US").strip() or None


def _user_id(x_user_id: str | None) -> str:
    return (x_user_id or "").strip() or DEFAULT_USER_ID


def get_store(request: Request) -> RelationshipStore:
    app = request.app
    if getattr(app.state, "store", None) is None:
        if getattr(app.state, "driver", None) is None:
            app.state.driver = _get_driver()
        app.state.store = RelationshipStore(Neo4jDocumentStore(app.state.driver))
        app.state.store.load_all()
    return app.state.store


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    app.state.store = None
    try:
        app.state.driver = _get_driver()
        ensure_id_constraints(app.state.driver)
        app.state.store = RelationshipStore(Neo4jDocumentStore(app.state.driver))
        app.state.store.load_all()
        logger.info(
            "Loaded %d people, %d families, %d relationships",
            len(app.state.store.people),
            len(app.state.store.families),
            len(app.state.store.relationships),
        )
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="famtree API", lifespan=lifespan)


@contextmanager
def _store_errors():
    """Map store errors to HTTP errors. Anything else propagates as a 500."""
    try:
        yield
    except DocumentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: people ---


class PersonBody(BaseModel):
    first_name: str
    last_name: str
    birth_month: str | None = None
    birth_day: int | None = None
    birth_year: int | None = None
    mobile_phone: str = ""
    home_phone: str = ""
    work_phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    anniversary_date: str = ""
    notes: str = ""


class PersonPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = None
    last_name: str | None = None
    birth_month: str | None = None
    birth_day: int | None = None
    birth_year: int | None = None
    mobile_phone: str | None = None
    home_phone: str | None = None
    work_phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    anniversary_date: str | None = None
    notes: str | None = None


@app.get("/people")
def list_people(
    q: str = "",
    role: str | None = None,
    family_id: str | None = None,
    store: RelationshipStore = Depends(get_store),
):
    return store.search_people(q, role=role, family_id=family_id)


@app.post("/people", status_code=201)
def create_person(
    body: PersonBody,
    store: RelationshipStore = Depends(get_store),
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    person = store.add_person(Person(**body.model_dump(), created_by=_user_id(x_user_id)))
    store.load_people()
    return person


@app.get("/people/{person_id}")
def get_person(person_id: str, store: RelationshipStore = Depends(get_store)):
    person = store.get_person(person_id) or store.fetch_person(person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


@app.patch("/people/{person_id}", status_code=204)
def update_person(
    person_id: str, body: PersonPatch, store: RelationshipStore = Depends(get_store)
):
    with _store_errors():
        store.update_person(person_id, body.model_dump(exclude_unset=True))
    store.load_people()
    return Response(status_code=204)


@app.delete("/people/{person_id}", status_code=204)
def delete_person(person_id: str, store: RelationshipStore = Depends(get_store)):
    with _store_errors():
        store.delete_person(person_id)
    store.load_people()
    return Response(status_code=204)


@app.get("/people/{person_id}/families")
def get_person_families(person_id: str, store: RelationshipStore = Depends(get_store)):
    return store.person_families(person_id)


@app.get("/people/{person_id}/suggestions")
def get_suggestions(person_id: str, store: RelationshipStore = Depends(get_store)):
    return store.suggest_relationships(person_id)


# --- REST: families ---


class MemberBody(BaseModel):
    person_id: str
    role: str = "child"


class FamilyBody(BaseModel):
    name: str
    description: str = ""
    family_type: Literal["nuclear", "extended", "ancestral", "mixed"] = "nuclear"
    generation_level: int = 0
    members: list[MemberBody] = Field(default_factory=list)


class FamilyPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    family_type: Literal["nuclear", "extended", "ancestral", "mixed"] | None = None
    generation_level: int | None = None


@app.get("/families")
def list_families(
    q: str = "",
    family_type: str | None = None,
    store: RelationshipStore = Depends(get_store),
):
    return store.search_families(q, family_type=family_type)


@app.post("/families", status_code=201)
def create_family(
    body: FamilyBody,
    store: RelationshipStore = Depends(get_store),
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    """Create a family and, optionally, its first members."""
    created_by = _user_id(x_user_id)
    family = store.create_family(
        Family(
            name=body.name,
            description=body.description,
            family_type=body.family_type,
            generation_level=body.generation_level,
            created_by=created_by,
        )
    )
    for member in body.members:
        store.add_relationship(
            Relationship(
                person_id=member.person_id,
                family_id=family.id,
                role=member.role,
                created_by=created_by,
            )
        )
    store.load_all()
    return family


@app.patch("/families/{family_id}", status_code=204)
def update_family(
    family_id: str, body: FamilyPatch, store: RelationshipStore = Depends(get_store)
):
    with _store_errors():
        store.update_family(family_id, body.model_dump(exclude_unset=True))
    store.load_families()
    return Response(status_code=204)


@app.delete("/families/{family_id}", status_code=204)
def delete_family(family_id: str, store: RelationshipStore = Depends(get_store)):
    with _store_errors():
        store.delete_family(family_id)
    store.load_all()
    return Response(status_code=204)


@app.get("/families/{family_id}/members")
def get_family_members(family_id: str, store: RelationshipStore = Depends(get_store)):
    return store.family_members(family_id)


# --- REST: relationships ---


class RelationshipBody(BaseModel):
    person_id: str
    family_id: str
    role: str
    relationship_to_others: str = ""
    start_date: str | None = None
    end_date: str | None = None


class RelationshipPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: str | None = None
    relationship_to_others: str | None = None
    start_date: str | None = None
    end_date: str | None = None


@app.post("/relationships", status_code=201)
def create_relationship(
    body: RelationshipBody,
    store: RelationshipStore = Depends(get_store),
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    relationship = store.add_relationship(
        Relationship(**body.model_dump(), created_by=_user_id(x_user_id))
    )
    store.load_relationships()
    return relationship


@app.patch("/relationships/{relationship_id}", status_code=204)
def update_relationship(
    relationship_id: str,
    body: RelationshipPatch,
    store: RelationshipStore = Depends(get_store),
):
    with _store_errors():
        store.update_relationship(relationship_id, body.model_dump(exclude_unset=True))
    store.load_relationships()
    return Response(status_code=204)


@app.delete("/relationships/{relationship_id}", status_code=204)
def delete_relationship(
    relationship_id: str, store: RelationshipStore = Depends(get_store)
):
    with _store_errors():
        store.remove_relationship(relationship_id)
    store.load_relationships()
    return Response(status_code=204)


# --- REST: birthdays ---


@app.get("/birthdays")
def upcoming_birthdays(days: int = 30, store: RelationshipStore = Depends(get_store)):
    return store.upcoming_birthdays(days, today=date.today())


# --- Migration from the branch-based system ---


class MigrationBody(BaseModel):
    """Legacy export as the old app stored it (camelCase records)."""

    family_members: list[dict[str, Any]] = Field(default_factory=list, alias="familyMembers")
    family_branches: list[dict[str, Any]] = Field(default_factory=list, alias="familyBranches")


def _legacy_records(body: MigrationBody) -> tuple[list[LegacyMember], list[LegacyBranch]]:
    members = [LegacyMember.from_dict(m) for m in body.family_members]
    branches = [LegacyBranch.from_dict(b) for b in body.family_branches]
    return members, branches


@app.post("/migrations/estimate")
def estimate_migration(body: MigrationBody):
    members, branches = _legacy_records(body)
    return {
        "people": len(members),
        "families": estimate_families(members, branches),
    }


@app.post("/migrations")
def run_migration(body: MigrationBody, store: RelationshipStore = Depends(get_store)):
    members, branches = _legacy_records(body)
    if not members:
        raise HTTPException(status_code=400, detail="No data to migrate")
    try:
        result = MigrationTransformer(store).migrate(members, branches)
    except MigrationError as e:
        logger.error("Migration failed: %s", e)
        store.load_all()
        progress = asdict(e.progress)
        progress.pop("person_ids")
        return JSONResponse(
            status_code=500,
            content={"detail": str(e), "created": progress},
        )
    return result


# --- HTML cards ---


@app.get("/cards/families", response_class=HTMLResponse)
def family_cards(
    q: str = "",
    family_type: str | None = None,
    store: RelationshipStore = Depends(get_store),
):
    return render_families_view(store, store.search_families(q, family_type=family_type))


@app.get("/cards/people", response_class=HTMLResponse)
def people_cards(
    q: str = "",
    role: str | None = None,
    family_id: str | None = None,
    store: RelationshipStore = Depends(get_store),
):
    people = store.search_people(q, role=role, family_id=family_id)
    return render_people_grid(store, people, phone_region=_phone_region())


@app.get("/cards/birthdays", response_class=HTMLResponse)
def birthday_cards(days: int = 30, store: RelationshipStore = Depends(get_store)):
    return render_birthdays(store.upcoming_birthdays(days, today=date.today()), days)
