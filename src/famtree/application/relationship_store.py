"""People, families and relationships: CRUD over a DocumentStore plus an in-memory cache.

The cache holds only active records and is replaced wholesale by load_all();
it is valid until the next load. Writes go straight to the document store and
never touch the cache, so callers reload after mutating.
"""

import dataclasses
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from typing import Any, TypeVar

from famtree.application.dto import (
    SUGGEST_CREATE_FAMILY,
    SUGGEST_CREATE_NUCLEAR_FAMILY,
    FamilyMember,
    PersonFamily,
    Suggestion,
    UpcomingBirthday,
)
from famtree.application.ports import (
    COLLECTION_FAMILIES,
    COLLECTION_PEOPLE,
    COLLECTION_RELATIONSHIPS,
    Document,
    DocumentStore,
)
from famtree.domain import Family, Person, Relationship, calculate_age, next_birthday

logger = logging.getLogger(__name__)

DEFAULT_BIRTHDAY_HORIZON_DAYS = 30

_DATETIME_FIELDS = ("created_at", "updated_at", "deleted_at")

R = TypeVar("R", Person, Family, Relationship)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat()


def _iso_to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _encode(fields: dict[str, Any]) -> Document:
    return {
        k: _datetime_to_iso(v) if isinstance(v, datetime) else v
        for k, v in fields.items()
    }


def _to_document(record: Person | Family | Relationship) -> Document:
    fields = dataclasses.asdict(record)
    fields.pop("id")
    return _encode(fields)


def _from_document(cls: type[R], document_id: str, document: Document) -> R:
    names = {f.name for f in dataclasses.fields(cls)}
    values = {k: v for k, v in document.items() if k in names}
    for name in _DATETIME_FIELDS:
        if name in values:
            values[name] = _iso_to_datetime(values[name])
    values["id"] = document_id
    return cls(**values)


def _check_fields(cls: type, fields: dict[str, Any]) -> None:
    if "id" in fields:
        raise ValueError("id cannot be updated.")
    defaults = {f.name: f.default for f in dataclasses.fields(cls)}
    unknown = sorted(set(fields) - set(defaults))
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} field(s): {', '.join(unknown)}")
    # Only fields that default to None may be cleared.
    cleared = sorted(k for k, v in fields.items() if v is None and defaults[k] is not None)
    if cleared:
        raise ValueError(f"{cls.__name__} field(s) cannot be null: {', '.join(cleared)}")


class RelationshipStore:
    """Owns the people, families and relationships collections and their cache."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock
        self._people: tuple[Person, ...] = ()
        self._families: tuple[Family, ...] = ()
        self._relationships: tuple[Relationship, ...] = ()
        self.loaded_at: datetime | None = None

    @property
    def people(self) -> tuple[Person, ...]:
        return self._people

    @property
    def families(self) -> tuple[Family, ...]:
        return self._families

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        return self._relationships

    # --- writes ---

    def _add(self, collection: str, record: R) -> R:
        stamped = dataclasses.replace(
            record,
            id=None,
            is_active=True,
            created_at=self._clock(),
            updated_at=None,
            deleted_at=None,
        )
        new_id = self._store.insert(collection, _to_document(stamped))
        return dataclasses.replace(stamped, id=new_id)

    def _update(
        self, cls: type, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None:
        _check_fields(cls, fields)
        merged = {**fields, "updated_at": self._clock()}
        self._store.update(collection, record_id, _encode(merged))

    def _archive(self, cls: type, collection: str, record_id: str) -> None:
        self._update(
            cls, collection, record_id, {"is_active": False, "deleted_at": self._clock()}
        )

    def add_person(self, person: Person) -> Person:
        """Persist a new person; returns it with its id and creation stamps."""
        return self._add(COLLECTION_PEOPLE, person)

    def update_person(self, person_id: str, fields: dict[str, Any]) -> None:
        self._update(Person, COLLECTION_PEOPLE, person_id, fields)

    def delete_person(self, person_id: str) -> None:
        """Archive the person. The document stays so relationship history survives."""
        self._archive(Person, COLLECTION_PEOPLE, person_id)

    def create_family(self, family: Family) -> Family:
        return self._add(COLLECTION_FAMILIES, family)

    def update_family(self, family_id: str, fields: dict[str, Any]) -> None:
        self._update(Family, COLLECTION_FAMILIES, family_id, fields)

    def delete_family(self, family_id: str) -> None:
        """Archive the family, then each cached relationship pointing at it.

        Sequential and best effort: if one relationship fails, the error
        propagates and the rest keep is_active=True.
        """
        self._archive(Family, COLLECTION_FAMILIES, family_id)
        for rel in [r for r in self._relationships if r.family_id == family_id]:
            self.remove_relationship(rel.id)

    def add_relationship(self, relationship: Relationship) -> Relationship:
        return self._add(COLLECTION_RELATIONSHIPS, relationship)

    def update_relationship(self, relationship_id: str, fields: dict[str, Any]) -> None:
        self._update(Relationship, COLLECTION_RELATIONSHIPS, relationship_id, fields)

    def remove_relationship(self, relationship_id: str) -> None:
        self._archive(Relationship, COLLECTION_RELATIONSHIPS, relationship_id)

    # --- read-through by id (ignores the cache and activity) ---

    def _fetch(self, cls: type[R], collection: str, record_id: str) -> R | None:
        document = self._store.get(collection, record_id)
        if document is None:
            return None
        return _from_document(cls, record_id, document)

    def fetch_person(self, person_id: str) -> Person | None:
        return self._fetch(Person, COLLECTION_PEOPLE, person_id)

    def fetch_family(self, family_id: str) -> Family | None:
        return self._fetch(Family, COLLECTION_FAMILIES, family_id)

    def fetch_relationship(self, relationship_id: str) -> Relationship | None:
        return self._fetch(Relationship, COLLECTION_RELATIONSHIPS, relationship_id)

    # --- loading ---

    def _load_active(self, cls: type[R], collection: str) -> tuple[R, ...]:
        return tuple(
            _from_document(cls, doc_id, doc)
            for doc_id, doc in self._store.find(collection, is_active=True)
        )

    def load_people(self) -> None:
        try:
            self._people = self._load_active(Person, COLLECTION_PEOPLE)
        except Exception:
            logger.exception("Error loading people")

    def load_families(self) -> None:
        try:
            self._families = self._load_active(Family, COLLECTION_FAMILIES)
        except Exception:
            logger.exception("Error loading families")

    def load_relationships(self) -> None:
        try:
            self._relationships = self._load_active(
                Relationship, COLLECTION_RELATIONSHIPS
            )
        except Exception:
            logger.exception("Error loading relationships")

    def load_all(self) -> None:
        """Reload all three collections in parallel. A failed load keeps its stale data."""
        loaders = (self.load_people, self.load_families, self.load_relationships)
        with ThreadPoolExecutor(max_workers=len(loaders)) as pool:
            for future in [pool.submit(load) for load in loaders]:
                future.result()
        self.loaded_at = self._clock()

    # --- queries over the cache ---

    def get_person(self, person_id: str) -> Person | None:
        return next((p for p in self._people if p.id == person_id), None)

    def get_family(self, family_id: str) -> Family | None:
        return next((f for f in self._families if f.id == family_id), None)

    def relationships_for_person(self, person_id: str) -> list[Relationship]:
        return [
            r for r in self._relationships if r.person_id == person_id and r.is_active
        ]

    def family_members(self, family_id: str) -> list[FamilyMember]:
        return [
            FamilyMember(
                person=self.get_person(r.person_id),
                role=r.role,
                relationship_to_others=r.relationship_to_others,
                relationship=r,
            )
            for r in self._relationships
            if r.family_id == family_id and r.is_active
        ]

    def person_families(self, person_id: str) -> list[PersonFamily]:
        return [
            PersonFamily(
                family=self.get_family(r.family_id),
                role=r.role,
                relationship_to_others=r.relationship_to_others,
                relationship=r,
            )
            for r in self.relationships_for_person(person_id)
        ]

    def search_people(
        self,
        term: str = "",
        *,
        role: str | None = None,
        family_id: str | None = None,
    ) -> list[Person]:
        """Active people whose first or last name contains term (case-insensitive),
        optionally narrowed to a role and/or a family."""
        needle = (term or "").strip().lower()
        out = []
        for person in self._people:
            if not person.is_active:
                continue
            if needle and not (
                needle in person.first_name.lower() or needle in person.last_name.lower()
            ):
                continue
            if role or family_id:
                rels = self.relationships_for_person(person.id)
                if role and not any(r.role == role for r in rels):
                    continue
                if family_id and not any(r.family_id == family_id for r in rels):
                    continue
            out.append(person)
        return out

    def search_families(
        self, term: str = "", *, family_type: str | None = None
    ) -> list[Family]:
        """Active families whose name or description contains term (case-insensitive)."""
        needle = (term or "").strip().lower()
        out = []
        for family in self._families:
            if not family.is_active:
                continue
            if needle and not (
                needle in family.name.lower()
                or needle in (family.description or "").lower()
            ):
                continue
            if family_type and family.family_type != family_type:
                continue
            out.append(family)
        return out

    def suggest_relationships(self, person_id: str) -> list[Suggestion]:
        """Propose a surname family and, for unattached people, a first family."""
        person = self.get_person(person_id)
        if person is None:
            return []

        suggestions = []
        same_last_name = [
            p
            for p in self._people
            if p.id != person_id and p.last_name == person.last_name and p.is_active
        ]
        if same_last_name:
            suggestions.append(
                Suggestion(
                    kind=SUGGEST_CREATE_FAMILY,
                    title=f"Create {person.last_name} Family",
                    description=(
                        f"Create a family with {len(same_last_name) + 1} "
                        f"{person.last_name} members"
                    ),
                    people=(person, *same_last_name),
                )
            )

        if not self.person_families(person_id):
            suggestions.append(
                Suggestion(
                    kind=SUGGEST_CREATE_NUCLEAR_FAMILY,
                    title=f"Create Nuclear Family for {person.first_name}",
                    description=(
                        "Start a nuclear family where this person can be a parent or child"
                    ),
                    people=(person,),
                )
            )
        return suggestions

    def upcoming_birthdays(
        self,
        days_ahead: int = DEFAULT_BIRTHDAY_HORIZON_DAYS,
        today: date | None = None,
    ) -> list[UpcomingBirthday]:
        """Birthdays falling within days_ahead of today, soonest first.

        Same-day birthdays keep cache order. People without a month or day
        are skipped; a missing birth year reports the placeholder age.
        """
        today = today or date.today()
        upcoming = []
        for person in self._people:
            if not person.is_active:
                continue
            birthday = next_birthday(person.birth_month, person.birth_day, today)
            if birthday is None:
                continue
            days_until = (birthday - today).days
            if not 0 <= days_until <= days_ahead:
                continue
            families = ", ".join(
                pf.family.name for pf in self.person_families(person.id) if pf.family
            )
            upcoming.append(
                UpcomingBirthday(
                    person=person,
                    next_birthday=birthday,
                    days_until=days_until,
                    age=calculate_age(person.birth_year, today),
                    families=families,
                )
            )
        return sorted(upcoming, key=lambda b: b.days_until)
