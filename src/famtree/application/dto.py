"""Query results, legacy input records, and migration results."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from famtree.domain import Family, Person, Relationship


@dataclass(frozen=True)
class FamilyMember:
    """One member of a family. person is None when not in the cache (e.g. archived)."""

    person: Person | None
    role: str
    relationship_to_others: str
    relationship: Relationship


@dataclass(frozen=True)
class PersonFamily:
    """One family a person belongs to. family is None when not in the cache."""

    family: Family | None
    role: str
    relationship_to_others: str
    relationship: Relationship


# --- suggestions ---

SUGGEST_CREATE_FAMILY = "create_family"
SUGGEST_CREATE_NUCLEAR_FAMILY = "create_nuclear_family"


@dataclass(frozen=True)
class Suggestion:
    kind: str
    title: str
    description: str
    people: tuple[Person, ...] = ()


@dataclass(frozen=True)
class UpcomingBirthday:
    person: Person
    next_birthday: date
    days_until: int
    age: int
    families: str = ""


# --- migration ---


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class LegacyMember:
    """A flat member record from the branch-based system."""

    id: str | None = None
    first_name: str = ""
    last_name: str = ""
    family_branch: str | None = None
    relationship: str | None = None
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

    @property
    def is_unassigned(self) -> bool:
        return not (self.family_branch or "").strip()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LegacyMember":
        """Build from the legacy export's camelCase JSON object."""
        member_id = data.get("id")
        return cls(
            id=str(member_id) if member_id is not None else None,
            first_name=_text(data.get("firstName")),
            last_name=_text(data.get("lastName")),
            family_branch=_text(data.get("familyBranch")) or None,
            relationship=_text(data.get("relationship")) or None,
            birth_month=data.get("birthMonth") or None,
            birth_day=_int_or_none(data.get("birthDay")),
            birth_year=_int_or_none(data.get("birthYear")),
            mobile_phone=_text(data.get("mobilePhone")),
            home_phone=_text(data.get("homePhone")),
            work_phone=_text(data.get("workPhone")),
            email=_text(data.get("email")),
            address=_text(data.get("address")),
            city=_text(data.get("city")),
            state=_text(data.get("state")),
            zip_code=_text(data.get("zipCode")),
            anniversary_date=_text(data.get("anniversaryDate")),
            notes=_text(data.get("notes")),
        )


@dataclass(frozen=True)
class LegacyBranch:
    """A branch from the old system; members reference it by name."""

    name: str
    branch_type: str | None = None
    generation_level: int = 0
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LegacyBranch":
        return cls(
            name=_text(data.get("name")),
            branch_type=data.get("branchType"),
            generation_level=_int_or_none(data.get("generationLevel")) or 0,
            description=_text(data.get("description")),
        )


@dataclass(frozen=True)
class MigrationResult:
    """Counts of records created by one migration run."""

    people_created: int = 0
    families_created: int = 0
    relationships_created: int = 0
    # legacy member id -> new person id (members without an id are omitted)
    person_ids: dict[str, str] = field(default_factory=dict)
