"""Domain entities: Person, Family, and the Relationship joining them."""

from dataclasses import dataclass
from datetime import datetime

FAMILY_TYPE_NUCLEAR = "nuclear"
FAMILY_TYPE_EXTENDED = "extended"
FAMILY_TYPE_ANCESTRAL = "ancestral"
FAMILY_TYPE_MIXED = "mixed"
FAMILY_TYPES = (
    FAMILY_TYPE_NUCLEAR,
    FAMILY_TYPE_EXTENDED,
    FAMILY_TYPE_ANCESTRAL,
    FAMILY_TYPE_MIXED,
)

# Roles are free-form tags; these are the ones the app itself assigns.
ROLE_PARENT = "parent"
ROLE_CHILD = "child"
ROLE_SPOUSE = "spouse"
ROLE_ADULT_CHILD = "adult_child"
ROLE_GUARDIAN = "guardian"


@dataclass(frozen=True)
class Person:
    """
    An individual with biographical and contact data, independent of any family.
    Never hard-deleted: archiving flips is_active and stamps deleted_at.
    """

    first_name: str = ""
    last_name: str = ""
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
    id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Family:
    """
    A named grouping of people. family_type is one of FAMILY_TYPES;
    generation_level is a depth hint (0 = unknown).
    """

    name: str = ""
    description: str = ""
    family_type: str = FAMILY_TYPE_NUCLEAR
    generation_level: int = 0
    id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class Relationship:
    """
    Binds one Person to one Family with a role.
    Meaningful only while both ends are active; archiving a Family archives
    its relationships, nothing else enforces the link.
    """

    person_id: str = ""
    family_id: str = ""
    role: str = ROLE_CHILD
    relationship_to_others: str = ""
    start_date: str | None = None
    end_date: str | None = None
    id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
