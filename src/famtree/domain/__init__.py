"""Domain layer: entities and pure inference rules. No dependencies on outer layers."""

from famtree.domain.entities import (
    FAMILY_TYPES,
    Family,
    Person,
    Relationship,
)
from famtree.domain.inference import (
    DEFAULT_AGE,
    calculate_age,
    family_type_for_branch,
    infer_role,
    month_number,
    next_birthday,
)

__all__ = [
    "DEFAULT_AGE",
    "FAMILY_TYPES",
    "Family",
    "Person",
    "Relationship",
    "calculate_age",
    "family_type_for_branch",
    "infer_role",
    "month_number",
    "next_birthday",
]
