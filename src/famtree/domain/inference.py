"""Pure helpers shared by the store and the migration: ages, roles, birthdays."""

import calendar
from datetime import date, timedelta

from famtree.domain.entities import (
    FAMILY_TYPE_ANCESTRAL,
    FAMILY_TYPE_EXTENDED,
    FAMILY_TYPE_NUCLEAR,
    ROLE_ADULT_CHILD,
    ROLE_CHILD,
    ROLE_PARENT,
    ROLE_SPOUSE,
)

# Assumed age when the birth year is unknown.
DEFAULT_AGE = 25

PARENT_MIN_AGE = 50
ADULT_MIN_AGE = 18

# Checked in order; the first role with a keyword in the hint wins.
_ROLE_KEYWORDS = (
    (ROLE_PARENT, ("parent", "father", "mother")),
    (ROLE_CHILD, ("child", "son", "daughter")),
    (ROLE_SPOUSE, ("spouse", "husband", "wife")),
)

_BRANCH_TYPE_TO_FAMILY_TYPE = {
    "nuclear_family": FAMILY_TYPE_NUCLEAR,
    "grandparent_branch": FAMILY_TYPE_EXTENDED,
    "ancestral_branch": FAMILY_TYPE_ANCESTRAL,
    "extended_family": FAMILY_TYPE_EXTENDED,
}

_MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}


def calculate_age(birth_year: int | None, today: date | None = None) -> int:
    """Years since birth_year (calendar difference), or DEFAULT_AGE when unknown."""
    if not birth_year:
        return DEFAULT_AGE
    today = today or date.today()
    return today.year - int(birth_year)


def infer_role(hint: str | None = None, age: int | None = None) -> str:
    """Guess a family role from a free-text label, falling back to age.

    "Father", "stepmother" -> parent; "son", "grandchild" -> child;
    "wife" -> spouse. Without a recognizable label: 50+ is a parent,
    18-49 an adult child, younger a child. Unknown age counts as DEFAULT_AGE.
    """
    if hint:
        text = hint.lower()
        for role, keywords in _ROLE_KEYWORDS:
            if any(k in text for k in keywords):
                return role
    if age is None:
        age = DEFAULT_AGE
    if age >= PARENT_MIN_AGE:
        return ROLE_PARENT
    if age >= ADULT_MIN_AGE:
        return ROLE_ADULT_CHILD
    return ROLE_CHILD


def family_type_for_branch(branch_type: str | None) -> str:
    """Map a legacy branch type tag to a family type; unknown tags become nuclear."""
    return _BRANCH_TYPE_TO_FAMILY_TYPE.get(branch_type or "", FAMILY_TYPE_NUCLEAR)


def month_number(month: str | int | None) -> int | None:
    """'January'/'january'/1 -> 1. Returns None for anything unrecognized."""
    if month is None:
        return None
    if isinstance(month, int):
        return month if 1 <= month <= 12 else None
    text = str(month).strip().lower()
    if text.isdigit():
        return month_number(int(text))
    return _MONTHS.get(text)


def _occurrence(year: int, month: int, day: int) -> date:
    # Days past the end of the month spill into the next one (Feb 29 -> Mar 1).
    return date(year, month, 1) + timedelta(days=day - 1)


def next_birthday(
    birth_month: str | int | None,
    birth_day: int | str | None,
    today: date | None = None,
) -> date | None:
    """Next occurrence of month/day on or after today, or None if either is unknown."""
    month = month_number(birth_month)
    try:
        day = int(birth_day) if birth_day not in (None, "") else None
    except (TypeError, ValueError):
        day = None
    if month is None or not day or day < 1:
        return None
    today = today or date.today()
    birthday = _occurrence(today.year, month, day)
    if birthday < today:
        birthday = _occurrence(today.year + 1, month, day)
    return birthday
