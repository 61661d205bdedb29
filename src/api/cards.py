"""HTML cards for families, people and upcoming birthdays. Reads only from the store's cache."""

from datetime import date
from html import escape

from famtree.application import RelationshipStore, UpcomingBirthday
from famtree.domain import Family, Person, calculate_age, next_birthday
from famtree.infrastructure.phone import phone_href

FAMILY_TYPE_COLORS = {
    "nuclear": "#28a745",
    "extended": "#007bff",
    "ancestral": "#6f42c1",
    "mixed": "#fd7e14",
}
FAMILY_TYPE_ICONS = {
    "nuclear": "👨‍👩‍👧‍👦",
    "extended": "👪",
    "ancestral": "🌳",
    "mixed": "🏠",
}
FAMILY_TYPE_LABELS = {
    "nuclear": "Nuclear Family",
    "extended": "Extended Family",
    "ancestral": "Ancestral Line",
    "mixed": "Mixed Family",
}
DEFAULT_COLOR = "#6c757d"
DEFAULT_ICON = "👥"
DEFAULT_LABEL = "Family"

# Person cards flag birthdays this close.
BIRTHDAY_BADGE_DAYS = 30


def family_type_color(family_type: str) -> str:
    return FAMILY_TYPE_COLORS.get(family_type, DEFAULT_COLOR)


def _empty(title: str, message: str) -> str:
    return (
        '<div class="empty-state">'
        f"<h3>{escape(title)}</h3><p>{escape(message)}</p>"
        "</div>"
    )


def render_family_card(store: RelationshipStore, family: Family) -> str:
    """One family: type badge, then member names grouped by role."""
    color = family_type_color(family.family_type)
    icon = FAMILY_TYPE_ICONS.get(family.family_type, DEFAULT_ICON)
    label = FAMILY_TYPE_LABELS.get(family.family_type, DEFAULT_LABEL)

    by_role: dict[str, list[str]] = {}
    for member in store.family_members(family.id):
        if member.person is None:
            continue
        by_role.setdefault(member.role, []).append(member.person.full_name)
    roles = "".join(
        f'<div class="family-role"><strong>{escape(role)}s:</strong> '
        f"<span>{escape(', '.join(names))}</span></div>"
        for role, names in by_role.items()
    )
    return (
        f'<div class="family-card" data-family-id="{escape(family.id or "")}" '
        f'style="border-left: 4px solid {color};">'
        f'<h3 style="color: {color};">{icon} {escape(family.name)}</h3>'
        f'<p class="family-description">{escape(family.description or "")}</p>'
        f'<span class="family-type" style="color: {color};">{label}</span>'
        f'<div class="family-members">{roles}</div>'
        "</div>"
    )


def render_families_view(store: RelationshipStore, families: list[Family] | None = None) -> str:
    families = store.search_families() if families is None else families
    if not families:
        return _empty("No families yet", "Create your first family to get started!")
    return "".join(render_family_card(store, f) for f in families)


def _phone_line(phone: str, region: str | None) -> str:
    href = phone_href(phone, region)
    if href:
        return f'<div class="person-phone"><a href="{escape(href)}">📱 {escape(phone)}</a></div>'
    return f'<div class="person-phone">📱 {escape(phone)}</div>'


def render_person_card(
    store: RelationshipStore,
    person: Person,
    *,
    today: date | None = None,
    phone_region: str | None = None,
) -> str:
    """One person: age and birthday, families with roles, phone and email."""
    today = today or date.today()
    age = calculate_age(person.birth_year, today)
    badge = ""
    birthday = next_birthday(person.birth_month, person.birth_day, today)
    if birthday is not None:
        days_until = (birthday - today).days
        if days_until <= BIRTHDAY_BADGE_DAYS:
            badge = f'<span class="birthday-badge">🎂 {days_until} days</span>'

    families = [pf for pf in store.person_families(person.id) if pf.family]
    if families:
        family_lines = "".join(
            f'<div class="person-family">• {escape(pf.family.name)} ({escape(pf.role)})</div>'
            for pf in families
        )
    else:
        family_lines = '<span class="no-families">No families assigned</span>'

    contact = ""
    if person.mobile_phone:
        contact += _phone_line(person.mobile_phone, phone_region)
    if person.email:
        contact += f'<div class="person-email">✉️ {escape(person.email)}</div>'

    birthday_text = f"{person.birth_month or ''} {person.birth_day or ''}".strip()
    return (
        f'<div class="family-card person-card" data-person-id="{escape(person.id or "")}">'
        f"<h3>{escape(person.full_name)}</h3>"
        f"<p>Age: {age} | Birthday: {escape(birthday_text)}</p>"
        f"{badge}"
        f"<div><strong>Families:</strong>{family_lines}</div>"
        f"{contact}"
        "</div>"
    )


def render_people_grid(
    store: RelationshipStore,
    people: list[Person],
    *,
    today: date | None = None,
    phone_region: str | None = None,
) -> str:
    if not people:
        return _empty("No people found", "Add your first family member to get started!")
    return "".join(
        render_person_card(store, p, today=today, phone_region=phone_region)
        for p in people
    )


def _days_label(days_until: int) -> str:
    if days_until == 0:
        return "Today!"
    if days_until == 1:
        return "Tomorrow"
    return f"{days_until} days"


def _turning(b: UpcomingBirthday) -> int:
    if b.person.birth_year:
        return b.next_birthday.year - int(b.person.birth_year)
    return b.age + 1


def render_birthdays(birthdays: list[UpcomingBirthday], days_ahead: int = 30) -> str:
    if not birthdays:
        return (
            '<p class="no-birthdays">'
            f"No upcoming birthdays in the next {days_ahead} days</p>"
        )
    return "".join(
        '<div class="birthday-item">'
        f"<div><strong>{escape(b.person.full_name)}</strong>"
        f"<div>{escape(b.families or 'No family assigned')} • Turning {_turning(b)}</div></div>"
        f'<div><div class="days-until">{_days_label(b.days_until)}</div>'
        f"<div>{escape(b.person.birth_month or '')} {b.person.birth_day}</div></div>"
        "</div>"
        for b in birthdays
    )
