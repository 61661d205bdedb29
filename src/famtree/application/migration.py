"""One-shot migration from the branch-based model to people, families and relationships."""

import logging
from collections.abc import Iterable
from datetime import date

from famtree.application.dto import LegacyBranch, LegacyMember, MigrationResult
from famtree.application.relationship_store import RelationshipStore
from famtree.domain import (
    Family,
    Person,
    Relationship,
    calculate_age,
    family_type_for_branch,
    infer_role,
)
from famtree.domain.entities import FAMILY_TYPE_NUCLEAR

logger = logging.getLogger(__name__)

CREATED_BY_MIGRATION = "migration_from_old_system"
CREATED_BY_AUTO_GROUPING = "migration_auto_grouping"
AUTO_GROUP_GENERATION_LEVEL = 2
AUTO_GROUP_MIN_SIZE = 2


class MigrationError(RuntimeError):
    """A record creation failed mid-migration. Records created before it remain.

    progress holds what had been committed; nothing is rolled back, so the
    store needs manual inspection before any retry.
    """

    def __init__(self, message: str, progress: MigrationResult) -> None:
        super().__init__(message)
        self.progress = progress


def group_unassigned_by_last_name(
    members: Iterable[LegacyMember],
) -> dict[str, list[LegacyMember]]:
    """Members without a branch, bucketed by last name in first-seen order."""
    groups: dict[str, list[LegacyMember]] = {}
    for member in members:
        if member.is_unassigned:
            groups.setdefault(member.last_name, []).append(member)
    return groups


def estimate_families(
    members: Iterable[LegacyMember], branches: Iterable[LegacyBranch]
) -> int:
    """How many families migrate() would create: one per branch plus one per
    unassigned surname shared by at least two members."""
    groups = group_unassigned_by_last_name(members)
    auto_groups = sum(1 for g in groups.values() if len(g) >= AUTO_GROUP_MIN_SIZE)
    return len(list(branches)) + auto_groups


def _person_from_legacy(member: LegacyMember, created_by: str) -> Person:
    return Person(
        first_name=member.first_name,
        last_name=member.last_name,
        birth_month=member.birth_month,
        birth_day=member.birth_day,
        birth_year=member.birth_year,
        mobile_phone=member.mobile_phone,
        home_phone=member.home_phone,
        work_phone=member.work_phone,
        email=member.email,
        address=member.address,
        city=member.city,
        state=member.state,
        zip_code=member.zip_code,
        anniversary_date=member.anniversary_date,
        notes=member.notes,
        created_by=created_by,
    )


class MigrationTransformer:
    """Turns legacy members and branches into normalized records via the store."""

    def __init__(self, store: RelationshipStore, *, today: date | None = None) -> None:
        self._store = store
        self._today = today
        self._people = 0
        self._families = 0
        self._relationships = 0
        self._person_ids: dict[str, str] = {}

    def _age(self, member: LegacyMember) -> int:
        return calculate_age(member.birth_year, self._today or date.today())

    def migrate(
        self,
        members: Iterable[LegacyMember],
        branches: Iterable[LegacyBranch],
    ) -> MigrationResult:
        """Create one person per member, one family per branch, and auto-group
        unassigned members that share a last name. Reloads the store when done.

        Raises MigrationError on the first failed creation; earlier records stay.
        """
        members = list(members)
        branches = list(branches)
        self._people = 0
        self._families = 0
        self._relationships = 0
        self._person_ids = {}
        logger.info(
            "Starting migration of %d member(s) and %d branch(es)",
            len(members),
            len(branches),
        )
        try:
            new_ids = self._migrate_people(members)
            self._migrate_branches(members, branches, new_ids)
            self._group_unassigned(members, new_ids)
        except Exception as e:
            progress = self._progress()
            logger.error(
                "Migration aborted after %d people, %d families, %d relationships: %s",
                progress.people_created,
                progress.families_created,
                progress.relationships_created,
                e,
            )
            raise MigrationError(f"Migration failed: {e}", progress) from e

        result = self._progress()
        logger.info(
            "Migration completed: %d people, %d families, %d relationships",
            result.people_created,
            result.families_created,
            result.relationships_created,
        )
        self._store.load_all()
        return result

    def _progress(self) -> MigrationResult:
        return MigrationResult(
            people_created=self._people,
            families_created=self._families,
            relationships_created=self._relationships,
            person_ids=dict(self._person_ids),
        )

    def _migrate_people(self, members: list[LegacyMember]) -> list[str]:
        new_ids = []
        for member in members:
            person = self._store.add_person(
                _person_from_legacy(member, CREATED_BY_MIGRATION)
            )
            self._people += 1
            new_ids.append(person.id)
            if member.id is not None:
                self._person_ids[member.id] = person.id
        return new_ids

    def _link(
        self,
        person_id: str,
        family_id: str,
        role: str,
        label: str,
        created_by: str,
    ) -> None:
        self._store.add_relationship(
            Relationship(
                person_id=person_id,
                family_id=family_id,
                role=role,
                relationship_to_others=label,
                created_by=created_by,
            )
        )
        self._relationships += 1

    def _migrate_branches(
        self,
        members: list[LegacyMember],
        branches: list[LegacyBranch],
        new_ids: list[str],
    ) -> None:
        for branch in branches:
            family = self._store.create_family(
                Family(
                    name=branch.name,
                    description=branch.description,
                    family_type=family_type_for_branch(branch.branch_type),
                    generation_level=branch.generation_level or 0,
                    created_by=CREATED_BY_MIGRATION,
                )
            )
            self._families += 1
            for member, person_id in zip(members, new_ids):
                if member.family_branch != branch.name:
                    continue
                role = infer_role(member.relationship, self._age(member))
                self._link(
                    person_id,
                    family.id,
                    role,
                    member.relationship or "",
                    CREATED_BY_MIGRATION,
                )

    def _group_unassigned(self, members: list[LegacyMember], new_ids: list[str]) -> None:
        groups: dict[str, list[tuple[LegacyMember, str]]] = {}
        for member, person_id in zip(members, new_ids):
            if member.is_unassigned:
                groups.setdefault(member.last_name, []).append((member, person_id))
        for last_name, group in groups.items():
            if len(group) < AUTO_GROUP_MIN_SIZE:
                continue
            family = self._store.create_family(
                Family(
                    name=f"{last_name} Family",
                    description=f"Auto-created family for unassigned {last_name} members",
                    family_type=FAMILY_TYPE_NUCLEAR,
                    generation_level=AUTO_GROUP_GENERATION_LEVEL,
                    created_by=CREATED_BY_AUTO_GROUPING,
                )
            )
            self._families += 1
            for member, person_id in group:
                self._link(
                    person_id,
                    family.id,
                    infer_role(age=self._age(member)),
                    "",
                    CREATED_BY_AUTO_GROUPING,
                )
