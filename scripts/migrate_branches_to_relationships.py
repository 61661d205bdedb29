#!/usr/bin/env python3
"""One-off migration: convert the branch-based family data into people,
families and relationships.

Reads the legacy JSON export ({"familyMembers": [...], "familyBranches": [...]}),
creates one Person per member, one Family per branch with a Relationship per
branch member, and auto-groups unassigned members sharing a last name. Run
from repo root with .env (NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD).
NOT idempotent: a second run creates duplicates. A failed run leaves the
records created so far in place; inspect and clean up before retrying.
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from dotenv import load_dotenv  # noqa: E402
from neo4j import GraphDatabase  # noqa: E402

from famtree.application import (  # noqa: E402
    LegacyBranch,
    LegacyMember,
    MigrationError,
    MigrationTransformer,
    RelationshipStore,
    estimate_families,
)
from famtree.infrastructure import Neo4jDocumentStore, ensure_id_constraints  # noqa: E402

load_dotenv(REPO_ROOT / ".env")

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)


def load_export(path: Path) -> tuple[list[LegacyMember], list[LegacyBranch]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    members = [LegacyMember.from_dict(m) for m in data.get("familyMembers") or []]
    branches = [LegacyBranch.from_dict(b) for b in data.get("familyBranches") or []]
    return members, branches


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("export", type=Path, help="legacy JSON export file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="only print what the migration would create",
    )
    args = parser.parse_args(argv)

    members, branches = load_export(args.export)
    if not members:
        print("No data to migrate. The export has no family members.")
        return 0
    print(
        f"Found {len(members)} member(s) and {len(branches)} branch(es); "
        f"about {estimate_families(members, branches)} family(ies) will be created."
    )
    if args.dry_run:
        return 0

    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    driver = GraphDatabase.driver(uri, auth=(user, password))
    try:
        ensure_id_constraints(driver)
        store = RelationshipStore(Neo4jDocumentStore(driver))
        try:
            result = MigrationTransformer(store).migrate(members, branches)
        except MigrationError as e:
            p = e.progress
            print(
                f"{e}\nCreated before the failure: {p.people_created} people, "
                f"{p.families_created} families, {p.relationships_created} relationships.",
                file=sys.stderr,
            )
            return 1
        print(
            f"Migration complete! Created {result.people_created} people, "
            f"{result.families_created} families, "
            f"{result.relationships_created} relationships."
        )
        return 0
    finally:
        driver.close()


if __name__ == "__main__":
    sys.exit(main())
