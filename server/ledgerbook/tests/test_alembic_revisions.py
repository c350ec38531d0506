import re
from pathlib import Path

from ledgerbook.db import Base
from ledgerbook import models  # noqa: F401

VERSIONS_DIR = Path(__file__).resolve().parents[2] / "alembic" / "versions"


def _revision_field(text: str, name: str):
    match = re.search(rf'^{name} = "([^"]+)"', text, re.MULTILINE)
    return match.group(1) if match else None


def test_alembic_revision_ids_fit_version_table_limit():
    """alembic_version.version_num is varchar(32) on Postgres."""
    too_long: list[tuple[str, str, int]] = []

    for migration_file in VERSIONS_DIR.glob("*.py"):
        revision = _revision_field(migration_file.read_text(encoding="utf-8"), "revision")
        if revision and len(revision) > 32:
            too_long.append((migration_file.name, revision, len(revision)))

    assert not too_long, (
        "Alembic revision IDs must be <= 32 chars to fit alembic_version.version_num. "
        f"Found: {too_long}"
    )


def test_migrations_form_a_single_chain():
    revisions = {}
    for migration_file in VERSIONS_DIR.glob("*.py"):
        text = migration_file.read_text(encoding="utf-8")
        revisions[_revision_field(text, "revision")] = _revision_field(text, "down_revision")

    parents = [parent for parent in revisions.values() if parent]
    heads = [revision for revision in revisions if revision not in parents]
    assert len(heads) == 1
    assert all(parent in revisions for parent in parents)


def test_migrations_create_every_model_table():
    created = set()
    for migration_file in VERSIONS_DIR.glob("*.py"):
        created.update(re.findall(r'op\.create_table\(\s*"(\w+)"', migration_file.read_text(encoding="utf-8")))

    assert set(Base.metadata.tables) <= created
