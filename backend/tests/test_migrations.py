import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

MIGRATION = Path(__file__).resolve().parent.parent / "alembic" / "versions" / "202610190001_admin_identity.py"


def _load_migration():
    module_spec = importlib.util.spec_from_file_location("admin_identity_migration", MIGRATION)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrated_engine():
    engine = create_engine("sqlite://")
    migration = _load_migration()
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
    yield engine
    engine.dispose()


def test_email_index_is_unique(migrated_engine):
    indexes = {ix["name"]: ix for ix in inspect(migrated_engine).get_indexes("admin_accounts")}

    assert bool(indexes["ix_admin_accounts_email"]["unique"]) is True
    assert indexes["ix_admin_accounts_email"]["column_names"] == ["email"]


def test_duplicate_email_rejected_by_schema(migrated_engine):
    insert = text(
        "INSERT INTO admin_accounts (id, name, email, password_hash) VALUES (:id, 'A', 'a@x.com', 'h')"
    )
    with migrated_engine.begin() as conn:
        conn.execute(insert, {"id": "1"})

    with pytest.raises(IntegrityError):
        with migrated_engine.begin() as conn:
            conn.execute(insert, {"id": "2"})
