import sqlite3
from datetime import date

import pytest

from treasury_finsight.db import DatabaseConfig, SqliteMovementRepository, init_database
from treasury_finsight.exceptions import RepositoryError
from treasury_finsight.models import MovementKind, MovementStatus
from treasury_finsight.repository import AccountFilter, MovementFilter


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "db" / "treasury.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


@pytest.fixture
def populated_cfg(tmp_path) -> DatabaseConfig:
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    conn = sqlite3.connect(cfg.path)
    with conn:
        conn.executemany(
            """
            INSERT INTO movements (id, date, kind, status, amount_primary_cents,
                                   amount_secondary_cents, account_id, project_id,
                                   provider_id, is_deleted)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                ("m1", "2025-03-05", "INGRESO", "CONFIRMADO", 100050, 1000, "a1", "p1", None, 0),
                ("m2", "2025-03-20", "EXPENSE", "PENDING", 20000, None, "a1", None, "v1", 0),
                ("m3", "2025-04-01", "GASTO", "CONFIRMADO", 5000, None, "a2", "p1", None, 0),
                ("m4", "2025-03-07", "INCOME", "CONFIRMED", 999, None, "a1", "p1", None, 1),
            ],
        )
        conn.executemany(
            "INSERT INTO accounts (id, name, type, current_balance_cents, status, currency)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            [
                ("a1", "Bank", "bank", 150000, "active", "ARS"),
                ("a2", "Cash", "cash", -2550, "ACTIVA", None),
                ("a3", "Old", "bank", 0, "inactive", None),
            ],
        )
        conn.execute("INSERT INTO projects VALUES ('p1', 'Alpha', 'c1')")
        conn.execute("INSERT INTO providers VALUES ('v1', 'Vendor One')")
        conn.execute("INSERT INTO clients VALUES ('c1', 'Acme')")
    conn.close()
    return cfg


def test_init_database_creates_file_and_schema(tmp_path) -> None:
    """init_database should create the SQLite file (and its folder) and the schema."""
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    assert cfg.path.exists()

    repo = SqliteMovementRepository(cfg)
    assert repo.list_movements() == []
    assert repo.list_accounts() == []


def test_init_database_is_idempotent(populated_cfg) -> None:
    init_database(populated_cfg)

    assert len(SqliteMovementRepository(populated_cfg).list_movements()) == 3


def test_list_movements_converts_cents_and_synonyms(populated_cfg) -> None:
    movements = SqliteMovementRepository(populated_cfg).list_movements()

    assert [m.id for m in movements] == ["m1", "m2", "m3"]
    m1 = movements[0]
    assert m1.kind is MovementKind.INCOME
    assert m1.status is MovementStatus.CONFIRMED
    assert m1.amount_primary == pytest.approx(1000.5)
    assert m1.amount_secondary == pytest.approx(10.0)
    assert m1.date == date(2025, 3, 5)
    assert movements[1].amount_secondary is None


def test_list_movements_filters(populated_cfg) -> None:
    repo = SqliteMovementRepository(populated_cfg)

    march = repo.list_movements(
        MovementFilter(start=date(2025, 3, 1), end=date(2025, 3, 31))
    )
    assert [m.id for m in march] == ["m1", "m2"]

    by_project = repo.list_movements(MovementFilter(project_id="p1", include_deleted=True))
    assert [m.id for m in by_project] == ["m1", "m4", "m3"]

    pending = repo.list_movements(
        MovementFilter(statuses=frozenset({MovementStatus.PENDING}), account_id="a1")
    )
    assert [m.id for m in pending] == ["m2"]


def test_list_accounts(populated_cfg) -> None:
    repo = SqliteMovementRepository(populated_cfg)

    accounts = repo.list_accounts()
    assert [a.id for a in accounts] == ["a1", "a2", "a3"]
    assert accounts[1].current_balance == pytest.approx(-25.5)
    assert [a.id for a in repo.list_accounts(AccountFilter(active_only=True))] == [
        "a1",
        "a2",
    ]


def test_reference_tables(populated_cfg) -> None:
    repo = SqliteMovementRepository(populated_cfg)

    assert repo.list_projects()[0].client_id == "c1"
    assert repo.list_providers()[0].name == "Vendor One"
    assert repo.list_clients()[0].name == "Acme"


def test_unsupported_engine_is_rejected(tmp_path) -> None:
    with pytest.raises(RepositoryError):
        SqliteMovementRepository(DatabaseConfig(engine="postgres", path=tmp_path / "x"))


def test_missing_schema_raises_repository_error(tmp_path) -> None:
    """Querying a database without the schema fails with RepositoryError."""
    cfg = make_tmp_db_cfg(tmp_path)
    cfg.path.parent.mkdir(parents=True)
    sqlite3.connect(cfg.path).close()

    with pytest.raises(RepositoryError):
        SqliteMovementRepository(cfg).list_movements()
