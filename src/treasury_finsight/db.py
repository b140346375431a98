# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
SQLite access layer for Treasury FinSight.

This module provides a read-only ``MovementRepository`` over a SQLite file
mirroring the treasury tables of the hosted data store. Treasury FinSight
never writes business data: the tables are fed by the application that owns
them (or by an export job).

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) movements
   - id                      TEXT PRIMARY KEY
   - date                    TEXT              -- ISO date "YYYY-MM-DD"
   - kind                    TEXT NOT NULL     -- kind or legacy synonym
   - status                  TEXT NOT NULL     -- status or legacy synonym
   - amount_primary_cents    INTEGER NOT NULL  -- magnitude in cents
   - amount_secondary_cents  INTEGER           -- magnitude in cents, optional
   - account_id              TEXT
   - project_id              TEXT
   - provider_id             TEXT
   - is_deleted              INTEGER NOT NULL DEFAULT 0

2) accounts
   - id                      TEXT PRIMARY KEY
   - name                    TEXT NOT NULL
   - type                    TEXT
   - current_balance_cents   INTEGER NOT NULL DEFAULT 0  -- signed
   - status                  TEXT NOT NULL DEFAULT 'active'
   - currency                TEXT

3) projects   (id TEXT PRIMARY KEY, name TEXT NOT NULL, client_id TEXT)
4) providers  (id TEXT PRIMARY KEY, name TEXT NOT NULL)
5) clients    (id TEXT PRIMARY KEY, name TEXT NOT NULL)

Amounts are stored as integer cents and converted back to floats when rows
are materialized. Kind and status values go through the same record
normalization as every other source (see ``repository.py``).

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- ``init_database`` creates the schema if needed; it is idempotent and is
  mainly used by local tooling and tests.
- Every query opens its own connection; errors raised by sqlite3 are
  re-raised as ``RepositoryError`` and never retried here.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import RepositoryError
from .logging import get_logger
from .models import Account, Client, Movement, Project, Provider
from .repository import (
    AccountFilter,
    MovementFilter,
    MovementRepository,
    account_from_record,
    client_from_record,
    movement_from_record,
    project_from_record,
    provider_from_record,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Treasury FinSight.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS movements (
        id                     TEXT PRIMARY KEY,
        date                   TEXT,
        kind                   TEXT NOT NULL,
        status                 TEXT NOT NULL,
        amount_primary_cents   INTEGER NOT NULL,
        amount_secondary_cents INTEGER,
        account_id             TEXT,
        project_id             TEXT,
        provider_id            TEXT,
        is_deleted             INTEGER NOT NULL DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id                    TEXT PRIMARY KEY,
        name                  TEXT NOT NULL,
        type                  TEXT,
        current_balance_cents INTEGER NOT NULL DEFAULT 0,
        status                TEXT NOT NULL DEFAULT 'active',
        currency              TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id        TEXT PRIMARY KEY,
        name      TEXT NOT NULL,
        client_id TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS providers (
        id   TEXT PRIMARY KEY,
        name TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS clients (
        id   TEXT PRIMARY KEY,
        name TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_movements_date ON movements(date);",
    "CREATE INDEX IF NOT EXISTS idx_movements_account ON movements(account_id);",
)


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configured engine is not SQLite."""
    if cfg.engine.lower() != "sqlite":
        raise RepositoryError(
            f"Unsupported database engine: {cfg.engine!r}. Only 'sqlite' is supported."
        )


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    try:
        return sqlite3.connect(cfg.path)
    except sqlite3.Error as exc:
        raise RepositoryError(f"Cannot open database {cfg.path}") from exc


def init_database(cfg: DatabaseConfig) -> None:
    """
    Create the SQLite file and the treasury schema if needed.

    This function is idempotent: existing tables are left untouched.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        with conn:
            for statement in _SCHEMA:
                conn.execute(statement)
    except sqlite3.Error as exc:
        raise RepositoryError(f"Failed to initialize database {cfg.path}") from exc
    finally:
        conn.close()


def _query(cfg: DatabaseConfig, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
    """Run a SELECT statement and return rows as dicts."""
    conn = _connect(cfg)
    try:
        conn.row_factory = sqlite3.Row
        rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error as exc:
        raise RepositoryError(f"Query failed on {cfg.path}: {exc}") from exc
    finally:
        conn.close()
    return [dict(row) for row in rows]


def _cents_to_amount(value: Any) -> float | None:
    if value is None:
        return None
    return int(value) / 100.0


class SqliteMovementRepository(MovementRepository):
    """Read-only repository over the SQLite treasury tables."""

    def __init__(self, cfg: DatabaseConfig) -> None:
        _ensure_sqlite(cfg)
        self.cfg = cfg

    def list_movements(self, movement_filter: MovementFilter | None = None) -> list[Movement]:
        mf = movement_filter or MovementFilter()

        # Deletion, account and project filters are pushed down to SQL.
        # Dates and statuses are checked after normalization because the
        # stored values may use legacy spellings.
        clauses: list[str] = []
        params: list[Any] = []
        if not mf.include_deleted:
            clauses.append("is_deleted = 0")
        if mf.account_id is not None:
            clauses.append("account_id = ?")
            params.append(mf.account_id)
        if mf.project_id is not None:
            clauses.append("project_id = ?")
            params.append(mf.project_id)

        sql = """
            SELECT id, date, kind, status,
                   amount_primary_cents, amount_secondary_cents,
                   account_id, project_id, provider_id, is_deleted
              FROM movements
        """
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date, id;"

        movements: list[Movement] = []
        for row in _query(self.cfg, sql, tuple(params)):
            row["amount_primary"] = _cents_to_amount(row.pop("amount_primary_cents"))
            row["amount_secondary"] = _cents_to_amount(
                row.pop("amount_secondary_cents")
            )
            movement = movement_from_record(row)
            if mf.matches(movement):
                movements.append(movement)

        logger.debug("Loaded %d movements from %s", len(movements), self.cfg.path)
        return movements

    def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        af = account_filter or AccountFilter()
        rows = _query(
            self.cfg,
            """
            SELECT id, name, type, current_balance_cents, status, currency
              FROM accounts
             ORDER BY name, id;
            """,
        )
        accounts: list[Account] = []
        for row in rows:
            row["current_balance"] = int(row.pop("current_balance_cents") or 0) / 100.0
            account = account_from_record(row)
            if af.matches(account):
                accounts.append(account)
        return accounts

    def list_projects(self) -> list[Project]:
        rows = _query(self.cfg, "SELECT id, name, client_id FROM projects ORDER BY id;")
        return [project_from_record(r) for r in rows]

    def list_providers(self) -> list[Provider]:
        rows = _query(self.cfg, "SELECT id, name FROM providers ORDER BY id;")
        return [provider_from_record(r) for r in rows]

    def list_clients(self) -> list[Client]:
        rows = _query(self.cfg, "SELECT id, name FROM clients ORDER BY id;")
        return [client_from_record(r) for r in rows]
