# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
CSV I/O for Treasury FinSight.

This module exposes ``CsvMovementRepository``, a read-only repository over a
directory of CSV exports of the data store:

    movements.csv   id, date, kind, status, amount_primary, amount_secondary,
                    account_id, project_id, provider_id, is_deleted
    accounts.csv    id, name, type, current_balance, status, currency
    projects.csv    id, name, client_id
    providers.csv   id, name
    clients.csv     id, name

Column names are case-insensitive and the legacy column names of the data
store are accepted as aliases (see ``repository.py``). Every cell is read as
text and converted by the repository's record normalization, so that
identifiers keep their exact spelling and empty cells are treated as
missing values.

A missing file is treated as an empty table. Files are re-read on every
query: the repository holds no cache.
"""

import os
from pathlib import Path
from typing import Any, Union

import pandas as pd

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

MOVEMENTS_FILE = "movements.csv"
ACCOUNTS_FILE = "accounts.csv"
PROJECTS_FILE = "projects.csv"
PROVIDERS_FILE = "providers.csv"
CLIENTS_FILE = "clients.csv"


def read_records(path: Union[str, "os.PathLike[str]"]) -> list[dict[str, Any]]:
    """
    Read a CSV file into a list of records with lower-case column names.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    list[dict[str, Any]]
        One dict per row. Empty cells are returned as empty strings.
        An empty list is returned if the file does not exist.

    Raises
    ------
    RepositoryError
        If the file exists but cannot be read or parsed.
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        logger.warning("CSV file not found, treated as empty: %s", csv_path)
        return []

    try:
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    except (OSError, ValueError, pd.errors.ParserError) as exc:
        raise RepositoryError(f"Failed to read CSV file: {csv_path}") from exc

    # Normalize column names to lowercase (to make lookups case-insensitive)
    df.columns = [str(c).lower().strip() for c in df.columns]
    return df.to_dict(orient="records")


class CsvMovementRepository(MovementRepository):
    """Read-only repository over a directory of CSV files."""

    def __init__(self, directory: Union[str, "os.PathLike[str]"]) -> None:
        self.directory = Path(directory)

    def _records(self, filename: str) -> list[dict[str, Any]]:
        records = read_records(self.directory / filename)
        logger.debug("Read %d rows from %s", len(records), filename)
        return records

    def list_movements(self, movement_filter: MovementFilter | None = None) -> list[Movement]:
        mf = movement_filter or MovementFilter()
        movements = [movement_from_record(r) for r in self._records(MOVEMENTS_FILE)]
        return [m for m in movements if mf.matches(m)]

    def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        af = account_filter or AccountFilter()
        accounts = [account_from_record(r) for r in self._records(ACCOUNTS_FILE)]
        return [a for a in accounts if af.matches(a)]

    def list_projects(self) -> list[Project]:
        return [project_from_record(r) for r in self._records(PROJECTS_FILE)]

    def list_providers(self) -> list[Provider]:
        return [provider_from_record(r) for r in self._records(PROVIDERS_FILE)]

    def list_clients(self) -> list[Client]:
        return [client_from_record(r) for r in self._records(CLIENTS_FILE)]
