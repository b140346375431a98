# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Repository boundary for Treasury FinSight.

This module defines:

- the read-only ``MovementRepository`` interface the service layer fetches
  snapshots from,
- the filters accepted by its queries (``MovementFilter``, ``AccountFilter``),
- the single validated construction path turning loosely-typed records
  (dicts coming from CSV files, SQLite rows or an HTTP API) into domain
  objects: ``movement_from_record``, ``account_from_record``, ...
- ``InMemoryMovementRepository``, a repository over in-memory objects.

Record normalization
--------------------
Kind and status strings are matched case-insensitively against a list of
synonyms and collapsed into the ``MovementKind`` / ``MovementStatus`` enums:

    INCOME          <- INCOME, INGRESO, COBRO
    EXPENSE         <- EXPENSE, GASTO, PAGO, RETIRO
    INVESTMENT_IN   <- INVESTMENT_IN, APORTE, DEVOLUCION
    INVESTMENT_OUT  <- INVESTMENT_OUT, INVERSION

    CONFIRMED       <- CONFIRMED, CONFIRMADO
    PENDING         <- PENDING, PENDIENTE

Field names also accept the legacy column names of the data store
(``fecha``, ``tipo``, ``estado``, ``monto_ars``, ``monto_usd``, ...).

Malformed records (missing id, unknown kind or status, negative or
non-numeric amount) are rejected with ``ValidationError``. A missing or
unparseable date is *not* an error: the movement is built with
``date=None`` and excluded from every computation downstream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import pandas as pd

from .exceptions import ValidationError
from .models import (
    Account,
    AccountStatus,
    Client,
    Movement,
    MovementKind,
    MovementStatus,
    Project,
    Provider,
)

# ---------------------------------------------------------------------------
# Synonyms and field aliases
# ---------------------------------------------------------------------------

KIND_SYNONYMS: dict[str, MovementKind] = {
    "INCOME": MovementKind.INCOME,
    "INGRESO": MovementKind.INCOME,
    "COBRO": MovementKind.INCOME,
    "EXPENSE": MovementKind.EXPENSE,
    "GASTO": MovementKind.EXPENSE,
    "PAGO": MovementKind.EXPENSE,
    "RETIRO": MovementKind.EXPENSE,
    "INVESTMENT_IN": MovementKind.INVESTMENT_IN,
    "APORTE": MovementKind.INVESTMENT_IN,
    "DEVOLUCION": MovementKind.INVESTMENT_IN,
    "INVESTMENT_OUT": MovementKind.INVESTMENT_OUT,
    "INVERSION": MovementKind.INVESTMENT_OUT,
}

STATUS_SYNONYMS: dict[str, MovementStatus] = {
    "CONFIRMED": MovementStatus.CONFIRMED,
    "CONFIRMADO": MovementStatus.CONFIRMED,
    "PENDING": MovementStatus.PENDING,
    "PENDIENTE": MovementStatus.PENDING,
}

ACCOUNT_STATUS_SYNONYMS: dict[str, AccountStatus] = {
    "ACTIVE": AccountStatus.ACTIVE,
    "ACTIVA": AccountStatus.ACTIVE,
    "INACTIVE": AccountStatus.INACTIVE,
    "INACTIVA": AccountStatus.INACTIVE,
}

MOVEMENT_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "date": ("date", "fecha"),
    "kind": ("kind", "tipo"),
    "status": ("status", "estado"),
    "amount_primary": ("amount_primary", "monto_ars"),
    "amount_secondary": ("amount_secondary", "monto_usd"),
    "account_id": ("account_id", "cuenta_id"),
    "project_id": ("project_id", "proyecto_id"),
    "provider_id": ("provider_id", "proveedor_id"),
    "is_deleted": ("is_deleted",),
}

ACCOUNT_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "name": ("name", "titulo"),
    "type": ("type", "tipo"),
    "current_balance": ("current_balance", "balance", "saldo"),
    "status": ("status", "estado"),
    "currency": ("currency", "moneda"),
}

# ---------------------------------------------------------------------------
# Low-level value parsing
# ---------------------------------------------------------------------------


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _get(record: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in record and not _is_missing(record[key]):
            return record[key]
    return None


def _parse_id(value: Any) -> str | None:
    if _is_missing(value):
        return None
    # Integral floats come from CSV columns holding empty cells.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _require_id(value: Any, field_name: str) -> str:
    parsed = _parse_id(value)
    if parsed is None:
        raise ValidationError(f"Missing required field '{field_name}'.")
    return parsed


def _parse_date(value: Any) -> date | None:
    """Parse a date, returning None when it cannot be parsed."""
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _parse_amount(value: Any, field_name: str, required: bool) -> float | None:
    if _is_missing(value):
        if required:
            raise ValidationError(f"Missing required amount '{field_name}'.")
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid numeric value for '{field_name}': {value!r}."
        ) from exc
    if amount != amount:  # NaN
        raise ValidationError(f"Invalid numeric value for '{field_name}': NaN.")
    if amount < 0:
        raise ValidationError(
            f"Amount '{field_name}' must be a non-negative magnitude, got {amount}."
        )
    return amount


def _parse_bool(value: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "y"}
    return bool(value)


def parse_kind(value: Any) -> MovementKind:
    if isinstance(value, MovementKind):
        return value
    key = str(value).strip().upper() if not _is_missing(value) else ""
    try:
        return KIND_SYNONYMS[key]
    except KeyError as exc:
        raise ValidationError(f"Unknown movement kind: {value!r}.") from exc


def parse_status(value: Any) -> MovementStatus:
    if isinstance(value, MovementStatus):
        return value
    key = str(value).strip().upper() if not _is_missing(value) else ""
    try:
        return STATUS_SYNONYMS[key]
    except KeyError as exc:
        raise ValidationError(f"Unknown movement status: {value!r}.") from exc


def parse_account_status(value: Any) -> AccountStatus:
    if isinstance(value, AccountStatus):
        return value
    if _is_missing(value):
        return AccountStatus.ACTIVE
    try:
        return ACCOUNT_STATUS_SYNONYMS[str(value).strip().upper()]
    except KeyError as exc:
        raise ValidationError(f"Unknown account status: {value!r}.") from exc


# ---------------------------------------------------------------------------
# Record -> domain object
# ---------------------------------------------------------------------------


def movement_from_record(record: Mapping[str, Any]) -> Movement:
    """
    Build a Movement from a loosely-typed record.

    Raises:
        ValidationError: if the record is malformed (see module docstring).
    """
    f = MOVEMENT_FIELDS
    movement_id = _require_id(_get(record, f["id"]), "id")
    try:
        return Movement(
            id=movement_id,
            date=_parse_date(_get(record, f["date"])),
            kind=parse_kind(_get(record, f["kind"])),
            status=parse_status(_get(record, f["status"])),
            amount_primary=_parse_amount(
                _get(record, f["amount_primary"]), "amount_primary", required=True
            ),
            amount_secondary=_parse_amount(
                _get(record, f["amount_secondary"]), "amount_secondary", required=False
            ),
            account_id=_parse_id(_get(record, f["account_id"])),
            project_id=_parse_id(_get(record, f["project_id"])),
            provider_id=_parse_id(_get(record, f["provider_id"])),
            is_deleted=_parse_bool(_get(record, f["is_deleted"])),
        )
    except ValidationError as exc:
        raise ValidationError(f"Movement {movement_id!r}: {exc}") from exc


def account_from_record(record: Mapping[str, Any]) -> Account:
    """Build an Account from a loosely-typed record."""
    f = ACCOUNT_FIELDS
    account_id = _require_id(_get(record, f["id"]), "id")

    raw_balance = _get(record, f["current_balance"])
    try:
        balance = 0.0 if raw_balance is None else float(raw_balance)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Account {account_id!r}: invalid balance {raw_balance!r}."
        ) from exc

    name = _get(record, f["name"])
    account_type = _get(record, f["type"])
    currency = _get(record, f["currency"])
    return Account(
        id=account_id,
        name=str(name) if name is not None else account_id,
        type=str(account_type) if account_type is not None else "",
        current_balance=balance,
        status=parse_account_status(_get(record, f["status"])),
        currency=str(currency).upper() if currency is not None else None,
    )


def project_from_record(record: Mapping[str, Any]) -> Project:
    project_id = _require_id(_get(record, ("id",)), "id")
    name = _get(record, ("name", "nombre"))
    return Project(
        id=project_id,
        name=str(name) if name is not None else project_id,
        client_id=_parse_id(_get(record, ("client_id", "cliente_id"))),
    )


def provider_from_record(record: Mapping[str, Any]) -> Provider:
    provider_id = _require_id(_get(record, ("id",)), "id")
    name = _get(record, ("name", "nombre"))
    return Provider(id=provider_id, name=str(name) if name is not None else provider_id)


def client_from_record(record: Mapping[str, Any]) -> Client:
    client_id = _require_id(_get(record, ("id",)), "id")
    name = _get(record, ("name", "nombre"))
    return Client(id=client_id, name=str(name) if name is not None else client_id)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MovementFilter:
    """
    Filters used to query movements.

    The filters can be combined. Date bounds are inclusive; movements
    without a date never match a date bound.

    Attributes
    ----------
    start, end:
        Inclusive date bounds.
    statuses:
        Keep only these statuses (all statuses if None).
    account_id, project_id:
        Restrict to one account or one project.
    include_deleted:
        If False (default), soft-deleted movements are excluded.
    """

    start: date | None = None
    end: date | None = None
    statuses: frozenset[MovementStatus] | None = None
    account_id: str | None = None
    project_id: str | None = None
    include_deleted: bool = False

    def matches(self, movement: Movement) -> bool:
        if not self.include_deleted and movement.is_deleted:
            return False
        if self.statuses is not None and movement.status not in self.statuses:
            return False
        if self.account_id is not None and movement.account_id != self.account_id:
            return False
        if self.project_id is not None and movement.project_id != self.project_id:
            return False
        if self.start is not None or self.end is not None:
            if movement.date is None:
                return False
            if self.start is not None and movement.date < self.start:
                return False
            if self.end is not None and movement.date > self.end:
                return False
        return True


@dataclass(frozen=True)
class AccountFilter:
    """Filters used to query accounts."""

    active_only: bool = False

    def matches(self, account: Account) -> bool:
        return account.is_active or not self.active_only


# ---------------------------------------------------------------------------
# Repository interface
# ---------------------------------------------------------------------------


class MovementRepository(ABC):
    """
    Read-only access to the data store.

    Results are assumed eventually fresh: each call returns whatever the
    store holds at that time, with no transactional snapshot across calls.
    Failures of the underlying store propagate to the caller.
    """

    @abstractmethod
    def list_movements(self, movement_filter: MovementFilter | None = None) -> list[Movement]:
        raise NotImplementedError

    @abstractmethod
    def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        raise NotImplementedError

    @abstractmethod
    def list_projects(self) -> list[Project]:
        raise NotImplementedError

    @abstractmethod
    def list_providers(self) -> list[Provider]:
        raise NotImplementedError

    @abstractmethod
    def list_clients(self) -> list[Client]:
        raise NotImplementedError


class InMemoryMovementRepository(MovementRepository):
    """Repository over domain objects held in memory."""

    def __init__(
        self,
        movements: Iterable[Movement] = (),
        accounts: Iterable[Account] = (),
        projects: Iterable[Project] = (),
        providers: Iterable[Provider] = (),
        clients: Iterable[Client] = (),
    ) -> None:
        self._movements = tuple(movements)
        self._accounts = tuple(accounts)
        self._projects = tuple(projects)
        self._providers = tuple(providers)
        self._clients = tuple(clients)

    @classmethod
    def from_records(
        cls,
        movements: Iterable[Mapping[str, Any]] = (),
        accounts: Iterable[Mapping[str, Any]] = (),
        projects: Iterable[Mapping[str, Any]] = (),
        providers: Iterable[Mapping[str, Any]] = (),
        clients: Iterable[Mapping[str, Any]] = (),
    ) -> "InMemoryMovementRepository":
        """Build a repository from raw records, validating each of them."""
        return cls(
            movements=[movement_from_record(r) for r in movements],
            accounts=[account_from_record(r) for r in accounts],
            projects=[project_from_record(r) for r in projects],
            providers=[provider_from_record(r) for r in providers],
            clients=[client_from_record(r) for r in clients],
        )

    def list_movements(self, movement_filter: MovementFilter | None = None) -> list[Movement]:
        mf = movement_filter or MovementFilter()
        return [m for m in self._movements if mf.matches(m)]

    def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        af = account_filter or AccountFilter()
        return [a for a in self._accounts if af.matches(a)]

    def list_projects(self) -> list[Project]:
        return list(self._projects)

    def list_providers(self) -> list[Provider]:
        return list(self._providers)

    def list_clients(self) -> list[Client]:
        return list(self._clients)
