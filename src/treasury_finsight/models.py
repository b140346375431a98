# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Domain model for Treasury FinSight.

The engines only ever see the normalized types defined here. Raw records
coming from a data store (with free-form kind/status strings, text dates,
optional amounts) are converted by the construction helpers of
``repository.py``; nothing in this module parses text.

Movement sign
-------------
A movement stores a non-negative magnitude. Its sign is derived from its
kind:

    INCOME, INVESTMENT_IN      -> credit (+1)
    EXPENSE, INVESTMENT_OUT    -> debit  (-1)

Countable movements
-------------------
A movement that is soft-deleted, or whose date could not be parsed
(``date is None``), is excluded from every computation. Use
``Movement.is_countable`` rather than testing both conditions at call sites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class MovementKind(str, Enum):
    """Closed set of movement kinds."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    INVESTMENT_IN = "INVESTMENT_IN"
    INVESTMENT_OUT = "INVESTMENT_OUT"

    @property
    def is_credit(self) -> bool:
        return self in (MovementKind.INCOME, MovementKind.INVESTMENT_IN)

    @property
    def sign(self) -> int:
        return 1 if self.is_credit else -1

    @property
    def group(self) -> KindGroup:
        return KindGroup.INCOME if self.is_credit else KindGroup.EXPENSE


class KindGroup(str, Enum):
    """Income side (credit kinds) or expense side (debit kinds)."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def kinds(self) -> frozenset[MovementKind]:
        return frozenset(k for k in MovementKind if k.group is self)


class MovementStatus(str, Enum):
    """Settlement status of a movement."""

    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Movement:
    """
    A single dated financial event.

    Attributes
    ----------
    id:
        Unique identifier of the movement.
    date:
        Calendar date of the movement, or None when the source date could
        not be parsed.
    kind, status:
        Normalized kind and settlement status.
    amount_primary:
        Non-negative magnitude in the primary reporting currency.
    amount_secondary:
        Optional non-negative magnitude in the secondary currency.
    account_id, project_id, provider_id:
        Optional references to the account, project and provider.
    is_deleted:
        Soft-delete flag.
    """

    id: str
    date: date | None
    kind: MovementKind
    status: MovementStatus
    amount_primary: float
    amount_secondary: float | None = None
    account_id: str | None = None
    project_id: str | None = None
    provider_id: str | None = None
    is_deleted: bool = False

    @property
    def is_countable(self) -> bool:
        """True when the movement takes part in computations."""
        return not self.is_deleted and self.date is not None

    @property
    def is_confirmed(self) -> bool:
        return self.status is MovementStatus.CONFIRMED

    def signed_amount(self, amount: float) -> float:
        """Apply the sign derived from the kind to a magnitude."""
        return self.kind.sign * amount


@dataclass(frozen=True)
class Account:
    """A cash-holding account with its realized balance as of today."""

    id: str
    name: str
    type: str
    current_balance: float
    status: AccountStatus = AccountStatus.ACTIVE
    currency: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    client_id: str | None = None


@dataclass(frozen=True)
class Provider:
    id: str
    name: str


@dataclass(frozen=True)
class Client:
    id: str
    name: str


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable set of records a computation runs over.

    A snapshot is assembled by the caller (usually ``TreasuryService``) from
    whatever the repository returned; consistency between account balances
    and past movements is the responsibility of the data store.
    """

    movements: tuple[Movement, ...] = ()
    accounts: tuple[Account, ...] = ()
    projects: tuple[Project, ...] = ()
    providers: tuple[Provider, ...] = ()
    clients: tuple[Client, ...] = ()

    _projects_by_id: dict[str, Project] = field(
        init=False, repr=False, compare=False
    )
    _providers_by_id: dict[str, Provider] = field(
        init=False, repr=False, compare=False
    )
    _clients_by_id: dict[str, Client] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept any iterable and freeze it.
        for name in ("movements", "accounts", "projects", "providers", "clients"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(
            self, "_projects_by_id", {p.id: p for p in self.projects}
        )
        object.__setattr__(
            self, "_providers_by_id", {p.id: p for p in self.providers}
        )
        object.__setattr__(self, "_clients_by_id", {c.id: c for c in self.clients})

    def project(self, project_id: str | None) -> Project | None:
        if project_id is None:
            return None
        return self._projects_by_id.get(project_id)

    def project_name(self, project_id: str) -> str:
        project = self.project(project_id)
        return project.name if project is not None else project_id

    def provider_name(self, provider_id: str) -> str:
        provider = self._providers_by_id.get(provider_id)
        return provider.name if provider is not None else provider_id

    def client_name(self, client_id: str) -> str:
        client = self._clients_by_id.get(client_id)
        return client.name if client is not None else client_id

    def client_id_for_project(self, project_id: str | None) -> str | None:
        """Resolve Movement -> Project -> Client, or None if unresolvable."""
        project = self.project(project_id)
        if project is None:
            return None
        return project.client_id
