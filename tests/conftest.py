import itertools
from datetime import date

import pytest

from treasury_finsight.models import (
    Account,
    AccountStatus,
    Client,
    Movement,
    MovementKind,
    MovementStatus,
    Project,
    Provider,
    Snapshot,
)


@pytest.fixture
def make_movement():
    """Factory building confirmed movements with auto-generated ids."""
    counter = itertools.count(1)

    def _make(day, kind, amount, status=MovementStatus.CONFIRMED, **kwargs):
        kwargs.setdefault("id", f"m{next(counter)}")
        return Movement(
            date=day,
            kind=MovementKind(kind),
            status=MovementStatus(status),
            amount_primary=amount,
            **kwargs,
        )

    return _make


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(id="a1", name="Bank", type="bank", current_balance=1000.0),
        Account(id="a2", name="Cash", type="cash", current_balance=50.0),
        Account(
            id="a3",
            name="Old",
            type="bank",
            current_balance=500.0,
            status=AccountStatus.INACTIVE,
        ),
    ]


@pytest.fixture
def movements() -> list[Movement]:
    """
    Ledger used by most analytics tests.

    March 2025 (confirmed, not deleted):
        income  = 1000 + 500 + 300 + 250 = 2050
        expense = 200 + 400 + 100 + 50   = 750
    All confirmed movements ever: credits 2450, debits 850.
    """
    c = MovementStatus.CONFIRMED
    p = MovementStatus.PENDING
    return [
        Movement("m1", date(2025, 3, 5), MovementKind.INCOME, c, 1000.0, 10.0, "a1", "p1"),
        Movement("m2", date(2025, 3, 10), MovementKind.INCOME, c, 500.0, 5.0, "a1", "p2"),
        Movement("m3", date(2025, 3, 12), MovementKind.INCOME, c, 300.0, None, "a1", "p3"),
        Movement("m4", date(2025, 3, 15), MovementKind.EXPENSE, c, 200.0, 2.0, "a1", "p1", "v1"),
        Movement("m5", date(2025, 3, 20), MovementKind.EXPENSE, c, 400.0, None, "a1", "p3", "v2"),
        Movement("m6", date(2025, 3, 20), MovementKind.EXPENSE, c, 100.0, None, "a2", None, "v1"),
        Movement("m7", date(2025, 3, 25), MovementKind.INVESTMENT_IN, c, 250.0, None, "a1"),
        Movement("m8", date(2025, 3, 28), MovementKind.INVESTMENT_OUT, c, 50.0, None, "a1", "p2"),
        # Excluded from every period figure.
        Movement("m9", date(2025, 3, 30), MovementKind.INCOME, p, 999.0, None, "a1", "p1"),
        Movement(
            "m10", date(2025, 3, 18), MovementKind.INCOME, c, 777.0, None, "a1", "p1",
            is_deleted=True,
        ),
        Movement("m11", None, MovementKind.INCOME, c, 888.0, None, "a1", "p1"),
        # Other periods.
        Movement("m12", date(2025, 2, 10), MovementKind.INCOME, c, 400.0, None, "a1", "p1"),
        Movement("m13", date(2024, 12, 31), MovementKind.EXPENSE, c, 100.0, None, "a1", "p2"),
    ]


@pytest.fixture
def snapshot(movements, accounts) -> Snapshot:
    return Snapshot(
        movements=movements,
        accounts=accounts,
        projects=[
            Project("p1", "Alpha", "c1"),
            Project("p2", "Beta", "c1"),
            Project("p3", "Gamma", "c2"),
            Project("p4", "Delta"),
        ],
        providers=[Provider("v1", "Vendor One"), Provider("v2", "Vendor Two")],
        clients=[Client("c1", "Acme"), Client("c2", "Globex")],
    )
