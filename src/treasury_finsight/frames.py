# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Tabular representation of movements.

The aggregation and projection engines work on a pandas DataFrame built
once per computation from the snapshot's movements. Regardless of the
input, the frame has exactly these columns:

    - ``id``            (str)
    - ``date``          (datetime64[ns])
    - ``kind``          (str, MovementKind value)
    - ``group``         (str, KindGroup value: "INCOME" or "EXPENSE")
    - ``status``        (str, MovementStatus value)
    - ``amount``        (float, non-negative, in the reporting currency)
    - ``signed_amount`` (float, credit positive / debit negative)
    - ``account_id``    (str or None)
    - ``project_id``    (str or None)
    - ``provider_id``   (str or None)

Only countable movements (not deleted, with a valid date) are included.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

import pandas as pd

from .currency import CurrencyNormalizer
from .models import Movement, MovementStatus

FRAME_COLUMNS = [
    "id",
    "date",
    "kind",
    "group",
    "status",
    "amount",
    "signed_amount",
    "account_id",
    "project_id",
    "provider_id",
]


def movements_to_frame(
    movements: Iterable[Movement],
    currency: str,
    normalizer: CurrencyNormalizer,
    treat_missing_as_zero: bool = True,
    statuses: Optional[Iterable[MovementStatus]] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> pd.DataFrame:
    """
    Build the movements DataFrame used by the engines.

    Parameters
    ----------
    movements:
        Movements of the snapshot, in any order.
    currency:
        Reporting currency; each amount is resolved through ``normalizer``.
    normalizer:
        CurrencyNormalizer holding the primary/secondary currency codes.
    treat_missing_as_zero:
        Forwarded to ``CurrencyNormalizer.normalize``.
    statuses:
        Optional set of statuses to keep. All statuses are kept if None.
    start, end:
        Optional inclusive date bounds. Movements outside the bounds are
        dropped before their amount is resolved, so a missing secondary
        amount outside the window never raises.

    Returns
    -------
    pandas.DataFrame
        One row per countable movement, columns as in ``FRAME_COLUMNS``.
    """
    code = normalizer.validate(currency)
    keep = frozenset(statuses) if statuses is not None else None

    rows: list[dict[str, object]] = []
    for m in movements:
        if not m.is_countable:
            continue
        if keep is not None and m.status not in keep:
            continue
        if start is not None and m.date < start:
            continue
        if end is not None and m.date > end:
            continue

        amount = normalizer.normalize(
            m, code, treat_missing_as_zero=treat_missing_as_zero
        )
        rows.append(
            {
                "id": m.id,
                "date": m.date,
                "kind": m.kind.value,
                "group": m.kind.group.value,
                "status": m.status.value,
                "amount": amount,
                "signed_amount": m.signed_amount(amount),
                "account_id": m.account_id,
                "project_id": m.project_id,
                "provider_id": m.provider_id,
            }
        )

    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["amount"] = df["amount"].astype(float)
    df["signed_amount"] = df["signed_amount"].astype(float)
    return df
