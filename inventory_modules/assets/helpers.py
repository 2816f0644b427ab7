"""
Asset Register Helpers (``inventory_modules.assets.helpers``).

Responsibility
--------------
Pure straight-line depreciation functions.  Given a price, an economic
life and the acquisition date, compute how much value has been consumed
as of a given day.

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no
clock, no database access.  Called by ``AssetService``, the
``BulkProvisioner`` and tests.

Invariants enforced
-------------------
* All money inputs and outputs use ``Decimal`` -- NEVER ``float``.
* Months in use are clamped to ``[0, economic_life_months]``, so
  accumulated depreciation never exceeds the price and never goes
  negative for future-dated rows.
* Results are rounded to 2 decimal places, ROUND_HALF_UP.

Failure modes
-------------
* Zero or negative economic life  -> accumulated 0, residual = price.

Audit relevance
---------------
Values are computed at write time and stored on the asset row.  They are
a snapshot, not a live figure; an update recomputes them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from inventory_kernel.db.types import round_money
from inventory_modules.assets.models import DepreciationResult

ZERO = Decimal("0")


def months_in_use(acquisition_date: date, as_of: date) -> int:
    """Whole calendar months between acquisition and ``as_of`` (may be negative)."""
    return (as_of.year - acquisition_date.year) * 12 + (
        as_of.month - acquisition_date.month
    )


def straight_line_monthly(price: Decimal, life_months: int) -> Decimal:
    """
    Unrounded monthly straight-line charge.

    Returns ``Decimal("0")`` if ``life_months`` <= 0.
    """
    if life_months <= 0:
        return ZERO
    return Decimal(price) / Decimal(life_months)


def calculate_depreciation(
    acquisition_price: Decimal,
    economic_life_years: int,
    acquisition_date: date,
    as_of: date,
) -> DepreciationResult:
    """
    Straight-line depreciation snapshot as of ``as_of``.

    Preconditions:
        - ``acquisition_price`` >= 0 and ``economic_life_years`` >= 0.
    Postconditions:
        - ``accumulated_depreciation + residual_value == acquisition_price``
          (within rounding), both >= 0.
    """
    price = Decimal(acquisition_price)
    life_months = max(int(economic_life_years), 0) * 12

    if life_months <= 0:
        return DepreciationResult(
            accumulated_depreciation=round_money(ZERO),
            residual_value=round_money(price),
            economic_life_months=0,
        )

    used = min(max(months_in_use(acquisition_date, as_of), 0), life_months)
    accumulated = round_money(straight_line_monthly(price, life_months) * used)
    residual = round_money(max(ZERO, price - accumulated))

    return DepreciationResult(
        accumulated_depreciation=accumulated,
        residual_value=residual,
        economic_life_months=life_months,
    )
