"""
Module: inventory_kernel.db.types
Responsibility: The rounding helper shared by every model and calculation.
    Centralizes precision so that prices and depreciation values are
    rounded identically everywhere.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and modules.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  All amounts are Decimal with two places
      (``Numeric(15, 2)`` via the ``Base`` type map).
    - round_money() is the ONLY sanctioned rounding function for money
      (ROUND_HALF_UP).
"""

from decimal import Decimal, ROUND_HALF_UP

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for money values.  All
    other code delegates rounding here so precision handling stays uniform.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places (0 for display rupiah).
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    if decimal_places == 0:
        return value.quantize(Decimal("1"), rounding=rounding)
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)
