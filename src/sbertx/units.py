"""
SBER amount units.

Amounts and fees are passed around in SBER (the display unit). UTXO values
are integers in the smallest unit.

- AMOUNT_SCALE: factor applied to SBER amounts and fees before they are
  compared with UTXO values or written to outputs (1e7).
- SATOSHI_SCALE: the UTXO value unit as documented by wallets and explorers
  (1e-8 SBER). Not used for arithmetic; kept so the two conventions can be
  reconciled against the live network before either is changed.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

AMOUNT_SCALE = 10**7

SATOSHI_SCALE = 10**8

Amount = Decimal | int | float | str


def to_decimal(amount: Amount) -> Decimal:
    """Convert an amount to Decimal without binary float artifacts."""
    if isinstance(amount, float):
        # str() gives the shortest repr, so 0.1 becomes Decimal("0.1")
        amount = str(amount)
    try:
        value = Decimal(amount)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def scale_amount(amount: Amount) -> Decimal:
    """Scale a SBER amount to smallest units, keeping any fractional part."""
    return to_decimal(amount) * AMOUNT_SCALE


def to_whole_units(amount: Amount) -> int:
    """
    Scale a SBER amount to an integer number of smallest units.

    Raises:
        ValueError: If the amount is finer than one smallest unit
    """
    scaled = scale_amount(amount)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} is not a whole number of units (1e-7 SBER)")
    return int(scaled)
