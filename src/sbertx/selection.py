"""
UTXO ordering and greedy coin selection.

Mature outputs (confirmed and not coinbase/stake) are spent first, largest
value first. Immature outputs follow, fewest confirmations first.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from functools import cmp_to_key

from loguru import logger

from sbertx.models import CoinSelection, UnspentOutput
from sbertx.units import Amount, scale_amount


class InsufficientFundsError(ValueError):
    def __init__(self, required: Decimal, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient funds: need {required}, have {available}")


def is_mature(utxo: UnspentOutput) -> bool:
    return utxo.confirmations > 0 and not utxo.is_stake


def compare_utxos(a: UnspentOutput, b: UnspentOutput) -> int:
    """Comparator for the spending order, negative when a goes first."""
    a_mature = is_mature(a)
    b_mature = is_mature(b)

    if a_mature and b_mature:
        return b.value - a.value
    if a_mature:
        return -1
    if b_mature:
        return 1
    return a.confirmations - b.confirmations


def sort_utxos(utxos: Iterable[UnspentOutput]) -> list[UnspentOutput]:
    """Return a new list in spending order. Ties keep their input order."""
    return sorted(utxos, key=cmp_to_key(compare_utxos))


def select_coins(utxos: Iterable[UnspentOutput], amount: Amount, fee: Amount) -> CoinSelection:
    """
    Select UTXOs covering amount + fee.

    Args:
        utxos: Candidate outputs, values in smallest units
        amount: Amount to send in SBER
        fee: Fee in SBER

    Returns:
        The shortest prefix of the sorted candidates reaching the target

    Raises:
        InsufficientFundsError: If all candidates together fall short
    """
    target = scale_amount(amount) + scale_amount(fee)

    selected: list[UnspentOutput] = []
    total = 0

    for utxo in sort_utxos(utxos):
        selected.append(utxo)
        total += utxo.value
        if total >= target:
            break

    if total < target:
        raise InsufficientFundsError(target, total)

    logger.debug(f"Selected {len(selected)} UTXOs totalling {total} for target {target}")
    return CoinSelection(utxos=selected, total_value=total, target=target)


def select_utxos(
    utxos: Iterable[UnspentOutput], amount: Amount, fee: Amount
) -> list[UnspentOutput]:
    """Select UTXOs covering amount + fee, see select_coins."""
    return select_coins(utxos, amount, fee).utxos
