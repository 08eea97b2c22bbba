"""
Test configuration for sbertx tests.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

import pytest
from coincurve import PrivateKey

from sbertx.keys import KeyPair
from sbertx.models import UnspentOutput
from sbertx.networks import SBERCOIN

UtxoFactory = Callable[..., UnspentOutput]


@pytest.fixture
def key_pair() -> KeyPair:
    """Sender key (not for production use!)."""
    return KeyPair(PrivateKey(bytes.fromhex("01" * 32)), SBERCOIN)


@pytest.fixture
def recipient() -> KeyPair:
    return KeyPair(PrivateKey(bytes.fromhex("02" * 32)), SBERCOIN)


@pytest.fixture
def make_utxo() -> UtxoFactory:
    """Factory for UTXOs with unique outpoints."""
    counter = itertools.count(1)

    def _make(value: int, confirmations: int = 10, is_stake: bool = False) -> UnspentOutput:
        n = next(counter)
        return UnspentOutput(
            hash=f"{n:064x}",
            pos=n % 3,
            value=value,
            confirmations=confirmations,
            is_stake=is_stake,
        )

    return _make


@pytest.fixture
def sample_utxos(make_utxo: UtxoFactory) -> list[UnspentOutput]:
    """One mature 5 SBER output and one unconfirmed 3 SBER output."""
    return [
        make_utxo(5_0000000, confirmations=10),
        make_utxo(3_0000000, confirmations=0),
    ]
