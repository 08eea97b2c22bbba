"""
Builders for signed SBER transactions.

Each builder:
- selects UTXOs covering the amount plus fee
- adds the payment or contract output, then change back to the sender
- signs every input with the sender's key pair

Amounts and fees are in SBER, gas prices in 1e-7 SBER per gas. UTXO lists
are never modified.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from loguru import logger

from sbertx.keys import KeyPair
from sbertx.models import (
    CallContractParams,
    CoinSelection,
    CreateContractParams,
    UnspentOutput,
)
from sbertx.script import call_contract_script, create_contract_script
from sbertx.selection import select_coins
from sbertx.transaction import TransactionBuilder
from sbertx.units import AMOUNT_SCALE, Amount, to_decimal, to_whole_units


def contract_fee(gas_limit: int, gas_price: int, fee: Amount) -> Decimal:
    """Total fee in SBER of a contract transaction: fee plus the full gas budget."""
    return Decimal(gas_limit) * gas_price / AMOUNT_SCALE + to_decimal(fee)


def _add_inputs(tx: TransactionBuilder, selection: CoinSelection) -> None:
    for utxo in selection.utxos:
        tx.add_input(utxo.hash, utxo.pos)


def _add_change(tx: TransactionBuilder, key_pair: KeyPair, change: int) -> None:
    if change > 0:
        tx.add_output(key_pair.get_address(), change)


def _sign_and_serialize(tx: TransactionBuilder, key_pair: KeyPair, input_count: int) -> str:
    for vin in range(input_count):
        tx.sign(vin, key_pair)

    built = tx.build()
    logger.info(
        f"Built transaction {built.txid}: {len(built.inputs)} inputs, "
        f"{len(built.outputs)} outputs"
    )
    return built.to_hex()


def build_pubkeyhash_transaction(
    key_pair: KeyPair,
    to: str,
    amount: Amount,
    fee: Amount,
    utxo_list: Iterable[UnspentOutput],
) -> str:
    """
    Build a signed transaction paying amount to an address.

    Args:
        key_pair: Sender's key pair, its address receives the change
        to: Destination address
        amount: Amount to send in SBER
        fee: Transaction fee in SBER
        utxo_list: Sender's spendable outputs

    Returns:
        Serialized transaction hex

    Raises:
        InsufficientFundsError: If utxo_list cannot cover amount + fee
    """
    value = to_whole_units(amount)
    send_fee = to_whole_units(fee)

    selection = select_coins(utxo_list, amount, fee)
    tx = TransactionBuilder(key_pair.network)
    _add_inputs(tx, selection)

    tx.add_output(to, value)
    _add_change(tx, key_pair, selection.total_value - value - send_fee)

    return _sign_and_serialize(tx, key_pair, len(selection.utxos))


def _build_contract_transaction(
    key_pair: KeyPair,
    contract_script: bytes,
    gas_limit: int,
    gas_price: int,
    fee: Amount,
    utxo_list: Iterable[UnspentOutput],
) -> str:
    total_fee = contract_fee(gas_limit, gas_price, fee)
    send_fee = to_whole_units(total_fee)
    logger.debug(f"Contract fee {total_fee} SBER (gas limit {gas_limit}, gas price {gas_price})")

    # The contract output carries no value, the gas budget is paid as fee
    selection = select_coins(utxo_list, 0, total_fee)
    tx = TransactionBuilder(key_pair.network)
    _add_inputs(tx, selection)

    tx.add_output(contract_script, 0)
    _add_change(tx, key_pair, selection.total_value - send_fee)

    return _sign_and_serialize(tx, key_pair, len(selection.utxos))


def build_create_contract_transaction(
    key_pair: KeyPair,
    code: str,
    gas_limit: int,
    gas_price: int,
    fee: Amount,
    utxo_list: Iterable[UnspentOutput],
) -> str:
    """
    Build a signed contract creation transaction.

    Args:
        key_pair: Sender's key pair
        code: Contract bytecode hex
        gas_limit: Maximum gas for the deployment
        gas_price: Gas price in 1e-7 SBER per gas
        fee: Transaction fee in SBER, on top of gas_limit * gas_price
        utxo_list: Sender's spendable outputs

    Returns:
        Serialized transaction hex
    """
    params = CreateContractParams(gas_limit=gas_limit, gas_price=gas_price, bytecode=code)
    return _build_contract_transaction(
        key_pair,
        create_contract_script(params),
        params.gas_limit,
        params.gas_price,
        fee,
        utxo_list,
    )


def build_send_to_contract_transaction(
    key_pair: KeyPair,
    contract_address: str,
    encoded_data: str,
    gas_limit: int,
    gas_price: int,
    fee: Amount,
    utxo_list: Iterable[UnspentOutput],
) -> str:
    """
    Build a signed contract call transaction.

    Args:
        key_pair: Sender's key pair
        contract_address: Contract address hex (20 bytes)
        encoded_data: ABI encoded call data hex
        gas_limit: Maximum gas for the call
        gas_price: Gas price in 1e-7 SBER per gas
        fee: Transaction fee in SBER, on top of gas_limit * gas_price
        utxo_list: Sender's spendable outputs

    Returns:
        Serialized transaction hex
    """
    params = CallContractParams(
        gas_limit=gas_limit,
        gas_price=gas_price,
        contract_address=contract_address,
        encoded_data=encoded_data,
    )
    return _build_contract_transaction(
        key_pair,
        call_contract_script(params),
        params.gas_limit,
        params.gas_price,
        fee,
        utxo_list,
    )
