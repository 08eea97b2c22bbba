"""
sbertx CLI - select coins and build signed SBER transactions from a UTXO file.

The UTXO file is a JSON list of objects with hash, pos, value, confirmations
and isStake fields. Nothing is broadcast; signed transactions are printed as
hex.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import typer
from loguru import logger
from pydantic import TypeAdapter

from sbertx.builder import (
    build_create_contract_transaction,
    build_pubkeyhash_transaction,
    build_send_to_contract_transaction,
)
from sbertx.config import get_settings
from sbertx.keys import KeyPair
from sbertx.models import UnspentOutput
from sbertx.networks import NetworkParams, NetworkType, get_network
from sbertx.selection import select_coins
from sbertx.transaction import TransactionBuildError, TransactionSigningError

app = typer.Typer(
    name="sbertx",
    help="SBER transaction builder",
    add_completion=False,
)

UTXO_LIST = TypeAdapter(list[UnspentOutput])

UtxosOption = typer.Option(..., "--utxos", "-u", help="JSON file with the UTXO list")
WifOption = typer.Option(..., "--wif", envvar="SBERTX_WIF", help="Sender private key (WIF)")
FeeOption = typer.Option("0.1", "--fee", help="Fee in SBER")
NetworkOption = typer.Option(None, "--network", "-n", help="SBER network")
LogLevelOption = typer.Option(None, "--log-level", "-l")


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_utxos(path: Path) -> list[UnspentOutput]:
    """Read and validate a JSON UTXO list."""
    return UTXO_LIST.validate_json(path.read_bytes())


def _prepare(network: NetworkType | None, log_level: str | None) -> NetworkParams:
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    return get_network(network or settings.network)


def _run(action: Callable[[], str]) -> None:
    try:
        result = action()
    except (ValueError, OSError, TransactionSigningError, TransactionBuildError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1) from e
    typer.echo(result)


@app.command()
def select(
    utxos: Path = UtxosOption,
    amount: str = typer.Option(..., "--amount", "-a", help="Amount in SBER"),
    fee: str = FeeOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Show which UTXOs would be spent for amount + fee."""
    _prepare(None, log_level)

    def action() -> str:
        selection = select_coins(load_utxos(utxos), amount, fee)
        lines = [f"{utxo.outpoint} {utxo.value}" for utxo in selection.utxos]
        lines.append(f"Total: {selection.total_value} (target {selection.target})")
        return "\n".join(lines)

    _run(action)


@app.command()
def transfer(
    to: str = typer.Option(..., "--to", help="Destination address"),
    amount: str = typer.Option(..., "--amount", "-a", help="Amount in SBER"),
    utxos: Path = UtxosOption,
    wif: str = WifOption,
    fee: str = FeeOption,
    network: NetworkType | None = NetworkOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Build a signed payment to an address."""
    params = _prepare(network, log_level)

    def action() -> str:
        key_pair = KeyPair.from_wif(wif, params)
        return build_pubkeyhash_transaction(key_pair, to, amount, fee, load_utxos(utxos))

    _run(action)


@app.command()
def create_contract(
    code: str = typer.Option(..., "--code", help="Contract bytecode hex"),
    gas_limit: int = typer.Option(250_000, "--gas-limit"),
    gas_price: int = typer.Option(40, "--gas-price", help="Gas price in 1e-7 SBER"),
    utxos: Path = UtxosOption,
    wif: str = WifOption,
    fee: str = FeeOption,
    network: NetworkType | None = NetworkOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Build a signed contract creation transaction."""
    params = _prepare(network, log_level)

    def action() -> str:
        key_pair = KeyPair.from_wif(wif, params)
        return build_create_contract_transaction(
            key_pair, code, gas_limit, gas_price, fee, load_utxos(utxos)
        )

    _run(action)


@app.command()
def call_contract(
    contract: str = typer.Option(..., "--contract", help="Contract address hex"),
    data: str = typer.Option(..., "--data", help="ABI encoded call data hex"),
    gas_limit: int = typer.Option(250_000, "--gas-limit"),
    gas_price: int = typer.Option(40, "--gas-price", help="Gas price in 1e-7 SBER"),
    utxos: Path = UtxosOption,
    wif: str = WifOption,
    fee: str = FeeOption,
    network: NetworkType | None = NetworkOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Build a signed contract call transaction."""
    params = _prepare(network, log_level)

    def action() -> str:
        key_pair = KeyPair.from_wif(wif, params)
        return build_send_to_contract_transaction(
            key_pair, contract, data, gas_limit, gas_price, fee, load_utxos(utxos)
        )

    _run(action)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
