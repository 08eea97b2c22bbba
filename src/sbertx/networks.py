"""
SBER network parameters.

These tables are handed to the key and address helpers as-is; the coin
selection and script logic never look inside them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


class Bip32Versions(BaseModel):
    """Extended key version bytes."""

    public: int = Field(..., ge=0, le=0xFFFFFFFF)
    private: int = Field(..., ge=0, le=0xFFFFFFFF)

    model_config = {"frozen": True}


class NetworkParams(BaseModel):
    """Address and key prefixes for one SBER network."""

    name: str
    message_prefix: str
    bech32: str
    bip32: Bip32Versions
    pub_key_hash: int = Field(..., ge=0, le=0xFF)
    script_hash: int = Field(..., ge=0, le=0xFF)
    wif: int = Field(..., ge=0, le=0xFF)

    model_config = {"frozen": True}


SBERCOIN = NetworkParams(
    name="sbercoin",
    message_prefix="\x15SBER Signed Message:\n",
    bech32="sber",
    bip32=Bip32Versions(public=0x0488B21E, private=0x0488ADE4),
    pub_key_hash=0x3F,
    script_hash=0x1A,
    wif=0x3C,
)

SBERCOIN_TESTNET = NetworkParams(
    name="sbercoin_testnet",
    message_prefix="\x15SBER Signed Message:\n",
    bech32="tb",
    bip32=Bip32Versions(public=0x043587CF, private=0x04358394),
    pub_key_hash=0x55,
    script_hash=0x6E,
    wif=0xEF,
)

NETWORKS: dict[NetworkType, NetworkParams] = {
    NetworkType.MAINNET: SBERCOIN,
    NetworkType.TESTNET: SBERCOIN_TESTNET,
}


def get_network(network: NetworkType | str) -> NetworkParams:
    """Get parameters for a network by type or name ("mainnet", "testnet")."""
    try:
        return NETWORKS[NetworkType(network)]
    except ValueError as e:
        raise ValueError(f"Unknown network: {network}") from e
