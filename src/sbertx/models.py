"""
Transaction building data models.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, Field, PositiveInt, field_validator


class UnspentOutput(BaseModel):
    """A spendable output supplied by the caller."""

    model_config = {"frozen": True, "populate_by_name": True}

    hash: str = Field(..., description="Funding txid, hex in display order")
    pos: int = Field(..., ge=0)
    value: int = Field(..., ge=0, description="Value in smallest units")
    confirmations: int = Field(default=0, ge=0)
    is_stake: bool = Field(default=False, alias="isStake")

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        if len(v) != 64:
            raise ValueError(f"txid must be 64 hex characters, got {len(v)}")
        if not all(c in string.hexdigits for c in v):
            raise ValueError(f"txid is not hex: {v}")
        return v.lower()

    @property
    def outpoint(self) -> str:
        return f"{self.hash}:{self.pos}"


@dataclass
class CoinSelection:
    """Result of coin selection"""

    utxos: list[UnspentOutput]
    total_value: int
    target: Decimal


class CreateContractParams(BaseModel):
    """Parameters of a contract creation output."""

    model_config = {"frozen": True}

    gas_limit: PositiveInt
    gas_price: PositiveInt = Field(..., description="Gas price in 1e-7 SBER per gas")
    bytecode: str


class CallContractParams(BaseModel):
    """Parameters of a contract call output."""

    model_config = {"frozen": True}

    gas_limit: PositiveInt
    gas_price: PositiveInt = Field(..., description="Gas price in 1e-7 SBER per gas")
    contract_address: str
    encoded_data: str
