"""
sbertx - Transaction builder for SBER

Provides coin selection, contract script encoding and signed transactions
for value transfers, contract creation and contract calls.
"""

__version__ = "0.1.0"

from sbertx.builder import (
    build_create_contract_transaction,
    build_pubkeyhash_transaction,
    build_send_to_contract_transaction,
    contract_fee,
)
from sbertx.keys import InvalidKeyError, KeyPair
from sbertx.models import (
    CallContractParams,
    CoinSelection,
    CreateContractParams,
    UnspentOutput,
)
from sbertx.networks import SBERCOIN, SBERCOIN_TESTNET, NetworkParams, NetworkType, get_network
from sbertx.script import (
    OP_CALL,
    OP_CREATE,
    call_contract_script,
    compile_script,
    create_contract_script,
    encode_gas_price,
)
from sbertx.script_number import (
    MalformedHexError,
    decode_script_number,
    encode_script_number,
    hex_to_bytes,
)
from sbertx.selection import InsufficientFundsError, select_coins, select_utxos, sort_utxos
from sbertx.transaction import (
    Transaction,
    TransactionBuildError,
    TransactionBuilder,
    TransactionParseError,
    TransactionSigningError,
    deserialize_transaction,
)
from sbertx.units import AMOUNT_SCALE, SATOSHI_SCALE

__all__ = [
    "AMOUNT_SCALE",
    "CallContractParams",
    "CoinSelection",
    "CreateContractParams",
    "InsufficientFundsError",
    "InvalidKeyError",
    "KeyPair",
    "MalformedHexError",
    "NetworkParams",
    "NetworkType",
    "OP_CALL",
    "OP_CREATE",
    "SATOSHI_SCALE",
    "SBERCOIN",
    "SBERCOIN_TESTNET",
    "Transaction",
    "TransactionBuildError",
    "TransactionBuilder",
    "TransactionParseError",
    "TransactionSigningError",
    "UnspentOutput",
    "build_create_contract_transaction",
    "build_pubkeyhash_transaction",
    "build_send_to_contract_transaction",
    "call_contract_script",
    "compile_script",
    "contract_fee",
    "create_contract_script",
    "decode_script_number",
    "deserialize_transaction",
    "encode_gas_price",
    "encode_script_number",
    "get_network",
    "hex_to_bytes",
    "select_coins",
    "select_utxos",
    "sort_utxos",
]
