"""Type definitions for stakesign."""

# Common types
from ..types.common import (
    HexStr,
    Lovelace,
    ADA,
    TxId,
    Bech32Address,
    KeyHash,
    TxHash,
    PublicKeyBytes,
    Signature,
    DerivationPath,
    Amount,
)

# Transaction types
from ..types.transaction import (
    CertificateKind,
    TransactionInput,
    TransactionOutput,
    Certificate,
    Withdrawal,
    VKeyWitness,
    WitnessSet,
    TransactionBody,
    TransactionEnvelope,
    TransactionSummary,
    TransactionStatus,
    SubmissionReceipt,
)

__all__ = [
    # Common
    "HexStr",
    "Lovelace",
    "ADA",
    "TxId",
    "Bech32Address",
    "KeyHash",
    "TxHash",
    "PublicKeyBytes",
    "Signature",
    "DerivationPath",
    "Amount",

    # Transaction
    "CertificateKind",
    "TransactionInput",
    "TransactionOutput",
    "Certificate",
    "Withdrawal",
    "VKeyWitness",
    "WitnessSet",
    "TransactionBody",
    "TransactionEnvelope",
    "TransactionSummary",
    "TransactionStatus",
    "SubmissionReceipt",
]
