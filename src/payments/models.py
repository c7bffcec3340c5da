"""Models for proposer payment reconciliation."""

from enum import StrEnum

from typing import Annotated, Literal, assert_never

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from src.helpers.parsers import normalize_address, parse_decimal_uint, parse_hex_int


Address = Annotated[str, AfterValidator(normalize_address)]
"""Account address, validated and lower-cased."""

HexQuantity = Annotated[int, BeforeValidator(parse_hex_int)]
"""Integer sent on the wire as a 0x-prefixed hex string."""

DecimalUint = Annotated[int, BeforeValidator(parse_decimal_uint)]
"""Unsigned 256-bit integer sent as a decimal string."""

TxHash = Annotated[str, AfterValidator(str.lower)]


class PaymentType(StrEnum):
    """How the builder paid the proposer."""

    LAST_TX_DIRECT = "last_tx_direct"
    LAST_TX_CONTRACT = "last_tx_contract"
    COINBASE = "coinbase"
    UNKNOWN = "unknown"


# Node responses


class TraceAction(BaseModel):
    """Action of a parity-style trace.

    Only calls carry ``callType``; create, reward and suicide actions leave it
    unset.
    """

    call_type: str | None = Field(default=None, alias="callType")
    from_address: Address | None = Field(default=None, alias="from")
    to_address: Address | None = Field(default=None, alias="to")
    value: HexQuantity = 0

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Trace(BaseModel):
    """One execution step returned by trace_block."""

    action: TraceAction
    type: str
    error: str | None = None
    block_number: HexQuantity = Field(..., alias="blockNumber")
    transaction_hash: TxHash | None = Field(default=None, alias="transactionHash")
    trace_address: list[int] = Field(default_factory=list, alias="traceAddress")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Transaction(BaseModel):
    """Transaction body from eth_getBlockByNumber with full transactions."""

    hash: TxHash
    from_address: Address = Field(..., alias="from")
    to_address: Address | None = Field(default=None, alias="to")
    value: HexQuantity = 0

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Withdrawal(BaseModel):
    """Validator withdrawal included in a block (amount in Gwei)."""

    index: HexQuantity
    validator_index: HexQuantity = Field(..., alias="validatorIndex")
    address: Address
    amount: HexQuantity

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class Block(BaseModel):
    """Block with full transaction bodies."""

    number: HexQuantity
    hash: TxHash | None = None
    miner: Address | None = Field(default=None, description="Coinbase address")
    transactions: list[Transaction] = Field(default_factory=list)
    withdrawals: list[Withdrawal] | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# Derived


class Transfer(BaseModel):
    """Direct, non-zero value transfer extracted from a call trace."""

    block_number: int
    tx_hash: str
    from_address: str
    to_address: str
    value: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)


class LastTxDirect(BaseModel):
    """The last transaction of the block pays the fee recipient directly."""

    payment_type: Literal[PaymentType.LAST_TX_DIRECT] = PaymentType.LAST_TX_DIRECT
    from_address: str
    to_address: str
    value: int

    model_config = ConfigDict(frozen=True)


class LastTxContract(BaseModel):
    """The last transaction calls a contract that forwards value to the fee recipient."""

    payment_type: Literal[PaymentType.LAST_TX_CONTRACT] = PaymentType.LAST_TX_CONTRACT
    from_address: str
    contract: str
    value: int

    model_config = ConfigDict(frozen=True)


class Coinbase(BaseModel):
    """The fee recipient is the block's coinbase."""

    payment_type: Literal[PaymentType.COINBASE] = PaymentType.COINBASE
    address: str

    model_config = ConfigDict(frozen=True)


class Unknown(BaseModel):
    """No known payment pattern matched."""

    payment_type: Literal[PaymentType.UNKNOWN] = PaymentType.UNKNOWN

    model_config = ConfigDict(frozen=True)


ProposerPayment = Annotated[
    LastTxDirect | LastTxContract | Coinbase | Unknown,
    Field(discriminator="payment_type"),
]


def is_last_tx_payment(payment: ProposerPayment) -> bool:
    """Whether the payment was carried by the block's last transaction."""
    match payment:
        case LastTxDirect() | LastTxContract():
            return True
        case Coinbase() | Unknown():
            return False
        case _:
            assert_never(payment)


class BlockProposerPaymentData(BaseModel):
    """Everything known about how one block paid its fee recipient."""

    block_number: int
    fee_recipient: str
    bid_value: int
    fee_recipient_transfers: list[Transfer]
    fee_recipient_withdrawals: list[Withdrawal]
    payment: ProposerPayment
    balance_diff: int = Field(..., ge=0)


# Files

INPUT_COLUMNS = ("slot", "proposer_fee_recipient", "value", "block_number")

OUTPUT_COLUMNS = (
    "slot",
    "block_number",
    "bid_value",
    "balance_diff",
    "payment_type",
    "withdrawals",
    "transfers",
    "transfers_in",
    "transfers_out",
)


class BoostRelayDataEntry(BaseModel):
    """One delivered payload from a relay data export."""

    slot: int = Field(..., ge=0)
    proposer_fee_recipient: Address
    value: DecimalUint
    block_number: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True, extra="ignore")


class OutputFileEntry(BaseModel):
    """Reconciliation result for one slot."""

    slot: int = Field(..., ge=0)
    block_number: int = Field(..., ge=1)
    bid_value: DecimalUint
    balance_diff: DecimalUint
    payment_type: PaymentType
    withdrawals: int = Field(..., ge=0)
    transfers: int = Field(..., ge=0)
    transfers_in: int = Field(..., ge=0)
    transfers_out: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_row(self) -> dict[str, str]:
        """Serialize as a file row, big integers in decimal."""
        return {column: str(getattr(self, column)) for column in OUTPUT_COLUMNS}

    @property
    def is_underpaid(self) -> bool:
        """Whether the fee recipient gained less than the bid promised."""
        return self.balance_diff < self.bid_value


__all__ = [
    "INPUT_COLUMNS",
    "OUTPUT_COLUMNS",
    "Block",
    "BlockProposerPaymentData",
    "BoostRelayDataEntry",
    "Coinbase",
    "LastTxContract",
    "LastTxDirect",
    "OutputFileEntry",
    "PaymentType",
    "ProposerPayment",
    "Trace",
    "TraceAction",
    "Transaction",
    "Transfer",
    "Unknown",
    "Withdrawal",
    "is_last_tx_payment",
]
