"""Classify how a block's builder paid the proposer."""

from collections.abc import Sequence

from src.helpers.constants import ZERO_ADDRESS
from src.payments.models import (
    Coinbase,
    LastTxContract,
    LastTxDirect,
    ProposerPayment,
    Transaction,
    Transfer,
    Unknown,
)


def classify_payment(
    coinbase: str,
    last_tx: Transaction | None,
    fee_recipient_transfers: Sequence[Transfer],
    fee_recipient: str,
) -> ProposerPayment:
    """Decide which mechanism carried the proposer payment.

    Rules, first match wins:

    1. The coinbase is the fee recipient: ``Coinbase``.
    2. The last transaction is sent to the fee recipient: ``LastTxDirect``
       with the transaction's own value, which may be zero.
    3. The last transfer touching the fee recipient happens inside the last
       transaction and credits the fee recipient: ``LastTxContract`` with
       that transfer's value. A contract creation reports the zero
       address as the contract.
    4. Otherwise ``Unknown``. A block without transactions always ends here
       unless rule 1 applies.

    Args:
        coinbase: Block coinbase address
        last_tx: Last transaction of the block, None for an empty block
        fee_recipient_transfers: Transfers from or to the fee recipient, in
            execution order
        fee_recipient: Proposer fee recipient address

    Returns:
        Exactly one payment variant
    """
    if coinbase == fee_recipient:
        return Coinbase(address=coinbase)

    if last_tx is None:
        return Unknown()

    if last_tx.to_address == fee_recipient:
        return LastTxDirect(
            from_address=last_tx.from_address,
            to_address=last_tx.to_address,
            value=last_tx.value,
        )

    if fee_recipient_transfers:
        last_transfer = fee_recipient_transfers[-1]
        if (
            last_transfer.tx_hash == last_tx.hash
            and last_transfer.to_address == fee_recipient
        ):
            return LastTxContract(
                from_address=last_tx.from_address,
                contract=last_tx.to_address or ZERO_ADDRESS,
                value=last_transfer.value,
            )

    return Unknown()


__all__ = ["classify_payment"]
