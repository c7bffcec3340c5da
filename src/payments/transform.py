"""Turn relay bids into reconciliation rows."""

import httpx

from src.helpers.rpc import RPCClient
from src.payments.assembler import get_block_proposer_payment_data
from src.payments.models import (
    BlockProposerPaymentData,
    BoostRelayDataEntry,
    OutputFileEntry,
    is_last_tx_payment,
)


def to_output_entry(
    entry: BoostRelayDataEntry, data: BlockProposerPaymentData
) -> OutputFileEntry:
    """Build the output row for one slot.

    When the last transaction carried the payment, that payment is already
    described by ``payment_type`` and one incoming transfer is taken out of
    ``transfers`` and ``transfers_in``. The decrement never goes below zero.
    ``transfers_out`` is reported as is.
    """
    transfers_in = sum(
        1 for t in data.fee_recipient_transfers if t.to_address == data.fee_recipient
    )
    transfers_out = sum(
        1
        for t in data.fee_recipient_transfers
        if t.from_address == data.fee_recipient
    )
    transfers = len(data.fee_recipient_transfers)

    if is_last_tx_payment(data.payment):
        transfers = max(transfers - 1, 0)
        transfers_in = max(transfers_in - 1, 0)

    return OutputFileEntry(
        slot=entry.slot,
        block_number=data.block_number,
        bid_value=data.bid_value,
        balance_diff=data.balance_diff,
        payment_type=data.payment.payment_type,
        withdrawals=len(data.fee_recipient_withdrawals),
        transfers=transfers,
        transfers_in=transfers_in,
        transfers_out=transfers_out,
    )


async def process_input_entry(
    rpc_client: RPCClient,
    client: httpx.AsyncClient,
    entry: BoostRelayDataEntry,
) -> OutputFileEntry:
    """Reconcile one relay bid against its block."""
    data = await get_block_proposer_payment_data(
        rpc_client,
        client,
        entry.block_number,
        entry.proposer_fee_recipient,
        entry.value,
    )
    return to_output_entry(entry, data)


__all__ = ["process_input_entry", "to_output_entry"]
