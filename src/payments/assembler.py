"""Gather everything needed to reconcile one block's proposer payment."""

from asyncio import gather

from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from src.helpers.constants import ZERO_ADDRESS
from src.helpers.errors import CollaboratorError
from src.helpers.logging import get_logger
from src.helpers.parsers import normalize_address
from src.helpers.rpc import RPCClient
from src.payments.classifier import classify_payment
from src.payments.models import Block, BlockProposerPaymentData, Trace
from src.payments.transfers import extract_transfers, filter_transfers_for


logger = get_logger(__name__)

T = TypeVar("T")

TRACES_ADAPTER = TypeAdapter(list[Trace])
BLOCK_ADAPTER = TypeAdapter(Block)


def _parse_response(adapter: TypeAdapter[T], raw: Any, method: str) -> T:
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        msg = f"malformed response ({e.error_count()} validation errors): {e}"
        raise CollaboratorError(msg, method) from e


async def get_block_proposer_payment_data(
    rpc_client: RPCClient,
    client: httpx.AsyncClient,
    block_number: int,
    fee_recipient: str,
    bid_value: int,
) -> BlockProposerPaymentData:
    """Fetch and classify the proposer payment of one block.

    Traces, the block and the fee recipient's balances around the block are
    requested concurrently.

    Args:
        rpc_client: JSON-RPC client
        client: HTTP client instance
        block_number: Block to analyse
        fee_recipient: Proposer fee recipient address
        bid_value: Bid value promised by the relay, in wei

    Returns:
        Assembled payment data with a non-negative balance_diff

    Raises:
        CollaboratorError: If any node request fails or returns garbage
        BlockNotFoundError: If the node does not know the block
    """
    fee_recipient = normalize_address(fee_recipient)

    results = await gather(
        rpc_client.trace_block(client, block_number),
        rpc_client.get_block_with_transactions(client, block_number),
        rpc_client.get_balance_change(client, fee_recipient, block_number),
        return_exceptions=True,
    )
    # Raise the first failure only once every request has settled
    for result in results:
        if isinstance(result, BaseException):
            raise result
    raw_traces, raw_block, (_, _, balance_change) = results

    traces = _parse_response(TRACES_ADAPTER, raw_traces, "trace_block")
    block = _parse_response(BLOCK_ADAPTER, raw_block, "eth_getBlockByNumber")

    transfers = filter_transfers_for(extract_transfers(traces), fee_recipient)
    withdrawals = [w for w in block.withdrawals or [] if w.address == fee_recipient]
    last_tx = block.transactions[-1] if block.transactions else None

    payment = classify_payment(
        block.miner or ZERO_ADDRESS, last_tx, transfers, fee_recipient
    )

    logger.debug(
        "Block %d: %s, %d transfers, %d withdrawals",
        block_number,
        payment.payment_type,
        len(transfers),
        len(withdrawals),
    )

    return BlockProposerPaymentData(
        block_number=block_number,
        fee_recipient=fee_recipient,
        bid_value=bid_value,
        fee_recipient_transfers=transfers,
        fee_recipient_withdrawals=withdrawals,
        payment=payment,
        balance_diff=max(balance_change, 0),
    )


__all__ = ["get_block_proposer_payment_data"]
