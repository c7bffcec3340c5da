"""Extract direct value transfers from block call traces."""

from collections.abc import Iterable

from src.payments.models import Trace, Transfer


def is_value_transfer(trace: Trace) -> bool:
    """Whether a trace moved a non-zero amount of ETH with a plain CALL.

    Delegate, static and code calls, creations, rewards, reverted calls and
    traces that do not belong to a transaction never qualify.
    """
    action = trace.action
    return (
        trace.type == "call"
        and action.call_type == "call"
        and trace.error is None
        and trace.transaction_hash is not None
        and action.from_address is not None
        and action.to_address is not None
        and action.value > 0
    )


def extract_transfers(traces: Iterable[Trace]) -> list[Transfer]:
    """Extract every direct value transfer from a block's traces.

    Args:
        traces: Traces of one block, in execution order

    Returns:
        Transfers in the same order as their traces
    """
    return [
        Transfer(
            block_number=trace.block_number,
            tx_hash=trace.transaction_hash,
            from_address=trace.action.from_address,
            to_address=trace.action.to_address,
            value=trace.action.value,
        )
        for trace in traces
        if is_value_transfer(trace)
    ]


def filter_transfers_for(transfers: Iterable[Transfer], address: str) -> list[Transfer]:
    """Keep transfers sent from or received by address, preserving order."""
    return [
        transfer
        for transfer in transfers
        if address in (transfer.from_address, transfer.to_address)
    ]


__all__ = ["extract_transfers", "filter_transfers_for", "is_value_transfer"]
