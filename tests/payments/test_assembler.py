"""Tests for assembling per-block payment data."""

from unittest.mock import MagicMock

import pytest

from conftest import (
    BUILDER,
    CONTRACT,
    FEE_RECIPIENT,
    ONE_ETH,
    OTHER,
    FakeNode,
    make_block,
    make_trace,
    make_tx,
    make_withdrawal,
    tx_hash,
)
from src.helpers.constants import ZERO_ADDRESS
from src.helpers.errors import BlockNotFoundError, CollaboratorError
from src.payments.assembler import get_block_proposer_payment_data
from src.payments.models import Coinbase, LastTxContract, LastTxDirect, Unknown


async def assemble(node: FakeNode, block_number: int = 100, bid_value: int = ONE_ETH):
    return await get_block_proposer_payment_data(
        node, MagicMock(), block_number, FEE_RECIPIENT, bid_value  # type: ignore[arg-type]
    )


class TestGetBlockProposerPaymentData:
    """Tests for get_block_proposer_payment_data."""

    @pytest.mark.asyncio
    async def test_coinbase_block(self, node: FakeNode) -> None:
        """Test a block built by the fee recipient itself."""
        node.add_block(
            make_block(
                100,
                miner=FEE_RECIPIENT,
                transactions=[make_tx(tx_hash(1), OTHER, CONTRACT, 0)],
                withdrawals=[
                    make_withdrawal(FEE_RECIPIENT, 10, 0),
                    make_withdrawal(OTHER, 10, 1),
                    make_withdrawal(FEE_RECIPIENT, 20, 2),
                ],
            ),
            balances=(ONE_ETH, 3 * ONE_ETH),
        )

        data = await assemble(node)

        assert data.payment == Coinbase(address=FEE_RECIPIENT)
        assert len(data.fee_recipient_withdrawals) == 2
        assert data.balance_diff == 2 * ONE_ETH
        assert data.bid_value == ONE_ETH
        assert data.fee_recipient == FEE_RECIPIENT

    @pytest.mark.asyncio
    async def test_direct_payment(self, node: FakeNode) -> None:
        """Test a block whose last transaction pays the recipient."""
        node.add_block(
            make_block(
                100,
                transactions=[
                    make_tx(tx_hash(1), OTHER, CONTRACT, 0),
                    make_tx(tx_hash(2), BUILDER, FEE_RECIPIENT, 5),
                ],
            ),
            traces=[
                make_trace(OTHER, CONTRACT, 0, tx_hash(1)),
                make_trace(BUILDER, FEE_RECIPIENT, 5, tx_hash(2)),
            ],
            balances=(0, 5),
        )

        data = await assemble(node)

        assert data.payment == LastTxDirect(
            from_address=BUILDER, to_address=FEE_RECIPIENT, value=5
        )
        assert len(data.fee_recipient_transfers) == 1
        assert data.balance_diff == 5

    @pytest.mark.asyncio
    async def test_contract_payment_uses_whole_block_transfers(
        self, node: FakeNode
    ) -> None:
        """Test that transfers from every transaction touching the recipient are kept."""
        node.add_block(
            make_block(
                100,
                transactions=[
                    make_tx(tx_hash(1), OTHER, FEE_RECIPIENT, 1),
                    make_tx(tx_hash(2), BUILDER, CONTRACT, 9),
                ],
            ),
            traces=[
                make_trace(OTHER, FEE_RECIPIENT, 1, tx_hash(1)),
                make_trace(BUILDER, CONTRACT, 9, tx_hash(2)),
                make_trace(CONTRACT, OTHER, 2, tx_hash(2)),
                make_trace(CONTRACT, FEE_RECIPIENT, 7, tx_hash(2)),
            ],
            balances=(10, 18),
        )

        data = await assemble(node)

        assert data.payment == LastTxContract(
            from_address=BUILDER, contract=CONTRACT, value=7
        )
        assert [t.value for t in data.fee_recipient_transfers] == [1, 7]

    @pytest.mark.asyncio
    async def test_empty_block_is_unknown(self, node: FakeNode) -> None:
        """Test that a block without transactions or traces is Unknown."""
        node.add_block(
            make_block(100, withdrawals=[make_withdrawal(FEE_RECIPIENT, 32)]),
            balances=(0, 32 * 10**9),
        )

        data = await assemble(node)

        assert data.payment == Unknown()
        assert data.fee_recipient_transfers == []
        assert len(data.fee_recipient_withdrawals) == 1

    @pytest.mark.asyncio
    async def test_missing_coinbase_defaults_to_zero_address(
        self, node: FakeNode
    ) -> None:
        """Test that a block without miner field uses the zero address."""
        node.add_block(make_block(100, miner=None))

        data = await get_block_proposer_payment_data(
            node, MagicMock(), 100, ZERO_ADDRESS, 0  # type: ignore[arg-type]
        )

        assert data.payment == Coinbase(address=ZERO_ADDRESS)

    @pytest.mark.asyncio
    async def test_balance_decrease_floors_at_zero(self, node: FakeNode) -> None:
        """Test that balance_diff never goes negative."""
        node.add_block(make_block(100), balances=(5 * ONE_ETH, ONE_ETH))

        data = await assemble(node)

        assert data.balance_diff == 0

    @pytest.mark.asyncio
    async def test_checksummed_recipient(self, node: FakeNode) -> None:
        """Test that the fee recipient is compared case-insensitively."""
        node.add_block(
            make_block(100, miner="0x" + "AA" * 20),
        )

        data = await get_block_proposer_payment_data(
            node, MagicMock(), 100, "0x" + "aA" * 20, 0  # type: ignore[arg-type]
        )

        assert isinstance(data.payment, Coinbase)

    @pytest.mark.asyncio
    async def test_block_not_found(self, node: FakeNode) -> None:
        """Test that an unknown block raises BlockNotFoundError."""
        with pytest.raises(BlockNotFoundError) as exc_info:
            await assemble(node, block_number=404)

        assert exc_info.value.block_number == 404

    @pytest.mark.asyncio
    async def test_collaborator_failure_propagates(self, node: FakeNode) -> None:
        """Test that node failures are raised unchanged."""
        node.add_block(make_block(100))
        node.fail(100)

        with pytest.raises(CollaboratorError, match="connection reset"):
            await assemble(node)

    @pytest.mark.asyncio
    async def test_malformed_trace_response(self, node: FakeNode) -> None:
        """Test that unparseable traces become a CollaboratorError."""
        node.add_block(make_block(100), traces=[{"type": "call"}])

        with pytest.raises(CollaboratorError, match="trace_block"):
            await assemble(node)

    @pytest.mark.asyncio
    async def test_requests_all_three_calls(self, node: FakeNode) -> None:
        """Test that traces, block and balances are requested for the block."""
        node.add_block(make_block(100))

        await assemble(node)

        assert sorted(node.calls) == [
            ("eth_getBalance", 100),
            ("eth_getBlockByNumber", 100),
            ("trace_block", 100),
        ]
