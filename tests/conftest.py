"""Pytest configuration and shared fixtures for payment reconciliation tests."""

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from typing import Any

from rich.console import Console

from src.helpers.errors import BlockNotFoundError, CollaboratorError


FEE_RECIPIENT = "0x" + "aa" * 20
BUILDER = "0x" + "bb" * 20
CONTRACT = "0x" + "cc" * 20
OTHER = "0x" + "dd" * 20
ONE_ETH = 10**18


def make_trace(
    from_address: str,
    to_address: str,
    value: int,
    tx_hash: str | None,
    *,
    block_number: int = 100,
    call_type: str = "call",
    trace_type: str = "call",
    error: str | None = None,
) -> dict[str, Any]:
    """Build a parity-style call trace as returned by trace_block."""
    trace: dict[str, Any] = {
        "action": {
            "callType": call_type,
            "from": from_address,
            "to": to_address,
            "value": hex(value),
            "gas": "0x5208",
            "input": "0x",
        },
        "blockHash": "0x" + "11" * 32,
        "blockNumber": block_number,
        "result": {"gasUsed": "0x0", "output": "0x"},
        "subtraces": 0,
        "traceAddress": [],
        "transactionHash": tx_hash,
        "transactionPosition": 0,
        "type": trace_type,
    }
    if error is not None:
        trace["error"] = error
    return trace


def make_tx(
    tx_hash: str, from_address: str, to_address: str | None, value: int = 0
) -> dict[str, Any]:
    """Build a full transaction body as returned by eth_getBlockByNumber."""
    return {
        "hash": tx_hash,
        "from": from_address,
        "to": to_address,
        "value": hex(value),
        "gas": "0x5208",
        "input": "0x",
        "nonce": "0x1",
    }


def make_withdrawal(address: str, amount_gwei: int, index: int = 0) -> dict[str, Any]:
    """Build a validator withdrawal."""
    return {
        "index": hex(index),
        "validatorIndex": hex(1000 + index),
        "address": address,
        "amount": hex(amount_gwei),
    }


def make_block(
    number: int,
    miner: str | None = BUILDER,
    transactions: list[dict[str, Any]] | None = None,
    withdrawals: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a block with full transaction bodies."""
    block: dict[str, Any] = {
        "number": hex(number),
        "hash": "0x" + f"{number:064x}",
        "transactions": transactions or [],
        "withdrawals": withdrawals or [],
    }
    if miner is not None:
        block["miner"] = miner
    return block


def tx_hash(n: int) -> str:
    """Deterministic transaction hash."""
    return "0x" + f"{n:064x}"


class FakeNode:
    """In-memory stand-in for RPCClient.

    Blocks registered with ``add_block`` answer all three requests the
    assembler makes; unknown blocks raise BlockNotFoundError and blocks
    registered with ``fail`` raise CollaboratorError.
    """

    timeout = 30.0

    def __init__(self) -> None:
        self.blocks: dict[int, dict[str, Any]] = {}
        self.traces: dict[int, list[dict[str, Any]]] = {}
        self.balances: dict[int, tuple[int, int]] = {}
        self.failing: set[int] = set()
        self.delays: dict[int, float] = {}
        self.calls: list[tuple[str, int]] = []
        self.events: list[tuple[str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_block(
        self,
        block: dict[str, Any],
        traces: list[dict[str, Any]] | None = None,
        balances: tuple[int, int] = (0, 0),
    ) -> None:
        number = int(block["number"], 16)
        self.blocks[number] = block
        self.traces[number] = traces or []
        self.balances[number] = balances

    def fail(self, block_number: int) -> None:
        self.failing.add(block_number)

    def _check(self, method: str, block_number: int) -> None:
        self.calls.append((method, block_number))
        if block_number in self.failing:
            msg = "connection reset"
            raise CollaboratorError(msg, method)

    async def trace_block(self, client: Any, block_number: int) -> list[dict[str, Any]]:
        self.events.append(("start", block_number))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(block_number, 0))
            self._check("trace_block", block_number)
            return self.traces.get(block_number, [])
        finally:
            self.in_flight -= 1
            self.events.append(("end", block_number))

    async def get_block_with_transactions(
        self, client: Any, block_number: int
    ) -> dict[str, Any]:
        self._check("eth_getBlockByNumber", block_number)
        if block_number not in self.blocks:
            raise BlockNotFoundError(block_number)
        return self.blocks[block_number]

    async def get_balance_change(
        self, client: Any, address: str, block_number: int
    ) -> tuple[int, int, int]:
        self._check("eth_getBalance", block_number)
        before, after = self.balances.get(block_number, (0, 0))
        return before, after, after - before

    def blocks_requested(self) -> set[int]:
        return {number for _, number in self.calls}


@pytest.fixture
def node() -> FakeNode:
    """Provide an empty fake Ethereum node."""
    return FakeNode()


@pytest.fixture
def quiet_console() -> Console:
    """Console that swallows progress output."""
    return Console(quiet=True)


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, list[str], list[list[Any]]], Path]:
    """Write a CSV file under tmp_path and return its path."""

    def _write(name: str, header: list[str], rows: list[list[Any]]) -> Path:
        path = tmp_path / name
        lines = [",".join(header)] + [",".join(str(v) for v in row) for row in rows]
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write
