"""Pydantic models for JSON-RPC requests."""

from typing import Any

from pydantic import BaseModel, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class TraceBlockRequest(JsonRpcRequest):
    """JSON-RPC request for trace_block (parity-style call traces)."""

    method: str = Field(default="trace_block", frozen=True)


class EthGetBlockByNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBlockByNumber."""

    method: str = Field(default="eth_getBlockByNumber", frozen=True)


class EthGetBalanceRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBalance."""

    method: str = Field(default="eth_getBalance", frozen=True)


__all__ = [
    "EthGetBalanceRequest",
    "EthGetBlockByNumberRequest",
    "JsonRpcRequest",
    "TraceBlockRequest",
]
