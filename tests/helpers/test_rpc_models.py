"""Tests for RPC models."""

import pytest

from pydantic import ValidationError

from src.helpers.rpc_models import (
    EthGetBalanceRequest,
    EthGetBlockByNumberRequest,
    JsonRpcRequest,
    TraceBlockRequest,
)


def test_json_rpc_request() -> None:
    """Test JsonRpcRequest model."""
    request = JsonRpcRequest(method="test_method", params=[1, "two"], id=1)
    assert request.jsonrpc == "2.0"
    assert request.method == "test_method"
    assert request.params == [1, "two"]
    assert request.id == 1


def test_json_rpc_request_default_params() -> None:
    """Test JsonRpcRequest with default params."""
    request = JsonRpcRequest(method="test_method", id="abc123")
    assert request.params == []
    assert request.id == "abc123"


def test_json_rpc_request_validation() -> None:
    """Test JsonRpcRequest validation."""
    with pytest.raises(ValidationError):
        JsonRpcRequest(id=1)  # type: ignore[call-arg]


@pytest.mark.parametrize(
    ("model", "method"),
    [
        (TraceBlockRequest, "trace_block"),
        (EthGetBlockByNumberRequest, "eth_getBlockByNumber"),
        (EthGetBalanceRequest, "eth_getBalance"),
    ],
)
def test_method_defaults(model: type[JsonRpcRequest], method: str) -> None:
    """Test that typed requests carry their method name."""
    request = model(params=["0x1"], id=7)
    assert request.model_dump() == {
        "jsonrpc": "2.0",
        "method": method,
        "params": ["0x1"],
        "id": 7,
    }


def test_method_is_frozen() -> None:
    """Test that the method of a typed request cannot be reassigned."""
    request = TraceBlockRequest(params=["0x1"], id=1)
    with pytest.raises(ValidationError):
        request.method = "debug_traceBlockByNumber"
