"""Ethereum JSON-RPC client utilities."""

import itertools
import operator

from typing import Any

import httpx

from src.helpers.constants import DEFAULT_TIMEOUT, MAX_RETRIES, RETRY_BASE_DELAY
from src.helpers.errors import BlockNotFoundError, CollaboratorError
from src.helpers.http import retry_with_backoff
from src.helpers.parsers import parse_hex_int
from src.helpers.rpc_models import (
    EthGetBalanceRequest,
    EthGetBlockByNumberRequest,
    JsonRpcRequest,
    TraceBlockRequest,
)


class RPCClient:
    """Ethereum JSON-RPC client with batching support.

    Every failure (transport, HTTP status, JSON-RPC error object, unparseable
    body) surfaces as CollaboratorError. Transport failures are retried with
    exponential backoff first; RPC error objects are not.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds
            max_retries: Attempts per request on transport failures
            retry_base_delay: Initial backoff delay in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._request_ids = itertools.count(1)

    async def _post(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any] | list[dict[str, Any]],
        timeout: float,
    ) -> Any:
        response = await client.post(self.rpc_url, json=payload, timeout=timeout)
        response.raise_for_status()
        return response.json()

    async def _send(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any] | list[dict[str, Any]],
        method: str,
        timeout: float | None,
    ) -> Any:
        post = retry_with_backoff(self.max_retries, self.retry_base_delay)(self._post)
        try:
            return await post(client, payload, timeout or self.timeout)
        except httpx.HTTPStatusError as e:
            msg = f"HTTP {e.response.status_code} from {self.rpc_url}"
            raise CollaboratorError(msg, method) from e
        except httpx.HTTPError as e:
            msg = str(e) or type(e).__name__
            raise CollaboratorError(msg, method) from e
        except ValueError as e:
            msg = "response body is not valid JSON"
            raise CollaboratorError(msg, method) from e

    @staticmethod
    def _unwrap(response: Any, method: str) -> Any:
        if not isinstance(response, dict):
            msg = f"malformed response: {response!r}"
            raise CollaboratorError(msg, method)

        if response.get("error") is not None:
            msg = f"RPC error: {response['error']}"
            raise CollaboratorError(msg, method)

        if "result" not in response:
            msg = "response has no result"
            raise CollaboratorError(msg, method)

        return response["result"]

    async def execute(
        self,
        client: httpx.AsyncClient,
        request: JsonRpcRequest,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a prepared JSON-RPC request and return its result.

        Args:
            client: HTTP client instance
            request: Request model (its id is used as-is)
            timeout: Optional timeout override

        Returns:
            RPC result value (may be None)

        Raises:
            CollaboratorError: If the request fails or the node returns an error
        """
        response = await self._send(
            client, request.model_dump(), request.method, timeout
        )
        return self._unwrap(response, request.method)

    async def batch_call(
        self,
        client: httpx.AsyncClient,
        requests: list[JsonRpcRequest],
        *,
        timeout: float | None = None,
    ) -> list[Any]:
        """Make multiple JSON-RPC calls in a single batch request.

        Args:
            client: HTTP client instance
            requests: Request models; their ids are replaced by their positions
            timeout: Optional timeout override

        Returns:
            List of results in the same order as requests

        Raises:
            CollaboratorError: If the batch fails or any entry carries an error
        """
        if not requests:
            return []

        batch_payload = [
            request.model_copy(update={"id": idx}).model_dump()
            for idx, request in enumerate(requests)
        ]
        methods = ",".join(sorted({request.method for request in requests}))

        results = await self._send(client, batch_payload, methods, timeout)

        if not isinstance(results, list) or len(results) != len(requests):
            msg = f"malformed batch response: {results!r}"
            raise CollaboratorError(msg, methods)

        try:
            # Sort by ID to match request order
            sorted_results = sorted(results, key=operator.itemgetter("id"))
        except (KeyError, TypeError) as e:
            msg = "batch response entries are missing ids"
            raise CollaboratorError(msg, methods) from e

        return [
            self._unwrap(result, requests[idx].method)
            for idx, result in enumerate(sorted_results)
        ]

    async def trace_block(
        self, client: httpx.AsyncClient, block_number: int
    ) -> list[dict[str, Any]]:
        """Get all call traces of a block, in execution order.

        Args:
            client: HTTP client instance
            block_number: Block number

        Returns:
            Raw trace objects; empty if the node reports none
        """
        request = TraceBlockRequest(
            params=[hex(block_number)], id=next(self._request_ids)
        )
        result = await self.execute(client, request)
        if result is None:
            return []
        if not isinstance(result, list):
            msg = f"expected a list of traces, got {type(result).__name__}"
            raise CollaboratorError(msg, request.method)
        return result

    async def get_block_with_transactions(
        self, client: httpx.AsyncClient, block_number: int
    ) -> dict[str, Any]:
        """Get a block with full transaction bodies.

        Args:
            client: HTTP client instance
            block_number: Block number

        Returns:
            Raw block object

        Raises:
            BlockNotFoundError: If the node has no such block
        """
        request = EthGetBlockByNumberRequest(
            params=[hex(block_number), True], id=next(self._request_ids)
        )
        result = await self.execute(client, request)
        if result is None:
            raise BlockNotFoundError(block_number)
        if not isinstance(result, dict):
            msg = f"expected a block object, got {type(result).__name__}"
            raise CollaboratorError(msg, request.method)
        return result

    async def get_balance_change(
        self,
        client: httpx.AsyncClient,
        address: str,
        block_number: int,
    ) -> tuple[int, int, int]:
        """Get balance before, after, and change for a block.

        Both balances are fetched in one batch request.

        Args:
            client: HTTP client instance
            address: Ethereum address
            block_number: Block number

        Returns:
            Tuple of (balance_before, balance_after, balance_change) in wei;
            balance_change may be negative

        Raises:
            CollaboratorError: If block_number has no parent block or a
                request fails

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with httpx.AsyncClient() as client:
                before, after, change = await rpc.get_balance_change(
                    client, "0x123...", 1000
                )
            ```
        """
        if block_number < 1:
            msg = f"block {block_number} has no parent to compare balances against"
            raise CollaboratorError(msg, "eth_getBalance")

        results = await self.batch_call(
            client,
            [
                EthGetBalanceRequest(params=[address, hex(number)], id=0)
                for number in (block_number - 1, block_number)
            ],
        )

        balance_before = self._parse_balance(results[0])
        balance_after = self._parse_balance(results[1])
        return balance_before, balance_after, balance_after - balance_before

    @staticmethod
    def _parse_balance(result: Any) -> int:
        try:
            balance = parse_hex_int(result, default=-1)
        except ValueError as e:
            raise CollaboratorError(str(e), "eth_getBalance") from e
        if balance < 0:
            msg = f"invalid balance: {result!r}"
            raise CollaboratorError(msg, "eth_getBalance")
        return balance


__all__ = [
    "RPCClient",
]
