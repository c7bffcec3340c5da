"""Command line entry point for proposer payment reconciliation."""

import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from asyncio import run

from rich.console import Console

from src.helpers.config import (
    get_eth_rpc_url,
    get_log_level,
    get_rpc_parallel,
    get_rpc_timeout,
)
from src.helpers.errors import PaymentsError
from src.helpers.http import create_http_client
from src.helpers.logging import LOG_LEVELS
from src.helpers.parsers import normalize_address, parse_decimal_uint
from src.helpers.rpc import RPCClient
from src.payments.assembler import get_block_proposer_payment_data
from src.payments.backfill import BackfillProposerPayments
from src.payments.models import BlockProposerPaymentData


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def block_number(value: str) -> int:
    """Parse a block number that has a parent block (at least 1)."""
    try:
        number = int(value)
    except ValueError:
        msg = f"invalid block number: {value!r}"
        raise ArgumentTypeError(msg) from None
    if number < 1:
        msg = f"block number must be at least 1, got {number}"
        raise ArgumentTypeError(msg)
    return number


def build_parser() -> ArgumentParser:
    """Build the argument parser for both commands."""
    parser = ArgumentParser(
        description="Reconcile relay bids against on-chain proposer payments"
    )
    parser.add_argument(
        "--eth-rpc-url",
        default=None,
        help="Ethereum JSON-RPC endpoint (default: $ETH_RPC_URL)",
    )
    parser.add_argument(
        "--rpc-parallel",
        type=int,
        default=None,
        help="Slots analysed concurrently (default: $ETH_RPC_PAR or 10)",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS),
        type=str.upper,
        default=None,
        help="Log level (default: $LOG_LEVEL or INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    block = commands.add_parser(
        "block", help="Show how a single block paid its fee recipient"
    )
    block.add_argument(
        "--number", type=block_number, required=True, help="Block number (>= 1)"
    )
    block.add_argument(
        "--fee-recipient",
        type=normalize_address,
        required=True,
        help="Proposer fee recipient address",
    )
    block.add_argument(
        "--bid-value",
        type=parse_decimal_uint,
        required=True,
        help="Promised bid value in wei (decimal)",
    )
    block.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )

    file = commands.add_parser(
        "file", help="Reconcile every slot of a relay export, resuming from output"
    )
    file.add_argument("--input", required=True, help="Relay export CSV")
    file.add_argument("--output", required=True, help="Reconciliation CSV")

    return parser


async def analyze_block(
    rpc_client: RPCClient, number: int, fee_recipient: str, bid_value: int
) -> BlockProposerPaymentData:
    """Assemble the payment data of one block."""
    async with create_http_client(rpc_client.timeout) as client:
        return await get_block_proposer_payment_data(
            rpc_client, client, number, fee_recipient, bid_value
        )


def _run_block(args: Namespace, rpc_client: RPCClient, console: Console) -> None:
    data = run(
        analyze_block(rpc_client, args.number, args.fee_recipient, args.bid_value)
    )
    if args.json:
        console.print_json(data.model_dump_json())
    else:
        console.print(data)


def _run_file(
    args: Namespace, rpc_client: RPCClient, rpc_parallel: int, console: Console
) -> None:
    backfill = BackfillProposerPayments(
        args.input,
        args.output,
        rpc_client=rpc_client,
        rpc_parallel=rpc_parallel,
        console=console,
        log_level=args.log_level,
    )
    console.print("[bold blue]Reconciling proposer payments[/bold blue]")
    console.print(f"[cyan]Input: {backfill.input_path}[/cyan]")
    console.print(f"[cyan]Output: {backfill.output_path}[/cyan]")
    console.print(f"[cyan]Parallel slots: {backfill.batch_size}[/cyan]\n")

    result = run(backfill.run())
    backfill.display_summary(result)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)
    console = Console()
    err_console = Console(stderr=True)

    try:
        rpc_url = get_eth_rpc_url(args.eth_rpc_url)
        rpc_parallel = get_rpc_parallel(args.rpc_parallel)
        rpc_client = RPCClient(rpc_url, timeout=get_rpc_timeout())
        args.log_level = get_log_level(args.log_level)
    except ValueError as e:
        err_console.print(f"[red]Configuration error: {e}[/red]")
        return EXIT_CONFIG_ERROR

    try:
        if args.command == "block":
            _run_block(args, rpc_client, console)
        else:
            _run_file(args, rpc_client, rpc_parallel, err_console)
    except PaymentsError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE

    return EXIT_OK


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
