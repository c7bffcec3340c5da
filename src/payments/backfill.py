"""Resumable, chunked reconciliation of relay bids against on-chain payments."""

from asyncio import gather
from collections import Counter
from collections.abc import Sequence
from operator import attrgetter
from pathlib import Path

import httpx
from pydantic import BaseModel, Field
from rich.console import Console
from rich.progress import Progress, TaskID
from rich.table import Table

from src.helpers.backfill import BackfillBase, chunked
from src.helpers.config import (
    get_eth_rpc_url,
    get_log_color,
    get_log_level,
    get_rpc_parallel,
    get_rpc_timeout,
)
from src.helpers.http import create_http_client
from src.helpers.logging import get_logger
from src.helpers.parsers import wei_to_eth
from src.helpers.progress import track_progress
from src.helpers.rpc import RPCClient
from src.payments.files import (
    OutputFileWriter,
    read_input_entries,
    read_output_entries,
)
from src.payments.models import BoostRelayDataEntry, OutputFileEntry, PaymentType
from src.payments.transform import process_input_entry


def _format_eth(wei: int) -> str:
    return f"{wei_to_eth(wei):,.4f}"


class BackfillResult(BaseModel):
    """Outcome of one pipeline run."""

    skipped: int = Field(..., description="Input slots already in the output file")
    processed: int = Field(..., description="Rows added by this run")
    failed: int = Field(..., description="Slots dropped after an error")
    entries: list[OutputFileEntry] = Field(
        default_factory=list, description="Every row in the output file"
    )


class BackfillProposerPayments(BackfillBase):
    """Reconcile a relay bid export against on-chain proposer payments.

    Slots already present in the output file are skipped, so re-running the
    backfill only retries slots that are missing (never attempted or failed
    before). Pending slots are processed ``batch_size`` at a time; a chunk is
    sorted by slot, appended and flushed before the next chunk starts.
    """

    def __init__(
        self,
        input_path: Path | str,
        output_path: Path | str,
        *,
        rpc_client: RPCClient | None = None,
        eth_rpc_url: str | None = None,
        rpc_parallel: int | None = None,
        console: Console | None = None,
        log_level: str | None = None,
    ) -> None:
        """Initialize backfill.

        Args:
            input_path: Relay bid export (CSV)
            output_path: Reconciliation file (CSV), created or extended
            rpc_client: RPC client to use (built from eth_rpc_url by default)
            eth_rpc_url: Ethereum JSON-RPC endpoint (defaults to env var ETH_RPC_URL)
            rpc_parallel: Slots processed concurrently (defaults to env var
                ETH_RPC_PAR, then 10)
            console: Console for progress display
            log_level: Log level name (defaults to env var LOG_LEVEL, then INFO)

        Raises:
            ValueError: If no RPC endpoint is configured or rpc_parallel is
                not positive
        """
        super().__init__(get_rpc_parallel(rpc_parallel), console)
        self.input_path = Path(input_path)
        self.output_path = Path(output_path)
        self.rpc_client = rpc_client or RPCClient(
            get_eth_rpc_url(eth_rpc_url), timeout=get_rpc_timeout()
        )
        self.logger = get_logger(
            "backfill_proposer_payments",
            log_handler="stderr",
            log_level=get_log_level(log_level),
            log_color=get_log_color(),
        )

    def load(self) -> tuple[list[OutputFileEntry], list[BoostRelayDataEntry], int]:
        """Load prior results and the slots still to process.

        Returns:
            Tuple of (existing output rows, pending input entries in file
            order, number of input entries skipped as already processed)

        Raises:
            FileIOError: If a file cannot be read
            MalformedRecordError: If a file contains an unparseable row
        """
        processed = read_output_entries(self.output_path)
        processed_slots = frozenset(entry.slot for entry in processed)

        inputs = read_input_entries(self.input_path)
        pending = [entry for entry in inputs if entry.slot not in processed_slots]

        return processed, pending, len(inputs) - len(pending)

    async def _process_entry(
        self,
        client: httpx.AsyncClient,
        entry: BoostRelayDataEntry,
        progress: Progress,
        task_id: TaskID,
    ) -> OutputFileEntry | None:
        try:
            return await process_input_entry(self.rpc_client, client, entry)
        except Exception as e:
            self.logger.warning(
                "Slot %d (block %d) failed, will retry on next run: %s",
                entry.slot,
                entry.block_number,
                e,
            )
            return None
        finally:
            progress.update(task_id, advance=1)

    async def process_chunk(
        self,
        client: httpx.AsyncClient,
        chunk: Sequence[BoostRelayDataEntry],
        progress: Progress,
        task_id: TaskID,
    ) -> list[OutputFileEntry]:
        """Process one chunk concurrently.

        Failed slots are logged and left out.

        Returns:
            Successful rows, sorted by slot
        """
        results = await gather(
            *(self._process_entry(client, entry, progress, task_id) for entry in chunk)
        )
        return sorted(
            (result for result in results if result is not None),
            key=attrgetter("slot"),
        )

    async def run(self) -> BackfillResult:
        """Run the backfill process.

        Returns:
            Counts for this run and every row now in the output file

        Raises:
            FileIOError: If the input cannot be read or the output written
            MalformedRecordError: If a file contains an unparseable row
        """
        processed, pending, skipped = self.load()

        self.logger.info(
            "%d slots already processed, %d pending (chunks of %d)",
            skipped,
            len(pending),
            self.batch_size,
        )

        entries = list(processed)
        failed = 0

        with OutputFileWriter(self.output_path) as writer:
            writer.write_entries(processed)

            async with create_http_client(self.rpc_client.timeout) as client:
                with track_progress(
                    "Reconciling proposer payments",
                    len(pending),
                    self.console,
                    show_failures=True,
                ) as (progress, task_id):
                    for chunk_num, chunk in enumerate(
                        chunked(pending, self.batch_size), start=1
                    ):
                        results = await self.process_chunk(
                            client, chunk, progress, task_id
                        )
                        writer.write_entries(results)
                        entries.extend(results)
                        failed += len(chunk) - len(results)
                        progress.update(task_id, failed=failed)
                        self.logger.debug(
                            "Chunk %d: wrote %d/%d rows",
                            chunk_num,
                            len(results),
                            len(chunk),
                        )

        result = BackfillResult(
            skipped=skipped,
            processed=len(entries) - len(processed),
            failed=failed,
            entries=entries,
        )
        self.logger.info(
            "Done: %d new rows, %d failed, %d skipped",
            result.processed,
            result.failed,
            result.skipped,
        )
        return result

    def display_summary(self, result: BackfillResult) -> None:
        """Print payment type counts, ETH totals and underpaid bids for the whole file."""
        by_type = Counter(entry.payment_type for entry in result.entries)
        bid_wei: Counter[PaymentType] = Counter()
        received_wei: Counter[PaymentType] = Counter()
        for entry in result.entries:
            bid_wei[entry.payment_type] += entry.bid_value
            received_wei[entry.payment_type] += entry.balance_diff
        underpaid = Counter(
            entry.payment_type for entry in result.entries if entry.is_underpaid
        )

        table = Table(title="Proposer Payments")
        table.add_column("Payment Type", style="cyan")
        table.add_column("Slots", justify="right", style="yellow")
        table.add_column("Bid (ETH)", justify="right")
        table.add_column("Received (ETH)", justify="right", style="green")
        table.add_column("Below Bid", justify="right", style="red")

        for payment_type in PaymentType:
            table.add_row(
                payment_type.value,
                f"{by_type[payment_type]:,}",
                _format_eth(bid_wei[payment_type]),
                _format_eth(received_wei[payment_type]),
                f"{underpaid[payment_type]:,}",
            )
        table.add_row(
            "[bold]total[/bold]",
            f"{len(result.entries):,}",
            _format_eth(bid_wei.total()),
            _format_eth(received_wei.total()),
            f"{underpaid.total():,}",
        )

        self.console.print(table)
        self.console.print(
            f"[green]✓ {result.processed:,} new[/green] • "
            f"[yellow]{result.skipped:,} skipped[/yellow] • "
            f"[red]{result.failed:,} failed[/red]"
        )


__all__ = ["BackfillProposerPayments", "BackfillResult"]
