"""Base classes and utilities for backfill operations."""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

from typing import Any, TypeVar

from rich.console import Console


T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split items into consecutive chunks of at most size elements.

    Args:
        items: Items to split, order is preserved
        size: Maximum chunk length

    Yields:
        Consecutive slices of items

    Raises:
        ValueError: If size is not positive
    """
    if size < 1:
        msg = "Chunk size must be positive"
        raise ValueError(msg)
    for i in range(0, len(items), size):
        yield items[i : i + size]


class BackfillBase(ABC):
    """Abstract base class for backfill operations.

    Provides common functionality for all backfill classes including:
    - Console initialization for progress display
    - Batch size configuration

    Subclasses must implement:
    - run(): Main backfill orchestration logic
    """

    def __init__(self, batch_size: int, console: Console | None = None) -> None:
        """Initialize backfill with common configuration.

        Args:
            batch_size: Number of items to process per batch
            console: Console for progress display (a new one by default)

        Raises:
            ValueError: If batch_size is not positive
        """
        if batch_size < 1:
            msg = "Batch size must be positive"
            raise ValueError(msg)

        self.batch_size = batch_size
        self.console = console or Console()

    @abstractmethod
    async def run(self, *args: Any, **kwargs: Any) -> Any:
        """Run the backfill process.

        This method must be implemented by subclasses to define
        their specific backfill logic and orchestration.
        """
        ...


__all__ = ["BackfillBase", "chunked"]
