"""Error taxonomy for proposer payment reconciliation."""

from pathlib import Path


class PaymentsError(Exception):
    """Base class for all payment reconciliation errors."""


class CollaboratorError(PaymentsError):
    """The Ethereum node failed to answer a request.

    Covers transport failures, HTTP error statuses, JSON-RPC error objects and
    responses that cannot be parsed. Recoverable per item: the pipeline drops
    the item and a later run retries it.
    """

    def __init__(self, message: str, method: str | None = None) -> None:
        """Initialize collaborator error.

        Args:
            message: Human readable description
            method: JSON-RPC method that failed, if known
        """
        self.method = method
        if method:
            message = f"{method}: {message}"
        super().__init__(message)


class BlockNotFoundError(CollaboratorError):
    """The node has no block with the requested number."""

    def __init__(self, block_number: int) -> None:
        """Initialize with the missing block number."""
        self.block_number = block_number
        super().__init__(f"block {block_number} not found", "eth_getBlockByNumber")


class MalformedRecordError(PaymentsError):
    """A delimited file row could not be parsed. Fatal for the run."""

    def __init__(self, path: Path | str, line: int, reason: str) -> None:
        """Initialize malformed record error.

        Args:
            path: File containing the row
            line: 1-based line number of the row (header is line 1)
            reason: What was wrong with it
        """
        self.path = Path(path)
        self.line = line
        self.reason = reason
        super().__init__(f"{self.path}:{line}: {reason}")


class FileIOError(PaymentsError):
    """An input or output file could not be opened, read or written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        """Initialize file error."""
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


__all__ = [
    "BlockNotFoundError",
    "CollaboratorError",
    "FileIOError",
    "MalformedRecordError",
    "PaymentsError",
]
