"""Read relay bid exports and read/write reconciliation files."""

import csv
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType

from typing import IO, Self, TypeVar

from pydantic import BaseModel, ValidationError

from src.helpers.errors import FileIOError, MalformedRecordError
from src.payments.models import (
    INPUT_COLUMNS,
    OUTPUT_COLUMNS,
    BoostRelayDataEntry,
    OutputFileEntry,
)


M = TypeVar("M", bound=BaseModel)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'row'}: {e['msg']}"
        for e in error.errors()
    )


def _read_rows(path: Path, model: type[M], columns: tuple[str, ...]) -> list[M]:
    entries: list[M] = []
    try:
        with path.open(newline="") as f:
            reader = csv.DictReader(f)
            try:
                fieldnames = reader.fieldnames or []
                if not fieldnames:
                    return entries

                missing = [c for c in columns if c not in fieldnames]
                if missing:
                    raise MalformedRecordError(
                        path, 1, f"missing columns: {', '.join(missing)}"
                    )

                for row in reader:
                    if None in row:
                        raise MalformedRecordError(
                            path, reader.line_num, "too many fields"
                        )
                    try:
                        entries.append(model.model_validate(row))
                    except ValidationError as e:
                        raise MalformedRecordError(
                            path, reader.line_num, _describe(e)
                        ) from e
            except (csv.Error, UnicodeDecodeError) as e:
                raise MalformedRecordError(path, reader.line_num, str(e)) from e
    except OSError as e:
        raise FileIOError(path, e.strerror or str(e)) from e

    return entries


def read_input_entries(path: Path | str) -> list[BoostRelayDataEntry]:
    """Read a relay bid export.

    Args:
        path: CSV file with slot, proposer_fee_recipient, value and
            block_number columns

    Returns:
        Entries in file order

    Raises:
        FileIOError: If the file cannot be read
        MalformedRecordError: On the first row that does not parse
    """
    return _read_rows(Path(path), BoostRelayDataEntry, INPUT_COLUMNS)


def read_output_entries(path: Path | str) -> list[OutputFileEntry]:
    """Read previously written reconciliation rows.

    A missing or empty file means nothing has been processed yet.

    Raises:
        FileIOError: If the file exists but cannot be read
        MalformedRecordError: On the first row that does not parse
    """
    path = Path(path)
    if not path.exists():
        return []
    return _read_rows(path, OutputFileEntry, OUTPUT_COLUMNS)


class OutputFileWriter:
    """Single-writer CSV sink for reconciliation rows.

    Opening the writer truncates the file and writes the header. Every call
    to ``write_entries`` is followed by a flush, so rows that have been
    written survive a crash of the process.

    Example:
        ```python
        with OutputFileWriter("payments.csv") as writer:
            writer.write_entries(previous_entries)
            writer.write_entries(chunk_entries)
        ```
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize writer for path (nothing is opened yet)."""
        self.path = Path(path)
        self._file: IO[str] | None = None
        self._writer: "csv.DictWriter[str] | None" = None

    def open(self) -> None:
        """Open the file for writing and write the header row."""
        try:
            self._file = self.path.open("w", newline="")
            self._writer = csv.DictWriter(self._file, fieldnames=OUTPUT_COLUMNS)
            self._writer.writeheader()
            self._file.flush()
        except OSError as e:
            raise FileIOError(self.path, e.strerror or str(e)) from e

    def write_entries(self, entries: Iterable[OutputFileEntry]) -> int:
        """Append rows and flush them.

        Returns:
            Number of rows written
        """
        if self._file is None or self._writer is None:
            msg = "OutputFileWriter is not open"
            raise RuntimeError(msg)

        rows = [entry.to_row() for entry in entries]
        try:
            self._writer.writerows(rows)
            self._file.flush()
        except OSError as e:
            raise FileIOError(self.path, e.strerror or str(e)) from e
        return len(rows)

    def close(self) -> None:
        """Close the underlying file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "OutputFileWriter",
    "read_input_entries",
    "read_output_entries",
]
