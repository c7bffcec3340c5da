"""Shared progress bar utilities for Rich console displays."""

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


def create_standard_progress(
    console: Console | None = None,
    *,
    expand: bool = False,
    show_failures: bool = False,
) -> Progress:
    """Create a progress bar with an M of N counter and time estimates.

    Args:
        console: Rich console instance (optional)
        expand: Whether to expand the progress bar to full width
        show_failures: Add a column rendering the task's ``failed`` field

    Returns:
        Configured Progress instance
    """
    columns: list[ProgressColumn | str] = [
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
    ]
    if show_failures:
        columns += [TextColumn("•"), TextColumn("[red]{task.fields[failed]} failed")]
    columns += [
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
    ]
    return Progress(*columns, console=console, expand=expand)


@contextmanager
def track_progress(
    description: str,
    total: int,
    console: Console | None = None,
    *,
    show_failures: bool = False,
) -> Iterator[tuple[Progress, TaskID]]:
    """Run a single progress task for the duration of the block.

    With ``show_failures`` the task starts with ``failed=0``; update it with
    ``progress.update(task_id, failed=n)``.

    Example:
        ```python
        with track_progress("Reconciling", total=len(pending), show_failures=True) as (
            progress,
            task_id,
        ):
            ...
            progress.update(task_id, advance=1, failed=failed)
        ```
    """
    progress = create_standard_progress(console, show_failures=show_failures)
    with progress:
        fields = {"failed": 0} if show_failures else {}
        task_id = progress.add_task(description, total=total, **fields)
        yield progress, task_id


__all__ = [
    "TaskID",
    "create_standard_progress",
    "track_progress",
]
