"""Console output using the Rich library.

Provides:
- Live progress bars, one per upload stream
- The profile table for ``list-config``
- Batch summaries and status lines
"""

import threading
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from bkt.models import BatchResult, Profile
from bkt.progress.base import ProgressDisplay, ProgressSink


def make_console(stderr: bool = False) -> Console:
    # Use legacy_windows=True for ASCII-safe output on Windows consoles
    return Console(legacy_windows=True, stderr=stderr)


class RichProgressSink(ProgressSink):
    """Sink backed by one task of a shared Rich ``Progress``."""

    def __init__(self, progress: Progress, task_id: TaskID):
        self._progress = progress
        self._task_id = task_id

    @property
    def task_id(self) -> TaskID:
        return self._task_id

    def _task(self):
        return next(t for t in self._progress.tasks if t.id == self._task_id)

    def begin(self, total: int) -> None:
        self._progress.update(self._task_id, total=total, completed=0)

    def increment(self, by: int = 1) -> None:
        self._progress.advance(self._task_id, by)
        task = self._task()
        if task.total:
            self._progress.update(
                self._task_id, label=f"{100 * int(task.completed) // int(task.total):3d}%"
            )

    def set_label(self, text: str) -> None:
        self._progress.update(self._task_id, label=text)

    def finish(self, text: str) -> None:
        task = self._task()
        total = task.total if task.total is not None else task.completed
        self._progress.update(self._task_id, total=total, completed=total, label=text)


class RichProgressDisplay(ProgressDisplay):
    """Renders every sink as a progress bar in one live display.

    Sinks may be driven from different threads; Rich serializes updates
    internally.

    Args:
        console: Console to render to (defaults to stderr)
        transient: Remove the bars once the display stops
    """

    def __init__(self, console: Optional[Console] = None, transient: bool = False):
        self.console = console or make_console(stderr=True)
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[label]}", markup=False),
            TimeElapsedColumn(),
            console=self.console,
            transient=transient,
        )
        self._lock = threading.Lock()

    def start(self) -> None:
        self._progress.start()

    def stop(self) -> None:
        self._progress.stop()

    def sink(self, name: str) -> ProgressSink:
        with self._lock:
            task_id = self._progress.add_task(name, total=None, label="")
        return RichProgressSink(self._progress, task_id)


class ConsoleReporter:
    """Prints command results to the terminal.

    Args:
        console: Console for regular output
        quiet: Suppress informational lines, keep results and warnings
    """

    def __init__(self, console: Optional[Console] = None, quiet: bool = False):
        self.console = console or make_console()
        self.quiet = quiet

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message)

    def on_profile_saved(self, path: str) -> None:
        self.console.print(
            "[green]Successfully setup configuration.[/green] To update config, "
            "please run the same command with different arguments."
        )
        self.info(f"[dim]Saved to {escape(path)}[/dim]")

    def on_profile(self, profile: Profile) -> None:
        """Displays the current profile as a table."""
        table = Table(
            title="Current bkt configuration",
            show_header=False,
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", no_wrap=True)

        table.add_row("access-key", escape(profile.access_key))
        table.add_row("secret-key", escape(profile.secret_key))
        table.add_row("bucket", escape(profile.bucket))
        table.add_row("endpoint", escape(profile.endpoint))
        table.add_row("region", escape(profile.region))

        self.console.print(table)

    def on_file_uploaded(self, source: str, status_code: int, elapsed: float) -> None:
        self.console.print(f"Finished in {elapsed:.3f}s")
        self.console.print(
            f"File {escape(source)} successfully put with status code: {status_code}",
            soft_wrap=True,
        )

    def on_workers(self, cpus: int, workers: int) -> None:
        self.info(f"Machine has {cpus} cpu(s)")
        self.info(f"Running with {workers} worker thread(s)")

    def on_batch_complete(self, result: BatchResult) -> None:
        """Displays failed/succeeded/total counts for a folder upload."""
        failed_style = "red" if result.failed else "green"
        self.console.print(f"[{failed_style}]{result.failed} failed to upload[/{failed_style}]")
        self.console.print(f"[green]{result.succeeded} succeeded to upload[/green]")
        self.console.print(f"{result.total} total number of files processed")
        self.console.print(f"Finished in {result.elapsed_seconds:.3f}s")

    def on_count(self, folder: str, count: int) -> None:
        self.console.print(f"Number of files in {escape(folder)}: {count}", soft_wrap=True)
