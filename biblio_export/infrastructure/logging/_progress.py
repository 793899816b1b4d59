# biblio_export/infrastructure/logging/_progress.py

"""Progress bar management for CLI output"""

# Standard library imports
from contextlib import contextmanager
from logging import getLogger
from typing import Iterator

# Third party imports
from rich.console import Console
from rich.progress import BarColumn
from rich.progress import MofNCompleteColumn
from rich.progress import Progress
from rich.progress import SpinnerColumn
from rich.progress import TaskID
from rich.progress import TextColumn
from rich.progress import TimeElapsedColumn

logger = getLogger(__name__)


class ProgressBarManager:
    """Shows record progress of a batch export"""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.progress: Progress | None = None
        self.console: Console | None = None
        self.tasks: dict[str, TaskID] = {}

        if self.enabled:
            self.console = Console(stderr=True)
            self.progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
                expand=False,
            )

    def start(self) -> None:
        if self.enabled and self.progress:
            self.progress.start()

    def stop(self) -> None:
        if self.enabled and self.progress:
            self.progress.stop()

    def create_task(
        self, name: str, total: int | None = None, description: str | None = None
    ) -> None:
        """Create a progress task

        Args:
            name: Task key
            total: Total number of records, None while the catalogue size is unknown
            description: Description to display
        """
        if not self.enabled or not self.progress:
            if description:
                logger.info(description)
            return
        self.tasks[name] = self.progress.add_task(description or name, total=total)

    def advance(self, name: str, amount: int = 1, total: int | None = None) -> None:
        """Advance a task, growing its total as pages arrive"""
        if not self.enabled or not self.progress or name not in self.tasks:
            return
        task_id = self.tasks[name]
        if total is not None:
            self.progress.update(task_id, total=total)
        self.progress.advance(task_id, amount)

    def complete_task(self, name: str, message: str | None = None) -> None:
        if not self.enabled or not self.progress or name not in self.tasks:
            if message:
                logger.info(message)
            return

        task_id = self.tasks[name]
        task = self.progress.tasks[task_id]
        self.progress.update(task_id, total=task.completed, completed=task.completed)

        if message and self.console:
            self.console.print(f"[green]✓[/green] {message}")

    @contextmanager
    def task_context(
        self, name: str, total: int | None = None, description: str | None = None
    ) -> Iterator["ProgressBarManager"]:
        """Run a block with a started display and one task"""
        self.start()
        self.create_task(name, total, description)
        try:
            yield self
        finally:
            self.complete_task(name)
            self.stop()
