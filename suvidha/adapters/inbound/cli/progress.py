"""Progress display for the CLI ingest command.

Renders one Rich progress bar across every knowledge entry being embedded,
then a per-source summary of created and failed entries.
"""

from rich.console import Console
from rich.live import Live
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

from ....core.services.knowledge_ingestion import IngestionReport

# Source icons and colors
SOURCE_STYLE = {
    "schemes": {"icon": "🏛️", "color": "cyan"},
    "policies": {"icon": "📜", "color": "blue"},
    "tariffs": {"icon": "💡", "color": "yellow"},
    "faqs": {"icon": "❓", "color": "magenta"},
    "services": {"icon": "🧾", "color": "green"},
}


class IngestProgress:
    """Progress bar fed by ``KnowledgeIngestionService.rebuild`` callbacks.

    Use as a context manager around the rebuild and pass ``update`` as the
    ``on_progress`` callback.
    """

    def __init__(self, console: Console, total: int):
        self.console = console
        self.total = total
        self.failed: list[tuple[str, str]] = []
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id: TaskID = self._progress.add_task(description="Embedding...", total=total)
        self._live = Live(self._progress, console=console, refresh_per_second=4)

    def __enter__(self) -> "IngestProgress":
        self._live.start()
        return self

    def __exit__(self, *args: object) -> None:
        self._live.stop()

    def update(self, source: str, title: str, created: bool) -> None:
        """Advance by one entry."""
        style = SOURCE_STYLE.get(source, {"icon": "•", "color": "white"})
        display_name = title[:40] + "..." if len(title) > 40 else title
        self._progress.update(
            self._task_id,
            advance=1,
            description=f"[{style['color']}]{style['icon']} {display_name}[/]",
        )
        if not created:
            self.failed.append((source, title))

    def summary(self, report: IngestionReport) -> None:
        """Print per-source counts and any entries that could not be embedded."""
        table = Table(title="Knowledge Base", show_lines=False)
        table.add_column("Source")
        table.add_column("Created", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")

        for source, counts in report.sources.items():
            style = SOURCE_STYLE.get(source, {"icon": "•", "color": "white"})
            table.add_row(
                f"{style['icon']} {source}",
                str(counts.created),
                str(counts.failed) if counts.failed else "-",
            )

        self.console.print(table)
        for source, title in self.failed:
            self.console.print(f"  [red]✗ {source}: {title[:50]}[/]")

        self.console.print("\n" + "━" * 50)
        if report.total_failed:
            self.console.print(
                f"[bold yellow]Done with {report.total_failed} failure(s):[/] "
                f"{report.total_created} entries created, {report.removed} removed"
            )
        else:
            self.console.print(
                f"[bold green]✅ Knowledge base rebuilt:[/] "
                f"{report.total_created} entries created, {report.removed} removed"
            )
        self.console.print("━" * 50)
