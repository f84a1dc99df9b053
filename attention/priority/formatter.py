"""
Rich formatter for ranked priority lists.

Renders the ranked list, per-item signal breakdowns and the debug
statistics panel for the terminal.
"""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from attention.core.config import PriorityConfig
from attention.core.models import SourceType, WorkItem
from attention.priority.engine import PriorityResult, PriorityStats


# Short labels and colors per source type
SOURCE_STYLES = {
    SourceType.TASK: ("Task", "white"),
    SourceType.INBOX: ("Inbox", "blue"),
    SourceType.CALENDAR_EVENT: ("Calendar", "cyan"),
    SourceType.PORTFOLIO_COMPANY: ("Portfolio", "magenta"),
    SourceType.PIPELINE_COMPANY: ("Pipeline", "yellow"),
    SourceType.READING_ITEM: ("Reading", "dim"),
    SourceType.RECURRING_COMMITMENT: ("Habit", "green"),
}


def _truncate(text: str, width: int) -> str:
    return text[:width - 3] + "..." if len(text) > width else text


class PriorityFormatter:
    """
    Rich-based formatter for the ranked priority list.

    Creates terminal output using Rich panels and tables.
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize formatter.

        Args:
            console: Rich Console instance (creates default if not provided)
        """
        self.console = console or Console()

    def _format_source(self, source_type: SourceType) -> str:
        label, color = SOURCE_STYLES.get(source_type, (source_type.value, "white"))
        return f"[{color}]{label}[/{color}]"

    def _format_score(self, score: float) -> str:
        """Format score with color by band."""
        if score >= 0.7:
            return f"[red bold]{score:.2f}[/red bold]"
        elif score >= 0.5:
            return f"[yellow]{score:.2f}[/yellow]"
        return f"[dim]{score:.2f}[/dim]"

    def format_ranked_items(self, items: List[WorkItem]) -> Panel:
        """
        Create panel with the ranked list.

        Args:
            items: Ranked, explained items

        Returns:
            Rich Panel with one row per item
        """
        if not items:
            return Panel(
                Text("Nothing needs attention right now", justify="center", style="dim"),
                title="[bold]Needs Attention[/bold]",
                border_style="green",
                padding=(0, 1),
            )

        table = Table(box=None, padding=(0, 1), expand=True)
        table.add_column("#", width=3)
        table.add_column("Score", width=5, justify="right")
        table.add_column("Source", width=9)
        table.add_column("Title", ratio=2)
        table.add_column("Why", ratio=3)

        for i, item in enumerate(items, 1):
            title = _truncate(item.title, 40)
            if item.subtitle:
                title = f"{title}\n[dim]{_truncate(item.subtitle, 40)}[/dim]"
            table.add_row(
                f"[bold]{i}.[/bold]",
                self._format_score(item.priority_score),
                self._format_source(item.source_type),
                title,
                item.reasoning,
            )

        return Panel(
            table,
            title=f"[bold]Needs Attention ({len(items)})[/bold]",
            border_style="green",
            padding=(0, 1),
        )

    def format_signals(self, item: WorkItem) -> Panel:
        """
        Create panel with one item's score breakdown.

        Args:
            item: Explained item

        Returns:
            Rich Panel listing each signal
        """
        table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
        table.add_column("Signal", width=11)
        table.add_column("Weight", width=6, justify="right")
        table.add_column("Description", ratio=1)

        for signal in item.signals:
            table.add_row(signal.source, f"{signal.weight:.2f}", signal.description)

        table.add_row("", "", "")
        table.add_row("[bold]priority[/bold]", f"[bold]{item.priority_score:.2f}[/bold]", item.reasoning)

        return Panel(
            table,
            title=f"[bold]{_truncate(item.title, 50)}[/bold] [dim]{item.id}[/dim]",
            border_style="white",
            padding=(0, 1),
        )

    def format_stats(self, stats: PriorityStats, config: Optional[PriorityConfig] = None) -> Panel:
        """
        Create debug panel with distribution and score range.

        Args:
            stats: Statistics of the ranking pass
            config: Configuration to show weights and caps for

        Returns:
            Rich Panel with statistics
        """
        lines = []

        distribution = "  ".join(
            f"{SOURCE_STYLES[source_type][0]} {count}"
            for source_type, count in stats.distribution.items()
        )
        lines.append(f"Sources       {distribution}")
        lines.append(
            f"Scores        min {stats.min_score:.2f}  avg {stats.avg_score:.2f}  max {stats.max_score:.2f}"
        )
        lines.append(
            f"Candidates    {stats.total_candidates}  [dim]excluded {stats.excluded} • "
            f"invalid {stats.invalid} • below threshold {stats.below_threshold}[/dim]"
        )

        if stats.failed_sources:
            failed = ", ".join(s.value for s in stats.failed_sources)
            lines.append(f"[red bold]Failed        {failed}[/red bold]")

        if config is not None:
            weights = "  ".join(f"{k} {v:.2f}" for k, v in config.weights.to_dict().items())
            lines.append("[dim]" + "─" * 40 + "[/dim]")
            lines.append(f"Weights       {weights}")
            lines.append(
                f"Limits        min score {config.min_score:.2f}  max items {config.max_items}  "
                f"per source {config.max_items_per_source}"
            )

        return Panel(
            "\n".join(lines),
            title="[bold]Debug[/bold]",
            border_style="magenta",
            padding=(0, 1),
        )

    def render(
        self,
        result: PriorityResult,
        config: Optional[PriorityConfig] = None,
        verbose: bool = False
    ) -> None:
        """
        Render a ranking result to the console.

        Args:
            result: Ranked items and statistics
            config: Configuration used for the pass (shown in the debug panel)
            verbose: Show per-item signals and the debug panel
        """
        self.console.print(self.format_ranked_items(result.items))

        if result.stats.failed_sources:
            failed = ", ".join(s.value for s in result.stats.failed_sources)
            self.console.print(f"[red]⚠ Some sources could not be loaded: {failed}[/red]")

        if verbose:
            for item in result.items:
                self.console.print(self.format_signals(item))
            self.console.print(self.format_stats(result.stats, config))
