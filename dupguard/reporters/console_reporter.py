"""Console reporter for terminal output (rich).

Layout per group:

    Duplication 1:
       Same file: src/app.ts
       Found 2 similar blocks in the same file
       Block 1: Lines 1-10
       Block 2: Lines 11-20
       Preview:
       1: const total = items.reduce(...)
       ...

followed by one Solution panel for the whole report.
"""

import io
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from dupguard.models import DuplicateGroup, ScanResult
from dupguard.reporters.base_reporter import BaseReporter

PREVIEW_LINES = 5
PREVIEW_WIDTH = 80

SOLUTION_TEXT = (
    "Consider extracting the duplicated code into:\n"
    "- A shared utility function\n"
    "- A custom hook\n"
    "- A shared component\n"
    "- A shared service method if it's API-related\n"
    "\n"
    "[dim]Configure via .duprc or environment variables: "
    "DUPGUARD_EXCLUDED_PATHS, DUPGUARD_MIN_LINES, DUPGUARD_MIN_SIMILARITY[/dim]"
)


class ConsoleReporter(BaseReporter):
    """Human-readable duplicate report."""

    def __init__(self, console: Optional[Console] = None, show_stats: bool = True):
        self.console = console or Console(stderr=True)
        self.show_stats = show_stats

    def render(self, result: ScanResult, console: Optional[Console] = None) -> None:
        """Print the report to a rich console."""
        console = console or self.console

        if not result.groups:
            console.print("[green]✅ No code duplication found[/green]")
            self._render_stats(result, console)
            return

        console.print()
        console.print(
            "[yellow bold]⚠️  Warning: Found code duplication that should be refactored:[/yellow bold]"
        )
        for index, group in enumerate(result.groups, start=1):
            self._render_group(index, group, console)

        console.print()
        console.print(Panel(SOLUTION_TEXT, title="💡 Solution", border_style="cyan", expand=False))
        self._render_stats(result, console)

    def _render_group(self, index: int, group: DuplicateGroup, console: Console) -> None:
        root = group.root
        console.print()
        console.print(f"[red bold]🔴 Duplication {index}:[/red bold]")

        if group.is_same_file:
            console.print(f"   Same file: [cyan]{escape(root.source_id)}[/cyan]")
            console.print(f"   Found {len(group.members)} similar blocks in the same file")
            for block_index, block in enumerate(group.members, start=1):
                console.print(f"   Block {block_index}: Lines {block.start_line}-{block.end_line}")
        else:
            console.print(f"   Multiple files ({group.file_count} files):")
            for source_id, blocks in group.members_by_source().items():
                console.print(f"   📄 [cyan]{escape(source_id)}[/cyan]:")
                for block in blocks:
                    console.print(f"      Lines {block.start_line}-{block.end_line}")

        if group.similarity < 100:
            console.print(f"   [dim]Similarity: {group.similarity_percent}%[/dim]")

        console.print("   Preview:")
        for line_no, text in root.preview(PREVIEW_LINES, PREVIEW_WIDTH):
            console.print(f"   [dim]{line_no}:[/dim] {escape(text)}", highlight=False)
        if root.line_count > PREVIEW_LINES:
            console.print("   ...")

    def _render_stats(self, result: ScanResult, console: Console) -> None:
        if not self.show_stats:
            return
        stats = result.stats
        console.print(
            f"[dim]{stats.sources_scanned} file(s) scanned, {stats.sources_skipped} skipped, "
            f"{stats.blocks_extracted} blocks, {stats.comparisons} comparisons[/dim]"
        )
        if stats.degraded:
            console.print(
                "[yellow]Resource ceiling reached; the report may be incomplete[/yellow]"
            )

    def generate_string(self, result: ScanResult) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, force_terminal=False, color_system=None, width=120)
        self.render(result, console)
        return buffer.getvalue()
