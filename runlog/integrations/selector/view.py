"""
Rich rendering of the selector state.

Rendering is a pure projection of ``SelectorState``: nothing here changes
state, and every frame redraws the whole screen.
"""

import os
import textwrap
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from runlog.core.constants import (
    DEFAULT_TERMINAL_HEIGHT,
    FOOTER_LINES,
    HEADER_LINES,
    MIN_PAGE_SIZE,
)
from runlog.core.formatting import format_conversation_line, format_date, format_duration
from runlog.integrations.selector.state import PreviewMode, SearchMode, SelectorState

TITLE = "runlog - Claude Code Conversation Exporter"

ROLE_STYLES = {
    'user': ('User', 'blue'),
    'assistant': ('Assistant', 'green'),
    'thinking': ('Thinking', 'yellow'),
}


class SelectorView:
    """Draws the selector on a Rich console"""

    def __init__(self, console: Optional[Console] = None, cwd: Optional[str] = None,
                 title: str = TITLE):
        self.console = console or Console()
        self.cwd = cwd or os.getcwd()
        self.title = title

    def page_size(self) -> int:
        """Messages that fit in the preview viewport at the current terminal height"""
        height = self.console.size.height or DEFAULT_TERMINAL_HEIGHT
        return max(MIN_PAGE_SIZE, height - HEADER_LINES - FOOTER_LINES)

    def render(self, state: SelectorState):
        self.console.clear()
        self.console.print(f"\n[bold blue]{self.title}[/bold blue]\n")
        self.console.print(f"[bright_black]Current directory: {escape(self.cwd)}[/bright_black]\n")

        if isinstance(state.mode, PreviewMode):
            self.render_preview(state, state.mode)
        else:
            self.render_list(state)

    def render_list(self, state: SelectorState):
        mode = state.mode
        if isinstance(mode, SearchMode):
            line = f"[cyan]Search:[/cyan] {escape(mode.query)}[bright_black]|[/bright_black]"
            if state.searching:
                line += " [yellow]Searching...[/yellow]"
            self.console.print(line)
            self.console.print("[bright_black](↑↓ navigate, → preview, ↵ select, esc exit)[/bright_black]\n")
        else:
            self.console.print("[cyan]Select a conversation:[/cyan]")
            self.console.print(
                "[bright_black](↑↓ navigate, → preview, ↵ select, / search, "
                "s sort, o order, esc exit)[/bright_black]"
            )
            arrow = '↓' if state.sort_descending else '↑'
            self.console.print(f"[bright_black]Sort: {state.sort_key.value} {arrow}[/bright_black]\n")

        if not state.items:
            if not state.searching:
                suffix = f' matching "{escape(state.search_query)}"' if state.search_query else ''
                self.console.print(f"[yellow]No conversations found{suffix}[/yellow]")
            return

        self.console.print(self.conversation_table(state))

    def conversation_table(self, state: SelectorState) -> Table:
        table = Table(show_header=True, header_style="bright_black", border_style="bright_black")
        table.add_column("", width=1)
        table.add_column("ID", style="blue", width=6)
        table.add_column("Time", width=18)
        table.add_column("Messages", style="yellow", width=10)
        table.add_column("Active", style="magenta", width=8)
        table.add_column("Summary", ratio=1)

        for index, record in enumerate(state.items):
            selected = index == state.selected_index
            messages = str(record.message_count)
            if record.match_count is not None:
                messages += f" [green]({record.match_count})[/green]"

            table.add_row(
                "[cyan]❯[/cyan]" if selected else " ",
                record.short_id,
                format_date(record.last_event_time),
                messages,
                format_duration(record.active_duration or 0),
                escape(record.summary_text or ''),
                style="bold" if selected else None,
            )
        return table

    def render_preview(self, state: SelectorState, mode: PreviewMode):
        page_size = self.page_size()
        width = self.console.size.width
        separator = '─' * min(width - 2, 100)

        self.console.print("[cyan]Message Preview[/cyan]")
        self.console.print("[bright_black](↑ older, ↓ newer, ← back, ↵ select, esc exit)[/bright_black]\n")
        self.console.print(format_conversation_line(mode.record), style="bold")
        self.console.print(f"[bright_black]{separator}[/bright_black]\n")

        total = len(mode.messages)
        lines_used = 0
        if not total:
            self.console.print("[bright_black]No messages to preview[/bright_black]")
        else:
            end = min(mode.offset + page_size, total)
            for index in range(mode.offset, end):
                if lines_used >= page_size:
                    break
                message = mode.messages[index]
                if index > mode.offset:
                    self.console.print()
                    lines_used += 1

                label, color = ROLE_STYLES.get(message.type, (message.type, 'bright_black'))
                self.console.print(
                    f"[{color}]{escape(label)}[/{color}] "
                    f"[bright_black]{format_date(message.timestamp)}[/bright_black]"
                )
                lines_used += 1

                for line in textwrap.wrap(message.content, max(width - 4, 20)) or ['']:
                    if lines_used >= page_size:
                        break
                    self.console.print(escape(line))
                    lines_used += 1

        for _ in range(max(0, page_size - lines_used)):
            self.console.print()

        self.console.print(f"[bright_black]{separator}[/bright_black]")

        status = []
        if mode.offset > 0:
            status.append('↑ older')
        status.append(f"Messages {mode.offset + 1 if total else 0}-"
                      f"{min(mode.offset + page_size, total)} of {total}")
        if mode.offset + page_size < total:
            status.append('newer ↓')
        self.console.print(f"[bright_black]{' │ '.join(status)}[/bright_black]")
