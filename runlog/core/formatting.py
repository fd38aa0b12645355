"""
Text formatting helpers for dates, durations and conversation lines.

The line formatters return Rich console markup.
"""

from datetime import datetime, timezone
from typing import Optional

from rich.markup import escape

from runlog.core.constants import PROJECT_NAME_WIDTH
from runlog.core.models import ConversationRecord


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_date(date: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Format a datetime relative to now.

    Examples:
        >>> format_date(None)
        'Unknown'

    Recent times read "5 minutes ago"; anything a week or older reads
    like "Mar 4, 2024".
    """
    if date is None:
        return 'Unknown'

    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - date).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return _plural(seconds, 'second')
    elif minutes < 60:
        return _plural(minutes, 'minute')
    elif hours < 24:
        return _plural(hours, 'hour')
    elif days < 7:
        return _plural(days, 'day')

    local = date.astimezone()
    return f"{local:%b} {local.day}, {local.year}"


def format_project_name(name: str, max_length: int = PROJECT_NAME_WIDTH) -> str:
    """Truncate long project names"""
    if len(name) > max_length:
        return name[:max_length - 3] + '...'
    return name


def format_duration(milliseconds: int) -> str:
    """
    Compact duration used in tables.

    Examples:
        >>> format_duration(90 * 60 * 1000)
        '1h 30m'
        >>> format_duration(30 * 1000)
        '< 1m'
    """
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    elif hours > 0:
        return f"{hours}h {minutes % 60}m"
    elif minutes > 0:
        return f"{minutes}m"
    return '< 1m'


def format_active_time(milliseconds: Optional[int]) -> str:
    """Active time as shown in HTML exports"""
    if not milliseconds:
        return '0 minutes'

    minutes = milliseconds // (1000 * 60)
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def format_size(num_bytes: int) -> str:
    """Human readable size in MB or KB"""
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
    return f"{num_bytes / 1024:.1f} KB"


def format_conversation_line(record: ConversationRecord, now: Optional[datetime] = None) -> str:
    """
    One-line description of a conversation, with the summary on a
    second indented line when present.
    """
    parts = []
    if record.short_id:
        parts.append(f"[blue]{record.short_id}[/blue]")
    parts.append(f"[bright_black]{format_date(record.last_event_time, now)}[/bright_black]")
    parts.append(f"[yellow]{record.message_count} messages[/yellow]")

    if record.match_count is not None:
        parts.append(f"[green]{record.match_count} matches[/green]")

    if record.active_duration:
        parts.append(f"[magenta]{format_duration(record.active_duration)} active[/magenta]")

    line = ' - '.join(parts)
    if record.summary_text:
        line += f"\n  [dim]{escape(record.summary_text)}[/dim]"
    return line
