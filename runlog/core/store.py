"""
Local store of Claude Code conversation logs.

Claude Code keeps one directory per project under ``~/.claude/projects``,
named after the project's absolute path with separators turned into dashes,
and one JSONL file per session inside it.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from runlog.core.activity import calculate_active_time
from runlog.core.constants import (
    EMPTY_SUMMARY,
    LOG_FILE_SUFFIX,
    PREVIEW_CONTENT_LIMIT,
    SUMMARY_LENGTH,
)
from runlog.core.exceptions import StoreNotFoundError
from runlog.core.models import (
    ConversationRecord,
    EntryType,
    LogEntry,
    MessagePreview,
    timestamp_millis,
)

logger = logging.getLogger(__name__)

_HOME_PREFIX = re.compile(r'^-(?:Users|home)-[^-]+-')
_WHITESPACE = re.compile(r'\s+')


def project_dir_name(cwd: Union[str, Path]) -> str:
    """
    Map a working directory to its Claude project directory name.

    Examples:
        >>> project_dir_name('/Users/x/code/runlog')
        '-Users-x-code-runlog'
    """
    segments = [segment for segment in str(cwd).split(os.sep) if segment]
    return '-' + '-'.join(segments)


def project_label(dir_name: str) -> str:
    """Readable project label from a project directory name"""
    return _HOME_PREFIX.sub('', dir_name).replace('-', '/')


def iter_entries(text: str, source: str = '<memory>') -> Iterator[LogEntry]:
    """
    Yield qualifying entries from JSONL text.

    Malformed lines and summary/meta entries are skipped.
    """
    for line_number, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed line %d in %s", line_number, source)
            continue
        if not isinstance(data, dict):
            logger.debug("Skipping non-object line %d in %s", line_number, source)
            continue

        entry = LogEntry.from_dict(data)
        if entry.is_administrative:
            continue
        yield entry


def summarize(entries: List[LogEntry]) -> str:
    """Summary from the first user entry's text"""
    first_user = next((e for e in entries if e.type == EntryType.USER), None)
    if first_user is None or not first_user.content:
        return EMPTY_SUMMARY

    text = _WHITESPACE.sub(' ', first_user.text(images=True, tools=False)).strip()
    if not text:
        return EMPTY_SUMMARY

    summary = text[:SUMMARY_LENGTH].strip()
    summary = summary[:1].upper() + summary[1:]
    if len(text) > SUMMARY_LENGTH:
        summary += '...'
    return summary


def to_preview(entry: LogEntry) -> MessagePreview:
    """Project an entry for display"""
    content = entry.text(images=True, tools=True).strip()
    if len(content) > PREVIEW_CONTENT_LIMIT:
        content = content[:PREVIEW_CONTENT_LIMIT - 3] + '...'

    return MessagePreview(
        type=entry.raw_type or entry.type.value,
        timestamp=entry.event_time or datetime.now(timezone.utc),
        content=content,
        role=entry.role or entry.raw_type or entry.type.value,
    )


class ConversationStore:
    """Read-only access to the Claude Code log directory"""

    def __init__(self, claude_dir: Union[str, Path, None] = None):
        """
        Args:
            claude_dir: Root of the Claude projects directory
                (default: ~/.claude/projects)
        """
        self.claude_dir = Path(claude_dir) if claude_dir else Path.home() / '.claude' / 'projects'

    def project_dir(self, cwd: Union[str, Path, None] = None) -> Path:
        """Directory holding the logs of the project at ``cwd``"""
        return self.claude_dir / project_dir_name(cwd or os.getcwd())

    def list_conversations(self, cwd: Union[str, Path, None] = None,
                           cancelled: Optional[Callable[[], bool]] = None
                           ) -> List[ConversationRecord]:
        """
        List conversations of the project at ``cwd``, most recent first.

        ``cancelled`` is polled between files; once it returns True the scan
        stops and the records parsed so far are returned.

        Raises:
            StoreNotFoundError: If the Claude directory does not exist
        """
        if not self.claude_dir.is_dir():
            raise StoreNotFoundError(self.claude_dir)

        project_dir = self.project_dir(cwd)
        records = []
        if project_dir.is_dir():
            for path in sorted(project_dir.glob(f'*{LOG_FILE_SUFFIX}')):
                if cancelled is not None and cancelled():
                    logger.debug("Listing of %s cancelled", project_dir)
                    break
                if not path.is_file():
                    continue
                record = self.parse_conversation(path)
                if record is not None:
                    records.append(record)
        else:
            logger.debug("No project directory at %s", project_dir)

        records.sort(key=lambda r: timestamp_millis(r.last_event_time), reverse=True)
        return records

    def parse_conversation(self, location: Union[str, Path]) -> Optional[ConversationRecord]:
        """
        Parse one log file into a record.

        Returns:
            The record, or None when the file is unreadable, empty or has no
            session id
        """
        location = Path(location)
        try:
            text = location.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error parsing %s: %s", location, e)
            return None

        entries = list(iter_entries(text, source=str(location)))
        session_id = next((e.session_id for e in entries if e.session_id), None)
        if not entries or not session_id:
            return None

        times = [t for t in (e.event_time for e in entries) if t is not None]

        return ConversationRecord(
            location=location,
            project_label=project_label(location.parent.name),
            session_id=session_id,
            message_count=len(entries),
            first_event_time=min(times) if times else None,
            last_event_time=max(times) if times else None,
            active_duration=calculate_active_time(entries),
            summary_text=summarize(entries),
        )

    def get_conversation_content(self, location: Union[str, Path]) -> str:
        """Raw JSONL text of a conversation"""
        return Path(location).read_text(encoding='utf-8')

    def get_messages(self, location: Union[str, Path], offset: int = 0,
                     count: int = 10) -> List[MessagePreview]:
        """
        Previews of a conversation's entries.

        Args:
            location: Log file path
            offset: Index of the first preview to return
            count: Maximum number of previews

        Returns:
            The requested slice; empty when out of range or unreadable
        """
        if offset < 0 or count <= 0:
            return []
        try:
            text = self.get_conversation_content(location)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error reading messages from %s: %s", location, e)
            return []

        previews = [to_preview(entry) for entry in iter_entries(text, source=str(location))]
        return previews[offset:offset + count]

    def search(self, term: str, cwd: Union[str, Path, None] = None,
               cancelled: Optional[Callable[[], bool]] = None) -> List[ConversationRecord]:
        """
        Conversations containing ``term`` (case-insensitive), best match first.

        A blank term returns the full listing without match counts. A
        ``cancelled`` callback stops the scan early, as in list_conversations.
        """
        conversations = self.list_conversations(cwd, cancelled)
        if not term.strip():
            return [record.with_matches(None) for record in conversations]

        needle = term.lower()
        results = []
        for record in conversations:
            if cancelled is not None and cancelled():
                logger.debug("Search for %r cancelled", term)
                break
            try:
                text = self.get_conversation_content(record.location)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Error searching %s: %s", record.location, e)
                continue

            match_count = sum(
                1 for entry in iter_entries(text, source=str(record.location))
                if needle in entry.text(images=False, tools=False).lower()
            )
            if match_count > 0:
                results.append(record.with_matches(match_count))

        results.sort(
            key=lambda r: (r.match_count or 0, timestamp_millis(r.last_event_time)),
            reverse=True,
        )
        return results
