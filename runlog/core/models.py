"""
Core data models for Claude Code conversation logs
"""

from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from runlog.core.constants import MILLISECOND_EPOCH_CUTOFF


class EntryType(Enum):
    """Entry types found in Claude Code JSONL logs"""
    USER = "user"
    ASSISTANT = "assistant"
    THINKING = "thinking"
    SUMMARY = "summary"
    SYSTEM = "system"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: Any) -> 'EntryType':
        """Convert a raw ``type`` field, mapping unknown values to OTHER"""
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class BlockType(Enum):
    """Types of content blocks inside a message"""
    TEXT = "text"
    IMAGE = "image"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"
    THINKING = "thinking"


def parse_timestamp(timestamp: Any) -> Optional[datetime]:
    """
    Parse a log timestamp into an aware UTC datetime.

    Strings are ISO 8601 (a trailing ``Z`` is accepted, naive values are
    taken as UTC). Numbers are Unix time in seconds, or in milliseconds when
    at or above 1e10. Falsy and unparsable values give None.
    """
    if not timestamp or isinstance(timestamp, bool):
        return None

    if isinstance(timestamp, str):
        try:
            parsed = datetime.fromisoformat(timestamp.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    if isinstance(timestamp, (int, float)):
        seconds = timestamp / 1000 if timestamp >= MILLISECOND_EPOCH_CUTOFF else timestamp
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return None

    return None


def timestamp_millis(dt: Optional[datetime]) -> int:
    """Milliseconds since the epoch, 0 for a missing datetime"""
    if dt is None:
        return 0
    return int(round(dt.timestamp() * 1000))


def _string_field(data: Dict[str, Any], key: str) -> Optional[str]:
    """String value of ``key``; numbers are converted, anything else is missing"""
    value = data.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    return value if isinstance(value, str) and value else None


@dataclass
class LogEntry:
    """One line of a conversation log"""
    type: EntryType
    raw_type: str = ""
    timestamp: Any = None
    session_id: Optional[str] = None
    is_meta: bool = False
    role: Optional[str] = None
    content: Union[str, List[Any], None] = None
    thinking: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEntry':
        """Build an entry from a decoded JSONL object"""
        message = data.get('message')
        if not isinstance(message, dict):
            message = {}

        thinking_block = data.get('thinkingBlock')
        thinking = None
        if isinstance(thinking_block, dict):
            thinking = thinking_block.get('content')

        raw_type = data.get('type')
        return cls(
            type=EntryType.from_string(raw_type),
            raw_type=raw_type if isinstance(raw_type, str) else "",
            timestamp=data.get('timestamp'),
            session_id=_string_field(data, 'sessionId'),
            is_meta=data.get('isMeta') is True,
            role=_string_field(message, 'role'),
            content=message.get('content'),
            thinking=thinking if isinstance(thinking, str) else None,
            raw=data,
        )

    @property
    def is_administrative(self) -> bool:
        """Summary and meta entries are excluded from counts and previews"""
        return self.type == EntryType.SUMMARY or self.is_meta

    @property
    def event_time(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)

    def text(self, images: bool = True, tools: bool = True) -> str:
        """
        Flatten the entry's content to plain text.

        Args:
            images: Render image blocks as ``[Image]`` instead of dropping them
            tools: Render tool blocks as ``[Tool: name]`` / ``[Tool result]``

        Returns:
            Joined text, empty when the entry carries none
        """
        if self.type in (EntryType.USER, EntryType.ASSISTANT):
            return flatten_content(self.content, images=images, tools=tools)
        if self.type == EntryType.THINKING:
            if isinstance(self.content, str) and self.content:
                return self.content
            return self.thinking or ''
        return ''


def flatten_content(content: Union[str, List[Any], None], images: bool = True,
                    tools: bool = True, separator: str = ' ',
                    image_marker: str = '[Image]') -> str:
    """Join the text parts of a message content payload"""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ''

    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
            continue
        if not isinstance(item, dict):
            continue
        block_type = item.get('type')
        if block_type == BlockType.TEXT.value and item.get('text') is not None:
            parts.append(str(item['text']))
        elif block_type == BlockType.IMAGE.value and images:
            parts.append(image_marker)
        elif block_type == BlockType.TOOL_USE.value and tools:
            name = item.get('name')
            parts.append(f"[Tool: {name}]" if name else '[Tool]')
        elif block_type == BlockType.TOOL_RESULT.value and tools:
            parts.append('[Tool result]')

    return separator.join(part for part in parts if part)


@dataclass
class ConversationRecord:
    """Metadata for one conversation log file"""
    location: Path
    project_label: str
    session_id: str
    message_count: int = 0
    first_event_time: Optional[datetime] = None
    last_event_time: Optional[datetime] = None
    active_duration: Optional[int] = None  # milliseconds
    summary_text: Optional[str] = None
    match_count: Optional[int] = None  # Only set on search results

    @property
    def short_id(self) -> str:
        """First six characters of the session id without dashes"""
        return self.session_id.replace('-', '')[:6] if self.session_id else ''

    def with_matches(self, match_count: Optional[int]) -> 'ConversationRecord':
        """Copy of this record with a different match count"""
        return replace(self, match_count=match_count)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'location': str(self.location),
            'project_label': self.project_label,
            'session_id': self.session_id,
            'message_count': self.message_count,
            'first_event_time': self.first_event_time.isoformat() if self.first_event_time else None,
            'last_event_time': self.last_event_time.isoformat() if self.last_event_time else None,
            'active_duration': self.active_duration,
            'summary_text': self.summary_text,
            'match_count': self.match_count,
        }


@dataclass
class MessagePreview:
    """Display projection of a log entry"""
    type: str
    timestamp: datetime
    content: str
    role: Optional[str] = None
