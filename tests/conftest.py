"""
Pytest configuration and shared fixtures
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from runlog.core.models import ConversationRecord
from runlog.core.store import ConversationStore, project_dir_name

PROJECT_CWD = "/Users/alice/code/demo"


def _user_entry(text, timestamp, session_id="session-1", **extra) -> Dict[str, Any]:
    entry = {
        "type": "user",
        "sessionId": session_id,
        "timestamp": timestamp,
        "message": {"role": "user", "content": text},
    }
    entry.update(extra)
    return entry


def _assistant_entry(text, timestamp, session_id="session-1", **extra) -> Dict[str, Any]:
    entry = {
        "type": "assistant",
        "sessionId": session_id,
        "timestamp": timestamp,
        "message": {"role": "assistant", "content": [{"type": "text", "text": text}]},
    }
    entry.update(extra)
    return entry


def to_jsonl(entries: List[Any]) -> str:
    return "\n".join(e if isinstance(e, str) else json.dumps(e) for e in entries) + "\n"


@pytest.fixture
def user_entry():
    """Factory for user log entries"""
    return _user_entry


@pytest.fixture
def assistant_entry():
    """Factory for assistant log entries"""
    return _assistant_entry


@pytest.fixture
def temp_dir():
    """Create a temporary directory"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_cwd():
    """Working directory the test project lives in"""
    return PROJECT_CWD


@pytest.fixture
def claude_dir(temp_dir):
    """Empty Claude projects directory"""
    path = temp_dir / "projects"
    path.mkdir()
    return path


@pytest.fixture
def project_dir(claude_dir):
    """Log directory of the project at PROJECT_CWD"""
    path = claude_dir / project_dir_name(PROJECT_CWD)
    path.mkdir()
    return path


@pytest.fixture
def write_log(project_dir):
    """Write a JSONL log file into the project directory"""
    def _write(name: str, entries: List[Any]) -> Path:
        path = project_dir / f"{name}.jsonl"
        path.write_text(to_jsonl(entries), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def store(claude_dir):
    """Store rooted at the temporary Claude directory"""
    return ConversationStore(claude_dir)


@pytest.fixture
def make_record(temp_dir):
    """Build a ConversationRecord without touching the file system"""
    def _make(session_id="aaaa-1111", message_count=3, last=None, active=0,
              summary="Test conversation", match_count=None) -> ConversationRecord:
        last = last or datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        return ConversationRecord(
            location=temp_dir / f"{session_id}.jsonl",
            project_label="code/demo",
            session_id=session_id,
            message_count=message_count,
            first_event_time=last,
            last_event_time=last,
            active_duration=active,
            summary_text=summary,
            match_count=match_count,
        )
    return _make
