"""
HTML Exporter - standalone page for a single Claude Code conversation
"""

import html
import json
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from runlog.core.formatting import format_active_time
from runlog.core.models import (
    ConversationRecord,
    EntryType,
    LogEntry,
    flatten_content,
    parse_timestamp,
)

INTERNAL_COMMAND_MARKERS = (
    '<command-name>',
    '<local-command-stdout>',
    '<command-message>',
    '<command-args>',
)

_CODE_BLOCK = re.compile(r'```(\w+)?\n(.*?)```', re.DOTALL)
_INLINE_CODE = re.compile(r'`([^`]+)`')
_BOLD = re.compile(r'\*\*(.*?)\*\*')
_ITALIC = re.compile(r'\*(.*?)\*')


def parse_jsonl_messages(content: str) -> List[LogEntry]:
    """
    Entries worth rendering in an export.

    Drops summary and meta entries, entries without content, internal
    slash-command chatter and entries carrying tool calls or results.
    """
    entries = []
    for line in content.splitlines():
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue

        entry = LogEntry.from_dict(data)
        if entry.is_administrative or not entry.content:
            continue
        if _is_internal_command(entry) or _is_tool_message(entry):
            continue
        entries.append(entry)
    return entries


def _is_internal_command(entry: LogEntry) -> bool:
    if isinstance(entry.content, str):
        return any(marker in entry.content for marker in INTERNAL_COMMAND_MARKERS)
    return False


def _is_tool_message(entry: LogEntry) -> bool:
    if isinstance(entry.content, list):
        return any(
            isinstance(item, dict) and item.get('type') in ('tool_use', 'tool_result')
            for item in entry.content
        )
    return False


def process_message_content(content: str) -> str:
    """Escape text and apply the small markdown subset used in exports"""
    if not content:
        return ''

    processed = html.escape(content)

    def code_block(match):
        language = match.group(1) or ''
        code = match.group(2).strip()
        return (f'</div><pre><code class="language-{language}">{code}</code></pre>'
                f'<div class="message-text">')

    processed = _CODE_BLOCK.sub(code_block, processed)
    processed = _INLINE_CODE.sub(r'<code>\1</code>', processed)
    processed = _BOLD.sub(r'<strong>\1</strong>', processed)
    processed = _ITALIC.sub(r'<em>\1</em>', processed)
    processed = processed.replace('\n', '<br>')

    processed = f'<div class="message-text">{processed}</div>'
    processed = processed.replace('<div class="message-text"></div><pre>', '<pre>')
    processed = processed.replace('</pre><div class="message-text"></div>', '</pre>')
    return processed


class HTMLExporter:
    """Export one conversation to a self-contained HTML page"""

    def render_message(self, entry: LogEntry) -> str:
        """Render a single entry, empty for types that are not shown"""
        timestamp = parse_timestamp(entry.timestamp)
        time_str = timestamp.astimezone().strftime('%I:%M %p') if timestamp else ''

        if entry.type in (EntryType.USER, EntryType.ASSISTANT):
            if not entry.content:
                return ''
            role = html.escape(entry.role or entry.type.value)
            text = flatten_content(entry.content, tools=False, separator='\n\n',
                                   image_marker='[Image Content Removed]')
        elif entry.type == EntryType.THINKING:
            role = 'thinking'
            text = entry.text()
        else:
            return ''

        return f"""
      <div class="message {role}">
        <div class="message-meta">
          <span class="role-badge {role}">{role}</span>
          <span class="timestamp">{time_str}</span>
        </div>
        <div class="message-content">
          <div class="message-text">{process_message_content(text)}</div>
        </div>
      </div>"""

    def export_conversation(self, record: ConversationRecord, entries: List[LogEntry],
                            exported_at: Optional[datetime] = None) -> str:
        """
        Build the HTML document.

        Args:
            record: Conversation metadata for the header
            entries: Entries to render (see parse_jsonl_messages)
            exported_at: Export time shown in the footer (default: now)
        """
        messages_html = '\n'.join(
            rendered for rendered in (self.render_message(e) for e in entries
                                      if not e.is_administrative)
            if rendered
        )

        if record.last_event_time:
            date_str = record.last_event_time.astimezone().strftime('%B %d, %Y at %I:%M %p')
        else:
            date_str = 'Unknown date'
        active_str = format_active_time(record.active_duration) if record.active_duration else 'Unknown'
        exported = (exported_at or datetime.now()).strftime('%Y-%m-%d')
        project = html.escape(record.project_label)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Claude Code Conversation - {project}</title>
    <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/styles/github.min.css">
    <script src="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/highlight.min.js"></script>
    <style>{STYLESHEET}</style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Claude Code Conversation</h1>
            <div class="subtitle">{project}</div>
            <div class="meta">
                <span>&#128197; {date_str}</span>
                <span>&#128172; {record.message_count} messages</span>
                <span>&#9201; {active_str}</span>
            </div>
        </div>

        <div class="messages">
            {messages_html}
        </div>

        <div class="footer">
            <div class="export-info">Exported from Claude Code &bull; {exported}</div>
        </div>
    </div>
    <script>{SCRIPT}</script>
</body>
</html>"""

    def export_to_file(self, record: ConversationRecord, content: str,
                       file_path: Union[str, Path]) -> Path:
        """Render raw JSONL content and write it to ``file_path``"""
        entries = parse_jsonl_messages(content)
        document = self.export_conversation(record, entries)
        path = Path(file_path)
        path.write_text(document, encoding='utf-8')
        return path


def default_filename(record: ConversationRecord, now: Optional[datetime] = None) -> str:
    """claude-conversation-<project>-<timestamp>.html"""
    project = re.sub(r'[^a-zA-Z0-9\-_]', '_', record.project_label)
    stamp = (now or datetime.now()).strftime('%Y-%m-%dT%H-%M-%S')
    return f"claude-conversation-{project}-{stamp}.html"


STYLESHEET = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6; color: #333; background-color: #f8f9fa;
        }
        .container {
            max-width: 900px; margin: 0 auto; background: white;
            min-height: 100vh; box-shadow: 0 0 20px rgba(0,0,0,0.1);
        }
        .header {
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white; padding: 2rem; text-align: center;
        }
        .header h1 { font-size: 2rem; margin-bottom: 0.5rem; font-weight: 700; }
        .header .subtitle { font-size: 1.1rem; opacity: 0.9; margin-bottom: 1rem; }
        .header .meta {
            display: flex; justify-content: center; gap: 2rem; flex-wrap: wrap;
            font-size: 0.9rem; opacity: 0.8;
        }
        .messages { padding: 2rem; max-width: 100%; }
        .message { margin-bottom: 1.5rem; max-width: 100%; overflow-wrap: break-word; }
        .message-content {
            padding: 1rem 1.25rem; border-radius: 12px; position: relative;
            max-width: 85%; overflow-wrap: break-word;
        }
        .message.user { text-align: right; }
        .message.user .message-content {
            background: #007bff; color: white; margin-left: auto; border-bottom-right-radius: 4px;
        }
        .message.assistant .message-content {
            background: #f1f3f5; border: 1px solid #e9ecef; border-bottom-left-radius: 4px;
        }
        .message.thinking .message-content {
            background: #fff3cd; border: 1px solid #ffeaa7; border-left: 4px solid #fdcb6e;
            margin-left: 1rem; max-width: 80%;
        }
        .message-meta {
            font-size: 0.75rem; color: #6c757d; margin-bottom: 0.5rem;
            display: flex; align-items: center; gap: 0.5rem;
        }
        .message.user .message-meta { justify-content: flex-end; }
        .role-badge {
            background: #6c757d; color: white; padding: 0.15rem 0.5rem; border-radius: 12px;
            font-size: 0.7rem; font-weight: 600; text-transform: uppercase;
        }
        .role-badge.user { background: #007bff; }
        .role-badge.assistant { background: #28a745; }
        .role-badge.thinking { background: #ffc107; color: #212529; }
        .message-text { white-space: pre-wrap; word-break: break-word; }
        .message-text pre, pre {
            background: #f8f9fa; border: 1px solid #e9ecef; border-radius: 6px; padding: 1rem;
            overflow-x: auto; margin: 0.5rem 0; font-size: 0.9rem; line-height: 1.4;
            font-family: 'SF Mono', Monaco, 'Cascadia Code', 'Roboto Mono', Consolas, 'Courier New', monospace;
        }
        .message-text code {
            background: #f8f9fa; padding: 0.15rem 0.3rem; border-radius: 3px; font-size: 0.9em;
        }
        .message.user .message-text code { background: rgba(255,255,255,0.2); }
        .timestamp { color: #868e96; font-size: 0.7rem; }
        .footer {
            padding: 2rem; text-align: center; color: #6c757d;
            border-top: 1px solid #e9ecef; background: #f8f9fa;
        }
        .export-info { font-size: 0.8rem; opacity: 0.7; }
        @media (max-width: 768px) {
            .container { margin: 0; box-shadow: none; }
            .messages { padding: 1rem; }
            .message-content { max-width: 95%; padding: 0.75rem 1rem; }
        }
        @media print {
            body { background: white; }
            .container { box-shadow: none; max-width: none; }
            .message.user .message-content {
                background: #f8f9fa !important; color: #333 !important; border: 1px solid #dee2e6;
            }
        }
"""

SCRIPT = """
        document.addEventListener('DOMContentLoaded', function() {
            hljs.highlightAll();
            document.querySelectorAll('pre code').forEach(function(block) {
                const button = document.createElement('button');
                button.textContent = 'Copy';
                button.style.position = 'absolute';
                button.style.top = '0.5rem';
                button.style.right = '0.5rem';
                button.title = 'Copy to clipboard';
                button.addEventListener('click', function() {
                    navigator.clipboard.writeText(block.textContent).then(function() {
                        button.textContent = 'Copied';
                        setTimeout(function() { button.textContent = 'Copy'; }, 2000);
                    });
                });
                block.parentElement.style.position = 'relative';
                block.parentElement.appendChild(button);
            });
        });
"""
