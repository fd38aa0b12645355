"""Exporters for Claude Code conversations"""

from .html import HTMLExporter, default_filename, parse_jsonl_messages

__all__ = ['HTMLExporter', 'default_filename', 'parse_jsonl_messages']
