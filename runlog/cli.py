#!/usr/bin/env python3
"""
Command-line interface for runlog
"""

import argparse
import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from runlog.core.config import get_config
from runlog.core.constants import MAX_UPLOAD_BYTES
from runlog.core.exceptions import RemoteError, StoreNotFoundError
from runlog.core.formatting import format_date, format_project_name, format_size
from runlog.core.models import ConversationRecord
from runlog.core.store import ConversationStore
from runlog.integrations.exporters import HTMLExporter, default_filename
from runlog.integrations.remote import RemoteClient
from runlog.integrations.selector import InteractiveSelector

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

USAGE = """\
Usage:
  runlog                    Select and upload a conversation
  runlog -o FILE            Select and export a conversation to HTML
  runlog del <uuid>         Delete an uploaded conversation
  runlog --help             Show this help
"""


class RunlogArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def print_error(message: str):
    err_console.print(f"[red]Error: {escape(message)}[/red]")


def select_conversation(store: ConversationStore) -> Optional[ConversationRecord]:
    """
    List the current project's conversations and let the user pick one.

    Raises:
        StoreNotFoundError: If the Claude directory does not exist
    """
    cwd = os.getcwd()
    conversations = store.list_conversations(cwd)
    if not conversations:
        console.print("[yellow]No conversations found for this project.[/yellow]")
        return None

    selector = InteractiveSelector(conversations, store, console=console, cwd=cwd)
    record = selector.select()
    if record is None:
        console.print("[bright_black]Cancelled.[/bright_black]")
    else:
        logger.debug("Selected conversation: %s", record.to_dict())
    return record


def read_content(store: ConversationStore, record: ConversationRecord) -> Optional[str]:
    """Raw log text of the selected conversation, None after reporting a read error"""
    try:
        return store.get_conversation_content(record.location)
    except (OSError, UnicodeDecodeError) as e:
        print_error(f"Failed to read conversation {record.location}: {e}")
        return None


def cmd_upload(args):
    """Select a conversation and upload it to the sharing service"""
    config = get_config()
    store = ConversationStore(config.claude_dir)

    try:
        record = select_conversation(store)
    except StoreNotFoundError as e:
        print_error(str(e))
        return 1
    if record is None:
        return 0

    content = read_content(store, record)
    if content is None:
        return 1

    size = len(content.encode('utf-8'))
    if size > MAX_UPLOAD_BYTES:
        print_error(f"Conversation is too large to upload ({format_size(size)}, "
                    f"limit {format_size(MAX_UPLOAD_BYTES)})")
        return 1

    console.print("\n[bold]Conversation details:[/bold]")
    console.print(f"  Project: {escape(format_project_name(record.project_label))}")
    console.print(f"  Summary: {escape(record.summary_text or '')}")
    console.print(f"  Messages: {record.message_count}")
    console.print(f"  Size: {format_size(size)}")
    console.print(f"  Last activity: {format_date(record.last_event_time)}\n")

    confirm = input("Upload this conversation? (y/N): ").strip().lower()
    if confirm not in ('y', 'yes'):
        console.print("[bright_black]Upload cancelled.[/bright_black]")
        return 0

    client = RemoteClient(config.api_endpoint, config.client_id)
    try:
        with console.status("Uploading conversation..."):
            response = client.upload(content)
    except RemoteError as e:
        print_error(str(e))
        return 1

    logger.debug("Uploaded %s as %s", record.location, response.id)
    console.print("[green]✓ Conversation uploaded successfully![/green]")
    console.print(f"\nShare URL: [cyan]{client.share_url(response.id)}[/cyan]")
    return 0


def cmd_export(args):
    """Select a conversation and export it to a standalone HTML file"""
    config = get_config()
    store = ConversationStore(config.claude_dir)

    try:
        record = select_conversation(store)
    except StoreNotFoundError as e:
        print_error(str(e))
        return 1
    if record is None:
        return 0

    filename = args.output or default_filename(record)
    if not filename.endswith('.html'):
        filename += '.html'

    content = read_content(store, record)
    if content is None:
        return 1

    try:
        path = HTMLExporter().export_to_file(record, content, os.path.join(os.getcwd(), filename))
    except OSError as e:
        print_error(f"Failed to write {filename}: {e}")
        return 1

    console.print(f"[green]✓ Exported conversation to {escape(str(path))}[/green]")
    return 0


def cmd_delete(args):
    """Delete a conversation from the sharing service"""
    if not args.target:
        print_error("Missing conversation UUID")
        err_console.print("Usage: runlog del <uuid>")
        return 1

    config = get_config()
    client = RemoteClient(config.api_endpoint, config.client_id)
    try:
        client.delete(args.target)
    except RemoteError as e:
        print_error(str(e))
        return 1

    console.print(f"[green]✓ Conversation {escape(args.target)} deleted[/green]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = RunlogArgumentParser(
        prog='runlog',
        description='runlog - Browse, share and export Claude Code conversations',
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('command', nargs='?', help='Command: del/delete (default: upload)')
    parser.add_argument('target', nargs='?', help='Conversation UUID for del/delete')
    parser.add_argument('--output', '-o', metavar='FILE',
                        help='Export the selected conversation to an HTML file instead of uploading')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    commands = {
        'del': cmd_delete,
        'delete': cmd_delete,
    }

    if args.command is None:
        return cmd_export(args) if args.output else cmd_upload(args)

    handler = commands.get(args.command)
    if handler is None:
        err_console.print(f'Unknown command "{escape(args.command)}"')
        err_console.print(USAGE, highlight=False)
        return 1

    return handler(args)


if __name__ == '__main__':
    sys.exit(main())
