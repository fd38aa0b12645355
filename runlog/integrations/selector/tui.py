"""
Interactive conversation selector.

Keys are read with prompt_toolkit's raw terminal input and fed through an
asyncio queue into the state machine in ``state.py``. Searches and preview
loads run in worker threads so the screen stays responsive while log files
are read.
"""

import asyncio
import logging
import os
import threading
from contextlib import contextmanager
from typing import AsyncIterator, Iterator, List, Optional, Set

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console

from runlog.core.constants import PREVIEW_FETCH_LIMIT, SEARCH_DEBOUNCE
from runlog.core.exceptions import RunlogError
from runlog.core.models import ConversationRecord
from runlog.core.store import ConversationStore
from runlog.integrations.selector.state import (
    Cancel,
    KeyEvent,
    LoadPreview,
    Resolve,
    ScheduleSearch,
    SelectorState,
    transition,
)
from runlog.integrations.selector.view import SelectorView

logger = logging.getLogger(__name__)

# A lone escape byte is only reported once no further bytes follow
ESCAPE_FLUSH_DELAY = 0.05

NAMED_KEYS = {
    Keys.Up: KeyEvent.UP,
    Keys.Down: KeyEvent.DOWN,
    Keys.Left: KeyEvent.LEFT,
    Keys.Right: KeyEvent.RIGHT,
    Keys.ControlM: KeyEvent.RETURN,
    Keys.ControlJ: KeyEvent.RETURN,
    Keys.Escape: KeyEvent.ESCAPE,
    Keys.ControlC: KeyEvent.INTERRUPT,
    Keys.ControlH: KeyEvent.BACKSPACE,
}


def to_key_events(key_press: KeyPress) -> List[KeyEvent]:
    """Normalize a prompt_toolkit key press; unknown keys give nothing"""
    key = key_press.key
    if key == Keys.BracketedPaste:
        return [KeyEvent.character(c) for c in key_press.data if c.isprintable()]
    if isinstance(key, Keys):
        name = NAMED_KEYS.get(key)
        return [KeyEvent.named(name)] if name else []
    if len(key) == 1 and key.isprintable():
        return [KeyEvent.character(key)]
    return []


async def _drain(queue: 'asyncio.Queue[KeyEvent]') -> AsyncIterator[KeyEvent]:
    while True:
        yield await queue.get()


@contextmanager
def terminal_keys(terminal: Optional[Input] = None) -> Iterator[AsyncIterator[KeyEvent]]:
    """
    Put the terminal in raw mode and stream its keys.

    Must be entered from a running event loop. Raw mode and the reader
    registration are released on exit, whatever the outcome.
    """
    terminal = terminal or create_input()
    loop = asyncio.get_running_loop()
    queue: 'asyncio.Queue[KeyEvent]' = asyncio.Queue()
    flush_timer: Optional[asyncio.TimerHandle] = None

    def feed(key_presses):
        for key_press in key_presses:
            for event in to_key_events(key_press):
                queue.put_nowait(event)

    def flush():
        feed(terminal.flush_keys())

    def on_input_ready():
        nonlocal flush_timer
        feed(terminal.read_keys())
        if terminal.closed:
            queue.put_nowait(KeyEvent.named(KeyEvent.INTERRUPT))
            return
        if flush_timer is not None:
            flush_timer.cancel()
        flush_timer = loop.call_later(ESCAPE_FLUSH_DELAY, flush)

    with terminal.raw_mode(), terminal.attach(on_input_ready):
        try:
            yield _drain(queue)
        finally:
            if flush_timer is not None:
                flush_timer.cancel()


class InteractiveSelector:
    """
    Full-screen picker over a project's conversations.

    Usage:
        selector = InteractiveSelector(conversations, store)
        record = selector.select()  # None when cancelled
    """

    def __init__(self, conversations: List[ConversationRecord], store: ConversationStore,
                 console: Optional[Console] = None, cwd: Optional[str] = None,
                 debounce: float = SEARCH_DEBOUNCE):
        """
        Args:
            conversations: Initial listing
            store: Store used for searches and previews
            console: Rich console to draw on
            cwd: Project directory searched
            debounce: Seconds of typing pause before a search runs
        """
        self.store = store
        self.cwd = cwd or os.getcwd()
        self.debounce = debounce
        self.state = SelectorState.initial(conversations)
        self.view = SelectorView(console, self.cwd)

        self._search_timer: Optional[asyncio.TimerHandle] = None
        self._search_tasks: Set[asyncio.Task] = set()
        self._pending_searches = 0
        self._closed = False
        self._stop_scans = threading.Event()

    def select(self) -> Optional[ConversationRecord]:
        """Run the selector on the terminal; None when cancelled"""
        try:
            return asyncio.run(self.select_async())
        except KeyboardInterrupt:
            return None

    async def select_async(self, keys: Optional[AsyncIterator[KeyEvent]] = None
                           ) -> Optional[ConversationRecord]:
        """
        Run the selector until a conversation is chosen or the user cancels.

        Args:
            keys: Key source; the terminal is used when omitted
        """
        if keys is not None:
            return await self._run(keys)
        with terminal_keys() as terminal:
            return await self._run(terminal)

    def render(self):
        if not self._closed:
            self.view.render(self.state)

    async def _run(self, keys: AsyncIterator[KeyEvent]) -> Optional[ConversationRecord]:
        self.render()
        try:
            async for key in keys:
                action = transition(self.state, key, self.view.page_size())
                if isinstance(action, Resolve):
                    return action.record
                if isinstance(action, Cancel):
                    return None
                if isinstance(action, LoadPreview):
                    await self._load_preview(action)
                elif isinstance(action, ScheduleSearch):
                    self._schedule_search(action.query)
                self.render()
            return None
        finally:
            self._shutdown()

    async def _load_preview(self, action: LoadPreview):
        try:
            messages = await asyncio.to_thread(
                self.store.get_messages, action.record.location, 0, PREVIEW_FETCH_LIMIT
            )
        except (RunlogError, OSError, ValueError) as e:
            logger.warning("Loading preview of %s failed: %s", action.record.location, e)
            return
        self.state.enter_preview(action.record, messages, action.return_to, self.view.page_size())

    def _schedule_search(self, query: str):
        if self._search_timer is not None:
            self._search_timer.cancel()
        loop = asyncio.get_running_loop()
        self._search_timer = loop.call_later(self.debounce, self._start_search, query)

    def _start_search(self, query: str):
        self._search_timer = None
        task = asyncio.ensure_future(self._search(query))
        self._search_tasks.add(task)
        task.add_done_callback(self._search_tasks.discard)

    async def _search(self, query: str):
        self._pending_searches += 1
        self.state.searching = True
        self.render()
        try:
            if query.strip():
                results = await asyncio.to_thread(
                    self.store.search, query, self.cwd, cancelled=self._stop_scans.is_set
                )
            else:
                results = list(self.state.all_items)
        except (RunlogError, OSError, ValueError) as e:
            logger.warning("Search for %r failed: %s", query, e)
        else:
            self.state.replace_items(results)
        finally:
            self._pending_searches -= 1
            self.state.searching = self._pending_searches > 0
            self.render()

    def _shutdown(self):
        self._closed = True
        # Stops scans still running in worker threads
        self._stop_scans.set()
        if self._search_timer is not None:
            self._search_timer.cancel()
            self._search_timer = None
        for task in list(self._search_tasks):
            task.cancel()
