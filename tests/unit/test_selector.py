"""
Unit tests for the interactive selector driver.

Keys come from an async generator instead of the terminal; the store is a
Mock so searches and preview loads can be counted.
"""

import asyncio
import io
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console

from runlog.core.exceptions import StoreNotFoundError
from runlog.core.models import MessagePreview
from runlog.integrations.selector.state import KeyEvent, PreviewMode, SearchMode
from runlog.integrations.selector.tui import InteractiveSelector, terminal_keys, to_key_events

DEBOUNCE = 0.02
SETTLE = 0.3
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

UP = KeyEvent.named(KeyEvent.UP)
DOWN = KeyEvent.named(KeyEvent.DOWN)
LEFT = KeyEvent.named(KeyEvent.LEFT)
RIGHT = KeyEvent.named(KeyEvent.RIGHT)
RETURN = KeyEvent.named(KeyEvent.RETURN)
ESCAPE = KeyEvent.named(KeyEvent.ESCAPE)
BACKSPACE = KeyEvent.named(KeyEvent.BACKSPACE)


def typed(text):
    return [KeyEvent.character(c) for c in text]


async def feed(*steps):
    """Yield keys; numbers pause for that many seconds"""
    for step in steps:
        if isinstance(step, (int, float)):
            await asyncio.sleep(step)
        else:
            yield step


@pytest.fixture
def records(make_record):
    return [
        make_record('first', last=NOW),
        make_record('second', last=NOW - timedelta(hours=1)),
        make_record('third', last=NOW - timedelta(hours=2)),
    ]


@pytest.fixture
def store():
    store = Mock()
    store.search.return_value = []
    store.get_messages.return_value = [
        MessagePreview(type='user', timestamp=NOW, content=f'message {i}') for i in range(3)
    ]
    return store


@pytest.fixture
def selector(records, store):
    console = Console(file=io.StringIO(), width=120, height=30)
    return InteractiveSelector(records, store, console=console, cwd='/Users/alice/code/demo',
                               debounce=DEBOUNCE)


class TestSelection:
    """Test how a selection resolves"""

    @pytest.mark.asyncio
    async def test_return_selects_highlighted(self, selector, records):
        result = await selector.select_async(feed(DOWN, RETURN))
        assert result is records[1]

    @pytest.mark.asyncio
    async def test_escape_cancels(self, selector):
        assert await selector.select_async(feed(DOWN, ESCAPE)) is None

    @pytest.mark.asyncio
    async def test_exhausted_keys_cancel(self, selector):
        assert await selector.select_async(feed(DOWN)) is None

    @pytest.mark.asyncio
    async def test_right_then_escape_cancels(self, selector, store, records):
        result = await selector.select_async(feed(RIGHT, ESCAPE))

        assert result is None
        store.get_messages.assert_called_once_with(records[0].location, 0, 10000)

    @pytest.mark.asyncio
    async def test_failed_preview_stays_in_list(self, selector, store, records):
        store.get_messages.side_effect = OSError('gone')

        result = await selector.select_async(feed(RIGHT, DOWN, RETURN))

        assert result is records[1]
        assert not isinstance(selector.state.mode, PreviewMode)

    @pytest.mark.asyncio
    async def test_failed_preview_then_escape(self, selector, store):
        store.get_messages.side_effect = OSError('gone')
        assert await selector.select_async(feed(RIGHT, ESCAPE)) is None

    @pytest.mark.asyncio
    async def test_return_from_preview_selects(self, selector, records):
        result = await selector.select_async(feed(DOWN, RIGHT, UP, RETURN))
        assert result is records[1]

    def test_select_returns_none_on_keyboard_interrupt(self, selector):
        def interrupted(coro):
            coro.close()
            raise KeyboardInterrupt

        with patch('runlog.integrations.selector.tui.asyncio.run', side_effect=interrupted):
            assert selector.select() is None


class TestRendering:
    """Test render scheduling"""

    @pytest.mark.asyncio
    async def test_one_render_per_key(self, selector):
        with patch.object(selector.view, 'render', wraps=selector.view.render) as render:
            await selector.select_async(feed(DOWN, DOWN, UP, ESCAPE))
        # initial frame plus one per handled key; escape ends without drawing
        assert render.call_count == 4

    @pytest.mark.asyncio
    async def test_preview_is_drawn(self, selector):
        await selector.select_async(feed(RIGHT, ESCAPE))
        output = selector.view.console.file.getvalue()

        assert 'Message Preview' in output
        assert 'message 2' in output
        assert 'Messages 1-3 of 3' in output


class TestDebouncedSearch:
    """Test search scheduling"""

    @pytest.mark.asyncio
    async def test_single_search_after_pause(self, selector, store):
        await selector.select_async(feed(*typed('/proj'), SETTLE, ESCAPE))
        store.search.assert_called_once_with('proj', '/Users/alice/code/demo',
                                             cancelled=selector._stop_scans.is_set)

    @pytest.mark.asyncio
    async def test_backspace_before_timer(self, selector, store):
        await selector.select_async(feed(*typed('/proj'), BACKSPACE, SETTLE, ESCAPE))
        store.search.assert_called_once_with('pro', '/Users/alice/code/demo',
                                             cancelled=selector._stop_scans.is_set)

    @pytest.mark.asyncio
    async def test_results_replace_items(self, selector, store, records):
        store.search.return_value = [records[2].with_matches(4)]

        await selector.select_async(feed(*typed('/x'), SETTLE, ESCAPE))

        assert [r.session_id for r in selector.state.items] == ['third']
        assert selector.state.items[0].match_count == 4
        assert selector.state.selected_index == 0
        assert not selector.state.searching

    @pytest.mark.asyncio
    async def test_searching_flag_while_in_flight(self, selector, store):
        seen = []

        def slow_search(term, cwd, cancelled=None):
            seen.append(selector.state.searching)
            return []

        store.search.side_effect = slow_search
        await selector.select_async(feed(*typed('/x'), SETTLE, ESCAPE))

        assert seen == [True]
        assert not selector.state.searching

    @pytest.mark.asyncio
    async def test_blank_query_restores_listing(self, selector, store, records):
        store.search.return_value = [records[2]]

        await selector.select_async(feed(*typed('/x'), SETTLE, BACKSPACE, SETTLE, ESCAPE))

        assert store.search.call_count == 1
        assert [r.session_id for r in selector.state.items] == ['first', 'second', 'third']

    @pytest.mark.asyncio
    async def test_failed_search_keeps_items(self, selector, store):
        store.search.side_effect = StoreNotFoundError('/missing')

        await selector.select_async(feed(*typed('/x'), SETTLE, ESCAPE))

        assert len(selector.state.items) == 3
        assert not selector.state.searching

    @pytest.mark.asyncio
    async def test_running_scan_is_stopped_on_exit(self, selector, store):
        stopped = []

        def blocking_search(term, cwd, cancelled=None):
            deadline = time.monotonic() + 2
            while not cancelled() and time.monotonic() < deadline:
                time.sleep(0.01)
            stopped.append(cancelled())
            return []

        store.search.side_effect = blocking_search
        await selector.select_async(feed(*typed('/x'), 0.1, ESCAPE))
        await asyncio.sleep(SETTLE)

        assert stopped == [True]

    @pytest.mark.asyncio
    async def test_pending_timer_cancelled_on_exit(self, selector, store):
        await selector.select_async(feed(*typed('/x'), ESCAPE))
        await asyncio.sleep(SETTLE)
        store.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_preview_from_search_returns_to_search(self, selector, store, records):
        store.search.return_value = [records[1]]

        await selector.select_async(feed(*typed('/sec'), SETTLE, RIGHT, LEFT, ESCAPE))

        assert selector.state.mode == SearchMode('sec')
        assert [r.session_id for r in selector.state.items] == ['second']
        store.get_messages.assert_called_once_with(records[1].location, 0, 10000)

    @pytest.mark.asyncio
    async def test_search_state_while_previewing(self, selector, store, records):
        store.search.return_value = [records[1]]

        await selector.select_async(feed(*typed('/sec'), SETTLE, RIGHT, ESCAPE))

        assert isinstance(selector.state.mode, PreviewMode)
        assert selector.state.mode.return_to == SearchMode('sec')


class TestKeyNormalization:
    """Test prompt_toolkit key translation"""

    @pytest.mark.parametrize("key_press,expected", [
        (KeyPress(Keys.Up), [UP]),
        (KeyPress(Keys.ControlM, '\r'), [RETURN]),
        (KeyPress(Keys.Escape), [ESCAPE]),
        (KeyPress(Keys.ControlC), [KeyEvent.named(KeyEvent.INTERRUPT)]),
        (KeyPress(Keys.ControlH), [BACKSPACE]),
        (KeyPress('a'), [KeyEvent.character('a')]),
        (KeyPress(Keys.F1), []),
    ])
    def test_to_key_events(self, key_press, expected):
        assert to_key_events(key_press) == expected

    def test_bracketed_paste(self):
        events = to_key_events(KeyPress(Keys.BracketedPaste, 'ab\n'))
        assert events == typed('ab')


class TestTerminalKeys:
    """Test streaming keys from terminal input"""

    @pytest.mark.asyncio
    async def test_streams_parsed_keys(self):
        with create_pipe_input() as pipe:
            with terminal_keys(pipe) as keys:
                pipe.send_text('a\x1b[A\r')
                events = [await asyncio.wait_for(keys.__anext__(), 1) for _ in range(3)]

        assert events == [KeyEvent.character('a'), UP, RETURN]

    @pytest.mark.asyncio
    async def test_lone_escape_is_flushed(self):
        with create_pipe_input() as pipe:
            with terminal_keys(pipe) as keys:
                pipe.send_text('\x1b')
                event = await asyncio.wait_for(keys.__anext__(), 1)

        assert event == ESCAPE
