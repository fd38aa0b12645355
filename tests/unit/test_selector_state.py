"""
Unit tests for the selector state machine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from runlog.core.models import MessagePreview
from runlog.integrations.selector.state import (
    Cancel,
    KeyEvent,
    ListMode,
    LoadPreview,
    PreviewMode,
    Redraw,
    Resolve,
    ScheduleSearch,
    SearchMode,
    SelectorState,
    SortKey,
    transition,
)

PAGE = 5
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

UP = KeyEvent.named(KeyEvent.UP)
DOWN = KeyEvent.named(KeyEvent.DOWN)
LEFT = KeyEvent.named(KeyEvent.LEFT)
RIGHT = KeyEvent.named(KeyEvent.RIGHT)
RETURN = KeyEvent.named(KeyEvent.RETURN)
ESCAPE = KeyEvent.named(KeyEvent.ESCAPE)
INTERRUPT = KeyEvent.named(KeyEvent.INTERRUPT)
BACKSPACE = KeyEvent.named(KeyEvent.BACKSPACE)


def char(c):
    return KeyEvent.character(c)


def previews(n):
    return [MessagePreview(type='user', timestamp=NOW, content=f'm{i}') for i in range(n)]


@pytest.fixture
def records(make_record):
    return [
        make_record('old', message_count=10, last=NOW - timedelta(days=2), active=5000),
        make_record('new', message_count=2, last=NOW, active=1000),
        make_record('mid', message_count=5, last=NOW - timedelta(days=1), active=9000),
    ]


@pytest.fixture
def state(records):
    return SelectorState.initial(records)


def ids(state):
    return [r.session_id for r in state.items]


class TestInitialState:
    """Test the starting state"""

    def test_sorted_by_last_event_desc(self, state):
        assert ids(state) == ['new', 'mid', 'old']
        assert isinstance(state.mode, ListMode)
        assert state.selected_index == 0
        assert state.sort_key == SortKey.LAST_EVENT_TIME
        assert state.sort_descending

    def test_empty(self):
        state = SelectorState.initial([])
        assert state.selected is None
        assert transition(state, RETURN, PAGE) == Redraw()
        assert transition(state, RIGHT, PAGE) == Redraw()


class TestListMode:
    """Test keys while browsing"""

    def test_navigation_is_clamped(self, state):
        transition(state, UP, PAGE)
        assert state.selected_index == 0

        for _ in range(5):
            transition(state, DOWN, PAGE)
        assert state.selected_index == 2

    def test_return_resolves_selected(self, state):
        transition(state, DOWN, PAGE)
        action = transition(state, RETURN, PAGE)
        assert action == Resolve(state.items[1])

    def test_right_requests_preview(self, state):
        action = transition(state, RIGHT, PAGE)
        assert action == LoadPreview(state.items[0], return_to=ListMode())

    @pytest.mark.parametrize("key", [ESCAPE, INTERRUPT])
    def test_cancel(self, state, key):
        assert transition(state, key, PAGE) == Cancel()

    def test_slash_enters_search(self, state):
        assert transition(state, char('/'), PAGE) == Redraw()
        assert state.mode == SearchMode("")

    def test_sort_cycles_columns(self, state):
        transition(state, DOWN, PAGE)

        transition(state, char('s'), PAGE)
        assert state.sort_key == SortKey.MESSAGE_COUNT
        assert ids(state) == ['old', 'mid', 'new']
        assert state.selected_index == 0

        transition(state, char('s'), PAGE)
        assert state.sort_key == SortKey.ACTIVE_DURATION
        assert ids(state) == ['mid', 'old', 'new']

        transition(state, char('s'), PAGE)
        assert state.sort_key == SortKey.LAST_EVENT_TIME
        assert ids(state) == ['new', 'mid', 'old']

    def test_order_toggle(self, state):
        transition(state, DOWN, PAGE)
        transition(state, char('o'), PAGE)

        assert not state.sort_descending
        assert ids(state) == ['old', 'mid', 'new']
        assert state.selected_index == 0

    def test_other_keys_only_redraw(self, state):
        assert transition(state, char('x'), PAGE) == Redraw()
        assert transition(state, LEFT, PAGE) == Redraw()
        assert isinstance(state.mode, ListMode)


class TestSearchMode:
    """Test keys while typing a query"""

    @pytest.fixture
    def searching(self, state):
        transition(state, char('/'), PAGE)
        return state

    def test_typing_schedules_search(self, searching):
        assert transition(searching, char('p'), PAGE) == ScheduleSearch('p')
        assert transition(searching, char('r'), PAGE) == ScheduleSearch('pr')
        assert searching.search_query == 'pr'

    def test_letters_do_not_sort(self, searching):
        transition(searching, char('s'), PAGE)
        transition(searching, char('o'), PAGE)
        assert searching.sort_key == SortKey.LAST_EVENT_TIME
        assert searching.mode == SearchMode('so')

    def test_backspace(self, searching):
        for c in 'proj':
            transition(searching, char(c), PAGE)
        assert transition(searching, BACKSPACE, PAGE) == ScheduleSearch('pro')

    def test_backspace_on_empty_query(self, searching):
        assert transition(searching, BACKSPACE, PAGE) == ScheduleSearch('')

    def test_navigation_while_typing(self, searching):
        transition(searching, char('a'), PAGE)
        transition(searching, DOWN, PAGE)
        assert searching.selected_index == 1
        assert searching.mode == SearchMode('a')

    def test_right_keeps_search_context(self, searching):
        transition(searching, char('q'), PAGE)
        action = transition(searching, RIGHT, PAGE)
        assert action == LoadPreview(searching.items[0], return_to=SearchMode('q'))

    def test_return_resolves(self, searching):
        assert transition(searching, RETURN, PAGE) == Resolve(searching.items[0])

    def test_escape_cancels(self, searching):
        transition(searching, char('q'), PAGE)
        assert transition(searching, ESCAPE, PAGE) == Cancel()

    def test_replace_items_keeps_sort(self, searching, records):
        searching.sort_descending = False
        searching.selected_index = 1
        searching.replace_items([records[1], records[0]])
        assert ids(searching) == ['old', 'new']
        assert searching.selected_index == 0


class TestPreviewMode:
    """Test keys while previewing"""

    def enter(self, state, n=12, return_to=None):
        state.enter_preview(state.items[0], previews(n), return_to or ListMode(), PAGE)
        return state.mode

    def test_starts_at_newest_page(self, state):
        mode = self.enter(state, n=12)
        assert isinstance(mode, PreviewMode)
        assert mode.offset == 7
        assert len(mode.messages) == 12

    def test_short_conversation_starts_at_top(self, state):
        assert self.enter(state, n=3).offset == 0

    def test_scrolling_is_bounded(self, state):
        self.enter(state, n=7)
        assert state.mode.offset == 2

        transition(state, DOWN, PAGE)
        assert state.mode.offset == 2

        for _ in range(5):
            transition(state, UP, PAGE)
        assert state.mode.offset == 0

        transition(state, DOWN, PAGE)
        assert state.mode.offset == 1

    def test_left_returns_to_list(self, state):
        self.enter(state)
        assert transition(state, LEFT, PAGE) == Redraw()
        assert state.mode == ListMode()

    def test_left_returns_to_search(self, state):
        self.enter(state, return_to=SearchMode('proj'))
        assert state.mode.came_from_search
        assert state.search_query == 'proj'

        transition(state, LEFT, PAGE)
        assert state.mode == SearchMode('proj')

    def test_return_resolves_previewed_record(self, state):
        record = state.items[0]
        self.enter(state)
        assert transition(state, RETURN, PAGE) == Resolve(record)

    @pytest.mark.parametrize("key", [ESCAPE, INTERRUPT])
    def test_cancel_from_preview(self, state, key):
        self.enter(state)
        assert transition(state, key, PAGE) == Cancel()

    def test_characters_are_ignored(self, state):
        mode = self.enter(state)
        assert transition(state, char('s'), PAGE) == Redraw()
        assert state.mode == mode
        assert state.sort_key == SortKey.LAST_EVENT_TIME
