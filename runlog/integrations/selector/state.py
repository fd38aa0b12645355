"""
State machine for the interactive conversation selector.

The selector is always in exactly one mode:

- ``ListMode``: browsing the conversation table
- ``SearchMode``: typing a search query, results update after a pause
- ``PreviewMode``: scrolling through the selected conversation's messages

``PreviewMode`` remembers the mode it was entered from, so leaving the
preview restores a search (query and results) instead of dropping back to
the plain list.

``transition`` applies one key to a ``SelectorState`` and returns the
``Action`` the driver has to carry out. It performs no I/O.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from runlog.core.models import ConversationRecord, MessagePreview, timestamp_millis


# ==================== Keys ====================

@dataclass(frozen=True)
class KeyEvent:
    """A normalized key press: a named key or a printable character"""
    name: Optional[str] = None
    char: Optional[str] = None

    UP = 'up'
    DOWN = 'down'
    LEFT = 'left'
    RIGHT = 'right'
    RETURN = 'return'
    ESCAPE = 'escape'
    INTERRUPT = 'interrupt'
    BACKSPACE = 'backspace'

    @classmethod
    def named(cls, name: str) -> 'KeyEvent':
        return cls(name=name)

    @classmethod
    def character(cls, char: str) -> 'KeyEvent':
        return cls(char=char)

    @property
    def is_cancel(self) -> bool:
        return self.name in (self.ESCAPE, self.INTERRUPT)


# ==================== Modes ====================

@dataclass(frozen=True)
class ListMode:
    """Browsing the conversation list"""
    pass


@dataclass(frozen=True)
class SearchMode:
    """Typing a search query"""
    query: str = ""


@dataclass(frozen=True)
class PreviewMode:
    """Scrolling through a conversation's messages"""
    record: ConversationRecord
    messages: Tuple[MessagePreview, ...] = ()
    offset: int = 0
    return_to: Union[ListMode, SearchMode] = field(default_factory=ListMode)

    @property
    def came_from_search(self) -> bool:
        return isinstance(self.return_to, SearchMode)


Mode = Union[ListMode, SearchMode, PreviewMode]


# ==================== Actions ====================

@dataclass(frozen=True)
class Redraw:
    """State changed (or not); render again"""
    pass


@dataclass(frozen=True)
class Resolve:
    """Selection finished with a conversation"""
    record: ConversationRecord


@dataclass(frozen=True)
class Cancel:
    """Selection cancelled"""
    pass


@dataclass(frozen=True)
class LoadPreview:
    """Fetch previews for ``record`` and enter preview mode"""
    record: ConversationRecord
    return_to: Union[ListMode, SearchMode]


@dataclass(frozen=True)
class ScheduleSearch:
    """(Re)start the debounce timer for ``query``"""
    query: str


Action = Union[Redraw, Resolve, Cancel, LoadPreview, ScheduleSearch]


# ==================== Sorting ====================

class SortKey(Enum):
    """Sort columns, in the order ``s`` cycles through them"""
    LAST_EVENT_TIME = 'Last Message Time'
    MESSAGE_COUNT = 'Message Count'
    ACTIVE_DURATION = 'Active Time'

    def next(self) -> 'SortKey':
        members = list(SortKey)
        return members[(members.index(self) + 1) % len(members)]

    def value_of(self, record: ConversationRecord) -> int:
        if self == SortKey.LAST_EVENT_TIME:
            return timestamp_millis(record.last_event_time)
        if self == SortKey.MESSAGE_COUNT:
            return record.message_count
        return record.active_duration or 0


# ==================== Session state ====================

@dataclass
class SelectorState:
    """Session data shared by all modes"""
    items: List[ConversationRecord]
    all_items: List[ConversationRecord] = field(default_factory=list)
    mode: Mode = field(default_factory=ListMode)
    selected_index: int = 0
    sort_key: SortKey = SortKey.LAST_EVENT_TIME
    sort_descending: bool = True
    searching: bool = False

    @classmethod
    def initial(cls, conversations: List[ConversationRecord]) -> 'SelectorState':
        state = cls(items=list(conversations), all_items=list(conversations))
        state.sort_items()
        return state

    @property
    def selected(self) -> Optional[ConversationRecord]:
        if not self.items:
            return None
        return self.items[self.selected_index]

    @property
    def search_query(self) -> str:
        """Query being typed, or the one a preview will return to"""
        if isinstance(self.mode, SearchMode):
            return self.mode.query
        if isinstance(self.mode, PreviewMode) and isinstance(self.mode.return_to, SearchMode):
            return self.mode.return_to.query
        return ""

    def move(self, delta: int):
        if not self.items:
            self.selected_index = 0
            return
        self.selected_index = min(max(self.selected_index + delta, 0), len(self.items) - 1)

    def sort_items(self):
        """Sort ``items`` by the current key and order; selection goes to the top"""
        self.items.sort(key=self.sort_key.value_of, reverse=self.sort_descending)
        self.selected_index = 0

    def replace_items(self, items: List[ConversationRecord]):
        """Swap in search results, keeping the current sort"""
        self.items = list(items)
        self.sort_items()

    def enter_preview(self, record: ConversationRecord, messages: List[MessagePreview],
                      return_to: Union[ListMode, SearchMode], page_size: int):
        """Switch to preview with the newest messages at the bottom"""
        self.mode = PreviewMode(
            record=record,
            messages=tuple(messages),
            offset=max(0, len(messages) - page_size),
            return_to=return_to,
        )


# ==================== Transitions ====================

def transition(state: SelectorState, key: KeyEvent, page_size: int) -> Action:
    """
    Apply one key press.

    Args:
        state: Selector state, updated in place
        key: Normalized key press
        page_size: Messages visible in the preview viewport

    Returns:
        The action the driver has to perform next
    """
    if key.is_cancel:
        return Cancel()

    mode = state.mode
    if isinstance(mode, PreviewMode):
        return _preview_transition(state, mode, key, page_size)
    if isinstance(mode, SearchMode):
        return _search_transition(state, mode, key)
    return _list_transition(state, key)


def _navigate(state: SelectorState, key: KeyEvent) -> bool:
    if key.name == KeyEvent.UP:
        state.move(-1)
        return True
    if key.name == KeyEvent.DOWN:
        state.move(1)
        return True
    return False


def _list_transition(state: SelectorState, key: KeyEvent) -> Action:
    if _navigate(state, key):
        return Redraw()

    if key.name == KeyEvent.RIGHT and state.items:
        return LoadPreview(state.selected, return_to=state.mode)
    if key.name == KeyEvent.RETURN and state.items:
        return Resolve(state.selected)

    if key.char == '/':
        state.mode = SearchMode("")
    elif key.char == 's':
        state.sort_key = state.sort_key.next()
        state.sort_items()
    elif key.char == 'o':
        state.sort_descending = not state.sort_descending
        state.sort_items()

    return Redraw()


def _search_transition(state: SelectorState, mode: SearchMode, key: KeyEvent) -> Action:
    if _navigate(state, key):
        return Redraw()

    if key.name == KeyEvent.RIGHT and state.items:
        return LoadPreview(state.selected, return_to=mode)
    if key.name == KeyEvent.RETURN and state.items:
        return Resolve(state.selected)

    if key.name == KeyEvent.BACKSPACE:
        state.mode = SearchMode(mode.query[:-1])
        return ScheduleSearch(state.mode.query)
    if key.char is not None:
        state.mode = SearchMode(mode.query + key.char)
        return ScheduleSearch(state.mode.query)

    return Redraw()


def _preview_transition(state: SelectorState, mode: PreviewMode, key: KeyEvent,
                        page_size: int) -> Action:
    if key.name == KeyEvent.LEFT:
        state.mode = mode.return_to
    elif key.name == KeyEvent.UP:
        if mode.offset > 0:
            state.mode = PreviewMode(mode.record, mode.messages, mode.offset - 1, mode.return_to)
    elif key.name == KeyEvent.DOWN:
        if mode.offset + page_size < len(mode.messages):
            state.mode = PreviewMode(mode.record, mode.messages, mode.offset + 1, mode.return_to)
    elif key.name == KeyEvent.RETURN:
        return Resolve(mode.record)

    return Redraw()
