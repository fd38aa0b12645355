"""Interactive terminal selector for conversations"""

from .state import KeyEvent, SelectorState, SortKey, transition
from .tui import InteractiveSelector

__all__ = ['InteractiveSelector', 'KeyEvent', 'SelectorState', 'SortKey', 'transition']
