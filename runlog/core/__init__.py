"""Core components of runlog"""

from .store import ConversationStore

__all__ = ['ConversationStore']
