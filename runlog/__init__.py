"""
runlog - browse, share and export Claude Code conversations
"""

__version__ = "0.4.0"
__author__ = "runlog Contributors"

from .core.models import (
    ConversationRecord,
    EntryType,
    LogEntry,
    MessagePreview,
)
from .core.store import ConversationStore
from .core.config import Config, get_config
from .core.exceptions import (
    RunlogError,
    StoreNotFoundError,
    RemoteError,
    UnreachableError,
    ServerError,
    UnauthorizedError,
    NotFoundError,
)
from .integrations.remote import RemoteClient, UploadResponse

__all__ = [
    # Models
    'ConversationRecord',
    'EntryType',
    'LogEntry',
    'MessagePreview',
    # Store and configuration
    'ConversationStore',
    'Config',
    'get_config',
    # Errors
    'RunlogError',
    'StoreNotFoundError',
    'RemoteError',
    'UnreachableError',
    'ServerError',
    'UnauthorizedError',
    'NotFoundError',
    # Sharing service
    'RemoteClient',
    'UploadResponse',
]
