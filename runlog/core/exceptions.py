"""
Exceptions raised by runlog.

Per-line and per-file parse problems never surface as exceptions; only
directory-level and network-level failures reach the CLI.
"""

from typing import Optional


class RunlogError(Exception):
    """Base exception for runlog errors"""
    pass


class StoreNotFoundError(RunlogError):
    """The Claude log directory does not exist"""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Claude directory not found: {path}")


# ==================== Remote errors ====================

class RemoteError(RunlogError):
    """Base exception for sharing service errors"""
    pass


class UnreachableError(RemoteError):
    """No response was received from the sharing service"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No response from server. Is the server running?")


class ServerError(RemoteError):
    """The sharing service rejected the request"""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Server error ({status}): {message}")


class UnauthorizedError(RemoteError):
    """Deleting a conversation uploaded from another client"""
    pass


class NotFoundError(RemoteError):
    """The conversation does not exist on the sharing service"""
    pass
