"""Client for the runlog sharing service"""

from .base import UploadResponse
from .client import RemoteClient

__all__ = ['RemoteClient', 'UploadResponse']
