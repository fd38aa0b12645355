"""
Wire types for the runlog sharing service.
"""

from dataclasses import dataclass
from typing import Any, Dict

import requests


@dataclass
class UploadResponse:
    """Response to a successful upload"""
    id: str
    created_at: str
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UploadResponse':
        return cls(
            id=str(data.get('id', '')),
            created_at=str(data.get('created_at', '')),
            message=str(data.get('message', '')),
        )


def error_message(response: requests.Response) -> str:
    """
    Server supplied error text.

    Uses the ``error`` field, else the joined ``errors`` list, else a
    generic fallback.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        if data.get('error'):
            return str(data['error'])
        errors = data.get('errors')
        if isinstance(errors, list) and errors:
            return ', '.join(str(e) for e in errors)
    return 'Unknown server error'
