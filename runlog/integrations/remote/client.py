"""
HTTP client for uploading and deleting shared conversations.
"""

import logging
from typing import Optional

import requests

from runlog.core.constants import (
    CLIENT_ID_HEADER,
    DELETE_TIMEOUT,
    LOCAL_SHARE_PAGE,
    PRODUCTION_API_HOST,
    PRODUCTION_SHARE_BASE,
    UPLOAD_TIMEOUT,
)
from runlog.core.exceptions import (
    NotFoundError,
    ServerError,
    UnauthorizedError,
    UnreachableError,
)
from runlog.core.sanitizer import ImageSanitizer
from runlog.integrations.remote.base import UploadResponse, error_message

logger = logging.getLogger(__name__)


class RemoteClient:
    """
    Client for the runlog sharing service.

    Every request carries the installation's client id so the service can
    restrict deletion to the uploader.
    """

    def __init__(self, api_endpoint: str, client_id: str,
                 sanitizer: Optional[ImageSanitizer] = None):
        """
        Args:
            api_endpoint: Service base URL (e.g. https://api.runlog.io)
            client_id: Per-installation identity
            sanitizer: Image sanitizer applied before upload
        """
        self.api_endpoint = api_endpoint.rstrip('/')
        self.client_id = client_id
        self.sanitizer = sanitizer or ImageSanitizer()

    def _headers(self, **extra) -> dict:
        headers = {CLIENT_ID_HEADER: self.client_id}
        headers.update(extra)
        return headers

    def upload(self, content: str) -> UploadResponse:
        """
        Upload a raw JSONL conversation.

        Raises:
            ServerError: The service answered with a non-2xx status
            UnreachableError: No response was received
        """
        body = self.sanitizer.sanitize(content)
        url = f'{self.api_endpoint}/conversations'
        logger.debug("Uploading %d bytes to %s", len(body), url)

        try:
            response = requests.post(
                url,
                data=body.encode('utf-8'),
                headers=self._headers(**{'Content-Type': 'text/plain'}),
                timeout=UPLOAD_TIMEOUT,
            )
            response.raise_for_status()
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise UnreachableError() from e
        except requests.exceptions.HTTPError as e:
            raise ServerError(e.response.status_code, error_message(e.response)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ServerError(response.status_code, "Invalid response from server") from e
        if not isinstance(data, dict):
            raise ServerError(response.status_code, "Invalid response from server")
        return UploadResponse.from_dict(data)

    def delete(self, conversation_id: str) -> None:
        """
        Delete a conversation uploaded from this installation.

        Raises:
            UnauthorizedError: The conversation was uploaded by another client
            NotFoundError: No such conversation
            ServerError: Any other non-2xx status
            UnreachableError: No response was received
        """
        url = f'{self.api_endpoint}/conversations/{conversation_id}'
        logger.debug("Deleting %s", url)

        try:
            response = requests.delete(url, headers=self._headers(), timeout=DELETE_TIMEOUT)
            response.raise_for_status()
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise UnreachableError() from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code
            if status == 403:
                raise UnauthorizedError(
                    "Unauthorized: You can only delete conversations you uploaded"
                ) from e
            if status == 404:
                raise NotFoundError("Conversation not found") from e
            raise ServerError(status, error_message(e.response)) from e

    def share_url(self, conversation_id: str) -> str:
        """Public URL of an uploaded conversation"""
        if PRODUCTION_API_HOST in self.api_endpoint:
            return f"{PRODUCTION_SHARE_BASE}/{conversation_id}"
        if 'localhost' in self.api_endpoint:
            return f"{LOCAL_SHARE_PAGE}?id={conversation_id}"

        ui_host = (self.api_endpoint
                   .replace('https://api.', 'https://')
                   .replace('http://api.', 'http://'))
        return f"{ui_host}/c/{conversation_id}"

    def __repr__(self) -> str:
        return f"RemoteClient(api_endpoint={self.api_endpoint!r})"
