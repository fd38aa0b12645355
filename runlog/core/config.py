"""
Configuration management for runlog
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Mapping, Optional

from runlog.core.constants import CLIENT_ID_FILENAME, DEFAULT_API_ENDPOINT

logger = logging.getLogger(__name__)


class Config:
    """
    Configuration resolved from the environment.

    Environment variables:
        RUNLOG_API_ENDPOINT: Sharing service endpoint (default: https://api.runlog.io)
        CLAUDE_DIR: Claude projects directory (default: ~/.claude/projects)
    """

    ENDPOINT_VAR = "RUNLOG_API_ENDPOINT"
    CLAUDE_DIR_VAR = "CLAUDE_DIR"

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration

        Args:
            environ: Environment mapping (defaults to os.environ)
        """
        self.environ = os.environ if environ is None else environ
        self._client_id: Optional[str] = None

    @property
    def api_endpoint(self) -> str:
        return self.environ.get(self.ENDPOINT_VAR) or DEFAULT_API_ENDPOINT

    @property
    def claude_dir(self) -> Path:
        custom = self.environ.get(self.CLAUDE_DIR_VAR)
        if custom:
            return Path(custom).expanduser()
        home = self.environ.get("HOME")
        base = Path(home) if home else Path.home()
        return base / ".claude" / "projects"

    @property
    def client_id_path(self) -> Path:
        return self.claude_dir / CLIENT_ID_FILENAME

    @property
    def client_id(self) -> str:
        """
        Per-installation identity sent with every request.

        Read from the client id file when present, otherwise generated once
        and written there. File system errors propagate to the caller.
        """
        if self._client_id is None:
            self._client_id = self._load_client_id()
        return self._client_id

    def _load_client_id(self) -> str:
        path = self.client_id_path
        if path.exists():
            return path.read_text(encoding='utf-8').strip()

        client_id = str(uuid.uuid4())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(client_id, encoding='utf-8')
        logger.debug("Generated client id at %s", path)
        return client_id

    def __repr__(self) -> str:
        return f"Config(api_endpoint={self.api_endpoint!r}, claude_dir={str(self.claude_dir)!r})"


def get_config() -> Config:
    """Build configuration from the current environment"""
    return Config()
