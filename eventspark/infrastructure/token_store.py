"""
Session token storage.

The token is opaque to the client: it is read, attached as a bearer
credential and cleared on logout, never inspected.
"""

from pathlib import Path
from typing import Optional

from eventspark.core.logging import get_logger

logger = get_logger(__name__)


class TokenStore:
    """Keeps a single token in a file readable only by its owner."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        self.path.chmod(0o600)
        logger.info("session_token_saved", path=str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.info("session_token_cleared", path=str(self.path))
