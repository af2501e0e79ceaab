# muirgen/client/storage.py

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = "muirgen_token"
DEFAULT_STORE_PATH = Path.home() / ".muirgen" / "storage.json"


class TokenStore:
    """
    Key/value file that keeps the session token between runs,
    the console's counterpart of browser local storage.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or os.getenv("MUIRGEN_STORE", DEFAULT_STORE_PATH))

    def _read(self) -> dict:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError:
            logger.warning("ignoring unreadable store at %s", self.path)
            return {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def load(self) -> Optional[str]:
        return self._read().get(TOKEN_KEY)

    def save(self, token: str) -> None:
        data = self._read()
        data[TOKEN_KEY] = token
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if data.pop(TOKEN_KEY, None) is not None:
            self._write(data)
