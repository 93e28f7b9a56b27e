from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

KEY_PREFIX = "issue_token_"


class TokenVault:
    """
    Client-local storage for tracking tokens.

    A lost token cannot be recovered for an anonymous report, so tokens are
    written to disk as soon as a report is created. ``path=None`` keeps them in
    memory only.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path).expanduser() if path is not None else None
        self._entries: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable token vault {path}: {error}", path=self.path, error=exc)
            return {}
        return {key: value for key, value in data.items() if key.startswith(KEY_PREFIX)}

    def _write(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._entries, indent=2, sort_keys=True), encoding="utf-8")

    def save(self, issue_id: str, token: str) -> None:
        self._entries[f"{KEY_PREFIX}{issue_id}"] = token
        self._write()

    def get(self, issue_id: str) -> str | None:
        return self._entries.get(f"{KEY_PREFIX}{issue_id}")

    def tokens(self) -> dict[str, str]:
        """Issue id to token for every saved report."""
        return {key[len(KEY_PREFIX) :]: value for key, value in self._entries.items()}

    def __len__(self) -> int:
        return len(self._entries)
