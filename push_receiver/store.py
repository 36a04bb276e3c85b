"""JSON file persistence for push credentials."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)


class CredentialStore:
    """Keep registration keys and FCM response in one JSON file.

    Layout: ``{"keys": {...}, "fcm": {...}}``. Missing sections are absent.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        """Return stored credentials, or an empty dict if nothing is saved."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Credential file {self.path} must hold a JSON object")
        return data

    def save_keys(self, keys: dict[str, Any]) -> dict[str, Any]:
        self._update("keys", keys)
        return keys

    def save_fcm(self, fcm: dict[str, Any]) -> dict[str, Any]:
        self._update("fcm", fcm)
        return fcm

    def _update(self, section: str, value: dict[str, Any]) -> None:
        data = self.load()
        data[section] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # atomic replace
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)
        _LOGGER.debug("Saved %s to %s", section, self.path)
