"""Persistence of the signed-in identity snapshot and auth token across restarts."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from .api.users import identity_to_json, parse_identity
from .const import DEFAULT_STORAGE_DIR, STORAGE_FILENAME, STORAGE_VERSION
from .models import Identity

__all__ = ["SessionStorage", "StoredSessionError"]

_LOGGER = logging.getLogger(__name__)


class StoredSessionError(ValueError):
    """The persisted identity snapshot exists but cannot be decoded."""


def _default_storage_path() -> Path:
    return Path(DEFAULT_STORAGE_DIR).expanduser() / STORAGE_FILENAME


class SessionStorage:
    """
    Client-local storage for the identity snapshot and the opaque token.

    The file is read once and cached; every write goes through to disk
    atomically (write to a temporary file, then rename).
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path).expanduser() if path else _default_storage_path()
        self._payload: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load_identity(self) -> Identity | None:
        """Return the stored identity, None when absent; raise StoredSessionError when corrupt."""
        raw_user = self._read_payload().get("user")
        if raw_user is None:
            return None
        if not isinstance(raw_user, Mapping):
            raise StoredSessionError(f"Stored user in {self._path} is not an object")
        identity = parse_identity(raw_user)
        if identity is None:
            raise StoredSessionError(f"Stored user in {self._path} has no id")
        return identity

    def load_token(self) -> str | None:
        token = self._read_payload().get("token")
        return token if isinstance(token, str) and token else None

    def save_identity(self, identity: Identity) -> None:
        payload = dict(self._read_payload())
        payload["user"] = identity_to_json(identity)
        self._write_payload(payload)

    def save_token(self, token: str | None) -> None:
        payload = dict(self._read_payload())
        payload["token"] = token
        self._write_payload(payload)

    def save_session(self, identity: Identity, token: str | None) -> None:
        self._write_payload({"user": identity_to_json(identity), "token": token})

    def clear(self) -> None:
        """Remove identity and token together."""
        self._payload = {}
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass

    def _read_payload(self) -> dict[str, Any]:
        if self._payload is not None:
            return self._payload
        self._payload = {}
        if not self._path.exists():
            return self._payload
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return self._payload
        except json.JSONDecodeError as exc:
            raise StoredSessionError(f"Session file {self._path} is not valid JSON: {exc}") from exc
        if isinstance(data, Mapping):
            self._payload = {key: data[key] for key in ("user", "token") if key in data}
        else:
            _LOGGER.warning("Session file %s does not hold an object, ignoring it", self._path)
        return self._payload

    def _write_payload(self, payload: dict[str, Any]) -> None:
        self._payload = payload
        body = json.dumps({"version": STORAGE_VERSION, **payload}, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
