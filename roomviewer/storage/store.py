"""Local key-value and payload storage.

Scene state is kept in a small string key-value store (one JSON document
on disk), while model files are kept as content-addressed blobs next to
it so the scene can reference them by hash.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key-value storage, in the shape of browser local storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """In-memory key-value store."""

    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk.

    Every write rewrites the whole file, going through a temp file and an
    atomic rename so a crash never leaves a half-written store.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.path}: expected a JSON object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump(items, f, indent=2)

        temp_path.replace(self.path)

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items)


def _hash_payload(payload: bytes) -> str:
    """Compute a short SHA-256 reference for a payload."""
    return hashlib.sha256(payload).hexdigest()[:16]


class PayloadStore:
    """Content-addressed store for model file payloads.

    Payloads are written once under ``<hash>.<file_type>``; storing the
    same bytes twice returns the same reference.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _find(self, ref: str) -> Path | None:
        if not ref or not ref.isalnum() or not self.directory.exists():
            return None
        for path in self.directory.glob(f"{ref}.*"):
            if path.suffix != ".tmp":
                return path
        return None

    def put(self, payload: bytes, file_type: str) -> str:
        """Store a payload and return its reference."""
        ref = _hash_payload(payload)
        if self._find(ref) is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / f"{ref}.{file_type.lower().lstrip('.')}"
            temp_path = path.with_suffix(".tmp")
            temp_path.write_bytes(payload)
            temp_path.replace(path)
            logger.debug(f"Stored payload {path}")
        return ref

    def get(self, ref: str | None) -> bytes | None:
        """Return the payload for ``ref``, or None if it can't be found."""
        if ref is None:
            return None
        path = self._find(ref)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning(f"Failed to read payload {path}: {e}")
            return None

    def discard(self, ref: str) -> bool:
        """Delete a stored payload.

        Returns:
            True if deleted, False if not found
        """
        path = self._find(ref)
        if path is None:
            return False
        path.unlink()
        logger.debug(f"Deleted payload {path}")
        return True

    def __contains__(self, ref: object) -> bool:
        return isinstance(ref, str) and self._find(ref) is not None


class MemoryPayloadStore(PayloadStore):
    """Payload store that keeps blobs in memory."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def put(self, payload: bytes, file_type: str) -> str:
        ref = _hash_payload(payload)
        self.blobs.setdefault(ref, payload)
        return ref

    def get(self, ref: str | None) -> bytes | None:
        if ref is None:
            return None
        return self.blobs.get(ref)

    def discard(self, ref: str) -> bool:
        return self.blobs.pop(ref, None) is not None

    def __contains__(self, ref: object) -> bool:
        return ref in self.blobs
