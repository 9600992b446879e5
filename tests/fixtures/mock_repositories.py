"""
Mock Repository Implementations

In-memory implementations of the domain repository interfaces for tests.
They keep a call history so tests can assert on interactions.
"""

import threading
from datetime import datetime
from io import BytesIO
from typing import Any, BinaryIO, Dict, List, Optional

from ephemera.domain.errors import FileConflictError
from ephemera.domain.file_storage.entities import SharedFile
from ephemera.domain.file_storage.repositories import FileRepository
from ephemera.domain.file_storage.storage_repository import IFileStorageRepository


class MockFileRepository(FileRepository):
    """
    In-memory implementation of FileRepository.

    A single lock makes every operation atomic, which mirrors the Lua
    scripts of the Redis implementation closely enough for concurrency tests.
    """

    def __init__(self):
        self._files: Dict[str, SharedFile] = {}
        self._lock = threading.Lock()
        self._call_history: List[Dict[str, Any]] = []
        self.fail_next_insert: Optional[Exception] = None
        self.fail_delete_for: Dict[str, Exception] = {}

    def _record(self, method: str, **args) -> None:
        self._call_history.append({"method": method, "args": args})

    def insert(self, file: SharedFile) -> None:
        with self._lock:
            self._record("insert", file_id=file.id)
            if self.fail_next_insert is not None:
                error, self.fail_next_insert = self.fail_next_insert, None
                raise error
            for existing in self._files.values():
                if existing.id == file.id:
                    raise FileConflictError("id taken", field="id")
                if existing.download_token == file.download_token:
                    raise FileConflictError("token taken", field="download_token")
                if existing.storage_key == file.storage_key:
                    raise FileConflictError("storage key taken", field="storage_key")
            self._files[file.id] = SharedFile.from_dict(file.to_dict())

    def get_by_id(self, file_id: str) -> Optional[SharedFile]:
        with self._lock:
            self._record("get_by_id", file_id=file_id)
            file = self._files.get(file_id)
            return SharedFile.from_dict(file.to_dict()) if file else None

    def get_by_token(self, token: str) -> Optional[SharedFile]:
        with self._lock:
            self._record("get_by_token", token=token)
            for file in self._files.values():
                if file.download_token == token:
                    return SharedFile.from_dict(file.to_dict())
            return None

    def list_by_owner(self, owner_id: str) -> List[SharedFile]:
        with self._lock:
            self._record("list_by_owner", owner_id=owner_id)
            owned = [f for f in self._files.values() if f.owner_id == owner_id]
            return sorted(owned, key=lambda f: f.created_at, reverse=True)

    def increment_download_count(self, file_id: str, now: datetime) -> Optional[SharedFile]:
        with self._lock:
            self._record("increment_download_count", file_id=file_id)
            file = self._files.get(file_id)
            if file is None or file.is_exhausted():
                return None
            file.download_count += 1
            file.updated_at = now
            return SharedFile.from_dict(file.to_dict())

    def delete(self, file_id: str) -> bool:
        with self._lock:
            self._record("delete", file_id=file_id)
            if file_id in self.fail_delete_for:
                raise self.fail_delete_for[file_id]
            return self._files.pop(file_id, None) is not None

    def find_expired(self, now: datetime, limit: int) -> List[SharedFile]:
        with self._lock:
            self._record("find_expired", now=now, limit=limit)
            expired = sorted(
                (f for f in self._files.values() if f.expires_at <= now),
                key=lambda f: f.expires_at,
            )
            return expired[:limit]

    def find_exhausted(self, limit: int) -> List[SharedFile]:
        with self._lock:
            self._record("find_exhausted", limit=limit)
            return [f for f in self._files.values() if f.is_exhausted()][:limit]

    def exists(self, file_id: str) -> bool:
        with self._lock:
            return file_id in self._files

    def get_call_history(self) -> List[Dict[str, Any]]:
        return list(self._call_history)

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [call for call in self._call_history if call["method"] == method]


class MockStorageRepository(IFileStorageRepository):
    """In-memory implementation of IFileStorageRepository."""

    def __init__(self):
        self._storage: Dict[str, bytes] = {}
        self._content_types: Dict[str, Optional[str]] = {}
        self._lock = threading.Lock()
        self._call_history: List[Dict[str, Any]] = []
        self.fail_save: Optional[Exception] = None
        self.fail_delete: Optional[Exception] = None
        self.available = True

    def save(self, key: str, content: BinaryIO, content_type: Optional[str] = None) -> bool:
        self._call_history.append({"method": "save", "args": {"key": key}})
        if self.fail_save is not None:
            raise self.fail_save
        data = content.read() if hasattr(content, "read") else content
        with self._lock:
            self._storage[key] = data
            self._content_types[key] = content_type
        return True

    def get(self, key: str) -> Optional[BinaryIO]:
        self._call_history.append({"method": "get", "args": {"key": key}})
        with self._lock:
            content = self._storage.get(key)
        return BytesIO(content) if content is not None else None

    def delete(self, key: str) -> bool:
        self._call_history.append({"method": "delete", "args": {"key": key}})
        if self.fail_delete is not None:
            raise self.fail_delete
        with self._lock:
            self._storage.pop(key, None)
            self._content_types.pop(key, None)
        return True

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._storage

    def get_size(self, key: str) -> Optional[int]:
        with self._lock:
            content = self._storage.get(key)
        return len(content) if content is not None else None

    def is_available(self) -> bool:
        return self.available

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._storage)

    def content_type(self, key: str) -> Optional[str]:
        return self._content_types.get(key)
