"""
Redis File Repository Implementation

Concrete Redis-based implementation of FileRepository interface.

Key layout (relative to the repository prefix):

- ``file:{id}``                 JSON metadata record
- ``file_token:{token}``        id, unique per token
- ``file_storage_key:{key}``    id, unique per storage key
- ``files:expiry``              sorted set of ids scored by expires_at epoch
- ``files:exhausted``           sorted set of ids whose budget is used up
- ``files:owner:{owner_id}``    sorted set of ids scored by created_at epoch

Records carry no Redis TTL: an expired record must stay readable so
callers get "gone" rather than "not found" until reclamation removes it.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

from redis.exceptions import RedisError

from ..domain.clock import to_epoch
from ..domain.errors import FileConflictError, StorageError
from ..domain.file_storage.entities import SharedFile
from ..domain.file_storage.repositories import FileRepository
from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


# Returns 1 on success, or -1/-2/-3 for an id/token/storage key collision
INSERT_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return -1
end
if redis.call('EXISTS', KEYS[2]) == 1 then
    return -2
end
if redis.call('EXISTS', KEYS[3]) == 1 then
    return -3
end

redis.call('SET', KEYS[1], ARGV[1])
redis.call('SET', KEYS[2], ARGV[2])
redis.call('SET', KEYS[3], ARGV[2])
redis.call('ZADD', KEYS[4], ARGV[3], ARGV[2])

if ARGV[5] == '1' then
    redis.call('ZADD', KEYS[5], ARGV[4], ARGV[2])
end
if ARGV[6] == '1' then
    redis.call('ZADD', KEYS[6], ARGV[4], ARGV[2])
end
return 1
"""

# Returns the updated record, or nil when missing or already at the bound
INCREMENT_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return nil
end

local record = cjson.decode(data)
local max = record['max_downloads']
local bounded = max ~= nil and max ~= cjson.null
local count = tonumber(record['download_count']) or 0

if bounded and count >= tonumber(max) then
    return nil
end

count = count + 1
record['download_count'] = count
record['updated_at'] = ARGV[1]

local encoded = cjson.encode(record)
redis.call('SET', KEYS[1], encoded)

if bounded and count >= tonumber(max) then
    redis.call('ZADD', KEYS[2], ARGV[2], record['id'])
end
return encoded
"""

# Returns 1 when the record was removed, 0 when it was already gone
DELETE_SCRIPT = """
if redis.call('DEL', KEYS[1]) == 0 then
    return 0
end

redis.call('DEL', KEYS[2], KEYS[3])
redis.call('ZREM', KEYS[4], ARGV[1])
redis.call('ZREM', KEYS[5], ARGV[1])
redis.call('ZREM', KEYS[6], ARGV[1])
return 1
"""

_CONFLICT_FIELDS = {-1: "id", -2: "download_token", -3: "storage_key"}


class RedisFileRepository(FileRepository):
    """
    Redis-based implementation of FileRepository.

    Uniqueness, the conditional download increment and deletion with all
    its index entries each run as one Lua script, so they are atomic with
    respect to every other client of the same Redis instance.
    """

    def __init__(self, redis_repository: RedisRepository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.record_prefix = "file"
        self.token_prefix = "file_token"
        self.storage_key_prefix = "file_storage_key"
        self.expiry_index = "files:expiry"
        self.exhausted_index = "files:exhausted"
        self.owner_index_prefix = "files:owner"

    # Key helpers

    def _record_key(self, file_id: str) -> str:
        return f"{self.record_prefix}:{file_id}"

    def _token_key(self, token: str) -> str:
        return f"{self.token_prefix}:{token}"

    def _storage_key_key(self, storage_key: str) -> str:
        return f"{self.storage_key_prefix}:{storage_key}"

    def _owner_key(self, owner_id: str) -> str:
        return f"{self.owner_index_prefix}:{owner_id}"

    def _full(self, key: str) -> str:
        return self.redis_repo._make_key(key)

    def _index_keys(self, file: SharedFile) -> List[str]:
        owner_key = self._owner_key(file.owner_id) if file.owner_id else self._owner_key("")
        return [
            self._full(self._record_key(file.id)),
            self._full(self._token_key(file.download_token)),
            self._full(self._storage_key_key(file.storage_key)),
            self._full(self.expiry_index),
            self._full(self.exhausted_index),
            self._full(owner_key),
        ]

    def _to_entity(self, data: Optional[Dict], key: str = "") -> Optional[SharedFile]:
        if data is None:
            return None
        try:
            return SharedFile.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed file record at {key}: {e}")
            return None

    # FileRepository interface

    def insert(self, file: SharedFile) -> None:
        """
        Insert a new record and its index entries.

        Raises:
            FileConflictError: If the id, token or storage key is taken
            StorageError: If Redis fails
        """
        result = self.redis_repo.eval(
            INSERT_SCRIPT,
            self._index_keys(file),
            [
                self._serialize(file),
                file.id,
                to_epoch(file.expires_at),
                to_epoch(file.created_at),
                "1" if file.is_exhausted() else "0",
                "1" if file.owner_id else "0",
            ],
        )

        result = int(result)
        if result != 1:
            field = _CONFLICT_FIELDS.get(result, "unknown")
            raise FileConflictError(f"File {field} already exists: {file.id}", field=field)

        logger.debug(f"Inserted metadata for file {file.id}")

    def get_by_id(self, file_id: str) -> Optional[SharedFile]:
        """Retrieve a record by id."""
        key = self._record_key(file_id)
        return self._to_entity(self.redis_repo.get_json(key), key)

    def get_by_token(self, token: str) -> Optional[SharedFile]:
        """Retrieve a record through the token index."""
        file_id = self.redis_repo.get_string(self._token_key(token))
        if file_id is None:
            return None
        return self.get_by_id(file_id)

    def list_by_owner(self, owner_id: str) -> List[SharedFile]:
        """Records owned by an identity, newest first."""
        try:
            ids = self.redis_repo.redis.zrevrange(self._full(self._owner_key(owner_id)), 0, -1)
        except RedisError as e:
            raise StorageError(f"Failed to list files for owner {owner_id}: {e}", e) from e
        return self._load_many(ids, self._owner_key(owner_id))

    def increment_download_count(self, file_id: str, now: datetime) -> Optional[SharedFile]:
        """
        Conditionally increment the download counter.

        Returns:
            Updated record, or None if the record is missing or exhausted
        """
        result = self.redis_repo.eval(
            INCREMENT_SCRIPT,
            [self._full(self._record_key(file_id)), self._full(self.exhausted_index)],
            [now.isoformat(), to_epoch(now)],
        )
        if result is None:
            return None
        key = self._record_key(file_id)
        return self._to_entity(self.redis_repo.loads(result, key), key)

    def delete(self, file_id: str) -> bool:
        """
        Remove a record and all of its index entries.

        Returns:
            True if removed, False if it was already gone
        """
        file = self.get_by_id(file_id)
        if file is None:
            self._drop_from_indexes([file_id])
            return False

        result = self.redis_repo.eval(DELETE_SCRIPT, self._index_keys(file), [file.id])
        return int(result) == 1

    def find_expired(self, now: datetime, limit: int) -> List[SharedFile]:
        """Records with expires_at <= now, oldest expiry first."""
        try:
            ids = self.redis_repo.redis.zrangebyscore(
                self._full(self.expiry_index), "-inf", to_epoch(now), start=0, num=limit
            )
        except RedisError as e:
            raise StorageError(f"Failed to scan expiry index: {e}", e) from e
        return self._load_many(ids, self.expiry_index)

    def find_exhausted(self, limit: int) -> List[SharedFile]:
        """Records whose download budget is used up."""
        if limit <= 0:
            return []
        try:
            ids = self.redis_repo.redis.zrange(self._full(self.exhausted_index), 0, limit - 1)
        except RedisError as e:
            raise StorageError(f"Failed to scan exhausted index: {e}", e) from e
        return self._load_many(ids, self.exhausted_index)

    def exists(self, file_id: str) -> bool:
        return self.redis_repo.exists(self._record_key(file_id))

    # Helpers

    def _serialize(self, file: SharedFile) -> str:
        return json.dumps(file.to_dict())

    def _load_many(self, raw_ids, index_name: str) -> List[SharedFile]:
        ids = [RedisRepository._decode(raw) for raw in raw_ids]
        records = self.redis_repo.mget_json([self._record_key(file_id) for file_id in ids])

        files = []
        stale = []
        for file_id, data in zip(ids, records):
            if data is None:
                stale.append(file_id)
                continue
            file = self._to_entity(data, self._record_key(file_id))
            if file is not None:
                files.append(file)

        if stale:
            logger.warning(f"Dropping {len(stale)} stale entries from {index_name}")
            self._drop_from_indexes(stale, index_name)

        return files

    def _drop_from_indexes(self, file_ids: List[str], extra_index: Optional[str] = None) -> None:
        try:
            pipe = self.redis_repo.redis.pipeline()
            if extra_index:
                pipe.zrem(self._full(extra_index), *file_ids)
            pipe.zrem(self._full(self.expiry_index), *file_ids)
            pipe.zrem(self._full(self.exhausted_index), *file_ids)
            pipe.execute()
        except RedisError as e:
            # Stale index entries are harmless and retried on the next scan
            logger.warning(f"Failed to drop stale index entries: {e}")
