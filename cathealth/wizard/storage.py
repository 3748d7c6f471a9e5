# wizard/storage.py
"""
Durable key/value storage for wizard state that has to survive a full-page
redirect to the sign-in provider.

Writes are synchronous and visible to the next read in the same browser
session.  There is no cross-tab coordination: the last write wins.
"""
import logging
from typing import Dict, Optional

import redis

from cathealth.core.redis import redis_client

logger = logging.getLogger(__name__)


class DurableStorage:
    """String slots addressed by key, in the manner of the browser's localStorage."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(DurableStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items


class RedisStorage(DurableStorage):
    """
    Slots kept in Redis under ``<namespace>:<session_id>:<key>``.

    ``session_id`` identifies one browser session, so two visitors never see
    each other's saved answers.  Entries expire after ``ttl`` seconds.
    """

    def __init__(
        self,
        session_id: str,
        client: Optional[redis.Redis] = None,
        namespace: str = "cathealth:wizard",
        ttl: Optional[int] = 60 * 60 * 24,
    ):
        self.client = client if client is not None else redis_client
        self.prefix = f"{namespace}:{session_id}"
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get_item(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set_item(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value, ex=self.ttl)

    def remove_item(self, key: str) -> None:
        self.client.delete(self._key(key))
