"""
具体草稿存储后端。

新增后端：在此文件添加一个类，然后在 factory.py 注册即可。

已注册后端：
  memory — MemoryDraftStore  (进程内 dict，随工作站实例销毁)
  redis  — RedisDraftStore   (按 session_id 隔离的 key + TTL)
"""

import uuid

from django.conf import settings

from ..exceptions import DraftStorageError
from .base import BaseDraftStore


# ── MemoryDraftStore ───────────────────────────────────────────────────────
#
# 一个实例 = 一个标签页会话。
# max_bytes 模拟浏览器存储配额，超出时抛 DraftStorageError。

class MemoryDraftStore(BaseDraftStore):

    DEFAULT_MAX_BYTES = 5 * 1024 * 1024

    def __init__(self, max_bytes=None):
        self._data = {}
        self.max_bytes = max_bytes or self.DEFAULT_MAX_BYTES

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        used = sum(len(v) for k, v in self._data.items() if k != key)
        if used + len(value) > self.max_bytes:
            raise DraftStorageError(
                message='草稿存储空间不足',
                code='DRAFT_QUOTA_EXCEEDED',
                detail={'key': key, 'size': len(value), 'max_bytes': self.max_bytes},
            )
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


# ── RedisDraftStore ────────────────────────────────────────────────────────
#
# 环境变量：REDIS_URL、DRAFT_SESSION_TTL
# key 形如 draft:{session_id}:{key}，每次写入刷新 TTL。
# 同一个 session_id 重连后可恢复；换 session_id 即看不到。

class RedisDraftStore(BaseDraftStore):

    def __init__(self, session_id=None, client=None, ttl=None):
        if client is None:
            import redis

            client = redis.from_url(settings.REDIS_URL)

        self.client = client
        self.session_id = session_id or uuid.uuid4().hex
        self.ttl = ttl or settings.DRAFT_SESSION_TTL

    def _key(self, key):
        return f'draft:{self.session_id}:{key}'

    def get(self, key):
        import redis

        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as exc:
            raise DraftStorageError(f'读取草稿失败: {exc}', detail={'key': key}) from exc
        if raw is None or not isinstance(raw, bytes):
            return raw
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise DraftStorageError(f'草稿编码错误: {exc}', detail={'key': key}) from exc

    def set(self, key, value):
        import redis

        try:
            self.client.set(self._key(key), value, ex=self.ttl)
        except redis.RedisError as exc:
            raise DraftStorageError(f'写入草稿失败: {exc}', detail={'key': key}) from exc

    def delete(self, key):
        import redis

        try:
            self.client.delete(self._key(key))
        except redis.RedisError as exc:
            raise DraftStorageError(f'删除草稿失败: {exc}', detail={'key': key}) from exc
