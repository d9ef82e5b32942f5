"""
DraftAutoSave — 防抖草稿自动保存。

一个实例绑定一个 Store 的一种内容（病历 / 检查购物车 / 处方购物车）：

    autosave = DraftAutoSave(store, DraftKind.ORDER_CART, snapshot=..., restore=...)
    autosave.init_auto_save(visit_id)   # 激活 + 尝试恢复
    autosave.notify_changed()           # 每次修改后调用，重新计时
    autosave.clear_draft()              # 提交成功后调用
    autosave.deactivate()               # 离开页面时调用

防抖是单航班的：任一时刻最多只有一个待执行的写入，新的修改总是取消旧的计时器再重排。
计时器触发时 snapshot() 为空 → 删除 key，而不是写一条空记录。

草稿是尽力而为的：存储失败只记 warning，不会抛给调用方。
"""

import itertools
import json
import logging
import threading
import time
from dataclasses import asdict

from django.conf import settings

from ..enums import DraftKind
from ..exceptions import DraftStorageError
from ..types import DraftRecord

logger = logging.getLogger(__name__)


def draft_key(kind, visit_id):
    """(内容种类, 挂号ID) → storage key，不同种类之间不会重叠。"""
    return f'{DraftKind(kind).value}_draft_{visit_id}'


class DraftAutoSave:

    def __init__(self, store, kind, snapshot, restore, delay=None):
        """
        Args:
            store:    BaseDraftStore 实例
            kind:     DraftKind
            snapshot: () -> JSON 可序列化对象；返回空值表示"没有未保存内容"
            restore:  (payload) -> None；由调用方决定哪些字段仍为空、可以被草稿填充
            delay:    防抖秒数，缺省读 settings.DRAFT_DEBOUNCE_SECONDS
        """
        self.store = store
        self.kind = DraftKind(kind)
        self._snapshot = snapshot
        self._restore = restore
        self.delay = getattr(settings, 'DRAFT_DEBOUNCE_SECONDS', 1.0) if delay is None else delay

        self.visit_id = None
        self._lock = threading.RLock()
        self._timer = None
        self._pending = None
        self._tokens = itertools.count(1)

    @property
    def active(self):
        return self.visit_id is not None

    @property
    def key(self):
        return draft_key(self.kind, self.visit_id) if self.visit_id is not None else None

    @property
    def has_pending_write(self):
        return self._pending is not None

    # ── 生命周期 ───────────────────────────────────────────────────────────

    def init_auto_save(self, visit_id):
        """
        激活监听并尝试恢复草稿。

        Returns:
            bool: 是否读到并交给 restore() 处理了一条草稿
        """
        with self._lock:
            self._cancel()
            self.visit_id = visit_id
            key = self.key

        raw = self._safe_get(key)
        if raw is None:
            return False

        try:
            payload = json.loads(raw)['payload']
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("[Draft] 草稿解析失败 key=%s: %s", key, exc)
            return False

        # 形状不对的草稿当作没有草稿
        try:
            self._restore(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("[Draft] 草稿恢复失败 key=%s: %s", key, exc)
            return False

        logger.info("[Draft] 已恢复草稿 key=%s", key)
        return True

    def notify_changed(self):
        """被监听的内容发生了变化：取消待执行写入，重新计时。"""
        with self._lock:
            if self.visit_id is None:
                return
            self._cancel()
            token = next(self._tokens)
            self._pending = token
            self._timer = threading.Timer(self.delay, self._fire, args=(token,))
            self._timer.daemon = True
            self._timer.start()

    def flush(self):
        """立即执行待写入（如果有）。返回是否真的写了。"""
        with self._lock:
            if self._pending is None:
                return False
            self._cancel()
            self._write()
            return True

    def clear_draft(self):
        """删除当前 visit 的草稿并取消待写入。提交成功 / 结束诊疗时调用。"""
        with self._lock:
            self._cancel()
            key = self.key
        if key is not None:
            self._safe_delete(key)

    def deactivate(self):
        """停止监听，防止下一个患者继承本次的计时器。"""
        with self._lock:
            self._cancel()
            self.visit_id = None

    # ── 内部 ──────────────────────────────────────────────────────────────

    def _cancel(self):
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None

    def _fire(self, token):
        with self._lock:
            # 已被取消或被更新的修改取代
            if token != self._pending:
                return
            self._timer = None
            self._pending = None
            self._write()

    def _write(self):
        key = self.key
        if key is None:
            return

        payload = self._snapshot()
        if not payload:
            self._safe_delete(key)
            logger.debug("[Draft] 内容为空，删除草稿 key=%s", key)
            return

        record = DraftRecord(key=key, payload=payload, saved_at=int(time.time() * 1000))
        try:
            raw = json.dumps(asdict(record), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("[Draft] 草稿序列化失败 key=%s: %s", key, exc)
            return

        try:
            self.store.set(key, raw)
        except DraftStorageError as exc:
            logger.warning("[Draft] 草稿保存失败(可能是空间不足) key=%s: %s", key, exc.message)
            return
        logger.debug("[Draft] 草稿已保存 key=%s size=%d", key, len(raw))

    def _safe_get(self, key):
        try:
            return self.store.get(key)
        except DraftStorageError as exc:
            logger.warning("[Draft] 草稿读取失败 key=%s: %s", key, exc.message)
            return None

    def _safe_delete(self, key):
        try:
            self.store.delete(key)
        except DraftStorageError as exc:
            logger.warning("[Draft] 草稿删除失败 key=%s: %s", key, exc.message)
