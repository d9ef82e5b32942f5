"""
BaseDraftStore — 所有草稿存储后端的抽象基类。

每个新后端只需：
1. 继承 BaseDraftStore
2. 实现 get() / set() / delete()
3. 在 factory.py 的 _build_registry() 注册一行

DraftAutoSave 完全不知道背后是内存还是 redis。

存储语义要求（由具体后端保证）：
  - 同一标签页会话内刷新后仍可读到
  - 不同会话之间互不可见
  - 会话结束后自动消失
"""

from abc import ABC, abstractmethod


class BaseDraftStore(ABC):

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        读取草稿原文（JSON 字符串），不存在返回 None。

        Raises:
            DraftStorageError: 后端读取失败
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        写入草稿原文。

        Raises:
            DraftStorageError: 后端写入失败（空间不足、连接断开……）
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除草稿，不存在时静默。"""
