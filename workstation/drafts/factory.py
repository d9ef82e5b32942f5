"""
工厂函数：根据 settings.DRAFT_STORE_BACKEND 返回对应的草稿存储实例。

新增后端只需：
  1. 在 stores.py 新建 XxxDraftStore(BaseDraftStore) 类
  2. 在此处 _build_registry() 加一行
  不需要修改 autosave.py 或任何 Store。
"""

from django.conf import settings

from .base import BaseDraftStore


def _build_registry() -> dict[str, type[BaseDraftStore]]:
    # 延迟导入，避免未安装 redis 时 import 失败
    from .stores import MemoryDraftStore, RedisDraftStore

    return {
        "memory": MemoryDraftStore,
        "redis":  RedisDraftStore,
    }


def get_draft_store(backend: str | None = None, **kwargs) -> BaseDraftStore:
    """
    返回草稿存储实例。每个工作站标签页应持有自己的实例。

    Args:
        backend: 后端名，缺省读 settings.DRAFT_STORE_BACKEND（默认 "memory"）
        kwargs:  透传给后端构造函数（如 redis 的 session_id）

    Raises:
        ValueError: 未知后端
    """
    backend = backend or getattr(settings, "DRAFT_STORE_BACKEND", "memory")
    registry = _build_registry()
    store_cls = registry.get(backend)

    if store_cls is None:
        raise ValueError(
            f"Unknown DRAFT_STORE_BACKEND: {backend!r}. "
            f"Known backends: {list(registry.keys())}"
        )

    return store_cls(**kwargs)
