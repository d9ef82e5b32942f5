"""
VisitContext — 一个工作站标签页"正在看哪个就诊、走到哪一步"的唯一来源。

只有自己的方法和 RecordEditor / 购物车显式调用的 set_case_id / update_status 会修改字段。
派生属性全部委托给 status.py 的纯函数。
"""

import logging

from . import status as rules
from .enums import VisitStatus
from .exceptions import ApiError
from .types import PatientSummary

logger = logging.getLogger(__name__)


class VisitContext:

    def __init__(self, api):
        self.api = api
        self.loading = False
        self.registration_id = None
        self.case_id = None
        self.status = None
        self.patient = PatientSummary()
        self._epoch = 0

    # ── 派生属性 ───────────────────────────────────────────────────────────

    @property
    def can_order_tests(self):
        return rules.can_order_tests(self.status)

    @property
    def is_chart_editable(self):
        return rules.is_chart_editable(self.status)

    @property
    def can_prescribe(self):
        return rules.can_prescribe(self.status)

    @property
    def menu_gates(self):
        return rules.menu_gates(self.status, self.case_id)

    @property
    def status_display(self):
        return rules.status_display(self.status)

    @property
    def has_case(self):
        return bool(self.case_id)

    # ── 操作 ──────────────────────────────────────────────────────────────

    def init_context(self, visit_id):
        """
        拉取诊疗上下文并整体替换字段。

        visit_id 为空时什么都不做。失败时保留原状态并把 ApiError 抛给调用方
        （调用方应提示错误并阻止进入工作站）。
        """
        if not visit_id:
            return

        epoch = self._epoch
        self.loading = True
        try:
            snapshot = self.api.get_clinic_context(visit_id)
        except ApiError as exc:
            logger.error("[VisitContext] 获取诊疗上下文失败 visit_id=%s: %s", visit_id, exc.message)
            raise
        finally:
            if epoch == self._epoch:
                self.loading = False

        if epoch != self._epoch:
            logger.info("[VisitContext] visit_id=%s 的响应到达时上下文已清空，丢弃", visit_id)
            return

        self.registration_id = snapshot.registration_id
        self.case_id = snapshot.case_id
        self.status = snapshot.status
        self.patient = snapshot.patient
        logger.info("[VisitContext] 上下文已加载 registration_id=%s case_id=%s status=%s",
                    self.registration_id, self.case_id, self.status)

    def set_case_id(self, case_id):
        """记录已建病案。待看诊状态下自动推进到已初诊（本地乐观转换，refresh 时与后端对齐）。"""
        self.case_id = case_id
        if VisitStatus.parse(self.status) is VisitStatus.WAITING_FOR_CONSULTATION:
            self.update_status(VisitStatus.INITIAL_CONSULTATION_DONE)

    def update_status(self, new_status):
        """无条件覆盖。只在确认后端调用成功后使用，省一次回查。"""
        logger.info("[VisitContext] 状态 %s → %s", self.status, new_status)
        self.status = VisitStatus.parse(new_status)

    def refresh(self):
        if self.registration_id:
            self.init_context(self.registration_id)

    def clear(self):
        self._epoch += 1
        self.loading = False
        self.registration_id = None
        self.case_id = None
        self.status = None
        self.patient = PatientSummary()
