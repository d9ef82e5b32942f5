"""
Workstation — 一个医生工作站标签页的顶层控制器。

所有 Store 在这里显式创建、共享同一个 VisitContext / ClinicApi / 草稿存储 / Notifier，
没有全局单例。进入就诊调用 open()，离开调用 close()。
"""

import logging

from .api import ClinicApi
from .carts import OrderCart, PrescriptionCart
from .context import VisitContext
from .drafts import get_draft_store
from .fees import FeeLedger
from .notify import Notifier
from .records import RecordEditor
from .results import ResultBoard

logger = logging.getLogger(__name__)


class Workstation:

    def __init__(self, api=None, draft_store=None, notifier=None, debounce=None):
        self.api = api or ClinicApi()
        self.draft_store = draft_store or get_draft_store()
        self.notifier = notifier or Notifier()

        self.context = VisitContext(self.api)
        self.records = RecordEditor(self.context, self.api, self.draft_store, self.notifier, delay=debounce)
        self.orders = OrderCart(self.context, self.api, self.draft_store, self.notifier, delay=debounce)
        self.prescriptions = PrescriptionCart(self.context, self.api, self.draft_store, self.notifier, delay=debounce)
        self.results = ResultBoard(self.api, self.notifier)
        self.fees = FeeLedger(self.api)

    @property
    def visit_id(self):
        return self.context.registration_id

    def open(self, visit_id):
        """
        加载一个就诊。

        顺序：上下文 → 病案（后端数据先落表单）→ 激活草稿（只填空字段）→ 历史列表。

        Raises:
            ApiError: 上下文获取失败，调用方应提示并阻止进入工作站
        """
        if self.visit_id and self.visit_id != visit_id:
            self.close(keep_drafts=True)

        self.context.init_context(visit_id)
        if not self.context.registration_id:
            return False

        case_id = self.context.case_id
        if case_id:
            self.records.load_case_data(case_id)

        self.records.init_auto_save(visit_id)
        self.orders.init_auto_save(visit_id)
        self.prescriptions.init_auto_save(visit_id)

        if case_id:
            self.orders.fetch_history()
            self.prescriptions.fetch_history()

        logger.info("[Workstation] 已打开就诊 visit_id=%s case_id=%s", visit_id, case_id)
        return True

    def load_results(self):
        if not self.context.menu_gates['result_view']:
            return False
        return self.results.fetch_results(self.context.case_id)

    def load_fees(self):
        if not self.context.menu_gates['fee_inquiry']:
            return False
        return self.fees.fetch_fees(self.context.case_id)

    def close(self, keep_drafts=False):
        """
        离开工作站：删除本次就诊的草稿、停止草稿监听、清空内存。

        keep_drafts=True 用于意外跳转（如宿主页面被替换）：已写入的草稿保留，供回来时恢复。
        """
        logger.info("[Workstation] 关闭就诊 visit_id=%s keep_drafts=%s", self.visit_id, keep_drafts)
        if not keep_drafts:
            self.records.clear_draft()
            self.orders.clear_draft()
            self.prescriptions.clear_draft()
        self.records.reset_forms()
        self.orders.reset_state()
        self.prescriptions.reset_state()
        self.results.reset()
        self.fees.reset()
        self.context.clear()
