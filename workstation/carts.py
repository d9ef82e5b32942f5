"""
购物车：在本地攒一批待提交的行，校验后一次性提交，再刷新服务端历史。

BaseCart 提供通用流水线：add → (edit) → validate → submit → fetch_history，
子类只需声明：
  - kind / line_cls / 提示文案
  - _new_line()       目录条目 → 购物车行
  - _validate_line()  单行完整性检查，不通过时 raise PreconditionError
  - _may_submit()     当前就诊阶段是否允许提交
  - _submit_lines() / _fetch_history() / _revoke()  对应的 ClinicApi 调用

已实现：
  OrderCart         检查/检验/处置申请（目的 + 部位必填）
  PrescriptionCart  处方（用法用量必填、数量 > 0、本地库存防呆）
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import asdict, replace

from .drafts import DraftAutoSave
from .enums import DraftKind
from .exceptions import ApiError, PreconditionError
from .types import DrugInfo, DrugLine, ItemLine, MedicalItem

logger = logging.getLogger(__name__)


def make_temp_id(prefix):
    return f'{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}'


class BaseCart(ABC):

    kind: DraftKind
    line_cls: type
    catalog_cls: type
    temp_prefix = 'temp'
    noun = '项目'
    list_label = '申请列表'
    submit_success = '提交成功'
    submit_failure = '提交失败'
    revoke_success = '已撤销'
    gate_message = '当前就诊阶段不允许提交'

    def __init__(self, context, api, draft_store, notifier, delay=None):
        self.context = context
        self.api = api
        self.notifier = notifier

        self.loading = False
        self.submitting = False
        self.cart_list = []
        self.history_list = []
        self._epoch = 0

        self.drafts = DraftAutoSave(
            draft_store,
            self.kind,
            snapshot=self._snapshot,
            restore=self._restore,
            delay=delay,
        )

    # ── 子类实现 ───────────────────────────────────────────────────────────

    @abstractmethod
    def _new_line(self, entry):
        """目录条目 → 新的购物车行（用户填写字段留空）。"""

    @abstractmethod
    def _validate_line(self, line):
        """单行完整性检查。不通过时 raise PreconditionError。"""

    @abstractmethod
    def _may_submit(self):
        """当前就诊阶段是否允许提交这类购物车。"""

    @abstractmethod
    def _submit_lines(self, case_id, registration_id, lines):
        """一次性提交整批行。"""

    @abstractmethod
    def _fetch_history(self, case_id):
        """拉取服务端历史列表。"""

    @abstractmethod
    def _revoke(self, entry_id):
        """撤销一条历史记录。"""

    @staticmethod
    @abstractmethod
    def _entry_id(entry):
        """目录条目的实体 ID（即购物车行的 ref_id）。"""

    @staticmethod
    @abstractmethod
    def _entry_name(entry):
        """目录条目的显示名。"""

    # ── 草稿 ──────────────────────────────────────────────────────────────

    def _snapshot(self):
        return [asdict(line) for line in self.cart_list]

    def _restore(self, payload):
        if self.cart_list:
            return
        if not isinstance(payload, list) or not all(isinstance(row, Mapping) for row in payload):
            raise TypeError(f'{self.kind.value} 草稿应为行 dict 的列表')
        self.cart_list = [self.line_cls.from_dict(row) for row in payload]

    def init_auto_save(self, visit_id):
        return self.drafts.init_auto_save(visit_id)

    def clear_draft(self):
        self.drafts.clear_draft()

    # ── 购物车操作 ─────────────────────────────────────────────────────────

    def add_to_cart(self, entry, silent=False):
        """
        添加一个目录条目。同一实体已在列表中时拒绝（不合并数量）。

        Returns:
            bool: 是否真的加进去了
        """
        if isinstance(entry, Mapping):
            entry = self.catalog_cls.from_dict(entry)

        ref_id = self._entry_id(entry)
        name = self._entry_name(entry)
        if any(line.ref_id == ref_id for line in self.cart_list):
            if not silent:
                self.notifier.warning(f'{name} 已在{self.list_label}中', code='DUPLICATE_LINE')
            return False

        self.cart_list.append(self._new_line(entry))
        self.drafts.notify_changed()
        if not silent:
            self.notifier.success(f'已添加: {name}')
        return True

    def batch_add_to_cart(self, entries):
        """批量添加（弹窗多选）。重复的跳过，只汇报一次实际添加数。"""
        count = sum(1 for entry in entries if self.add_to_cart(entry, silent=True))
        if count > 0:
            self.notifier.success(f'成功添加 {count} 个{self.noun}')
        else:
            self.notifier.info(f'所选{self.noun}已全部在列表中')
        return count

    def remove_from_cart(self, index):
        if not 0 <= index < len(self.cart_list):
            logger.warning("[%s] remove_from_cart 越界 index=%s len=%d",
                           type(self).__name__, index, len(self.cart_list))
            return False
        del self.cart_list[index]
        self.drafts.notify_changed()
        return True

    def update_line(self, index, **changes):
        """修改某一行的用户填写字段（目的/部位/用法/数量/备注）。"""
        self.cart_list[index] = replace(self.cart_list[index], **changes)
        self.drafts.notify_changed()

    # ── 提交 ──────────────────────────────────────────────────────────────

    def validate(self):
        """整车校验，不通过时 raise PreconditionError。"""
        if not self.cart_list:
            raise PreconditionError(f'{self.list_label}为空', code='EMPTY_CART')
        for line in self.cart_list:
            self._validate_line(line)

    def submit(self):
        try:
            self.validate()
        except PreconditionError as exc:
            self.notifier.warning(exc.message, code=exc.code)
            return False

        case_id = self.context.case_id
        registration_id = self.context.registration_id
        if not case_id or not registration_id:
            self.notifier.error('病案或挂号信息丢失，请刷新页面', code='SUBMIT_CONTEXT_MISSING')
            return False

        if not self._may_submit():
            self.notifier.warning(self.gate_message, code='STAGE_CLOSED')
            return False

        epoch = self._epoch
        self.submitting = True
        try:
            self._submit_lines(case_id, registration_id, list(self.cart_list))
        except ApiError as exc:
            logger.error("[%s] 提交失败 case_id=%s: %s", type(self).__name__, case_id, exc.message)
            self.notifier.error(self.submit_failure, code=exc.code)
            return False
        finally:
            self.submitting = False

        if epoch != self._epoch:
            return False

        self.notifier.success(self.submit_success)
        self.cart_list = []
        self.clear_draft()
        self.fetch_history()
        return True

    # ── 历史 ──────────────────────────────────────────────────────────────

    def fetch_history(self):
        case_id = self.context.case_id
        if not case_id:
            return False

        epoch = self._epoch
        self.loading = True
        try:
            rows = self._fetch_history(case_id)
        except ApiError as exc:
            logger.error("[%s] 获取历史失败 case_id=%s: %s", type(self).__name__, case_id, exc.message)
            self.notifier.error('获取历史记录失败', code=exc.code)
            return False
        finally:
            if epoch == self._epoch:
                self.loading = False

        if epoch != self._epoch:
            return False

        self.history_list = rows or []
        return True

    def revoke_item(self, entry_id):
        """撤销一条历史记录，然后整表刷新（不做本地补丁）。"""
        try:
            self._revoke(entry_id)
        except ApiError as exc:
            logger.error("[%s] 撤销失败 id=%s: %s", type(self).__name__, entry_id, exc.message)
            self.notifier.error('操作失败', code=exc.code)
            return False

        self.notifier.success(self.revoke_success)
        self.fetch_history()
        return True

    def reset_state(self):
        self.drafts.deactivate()
        self._epoch += 1
        self.cart_list = []
        self.history_list = []
        self.loading = False
        self.submitting = False


# ── OrderCart ──────────────────────────────────────────────────────────────

class OrderCart(BaseCart):

    kind = DraftKind.ORDER_CART
    line_cls = ItemLine
    catalog_cls = MedicalItem
    temp_prefix = 'temp'
    noun = '项目'
    list_label = '申请列表'
    submit_success = '申请提交成功'
    submit_failure = '提交失败'
    revoke_success = '项目已作废'
    gate_message = '已确诊，不能再开检查项目'

    @staticmethod
    def _entry_id(entry):
        return entry.item_id

    @staticmethod
    def _entry_name(entry):
        return entry.item_name

    def _new_line(self, entry):
        return ItemLine(
            temp_id=make_temp_id(self.temp_prefix),
            ref_id=entry.item_id,
            apply_type=entry.item_type,
            source_info=entry,
        )

    def _validate_line(self, line):
        if not line.apply_purpose or not line.apply_site:
            raise PreconditionError(
                f'【{line.display_name}】的检查部位和目的不能为空',
                code='LINE_INCOMPLETE',
                detail={'ref_id': line.ref_id},
            )

    def _may_submit(self):
        return self.context.can_order_tests

    def _submit_lines(self, case_id, registration_id, lines):
        self.api.apply_medical_items(case_id, registration_id, lines)

    def _fetch_history(self, case_id):
        return self.api.get_case_items_history(case_id)

    def _revoke(self, entry_id):
        self.api.revoke_medical_item(entry_id)

    def submit_order(self):
        return self.submit()


# ── PrescriptionCart ───────────────────────────────────────────────────────

class PrescriptionCart(BaseCart):

    kind = DraftKind.PRESCRIPTION_CART
    line_cls = DrugLine
    catalog_cls = DrugInfo
    temp_prefix = 'drug'
    noun = '药品'
    list_label = '处方列表'
    submit_success = '处方开立成功'
    submit_failure = '提交失败，请检查库存'
    revoke_success = '处方已撤销，库存已释放'
    gate_message = '当前就诊阶段不能开立处方'

    @staticmethod
    def _entry_id(entry):
        return entry.drug_id

    @staticmethod
    def _entry_name(entry):
        return entry.drug_name

    def _new_line(self, entry):
        return DrugLine(
            temp_id=make_temp_id(self.temp_prefix),
            ref_id=entry.drug_id,
            source_info=entry,
        )

    def _validate_line(self, line):
        if not line.dosage:
            raise PreconditionError(
                f'请填写【{line.display_name}】的用法用量',
                code='LINE_INCOMPLETE',
                detail={'ref_id': line.ref_id},
            )
        if not line.quantity or line.quantity <= 0:
            raise PreconditionError(
                f'【{line.display_name}】的数量必须大于0',
                code='INVALID_QUANTITY',
                detail={'ref_id': line.ref_id},
            )
        # 前端防呆，后端才是最后防线
        stock = line.source_info.stock
        if line.quantity > stock:
            raise PreconditionError(
                f'【{line.display_name}】库存不足 (剩余: {stock})',
                code='INSUFFICIENT_STOCK',
                detail={'ref_id': line.ref_id, 'stock': str(stock), 'quantity': line.quantity},
            )

    def _may_submit(self):
        return self.context.can_prescribe

    def _submit_lines(self, case_id, registration_id, lines):
        self.api.create_prescriptions(case_id, registration_id, lines)

    def _fetch_history(self, case_id):
        return self.api.get_case_prescriptions(case_id)

    def _revoke(self, entry_id):
        self.api.revoke_prescription(entry_id)

    def submit_prescription(self):
        return self.submit()
