"""
工作站内部数据结构 — 各 Store 唯一认识的标准格式。

后端 JSON（camelCase）到这些 dataclass 的转换集中在 api/clinic.py，
Store 层永远不碰原始响应。
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import Any

from .enums import ApplyStatus, ApplyType, VisitStatus


def _known(cls, data):
    """只保留 dataclass 声明过的字段，草稿里多余的键直接丢弃。"""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in names}


def to_decimal(value):
    try:
        return Decimal(str(value or 0))
    except InvalidOperation:
        return Decimal('0')


# ── 就诊上下文 ─────────────────────────────────────────────────────────────

@dataclass
class PatientSummary:
    name: str = ''
    gender: str = ''
    age: str = ''
    medical_no: str = ''


@dataclass
class VisitSnapshot:
    """GET /cases/registrations/{id}/context 的解码结果。"""

    registration_id: int
    case_id: int | None
    status: VisitStatus | str | None
    patient: PatientSummary = field(default_factory=PatientSummary)


# ── 病历 ──────────────────────────────────────────────────────────────────

@dataclass
class InitialNote:
    chief_complaint: str = ''
    present_history: str = ''
    physical_exam: str = ''


@dataclass
class DiagnosisNote:
    diagnosis: str = ''
    treatment_plan: str = ''


@dataclass
class CaseDetail:
    registration_id: int
    patient_no: str
    initial: InitialNote
    diagnosis: DiagnosisNote
    create_time: str = ''


# ── 目录条目（加入购物车时的快照，只读） ────────────────────────────────────

@dataclass
class MedicalItem:
    item_id: int
    item_name: str
    item_type: ApplyType | str = ApplyType.EXAM
    item_code: str = ''
    price: str = '0.00'
    description: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(**_known(cls, data))


@dataclass
class DrugInfo:
    drug_id: int
    drug_name: str
    drug_code: str = ''
    specification: str = ''
    unit: str = ''
    retail_price: str = '0.00'
    stock_quantity: str = '0'
    category_name: str = ''
    description: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(**_known(cls, data))

    @property
    def stock(self):
        return to_decimal(self.stock_quantity)


@dataclass
class CatalogPage:
    """目录查询的一页结果。items 是 MedicalItem 或 DrugInfo。"""

    items: list = field(default_factory=list)
    page: int = 1
    size: int = 0
    total: int = 0
    total_pages: int = 0

    @property
    def has_next(self):
        return self.page < self.total_pages


# ── 购物车行 ──────────────────────────────────────────────────────────────

@dataclass
class ItemLine:
    """检查/检验/处置申请行。temp_id 只在前端使用，不提交给后端。"""

    temp_id: str
    ref_id: int
    apply_type: ApplyType | str
    source_info: MedicalItem
    apply_purpose: str = ''
    apply_site: str = ''
    unit: int = 1
    remark: str = ''

    @property
    def display_name(self):
        return self.source_info.item_name

    @classmethod
    def from_dict(cls, data):
        data = _known(cls, data)
        data['source_info'] = MedicalItem.from_dict(data.get('source_info'))
        return cls(**data)


@dataclass
class DrugLine:
    """处方行。quantity 默认 1，dosage 需医生填写。"""

    temp_id: str
    ref_id: int
    source_info: DrugInfo
    dosage: str = ''
    quantity: int = 1
    remark: str = ''

    @property
    def display_name(self):
        return self.source_info.drug_name

    @classmethod
    def from_dict(cls, data):
        data = _known(cls, data)
        data['source_info'] = DrugInfo.from_dict(data.get('source_info'))
        return cls(**data)


# ── 已提交记录（服务端确认，只读） ──────────────────────────────────────────

@dataclass
class ItemHistory:
    apply_id: int
    item_id: int
    item_name: str
    item_type: ApplyType | str
    status: ApplyStatus | str
    item_code: str = ''
    price: str = '0.00'
    unit: int = 1
    create_time: str = ''


@dataclass
class PrescriptionHistory:
    prescription_id: int
    drug_id: int
    drug_name: str
    status: ApplyStatus | str
    drug_code: str = ''
    specification: str = ''
    unit: str = ''
    price: str = '0.00'
    usage: str = ''
    quantity: int = 0
    create_time: str = ''


@dataclass
class ExaminationResult:
    apply_id: int
    item_id: int
    item_name: str
    apply_type: ApplyType | str
    status: ApplyStatus | str
    apply_purpose: str = ''
    apply_site: str = ''
    apply_time: str = ''
    performer_name: str = ''
    perform_time: str = ''
    result: str = ''
    unit: int = 1
    remark: str = ''


# ── 费用 ──────────────────────────────────────────────────────────────────

@dataclass
class ItemFee:
    item_id: int
    item_name: str
    price: str
    unit: int
    amount: str
    status: str  # UNPAID / PAID / REFUNDED / REVOKED
    create_time: str = ''


@dataclass
class DrugFee:
    drug_id: int
    drug_name: str
    specification: str
    price: str
    quantity: int
    amount: str
    status: str
    create_time: str = ''


@dataclass
class FeeSummary:
    registration_fee: str = '0.00'
    medical_item_fees: list[ItemFee] = field(default_factory=list)
    prescription_fees: list[DrugFee] = field(default_factory=list)
    total_amount: str = '0.00'
    unpaid_amount: str = '0.00'


# ── 草稿 ──────────────────────────────────────────────────────────────────

@dataclass
class DraftRecord:
    """
    一条草稿。

    key      由 visit_id + 内容种类确定，见 drafts/autosave.py
    payload  任意可 JSON 序列化的快照
    saved_at 毫秒时间戳，仅供参考
    """

    key: str
    payload: Any
    saved_at: int = 0
