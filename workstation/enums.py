"""
后端状态枚举。

值与后端字符串完全一致，str 子类便于直接 JSON 序列化和比较。
VisitStatus 的声明顺序就是就诊流程的前进顺序，status.py 依赖这个顺序。
"""

from enum import Enum


class VisitStatus(str, Enum):
    WAITING_FOR_CONSULTATION = 'WAITING_FOR_CONSULTATION'                  # 待看诊
    INITIAL_CONSULTATION_DONE = 'INITIAL_CONSULTATION_DONE'                # 已初诊
    WAITING_FOR_PROJECT_PAYMENT = 'WAITING_FOR_PROJECT_PAYMENT'            # 待项目缴费
    WAITING_FOR_CHECKUP = 'WAITING_FOR_CHECKUP'                            # 待检查
    CHECKING = 'CHECKING'                                                  # 检查中
    WAITING_FOR_REVISIT = 'WAITING_FOR_REVISIT'                            # 待复诊
    REVISITED = 'REVISITED'                                                # 已复诊
    WAITING_FOR_PRESCRIPTION_PAYMENT = 'WAITING_FOR_PRESCRIPTION_PAYMENT'  # 待处方缴费
    WAITING_FOR_MEDICINE = 'WAITING_FOR_MEDICINE'                          # 待取药
    MEDICINE_TAKEN = 'MEDICINE_TAKEN'                                      # 已取药
    MEDICINE_RETURNED = 'MEDICINE_RETURNED'                                # 已退药
    FINISHED = 'FINISHED'                                                  # 诊疗结束

    @classmethod
    def parse(cls, value):
        """后端字符串 → VisitStatus；未知值原样返回（保留字符串），空值返回 None。"""
        if value is None or value == '':
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return value


class ApplyStatus(str, Enum):
    PENDING_PAYMENT = 'PENDING_PAYMENT'  # 待缴费
    UNFINISHED = 'UNFINISHED'            # 待完成/待发药
    FINISHED = 'FINISHED'                # 已完成/已发药
    RETURNED = 'RETURNED'                # 已退回
    CANCELLED = 'CANCELLED'              # 已退费/作废
    REVOKED = 'REVOKED'                  # 医生主动撤销，不涉及退费


class ApplyType(str, Enum):
    EXAM = 'EXAM'          # 检查
    LAB = 'LAB'            # 检验
    DISPOSAL = 'DISPOSAL'  # 处置


class StatusBucket(str, Enum):
    """医生视角的 5 类徽标状态。"""

    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    REVISIT = 'REVISIT'
    FINISHED = 'FINISHED'
    UNKNOWN = 'UNKNOWN'


class DraftKind(str, Enum):
    """草稿内容种类，决定 storage key 前缀。"""

    MEDICAL = 'medical'
    ORDER_CART = 'order_cart'
    PRESCRIPTION_CART = 'prescription_cart'
