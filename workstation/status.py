"""
就诊状态规则：纯函数，只看 status / case_id，不碰任何 Store。

VisitContext 的派生属性全部委托到这里，方便对每个枚举值做穷举测试。
"""

from dataclasses import dataclass

from .enums import StatusBucket, VisitStatus

S = VisitStatus


@dataclass(frozen=True)
class StatusDisplay:
    bucket: StatusBucket
    label: str
    badge: str  # 徽标颜色类型（warning / primary / danger / success / info）


BUCKET_DISPLAY = {
    StatusBucket.PENDING:    StatusDisplay(StatusBucket.PENDING, '待接诊', 'warning'),
    StatusBucket.PROCESSING: StatusDisplay(StatusBucket.PROCESSING, '检查/治疗中', 'primary'),
    StatusBucket.REVISIT:    StatusDisplay(StatusBucket.REVISIT, '待复诊', 'danger'),
    StatusBucket.FINISHED:   StatusDisplay(StatusBucket.FINISHED, '诊疗结束', 'success'),
    StatusBucket.UNKNOWN:    StatusDisplay(StatusBucket.UNKNOWN, '未知状态', 'info'),
}

# 后端状态 → 徽标分类，必须覆盖 VisitStatus 的全部成员
STATUS_BUCKETS = {
    S.WAITING_FOR_CONSULTATION:         StatusBucket.PENDING,

    S.INITIAL_CONSULTATION_DONE:        StatusBucket.PROCESSING,
    S.WAITING_FOR_CHECKUP:              StatusBucket.PROCESSING,
    S.CHECKING:                         StatusBucket.PROCESSING,

    S.WAITING_FOR_PROJECT_PAYMENT:      StatusBucket.REVISIT,
    S.WAITING_FOR_REVISIT:              StatusBucket.REVISIT,
    S.REVISITED:                        StatusBucket.REVISIT,

    S.WAITING_FOR_PRESCRIPTION_PAYMENT: StatusBucket.FINISHED,
    S.WAITING_FOR_MEDICINE:             StatusBucket.FINISHED,
    S.MEDICINE_TAKEN:                   StatusBucket.FINISHED,
    S.MEDICINE_RETURNED:                StatusBucket.FINISHED,
    S.FINISHED:                         StatusBucket.FINISHED,
}

# 确诊（REVISITED）之前：可以开检查、可以改病历
PRE_DIAGNOSIS = frozenset({
    S.WAITING_FOR_CONSULTATION,
    S.INITIAL_CONSULTATION_DONE,
    S.WAITING_FOR_PROJECT_PAYMENT,
    S.WAITING_FOR_CHECKUP,
    S.CHECKING,
    S.WAITING_FOR_REVISIT,
})

# 处方菜单可见的阶段（已取药 / 已退药不再进入开药页面）
PRESCRIPTION_PHASE = frozenset({
    S.REVISITED,
    S.WAITING_FOR_PRESCRIPTION_PAYMENT,
    S.WAITING_FOR_MEDICINE,
    S.FINISHED,
})


def status_bucket(status):
    return STATUS_BUCKETS.get(VisitStatus.parse(status), StatusBucket.UNKNOWN)


def status_display(status):
    return BUCKET_DISPLAY[status_bucket(status)]


def can_order_tests(status):
    return VisitStatus.parse(status) in PRE_DIAGNOSIS


def is_chart_editable(status):
    # 病历封存和检查申请关闭是同一个转换点
    return can_order_tests(status)


def can_prescribe(status):
    return VisitStatus.parse(status) is S.REVISITED


def menu_gates(status, case_id):
    """
    工作站菜单访问控制。只影响导航，服务端仍需独立校验。

    Returns:
        dict: 页面名 → 是否可进入
    """
    has_case = bool(case_id)
    parsed = VisitStatus.parse(status)
    is_waiting = parsed is S.WAITING_FOR_CONSULTATION

    return {
        'case_home': True,
        'exam_request': has_case,
        'result_view': has_case and not is_waiting,
        'diagnosis': has_case,
        'prescription': has_case and parsed in PRESCRIPTION_PHASE,
        'fee_inquiry': has_case,
    }
