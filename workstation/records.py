"""
RecordEditor — 两阶段门诊病历（初诊首页 + 确诊）及其提交流程。

表单修改统一走 update_initial() / update_diagnosis()，它们会通知草稿自动保存。
前置条件不满足（必填为空、缺挂号/病案 ID）只提示用户并返回 False，不发请求。
"""

import logging
from dataclasses import asdict, fields, replace

from .api import note_payload
from .drafts import DraftAutoSave
from .enums import DraftKind, VisitStatus
from .exceptions import ApiError
from .types import DiagnosisNote, InitialNote

logger = logging.getLogger(__name__)


def _is_blank(note):
    return not any(getattr(note, f.name) for f in fields(note))


class RecordEditor:

    def __init__(self, context, api, draft_store, notifier, delay=None):
        self.context = context
        self.api = api
        self.notifier = notifier

        self.is_loading = False
        self.is_submitting = False
        self.case_detail = None
        self.initial_form = InitialNote()
        self.diagnosis_form = DiagnosisNote()
        self._epoch = 0

        self.drafts = DraftAutoSave(
            draft_store,
            DraftKind.MEDICAL,
            snapshot=self._snapshot,
            restore=self._restore,
            delay=delay,
        )

    # ── 表单修改 ───────────────────────────────────────────────────────────

    def update_initial(self, **changes):
        self.initial_form = replace(self.initial_form, **changes)
        self.drafts.notify_changed()

    def update_diagnosis(self, **changes):
        self.diagnosis_form = replace(self.diagnosis_form, **changes)
        self.drafts.notify_changed()

    # ── 草稿 ──────────────────────────────────────────────────────────────

    def _snapshot(self):
        if _is_blank(self.initial_form) and _is_blank(self.diagnosis_form):
            return None
        return {
            'initial_form': asdict(self.initial_form),
            'diagnosis_form': asdict(self.diagnosis_form),
        }

    def _restore(self, payload):
        # 仅当本地表单为空时才恢复，避免覆盖后端加载的数据
        if not isinstance(payload, dict):
            raise TypeError(f'病历草稿应为 dict，实际为 {type(payload).__name__}')

        initial, diagnosis = self.initial_form, self.diagnosis_form
        if not initial.chief_complaint and payload.get('initial_form'):
            initial = InitialNote(**payload['initial_form'])
        if not diagnosis.diagnosis and payload.get('diagnosis_form'):
            diagnosis = DiagnosisNote(**payload['diagnosis_form'])
        # 两段都解析成功才落表单
        self.initial_form, self.diagnosis_form = initial, diagnosis

    def init_auto_save(self, visit_id):
        return self.drafts.init_auto_save(visit_id)

    def clear_draft(self):
        self.drafts.clear_draft()

    # ── 操作 ──────────────────────────────────────────────────────────────

    def load_case_data(self, case_id):
        """拉取病案详情并覆盖两个表单（后端数据优先于草稿）。"""
        if not case_id:
            return False

        epoch = self._epoch
        self.is_loading = True
        try:
            detail = self.api.get_case_detail(case_id)
        except ApiError as exc:
            logger.error("[RecordEditor] 获取病案详情失败 case_id=%s: %s", case_id, exc.message)
            self.notifier.error('获取病案详情失败', code=exc.code)
            return False
        finally:
            if epoch == self._epoch:
                self.is_loading = False

        if epoch != self._epoch:
            return False

        self.case_detail = detail
        self.initial_form = replace(detail.initial)
        self.diagnosis_form = replace(detail.diagnosis)
        return True

    def submit_initial_case(self):
        """提交初诊（创建病案）。成功后推进上下文状态、清草稿、重新加载病案。"""
        if not self.initial_form.chief_complaint or not self.initial_form.present_history:
            self.notifier.warning('请完善主诉和现病史', code='INITIAL_NOTE_INCOMPLETE')
            return False

        registration_id = self.context.registration_id
        if not registration_id:
            self.notifier.error('挂号信息丢失，请刷新页面', code='REGISTRATION_MISSING')
            return False

        epoch = self._epoch
        self.is_submitting = True
        try:
            case_id = self.api.create_case(note_payload(
                registration_id,
                self.context.patient.medical_no,
                self.initial_form,
                self.diagnosis_form,
            ))
        except ApiError as exc:
            logger.error("[RecordEditor] 创建病案失败 registration_id=%s: %s",
                         registration_id, exc.message)
            self.notifier.error('创建病案失败，请重试', code=exc.code)
            return False
        finally:
            self.is_submitting = False

        if epoch != self._epoch:
            logger.info("[RecordEditor] 病案 %s 创建成功，但编辑器已重置，忽略后续同步", case_id)
            return False

        self.notifier.success('病案创建成功，已解锁检查申请')
        self.context.set_case_id(case_id)
        self.clear_draft()
        self.load_case_data(case_id)
        return True

    def submit_diagnosis(self):
        """提交确诊。全量回传病历字段，成功后状态推进到 REVISITED。"""
        if not self.diagnosis_form.diagnosis or not self.diagnosis_form.treatment_plan:
            self.notifier.warning('请填写诊断结果和治疗方案', code='DIAGNOSIS_INCOMPLETE')
            return False

        case_id = self.context.case_id
        registration_id = self.context.registration_id
        if not case_id or not registration_id:
            self.notifier.error('关键信息丢失', code='CASE_CONTEXT_MISSING')
            return False

        epoch = self._epoch
        self.is_submitting = True
        try:
            self.api.confirm_case(case_id, note_payload(
                registration_id,
                self.context.patient.medical_no,
                self.initial_form,
                self.diagnosis_form,
            ))
        except ApiError as exc:
            logger.error("[RecordEditor] 确诊提交失败 case_id=%s: %s", case_id, exc.message)
            self.notifier.error('提交失败，请重试', code=exc.code)
            return False
        finally:
            self.is_submitting = False

        if epoch != self._epoch:
            return False

        self.notifier.success('确诊成功，已解锁处方开立')
        self.context.update_status(VisitStatus.REVISITED)
        self.clear_draft()
        return True

    def save_case(self):
        """确诊前保存病历修改（PUT /cases/{id}），不推进状态。"""
        case_id = self.context.case_id
        registration_id = self.context.registration_id
        if not case_id or not registration_id:
            self.notifier.error('关键信息丢失', code='CASE_CONTEXT_MISSING')
            return False
        if not self.context.is_chart_editable:
            self.notifier.warning('病历已封存，不能再修改', code='CHART_LOCKED')
            return False

        self.is_submitting = True
        try:
            self.api.update_case(case_id, note_payload(
                registration_id,
                self.context.patient.medical_no,
                self.initial_form,
                self.diagnosis_form,
            ))
        except ApiError as exc:
            logger.error("[RecordEditor] 保存病历失败 case_id=%s: %s", case_id, exc.message)
            self.notifier.error('保存失败，请重试', code=exc.code)
            return False
        finally:
            self.is_submitting = False

        self.notifier.success('病历已保存')
        self.clear_draft()
        return True

    def reset_forms(self):
        """离开页面时调用：清空表单并停止草稿监听，防止污染下一个患者。"""
        # 必须先停监听再清空表单
        self.drafts.deactivate()
        self._epoch += 1
        self.case_detail = None
        self.initial_form = InitialNote()
        self.diagnosis_form = DiagnosisNote()
        self.is_loading = False
