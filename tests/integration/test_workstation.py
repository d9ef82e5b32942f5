"""
Integration tests: 一个完整的门诊流程跑在 Workstation 上。

FakeClinicApi 代替后端，MemoryDraftStore 代替标签页存储。
场景顺序：接诊 → 建病案 → 开检查 → 确诊 → 开处方 → 撤销 / 关闭 / 恢复。
"""
import pytest

from workstation.enums import StatusBucket, VisitStatus
from workstation.exceptions import ApiError
from workstation.workstation import Workstation
from tests.conftest import (
    DrugInfoFactory,
    ItemHistoryFactory,
    MedicalItemFactory,
    VisitSnapshotFactory,
    api_error,
)


@pytest.fixture
def ws(fake_api, draft_store, notifier):
    workstation = Workstation(api=fake_api, draft_store=draft_store, notifier=notifier, debounce=0.01)
    yield workstation
    workstation.close(keep_drafts=True)


class TestOutpatientFlow:

    def test_new_visit_has_no_case(self, ws):
        assert ws.open(1001) is True

        assert ws.context.status is VisitStatus.WAITING_FOR_CONSULTATION
        assert ws.context.case_id is None
        assert ws.context.menu_gates['exam_request'] is False
        assert ws.context.menu_gates['case_home'] is True
        assert ws.context.status_display.bucket is StatusBucket.PENDING

    def test_initial_case_creates_chart(self, ws, fake_api, draft_store):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='fever', present_history='3 days')
        ws.records.drafts.flush()
        assert draft_store.get('medical_draft_1001') is not None

        assert ws.records.submit_initial_case() is True

        assert ws.context.case_id == 55
        assert ws.context.status is VisitStatus.INITIAL_CONSULTATION_DONE
        assert draft_store.get('medical_draft_1001') is None
        assert ws.context.menu_gates['exam_request'] is True

    def test_incomplete_order_rejected_locally(self, ws, fake_api, notifier):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='fever', present_history='3 days')
        ws.records.submit_initial_case()
        ws.orders.add_to_cart(MedicalItemFactory(item_id=77, item_name='胸部CT'))
        fake_api.calls.clear()

        assert ws.orders.submit_order() is False

        assert fake_api.calls == []
        assert len(ws.orders.cart_list) == 1
        assert notifier.last.level == 'warning'
        assert '胸部CT' in notifier.last.message

    def test_diagnosis_opens_prescribing(self, ws, fake_api):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='fever', present_history='3 days')
        ws.records.submit_initial_case()
        ws.records.update_diagnosis(diagnosis='上呼吸道感染', treatment_plan='对症治疗')

        assert ws.records.submit_diagnosis() is True

        assert ws.context.status is VisitStatus.REVISITED
        assert ws.context.can_prescribe is True
        assert ws.context.can_order_tests is False
        assert ws.context.menu_gates['prescription'] is True

        ws.prescriptions.add_to_cart(DrugInfoFactory(drug_id=501))
        ws.prescriptions.update_line(0, dosage='0.5g tid', quantity=2)
        assert ws.prescriptions.submit_prescription() is True
        assert len(fake_api.called('create_prescriptions')) == 1

    def test_revoke_failure_leaves_history(self, ws, fake_api, notifier):
        fake_api.snapshot = VisitSnapshotFactory(case_id=55, status=VisitStatus.CHECKING)
        fake_api.item_history = [ItemHistoryFactory(apply_id=42)]
        fake_api.fail['get_case_detail'] = api_error()
        ws.open(1001)
        before = list(ws.orders.history_list)
        fake_api.fail['revoke_medical_item'] = api_error()
        fake_api.calls.clear()

        assert ws.orders.revoke_item(42) is False

        assert ws.orders.history_list == before
        assert notifier.last.level == 'error'
        assert fake_api.called('revoke_medical_item') == [(42,)]
        assert fake_api.called('get_case_items_history') == []


class TestOpenAndClose:

    def test_open_failure_raises(self, ws, fake_api):
        fake_api.fail['get_clinic_context'] = api_error(code='NETWORK_ERROR', http_status=None)
        with pytest.raises(ApiError):
            ws.open(1001)
        assert ws.visit_id is None

    def test_open_existing_case_loads_everything(self, ws, fake_api):
        fake_api.snapshot = VisitSnapshotFactory(case_id=55, status=VisitStatus.CHECKING)
        fake_api.create_case({
            'registrationId': 1001, 'patientNo': 'MN1', 'chiefComplaint': '咳嗽',
            'presentHistory': '一周', 'physicalExam': '', 'diagnosis': '', 'treatmentPlan': '',
        })
        fake_api.item_history = [ItemHistoryFactory()]

        ws.open(1001)

        assert ws.records.initial_form.chief_complaint == '咳嗽'
        assert len(ws.orders.history_list) == 1
        assert fake_api.called('get_case_prescriptions') == [(55,)]

    def test_results_gated_while_waiting(self, ws, fake_api):
        ws.open(1001)
        assert ws.load_results() is False
        assert fake_api.called('get_case_results') == []

    def test_results_and_fees_after_checkup(self, ws, fake_api):
        fake_api.snapshot = VisitSnapshotFactory(case_id=55, status=VisitStatus.CHECKING)
        fake_api.fail['get_case_detail'] = api_error()
        ws.open(1001)

        assert ws.load_results() is True
        assert ws.load_fees() is True

    def test_close_clears_drafts(self, ws, draft_store):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='发热')
        ws.orders.add_to_cart(MedicalItemFactory())
        ws.records.drafts.flush()
        ws.orders.drafts.flush()

        ws.close()

        assert draft_store.keys() == []
        assert ws.visit_id is None
        assert ws.orders.cart_list == []

    def test_close_keep_drafts_then_restore(self, ws, fake_api, draft_store, notifier):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='发热', present_history='2天')
        ws.orders.add_to_cart(MedicalItemFactory(item_id=77))
        ws.records.drafts.flush()
        ws.orders.drafts.flush()

        ws.close(keep_drafts=True)
        assert ws.records.initial_form.chief_complaint == ''

        reopened = Workstation(api=fake_api, draft_store=draft_store, notifier=notifier, debounce=0.01)
        reopened.open(1001)
        try:
            assert reopened.records.initial_form.chief_complaint == '发热'
            assert [line.ref_id for line in reopened.orders.cart_list] == [77]
        finally:
            reopened.close()

    def test_switching_visits_keeps_first_drafts(self, ws, fake_api, draft_store):
        ws.open(1001)
        ws.records.update_initial(chief_complaint='发热')
        ws.records.drafts.flush()

        fake_api.snapshot = VisitSnapshotFactory(registration_id=1002)
        ws.open(1002)

        assert ws.visit_id == 1002
        assert ws.records.initial_form.chief_complaint == ''
        assert draft_store.get('medical_draft_1001') is not None

    def test_late_context_response_dropped(self, ws, fake_api):
        original = fake_api.get_clinic_context

        def slow_context(registration_id):
            ws.context.clear()
            return original(registration_id)

        fake_api.get_clinic_context = slow_context
        ws.context.init_context(1001)

        assert ws.context.registration_id is None
