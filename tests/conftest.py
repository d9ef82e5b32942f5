"""
Shared fixtures for all tests.

factory-boy factories 和 FakeClinicApi 放在这里，unit/ 和 integration/ 都能 import。
FakeClinicApi 记录每次调用，方便断言"没有发请求"。
"""
import pytest

import factory
from workstation.drafts.stores import MemoryDraftStore
from workstation.enums import ApplyStatus, ApplyType, VisitStatus
from workstation.exceptions import ApiError
from workstation.notify import Notifier
from workstation.types import (
    CaseDetail,
    DiagnosisNote,
    DrugInfo,
    InitialNote,
    ItemHistory,
    MedicalItem,
    PatientSummary,
    PrescriptionHistory,
    VisitSnapshot,
)
from workstation.context import VisitContext
from workstation.records import RecordEditor
from workstation.carts import OrderCart, PrescriptionCart


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PatientSummaryFactory(factory.Factory):
    class Meta:
        model = PatientSummary

    name = '张三'
    gender = '男'
    age = '42'
    medical_no = factory.Sequence(lambda n: f'MN{100000 + n}')


class VisitSnapshotFactory(factory.Factory):
    class Meta:
        model = VisitSnapshot

    registration_id = 1001
    case_id = None
    status = VisitStatus.WAITING_FOR_CONSULTATION
    patient = factory.SubFactory(PatientSummaryFactory)


class MedicalItemFactory(factory.Factory):
    class Meta:
        model = MedicalItem

    item_id = factory.Sequence(lambda n: 70 + n)
    item_name = factory.Sequence(lambda n: f'血常规{n}')
    item_type = ApplyType.LAB
    item_code = factory.Sequence(lambda n: f'LAB{n:03d}')
    price = '25.00'


class DrugInfoFactory(factory.Factory):
    class Meta:
        model = DrugInfo

    drug_id = factory.Sequence(lambda n: 500 + n)
    drug_name = factory.Sequence(lambda n: f'阿莫西林{n}')
    specification = '0.25g*24'
    unit = 'BOX'
    retail_price = '18.50'
    stock_quantity = '100'


class ItemHistoryFactory(factory.Factory):
    class Meta:
        model = ItemHistory

    apply_id = factory.Sequence(lambda n: 40 + n)
    item_id = 77
    item_name = '胸部CT'
    item_type = ApplyType.EXAM
    status = ApplyStatus.PENDING_PAYMENT


class PrescriptionHistoryFactory(factory.Factory):
    class Meta:
        model = PrescriptionHistory

    prescription_id = factory.Sequence(lambda n: 900 + n)
    drug_id = 501
    drug_name = '阿莫西林'
    status = ApplyStatus.PENDING_PAYMENT


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------

class FakeClinicApi:
    """
    ClinicApi 的内存替身。

    fail['method_name'] = ApiError(...) 让对应调用抛错；
    calls 按顺序记录 (method_name, args)。
    """

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.snapshot = VisitSnapshotFactory()
        self.next_case_id = 55
        self.case_details = {}
        self.item_history = []
        self.prescription_history = []
        self.results = []
        self.fees = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name):
        return [args for method, args in self.calls if method == name]

    def get_clinic_context(self, registration_id):
        self._record('get_clinic_context', registration_id)
        return self.snapshot

    def create_case(self, payload):
        self._record('create_case', payload)
        case_id = self.next_case_id
        self.case_details[case_id] = CaseDetail(
            registration_id=payload['registrationId'],
            patient_no=payload['patientNo'],
            initial=InitialNote(
                chief_complaint=payload['chiefComplaint'],
                present_history=payload['presentHistory'],
                physical_exam=payload['physicalExam'],
            ),
            diagnosis=DiagnosisNote(
                diagnosis=payload['diagnosis'],
                treatment_plan=payload['treatmentPlan'],
            ),
        )
        return case_id

    def get_case_detail(self, case_id):
        self._record('get_case_detail', case_id)
        return self.case_details[case_id]

    def update_case(self, case_id, payload):
        self._record('update_case', case_id, payload)

    def confirm_case(self, case_id, payload):
        self._record('confirm_case', case_id, payload)

    def apply_medical_items(self, case_id, registration_id, lines):
        self._record('apply_medical_items', case_id, registration_id, lines)

    def get_case_items_history(self, case_id):
        self._record('get_case_items_history', case_id)
        return list(self.item_history)

    def revoke_medical_item(self, apply_id):
        self._record('revoke_medical_item', apply_id)

    def create_prescriptions(self, case_id, registration_id, lines):
        self._record('create_prescriptions', case_id, registration_id, lines)

    def get_case_prescriptions(self, case_id):
        self._record('get_case_prescriptions', case_id)
        return list(self.prescription_history)

    def revoke_prescription(self, prescription_id):
        self._record('revoke_prescription', prescription_id)

    def get_case_results(self, case_id):
        self._record('get_case_results', case_id)
        return list(self.results)

    def get_case_fees(self, case_id):
        self._record('get_case_fees', case_id)
        return self.fees


def api_error(message='服务器内部错误', code='HTTP_ERROR', http_status=500):
    return ApiError(message, code=code, http_status=http_status)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_api():
    return FakeClinicApi()


@pytest.fixture
def draft_store():
    return MemoryDraftStore()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def context(fake_api):
    return VisitContext(fake_api)


@pytest.fixture
def charted_context(context, fake_api):
    """已建档、检查阶段的上下文（case_id=55）。"""
    fake_api.snapshot = VisitSnapshotFactory(case_id=55, status=VisitStatus.CHECKING)
    context.init_context(1001)
    fake_api.calls.clear()
    return context


@pytest.fixture
def editor(context, fake_api, draft_store, notifier):
    editor = RecordEditor(context, fake_api, draft_store, notifier, delay=0.01)
    yield editor
    editor.reset_forms()


@pytest.fixture
def order_cart(charted_context, fake_api, draft_store, notifier):
    cart = OrderCart(charted_context, fake_api, draft_store, notifier, delay=0.01)
    yield cart
    cart.reset_state()


@pytest.fixture
def prescription_cart(charted_context, fake_api, draft_store, notifier):
    charted_context.update_status(VisitStatus.REVISITED)
    cart = PrescriptionCart(charted_context, fake_api, draft_store, notifier, delay=0.01)
    yield cart
    cart.reset_state()
