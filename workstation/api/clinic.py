"""
门诊诊疗接口。

每个方法：拼请求体（snake_case → 后端 camelCase）→ RestClient → 把响应解码成 types.py 的 dataclass。
Store 层只和 ClinicApi 打交道，测试时可整体替换。
"""

import logging

from ..enums import ApplyStatus, ApplyType, VisitStatus
from ..exceptions import ApiError
from ..types import (
    CaseDetail,
    CatalogPage,
    DiagnosisNote,
    DrugFee,
    DrugInfo,
    ExaminationResult,
    FeeSummary,
    InitialNote,
    ItemFee,
    ItemHistory,
    MedicalItem,
    PatientSummary,
    PrescriptionHistory,
    VisitSnapshot,
)
from .client import RestClient

logger = logging.getLogger(__name__)

CATALOG_PATHS = {
    ApplyType.EXAM: '/catalog/exam-items',
    ApplyType.LAB: '/catalog/lab-items',
    ApplyType.DISPOSAL: '/catalog/disposal-items',
}


def _enum_or_raw(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _rows_with_id(rows, id_key, path):
    """丢掉缺少主键的行（无法撤销也无法定位），每丢一行记一条 warning。"""
    kept = []
    for row in rows:
        if not isinstance(row, dict) or row.get(id_key) is None:
            logger.warning("[ClinicApi] 跳过缺少 %s 的记录 path=%s row=%r", id_key, path, row)
            continue
        kept.append(row)
    return kept


def _page_of(data, path, id_key, decode, page, size):
    """分页响应 {data, meta} 或裸列表 → CatalogPage。"""
    if isinstance(data, dict):
        rows, meta = data.get('data') or [], data.get('meta') or {}
    else:
        rows, meta = data or [], {}
    items = [decode(row) for row in _rows_with_id(rows, id_key, path)]
    return CatalogPage(
        items=items,
        page=meta.get('page') or page,
        size=meta.get('size') or size,
        total=meta.get('total', len(items)),
        total_pages=meta.get('totalPages', 1 if items else 0),
    )


def note_payload(registration_id, patient_no, initial, diagnosis):
    """病历全量请求体。确诊时也必须带上首页字段，避免后端用空值覆盖。"""
    return {
        'registrationId': registration_id,
        'patientNo': patient_no,
        'chiefComplaint': initial.chief_complaint,
        'presentHistory': initial.present_history,
        'physicalExam': initial.physical_exam,
        'diagnosis': diagnosis.diagnosis,
        'treatmentPlan': diagnosis.treatment_plan,
    }


class ClinicApi:

    def __init__(self, client=None):
        self.client = client or RestClient()

    # ── 工作台上下文 ───────────────────────────────────────────────────────

    def get_clinic_context(self, registration_id):
        data = self.client.get(f'/cases/registrations/{registration_id}/context') or {}
        return VisitSnapshot(
            registration_id=data.get('registrationId'),
            case_id=data.get('caseId') or None,
            status=VisitStatus.parse(data.get('visitStatus')),
            patient=PatientSummary(
                name=data.get('patientName') or '',
                gender=data.get('patientGender') or '',
                age=str(data.get('patientAge') or ''),
                medical_no=data.get('medicalNo') or '',
            ),
        )

    # ── 病案 ──────────────────────────────────────────────────────────────

    def create_case(self, payload):
        """POST /cases，返回新病案 ID（recordId）。"""
        data = self.client.post('/cases', json=payload) or {}
        record_id = data.get('recordId')
        if not record_id:
            raise ApiError('创建病案未返回病案ID', code='BAD_RESPONSE', detail={'response': data})
        return record_id

    def get_case_detail(self, case_id):
        data = self.client.get(f'/cases/{case_id}') or {}
        return CaseDetail(
            registration_id=data.get('registrationId'),
            patient_no=data.get('patientNo') or '',
            initial=InitialNote(
                chief_complaint=data.get('chiefComplaint') or '',
                present_history=data.get('presentHistory') or '',
                physical_exam=data.get('physicalExam') or '',
            ),
            diagnosis=DiagnosisNote(
                diagnosis=data.get('diagnosis') or '',
                treatment_plan=data.get('treatmentPlan') or '',
            ),
            create_time=data.get('createTime') or '',
        )

    def case_exists(self, case_id):
        try:
            self.get_case_detail(case_id)
            return True
        except ApiError:
            logger.warning("[ClinicApi] 病案 %s 不存在或无法访问", case_id)
            return False

    def update_case(self, case_id, payload):
        self.client.put(f'/cases/{case_id}', json=payload)

    def confirm_case(self, case_id, payload):
        self.client.put(f'/cases/{case_id}/diagnosis', json=payload)

    # ── 目录检索 ──────────────────────────────────────────────────────────

    def search_medical_items(self, item_type, keyword=None, page=1, size=10):
        """
        按类型分页检索检查/检验/处置目录。

        Args:
            item_type: ApplyType 或其字符串值
            keyword:   项目名称/编码关键字，空值时不带该参数

        Returns:
            CatalogPage[MedicalItem]
        """
        try:
            path = CATALOG_PATHS[ApplyType(item_type)]
        except ValueError:
            raise ValueError(f'未知的项目类型: {item_type!r}') from None

        params = {'page': page, 'pageSize': size}
        if keyword:
            params['keyword'] = keyword
        data = self.client.get(path, params=params)
        return _page_of(data, path, 'itemId', lambda row: MedicalItem(
            item_id=row['itemId'],
            item_name=row.get('itemName') or '',
            item_type=_enum_or_raw(ApplyType, row.get('itemType') or item_type),
            item_code=row.get('itemCode') or '',
            price=row.get('price') or '0.00',
            description=row.get('description') or '',
        ), page, size)

    def get_all_medical_items(self, keyword=None, page=1, size=10):
        """三类目录各查一页：{ApplyType: CatalogPage}。某一类失败时该类为空页。"""
        pages = {}
        for item_type in CATALOG_PATHS:
            try:
                pages[item_type] = self.search_medical_items(item_type, keyword, page, size)
            except ApiError as exc:
                logger.warning("[ClinicApi] 获取%s目录失败: %s", item_type.value, exc.message)
                pages[item_type] = CatalogPage(page=page, size=size)
        return pages

    def search_drugs(self, keyword=None, category_id=None, page=1, size=10):
        """分页检索药品目录，返回 CatalogPage[DrugInfo]。"""
        path = '/catalog/drugs'
        params = {'page': page, 'pageSize': size}
        if keyword:
            params['keyword'] = keyword
        if category_id:
            params['categoryId'] = category_id
        data = self.client.get(path, params=params)
        return _page_of(data, path, 'drugId', lambda row: DrugInfo(
            drug_id=row['drugId'],
            drug_name=row.get('drugName') or '',
            drug_code=row.get('drugCode') or '',
            specification=row.get('specification') or '',
            unit=row.get('unit') or '',
            retail_price=str(row.get('retailPrice') or '0.00'),
            stock_quantity=str(row.get('stockQuantity') or '0'),
            category_name=row.get('categoryName') or '',
            description=row.get('description') or '',
        ), page, size)

    # ── 检查/检验/处置申请 ─────────────────────────────────────────────────

    def apply_medical_items(self, case_id, registration_id, lines):
        self.client.post(f'/cases/{case_id}/applies', json={
            'registrationId': registration_id,
            'items': [
                {
                    'itemId': line.ref_id,
                    'applyType': line.apply_type,
                    'applyPurpose': line.apply_purpose,
                    'applySite': line.apply_site,
                    'unit': line.unit,
                    'remark': line.remark,
                }
                for line in lines
            ],
        })

    def get_case_items_history(self, case_id):
        path = f'/cases/{case_id}/applies'
        rows = _rows_with_id(self.client.get(path) or [], 'applyId', path)
        return [
            ItemHistory(
                apply_id=row['applyId'],
                item_id=row.get('itemId'),
                item_name=row.get('itemName') or '',
                item_type=_enum_or_raw(ApplyType, row.get('itemType')),
                status=_enum_or_raw(ApplyStatus, row.get('status')),
                item_code=row.get('itemCode') or '',
                price=row.get('price') or '0.00',
                unit=row.get('unit') or 1,
                create_time=row.get('createTime') or '',
            )
            for row in rows
        ]

    def revoke_medical_item(self, apply_id):
        self.client.post(f'/applies/{apply_id}/revoke')

    # ── 处方 ──────────────────────────────────────────────────────────────

    def create_prescriptions(self, case_id, registration_id, lines):
        self.client.post(f'/cases/{case_id}/prescriptions', json={
            'registrationId': registration_id,
            'prescriptions': [
                {
                    'drugId': line.ref_id,
                    'dosage': line.dosage,
                    'quantity': line.quantity,
                    'remark': line.remark,
                }
                for line in lines
            ],
        })

    def get_case_prescriptions(self, case_id):
        path = f'/cases/{case_id}/prescriptions'
        rows = _rows_with_id(self.client.get(path) or [], 'prescriptionId', path)
        return [
            PrescriptionHistory(
                prescription_id=row['prescriptionId'],
                drug_id=row.get('drugId'),
                drug_name=row.get('drugName') or '',
                status=_enum_or_raw(ApplyStatus, row.get('status')),
                drug_code=row.get('drugCode') or '',
                specification=row.get('specification') or '',
                unit=row.get('unit') or '',
                price=row.get('price') or '0.00',
                usage=row.get('usage') or '',
                quantity=row.get('quantity') or 0,
                create_time=row.get('createTime') or '',
            )
            for row in rows
        ]

    def revoke_prescription(self, prescription_id):
        self.client.post(f'/prescriptions/{prescription_id}/revoke')

    # ── 检查结果 / 费用 ────────────────────────────────────────────────────

    def get_case_results(self, case_id):
        path = f'/cases/{case_id}/results'
        rows = _rows_with_id(self.client.get(path) or [], 'applyId', path)
        return [
            ExaminationResult(
                apply_id=row['applyId'],
                item_id=row.get('itemId'),
                item_name=row.get('itemName') or '',
                apply_type=_enum_or_raw(ApplyType, row.get('applyType')),
                status=_enum_or_raw(ApplyStatus, row.get('status')),
                apply_purpose=row.get('applyPurpose') or '',
                apply_site=row.get('applySite') or '',
                apply_time=row.get('applyTime') or '',
                performer_name=row.get('performerName') or '',
                perform_time=row.get('performTime') or '',
                result=row.get('result') or '',
                unit=row.get('unit') or 1,
                remark=row.get('remark') or '',
            )
            for row in rows
        ]

    def get_case_fees(self, case_id):
        data = self.client.get(f'/cases/{case_id}/fees')
        if not data:
            return None
        return FeeSummary(
            registration_fee=data.get('registrationFee') or '0.00',
            medical_item_fees=[
                ItemFee(
                    item_id=row.get('itemId'),
                    item_name=row.get('itemName') or '',
                    price=row.get('price') or '0.00',
                    unit=row.get('unit') or 1,
                    amount=row.get('amount') or '0.00',
                    status=row.get('status') or '',
                    create_time=row.get('createTime') or '',
                )
                for row in data.get('medicalItemFees') or []
            ],
            prescription_fees=[
                DrugFee(
                    drug_id=row.get('drugId'),
                    drug_name=row.get('drugName') or '',
                    specification=row.get('specification') or '',
                    price=row.get('price') or '0.00',
                    quantity=row.get('quantity') or 0,
                    amount=row.get('amount') or '0.00',
                    status=row.get('status') or '',
                    create_time=row.get('createTime') or '',
                )
                for row in data.get('prescriptionFees') or []
            ],
            total_amount=data.get('totalAmount') or '0.00',
            unpaid_amount=data.get('unpaidAmount') or '0.00',
        )
