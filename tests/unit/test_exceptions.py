"""
Unit tests for exception classes and Notifier.report().

纯 Python 测试：
1. BaseAppException 默认值
2. 各子类的默认 type / code / http_status
3. 构造时覆盖 code / http_status
4. to_dict() 的统一格式（无 detail 时不出现 detail 字段）
5. Notifier.report() 把异常转成 error 提示
"""
from workstation.exceptions import (
    ApiError,
    BaseAppException,
    DraftStorageError,
    PreconditionError,
)
from workstation.notify import Notifier


class TestBaseAppException:

    def test_defaults(self):
        exc = BaseAppException('something broke')
        assert exc.message == 'something broke'
        assert exc.type == 'error'
        assert exc.code == 'UNKNOWN_ERROR'
        assert exc.http_status is None
        assert exc.detail is None

    def test_override_code_and_status(self):
        exc = BaseAppException('bad', code='CUSTOM_CODE', http_status=418)
        assert exc.code == 'CUSTOM_CODE'
        assert exc.http_status == 418

    def test_override_does_not_leak_to_class(self):
        BaseAppException('bad', code='CUSTOM_CODE')
        assert BaseAppException('other').code == 'UNKNOWN_ERROR'


class TestPreconditionError:

    def test_defaults(self):
        exc = PreconditionError('申请列表为空')
        assert exc.type == 'precondition'
        assert exc.code == 'PRECONDITION_FAILED'
        assert exc.http_status is None

    def test_custom_code(self):
        exc = PreconditionError('申请列表为空', code='EMPTY_CART')
        assert exc.code == 'EMPTY_CART'


class TestApiError:

    def test_defaults(self):
        exc = ApiError('服务器内部错误')
        assert exc.type == 'api_error'
        assert exc.code == 'API_ERROR'

    def test_http_status_preserved(self):
        exc = ApiError('not found', code='HTTP_ERROR', http_status=404)
        assert exc.http_status == 404


class TestDraftStorageError:

    def test_defaults(self):
        exc = DraftStorageError('quota')
        assert exc.type == 'draft_storage'
        assert exc.code == 'DRAFT_STORAGE_ERROR'


class TestToDict:

    def test_with_detail(self):
        body = PreconditionError('bad', code='LINE_INCOMPLETE', detail={'ref_id': 77}).to_dict()
        assert body == {
            'type': 'precondition',
            'code': 'LINE_INCOMPLETE',
            'message': 'bad',
            'detail': {'ref_id': 77},
        }

    def test_no_detail_field_when_none(self):
        body = ApiError('boom').to_dict()
        assert 'detail' not in body


class TestNotifierReport:

    def test_report_turns_exception_into_error_notice(self):
        notifier = Notifier()
        notice = notifier.report(ApiError('网络连接失败', code='NETWORK_ERROR'))

        assert notice.level == 'error'
        assert notice.code == 'NETWORK_ERROR'
        assert notifier.last is notice

    def test_drain_empties_messages(self):
        notifier = Notifier()
        notifier.info('a')
        notifier.warning('b')

        drained = notifier.drain()
        assert [n.message for n in drained] == ['a', 'b']
        assert notifier.messages == []
