"""
统一异常体系。

所有工作站异常继承 BaseAppException，包含：
- type:        错误类型标识（precondition / api_error / draft_storage）
- code:        业务错误码（EMPTY_CART / NETWORK_ERROR / ...）
- message:     人类可读的描述
- detail:      可选的附加信息（dict / list / None）
- http_status: 后端返回的 HTTP 状态码（本地错误为 None）

Store 层在边界上捕获并转成 Notifier 消息；只有 init_context 会把 ApiError 继续抛给调用方。
"""


class BaseAppException(Exception):
    """所有工作站异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = None

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)

    def to_dict(self):
        body = {
            'type': self.type,
            'code': self.code,
            'message': self.message,
        }
        if self.detail is not None:
            body['detail'] = self.detail
        return body


class PreconditionError(BaseAppException):
    """本地前置条件不满足（缺 ID、必填为空、空购物车……），不发请求。"""

    type = 'precondition'
    code = 'PRECONDITION_FAILED'


class ApiError(BaseAppException):
    """
    REST 调用失败。

    覆盖三种来源：
      - 网络层（超时 / 连接失败）        http_status=None
      - HTTP 层（4xx / 5xx）             http_status=状态码
      - 业务层（HTTP 200 但 code 非 0/200） http_status=200
    """

    type = 'api_error'
    code = 'API_ERROR'


class DraftStorageError(BaseAppException):
    """草稿存储读写失败。只记录日志，永远不打断业务操作。"""

    type = 'draft_storage'
    code = 'DRAFT_STORAGE_ERROR'
