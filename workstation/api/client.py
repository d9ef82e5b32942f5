"""
RestClient — 所有后端调用的唯一出口。

统一处理：
  1. base URL / 超时 / JSON 头
  2. Bearer token
  3. GET 请求追加 _t 时间戳防缓存
  4. 响应信封 {code, data, message, meta}：
       code 为 200 或 0 → 返回 data（有 meta 时返回 {'data', 'meta'}）
       其他 code        → ApiError(BUSINESS_ERROR)
  5. HTTP / 网络错误 → ApiError，调用方只需要认识一种异常
"""

import logging
import time

import requests
from django.conf import settings

from ..exceptions import ApiError

logger = logging.getLogger(__name__)

SUCCESS_CODES = (200, 0)


class RestClient:

    def __init__(self, base_url=None, timeout=None, token=None, session=None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT
        self.token = token if token is not None else (getattr(settings, 'API_TOKEN', '') or None)
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json;charset=UTF-8'})

    def set_token(self, token):
        self.token = token or None

    # ── 对外统一入口 ───────────────────────────────────────────────────────

    def request(self, method, path, params=None, json=None):
        method = method.upper()
        url = f"{self.base_url}/{path.lstrip('/')}"

        params = dict(params or {})
        if method == 'GET':
            params['_t'] = int(time.time() * 1000)

        headers = {}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'

        logger.debug("[RestClient] %s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method, url,
                params=params or None,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("[RestClient] %s %s 超时: %s", method, url, exc)
            raise ApiError('请求超时，请稍后重试', code='TIMEOUT') from exc
        except requests.ConnectionError as exc:
            logger.warning("[RestClient] %s %s 网络失败: %s", method, url, exc)
            raise ApiError('网络连接失败，请检查网络', code='NETWORK_ERROR') from exc

        return self._unwrap(method, url, response)

    def get(self, path, params=None):
        return self.request('GET', path, params=params)

    def post(self, path, json=None):
        return self.request('POST', path, json=json)

    def put(self, path, json=None):
        return self.request('PUT', path, json=json)

    # ── 响应解包 ───────────────────────────────────────────────────────────

    def _unwrap(self, method, url, response):
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = (body or {}).get('message') if isinstance(body, dict) else None
            code = 'UNAUTHORIZED' if response.status_code in (401, 403) else 'HTTP_ERROR'
            logger.warning("[RestClient] %s %s → HTTP %d: %s",
                           method, url, response.status_code, message)
            raise ApiError(
                message=message or f'请求失败 (HTTP {response.status_code})',
                code=code,
                http_status=response.status_code,
            )

        if not isinstance(body, dict):
            raise ApiError('响应格式错误', code='BAD_RESPONSE', http_status=response.status_code)

        if body.get('code') not in SUCCESS_CODES:
            message = body.get('message') or '请求失败'
            logger.warning("[RestClient] %s %s 业务错误 code=%s: %s",
                           method, url, body.get('code'), message)
            raise ApiError(
                message=message,
                code='BUSINESS_ERROR',
                detail={'code': body.get('code')},
                http_status=response.status_code,
            )

        if body.get('meta'):
            return {'data': body.get('data'), 'meta': body['meta']}
        return body.get('data')
