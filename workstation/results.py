"""ResultBoard — 某病案的检查/检验结果，按是否出结果分拣。"""

import logging

from .enums import ApplyStatus
from .exceptions import ApiError

logger = logging.getLogger(__name__)

CANCELLED_STATUSES = frozenset({ApplyStatus.CANCELLED, ApplyStatus.REVOKED, ApplyStatus.RETURNED})


class ResultBoard:

    def __init__(self, api, notifier):
        self.api = api
        self.notifier = notifier
        self.loading = False
        self.all_results = []
        self._epoch = 0

    @property
    def finished_list(self):
        return [r for r in self.all_results if r.status == ApplyStatus.FINISHED]

    @property
    def pending_list(self):
        return [r for r in self.all_results if r.status != ApplyStatus.FINISHED]

    @property
    def statistics(self):
        pending = self.pending_list
        return {
            'total': len(self.all_results),
            'finished': len(self.all_results) - len(pending),
            'checking': sum(1 for r in pending if r.status == ApplyStatus.UNFINISHED),
            'unpaid': sum(1 for r in pending if r.status == ApplyStatus.PENDING_PAYMENT),
            'cancelled': sum(1 for r in pending if r.status in CANCELLED_STATUSES),
        }

    def fetch_results(self, case_id):
        if not case_id:
            return False

        epoch = self._epoch
        self.loading = True
        try:
            rows = self.api.get_case_results(case_id)
        except ApiError as exc:
            logger.error("[ResultBoard] 获取检查结果失败 case_id=%s: %s", case_id, exc.message)
            self.notifier.error('获取检查结果失败', code=exc.code)
            return False
        finally:
            if epoch == self._epoch:
                self.loading = False

        if epoch != self._epoch:
            return False
        self.all_results = rows or []
        return True

    def reset(self):
        self._epoch += 1
        self.all_results = []
        self.loading = False
