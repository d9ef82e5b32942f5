import logging

from .exceptions import ApiError
from .types import FeeSummary, to_decimal

logger = logging.getLogger(__name__)


class FeeLedger:
    """病案费用明细。读取失败只记日志，保留上一次的数据。"""

    def __init__(self, api):
        self.api = api
        self.loading = False
        self.fee_data = FeeSummary()
        self._epoch = 0

    @property
    def has_unpaid(self):
        return to_decimal(self.fee_data.unpaid_amount) > 0

    def fetch_fees(self, case_id):
        if not case_id:
            return False

        epoch = self._epoch
        self.loading = True
        try:
            summary = self.api.get_case_fees(case_id)
        except ApiError as exc:
            logger.error("[FeeLedger] 获取费用失败 case_id=%s: %s", case_id, exc.message)
            return False
        finally:
            if epoch == self._epoch:
                self.loading = False

        if epoch != self._epoch:
            return False
        if summary:
            self.fee_data = summary
        return True

    def reset(self):
        self._epoch += 1
        self.loading = False
        self.fee_data = FeeSummary()
