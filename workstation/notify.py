"""
Notifier — Store 层面向用户的提示出口。

Store 不知道界面长什么样，只管往这里报 success / info / warning / error；
宿主 UI 调用 drain() 取走消息展示。每条消息同时写日志。
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    'success': logging.INFO,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


@dataclass
class Notice:
    level: str
    message: str
    code: str = ''


class Notifier:

    def __init__(self):
        self.messages = []

    def notify(self, level, message, code=''):
        notice = Notice(level=level, message=message, code=code)
        self.messages.append(notice)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), "[Notice][%s] %s", level, message)
        return notice

    def success(self, message, code=''):
        return self.notify('success', message, code)

    def info(self, message, code=''):
        return self.notify('info', message, code)

    def warning(self, message, code=''):
        return self.notify('warning', message, code)

    def error(self, message, code=''):
        return self.notify('error', message, code)

    def report(self, exc):
        """BaseAppException → 一条 error 提示。"""
        return self.error(exc.message, code=exc.code)

    def drain(self):
        messages, self.messages = self.messages, []
        return messages

    @property
    def last(self):
        return self.messages[-1] if self.messages else None
