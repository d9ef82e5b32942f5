import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
DEBUG = os.getenv('DEBUG', '0') == '1'

# 工作站只是 REST 客户端，不需要 ORM / app 注册
INSTALLED_APPS = []
DATABASES = {}

USE_TZ = True
TIME_ZONE = 'Asia/Shanghai'

# REST 后端
API_BASE_URL = os.getenv('API_BASE_URL', 'http://localhost:8080/api')
API_TIMEOUT = float(os.getenv('API_TIMEOUT', '10'))
API_TOKEN = os.getenv('API_TOKEN', '')

# 草稿存储：memory（单进程，随标签页会话结束）/ redis（按会话 ID 隔离 + TTL）
DRAFT_STORE_BACKEND = os.getenv('DRAFT_STORE_BACKEND', 'memory')
DRAFT_DEBOUNCE_SECONDS = float(os.getenv('DRAFT_DEBOUNCE_SECONDS', '1.0'))
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
# redis 草稿的会话寿命：8 小时
DRAFT_SESSION_TTL = int(os.getenv('DRAFT_SESSION_TTL', str(8 * 60 * 60)))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'workstation': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
        },
    },
}
