import os

# 告诉 Django 用哪个 settings（工作站只用它读配置）
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
