"""
Celery application for detached side effects (notifications, audit writes).
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('optica')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
