import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'parking_api.settings')

app = Celery('parking_api')

# All CELERY_* keys in Django settings configure the app
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
