"""
WSGI config for parking_api project.

Served in production with: gunicorn parking_api.wsgi:application
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'parking_api.settings')

application = get_wsgi_application()
