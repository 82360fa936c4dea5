"""
WSGI config for the jewelry ERP backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'jewelerp.config.settings')

application = get_wsgi_application()
