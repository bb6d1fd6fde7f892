"""
WSGI config for the lagerapp project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lagerapp.config.settings')

application = get_wsgi_application()
