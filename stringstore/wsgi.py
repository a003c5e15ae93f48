"""
WSGI config for the string analyzer service.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stringstore.settings')

application = get_wsgi_application()
