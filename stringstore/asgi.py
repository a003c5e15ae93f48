"""
ASGI config for the string analyzer service.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stringstore.settings')

application = get_asgi_application()
