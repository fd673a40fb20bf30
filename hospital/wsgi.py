"""
WSGI config for hospital project.

Exposes the WSGI callable as a module-level variable named
``application``. WebSocket chat sessions need the ASGI entry point in
``hospital.asgi`` instead.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hospital.settings')

application = get_wsgi_application()
