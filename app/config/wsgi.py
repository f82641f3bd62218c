"""
WSGI config for the fulfillment reconciliation service.

Serves the REST API only; the realtime order board needs the ASGI
application in asgi.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
