import os

from channels.auth import AuthMiddlewareStack
from channels.routing import ProtocolTypeRouter, URLRouter
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mentorhub.settings")

# Initialise Django before importing anything that touches models.
django_app = get_asgi_application()

import mentoring.routing  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_app,
    "websocket": AuthMiddlewareStack(
        URLRouter(
            mentoring.routing.websocket_urlpatterns
        )
    ),
})
