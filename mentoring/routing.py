from django.urls import re_path

from .consumers import ChangeFeedConsumer

websocket_urlpatterns = [
    re_path(r"^ws/feed/$", ChangeFeedConsumer.as_asgi()),
]
