import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from .feed import can_subscribe, group_name


class ChangeFeedConsumer(AsyncWebsocketConsumer):
    """
    One socket, many paths. The client sends
    {"action": "subscribe", "path": "reports/12"} and receives every
    ChangeEvent published for that path until it unsubscribes or disconnects.
    """

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4401)
            return
        self.paths = set()
        await self.accept()

    async def disconnect(self, close_code):
        for path in getattr(self, "paths", set()):
            await self.channel_layer.group_discard(group_name(path), self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send_json({"action": "error", "error": "Invalid JSON"})
            return

        action = data.get("action")
        path = data.get("path", "")

        if action == "subscribe":
            allowed = await self.check_access(path)
            if not allowed:
                await self.send_json({"action": "denied", "path": path})
                return
            self.paths.add(path)
            await self.channel_layer.group_add(group_name(path), self.channel_name)
            await self.send_json({"action": "subscribed", "path": path})

        elif action == "unsubscribe":
            if path in self.paths:
                self.paths.discard(path)
                await self.channel_layer.group_discard(group_name(path), self.channel_name)
            await self.send_json({"action": "unsubscribed", "path": path})

        else:
            await self.send_json({"action": "error", "error": f"Unknown action: {action}"})

    # Group event handler (invoked via group_send from feed.publish)
    async def change_event(self, event):
        await self.send_json({"action": "change", "event": event["event"]})

    @database_sync_to_async
    def check_access(self, path):
        return can_subscribe(self.scope["user"], path)

    async def send_json(self, payload):
        await self.send(text_data=json.dumps(payload, cls=DjangoJSONEncoder))
