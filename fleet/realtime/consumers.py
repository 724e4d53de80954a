import json

from channels.generic.websocket import AsyncWebsocketConsumer

from fleet.services.notify import UPDATES_GROUP


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes request lifecycle events to every connected client."""
    GROUP = UPDATES_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def request_event(self, event):
        # event: {"type": "request.event", "event": "assigned", "requestId": "...", ...}
        await self.send(json.dumps(event))
