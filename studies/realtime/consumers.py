import json
from channels.generic.websocket import AsyncWebsocketConsumer


class AdminAlertsConsumer(AsyncWebsocketConsumer):
    """Pushes "hospital left without coordinator" alerts to connected administrators."""
    GROUP = "admin.alerts"

    async def connect(self):
        user = self.scope.get("user")
        if not user or not user.is_authenticated or getattr(user, "role", None) != "admin":
            await self.close()
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def coordinators_missing(self, event):
        # event: {"type": "coordinators.missing", "hospitals": [...], "reason": "..."}
        await self.send(json.dumps(event))
