# notifications/consumers.py
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from .utils import notification_group


class AuctionFeedConsumer(AsyncJsonWebsocketConsumer):
    """Public live feed of auction state changes (bids, status, winners)."""

    async def connect(self):
        self.group_name = getattr(settings, 'AUCTION_EVENT_GROUP', 'auctions')
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, code):
        await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def auction_event(self, event):
        await self.send_json({'event': event['event'], 'payload': event['payload']})


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Personal notifications of the connected user."""

    async def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            await self.close()
            return
        self.group_name = notification_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, code):
        if hasattr(self, 'group_name'):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def send_notification(self, event):
        await self.send_json({'notification': event['notification']})
