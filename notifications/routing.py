# notifications/routing.py
from django.urls import path

from .consumers import AuctionFeedConsumer, NotificationConsumer

websocket_urlpatterns = [
    path('ws/auctions/', AuctionFeedConsumer.as_asgi()),
    path('ws/notifications/', NotificationConsumer.as_asgi()),
]
