# notifications/sinks.py
"""
Event sinks: where committed auction state changes go.

Mutating auction components receive an ``EventSink`` and call
``publish_after_commit``; they never talk to the channel layer or the
notification table directly. Delivery is best effort: a failing sink is
logged and never undoes the committed change.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from .utils import create_notification, send_websocket_notification

logger = logging.getLogger(__name__)


class EventSink:
    def publish(self, event):
        raise NotImplementedError


class LoggingSink(EventSink):
    def publish(self, event):
        logger.info("%s auction=%s status=%s price=%s",
                    event.name, event.auction.pk, event.auction.status, event.auction.current_price)


class ChannelLayerSink(EventSink):
    """Fan-out to every WebSocket subscribed to the auction feed group."""

    def __init__(self, group=None):
        self.group = group or getattr(settings, 'AUCTION_EVENT_GROUP', 'auctions')

    def publish(self, event):
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        async_to_sync(channel_layer.group_send)(
            self.group,
            {
                'type': 'auction_event',
                'event': event.name,
                'payload': event.payload(),
            }
        )


class NotificationSink(EventSink):
    """Stores a personal notification for each user the event concerns."""

    def publish(self, event):
        auction = event.auction
        for user in event.recipients():
            if user is None:
                continue
            notification_type, message = self.describe(event, user)
            notification = create_notification(
                user,
                notification_type,
                message,
                content_object=auction,
                extra_data={'event': event.name},
            )
            send_websocket_notification(user, notification)

    def describe(self, event, user):
        lot = event.auction.lot_name
        if event.name == 'BidPlaced':
            return 'auction_new_bid', f"New bid on your lot '{lot}': {event.auction.current_price}."
        if event.name == 'StatusChanged':
            status = event.new_status.lower()
            return f'auction_{status}', f"Your lot '{lot}' is now {status}."
        if event.name == 'WinnerChanged' and user.id != event.new_winner.id:
            return 'auction_winner_changed', f"You are no longer the winner of '{lot}'. Reason: {event.reason}"
        return 'auction_won', f"You have been selected as the winner of '{lot}'."


class CompositeSink(EventSink):
    """Publishes to every sink; one failing sink does not stop the rest."""

    def __init__(self, sinks):
        self.sinks = list(sinks)

    def publish(self, event):
        for sink in self.sinks:
            try:
                sink.publish(event)
            except Exception:
                logger.exception("Sink %s failed to publish %s for auction %s",
                                 type(sink).__name__, event.name, event.auction.pk)


def load_event_sink():
    """Build the configured sinks from ``AUCTION_EVENT_SINKS``."""
    paths = getattr(settings, 'AUCTION_EVENT_SINKS', ['notifications.sinks.LoggingSink'])
    return CompositeSink(import_string(path)() for path in paths)


def publish_after_commit(sink, event):
    """Hand ``event`` to ``sink`` once the surrounding transaction commits."""
    def _publish():
        try:
            sink.publish(event)
        except Exception:
            logger.exception("Failed to publish %s for auction %s", event.name, event.auction.pk)

    transaction.on_commit(_publish)
