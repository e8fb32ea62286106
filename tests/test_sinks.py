from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import override_settings

from auctions.events import BidPlaced, StatusChanged, WinnerChanged
from auctions.models import AuctionStatus
from notifications.models import Notification
from notifications.sinks import (
    ChannelLayerSink, CompositeSink, EventSink, LoggingSink, NotificationSink,
    load_event_sink, publish_after_commit,
)

pytestmark = pytest.mark.django_db


class ExplodingSink(EventSink):
    def publish(self, event):
        raise RuntimeError("downstream is down")


def test_composite_isolates_failing_sink(make_auction, sink, caplog):
    auction = make_auction()

    CompositeSink([ExplodingSink(), sink]).publish(BidPlaced(auction=auction))

    assert sink.names == ['BidPlaced']
    assert 'ExplodingSink failed to publish BidPlaced' in caplog.text


def test_publish_after_commit_waits_for_commit(make_auction, sink, django_capture_on_commit_callbacks):
    auction = make_auction()

    with django_capture_on_commit_callbacks() as callbacks:
        publish_after_commit(sink, BidPlaced(auction=auction))
        assert sink.events == []

    assert len(callbacks) == 1
    callbacks[0]()
    assert sink.names == ['BidPlaced']


def test_notification_sink_notifies_creator_of_new_bid(make_auction, store, creator, bidder):
    auction = make_auction()
    store.apply_bid(auction.pk, bidder.pk, Decimal('1100.00'), observed_price=Decimal('1000.00'))
    auction = store.get_auction(auction.pk)

    NotificationSink().publish(BidPlaced(auction=auction))

    notification = Notification.objects.get(user=creator)
    assert notification.notification_type == 'auction_new_bid'
    assert '1100.00' in notification.message
    assert notification.content_object == auction


def test_notification_sink_maps_status_to_type(make_auction, creator):
    auction = make_auction(status=AuctionStatus.CLOSED)

    NotificationSink().publish(StatusChanged(auction=auction, old_status=AuctionStatus.LIVE,
                                             new_status=AuctionStatus.CLOSED))

    assert Notification.objects.get(user=creator).notification_type == 'auction_closed'


def test_notification_sink_tells_both_winners_about_a_change(closed_auction, bidder, other_bidder):
    NotificationSink().publish(WinnerChanged(auction=closed_auction, previous_winner=bidder,
                                             new_winner=other_bidder, reason='No pickup'))

    assert Notification.objects.get(user=other_bidder).notification_type == 'auction_won'
    dropped = Notification.objects.get(user=bidder)
    assert dropped.notification_type == 'auction_winner_changed'
    assert 'No pickup' in dropped.message


def test_channel_layer_sink_broadcasts_to_feed_group(make_auction):
    auction = make_auction()
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)('auctions', channel)

    ChannelLayerSink().publish(BidPlaced(auction=auction))

    message = async_to_sync(layer.receive)(channel)
    assert message['type'] == 'auction_event'
    assert message['event'] == 'BidPlaced'
    assert message['payload']['auction']['id'] == auction.pk
    assert 'gate_pass_ref' not in message['payload']['auction']


@override_settings(AUCTION_EVENT_SINKS=['notifications.sinks.LoggingSink', 'notifications.sinks.NotificationSink'])
def test_load_event_sink_builds_configured_sinks():
    sink = load_event_sink()
    assert [type(s) for s in sink.sinks] == [LoggingSink, NotificationSink]
