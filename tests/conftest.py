from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import Role, User
from auctions.ledger import LedgerStore
from auctions.models import Auction, AuctionStatus
from notifications.sinks import EventSink


class RecordingSink(EventSink):
    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)

    @property
    def names(self):
        return [event.name for event in self.events]


def _user(email, role, **extra):
    return User.objects.create_user(email=email, password='pass1234', role=role,
                                    name=email.split('@')[0].title(), **extra)


@pytest.fixture
def admin_user(db):
    return _user('admin@wastebid.test', Role.ADMIN)


@pytest.fixture
def creator(db):
    return _user('generator@wastebid.test', Role.WASTE_GENERATOR, company='Steelworks Ltd')


@pytest.fixture
def bidder(db):
    return _user('recycler1@wastebid.test', Role.RECYCLER, company='Metal Recovery Co')


@pytest.fixture
def other_bidder(db):
    return _user('recycler2@wastebid.test', Role.RECYCLER, company='GreenLoop')


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def make_auction(db, creator):
    """
    Build an auction already sitting in ``status``; dates are placed so that
    the sweeper would not move it unless ``due=True``.
    """
    def factory(status=AuctionStatus.LIVE, base_price='1000.00', min_increment_percent='5.00',
                due=False, owner=None, **fields):
        now = timezone.now()
        if status in (AuctionStatus.PENDING, AuctionStatus.APPROVED):
            start = now - timedelta(minutes=5) if due else now + timedelta(hours=1)
            end = start + timedelta(days=1)
        elif status == AuctionStatus.LIVE:
            start = now - timedelta(hours=1)
            end = now - timedelta(minutes=1) if due else now + timedelta(days=1)
        else:
            start = now - timedelta(days=2)
            end = now - timedelta(days=1)

        fields.setdefault('lot_name', 'HMS scrap 20t')
        fields.setdefault('waste_type', 'metal')
        auction = LedgerStore().create_auction(
            owner or creator,
            base_price=Decimal(base_price),
            min_increment_percent=Decimal(min_increment_percent),
            start_date=fields.pop('start_date', start),
            end_date=fields.pop('end_date', end),
            **fields
        )
        Auction.objects.filter(pk=auction.pk).update(status=status)
        auction.refresh_from_db()
        return auction

    return factory


@pytest.fixture
def closed_auction(make_auction, store, bidder, other_bidder):
    """A closed lot with two participants: bidder at 1100.00, other_bidder at 1200.00."""
    auction = make_auction(status=AuctionStatus.LIVE)
    store.apply_bid(auction.pk, bidder.pk, Decimal('1100.00'), observed_price=Decimal('1000.00'))
    store.apply_bid(auction.pk, other_bidder.pk, Decimal('1200.00'), observed_price=Decimal('1100.00'))
    Auction.objects.filter(pk=auction.pk).update(status=AuctionStatus.CLOSED)
    auction.refresh_from_db()
    return auction


@pytest.fixture
def api_client():
    return APIClient()
