# auctions/services.py
import logging

from django.utils import timezone

from notifications.sinks import load_event_sink, publish_after_commit

from .events import StatusChanged
from .exceptions import InvalidState
from .ledger import LedgerStore
from .models import AuctionStatus, CANCELLABLE_STATUSES

logger = logging.getLogger(__name__)


class AuctionLifecycle:
    """Administrative status changes: create, approve, cancel, early activation."""

    def __init__(self, store=None, sink=None, clock=timezone.now):
        self.store = store or LedgerStore()
        self.sink = sink or load_event_sink()
        self.clock = clock

    def create_auction(self, creator, **fields):
        auction = self.store.create_auction(creator, **fields)
        logger.info("User %s submitted auction %s (%s) for approval", creator.pk, auction.pk, auction.lot_name)
        return auction

    def approve(self, auction_id):
        auction = self.store.get_auction(auction_id)
        if auction.status == AuctionStatus.APPROVED:
            return auction
        if auction.status != AuctionStatus.PENDING:
            raise InvalidState(f"Only pending auctions can be approved (status: {auction.status}).")

        now = self.clock()
        if not self.store.transition(auction.pk, AuctionStatus.PENDING, AuctionStatus.APPROVED, approved_at=now):
            current = self.store.get_auction(auction.pk)
            if current.status == AuctionStatus.APPROVED:
                return current
            raise InvalidState(f"Only pending auctions can be approved (status: {current.status}).")

        logger.info("Auction %s approved", auction.pk)
        self._announce(auction.pk, AuctionStatus.PENDING, AuctionStatus.APPROVED)
        self.activate_if_due(auction.pk)
        return self.store.get_auction(auction.pk)

    def cancel(self, auction_id):
        auction = self.store.get_auction(auction_id)
        if auction.status not in CANCELLABLE_STATUSES:
            raise InvalidState(f"Cannot cancel an auction that is {auction.status}.")

        if not self.store.transition(auction.pk, auction.status, AuctionStatus.CANCELLED, cancelled_at=self.clock()):
            raise InvalidState("Auction status changed, it can no longer be cancelled.")

        logger.info("Auction %s cancelled (was %s)", auction.pk, auction.status)
        return self._announce(auction.pk, auction.status, AuctionStatus.CANCELLED)

    def activate_if_due(self, auction_id) -> bool:
        """Start an approved auction whose start date has passed, ahead of the next sweep."""
        if not self.store.activate_if_due(auction_id, self.clock()):
            return False
        logger.info("Auction %s is now live", auction_id)
        self._announce(auction_id, AuctionStatus.APPROVED, AuctionStatus.LIVE)
        return True

    def _announce(self, auction_id, old_status, new_status):
        snapshot = self.store.get_auction(auction_id)
        publish_after_commit(self.sink, StatusChanged(auction=snapshot, old_status=old_status, new_status=new_status))
        return snapshot
