# auctions/sweeper.py
import logging
from dataclasses import dataclass

from django.utils import timezone

from notifications.sinks import load_event_sink, publish_after_commit

from .events import StatusChanged
from .ledger import LedgerStore
from .models import AuctionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    went_live: int
    closed: int

    def as_dict(self):
        return {'updated_to_live': self.went_live, 'updated_to_closed': self.closed}


class StatusTransitionSweeper:
    """
    Advances auctions along their time-driven transitions:
    APPROVED -> LIVE once start_date is reached, LIVE -> CLOSED once
    end_date is reached.

    Each step is one set-based conditional update, so overlapping sweeps
    (the beat task and a manual refresh, or two workers) are harmless:
    a row is moved, and reported, by exactly one of them.
    """

    TRANSITIONS = (
        (AuctionStatus.APPROVED, AuctionStatus.LIVE, 'start_date'),
        (AuctionStatus.LIVE, AuctionStatus.CLOSED, 'end_date'),
    )

    def __init__(self, store=None, sink=None, clock=timezone.now):
        self.store = store or LedgerStore()
        self.sink = sink or load_event_sink()
        self.clock = clock

    def sweep(self) -> SweepResult:
        now = self.clock()
        counts = []
        for old_status, new_status, date_field in self.TRANSITIONS:
            try:
                moved = self.store.advance_due(old_status, new_status, date_field, now)
            except Exception:
                # next tick retries the step
                logger.exception("Sweep step %s -> %s failed", old_status, new_status)
                moved = []
            for auction_id in moved:
                self._announce(auction_id, old_status, new_status)
            counts.append(len(moved))

        result = SweepResult(went_live=counts[0], closed=counts[1])
        if result.went_live or result.closed:
            logger.info("Status updated - LIVE: %s, CLOSED: %s", result.went_live, result.closed)
        return result

    def _announce(self, auction_id, old_status, new_status):
        try:
            snapshot = self.store.get_auction(auction_id)
            publish_after_commit(self.sink, StatusChanged(auction=snapshot, old_status=old_status, new_status=new_status))
        except Exception:
            # transition is already committed
            logger.exception("Failed to announce %s -> %s for auction %s", old_status, new_status, auction_id)
