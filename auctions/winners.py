# auctions/winners.py
import logging

from django.db.models import Count, F, Q

from accounts.models import ADMIN_ROLES
from notifications.sinks import load_event_sink, publish_after_commit

from .events import WinnerChanged, WinnerSelected
from .exceptions import BidValidationError, InvalidState
from .ledger import LedgerStore
from .models import Auction, AuctionStatus, BidEvent, BidEventType

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_REASON = 'No reason provided'


class WinnerSelectionService:
    """
    Picks, and with an audit trail overrides, the winner of a closed auction.

    At most one winner is recorded at a time: a first selection only applies
    while ``winner`` is still null, an override only while the winner is the
    one the caller saw. Every decision appends a WINNER_SELECTED event, so the
    full history of choices survives an override.
    """

    def __init__(self, store=None, sink=None):
        self.store = store or LedgerStore()
        self.sink = sink or load_event_sink()

    def select_winner(self, auction_id, winner_id, selected_by):
        auction = self.store.get_auction(auction_id)
        if auction.status != AuctionStatus.CLOSED:
            raise InvalidState("Winner can only be selected for closed auctions.")
        if auction.winner_id is not None:
            raise InvalidState("Winner already selected for this auction. Use change-winner to modify.")
        if not self.store.is_participant(auction.pk, winner_id):
            raise BidValidationError("Selected user did not participate in this auction.")

        selector = self.store.get_user(selected_by)
        if not self.store.record_winner(auction.pk, winner_id, actor_id=selector.pk):
            raise InvalidState("Winner already selected for this auction. Use change-winner to modify.")

        updated = self.store.get_auction(auction.pk)
        logger.info("User %s selected winner %s for auction %s", selected_by, winner_id, auction.pk)
        publish_after_commit(self.sink, WinnerSelected(auction=updated, winner=updated.winner, selected_by=selector))
        return updated

    def change_winner(self, auction_id, new_winner_id, changed_by, reason=None):
        auction = self.store.get_auction(auction_id)
        if auction.status != AuctionStatus.CLOSED:
            raise InvalidState("Winner can only be changed for closed auctions.")
        if auction.winner_id is None:
            raise InvalidState("No winner selected yet. Use select-winner first.")
        if not self.store.is_participant(auction.pk, new_winner_id):
            raise BidValidationError("New winner did not participate in this auction.")

        changer = self.store.get_user(changed_by)
        reason = reason or DEFAULT_CHANGE_REASON
        previous_winner = auction.winner
        applied = self.store.record_winner(
            auction.pk, new_winner_id,
            actor_id=changer.pk,
            expected_winner_id=previous_winner.pk,
            reason=reason,
        )
        if not applied:
            raise InvalidState("The winner was changed by someone else. Reload and try again.")

        updated = self.store.get_auction(auction.pk)
        logger.info("User %s changed winner for auction %s from %s to %s. Reason: %s",
                    changed_by, auction.pk, previous_winner.pk, new_winner_id, reason)
        publish_after_commit(self.sink, WinnerChanged(
            auction=updated,
            previous_winner=previous_winner,
            new_winner=updated.winner,
            reason=reason,
        ))
        return {
            'auction': updated,
            'previous_winner': previous_winner,
            'new_winner': updated.winner,
            'reason': reason,
        }

    def get_bidding_history(self, auction_id):
        """
        Read-only projection over BidEvent: base price and bids in commit
        order, plus the winner named by the latest WINNER_SELECTED event.
        """
        auction = self.store.get_auction(auction_id)
        bids = []
        winner_id = None
        for event in self.store.events(auction.pk):
            if event.type == BidEventType.WINNER_SELECTED:
                winner_id = event.user_id
                continue
            bids.append({
                'type': event.type,
                'user_id': event.user_id,
                'amount': event.amount,
                'timestamp': event.created_at,
            })
        return {'auction_id': auction.pk, 'bids': bids, 'winner_id': winner_id}


def winner_selection_stats():
    closed = Auction.objects.filter(status=AuctionStatus.CLOSED)
    counts = closed.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(winner__isnull=True)),
        completed=Count('id', filter=Q(winner__isnull=False)),
    )
    selections = BidEvent.objects.filter(type=BidEventType.WINNER_SELECTED)
    admin_selected = selections.filter(actor__role__in=ADMIN_ROLES).count()
    creator_selected = selections.filter(actor_id=F('auction__creator_id')).count()
    total = counts['total']
    return {
        'total_closed': total,
        'pending_winner_selection': counts['pending'],
        'completed_winner_selection': counts['completed'],
        'admin_selected': admin_selected,
        'creator_selected': creator_selected,
        'completion_rate': round(counts['completed'] * 100 / total) if total else 0,
    }
