# auctions/bidding.py
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_UP

from django.conf import settings

from notifications.sinks import load_event_sink, publish_after_commit

from .events import BidPlaced
from .exceptions import BidValidationError, Conflict, InvalidState
from .ledger import LedgerStore
from .models import AuctionStatus

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
# largest value a max_digits=12, decimal_places=2 money column can hold
MAX_AMOUNT = Decimal('9999999999.99')


@dataclass(frozen=True)
class BidResult:
    accepted: bool
    new_current_price: Decimal


def minimum_next_bid(current_price, min_increment_percent) -> Decimal:
    """
    Lowest acceptable amount: ``current * (1 + pct/100)``, rounded up to the
    cent. For cent amounts ``amount >= result`` iff ``amount >= exact value``.
    """
    exact = Decimal(current_price) * (Decimal(100) + Decimal(min_increment_percent)) / Decimal(100)
    return exact.quantize(CENT, rounding=ROUND_UP)


def coerce_amount(amount) -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise BidValidationError("Bid amount must be a number.")
    if not value.is_finite() or value <= 0:
        raise BidValidationError("Bid amount must be a finite, positive number.")
    if value > MAX_AMOUNT:
        raise BidValidationError(f"Bid amount cannot exceed {MAX_AMOUNT}.")
    if value != value.quantize(CENT):
        raise BidValidationError("Bid amount cannot have more than two decimal places.")
    return value.quantize(CENT)


class BidPlacementEngine:
    """
    Validates and applies one bid against one auction.

    The price check and the price write happen in a single compare-and-swap
    on the price the engine observed. Losing that race means another bid
    committed first: the engine re-reads, re-validates the same amount
    against the new minimum, and tries again a bounded number of times.
    """

    def __init__(self, store=None, sink=None, max_attempts=None):
        self.store = store or LedgerStore()
        self.sink = sink or load_event_sink()
        self.max_attempts = max_attempts or getattr(settings, 'AUCTION_BID_MAX_ATTEMPTS', 3)

    def place_bid(self, auction_id, user_id, amount) -> BidResult:
        amount = coerce_amount(amount)

        for attempt in range(1, self.max_attempts + 1):
            auction = self.store.get_auction(auction_id)
            self._validate(auction, user_id, amount)

            if self.store.apply_bid(auction.pk, user_id, amount, observed_price=auction.current_price):
                break

            logger.info("Bid %s by user %s on auction %s lost the race at price %s (attempt %s/%s)",
                        amount, user_id, auction_id, auction.current_price, attempt, self.max_attempts)
        else:
            logger.warning("Giving up on bid %s by user %s on auction %s after %s attempts",
                           amount, user_id, auction_id, self.max_attempts)
            raise Conflict()

        logger.info("Accepted bid %s by user %s on auction %s", amount, user_id, auction_id)
        snapshot = self.store.get_auction(auction_id)
        publish_after_commit(self.sink, BidPlaced(auction=snapshot))
        return BidResult(accepted=True, new_current_price=amount)

    def _validate(self, auction, user_id, amount):
        if auction.status != AuctionStatus.LIVE:
            raise InvalidState(f"Auction is not open for bidding (status: {auction.status}).")

        if auction.creator_id == user_id:
            raise BidValidationError("You cannot bid on your own lot.")

        minimum = minimum_next_bid(auction.current_price, auction.min_increment_percent)
        if amount < minimum:
            raise BidValidationError(f"Bid must be at least {minimum}.", minimum=minimum)

        previous = self.store.participant_amount(auction.pk, user_id)
        if previous is not None and amount <= previous:
            raise BidValidationError(f"New bid must be higher than your current bid of {previous}.")
