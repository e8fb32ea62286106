# auctions/ledger.py
import uuid

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from .exceptions import AuctionNotFound, BidValidationError
from .models import Auction, AuctionStatus, BidEvent, BidEventType, Participant

User = get_user_model()


class LedgerStore:
    """
    Repository over Auction, Participant and BidEvent.

    Every write that touches an auction row is a single conditional UPDATE
    scoped by the auction id plus a guard predicate (observed price, observed
    status, or "winner currently null"). The return value tells the caller
    whether the guard held; nothing here relies on in-process locks, so it is
    safe with several server processes on one database.
    """

    # -- reads -------------------------------------------------------------

    def get_auction(self, auction_id) -> Auction:
        try:
            return Auction.objects.select_related('creator', 'winner').get(pk=auction_id)
        except Auction.DoesNotExist:
            raise AuctionNotFound(f"Auction {auction_id} not found.")

    def get_user(self, user_id):
        try:
            return User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(f"User {user_id} not found.")

    def participant_amount(self, auction_id, user_id):
        return (Participant.objects
                .filter(auction_id=auction_id, user_id=user_id)
                .values_list('amount', flat=True)
                .first())

    def is_participant(self, auction_id, user_id) -> bool:
        return Participant.objects.filter(auction_id=auction_id, user_id=user_id).exists()

    def events(self, auction_id, types=None):
        qs = BidEvent.objects.filter(auction_id=auction_id).order_by('created_at', 'id')
        if types:
            qs = qs.filter(type__in=types)
        return qs

    # -- writes ------------------------------------------------------------

    @transaction.atomic
    def create_auction(self, creator, **fields) -> Auction:
        auction = Auction.objects.create(
            creator=creator,
            status=AuctionStatus.PENDING,
            current_price=fields['base_price'],
            **fields
        )
        BidEvent.objects.create(
            auction=auction,
            type=BidEventType.BASE_PRICE,
            amount=auction.base_price,
            actor=creator,
        )
        return auction

    def apply_bid(self, auction_id, user_id, amount, observed_price) -> bool:
        """
        Compare-and-swap ``current_price`` from ``observed_price`` to ``amount``
        on a LIVE auction, upsert the bidder's participant row and append a
        BID_PLACED event, all in one transaction.

        Returns False when another writer moved the price (or the status) first.
        """
        now = timezone.now()
        with transaction.atomic():
            swapped = (Auction.objects
                       .filter(pk=auction_id, current_price=observed_price, status=AuctionStatus.LIVE)
                       .update(current_price=amount, updated_at=now))
            if not swapped:
                return False

            raised = (Participant.objects
                      .filter(auction_id=auction_id, user_id=user_id, amount__lt=amount)
                      .update(amount=amount, updated_at=now))
            if not raised:
                if Participant.objects.filter(auction_id=auction_id, user_id=user_id).exists():
                    # rolls back the price swap above
                    raise BidValidationError("New bid must be higher than your current bid.")
                Participant.objects.create(auction_id=auction_id, user_id=user_id, amount=amount)

            BidEvent.objects.create(
                auction_id=auction_id,
                type=BidEventType.BID_PLACED,
                user_id=user_id,
                actor_id=user_id,
                amount=amount,
            )
        return True

    def transition(self, auction_id, from_status, to_status, **changes) -> bool:
        """Move one auction from ``from_status`` to ``to_status`` if it is still there."""
        changes.setdefault('updated_at', timezone.now())
        return bool(Auction.objects
                    .filter(pk=auction_id, status=from_status)
                    .update(status=to_status, **changes))

    def activate_if_due(self, auction_id, now) -> bool:
        return bool(Auction.objects
                    .filter(pk=auction_id, status=AuctionStatus.APPROVED, start_date__lte=now)
                    .update(status=AuctionStatus.LIVE, updated_at=now))

    def advance_due(self, from_status, to_status, date_field, now):
        """
        Set-based ``from_status -> to_status`` for every auction whose
        ``date_field`` has been reached. Returns the ids this call moved.

        The rows are stamped with a fresh token and re-selected by it inside
        the same transaction, so overlapping sweeps never report the same row.
        """
        token = uuid.uuid4()
        with transaction.atomic():
            moved = (Auction.objects
                     .filter(status=from_status, **{f'{date_field}__lte': now})
                     .update(status=to_status, transition_token=token, updated_at=now))
            if not moved:
                return []
            return list(Auction.objects
                        .filter(transition_token=token)
                        .order_by('pk')
                        .values_list('pk', flat=True))

    def record_winner(self, auction_id, winner_id, actor_id, expected_winner_id=None, reason='') -> bool:
        """
        Set the winner of a CLOSED auction and append a WINNER_SELECTED event.

        ``expected_winner_id`` is the winner the caller observed (None for a
        first selection); the update only applies while it is still current.
        """
        now = timezone.now()
        with transaction.atomic():
            guard = Auction.objects.filter(pk=auction_id, status=AuctionStatus.CLOSED)
            if expected_winner_id is None:
                guard = guard.filter(winner__isnull=True)
            else:
                guard = guard.filter(winner_id=expected_winner_id)
            if not guard.update(winner_id=winner_id, updated_at=now):
                return False

            amount = self.participant_amount(auction_id, winner_id)
            if amount is None:
                raise BidValidationError("Selected user did not participate in this auction.")

            BidEvent.objects.create(
                auction_id=auction_id,
                type=BidEventType.WINNER_SELECTED,
                user_id=winner_id,
                actor_id=actor_id,
                amount=amount,
                reason=reason or '',
            )
        return True

    def replace_gate_pass(self, auction_id, ref, uploader_id, now):
        """
        Swap in a new gate pass reference on a CLOSED, won auction.

        Returns ``(applied, previous_ref)``. Concurrent uploads are last write
        wins; each caller gets back the reference its own write replaced.
        """
        with transaction.atomic():
            previous = (Auction.objects
                        .select_for_update()
                        .filter(pk=auction_id)
                        .values_list('gate_pass_ref', flat=True)
                        .first())
            applied = (Auction.objects
                       .filter(pk=auction_id, status=AuctionStatus.CLOSED, winner__isnull=False)
                       .update(gate_pass_ref=ref,
                               gate_pass_uploaded_by_id=uploader_id,
                               gate_pass_uploaded_at=now,
                               updated_at=now))
        return bool(applied), previous
