# auctions/gate_pass.py
import logging

from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from accounts.models import ADMIN_ROLES

from .exceptions import Forbidden, InvalidState
from .ledger import LedgerStore
from .models import Auction, AuctionStatus

logger = logging.getLogger(__name__)


class GatePassHandoff:
    """
    The pickup pass attached to a closed, won auction.

    Uploads are last write wins: two concurrent uploads both pass their
    checks and the later commit's file is the one that stays. The artifact a
    write replaced is deleted from storage after the new reference is saved;
    a failed delete only leaves an orphaned file behind.
    """

    def __init__(self, store=None, storage=None, clock=timezone.now):
        self.store = store or LedgerStore()
        self.storage = storage or default_storage
        self.clock = clock

    def check_can_upload(self, auction_id, uploader_id):
        """Raise unless ``uploader_id`` may attach a gate pass to the auction right now."""
        auction = self.store.get_auction(auction_id)
        self._require_won(auction)

        uploader = self.store.get_user(uploader_id)
        if uploader.pk != auction.creator_id and uploader.role not in ADMIN_ROLES:
            raise Forbidden("Only the lot creator or an admin can upload the gate pass.")
        return auction, uploader

    def upload_gate_pass(self, auction_id, uploader_id, new_ref):
        auction, uploader = self.check_can_upload(auction_id, uploader_id)

        now = self.clock()
        applied, previous_ref = self.store.replace_gate_pass(auction.pk, new_ref, uploader.pk, now)
        if not applied:
            # status or winner changed under us
            self._require_won(self.store.get_auction(auction.pk))
            raise InvalidState("Gate pass upload only allowed for closed auctions with a winner.")

        if previous_ref and previous_ref != new_ref:
            transaction.on_commit(lambda: self._delete_artifact(auction.pk, previous_ref))

        logger.info("User %s uploaded gate pass for auction %s (%s)", uploader.pk, auction.pk, auction.lot_name)
        return {
            'gate_pass_ref': new_ref,
            'uploaded_by': uploader.pk,
            'uploaded_at': now,
        }

    def get_gate_pass(self, auction_id, caller_id):
        auction = self.store.get_auction(auction_id)
        if caller_id not in (auction.creator_id, auction.winner_id):
            raise Forbidden("Only the lot creator or the winner can view the gate pass.")
        return {
            'gate_pass_ref': auction.gate_pass_ref,
            'uploaded_by': auction.gate_pass_uploaded_by_id,
            'uploaded_at': auction.gate_pass_uploaded_at,
        }

    def _require_won(self, auction):
        if auction.status != AuctionStatus.CLOSED:
            raise InvalidState("Gate pass upload only allowed for closed auctions.")
        if auction.winner_id is None:
            raise InvalidState("No winner selected for this auction.")

    def _delete_artifact(self, auction_id, ref):
        try:
            self.storage.delete(ref)
        except Exception:
            logger.warning("Could not delete old gate pass %s for auction %s", ref, auction_id, exc_info=True)
        else:
            logger.info("Deleted old gate pass %s for auction %s", ref, auction_id)


def closed_with_winner():
    return Auction.objects.filter(status=AuctionStatus.CLOSED, winner__isnull=False)


def gate_pass_stats():
    counts = closed_with_winner().aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(gate_pass_ref__isnull=True)),
        completed=Count('id', filter=Q(gate_pass_ref__isnull=False)),
        admin_uploaded=Count('id', filter=Q(gate_pass_ref__isnull=False,
                                            gate_pass_uploaded_by__role__in=ADMIN_ROLES)),
        creator_uploaded=Count('id', filter=Q(gate_pass_ref__isnull=False,
                                              gate_pass_uploaded_by_id=F('creator_id'))),
    )
    total = counts['total']
    return {
        'total_closed_with_winner': total,
        'pending_gate_passes': counts['pending'],
        'completed_gate_passes': counts['completed'],
        'admin_uploaded': counts['admin_uploaded'],
        'creator_uploaded': counts['creator_uploaded'],
        'completion_rate': round(counts['completed'] * 100 / total) if total else 0,
    }
