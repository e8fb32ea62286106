# auctions/models.py
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from decimal import Decimal


class AuctionStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'        # created, awaiting admin review
    APPROVED = 'APPROVED', 'Approved'     # scheduled, not yet live (await start_date)
    LIVE = 'LIVE', 'Live'
    CLOSED = 'CLOSED', 'Closed'
    CANCELLED = 'CANCELLED', 'Cancelled'


CANCELLABLE_STATUSES = (AuctionStatus.PENDING, AuctionStatus.APPROVED)


class BidEventType(models.TextChoices):
    BASE_PRICE = 'BASE_PRICE', 'Base Price'
    BID_PLACED = 'BID_PLACED', 'Bid Placed'
    WINNER_SELECTED = 'WINNER_SELECTED', 'Winner Selected'


class Auction(models.Model):
    creator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='auctions')

    lot_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    waste_type = models.CharField(max_length=100, blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('1.00'))
    unit = models.CharField(max_length=20, blank=True)
    location = models.CharField(max_length=255, blank=True)

    base_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    current_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    min_increment_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'),
                                                validators=[MinValueValidator(Decimal('0.00'))])

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    status = models.CharField(max_length=20, choices=AuctionStatus.choices, default=AuctionStatus.PENDING)
    winner = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='won_auctions')

    gate_pass_ref = models.CharField(max_length=512, null=True, blank=True)
    gate_pass_uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='uploaded_gate_passes')
    gate_pass_uploaded_at = models.DateTimeField(null=True, blank=True)

    # stamped by set-based status sweeps so the touched rows can be re-selected
    transition_token = models.UUIDField(null=True, blank=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'start_date'], name='auction_status_start_idx'),
            models.Index(fields=['status', 'end_date'], name='auction_status_end_idx'),
            models.Index(fields=['transition_token'], name='auction_transition_idx'),
        ]

    def __str__(self):
        return f"{self.lot_name} (#{self.id})"

    @property
    def has_winner(self):
        return self.winner_id is not None


class Participant(models.Model):
    """A user's standing (highest) bid on one auction."""
    auction = models.ForeignKey(Auction, on_delete=models.CASCADE, related_name='participants')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='participations')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-amount', 'updated_at']
        constraints = [
            models.UniqueConstraint(fields=['auction', 'user'], name='unique_auction_participant')
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.amount} on {self.auction_id}"


class BidEvent(models.Model):
    """Append-only audit record. Never updated once written."""
    auction = models.ForeignKey(Auction, on_delete=models.CASCADE, related_name='events')
    type = models.CharField(max_length=20, choices=BidEventType.choices)
    # bidder for BID_PLACED, chosen winner for WINNER_SELECTED, empty for BASE_PRICE
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='bid_events')
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='performed_bid_events')
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['auction', 'type', 'created_at'], name='bidevent_auction_type_idx'),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} on {self.auction_id}"
