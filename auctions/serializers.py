from rest_framework import serializers
from decimal import Decimal
from django.core.files.storage import default_storage
from .models import Auction, Participant, BidEvent


class UserSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    company = serializers.CharField(read_only=True)


class AuctionCreateSerializer(serializers.ModelSerializer):
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    min_increment_percent = serializers.DecimalField(max_digits=5, decimal_places=2,
                                                     min_value=Decimal('0.00'), required=False,
                                                     default=Decimal('0.00'))

    class Meta:
        model = Auction
        fields = [
            'id', 'lot_name', 'description', 'waste_type', 'quantity', 'unit', 'location',
            'base_price', 'min_increment_percent', 'start_date', 'end_date',
        ]

    def validate(self, data):
        start_date = data.get('start_date')
        end_date = data.get('end_date')
        if start_date and end_date and end_date <= start_date:
            raise serializers.ValidationError("end_date must be after start_date.")
        quantity = data.get('quantity')
        if quantity is not None and quantity <= 0:
            raise serializers.ValidationError("quantity must be positive.")
        return data


class AuctionSnapshotSerializer(serializers.ModelSerializer):
    """Full auction state as broadcast to subscribers and returned by mutations."""
    creator = UserSummarySerializer(read_only=True)
    winner = UserSummarySerializer(read_only=True)
    participant_count = serializers.SerializerMethodField()

    class Meta:
        model = Auction
        fields = [
            'id', 'lot_name', 'description', 'waste_type', 'quantity', 'unit', 'location',
            'status', 'base_price', 'current_price', 'min_increment_percent',
            'start_date', 'end_date', 'creator', 'winner',
            'gate_pass_uploaded_at', 'participant_count',
            'created_at', 'updated_at', 'approved_at', 'cancelled_at',
        ]
        read_only_fields = fields

    def get_participant_count(self, obj):
        return obj.participants.count()


class ParticipantSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Participant
        fields = ['user', 'amount', 'updated_at']


class AuctionDetailSerializer(AuctionSnapshotSerializer):
    participants = ParticipantSerializer(many=True, read_only=True)

    class Meta(AuctionSnapshotSerializer.Meta):
        fields = AuctionSnapshotSerializer.Meta.fields + ['participants']
        read_only_fields = fields


class PlaceBidSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class SelectWinnerSerializer(serializers.Serializer):
    winner_id = serializers.IntegerField(min_value=1)


class ChangeWinnerSerializer(serializers.Serializer):
    winner_id = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class GatePassUploadSerializer(serializers.Serializer):
    gate_pass = serializers.FileField()

    def validate_gate_pass(self, value):
        content_type = getattr(value, 'content_type', '')
        if content_type != 'application/pdf' and not value.name.lower().endswith('.pdf'):
            raise serializers.ValidationError("Only PDF files are allowed.")
        return value


class BidEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = BidEvent
        fields = ['id', 'type', 'user', 'amount', 'actor', 'reason', 'created_at']


class BiddingHistoryEntrySerializer(serializers.Serializer):
    type = serializers.CharField()
    user_id = serializers.IntegerField(allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    timestamp = serializers.DateTimeField()


class BiddingHistorySerializer(serializers.Serializer):
    auction_id = serializers.IntegerField()
    bids = BiddingHistoryEntrySerializer(many=True)
    winner_id = serializers.IntegerField(allow_null=True)


class GatePassSerializer(serializers.Serializer):
    gate_pass_ref = serializers.CharField(allow_null=True)
    gate_pass_url = serializers.SerializerMethodField()
    uploaded_by = serializers.IntegerField(allow_null=True)
    uploaded_at = serializers.DateTimeField(allow_null=True)

    def get_gate_pass_url(self, obj):
        ref = obj.get('gate_pass_ref')
        if not ref:
            return None
        return default_storage.url(ref)


class GatePassListSerializer(serializers.ModelSerializer):
    creator = UserSummarySerializer(read_only=True)
    winner = UserSummarySerializer(read_only=True)
    has_gate_pass = serializers.SerializerMethodField()
    uploaded_by = serializers.IntegerField(source='gate_pass_uploaded_by_id', read_only=True)

    class Meta:
        model = Auction
        fields = [
            'id', 'lot_name', 'status', 'end_date', 'creator', 'winner',
            'has_gate_pass', 'uploaded_by', 'gate_pass_uploaded_at',
        ]

    def get_has_gate_pass(self, obj):
        return bool(obj.gate_pass_ref)
