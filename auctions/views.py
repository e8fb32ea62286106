# auctions/views.py
import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework import generics, permissions, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissionsUsers import IsAuctionCreatorOrAdmin, IsSuperAdminOrAdmin, IsWasteGenerator

from .bidding import BidPlacementEngine
from .gate_pass import GatePassHandoff, closed_with_winner, gate_pass_stats
from .ledger import LedgerStore
from .models import Auction, AuctionStatus
from .serializers import (
    AuctionCreateSerializer, AuctionDetailSerializer, AuctionSnapshotSerializer,
    BidEventSerializer, BiddingHistorySerializer, ChangeWinnerSerializer,
    GatePassListSerializer, GatePassSerializer, GatePassUploadSerializer,
    PlaceBidSerializer, SelectWinnerSerializer, UserSummarySerializer,
)
from .services import AuctionLifecycle
from .sweeper import StatusTransitionSweeper
from .winners import WinnerSelectionService, winner_selection_stats

logger = logging.getLogger(__name__)

PUBLIC_STATUSES = [
    AuctionStatus.APPROVED,
    AuctionStatus.LIVE,
]


class AuctionPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class CreatorOrAdminMixin:
    """Loads the auction and applies the object permissions of the view."""
    permission_classes = [IsAuctionCreatorOrAdmin]

    def get_auction(self, request, pk):
        auction = LedgerStore().get_auction(pk)
        self.check_object_permissions(request, auction)
        return auction


class AuctionListCreateView(APIView):
    """
    GET  /api/auctions/        approved and live lots, public
    POST /api/auctions/        submit a lot for approval (waste generators)
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [permissions.IsAuthenticated(), IsWasteGenerator()]
        return []

    def get(self, request):
        qs = (Auction.objects
              .filter(status__in=PUBLIC_STATUSES)
              .select_related('creator', 'winner')
              .order_by('end_date'))
        status_ = request.query_params.get('status')
        if status_:
            qs = qs.filter(status=status_)
        waste_type = request.query_params.get('waste_type')
        if waste_type:
            qs = qs.filter(waste_type__iexact=waste_type)

        paginator = AuctionPagination()
        page = paginator.paginate_queryset(qs, request)
        return paginator.get_paginated_response(AuctionSnapshotSerializer(page, many=True).data)

    def post(self, request):
        ser = AuctionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        auction = AuctionLifecycle().create_auction(request.user, **ser.validated_data)
        return Response(AuctionSnapshotSerializer(auction).data, status=status.HTTP_201_CREATED)


class AuctionDetailView(APIView):
    permission_classes = []  # public

    def get(self, request, pk):
        store = LedgerStore()
        store.get_auction(pk)
        # opportunistic activation
        AuctionLifecycle(store=store).activate_if_due(pk)
        return Response(AuctionDetailSerializer(store.get_auction(pk)).data)


class MyAuctionsView(generics.ListAPIView):
    """
    GET /api/auctions/mine/?status=
    """
    permission_classes = [permissions.IsAuthenticated, IsWasteGenerator]
    serializer_class = AuctionSnapshotSerializer
    pagination_class = AuctionPagination

    def get_queryset(self):
        qs = (Auction.objects
              .filter(creator=self.request.user)
              .select_related('creator', 'winner')
              .order_by('-created_at'))
        status_ = self.request.query_params.get('status')
        if status_:
            qs = qs.filter(status=status_)
        return qs


class AdminPendingAuctionsView(generics.ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]
    serializer_class = AuctionSnapshotSerializer
    pagination_class = AuctionPagination

    def get_queryset(self):
        return (Auction.objects
                .filter(status=AuctionStatus.PENDING)
                .select_related('creator')
                .order_by('start_date'))


class ApproveAuctionView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]

    def post(self, request, pk):
        auction = AuctionLifecycle().approve(pk)
        return Response(AuctionSnapshotSerializer(auction).data)


class CancelAuctionView(CreatorOrAdminMixin, APIView):

    def post(self, request, pk):
        self.get_auction(request, pk)
        auction = AuctionLifecycle().cancel(pk)
        return Response(AuctionSnapshotSerializer(auction).data)


class PlaceBidView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        ser = PlaceBidSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = BidPlacementEngine().place_bid(pk, request.user.id, ser.validated_data['amount'])
        return Response({
            'accepted': result.accepted,
            'new_current_price': str(result.new_current_price),
        }, status=status.HTTP_201_CREATED)


class RefreshStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]

    def post(self, request):
        result = StatusTransitionSweeper().sweep()
        return Response(result.as_dict())


class SelectWinnerView(CreatorOrAdminMixin, APIView):

    def post(self, request, pk):
        self.get_auction(request, pk)
        ser = SelectWinnerSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        auction = WinnerSelectionService().select_winner(pk, ser.validated_data['winner_id'], request.user.id)
        return Response({
            'message': 'Winner selected successfully.',
            'auction': AuctionSnapshotSerializer(auction).data,
        })


class ChangeWinnerView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]

    def post(self, request, pk):
        ser = ChangeWinnerSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = WinnerSelectionService().change_winner(
            pk,
            ser.validated_data['winner_id'],
            request.user.id,
            reason=ser.validated_data.get('reason'),
        )
        return Response({
            'message': 'Winner changed successfully.',
            'auction': AuctionSnapshotSerializer(result['auction']).data,
            'previous_winner': UserSummarySerializer(result['previous_winner']).data,
            'new_winner': UserSummarySerializer(result['new_winner']).data,
            'reason': result['reason'],
        })


class BiddingHistoryView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        history = WinnerSelectionService().get_bidding_history(pk)
        return Response(BiddingHistorySerializer(history).data)


class AuctionEventsView(CreatorOrAdminMixin, APIView):
    """Full audit trail of an auction, including who picked each winner and why."""

    def get(self, request, pk):
        auction = self.get_auction(request, pk)
        events = LedgerStore().events(auction.pk)
        return Response(BidEventSerializer(events, many=True).data)


class GatePassView(APIView):
    """
    GET  /api/auctions/<pk>/gate-pass/   creator or winner
    POST /api/auctions/<pk>/gate-pass/   creator or admin, multipart ``gate_pass`` PDF
    """
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def get(self, request, pk):
        gate_pass = GatePassHandoff().get_gate_pass(pk, request.user.id)
        return Response(GatePassSerializer(gate_pass).data)

    def post(self, request, pk):
        handoff = GatePassHandoff()
        # refuse early so rejected uploads never reach storage
        handoff.check_can_upload(pk, request.user.id)

        ser = GatePassUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data['gate_pass']

        upload_dir = getattr(settings, 'GATE_PASS_UPLOAD_DIR', 'gatepasses')
        _, ext = os.path.splitext(upload.name)
        name = default_storage.save(f"{upload_dir}/auction_{pk}_{uuid.uuid4().hex}{ext.lower()}", upload)
        try:
            result = handoff.upload_gate_pass(pk, request.user.id, name)
        except Exception:
            logger.info("Discarding rejected gate pass upload %s for auction %s", name, pk)
            default_storage.delete(name)
            raise

        return Response({
            'message': 'Gate pass uploaded successfully.',
            'gate_pass': GatePassSerializer(result).data,
        }, status=status.HTTP_201_CREATED)


class WinnerSelectionPendingView(generics.ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]
    serializer_class = AuctionSnapshotSerializer
    pagination_class = AuctionPagination

    def get_queryset(self):
        return (Auction.objects
                .filter(status=AuctionStatus.CLOSED, winner__isnull=True)
                .select_related('creator')
                .order_by('-end_date'))


class WinnerSelectionCompletedView(generics.ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]
    serializer_class = AuctionSnapshotSerializer
    pagination_class = AuctionPagination

    def get_queryset(self):
        return (Auction.objects
                .filter(status=AuctionStatus.CLOSED, winner__isnull=False)
                .select_related('creator', 'winner')
                .order_by('-updated_at'))


class WinnerSelectionStatsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]

    def get(self, request):
        return Response(winner_selection_stats())


class GatePassListView(generics.ListAPIView):
    """
    GET /api/auctions/gate-passes/?status=pending|completed
    """
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]
    serializer_class = GatePassListSerializer
    pagination_class = AuctionPagination

    def get_queryset(self):
        qs = closed_with_winner().select_related('creator', 'winner').order_by('-end_date')
        status_ = self.request.query_params.get('status')
        if status_ == 'pending':
            qs = qs.filter(gate_pass_ref__isnull=True)
        elif status_ == 'completed':
            qs = qs.filter(gate_pass_ref__isnull=False)
        return qs


class GatePassStatsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsSuperAdminOrAdmin]

    def get(self, request):
        return Response(gate_pass_stats())
