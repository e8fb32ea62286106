# auctions/urls.py
from django.urls import path
from .views import (
    AuctionListCreateView, AuctionDetailView, MyAuctionsView, AdminPendingAuctionsView,
    ApproveAuctionView, CancelAuctionView, PlaceBidView, RefreshStatusView,
    SelectWinnerView, ChangeWinnerView, BiddingHistoryView, AuctionEventsView,
    GatePassView, WinnerSelectionPendingView, WinnerSelectionCompletedView,
    WinnerSelectionStatsView, GatePassListView, GatePassStatsView,
)

urlpatterns = [
    # public / creator
    path('', AuctionListCreateView.as_view(), name='auction-list'),
    path('<int:pk>/', AuctionDetailView.as_view(), name='auction-detail'),
    path('mine/', MyAuctionsView.as_view(), name='my-auctions'),
    path('<int:pk>/cancel/', CancelAuctionView.as_view(), name='auction-cancel'),

    # bidding
    path('<int:pk>/bid/', PlaceBidView.as_view(), name='auction-bid'),
    path('<int:pk>/history/', BiddingHistoryView.as_view(), name='auction-history'),
    path('<int:pk>/events/', AuctionEventsView.as_view(), name='auction-events'),

    # admin
    path('admin/pending/', AdminPendingAuctionsView.as_view(), name='auction-admin-pending'),
    path('<int:pk>/approve/', ApproveAuctionView.as_view(), name='auction-approve'),
    path('refresh-status/', RefreshStatusView.as_view(), name='auction-refresh-status'),

    # winner selection
    path('<int:pk>/select-winner/', SelectWinnerView.as_view(), name='auction-select-winner'),
    path('<int:pk>/change-winner/', ChangeWinnerView.as_view(), name='auction-change-winner'),
    path('winner-selection/pending/', WinnerSelectionPendingView.as_view(), name='winner-selection-pending'),
    path('winner-selection/completed/', WinnerSelectionCompletedView.as_view(), name='winner-selection-completed'),
    path('winner-selection/stats/', WinnerSelectionStatsView.as_view(), name='winner-selection-stats'),

    # gate pass
    path('<int:pk>/gate-pass/', GatePassView.as_view(), name='auction-gate-pass'),
    path('gate-passes/', GatePassListView.as_view(), name='gate-pass-list'),
    path('gate-passes/stats/', GatePassStatsView.as_view(), name='gate-pass-stats'),
]
