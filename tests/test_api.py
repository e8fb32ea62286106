from decimal import Decimal

import pytest
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from auctions.events import BidPlaced
from auctions.ledger import LedgerStore
from auctions.models import Auction, AuctionStatus
from notifications.sinks import NotificationSink

pytestmark = pytest.mark.django_db


def pdf(name='gate-pass.pdf'):
    return SimpleUploadedFile(name, b'%PDF-1.4 gate pass', content_type='application/pdf')


def test_public_list_shows_approved_and_live_only(api_client, make_auction):
    live = make_auction(status=AuctionStatus.LIVE)
    approved = make_auction(status=AuctionStatus.APPROVED)
    make_auction(status=AuctionStatus.PENDING)
    make_auction(status=AuctionStatus.CLOSED)

    response = api_client.get(reverse('auction-list'))

    assert response.status_code == 200
    assert {row['id'] for row in response.data['results']} == {live.pk, approved.pk}


def test_create_requires_waste_generator(api_client, creator, bidder, make_auction):
    template = make_auction(status=AuctionStatus.PENDING)
    payload = {
        'lot_name': 'Copper cable offcuts',
        'waste_type': 'metal',
        'quantity': '3.50',
        'unit': 't',
        'base_price': '4200.00',
        'min_increment_percent': '5.00',
        'start_date': template.start_date.isoformat(),
        'end_date': template.end_date.isoformat(),
    }

    api_client.force_authenticate(bidder)
    assert api_client.post(reverse('auction-list'), payload).status_code == 403

    api_client.force_authenticate(creator)
    response = api_client.post(reverse('auction-list'), payload)
    assert response.status_code == 201
    assert response.data['status'] == AuctionStatus.PENDING
    assert response.data['current_price'] == '4200.00'


def test_create_rejects_end_before_start(api_client, creator, make_auction):
    template = make_auction(status=AuctionStatus.PENDING)
    api_client.force_authenticate(creator)

    response = api_client.post(reverse('auction-list'), {
        'lot_name': 'Bad dates',
        'base_price': '10.00',
        'start_date': template.end_date.isoformat(),
        'end_date': template.start_date.isoformat(),
    })

    assert response.status_code == 400


def test_approve_is_admin_only(api_client, make_auction, admin_user, creator):
    auction = make_auction(status=AuctionStatus.PENDING)
    url = reverse('auction-approve', args=[auction.pk])

    api_client.force_authenticate(creator)
    assert api_client.post(url).status_code == 403

    api_client.force_authenticate(admin_user)
    response = api_client.post(url)
    assert response.status_code == 200
    assert response.data['status'] == AuctionStatus.APPROVED


def test_cancel_by_creator_and_forbidden_for_others(api_client, make_auction, creator, bidder):
    auction = make_auction(status=AuctionStatus.APPROVED)
    url = reverse('auction-cancel', args=[auction.pk])

    api_client.force_authenticate(bidder)
    assert api_client.post(url).status_code == 403

    api_client.force_authenticate(creator)
    response = api_client.post(url)
    assert response.status_code == 200
    assert response.data['status'] == AuctionStatus.CANCELLED


def test_cancel_live_auction_is_invalid_state(api_client, make_auction, admin_user):
    auction = make_auction(status=AuctionStatus.LIVE)
    api_client.force_authenticate(admin_user)

    response = api_client.post(reverse('auction-cancel', args=[auction.pk]))

    assert response.status_code == 400
    assert response.data['detail'].code == 'invalid_state'


def test_bid_endpoint(api_client, make_auction, bidder):
    auction = make_auction(base_price='1000.00', min_increment_percent='5')
    url = reverse('auction-bid', args=[auction.pk])
    api_client.force_authenticate(bidder)

    low = api_client.post(url, {'amount': '1049.99'})
    assert low.status_code == 400
    assert low.data['minimum'] == '1050.00'

    ok = api_client.post(url, {'amount': '1050.00'})
    assert ok.status_code == 201
    assert ok.data == {'accepted': True, 'new_current_price': '1050.00'}


def test_bid_requires_authentication(api_client, make_auction):
    auction = make_auction()
    response = api_client.post(reverse('auction-bid', args=[auction.pk]), {'amount': '2000.00'})
    assert response.status_code in (401, 403)


def test_bid_on_unknown_auction_is_404(api_client, bidder):
    api_client.force_authenticate(bidder)
    assert api_client.post(reverse('auction-bid', args=[424242]), {'amount': '10.00'}).status_code == 404


def test_refresh_status(api_client, make_auction, admin_user):
    make_auction(status=AuctionStatus.LIVE, due=True)
    api_client.force_authenticate(admin_user)

    response = api_client.post(reverse('auction-refresh-status'))

    assert response.status_code == 200
    assert response.data == {'updated_to_live': 0, 'updated_to_closed': 1}


def test_winner_flow_and_history(api_client, closed_auction, creator, admin_user, bidder, other_bidder):
    api_client.force_authenticate(bidder)
    assert api_client.post(reverse('auction-select-winner', args=[closed_auction.pk]),
                           {'winner_id': bidder.pk}).status_code == 403

    api_client.force_authenticate(creator)
    selected = api_client.post(reverse('auction-select-winner', args=[closed_auction.pk]), {'winner_id': bidder.pk})
    assert selected.status_code == 200
    again = api_client.post(reverse('auction-select-winner', args=[closed_auction.pk]), {'winner_id': bidder.pk})
    assert again.status_code == 400

    api_client.force_authenticate(admin_user)
    changed = api_client.post(reverse('auction-change-winner', args=[closed_auction.pk]),
                              {'winner_id': other_bidder.pk, 'reason': 'Did not collect'})
    assert changed.status_code == 200
    assert changed.data['previous_winner']['id'] == bidder.pk
    assert changed.data['new_winner']['id'] == other_bidder.pk

    history = api_client.get(reverse('auction-history', args=[closed_auction.pk]))
    assert history.status_code == 200
    assert history.data['winner_id'] == other_bidder.pk
    assert [b['type'] for b in history.data['bids']] == ['BASE_PRICE', 'BID_PLACED', 'BID_PLACED']

    events = api_client.get(reverse('auction-events', args=[closed_auction.pk]))
    assert [e['type'] for e in events.data][-2:] == ['WINNER_SELECTED', 'WINNER_SELECTED']
    assert events.data[-1]['reason'] == 'Did not collect'


def test_winner_selection_admin_listings(api_client, closed_auction, make_auction, admin_user):
    make_auction(status=AuctionStatus.CLOSED)
    api_client.force_authenticate(admin_user)

    pending = api_client.get(reverse('winner-selection-pending'))
    completed = api_client.get(reverse('winner-selection-completed'))
    stats = api_client.get(reverse('winner-selection-stats'))

    assert pending.data['count'] == 2
    assert completed.data['count'] == 0
    assert stats.data['pending_winner_selection'] == 2


def test_gate_pass_upload_replace_and_read(api_client, closed_auction, store, creator, bidder, other_bidder,
                                           django_capture_on_commit_callbacks):
    store.record_winner(closed_auction.pk, bidder.pk, actor_id=creator.pk)
    url = reverse('auction-gate-pass', args=[closed_auction.pk])

    api_client.force_authenticate(bidder)
    assert api_client.post(url, {'gate_pass': pdf()}, format='multipart').status_code == 403

    api_client.force_authenticate(creator)
    first = api_client.post(url, {'gate_pass': pdf()}, format='multipart')
    assert first.status_code == 201
    first_ref = first.data['gate_pass']['gate_pass_ref']
    assert first_ref.startswith('gatepasses/')
    assert default_storage.exists(first_ref)

    with django_capture_on_commit_callbacks(execute=True):
        second = api_client.post(url, {'gate_pass': pdf('new.pdf')}, format='multipart')
    second_ref = second.data['gate_pass']['gate_pass_ref']
    assert second_ref != first_ref
    assert not default_storage.exists(first_ref)

    api_client.force_authenticate(bidder)
    read = api_client.get(url)
    assert read.status_code == 200
    assert read.data['gate_pass_ref'] == second_ref

    api_client.force_authenticate(other_bidder)
    assert api_client.get(url).status_code == 403


def test_gate_pass_rejects_non_pdf(api_client, closed_auction, store, creator, bidder):
    store.record_winner(closed_auction.pk, bidder.pk, actor_id=creator.pk)
    api_client.force_authenticate(creator)

    response = api_client.post(
        reverse('auction-gate-pass', args=[closed_auction.pk]),
        {'gate_pass': SimpleUploadedFile('pass.png', b'png', content_type='image/png')},
        format='multipart',
    )

    assert response.status_code == 400
    assert Auction.objects.get(pk=closed_auction.pk).gate_pass_ref is None


def test_gate_pass_upload_is_discarded_when_recording_fails(api_client, closed_auction, store, creator, bidder,
                                                           monkeypatch):
    store.record_winner(closed_auction.pk, bidder.pk, actor_id=creator.pk)
    saved = []

    def failing_replace(self, auction_id, new_ref, uploader_id, now):
        saved.append(new_ref)
        raise RuntimeError("connection reset")

    monkeypatch.setattr(LedgerStore, 'replace_gate_pass', failing_replace)
    api_client.force_authenticate(creator)

    with pytest.raises(RuntimeError):
        api_client.post(reverse('auction-gate-pass', args=[closed_auction.pk]), {'gate_pass': pdf()},
                        format='multipart')

    assert len(saved) == 1
    assert not default_storage.exists(saved[0])
    assert Auction.objects.get(pk=closed_auction.pk).gate_pass_ref is None


def test_gate_pass_listing_hides_reference(api_client, closed_auction, store, creator, bidder, admin_user):
    store.record_winner(closed_auction.pk, bidder.pk, actor_id=creator.pk)
    store.replace_gate_pass(closed_auction.pk, 'gatepasses/x.pdf', creator.pk, closed_auction.end_date)
    api_client.force_authenticate(admin_user)

    completed = api_client.get(reverse('gate-pass-list'), {'status': 'completed'})
    pending = api_client.get(reverse('gate-pass-list'), {'status': 'pending'})

    assert completed.data['count'] == 1
    assert pending.data['count'] == 0
    row = completed.data['results'][0]
    assert row['has_gate_pass'] is True
    assert 'gate_pass_ref' not in row

    stats = api_client.get(reverse('gate-pass-stats'))
    assert stats.data['completed_gate_passes'] == 1


def test_notifications_endpoints(api_client, make_auction, creator, bidder):
    auction = make_auction()
    NotificationSink().publish(BidPlaced(auction=auction))
    api_client.force_authenticate(creator)

    listed = api_client.get(reverse('notification-list'), {'auction': auction.pk})
    assert listed.data['count'] == 1
    notification_id = listed.data['results'][0]['id']
    assert listed.data['results'][0]['related_object']['lot_name'] == auction.lot_name

    assert api_client.get(reverse('notification-unread-count')).data == {'unread_count': 1}
    api_client.post(reverse('notification-mark-read', args=[notification_id]))
    assert api_client.get(reverse('notification-unread-count')).data == {'unread_count': 0}

    api_client.force_authenticate(bidder)
    assert api_client.get(reverse('notification-detail', args=[notification_id])).status_code == 404


def test_detail_is_public_and_activates_due_lot(api_client, make_auction):
    auction = make_auction(status=AuctionStatus.APPROVED, due=True)

    response = api_client.get(reverse('auction-detail', args=[auction.pk]))

    assert response.status_code == 200
    assert response.data['status'] == AuctionStatus.LIVE
    assert response.data['current_price'] == str(Decimal('1000.00'))
