import jwt
import pytest
from django.conf import settings
from django.urls import reverse

pytestmark = pytest.mark.django_db


def issue_token(user):
    token = jwt.encode({'user_id': user.id}, settings.SECRET_KEY, algorithm='HS256')
    user.current_token_user = token
    user.save(update_fields=['current_token_user'])
    return token


def test_current_session_token_is_accepted(api_client, bidder):
    token = issue_token(bidder)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

    assert api_client.get(reverse('notification-unread-count')).status_code == 200


def test_superseded_token_is_rejected(api_client, bidder):
    old = issue_token(bidder)
    newer = jwt.encode({'user_id': bidder.id, 'session': 2}, settings.SECRET_KEY, algorithm='HS256')
    bidder.current_token_user = newer
    bidder.save(update_fields=['current_token_user'])
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {old}')

    response = api_client.get(reverse('notification-unread-count'))

    assert response.status_code == 401
    assert response['WWW-Authenticate'] == 'Bearer'


def test_garbage_token_is_rejected(api_client, db):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    assert api_client.get(reverse('notification-unread-count')).status_code == 401


def test_inactive_user_is_rejected(api_client, bidder):
    token = issue_token(bidder)
    bidder.is_active = False
    bidder.save(update_fields=['is_active'])
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

    assert api_client.get(reverse('notification-unread-count')).status_code == 401
