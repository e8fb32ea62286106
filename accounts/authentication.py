# authentication.py
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
import jwt
from django.conf import settings
from .models import User


class JWTAuthentication(BaseAuthentication):
    """
    Verifies bearer tokens issued by the identity service.
    Only the token currently recorded on the user is accepted.
    """

    def authenticate(self, request):
        auth = request.headers.get('Authorization')

        if not auth or not auth.startswith('Bearer '):
            return None

        token = auth.split(' ')[1]

        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationFailed("Invalid token")

        try:
            user = User.objects.get(id=payload["user_id"])
        except (KeyError, User.DoesNotExist):
            raise AuthenticationFailed("User not found")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        # single active session per user
        if user.current_token_user != token:
            raise AuthenticationFailed("Invalid session token")

        return (user, token)

    def authenticate_header(self, request):
        return 'Bearer'
