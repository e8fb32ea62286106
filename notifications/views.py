# notifications/views.py
from django.contrib.contenttypes.models import ContentType
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .serializers import NotificationSerializer


class NotificationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class NotificationListView(APIView):
    """
    Notifications of the authenticated user, newest first.

    Query params: ``is_read`` (true/false), ``type`` (notification type),
    ``auction`` (only notifications about that auction).
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = request.user.user_notifications.all().order_by('-created_at')

        is_read = request.query_params.get('is_read')
        if is_read is not None:
            notifications = notifications.filter(is_read=is_read.lower() == 'true')

        notification_type = request.query_params.get('type')
        if notification_type:
            notifications = notifications.filter(notification_type=notification_type)

        auction_id = request.query_params.get('auction')
        if auction_id:
            notifications = notifications.filter(
                content_type=ContentType.objects.get(app_label='auctions', model='auction'),
                object_id=auction_id,
            )

        paginator = NotificationPagination()
        page = paginator.paginate_queryset(notifications, request)
        return paginator.get_paginated_response(NotificationSerializer(page, many=True).data)


class NotificationDetailView(APIView):
    """Retrieving a notification marks it as read."""
    permission_classes = [IsAuthenticated]

    def get(self, request, notification_id):
        notification = get_object_or_404(Notification, id=notification_id, user=request.user)
        notification.mark_as_read()
        return Response(NotificationSerializer(notification).data)


class MarkAsReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, notification_id):
        notification = get_object_or_404(Notification, id=notification_id, user=request.user)
        notification.mark_as_read()
        return Response({'status': 'marked as read', 'read_at': notification.read_at},
                        status=status.HTTP_200_OK)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'unread_count': request.user.user_notifications.filter(is_read=False).count()})


class MarkAllAsReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated_count = request.user.user_notifications.filter(is_read=False).update(
            is_read=True,
            read_at=timezone.now()
        )
        return Response({'status': 'success', 'read_count': updated_count})
