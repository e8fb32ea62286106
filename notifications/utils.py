from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync
from .models import Notification
from .serializers import NotificationSerializer


def notification_group(user_id):
    return f'notifications_{user_id}'


def create_notification(user, notification_type, message, content_object=None, extra_data=None):
    return Notification.objects.create(
        user=user,
        notification_type=notification_type,
        message=message,
        content_object=content_object,
        extra_data=extra_data,
    )


def send_websocket_notification(user, notification):
    """Send notification via WebSocket to specific user"""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    serializer = NotificationSerializer(notification)
    notification_data = serializer.data

    async_to_sync(channel_layer.group_send)(
        notification_group(user.id),
        {
            'type': 'send_notification',
            'notification': notification_data
        }
    )
