# serializers.py
from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    related_object = serializers.SerializerMethodField()
    extra_data = serializers.SerializerMethodField()
    read_at = serializers.DateTimeField(format="%Y-%m-%d %H:%M:%S", read_only=True)
    created_at = serializers.DateTimeField(format="%Y-%m-%d %H:%M:%S", read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'notification_type', 'message',
            'is_read', 'read_at', 'created_at', 'related_object', 'extra_data'
        ]
        read_only_fields = fields

    def get_related_object(self, obj):
        if not obj.content_type_id:
            return None
        related = {'type': obj.content_type.model, 'id': obj.object_id}
        auction = obj.content_object
        if auction is not None and obj.content_type.model == 'auction':
            related.update(lot_name=auction.lot_name, status=auction.status)
        return related

    def get_extra_data(self, obj):
        return obj.extra_data or None
