from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'related_id', 'related_type', 'is_read', 'created_at']
        read_only_fields = fields


class AdminNotificationSerializer(NotificationSerializer):
    user = serializers.SerializerMethodField()

    class Meta(NotificationSerializer.Meta):
        fields = NotificationSerializer.Meta.fields + ['user']
        read_only_fields = fields

    def get_user(self, obj):
        return {
            'id': str(obj.user_id),
            'email': obj.user.email,
            'full_name': obj.user.full_name,
        }
