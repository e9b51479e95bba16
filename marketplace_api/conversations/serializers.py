from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from proposals.serializers import AttachmentSerializer
from .models import Message


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'sender', 'sender_role', 'text', 'attachment', 'created_at']
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    text = serializers.CharField()
    attachment = AttachmentSerializer(required=False, allow_null=True)


class SystemMessageSerializer(serializers.Serializer):
    message = serializers.CharField()
