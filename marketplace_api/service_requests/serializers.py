from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import ServiceRequest


class CreateServiceRequestSerializer(serializers.ModelSerializer):
    """
    Serializer for clients to create new service requests.

    Fields:
        - title, description (required inputs)
        - budget, deadline, attachments (optional)
    """
    class Meta:
        model = ServiceRequest
        fields = ['id', 'title', 'description', 'budget', 'deadline', 'attachments', 'status', 'created_at']
        read_only_fields = ['id', 'status', 'created_at']

    def validate_budget(self, value):
        if value < 0:
            raise serializers.ValidationError("Please enter a valid budget.")
        return value


class UpdateServiceRequestSerializer(CreateServiceRequestSerializer):
    class Meta(CreateServiceRequestSerializer.Meta):
        fields = ['title', 'description', 'budget', 'deadline', 'attachments']
        read_only_fields = []


class ServiceRequestSerializer(serializers.ModelSerializer):
    client = UserSummarySerializer(read_only=True)

    class Meta:
        model = ServiceRequest
        fields = [
            'id', 'client', 'title', 'description', 'budget', 'deadline', 'attachments',
            'status', 'rejection_reason', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class RejectServiceRequestSerializer(serializers.Serializer):
    reason = serializers.CharField()
