from decimal import Decimal

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Proposal


class AttachmentSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True)
    name = serializers.CharField(required=False, allow_blank=True, default='')
    url = serializers.CharField()
    type = serializers.CharField(required=False, allow_blank=True, default='file')


class CreateProposalProviderSerializer(serializers.Serializer):
    """
    Input for providers submitting proposals.

    Validates a non-negative price and at least one day of work; duplicate and
    request-status checks happen in ``ProposalService.submit``.
    """
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    duration_days = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    attachments = AttachmentSerializer(many=True, required=False, default=list)


class UpdateProposalProviderSerializer(serializers.Serializer):
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    duration_days = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    attachments = AttachmentSerializer(many=True, required=False)


class ProposalSerializer(serializers.ModelSerializer):
    service_provider = UserSummarySerializer(read_only=True)
    request_title = serializers.CharField(source='service_request.title', read_only=True)

    class Meta:
        model = Proposal
        fields = [
            'id', 'service_request', 'request_title', 'service_provider', 'price', 'duration_days',
            'notes', 'attachments', 'status', 'rejection_reason', 'accepted_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class RejectProposalSerializer(serializers.Serializer):
    reason = serializers.CharField()


class UploadAttachmentSerializer(serializers.Serializer):
    file = serializers.FileField()
