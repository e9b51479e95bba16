from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Booking
from .services import SETTLE_ACTIONS, WARNING_TARGETS


class BookingSerializer(serializers.ModelSerializer):
    client = UserSummarySerializer(read_only=True)
    service_provider = UserSummarySerializer(read_only=True)
    request_title = serializers.CharField(source='service_request.title', read_only=True)
    held_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'service_request', 'request_title', 'offer', 'client', 'service_provider',
            'price', 'duration_days', 'notes', 'status', 'payment_status', 'held_amount',
            'deadline', 'start_date', 'timeline', 'warnings', 'risk_score', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AdminBookingSerializer(BookingSerializer):
    """Admin view of a booking, including the override audit trail."""

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ['history_logs']
        read_only_fields = fields


class AdminStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES)


class WarningSerializer(serializers.Serializer):
    target = serializers.ChoiceField(choices=WARNING_TARGETS)
    message = serializers.CharField()


class SettleSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=SETTLE_ACTIONS)
