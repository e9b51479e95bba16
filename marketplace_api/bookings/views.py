from django.db.models import Q
from rest_framework import views as drf_views, generics, status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsClient, IsServiceProvider, IsMarketplaceAdmin
from marketplace_api.exceptions import Forbidden
from . import serializers as my_serializers
from .models import Booking
from .services import BookingService


class ListBookingMineAPIView(generics.ListAPIView):
    """Bookings where the caller is either the client or the service provider."""
    serializer_class = my_serializers.BookingSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ['status', 'payment_status']
    ordering_fields = ['created_at', 'deadline', 'price']
    ordering = ['-created_at']

    def get_queryset(self):
        user = self.request.user
        return Booking.objects.filter(Q(client=user) | Q(service_provider=user)).select_related(
            'client', 'service_provider', 'service_request'
        )


class RetrieveBookingAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        booking = BookingService().get(id)
        user = request.user
        if user.is_marketplace_admin:
            return Response(my_serializers.AdminBookingSerializer(booking).data)
        if user.pk not in (booking.client_id, booking.service_provider_id):
            raise Forbidden("You are not a participant of this booking.")
        return Response(my_serializers.BookingSerializer(booking).data)


class CancelBookingClientAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_summary="Cancel a booking and refund held funds",
        responses={200: my_serializers.BookingSerializer(), 409: "Booking is completed or already canceled"}
    )
    def patch(self, request, id):
        booking = BookingService().cancel(id, request.user)
        return Response({
            'detail': "Booking canceled.",
            'booking': my_serializers.BookingSerializer(booking).data
        }, status=status.HTTP_200_OK)


class TransitionBookingProviderAPIView(drf_views.APIView):
    """accept (pending -> active), start (records start date), complete (releases funds)."""
    permission_classes = [IsAuthenticated, IsServiceProvider]

    @swagger_auto_schema(
        operation_summary="Accept, start or complete a booking",
        responses={200: my_serializers.BookingSerializer(), 409: "Invalid transition"}
    )
    def patch(self, request, id, action):
        booking = BookingService().provider_transition(id, request.user, action)
        return Response({
            'detail': f"Booking {action} successful.",
            'booking': my_serializers.BookingSerializer(booking).data
        }, status=status.HTTP_200_OK)


class ListBookingAdminAPIView(generics.ListAPIView):
    serializer_class = my_serializers.AdminBookingSerializer
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]
    filterset_fields = ['status', 'payment_status']
    ordering_fields = ['created_at', 'deadline', 'price', 'risk_score']
    ordering = ['-created_at']

    def get_queryset(self):
        queryset = Booking.objects.select_related('client', 'service_provider', 'service_request')
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(service_request__title__icontains=search)
                | Q(client__email__icontains=search)
                | Q(service_provider__email__icontains=search)
            )
        return queryset


class UpdateBookingStatusAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Override a booking's status (audited, no funds move)",
        request_body=my_serializers.AdminStatusSerializer,
        responses={200: my_serializers.AdminBookingSerializer()}
    )
    def patch(self, request, id):
        serializer = my_serializers.AdminStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = BookingService().update_status(id, request.user, serializer.validated_data['status'])
        return Response({
            'detail': "Booking status updated.",
            'booking': my_serializers.AdminBookingSerializer(booking).data
        }, status=status.HTTP_200_OK)


class AddBookingWarningAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Warn the client or provider of a booking",
        request_body=my_serializers.WarningSerializer,
    )
    def post(self, request, id):
        serializer = my_serializers.WarningSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = BookingService().add_warning(id, request.user, **serializer.validated_data)
        return Response({
            'detail': "Warning added.",
            'booking': my_serializers.AdminBookingSerializer(booking).data
        }, status=status.HTTP_201_CREATED)


class RecalculateRiskAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(operation_summary="Recompute a booking's risk score")
    def post(self, request, id):
        booking, factors = BookingService().recalculate_risk(id)
        return Response({
            'risk_score': booking.risk_score,
            'risk_factors': factors,
        }, status=status.HTTP_200_OK)


class SettleBookingAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Refund or release the funds a booking still holds",
        request_body=my_serializers.SettleSerializer,
        responses={200: my_serializers.AdminBookingSerializer()}
    )
    def post(self, request, id):
        serializer = my_serializers.SettleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = BookingService().settle(id, request.user, serializer.validated_data['action'])
        return Response({
            'detail': f"Payment {booking.payment_status}.",
            'booking': my_serializers.AdminBookingSerializer(booking).data
        }, status=status.HTTP_200_OK)
