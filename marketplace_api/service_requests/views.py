from rest_framework import views as drf_views, generics, status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema


from accounts.permissions import IsClient, IsServiceProvider, IsMarketplaceAdmin
from . import serializers as my_serializers
from .models import ServiceRequest
from .services import ServiceRequestService


class CreateServiceRequestClientAPIView(generics.CreateAPIView):
    serializer_class = my_serializers.CreateServiceRequestSerializer
    permission_classes = [IsAuthenticated, IsClient]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService().create(client=request.user, **serializer.validated_data)

        return Response({
            'detail': "Request created successfully.",
            'request': my_serializers.ServiceRequestSerializer(service_request).data
        }, status=status.HTTP_201_CREATED)


class ListServiceRequestClientAPIView(generics.ListAPIView):
    serializer_class = my_serializers.ServiceRequestSerializer
    permission_classes = [IsAuthenticated, IsClient]
    filterset_fields = ['status']

    def get_queryset(self):
        return ServiceRequest.objects.filter(client=self.request.user).select_related('client')


class ListOpenServiceRequestProviderAPIView(generics.ListAPIView):
    serializer_class = my_serializers.ServiceRequestSerializer
    permission_classes = [IsAuthenticated, IsServiceProvider]

    def get_queryset(self):
        return ServiceRequest.objects.filter(
            status__in=ServiceRequest.PROPOSABLE_STATUSES
        ).select_related('client')


class RetrieveServiceRequestAPIView(generics.RetrieveAPIView):
    """
    GET: clients see their own requests; providers see requests open for bidding.
    PATCH/DELETE: the owning client edits or removes a request before it is booked.
    """
    serializer_class = my_serializers.ServiceRequestSerializer
    lookup_field = 'id'

    def get_permissions(self):
        if self.request.method in ('PATCH', 'DELETE'):
            return [IsAuthenticated(), IsClient()]
        return [IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        queryset = ServiceRequest.objects.select_related('client')
        if user.is_marketplace_admin:
            return queryset
        if user.is_service_provider:
            return queryset.filter(status__in=ServiceRequest.PROPOSABLE_STATUSES)
        return queryset.filter(client=user)

    @swagger_auto_schema(
        operation_summary="Edit a request that has not been booked",
        request_body=my_serializers.UpdateServiceRequestSerializer,
        responses={200: my_serializers.ServiceRequestSerializer(), 409: "Request already booked or closed"}
    )
    def patch(self, request, id):
        serializer = my_serializers.UpdateServiceRequestSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService().update(id, request.user, serializer.validated_data)
        return Response({
            'detail': "Request updated.",
            'request': my_serializers.ServiceRequestSerializer(service_request).data
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(operation_summary="Delete a request that never received a proposal")
    def delete(self, request, id):
        ServiceRequestService().delete(id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CancelServiceRequestClientAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(operation_summary="Cancel a request that has not been booked")
    def patch(self, request, id):
        service_request = ServiceRequestService().cancel(id, request.user)
        return Response(my_serializers.ServiceRequestSerializer(service_request).data, status=status.HTTP_200_OK)


class ListServiceRequestAdminAPIView(generics.ListAPIView):
    serializer_class = my_serializers.ServiceRequestSerializer
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]
    queryset = ServiceRequest.objects.select_related('client')
    filterset_fields = ['status']


class ApproveServiceRequestAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(operation_summary="Approve a request and open it for proposals")
    def post(self, request, id):
        service_request = ServiceRequestService().approve(id)
        return Response({
            'detail': "Request approved.",
            'request': my_serializers.ServiceRequestSerializer(service_request).data
        }, status=status.HTTP_200_OK)


class RejectServiceRequestAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Reject a request with a reason",
        request_body=my_serializers.RejectServiceRequestSerializer,
    )
    def post(self, request, id):
        serializer = my_serializers.RejectServiceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService().reject(id, serializer.validated_data['reason'])
        return Response({
            'detail': "Request rejected.",
            'request': my_serializers.ServiceRequestSerializer(service_request).data
        }, status=status.HTTP_200_OK)
