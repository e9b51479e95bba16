from rest_framework import views as drf_views, generics, status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from drf_yasg.utils import swagger_auto_schema


from accounts.permissions import IsClient, IsServiceProvider, IsMarketplaceAdmin
from marketplace_api.exceptions import Forbidden
from service_requests.models import ServiceRequest
from . import serializers as my_serializers
from .models import Proposal
from .services import ProposalService
from .storage import AttachmentStorage


class RequestProposalsAPIView(generics.ListCreateAPIView):
    """
    GET: the request's client (or an admin) lists proposals received.
    POST: a service provider bids on the request.
    """
    serializer_class = my_serializers.ProposalSerializer
    ordering_fields = ['created_at', 'price', 'duration_days']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsServiceProvider()]
        return [IsAuthenticated()]

    def get_queryset(self):
        service_request = get_object_or_404(ServiceRequest, id=self.kwargs['request_id'])
        user = self.request.user
        if service_request.client_id != user.pk and not user.is_marketplace_admin:
            raise Forbidden("You do not have access to this request's proposals.")
        return Proposal.objects.filter(service_request=service_request).select_related(
            'service_provider', 'service_request'
        )

    @swagger_auto_schema(
        operation_summary="Submit a proposal on a request",
        request_body=my_serializers.CreateProposalProviderSerializer,
        responses={201: my_serializers.ProposalSerializer(), 409: "Request not open or duplicate proposal"}
    )
    def post(self, request, *args, **kwargs):
        serializer = my_serializers.CreateProposalProviderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        proposal = ProposalService().submit(
            self.kwargs['request_id'],
            request.user,
            **serializer.validated_data,
        )

        return Response({
            'detail': "Proposal submitted successfully.",
            'proposal': my_serializers.ProposalSerializer(proposal).data
        }, status=status.HTTP_201_CREATED)


class ListProposalProviderAPIView(generics.ListAPIView):
    serializer_class = my_serializers.ProposalSerializer
    permission_classes = [IsAuthenticated, IsServiceProvider]
    filterset_fields = ['status']
    ordering_fields = ['created_at', 'price', 'duration_days']
    ordering = ['-created_at']

    def get_queryset(self):
        return Proposal.objects.filter(service_provider=self.request.user).select_related(
            'service_provider', 'service_request'
        )


class RetrieveUpdateProposalProviderAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsServiceProvider]

    def get(self, request, id):
        proposal = get_object_or_404(Proposal, id=id, service_provider=request.user)
        return Response(my_serializers.ProposalSerializer(proposal).data)

    @swagger_auto_schema(
        operation_summary="Edit a pending proposal",
        request_body=my_serializers.UpdateProposalProviderSerializer,
        responses={200: my_serializers.ProposalSerializer(), 409: "Proposal is no longer pending"}
    )
    def patch(self, request, id):
        serializer = my_serializers.UpdateProposalProviderSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        proposal = ProposalService().update(id, request.user, serializer.validated_data)

        return Response({
            'detail': "Proposal successfully updated.",
            'proposal': my_serializers.ProposalSerializer(proposal).data
        }, status=status.HTTP_200_OK)


class CancelProposalProviderAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsServiceProvider]

    @swagger_auto_schema(operation_summary="Withdraw a pending proposal")
    def post(self, request, id):
        proposal = ProposalService().cancel(id, request.user)
        return Response(my_serializers.ProposalSerializer(proposal).data, status=status.HTTP_200_OK)


class UploadAttachmentProviderAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsServiceProvider]
    parser_classes = [MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_summary="Upload a proposal attachment",
        request_body=my_serializers.UploadAttachmentSerializer,
    )
    def post(self, request):
        serializer = my_serializers.UploadAttachmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attachment = AttachmentStorage().upload(serializer.validated_data['file'], request.user)
        return Response(attachment, status=status.HTTP_201_CREATED)


class DeleteAttachmentProviderAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsServiceProvider]

    def delete(self, request, attachment_id):
        AttachmentStorage().delete(attachment_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ListProposalAdminAPIView(generics.ListAPIView):
    serializer_class = my_serializers.ProposalSerializer
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]
    queryset = Proposal.objects.select_related('service_provider', 'service_request')
    filterset_fields = ['status', 'service_request']
    ordering_fields = ['created_at', 'updated_at', 'accepted_at']
    ordering = ['-created_at']


class ApproveProposalAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(operation_summary="Approve a pending proposal so the client can accept it")
    def post(self, request, id):
        proposal = ProposalService().approve(id)
        return Response({
            'detail': "Proposal approved.",
            'proposal': my_serializers.ProposalSerializer(proposal).data
        }, status=status.HTTP_200_OK)


class RejectProposalAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Reject a pending proposal with a reason",
        request_body=my_serializers.RejectProposalSerializer,
    )
    def post(self, request, id):
        serializer = my_serializers.RejectProposalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        proposal = ProposalService().reject(id, serializer.validated_data['reason'])
        return Response({
            'detail': "Proposal rejected.",
            'proposal': my_serializers.ProposalSerializer(proposal).data
        }, status=status.HTTP_200_OK)
