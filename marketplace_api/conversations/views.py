from rest_framework import views as drf_views, generics, status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsMarketplaceAdmin
from . import serializers as my_serializers
from .services import ConversationService


class BookingMessagesAPIView(generics.GenericAPIView):
    """
    GET: the booking's messages, oldest first (participants and admins).
    POST: a booking participant writes to the other party.
    """
    serializer_class = my_serializers.MessageSerializer
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_summary="List the messages of a booking",
        responses={200: my_serializers.MessageSerializer(many=True)}
    )
    def get(self, request, id):
        messages = ConversationService().list_messages(id, request.user)
        return Response(my_serializers.MessageSerializer(messages, many=True).data, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_summary="Send a message to the other party of a booking",
        request_body=my_serializers.SendMessageSerializer,
        responses={201: my_serializers.MessageSerializer()}
    )
    def post(self, request, id):
        serializer = my_serializers.SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = ConversationService().send(
            id, request.user, serializer.validated_data['text'], serializer.validated_data.get('attachment')
        )
        return Response(my_serializers.MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class SystemMessageAdminAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @swagger_auto_schema(
        operation_summary="Post a system message to both parties of a booking",
        request_body=my_serializers.SystemMessageSerializer,
        responses={201: my_serializers.MessageSerializer()}
    )
    def post(self, request, id):
        serializer = my_serializers.SystemMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = ConversationService().send_system_message(id, request.user, serializer.validated_data['message'])
        return Response({
            'detail': "System message sent.",
            'message': my_serializers.MessageSerializer(message).data
        }, status=status.HTTP_201_CREATED)
