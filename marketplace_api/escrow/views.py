from rest_framework import permissions, status, views
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsClient
from bookings.serializers import BookingSerializer
from wallets.serializers import TransactionSerializer
from .services import EscrowService


class AcceptProposalClientAPIView(views.APIView):
	"""
	Client accepts an approved proposal. The price is held from the client's
	wallet and a booking is created in the same transaction.
	"""

	permission_classes = [permissions.IsAuthenticated, IsClient]

	@swagger_auto_schema(
		operation_summary="Accept a proposal and hold its price in escrow",
		responses={
			201: "Booking, new wallet balance and hold transaction",
			402: "Insufficient wallet balance",
			403: "Not the owner of the request",
			409: "Proposal not acceptable or booking already exists",
		}
	)
	def post(self, request, id):
		result = EscrowService().accept_proposal(client=request.user, proposal_id=id)
		return Response(
			{
				'detail': "Proposal accepted and funds held in escrow.",
				'booking': BookingSerializer(result['booking']).data,
				'wallet_balance': str(result['wallet_balance']),
				'hold_transaction': TransactionSerializer(result['hold_transaction']).data,
			},
			status=status.HTTP_201_CREATED,
		)
