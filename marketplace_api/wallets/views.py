from rest_framework import generics, permissions, status, views
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsMarketplaceAdmin
from .models import Transaction
from .serializers import AdminTransactionSerializer, DepositSerializer, WalletSerializer, TransactionSerializer
from .services import LedgerService


class WalletDetailView(views.APIView):
	"""Balance and most recent ledger entries of the caller's wallet."""

	permission_classes = [permissions.IsAuthenticated]

	@swagger_auto_schema(
		operation_summary="Retrieve the current user's wallet",
		responses={200: WalletSerializer()}
	)
	def get(self, request):
		summary = LedgerService().wallet_summary(request.user)
		return Response(WalletSerializer(summary).data, status=status.HTTP_200_OK)


class WalletDepositView(views.APIView):
	permission_classes = [permissions.IsAuthenticated]

	@swagger_auto_schema(
		operation_summary="Add funds to the current user's wallet",
		request_body=DepositSerializer,
		responses={200: "New balance and deposit transaction", 400: "Validation error"}
	)
	def post(self, request):
		serializer = DepositSerializer(data=request.data)
		serializer.is_valid(raise_exception=True)

		wallet, txn = LedgerService().deposit(request.user, serializer.validated_data['amount'])
		return Response(
			{
				'balance': str(wallet.balance),
				'transaction': TransactionSerializer(txn).data,
			},
			status=status.HTTP_200_OK,
		)


class ListTransactionAdminView(generics.ListAPIView):
	"""Every ledger entry across wallets, for support and reconciliation."""

	serializer_class = AdminTransactionSerializer
	permission_classes = [permissions.IsAuthenticated, IsMarketplaceAdmin]
	queryset = Transaction.objects.select_related('wallet__owner')
	filterset_fields = ['type', 'status', 'wallet__owner']
	ordering_fields = ['created_at', 'amount']
	ordering = ['-created_at', '-id']
