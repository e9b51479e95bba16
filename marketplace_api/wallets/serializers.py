from decimal import Decimal

from rest_framework import serializers

from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = ('id', 'type', 'amount', 'description', 'status', 'data', 'created_at')
        read_only_fields = fields


class WalletSerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    transactions = TransactionSerializer(many=True, read_only=True)


class DepositSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )


class AdminTransactionSerializer(TransactionSerializer):
    owner_email = serializers.EmailField(source='wallet.owner.email', read_only=True)

    class Meta(TransactionSerializer.Meta):
        fields = TransactionSerializer.Meta.fields + ('wallet', 'owner_email')
        read_only_fields = fields
