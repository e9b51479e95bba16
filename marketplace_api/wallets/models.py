from decimal import Decimal

from django.db import models
from django.contrib.auth import get_user_model
from auditlog.registry import auditlog

User = get_user_model()


class Wallet(models.Model):
    owner = models.OneToOneField(User, on_delete=models.PROTECT, related_name='wallet')
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name='wallet_balance_non_negative',
            ),
        ]

    def __str__(self):
        return f"Wallet of {self.owner} ({self.balance})"


class Transaction(models.Model):
    """
    Append-only ledger entry. Credits (deposit, release, refund) and debits
    (hold, payment) replayed in order reconstruct the wallet balance.
    """
    TYPE_DEPOSIT = 'deposit'
    TYPE_HOLD = 'hold'
    TYPE_RELEASE = 'release'
    TYPE_REFUND = 'refund'
    TYPE_PAYMENT = 'payment'

    TYPE_CHOICES = (
        (TYPE_DEPOSIT, 'Deposit'),
        (TYPE_HOLD, 'Hold'),
        (TYPE_RELEASE, 'Release'),
        (TYPE_REFUND, 'Refund'),
        (TYPE_PAYMENT, 'Payment'),
    )
    CREDIT_TYPES = (TYPE_DEPOSIT, TYPE_RELEASE, TYPE_REFUND)
    DEBIT_TYPES = (TYPE_HOLD, TYPE_PAYMENT)

    STATUS_COMPLETED = 'completed'
    STATUS_PENDING = 'pending'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = (
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_FAILED, 'Failed'),
    )

    wallet = models.ForeignKey(Wallet, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    data = models.JSONField(default=dict, blank=True)  # request_id / proposal_id / booking_id
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='transaction_amount_positive',
            ),
        ]

    def __str__(self):
        return f"{self.type} of {self.amount} on {self.wallet}"

    @property
    def signed_amount(self):
        return self.amount if self.type in self.CREDIT_TYPES else -self.amount

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Ledger transactions are append-only and cannot be modified.")
        super().save(*args, **kwargs)


auditlog.register(Wallet)
