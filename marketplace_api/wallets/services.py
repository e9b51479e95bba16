from decimal import Decimal, InvalidOperation
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F

from marketplace_api.exceptions import InsufficientFunds, ValidationError
from .models import Wallet, Transaction

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
# Largest value Wallet.balance (max_digits=12, decimal_places=2) can store.
MAX_BALANCE = Decimal('9999999999.99')


def to_amount(value):
    """
    Normalize a currency value to a two-place ``Decimal``.

    Floats are refused so binary rounding never reaches the ledger.
    """
    if isinstance(value, float):
        raise ValidationError("Amounts must be given as decimal strings, not floats.")
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}.")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}.")
    return amount


def _correlation(correlation):
    return {key: str(value) for key, value in (correlation or {}).items() if value is not None}


class LedgerService:
    """
    The only code path that changes wallet balances.

    Every balance change is a single conditional ``UPDATE`` followed by exactly
    one ``Transaction`` row, inside one atomic block.
    """

    def ensure_wallet(self, user):
        wallet, created = Wallet.objects.get_or_create(owner=user)
        if created:
            logger.info(f"Created wallet {wallet.id} for user {user.pk}")
        return wallet

    def _positive(self, amount):
        amount = to_amount(amount)
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero.")
        return amount

    def _credit(self, user, amount, txn_type, description, correlation=None):
        amount = self._positive(amount)
        with transaction.atomic():
            wallet = self.ensure_wallet(user)
            updated = Wallet.objects.filter(pk=wallet.pk, balance__lte=MAX_BALANCE - amount).update(
                balance=F('balance') + amount
            )
            if not updated:
                raise ValidationError(f"This amount would exceed the maximum wallet balance of {MAX_BALANCE}.")
            txn = Transaction.objects.create(
                wallet=wallet,
                type=txn_type,
                amount=amount,
                description=description,
                status=Transaction.STATUS_COMPLETED,
                data=_correlation(correlation),
            )
            wallet.refresh_from_db(fields=['balance'])

        logger.info(
            f"Ledger {txn_type}: wallet={wallet.id} amount={amount} balance={wallet.balance}",
            extra={'wallet_id': wallet.id, 'transaction_id': txn.id},
        )
        return wallet, txn

    def deposit(self, user, amount):
        return self._credit(user, amount, Transaction.TYPE_DEPOSIT, "Funds added")

    def hold(self, user, amount, correlation=None):
        """
        Move ``amount`` out of the user's available balance into escrow.

        The balance check and the debit are one statement
        (``balance = balance - amount WHERE balance >= amount``); concurrent
        holds on the same wallet can never overdraw it.
        """
        amount = self._positive(amount)
        correlation = _correlation(correlation)
        with transaction.atomic():
            wallet = self.ensure_wallet(user)
            updated = Wallet.objects.filter(pk=wallet.pk, balance__gte=amount).update(
                balance=F('balance') - amount
            )
            if updated == 0:
                wallet.refresh_from_db(fields=['balance'])
                logger.warning(
                    f"Hold refused: wallet={wallet.id} required={amount} available={wallet.balance}",
                    extra=correlation,
                )
                raise InsufficientFunds(required=amount, available=wallet.balance)

            request_id = correlation.get('request_id', 'n/a')
            txn = Transaction.objects.create(
                wallet=wallet,
                type=Transaction.TYPE_HOLD,
                amount=amount,
                description=f"Escrow for request {request_id}",
                status=Transaction.STATUS_COMPLETED,
                data=correlation,
            )
            wallet.refresh_from_db(fields=['balance'])

        logger.info(
            f"Ledger hold: wallet={wallet.id} amount={amount} balance={wallet.balance}",
            extra={'wallet_id': wallet.id, 'transaction_id': txn.id},
        )
        return wallet, txn

    def release(self, user, amount, correlation=None):
        """Credit the payee with funds previously held from the payer."""
        request_id = (correlation or {}).get('request_id', 'n/a')
        return self._credit(
            user,
            amount,
            Transaction.TYPE_RELEASE,
            f"Release for request {request_id}",
            correlation,
        )

    def refund(self, user, amount, correlation=None):
        """Return held funds to the payer."""
        request_id = (correlation or {}).get('request_id', 'n/a')
        return self._credit(
            user,
            amount,
            Transaction.TYPE_REFUND,
            f"Refund for request {request_id}",
            correlation,
        )

    def replayed_balance(self, wallet):
        total = Decimal('0.00')
        for txn in wallet.transactions.filter(status=Transaction.STATUS_COMPLETED).only('type', 'amount'):
            total += txn.signed_amount
        return total

    def wallet_summary(self, user, limit=None):
        limit = limit or settings.WALLET_TRANSACTION_PAGE
        wallet = self.ensure_wallet(user)
        return {
            'balance': wallet.balance,
            'transactions': list(wallet.transactions.all()[:limit]),
        }
