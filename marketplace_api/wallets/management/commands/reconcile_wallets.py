from django.core.management.base import BaseCommand

from bookings.models import Booking
from wallets.models import Wallet, Transaction
from wallets.services import LedgerService


class Command(BaseCommand):
    help = "Compares every wallet balance with its replayed ledger and reports holds that no live booking accounts for."

    def add_arguments(self, parser):
        parser.add_argument('--email', type=str, help='Only check the wallet of this user')

    def handle(self, *args, **options):
        ledger = LedgerService()
        wallets = Wallet.objects.select_related('owner')
        email = options['email']
        if email:
            wallets = wallets.filter(owner__email=email)

        mismatches = 0
        for wallet in wallets:
            replayed = ledger.replayed_balance(wallet)
            if replayed != wallet.balance:
                mismatches += 1
                self.stdout.write(self.style.ERROR(
                    f"Wallet {wallet.id} ({wallet.owner.email}): balance {wallet.balance}, ledger {replayed}"
                ))

        booking_ids = {str(pk) for pk in Booking.objects.values_list('id', flat=True)}
        holds = Transaction.objects.filter(type=Transaction.TYPE_HOLD, wallet__in=wallets)
        orphans = 0
        for txn in holds:
            booking_id = txn.data.get('booking_id')
            if booking_id not in booking_ids:
                orphans += 1
                self.stdout.write(self.style.WARNING(
                    f"Hold {txn.id} on wallet {txn.wallet_id} ({txn.amount}) has no booking ({booking_id})"
                ))

        stranded_bookings = Booking.objects.filter(
            status__in=Booking.TERMINAL_STATUSES,
            payment_status=Booking.PAYMENT_HELD,
            client__wallet__in=wallets,
        )
        stranded = 0
        for booking in stranded_bookings:
            stranded += 1
            self.stdout.write(self.style.WARNING(
                f"Booking {booking.id} is {booking.status} but still holds {booking.price}"
            ))

        if mismatches or orphans or stranded:
            self.stdout.write(self.style.ERROR(
                f"{mismatches} wallet(s) out of balance, {orphans} orphaned hold(s), "
                f"{stranded} stranded hold(s)."
            ))
        else:
            self.stdout.write(self.style.SUCCESS(f"All {wallets.count()} wallet(s) reconcile."))
