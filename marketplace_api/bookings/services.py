import logging

from django.db import transaction
from django.utils import timezone

from marketplace_api.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from notifications import dispatcher
from service_requests.models import ServiceRequest
from wallets.services import LedgerService
from .models import Booking
from .risk import calculate_risk_score

logger = logging.getLogger(__name__)

PROVIDER_ACTIONS = ('accept', 'start', 'complete')
WARNING_TARGETS = ('client', 'provider')
SETTLE_ACTIONS = ('refund', 'release')


class BookingService:
    """
    Validated booking transitions for providers and clients, plus the audited
    admin override. Each transition runs on a locked booking row.
    """

    def __init__(self):
        self.ledger = LedgerService()

    def get(self, booking_id, lock=False):
        queryset = Booking.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        booking = queryset.filter(pk=booking_id).first()
        if booking is None:
            raise NotFound("Booking not found.")
        return booking

    def _add_timeline(self, booking, event, description, date=None):
        booking.timeline = list(booking.timeline) + [{
            'event': event,
            'date': (date or timezone.now()).isoformat(),
            'description': description,
        }]

    def add_history_entry(self, booking, admin, action, details):
        booking.history_logs = list(booking.history_logs) + [{
            'action': action,
            'admin_id': admin.pk,
            'timestamp': timezone.now().isoformat(),
            'details': details,
        }]

    def _set_status(self, booking, new_status, description):
        old_status = booking.status
        booking.status = new_status
        self._add_timeline(booking, f'status_changed_to_{new_status}', description)
        return old_status

    def _cascade_request(self, booking, request_status):
        ServiceRequest.objects.filter(pk=booking.service_request_id).update(
            status=request_status, updated_at=timezone.now()
        )

    def _notify(self, booking, user_id, old_status):
        dispatcher.emit('booking.status_changed', user_id, {
            'booking_id': booking.pk,
            'old_status': old_status,
            'status': booking.status,
            'payment_status': booking.payment_status,
        })

    def _require(self, booking, expected, action):
        if booking.status != expected:
            raise InvalidTransition(
                f"Cannot {action} a booking that is {booking.status}.",
                current_status=booking.status,
                expected_status=expected,
            )

    def provider_transition(self, booking_id, provider, action):
        if action not in PROVIDER_ACTIONS:
            raise ValidationError(f"Invalid action '{action}'. Must be one of: {', '.join(PROVIDER_ACTIONS)}.")

        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            if booking.service_provider_id != provider.pk:
                raise Forbidden("You are not the service provider of this booking.")

            update_fields = ['timeline', 'updated_at']
            old_status = booking.status

            if action == 'accept':
                self._require(booking, Booking.STATUS_PENDING, 'accept')
                self._set_status(booking, Booking.STATUS_ACTIVE, "Booking accepted by service provider")
                update_fields.append('status')

            elif action == 'start':
                # Stays active; only the first call records the start.
                self._require(booking, Booking.STATUS_ACTIVE, 'start')
                if booking.start_date is None:
                    booking.start_date = timezone.now()
                    self._add_timeline(booking, 'work_started', "Service provider started work", booking.start_date)
                    update_fields.append('start_date')

            else:
                self._require(booking, Booking.STATUS_ACTIVE, 'complete')
                self._set_status(booking, Booking.STATUS_COMPLETED, "Booking completed by service provider")
                update_fields.append('status')
                if booking.payment_status == Booking.PAYMENT_HELD:
                    self.ledger.release(booking.service_provider, booking.price, booking.correlation())
                    booking.payment_status = Booking.PAYMENT_RELEASED
                    update_fields.append('payment_status')
                else:
                    logger.warning(
                        f"Booking {booking.pk} completed without held funds (payment_status={booking.payment_status})",
                        extra=booking.correlation(),
                    )
                self._cascade_request(booking, ServiceRequest.STATUS_COMPLETED)

            booking.save(update_fields=update_fields)
            if booking.status != old_status:
                self._notify(booking, booking.client_id, old_status)

        logger.info(f"Booking {booking.pk}: provider {action} ({old_status} -> {booking.status})")
        return booking

    def cancel(self, booking_id, client):
        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            if booking.client_id != client.pk:
                raise Forbidden("You are not the client of this booking.")
            if booking.status == Booking.STATUS_COMPLETED:
                raise InvalidTransition(
                    "Cannot cancel completed booking.",
                    current_status=booking.status,
                    expected_status='not completed',
                )
            if booking.status == Booking.STATUS_CANCELED:
                raise InvalidTransition(
                    "Booking is already canceled.",
                    current_status=booking.status,
                    expected_status='not canceled',
                )

            old_status = self._set_status(booking, Booking.STATUS_CANCELED, "Booking canceled by client")
            update_fields = ['status', 'timeline', 'updated_at']
            if booking.payment_status == Booking.PAYMENT_HELD:
                self.ledger.refund(booking.client, booking.price, booking.correlation())
                booking.payment_status = Booking.PAYMENT_REFUNDED
                update_fields.append('payment_status')

            booking.save(update_fields=update_fields)
            self._cascade_request(booking, ServiceRequest.STATUS_CANCELED)
            self._notify(booking, booking.service_provider_id, old_status)

        logger.info(f"Booking {booking.pk} canceled by client ({old_status} -> canceled)")
        return booking

    def update_status(self, booking_id, admin, new_status):
        """
        Admin override: any declared status, outside the transition graph.
        Always audited; never moves funds.
        """
        valid_statuses = [choice for choice, _ in Booking.STATUS_CHOICES]
        if new_status not in valid_statuses:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(valid_statuses)}")

        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            old_status = self._set_status(
                booking, new_status, f"Status changed from {booking.status} to {new_status} by admin"
            )
            self.add_history_entry(booking, admin, 'status_changed', f"Changed from {old_status} to {new_status}")
            booking.save(update_fields=['status', 'timeline', 'history_logs', 'updated_at'])
            self._notify(booking, booking.client_id, old_status)
            self._notify(booking, booking.service_provider_id, old_status)

        logger.warning(
            f"Admin {admin.pk} overrode booking {booking.pk} status {old_status} -> {new_status}",
            extra=booking.correlation(),
        )
        return booking

    def add_warning(self, booking_id, admin, target, message):
        if target not in WARNING_TARGETS:
            raise ValidationError('Target must be "client" or "provider".')
        message = (message or '').strip()
        if not message:
            raise ValidationError("Warning message is required.")

        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            booking.warnings = list(booking.warnings) + [{
                'target': target,
                'message': message,
                'admin_id': admin.pk,
                'created_at': timezone.now().isoformat(),
            }]
            self.add_history_entry(booking, admin, 'warning_added', f"Warning added to {target}: {message}")
            booking.save(update_fields=['warnings', 'history_logs', 'updated_at'])
            recipient = booking.client_id if target == 'client' else booking.service_provider_id
            dispatcher.emit('booking.warning', recipient, {'booking_id': booking.pk, 'message': message})
        return booking

    def recalculate_risk(self, booking_id):
        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            score, factors = calculate_risk_score(booking)
            booking.risk_score = score
            booking.save(update_fields=['risk_score', 'updated_at'])
        return booking, factors

    def settle(self, booking_id, admin, action):
        """
        Admin settlement of held funds: ``refund`` returns them to the client,
        ``release`` pays the provider. Leaves the booking status alone, so it
        pairs with ``update_status`` when an override strands a held payment.
        """
        if action not in SETTLE_ACTIONS:
            raise ValidationError(f"Invalid action '{action}'. Must be one of: {', '.join(SETTLE_ACTIONS)}.")

        with transaction.atomic():
            booking = self.get(booking_id, lock=True)
            if booking.payment_status != Booking.PAYMENT_HELD:
                raise InvalidTransition(
                    f"Only held payments can be settled; this payment is {booking.payment_status}.",
                    current_status=booking.payment_status,
                    expected_status=Booking.PAYMENT_HELD,
                )

            if action == 'refund':
                self.ledger.refund(booking.client, booking.price, booking.correlation())
                booking.payment_status = Booking.PAYMENT_REFUNDED
            else:
                self.ledger.release(booking.service_provider, booking.price, booking.correlation())
                booking.payment_status = Booking.PAYMENT_RELEASED

            self._add_timeline(booking, f'payment_{booking.payment_status}', f"Payment {booking.payment_status} by admin")
            self.add_history_entry(booking, admin, f'payment_{action}', f"{action.capitalize()} of {booking.price}")
            booking.save(update_fields=['payment_status', 'timeline', 'history_logs', 'updated_at'])
            for user_id in (booking.client_id, booking.service_provider_id):
                self._notify(booking, user_id, booking.status)

        logger.warning(
            f"Admin {admin.pk} settled booking {booking.pk}: {action} {booking.price}",
            extra=booking.correlation(),
        )
        return booking
