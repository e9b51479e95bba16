from datetime import timedelta
import logging
import uuid

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from bookings.models import Booking
from marketplace_api.exceptions import (
    BookingAlreadyExists,
    EscrowFailure,
    Forbidden,
    InsufficientFunds,
    MarketplaceError,
    NotFound,
    ProposalNotAcceptable,
    RequestNotOpen,
)
from notifications import dispatcher
from proposals.models import Proposal
from service_requests.models import ServiceRequest
from wallets.services import LedgerService

logger = logging.getLogger(__name__)


class EscrowService:
    """
    Turns an approved proposal into a funded booking.

    The whole acceptance (hold, booking, proposal and request cascade) runs in
    one database transaction with the request and proposal rows locked, so
    either every step is visible or none is.
    """

    def __init__(self):
        self.ledger = LedgerService()

    def accept_proposal(self, *, client, proposal_id):
        """
        Accept ``proposal_id`` on behalf of ``client``.

        Returns a dict with the booking, the client's new wallet balance and
        the hold transaction.
        """
        correlation_id = uuid.uuid4().hex
        context = {'proposal_id': proposal_id, 'client_id': client.pk, 'correlation_id': correlation_id}

        try:
            with transaction.atomic():
                result = self._accept(client, proposal_id, context)
        except MarketplaceError:
            raise
        except DatabaseError:
            logger.exception(
                f"Proposal acceptance failed and was rolled back "
                f"(proposal={proposal_id}, request={context.get('request_id')}, client={client.pk}, "
                f"correlation={correlation_id})",
                extra=context,
            )
            raise EscrowFailure(correlation_id)

        booking = result['booking']
        logger.info(
            f"Proposal {proposal_id} accepted: booking={booking.pk} request={booking.service_request_id} "
            f"held={booking.price} balance={result['wallet_balance']}",
            extra=context,
        )
        return result

    def _has_open_booking(self, service_request):
        return Booking.objects.filter(service_request=service_request).exclude(
            status=Booking.STATUS_CANCELED
        ).exists()

    def _accept(self, client, proposal_id, context):
        proposal = Proposal.objects.filter(pk=proposal_id).only('id', 'service_request_id').first()
        if proposal is None:
            raise NotFound("Proposal not found.")

        # Lock order: request, then proposal. Every acceptance on the same
        # request serializes here.
        service_request = ServiceRequest.objects.select_for_update().get(pk=proposal.service_request_id)
        proposal = Proposal.objects.select_for_update().get(pk=proposal_id)
        context['request_id'] = service_request.pk

        if proposal.status != Proposal.STATUS_ACTIVE:
            raise ProposalNotAcceptable(
                f"Only approved proposals can be accepted; this proposal is {proposal.status}.",
                current_status=proposal.status,
                expected_status=Proposal.STATUS_ACTIVE,
            )

        if service_request.client_id != client.pk:
            raise Forbidden("You are not allowed to accept this proposal.")

        if self._has_open_booking(service_request):
            raise BookingAlreadyExists()

        if not service_request.accepts_proposals:
            raise RequestNotOpen(
                "This request is no longer open for acceptance.",
                current_status=service_request.status,
                expected_status=ServiceRequest.PROPOSABLE_STATUSES,
            )

        wallet = self.ledger.ensure_wallet(client)
        if wallet.balance < proposal.price:
            raise InsufficientFunds(required=proposal.price, available=wallet.balance)

        now = timezone.now()
        booking_id = uuid.uuid4()
        correlation = {
            'request_id': service_request.pk,
            'proposal_id': proposal.pk,
            'booking_id': booking_id,
        }

        wallet, hold_txn = self.ledger.hold(client, proposal.price, correlation)

        try:
            with transaction.atomic():
                booking = Booking.objects.create(
                    id=booking_id,
                    client=client,
                    service_provider_id=proposal.service_provider_id,
                    service_request=service_request,
                    offer=proposal,
                    price=proposal.price,
                    duration_days=proposal.duration_days,
                    notes=proposal.notes,
                    status=Booking.STATUS_PENDING,
                    payment_status=Booking.PAYMENT_HELD,
                    deadline=now + timedelta(days=proposal.duration_days),
                    timeline=[
                        {
                            'event': 'submitted',
                            'date': service_request.created_at.isoformat(),
                            'description': "Request submitted",
                        },
                        {
                            'event': 'offer_accepted',
                            'date': now.isoformat(),
                            'description': f"Proposal {proposal.pk} accepted by client",
                        },
                    ],
                )
        except IntegrityError:
            raise BookingAlreadyExists()

        proposal.status = Proposal.STATUS_ACCEPTED
        proposal.accepted_at = now
        proposal.save(update_fields=['status', 'accepted_at', 'updated_at'])

        Proposal.objects.filter(
            service_request=service_request,
            status=Proposal.STATUS_PENDING,
        ).exclude(pk=proposal.pk).update(
            status=Proposal.STATUS_REJECTED,
            rejection_reason="Another proposal was accepted for this request.",
            updated_at=now,
        )

        service_request.status = ServiceRequest.STATUS_IN_PROGRESS
        service_request.save(update_fields=['status', 'updated_at'])

        dispatcher.emit('proposal.accepted', proposal.service_provider_id, {
            'message': f'Your proposal for "{service_request.title}" has been accepted.',
            'request_id': service_request.pk,
            'proposal_id': proposal.pk,
            'booking_id': booking.pk,
        })

        return {
            'booking': booking,
            'wallet_balance': wallet.balance,
            'hold_transaction': hold_txn,
        }

