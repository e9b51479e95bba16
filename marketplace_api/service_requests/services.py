import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from marketplace_api.exceptions import Forbidden, InvalidState, NotFound, ValidationError
from notifications import dispatcher
from proposals.models import Proposal
from .models import ServiceRequest

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('title', 'description', 'budget', 'deadline', 'attachments')

# Requests the client still controls: nothing has been booked yet.
UNBOOKED_STATUSES = (
    ServiceRequest.STATUS_PENDING,
    ServiceRequest.STATUS_SUBMITTED,
    ServiceRequest.STATUS_OPEN,
)
MODERATABLE_STATUSES = (ServiceRequest.STATUS_PENDING, ServiceRequest.STATUS_SUBMITTED)


class ServiceRequestService:
    """Client-side lifecycle and admin moderation of service requests."""

    def get(self, request_id, lock=False):
        queryset = ServiceRequest.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        service_request = queryset.filter(pk=request_id).first()
        if service_request is None:
            raise NotFound("Request not found.")
        return service_request

    def _get_owned(self, request_id, client, action):
        service_request = self.get(request_id, lock=True)
        if service_request.client_id != client.pk:
            raise Forbidden(f"You are not allowed to {action} this request.")
        if service_request.status not in UNBOOKED_STATUSES:
            raise InvalidState(
                "This request has been booked or closed and can no longer be changed.",
                current_status=service_request.status,
                expected_status=UNBOOKED_STATUSES,
            )
        return service_request

    def _close_live_proposals(self, service_request, status, reason=''):
        """Retire every bid that could still be accepted on ``service_request``."""
        live = Proposal.objects.filter(
            service_request=service_request,
            status__in=(Proposal.STATUS_PENDING, Proposal.STATUS_ACTIVE),
        )
        provider_ids = list(live.values_list('service_provider_id', flat=True))
        live.update(status=status, rejection_reason=reason, updated_at=timezone.now())
        for provider_id in provider_ids:
            dispatcher.emit('proposal.rejected', provider_id, {
                'request_id': service_request.pk,
                'message': reason or f'The request "{service_request.title}" is no longer available.',
            })
        return len(provider_ids)

    def create(self, *, client, **fields):
        initial_status = (
            ServiceRequest.STATUS_PENDING if settings.REQUEST_MODERATION
            else ServiceRequest.STATUS_SUBMITTED
        )
        with transaction.atomic():
            service_request = ServiceRequest.objects.create(client=client, status=initial_status, **fields)
            dispatcher.emit('request.created', client.pk, {
                'message': f'Your request "{service_request.title}" has been created successfully.',
                'request_id': service_request.pk,
            })
        logger.info(f"Request {service_request.pk} created by {client.pk} as {initial_status}")
        return service_request

    def update(self, request_id, client, fields):
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"These fields cannot be changed: {', '.join(sorted(unknown))}.")

        with transaction.atomic():
            service_request = self._get_owned(request_id, client, 'update')
            for attr, value in fields.items():
                setattr(service_request, attr, value)
            service_request.save(update_fields=list(fields) + ['updated_at'])
        return service_request

    def delete(self, request_id, client):
        """
        Remove a request that never received a proposal. Requests with bids
        are kept for the audit trail and can only be canceled.
        """
        with transaction.atomic():
            service_request = self._get_owned(request_id, client, 'delete')
            if service_request.proposals.exists():
                raise InvalidState(
                    "Requests with proposals cannot be deleted; cancel the request instead.",
                    current_status=service_request.status,
                    expected_status='no proposals',
                )
            service_request.delete()
        logger.info(f"Request {request_id} deleted by {client.pk}")

    def approve(self, request_id):
        with transaction.atomic():
            service_request = self.get(request_id, lock=True)
            if service_request.status not in MODERATABLE_STATUSES:
                raise InvalidState(
                    "Only pending or submitted requests can be approved.",
                    current_status=service_request.status,
                    expected_status=MODERATABLE_STATUSES,
                )
            service_request.status = ServiceRequest.STATUS_OPEN
            service_request.rejection_reason = ''
            service_request.save(update_fields=['status', 'rejection_reason', 'updated_at'])
            dispatcher.emit('request.approved', service_request.client_id, {
                'request_id': service_request.pk,
            })
        return service_request

    def reject(self, request_id, reason):
        if not (reason or '').strip():
            raise ValidationError("A rejection reason is required.")
        with transaction.atomic():
            service_request = self.get(request_id, lock=True)
            if service_request.status not in MODERATABLE_STATUSES:
                raise InvalidState(
                    "Only pending or submitted requests can be rejected.",
                    current_status=service_request.status,
                    expected_status=MODERATABLE_STATUSES,
                )
            service_request.status = ServiceRequest.STATUS_REJECTED
            service_request.rejection_reason = reason.strip()
            service_request.save(update_fields=['status', 'rejection_reason', 'updated_at'])
            self._close_live_proposals(
                service_request, Proposal.STATUS_REJECTED, "The request was rejected by moderation."
            )
            dispatcher.emit('request.rejected', service_request.client_id, {
                'request_id': service_request.pk,
                'message': service_request.rejection_reason,
            })
        return service_request

    def cancel(self, request_id, client):
        """Withdraw a request that has not been booked yet, closing its open bids."""
        with transaction.atomic():
            service_request = self._get_owned(request_id, client, 'cancel')
            service_request.status = ServiceRequest.STATUS_CANCELED
            service_request.save(update_fields=['status', 'updated_at'])
            closed = self._close_live_proposals(service_request, Proposal.STATUS_CANCELED)
        logger.info(f"Request {service_request.pk} canceled by {client.pk}; {closed} proposal(s) closed")
        return service_request
