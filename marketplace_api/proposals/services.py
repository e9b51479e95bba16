import logging

from django.db import IntegrityError, transaction

from marketplace_api.exceptions import (
    DuplicateProposal,
    Forbidden,
    InvalidState,
    NotFound,
    RequestNotOpen,
    ValidationError,
)
from notifications import dispatcher
from service_requests.models import ServiceRequest
from wallets.services import to_amount
from .models import Proposal

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('price', 'duration_days', 'notes', 'attachments')


class ProposalService:
    """
    Proposal lifecycle short of acceptance, which belongs to
    ``escrow.services.EscrowService`` because it moves money.
    """

    def get(self, proposal_id, lock=False):
        queryset = Proposal.objects.select_related('service_request')
        if lock:
            queryset = queryset.select_for_update(of=('self',))
        proposal = queryset.filter(pk=proposal_id).first()
        if proposal is None:
            raise NotFound("Proposal not found.")
        return proposal

    def _validate_terms(self, price=None, duration_days=None):
        if price is not None:
            price = to_amount(price)
            if price < 0:
                raise ValidationError("Please enter a valid price.")
        if duration_days is not None:
            if int(duration_days) < 1:
                raise ValidationError("Duration must be at least one day.")
        return price

    def submit(self, request_id, provider, price, duration_days, notes='', attachments=None):
        price = self._validate_terms(price, duration_days)

        service_request = ServiceRequest.objects.filter(pk=request_id).first()
        if service_request is None:
            raise NotFound("Request not found.")
        if not service_request.accepts_proposals:
            raise RequestNotOpen(
                "Cannot propose on this request.",
                current_status=service_request.status,
                expected_status=ServiceRequest.PROPOSABLE_STATUSES,
            )

        if Proposal.objects.filter(
            service_request=service_request,
            service_provider=provider,
            status__in=Proposal.LIVE_STATUSES,
        ).exists():
            raise DuplicateProposal()

        try:
            with transaction.atomic():
                proposal = Proposal.objects.create(
                    service_request=service_request,
                    service_provider=provider,
                    price=price,
                    duration_days=duration_days,
                    notes=notes or '',
                    attachments=attachments or [],
                )
                dispatcher.emit('proposal.created', service_request.client_id, {
                    'message': f'New proposal on "{service_request.title}".',
                    'request_id': service_request.pk,
                    'proposal_id': proposal.pk,
                })
        except IntegrityError:
            # Lost a race with a concurrent submission from the same provider.
            raise DuplicateProposal()

        logger.info(f"Proposal {proposal.pk} submitted on request {service_request.pk} by {provider.pk}")
        return proposal

    def _require_pending(self, proposal, action):
        if proposal.status != Proposal.STATUS_PENDING:
            raise InvalidState(
                f"Only pending proposals can be {action}.",
                current_status=proposal.status,
                expected_status=Proposal.STATUS_PENDING,
            )

    def approve(self, proposal_id):
        with transaction.atomic():
            proposal = self.get(proposal_id, lock=True)
            self._require_pending(proposal, 'approved')
            proposal.status = Proposal.STATUS_ACTIVE
            proposal.save(update_fields=['status', 'updated_at'])
            dispatcher.emit('proposal.approved', proposal.service_provider_id, {
                'proposal_id': proposal.pk,
                'request_id': proposal.service_request_id,
            })
        return proposal

    def reject(self, proposal_id, reason):
        if not (reason or '').strip():
            raise ValidationError("A rejection reason is required.")
        with transaction.atomic():
            proposal = self.get(proposal_id, lock=True)
            self._require_pending(proposal, 'rejected')
            proposal.status = Proposal.STATUS_REJECTED
            proposal.rejection_reason = reason.strip()
            proposal.save(update_fields=['status', 'rejection_reason', 'updated_at'])
            dispatcher.emit('proposal.rejected', proposal.service_provider_id, {
                'proposal_id': proposal.pk,
                'request_id': proposal.service_request_id,
                'message': proposal.rejection_reason,
            })
        return proposal

    def update(self, proposal_id, provider, fields):
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"These fields cannot be changed: {', '.join(sorted(unknown))}.")

        with transaction.atomic():
            proposal = self.get(proposal_id, lock=True)
            if proposal.service_provider_id != provider.pk:
                raise Forbidden("You do not have permission to edit this proposal.")
            self._require_pending(proposal, 'updated')

            price = self._validate_terms(fields.get('price'), fields.get('duration_days'))
            if price is not None:
                fields = dict(fields, price=price)
            for attr, value in fields.items():
                setattr(proposal, attr, value)
            proposal.save(update_fields=list(fields) + ['updated_at'])
        return proposal

    def cancel(self, proposal_id, provider):
        with transaction.atomic():
            proposal = self.get(proposal_id, lock=True)
            if proposal.service_provider_id != provider.pk:
                raise Forbidden("You do not have permission to withdraw this proposal.")
            self._require_pending(proposal, 'canceled')
            proposal.status = Proposal.STATUS_CANCELED
            proposal.save(update_fields=['status', 'updated_at'])
        logger.info(f"Proposal {proposal.pk} withdrawn by {provider.pk}")
        return proposal
