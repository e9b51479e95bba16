"""Tests for the atomic accept-proposal flow."""
from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError
from django.urls import reverse

from bookings.models import Booking
from conftest import ClientFactory, ProposalFactory
from escrow.services import EscrowService
from marketplace_api.exceptions import (
    BookingAlreadyExists,
    EscrowFailure,
    Forbidden,
    InsufficientFunds,
    NotFound,
    ProposalNotAcceptable,
    RequestNotOpen,
)
from notifications.models import Notification
from proposals.models import Proposal
from service_requests.models import ServiceRequest
from service_requests.services import ServiceRequestService
from wallets.models import Transaction, Wallet
from wallets.services import LedgerService

pytestmark = pytest.mark.django_db


class TestAcceptProposal:
    def test_accept_holds_funds_and_creates_booking(self, funded_client, active_proposal, open_request):
        result = EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        booking = result['booking']
        assert result['wallet_balance'] == Decimal('400.00')
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('400.00')

        assert booking.status == Booking.STATUS_PENDING
        assert booking.payment_status == Booking.PAYMENT_HELD
        assert booking.price == Decimal('600.00')
        assert booking.duration_days == 10
        assert booking.offer_id == active_proposal.pk
        assert [entry['event'] for entry in booking.timeline] == ['submitted', 'offer_accepted']
        assert (booking.deadline - booking.created_at).days in (9, 10)

        hold = result['hold_transaction']
        assert hold.type == Transaction.TYPE_HOLD
        assert hold.amount == Decimal('600.00')
        assert hold.data == {
            'request_id': str(open_request.pk),
            'proposal_id': str(active_proposal.pk),
            'booking_id': str(booking.pk),
        }

        active_proposal.refresh_from_db()
        open_request.refresh_from_db()
        assert active_proposal.status == Proposal.STATUS_ACCEPTED
        assert active_proposal.accepted_at is not None
        assert open_request.status == ServiceRequest.STATUS_IN_PROGRESS

    def test_only_pending_siblings_are_rejected(self, funded_client, active_proposal, open_request):
        sibling = ProposalFactory(service_request=open_request, status=Proposal.STATUS_PENDING)
        active_sibling = ProposalFactory(service_request=open_request, status=Proposal.STATUS_ACTIVE)
        canceled_sibling = ProposalFactory(service_request=open_request, status=Proposal.STATUS_CANCELED)

        EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        sibling.refresh_from_db()
        assert sibling.status == Proposal.STATUS_REJECTED
        assert sibling.rejection_reason == "Another proposal was accepted for this request."
        active_sibling.refresh_from_db()
        assert active_sibling.status == Proposal.STATUS_ACTIVE
        canceled_sibling.refresh_from_db()
        assert canceled_sibling.status == Proposal.STATUS_CANCELED
        assert canceled_sibling.rejection_reason == ''

    def test_insufficient_funds_changes_nothing(self, client_user, ledger, active_proposal, open_request):
        ledger.deposit(client_user, '100.00')

        with pytest.raises(InsufficientFunds) as excinfo:
            EscrowService().accept_proposal(client=client_user, proposal_id=active_proposal.pk)

        assert excinfo.value.required == Decimal('600.00')
        assert excinfo.value.available == Decimal('100.00')
        assert Wallet.objects.get(owner=client_user).balance == Decimal('100.00')
        assert not Booking.objects.exists()
        active_proposal.refresh_from_db()
        open_request.refresh_from_db()
        assert active_proposal.status == Proposal.STATUS_ACTIVE
        assert open_request.status == ServiceRequest.STATUS_OPEN

    @pytest.mark.parametrize('proposal_status', ['pending', 'rejected', 'canceled'])
    def test_only_approved_proposals_can_be_accepted(self, funded_client, open_request, proposal_status):
        proposal = ProposalFactory(service_request=open_request, status=proposal_status)

        with pytest.raises(ProposalNotAcceptable) as excinfo:
            EscrowService().accept_proposal(client=funded_client, proposal_id=proposal.pk)

        assert excinfo.value.current_status == proposal_status
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')

    def test_accepting_twice_is_not_acceptable(self, funded_client, active_proposal):
        EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        with pytest.raises(ProposalNotAcceptable):
            EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)
        assert Booking.objects.count() == 1
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('400.00')

    def test_second_active_proposal_hits_existing_booking(self, funded_client, active_proposal, open_request):
        other = ProposalFactory(service_request=open_request, status=Proposal.STATUS_ACTIVE, price=Decimal('200.00'))
        EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        with pytest.raises(BookingAlreadyExists):
            EscrowService().accept_proposal(client=funded_client, proposal_id=other.pk)

        assert Booking.objects.count() == 1
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('400.00')

    def test_other_clients_cannot_accept(self, active_proposal, ledger):
        stranger = ClientFactory()
        ledger.deposit(stranger, '1000.00')

        with pytest.raises(Forbidden):
            EscrowService().accept_proposal(client=stranger, proposal_id=active_proposal.pk)
        assert Wallet.objects.get(owner=stranger).balance == Decimal('1000.00')

    def test_unknown_proposal(self, funded_client):
        with pytest.raises(NotFound):
            EscrowService().accept_proposal(client=funded_client, proposal_id=987654)

    def test_database_failure_rolls_back_hold(self, funded_client, active_proposal):
        with mock.patch.object(Booking.objects, 'create', side_effect=DatabaseError("disk full")):
            with pytest.raises(EscrowFailure) as excinfo:
                EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        assert excinfo.value.correlation_id
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')
        assert not Transaction.objects.filter(type=Transaction.TYPE_HOLD).exists()
        active_proposal.refresh_from_db()
        assert active_proposal.status == Proposal.STATUS_ACTIVE

    def test_provider_is_notified_after_commit(self, funded_client, active_proposal, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            result = EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        notification = Notification.objects.get(user=active_proposal.service_provider, event='proposal.accepted')
        assert notification.data['booking_id'] == str(result['booking'].pk)

    def test_failed_accept_sends_no_notification(self, client_user, active_proposal, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InsufficientFunds):
                EscrowService().accept_proposal(client=client_user, proposal_id=active_proposal.pk)

        assert callbacks == []
        assert not Notification.objects.filter(event='proposal.accepted').exists()


class TestAcceptProposalView:
    def test_accept_endpoint(self, auth_client, funded_client, active_proposal):
        response = auth_client(funded_client).post(reverse('accept-proposal-client', args=[active_proposal.pk]))

        assert response.status_code == 201
        assert Decimal(response.data['wallet_balance']) == Decimal('400.00')
        assert response.data['booking']['status'] == 'pending'
        assert response.data['hold_transaction']['type'] == 'hold'

    def test_insufficient_funds_is_payment_required(self, auth_client, client_user, active_proposal):
        response = auth_client(client_user).post(reverse('accept-proposal-client', args=[active_proposal.pk]))

        assert response.status_code == 402
        assert response.data['code'] == 'insufficient_funds'
        assert response.data['required'] == '600.00'
        assert response.data['available'] == '0.00'

    def test_providers_cannot_accept(self, auth_client, provider_user, active_proposal):
        response = auth_client(provider_user).post(reverse('accept-proposal-client', args=[active_proposal.pk]))
        assert response.status_code == 403

    def test_not_acceptable_is_conflict(self, auth_client, funded_client, open_request):
        proposal = ProposalFactory(service_request=open_request, status=Proposal.STATUS_PENDING)

        response = auth_client(funded_client).post(reverse('accept-proposal-client', args=[proposal.pk]))

        assert response.status_code == 409
        assert response.data['code'] == 'proposal_not_acceptable'
        assert response.data['current_status'] == 'pending'


class TestClosedRequests:
    def test_canceled_request_cannot_be_booked(self, funded_client, active_proposal, open_request):
        ServiceRequest.objects.filter(pk=open_request.pk).update(status=ServiceRequest.STATUS_CANCELED)

        with pytest.raises(RequestNotOpen) as excinfo:
            EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        assert excinfo.value.current_status == ServiceRequest.STATUS_CANCELED
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')
        assert not Booking.objects.exists()
        assert not Transaction.objects.filter(type=Transaction.TYPE_HOLD).exists()

    def test_client_cancel_closes_proposal_before_accept(self, funded_client, active_proposal, open_request):
        ServiceRequestService().cancel(open_request.pk, funded_client)

        with pytest.raises(ProposalNotAcceptable):
            EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')
        assert not Booking.objects.exists()

    @pytest.mark.parametrize('request_status', ['rejected', 'completed', 'pending'])
    def test_request_must_take_proposals(self, funded_client, active_proposal, open_request, request_status):
        ServiceRequest.objects.filter(pk=open_request.pk).update(status=request_status)

        with pytest.raises(RequestNotOpen):
            EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        active_proposal.refresh_from_db()
        assert active_proposal.status == Proposal.STATUS_ACTIVE

    def test_closed_request_is_conflict(self, auth_client, funded_client, active_proposal, open_request):
        ServiceRequest.objects.filter(pk=open_request.pk).update(status=ServiceRequest.STATUS_CANCELED)

        response = auth_client(funded_client).post(reverse('accept-proposal-client', args=[active_proposal.pk]))

        assert response.status_code == 409
        assert response.data['code'] == 'request_not_open'


class TestAcceptRaces:
    def test_booking_created_between_check_and_insert(self, funded_client, active_proposal, open_request):
        rival = ProposalFactory(service_request=open_request, status=Proposal.STATUS_ACCEPTED)
        Booking.objects.create(
            client=funded_client,
            service_provider=rival.service_provider,
            service_request=open_request,
            offer=rival,
            price=rival.price,
            duration_days=rival.duration_days,
        )

        with mock.patch.object(EscrowService, '_has_open_booking', return_value=False):
            with pytest.raises(BookingAlreadyExists):
                EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        assert Booking.objects.count() == 1
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')
        assert not Transaction.objects.filter(type=Transaction.TYPE_HOLD).exists()
        active_proposal.refresh_from_db()
        assert active_proposal.status == Proposal.STATUS_ACTIVE

    def test_wallet_drained_between_check_and_hold(self, funded_client, active_proposal):
        real_hold = LedgerService.hold

        def drain_then_hold(ledger, user, amount, correlation=None):
            Wallet.objects.filter(owner=user).update(balance=Decimal('100.00'))
            return real_hold(ledger, user, amount, correlation)

        with mock.patch.object(LedgerService, 'hold', autospec=True, side_effect=drain_then_hold):
            with pytest.raises(InsufficientFunds) as excinfo:
                EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)

        assert excinfo.value.available == Decimal('100.00')
        assert not Booking.objects.exists()
        assert not Transaction.objects.filter(type=Transaction.TYPE_HOLD).exists()
        # The drain ran inside the rolled-back acceptance.
        assert Wallet.objects.get(owner=funded_client).balance == Decimal('1000.00')
