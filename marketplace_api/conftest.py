"""
Shared pytest fixtures and factory_boy factories for the marketplace apps.

Tests run against the settings module with ``--nomigrations``, so tables are
built straight from the models.
"""
from decimal import Decimal

import factory
import pytest
from factory.django import DjangoModelFactory
from rest_framework.test import APIClient


# ============================================================================
# FACTORIES
# ============================================================================

class UserFactory(DjangoModelFactory):
    class Meta:
        model = 'accounts.CustomUser'
        django_get_or_create = ('email',)

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.django.Password('testpass123')
    role = 'client'
    is_active = True


class ClientFactory(UserFactory):
    role = 'client'


class ProviderFactory(UserFactory):
    role = 'service_provider'


class AdminFactory(UserFactory):
    role = 'admin'
    is_staff = True


class ServiceRequestFactory(DjangoModelFactory):
    class Meta:
        model = 'service_requests.ServiceRequest'

    client = factory.SubFactory(ClientFactory)
    title = factory.Sequence(lambda n: f"Kitchen renovation {n}")
    description = factory.Faker('paragraph')
    budget = Decimal('1000.00')
    status = 'open'


class ProposalFactory(DjangoModelFactory):
    class Meta:
        model = 'proposals.Proposal'

    service_request = factory.SubFactory(ServiceRequestFactory)
    service_provider = factory.SubFactory(ProviderFactory)
    price = Decimal('600.00')
    duration_days = 10
    notes = "Can start next week."
    status = 'pending'


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    """Return an API client authenticated as the given user."""
    def _make(user):
        api = APIClient()
        api.force_authenticate(user=user)
        return api
    return _make


@pytest.fixture
def client_user(db):
    return ClientFactory()


@pytest.fixture
def provider_user(db):
    return ProviderFactory()


@pytest.fixture
def other_provider(db):
    return ProviderFactory()


@pytest.fixture
def marketplace_admin(db):
    return AdminFactory()


@pytest.fixture
def ledger():
    from wallets.services import LedgerService
    return LedgerService()


@pytest.fixture
def funded_client(client_user, ledger):
    """A client whose wallet holds 1000.00."""
    ledger.deposit(client_user, Decimal('1000.00'))
    return client_user


@pytest.fixture
def open_request(client_user):
    return ServiceRequestFactory(client=client_user, status='open')


@pytest.fixture
def active_proposal(open_request, provider_user):
    """An admin-approved proposal of 600.00 for 10 days on ``open_request``."""
    return ProposalFactory(
        service_request=open_request,
        service_provider=provider_user,
        price=Decimal('600.00'),
        duration_days=10,
        status='active',
    )


@pytest.fixture
def booking(funded_client, active_proposal):
    """A booking created through the escrow flow; 600.00 is held."""
    from escrow.services import EscrowService
    return EscrowService().accept_proposal(client=funded_client, proposal_id=active_proposal.pk)['booking']
