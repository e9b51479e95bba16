import pytest
from django.urls import reverse

from conftest import ServiceRequestFactory

pytestmark = pytest.mark.django_db


class TestServiceRequestViews:
    def test_client_creates_and_lists(self, auth_client, client_user):
        api = auth_client(client_user)

        response = api.post(
            reverse('create-request-client'),
            {'title': "Garden cleanup", 'description': "Leaves and hedges", 'budget': '300.00'},
            format='json',
        )
        assert response.status_code == 201
        assert response.data['request']['status'] == 'pending'

        response = api.get(reverse('list-requests-client'))
        assert [item['title'] for item in response.data] == ["Garden cleanup"]

    def test_negative_budget_is_rejected(self, auth_client, client_user):
        response = auth_client(client_user).post(
            reverse('create-request-client'),
            {'title': "Garden cleanup", 'description': "Leaves", 'budget': '-5'},
            format='json',
        )
        assert response.status_code == 400

    def test_providers_see_only_open_requests(self, auth_client, provider_user, open_request):
        ServiceRequestFactory(status='pending')
        ServiceRequestFactory(status='completed')

        response = auth_client(provider_user).get(reverse('list-requests-open'))

        assert [item['id'] for item in response.data] == [open_request.pk]

    def test_admin_approves(self, auth_client, marketplace_admin):
        service_request = ServiceRequestFactory(status='pending')

        response = auth_client(marketplace_admin).post(reverse('approve-request-admin', args=[service_request.pk]))

        assert response.status_code == 200
        assert response.data['request']['status'] == 'open'

    def test_clients_cannot_moderate(self, auth_client, client_user):
        service_request = ServiceRequestFactory(status='pending')
        response = auth_client(client_user).post(reverse('approve-request-admin', args=[service_request.pk]))
        assert response.status_code == 403

    def test_owner_patches_request(self, auth_client, client_user, open_request):
        response = auth_client(client_user).patch(
            reverse('retrieve-request', args=[open_request.pk]), {'description': "Two rooms now"}, format='json'
        )

        assert response.status_code == 200
        assert response.data['request']['description'] == "Two rooms now"
        assert response.data['request']['title'] == open_request.title

    def test_providers_cannot_patch(self, auth_client, provider_user, open_request):
        response = auth_client(provider_user).patch(
            reverse('retrieve-request', args=[open_request.pk]), {'title': "Mine"}, format='json'
        )
        assert response.status_code == 403

    def test_owner_deletes_request(self, auth_client, client_user, open_request):
        response = auth_client(client_user).delete(reverse('retrieve-request', args=[open_request.pk]))

        assert response.status_code == 204
        response = auth_client(client_user).get(reverse('retrieve-request', args=[open_request.pk]))
        assert response.status_code == 404

    def test_delete_with_proposals_is_conflict(self, auth_client, client_user, active_proposal, open_request):
        response = auth_client(client_user).delete(reverse('retrieve-request', args=[open_request.pk]))
        assert response.status_code == 409
