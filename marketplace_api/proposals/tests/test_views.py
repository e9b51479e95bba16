import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from conftest import ClientFactory, ProposalFactory
from proposals.models import Proposal

pytestmark = pytest.mark.django_db


class TestRequestProposals:
    def test_provider_submits_and_client_lists(self, auth_client, open_request, provider_user, client_user):
        response = auth_client(provider_user).post(
            reverse('request-proposals', args=[open_request.pk]),
            {'price': '480.00', 'duration_days': 4, 'notes': "Available Monday"},
            format='json',
        )
        assert response.status_code == 201
        assert response.data['proposal']['status'] == 'pending'

        response = auth_client(client_user).get(reverse('request-proposals', args=[open_request.pk]))
        assert response.status_code == 200
        assert len(response.data) == 1

    def test_duplicate_is_conflict(self, auth_client, open_request, provider_user):
        ProposalFactory(service_request=open_request, service_provider=provider_user)

        response = auth_client(provider_user).post(
            reverse('request-proposals', args=[open_request.pk]),
            {'price': '480.00', 'duration_days': 4},
            format='json',
        )

        assert response.status_code == 409
        assert response.data['code'] == 'duplicate_proposal'

    def test_other_clients_cannot_list(self, auth_client, open_request):
        response = auth_client(ClientFactory()).get(reverse('request-proposals', args=[open_request.pk]))
        assert response.status_code == 403

    def test_clients_cannot_submit(self, auth_client, open_request, client_user):
        response = auth_client(client_user).post(
            reverse('request-proposals', args=[open_request.pk]),
            {'price': '480.00', 'duration_days': 4},
            format='json',
        )
        assert response.status_code == 403


class TestProviderViews:
    def test_withdraw(self, auth_client, open_request, provider_user):
        proposal = ProposalFactory(service_request=open_request, service_provider=provider_user)

        response = auth_client(provider_user).post(reverse('cancel-proposal-provider', args=[proposal.pk]))

        assert response.status_code == 200
        assert response.data['status'] == Proposal.STATUS_CANCELED

    def test_attachment_upload_and_delete(self, auth_client, provider_user, settings, tmp_path):
        settings.MEDIA_ROOT = str(tmp_path)
        api = auth_client(provider_user)

        upload = SimpleUploadedFile('plan.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        response = api.post(reverse('upload-attachment'), {'file': upload}, format='multipart')
        assert response.status_code == 201
        assert response.data['name'] == 'plan.pdf'
        assert response.data['type'] == 'application/pdf'
        attachment_id = response.data['id']
        assert attachment_id.startswith(f'proposal-attachments/{provider_user.pk}/')

        response = api.delete(reverse('delete-attachment', args=[attachment_id]))
        assert response.status_code == 204

        response = api.delete(reverse('delete-attachment', args=[attachment_id]))
        assert response.status_code == 404

    def test_attachment_outside_prefix_is_not_found(self, auth_client, provider_user):
        response = auth_client(provider_user).delete(reverse('delete-attachment', args=['etc/passwd']))
        assert response.status_code == 404

    def test_other_providers_cannot_delete_attachment(self, auth_client, provider_user, other_provider, settings, tmp_path):
        settings.MEDIA_ROOT = str(tmp_path)
        upload = SimpleUploadedFile('plan.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        attachment_id = auth_client(provider_user).post(
            reverse('upload-attachment'), {'file': upload}, format='multipart'
        ).data['id']

        response = auth_client(other_provider).delete(reverse('delete-attachment', args=[attachment_id]))

        assert response.status_code == 404
        assert (tmp_path / attachment_id).exists()


class TestAdminViews:
    def test_approve_and_reject(self, auth_client, open_request, marketplace_admin):
        first = ProposalFactory(service_request=open_request)
        second = ProposalFactory(service_request=open_request)
        api = auth_client(marketplace_admin)

        response = api.post(reverse('approve-proposal-admin', args=[first.pk]))
        assert response.status_code == 200
        assert response.data['proposal']['status'] == 'active'

        response = api.post(reverse('reject-proposal-admin', args=[second.pk]), {'reason': "Incomplete"}, format='json')
        assert response.status_code == 200
        assert response.data['proposal']['rejection_reason'] == "Incomplete"

        response = api.post(reverse('approve-proposal-admin', args=[first.pk]))
        assert response.status_code == 409
