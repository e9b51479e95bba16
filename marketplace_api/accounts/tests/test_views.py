import pytest
from django.urls import reverse

from accounts.models import CustomUser

pytestmark = pytest.mark.django_db

PASSWORD = 'Sturdy-pass-4821'


def registration(**overrides):
    data = {
        'first_name': "Ada",
        'last_name': "Byron",
        'email': "ada@example.com",
        'role': CustomUser.ROLE_SERVICE_PROVIDER,
        'password': PASSWORD,
        'confirm_password': PASSWORD,
    }
    data.update(overrides)
    return data


class TestRegistration:
    def test_register_returns_tokens(self, api_client):
        response = api_client.post(reverse('register'), registration(), format='json')

        assert response.status_code == 201
        assert response.data['user']['role'] == CustomUser.ROLE_SERVICE_PROVIDER
        assert 'password' not in response.data['user']
        assert response.data['access'] and response.data['refresh']
        assert CustomUser.objects.get(email="ada@example.com").check_password(PASSWORD)

    def test_admin_role_cannot_be_self_assigned(self, api_client):
        response = api_client.post(reverse('register'), registration(role=CustomUser.ROLE_ADMIN), format='json')
        assert response.status_code == 400

    def test_passwords_must_match(self, api_client):
        response = api_client.post(reverse('register'), registration(confirm_password='different-1'), format='json')
        assert response.status_code == 400
        assert not CustomUser.objects.exists()


class TestTokens:
    def test_token_carries_role(self, api_client):
        api_client.post(reverse('register'), registration(role=CustomUser.ROLE_CLIENT), format='json')

        response = api_client.post(
            reverse('token-obtain-pair'), {'email': "ada@example.com", 'password': PASSWORD}, format='json'
        )

        assert response.status_code == 200
        access = response.data['access']
        profile = api_client.get(reverse('profile-retrieve-update'), HTTP_AUTHORIZATION=f"Bearer {access}")
        assert profile.status_code == 200
        assert profile.data['role'] == CustomUser.ROLE_CLIENT


class TestProfile:
    def test_role_is_read_only(self, auth_client, client_user):
        response = auth_client(client_user).patch(
            reverse('profile-retrieve-update'), {'role': 'admin', 'phone_number': '+254700000000'}, format='json'
        )

        assert response.status_code == 200
        client_user.refresh_from_db()
        assert client_user.role == CustomUser.ROLE_CLIENT
        assert client_user.phone_number == '+254700000000'


def test_superusers_are_marketplace_admins():
    user = CustomUser.objects.create_superuser(email='root@example.com', password=PASSWORD)
    assert user.role == CustomUser.ROLE_ADMIN
    assert user.is_marketplace_admin
