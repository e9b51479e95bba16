from unittest import mock

import pytest
from django.db import transaction
from django.urls import reverse

from notifications import dispatcher
from notifications.models import Notification
from notifications.signals import notification_emitted

pytestmark = pytest.mark.django_db


class TestEmit:
    def test_delivered_after_commit(self, client_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            dispatcher.emit('request.approved', client_user.pk, {'request_id': 5})
            assert not Notification.objects.exists()

        notification = Notification.objects.get(user=client_user)
        assert notification.event == 'request.approved'
        assert notification.title == "Request Approved"
        assert notification.data == {'request_id': 5}

    def test_rolled_back_work_notifies_nobody(self, client_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    dispatcher.emit('request.approved', client_user.pk, {'request_id': 5})
                    raise RuntimeError("abort")

        assert callbacks == []
        assert not Notification.objects.exists()

    def test_signal_is_sent(self, client_user, django_capture_on_commit_callbacks):
        received = []

        def listener(sender, event, user_id, payload, notification, **kwargs):
            received.append((event, user_id, notification.pk))

        notification_emitted.connect(listener)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                dispatcher.emit('booking.warning', client_user.pk, {'message': "Heads up"})
        finally:
            notification_emitted.disconnect(listener)

        assert received == [('booking.warning', client_user.pk, Notification.objects.get().pk)]

    def test_backend_failure_is_logged_not_raised(self, client_user, caplog):
        with mock.patch.object(dispatcher, 'get_backend', side_effect=RuntimeError("backend down")):
            dispatcher.deliver('request.approved', client_user.pk, {})

        assert "could not be delivered" in caplog.text


class TestNotificationViews:
    def test_list_and_mark_read(self, auth_client, client_user):
        notification = Notification.objects.create(user=client_user, event='request.approved', title="Request Approved")
        api = auth_client(client_user)

        response = api.get(reverse('notifications-list'))
        assert [item['id'] for item in response.data] == [notification.pk]

        response = api.patch(reverse('notifications-read', args=[notification.pk]))
        assert response.status_code == 200
        assert response.data['is_read'] is True

    def test_cannot_read_others_notifications(self, auth_client, client_user, provider_user):
        notification = Notification.objects.create(user=client_user, event='request.approved', title="Request Approved")

        response = auth_client(provider_user).patch(reverse('notifications-read', args=[notification.pk]))

        assert response.status_code == 404
