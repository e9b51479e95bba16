from django.db import models
from django.contrib.auth import get_user_model

from bookings.models import Booking

User = get_user_model()


class Conversation(models.Model):
    """The message thread between the two parties of a booking."""
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='conversation')
    client = models.ForeignKey(User, on_delete=models.PROTECT, related_name='client_conversations')
    service_provider = models.ForeignKey(User, on_delete=models.PROTECT, related_name='provider_conversations')
    last_message_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-last_message_at', '-created_at']

    def __str__(self):
        return f"Conversation for booking {self.booking_id}"

    def is_participant(self, user):
        return user.pk in (self.client_id, self.service_provider_id)


class Message(models.Model):
    ROLE_CLIENT = 'client'
    ROLE_SERVICE_PROVIDER = 'service_provider'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = (
        (ROLE_CLIENT, 'Client'),
        (ROLE_SERVICE_PROVIDER, 'Service Provider'),
        (ROLE_ADMIN, 'Admin'),
    )

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sent_messages')
    sender_role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    text = models.TextField()
    attachment = models.JSONField(null=True, blank=True)  # {id, url, name, type}
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message {self.pk} from {self.sender_role}"
