import logging

from django.db import transaction

from bookings.services import BookingService
from marketplace_api.exceptions import Forbidden, ValidationError
from notifications import dispatcher
from .models import Conversation, Message

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = "[SYSTEM MESSAGE - Admin]: "


class ConversationService:
    """
    One conversation per booking, opened lazily on first use. Only the two
    booking parties write to it; admins read it and post system messages.
    """

    def __init__(self):
        self.bookings = BookingService()

    def for_booking(self, booking):
        conversation, created = Conversation.objects.get_or_create(
            booking=booking,
            defaults={'client_id': booking.client_id, 'service_provider_id': booking.service_provider_id},
        )
        if created:
            logger.info(f"Opened conversation {conversation.pk} for booking {booking.pk}")
        return conversation

    def _post(self, conversation, sender, role, text, attachment=None):
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            sender_role=role,
            text=text,
            attachment=attachment,
        )
        conversation.last_message_at = message.created_at
        conversation.save(update_fields=['last_message_at'])
        return message

    def send(self, booking_id, user, text, attachment=None):
        text = (text or '').strip()
        if not text:
            raise ValidationError("Message text is required.")

        booking = self.bookings.get(booking_id)
        if user.pk == booking.client_id:
            role, recipient_id = Message.ROLE_CLIENT, booking.service_provider_id
        elif user.pk == booking.service_provider_id:
            role, recipient_id = Message.ROLE_SERVICE_PROVIDER, booking.client_id
        else:
            raise Forbidden("You are not a participant of this booking.")

        with transaction.atomic():
            conversation = self.for_booking(booking)
            message = self._post(conversation, user, role, text, attachment)
            dispatcher.emit('message.received', recipient_id, {
                'booking_id': booking.pk,
                'conversation_id': conversation.pk,
                'message_id': message.pk,
                'message': text[:200],
            })
        return message

    def list_messages(self, booking_id, user):
        booking = self.bookings.get(booking_id)
        if not user.is_marketplace_admin and user.pk not in (booking.client_id, booking.service_provider_id):
            raise Forbidden("You are not a participant of this booking.")
        conversation = Conversation.objects.filter(booking=booking).first()
        if conversation is None:
            return Message.objects.none()
        return conversation.messages.select_related('sender')

    def send_system_message(self, booking_id, admin, text):
        """Post an admin notice into the booking's thread and record it on the booking."""
        text = (text or '').strip()
        if not text:
            raise ValidationError("Message text is required.")

        with transaction.atomic():
            booking = self.bookings.get(booking_id, lock=True)
            conversation = self.for_booking(booking)
            message = self._post(conversation, admin, Message.ROLE_ADMIN, f"{SYSTEM_PREFIX}{text}")

            self.bookings.add_history_entry(booking, admin, 'admin_message', f"System message sent: {text}")
            booking.save(update_fields=['history_logs', 'updated_at'])

            for user_id in (booking.client_id, booking.service_provider_id):
                dispatcher.emit('message.system', user_id, {
                    'booking_id': booking.pk,
                    'conversation_id': conversation.pk,
                    'message_id': message.pk,
                    'message': text,
                })

        logger.warning(f"Admin {admin.pk} posted a system message on booking {booking.pk}", extra=booking.correlation())
        return message
