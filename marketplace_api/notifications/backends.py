from .models import Notification
from .signals import notification_emitted


EVENT_TITLES = {
    'request.created': "New Request Created",
    'request.approved': "Request Approved",
    'request.rejected': "Request Rejected",
    'proposal.created': "New Proposal Received",
    'proposal.approved': "Proposal Approved",
    'proposal.rejected': "Proposal Rejected",
    'proposal.accepted': "Your Proposal Has Been Accepted",
    'booking.status_changed': "Booking Updated",
    'booking.warning': "Warning From Support",
    'message.received': "New Message",
    'message.system': "Message From Support",
}


class DatabaseNotificationBackend:
    """
    Stores the notification and broadcasts ``notification_emitted``.
    """

    def send(self, event, user_id, payload):
        notification = Notification.objects.create(
            user_id=user_id,
            event=event,
            title=payload.get('title') or EVENT_TITLES.get(event, event),
            message=payload.get('message', ''),
            data=payload,
        )
        notification_emitted.send(
            sender=self.__class__,
            event=event,
            user_id=user_id,
            payload=payload,
            notification=notification,
        )
        return notification
