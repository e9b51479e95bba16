from django.dispatch import Signal

# Sent after a notification is stored; a real-time transport subscribes here.
# Arguments: event, user_id, payload, notification
notification_emitted = Signal()
