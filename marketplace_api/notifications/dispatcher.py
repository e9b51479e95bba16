import json
import logging

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


def get_backend():
    return import_string(settings.NOTIFICATION_BACKEND)()


def _jsonable(payload):
    return json.loads(json.dumps(payload or {}, cls=DjangoJSONEncoder))


def deliver(event, user_id, payload):
    """
    Hand the event to the configured backend. Delivery is best effort: a
    failing backend is logged and never propagates to the caller.
    """
    try:
        get_backend().send(event, user_id, payload)
    except Exception:
        logger.exception(f"Notification '{event}' for user {user_id} could not be delivered")


def emit(event, target_user_id, payload=None):
    """
    Queue ``event`` for ``target_user_id`` once the surrounding transaction
    commits. Rolled back work never notifies anyone.
    """
    payload = _jsonable(payload)
    transaction.on_commit(lambda: deliver(event, target_user_id, payload))
