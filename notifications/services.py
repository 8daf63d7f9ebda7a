import logging

from authentication.models import CustomUser
from core.id_converter import related_id_for
from .models import Notification

logger = logging.getLogger(__name__)


def _recipients(config, user):
    if user is not None:
        return [user]

    admins = list(CustomUser.objects.active_admins())
    if admins:
        return admins

    if config.default_admin_id:
        fallback = CustomUser.objects.filter(pk=config.default_admin_id).first()
        if fallback is not None:
            return [fallback]

    logger.warning("No admin users available to receive system notifications")
    return []


def create_system_notification(config, *, type=Notification.TYPE_SYSTEM, title='System Notification',
                               message='System notification', user=None, related=None, related_type=None):
    """
    Create a notification for ``user``, or for every active admin when no user is given.

    ``related`` is the primary key of the entity the notification points at.
    UUID keys are stored as their numeric id. Returns the created notifications.
    """
    related_id = related_id_for(related, config.numeric_id_digits)

    notifications = [
        Notification(
            user=recipient,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            related_type=related_type,
        )
        for recipient in _recipients(config, user)
    ]
    if notifications:
        Notification.objects.bulk_create(notifications)
        logger.info(
            "Created %d '%s' notification(s) for %s %s (related_id=%s)",
            len(notifications), type, related_type, related, related_id,
        )
    return notifications
