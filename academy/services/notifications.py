# academy/services/notifications.py
"""
Notification creation.

Notifications are advisory: a failed insert is logged and never breaks the
action that triggered it.
"""
import logging

from django.db import DatabaseError

logger = logging.getLogger(__name__)

MAX_UNREAD_LISTED = 20


def deep_link_for(notification_type: str, activity_id=None, module_id=None) -> tuple:
    """Return (deep_link, urgency) for a notification type."""
    if notification_type == "activity_post":
        return {"page": "activities"}, "high"
    if notification_type == "activity_submission":
        return {"page": "teacher_pending_activities"}, "high"
    if notification_type == "module_post":
        return {"page": "modules", "id": module_id}, "medium"
    if notification_type == "notice_post":
        return {"page": "join_class"}, "medium"
    if notification_type == "activity_correction":
        return {"page": "student_activity_view", "id": activity_id}, "high"
    if notification_type == "achievement_unlocked":
        return {"page": "achievements"}, "medium"
    return {"page": "dashboard"}, "medium"


def create_notification(user, notification_type, title, text, actor=None, activity_id=None, module_id=None):
    from academy.models import Notification

    deep_link, urgency = deep_link_for(notification_type, activity_id=activity_id, module_id=module_id)
    try:
        return Notification.objects.create(
            user=user,
            actor=actor,
            actor_name=actor.display_name if actor else "",
            notification_type=notification_type,
            title=title,
            text=text,
            deep_link=deep_link,
            urgency=urgency,
        )
    except DatabaseError as e:
        logger.warning(f"Could not create {notification_type} notification for {user.email}: {e}")
        return None


def notify_class_students(classroom, notification_type, title, text, actor=None, activity_id=None, module_id=None) -> int:
    """Notify every enrolled student of a class. Returns how many notifications were stored."""
    from academy.models import Notification

    deep_link, urgency = deep_link_for(notification_type, activity_id=activity_id, module_id=module_id)
    notifications = [
        Notification(
            user=student,
            actor=actor,
            actor_name=actor.display_name if actor else "",
            notification_type=notification_type,
            title=title,
            text=text,
            deep_link=deep_link,
            urgency=urgency,
        )
        for student in classroom.students.all()
    ]
    if not notifications:
        return 0

    try:
        Notification.objects.bulk_create(notifications)
    except DatabaseError as e:
        logger.warning(f"Could not notify class {classroom.code} ({notification_type}): {e}")
        return 0

    logger.info(f"Sent {len(notifications)} {notification_type} notifications to class {classroom.code}")
    return len(notifications)


def unread_for(user):
    from academy.models import Notification

    return Notification.objects.filter(user=user, read=False).order_by("-created_at", "-id")[:MAX_UNREAD_LISTED]
