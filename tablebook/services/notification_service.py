from typing import List, Optional

from sqlalchemy.orm import Session

from ..auth import Principal, require_principal
from ..errors import NotificationNotFound
from ..models import Notification


class NotificationService:
    """Recipient-side view of stored notifications."""

    def __init__(self, db: Session):
        self.db = db

    def list_notifications(
        self, principal: Optional[Principal], unread_only: bool = False
    ) -> List[Notification]:
        principal = require_principal(principal)
        query = self.db.query(Notification).filter(Notification.recipient_id == principal.user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    def mark_read(self, principal: Optional[Principal], notification_id: int) -> Notification:
        principal = require_principal(principal)
        notification = self.db.get(Notification, notification_id)
        # Someone else's notification is reported as missing
        if notification is None or notification.recipient_id != principal.user_id:
            raise NotificationNotFound(notification_id)
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification
