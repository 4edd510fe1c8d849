from sqlalchemy.orm import Session

from backend.models.notification import Notification


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_user_id_order_by_created_at_desc(self, user_id: str) -> list[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )

    def save(self, notification: Notification) -> Notification:
        self.db.add(notification)
        self.db.flush()
        return notification

    def delete_by_id(self, notification_id: int) -> bool:
        notification = self.db.get(Notification, notification_id)
        if notification is None:
            return False
        self.db.delete(notification)
        self.db.flush()
        return True
