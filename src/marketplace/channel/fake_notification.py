"""Fake notification sink — keeps notifications in memory."""

from uuid import uuid4

from marketplace.channel.notification_port import NotificationSink


class FakeNotificationSink(NotificationSink):
    def __init__(self):
        self.notifications: list[dict] = []
        self.should_succeed = True

    def configure(self, should_succeed: bool = True):
        self.should_succeed = should_succeed

    def create(
        self,
        user_id: str,
        title: str,
        description: str,
        type: str,
        target_role: str,
        link: str | None = None,
    ) -> dict:
        if not self.should_succeed:
            raise ConnectionError("Notification store unavailable")

        notification_id = f"ntf-{uuid4().hex[:12]}"
        self.notifications.append(
            {
                "notification_id": notification_id,
                "user_id": user_id,
                "title": title,
                "description": description,
                "type": type,
                "target_role": target_role,
                "link": link,
            }
        )
        return {"notification_id": notification_id, "status": "created"}

    def for_user(self, user_id: str) -> list[dict]:
        return [n for n in self.notifications if n["user_id"] == str(user_id)]
