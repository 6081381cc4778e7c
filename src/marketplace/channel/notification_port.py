"""Notification sink port — in-app notifications shown in a user's feed."""

from abc import ABC, abstractmethod


class NotificationSink(ABC):
    """Abstract interface for persisted in-app notifications."""

    @abstractmethod
    def create(
        self,
        user_id: str,
        title: str,
        description: str,
        type: str,
        target_role: str,
        link: str | None = None,
    ) -> dict:
        """Create a notification for a user.

        Returns:
            dict with keys: notification_id, status
        """
        ...
