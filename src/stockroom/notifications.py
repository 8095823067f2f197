"""Notification feed built from low-stock alerts and due reminders."""

import logging
from datetime import datetime

from .count_normalizer import format_quantity
from .inventory_manager import InventoryManager
from .models import Notification, utcnow
from .reminders import ReminderManager
from .stock_classifier import StockStatus
from .store import StoreError, StoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_REMINDERS = 5


def low_stock_key(item_id) -> str:
    return f"low-{item_id}"


def reminder_key(reminder_id) -> str:
    return f"reminder-{reminder_id}"


def _format_when(value: datetime) -> str:
    return f"{value:%a, %b} {value.day} at {value.strftime('%I:%M %p').lstrip('0')}"


class NotificationFeed:
    """Builds a user's notifications and tracks which have been read.

    Notifications are derived on every call; only the read state is stored,
    keyed by (user, notification key).
    """

    def __init__(
        self,
        store: StoreProtocol,
        inventory: InventoryManager | None = None,
        reminders: ReminderManager | None = None,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
        low_stock_alerts: bool = True,
    ):
        self.store = store
        self.inventory = inventory or InventoryManager(store)
        self.reminders = reminders or ReminderManager(store)
        self.max_reminders = max_reminders
        self.low_stock_alerts = low_stock_alerts

    def _low_stock_notifications(self) -> list[Notification]:
        notifications = []
        for stock in self.inventory.low_stock():
            # Items without a usable count are not alerted on
            if not stock.reading.is_known or stock.latest_count is None:
                continue
            is_out = stock.level.status == StockStatus.OUT_OF_STOCK
            qty_label = "0" if is_out else f"{format_quantity(stock.reading.quantity)} {stock.item.unit}"
            as_of = stock.latest_count.count_date
            notifications.append(
                Notification(
                    key=low_stock_key(stock.item.id),
                    type="alert",
                    title=stock.level.status.label,
                    message=f"{stock.item.name} - {qty_label} remaining (as of {as_of:%b} {as_of.day}, {as_of.year}).",
                    severity="out" if is_out else "low",
                )
            )
        return notifications

    def _reminder_notifications(self, user_id: str, now: datetime) -> list[Notification]:
        due = self.reminders.due_today(user_id, now)[: self.max_reminders]
        return [
            Notification(
                key=reminder_key(occurrence.reminder.id),
                type="update",
                title=occurrence.reminder.title,
                message=f"{occurrence.reminder.recurrence.label} - {_format_when(occurrence.occurs_at)}.",
            )
            for occurrence in due
        ]

    def build(self, user_id: str, now: datetime | None = None) -> list[Notification]:
        """Current notifications for a user, with read flags applied.

        Args:
            user_id: User to build the feed for
            now: Reference time for reminders; defaults to now

        Returns:
            Low-stock alerts followed by today's reminders
        """
        now = now or utcnow()
        notifications = []
        if self.low_stock_alerts:
            notifications.extend(self._low_stock_notifications())
        notifications.extend(self._reminder_notifications(user_id, now))
        if not notifications:
            return []

        try:
            read_keys = self.store.read_notification_keys(
                user_id, [n.key for n in notifications]
            )
        except StoreError:
            logger.warning("Could not load read state for %s; showing all as unread", user_id)
            return notifications

        return [n.model_copy(update={"read": n.key in read_keys}) for n in notifications]

    def unread_count(self, user_id: str, now: datetime | None = None) -> int:
        return sum(1 for n in self.build(user_id, now) if not n.read)

    def mark_read(self, user_id: str, keys: list[str]) -> None:
        if keys:
            self.store.mark_notifications_read(user_id, keys)

    def mark_all_read(self, user_id: str, now: datetime | None = None) -> list[str]:
        """Mark every unread notification as read.

        Returns:
            Keys that were marked
        """
        unread = [n.key for n in self.build(user_id, now) if not n.read]
        self.mark_read(user_id, unread)
        return unread
