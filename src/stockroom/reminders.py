"""Reminder management."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel

from .models import Reminder, utcnow
from .recurrence import Recurrence, is_due_today, next_occurrence, occurrences_between
from .store import StoreProtocol

logger = logging.getLogger(__name__)


class ReminderOccurrence(BaseModel):
    """A single due date of a reminder."""

    reminder: Reminder
    occurs_at: datetime

    @property
    def reminder_id(self) -> UUID:
        return self.reminder.id


class ReminderManager:
    """Creates reminders and expands their recurrence into due dates."""

    def __init__(self, store: StoreProtocol):
        self.store = store

    def add_reminder(
        self,
        owner_id: str,
        title: str,
        start_at: datetime | str,
        recurrence: Recurrence | str = Recurrence.NONE,
        notes: str | None = None,
        color: str = "chart-1",
    ) -> Reminder:
        """Create a reminder.

        Args:
            owner_id: User the reminder belongs to
            title: Reminder title
            start_at: First occurrence; strings may omit the timezone (UTC assumed)
            recurrence: How often it repeats
            notes: Optional notes
            color: Display color, chart-1 through chart-5

        Returns:
            The created Reminder

        Raises:
            ValueError: If the title is blank or start_at cannot be parsed
        """
        if not title.strip():
            raise ValueError("Reminder title is required")
        reminder = Reminder(
            owner_id=owner_id,
            title=title.strip(),
            notes=notes,
            start_at=start_at,
            recurrence=recurrence,
            color=color,
        )
        self.store.add_reminder(reminder)
        return reminder

    def list_reminders(self, owner_id: str | None = None) -> list[Reminder]:
        return self.store.list_reminders(owner_id=owner_id)

    def upcoming(
        self,
        owner_id: str | None = None,
        now: datetime | None = None,
    ) -> list[ReminderOccurrence]:
        """Next occurrence of each reminder that still has one, soonest first."""
        now = now or utcnow()
        upcoming = []
        for reminder in self.list_reminders(owner_id):
            occurs_at = next_occurrence(reminder.start_at, reminder.recurrence, now)
            if occurs_at is not None:
                upcoming.append(ReminderOccurrence(reminder=reminder, occurs_at=occurs_at))
        return sorted(upcoming, key=lambda o: (o.occurs_at, str(o.reminder.id)))

    def due_today(
        self,
        owner_id: str | None = None,
        now: datetime | None = None,
    ) -> list[ReminderOccurrence]:
        """Reminders whose next occurrence falls on the same day as ``now``."""
        now = now or utcnow()
        return [
            occurrence
            for occurrence in self.upcoming(owner_id, now)
            if is_due_today(occurrence.reminder.start_at, occurrence.reminder.recurrence, now)
        ]

    def calendar(
        self,
        owner_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ReminderOccurrence]:
        """Every occurrence inside an inclusive window, in time order.

        Args:
            owner_id: Restrict to one owner
            start: Window start; defaults to now
            end: Window end; defaults to 30 days after start

        Returns:
            One ReminderOccurrence per due date
        """
        start = start or utcnow()
        end = end or start + timedelta(days=30)
        if end < start:
            raise ValueError("Calendar end must not be before its start")

        occurrences = [
            ReminderOccurrence(reminder=reminder, occurs_at=occurs_at)
            for reminder in self.list_reminders(owner_id)
            for occurs_at in occurrences_between(
                reminder.start_at, reminder.recurrence, start, end
            )
        ]
        logger.debug("Expanded %d reminder occurrences", len(occurrences))
        return sorted(occurrences, key=lambda o: (o.occurs_at, str(o.reminder.id)))
