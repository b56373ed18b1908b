"""
Data sources feeding the insights feed.

A DataSource supplies the three independent collections an evaluation
needs. The implementation is chosen once at startup from
settings.DATA_SOURCE; business logic never decides between live and
fixture data on its own.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
import logging
import sqlite3

from config import settings
from database.models import AppointmentModel, CalendarEventModel, TaskModel
from insights.schema import Appointment, Event, Task
from utils.time_helpers import day_window

logger = logging.getLogger(__name__)

DayWindow = Tuple[datetime, datetime]


class DataUnavailable(Exception):
    """One of the snapshot collections could not be obtained."""

    def __init__(self, collection: str, reason: str = ""):
        self.collection = collection
        self.reason = reason
        super().__init__(f"{collection} unavailable: {reason}" if reason else f"{collection} unavailable")


class DataSource(ABC):
    """Capability interface for fetching one user's snapshot collections."""

    name = "abstract"

    @abstractmethod
    def fetch_today_events(self, user_id: str, window: DayWindow) -> List[Event]:
        """Events whose start falls inside the window."""
        pass

    @abstractmethod
    def fetch_open_tasks(self, user_id: str) -> List[Task]:
        """Tasks whose status is not 'done'."""
        pass

    @abstractmethod
    def fetch_pending_appointments(self, user_id: str, window: Optional[DayWindow] = None) -> List[Appointment]:
        """
        Appointments whose status is 'pending', whenever they are requested for.

        The window is the evaluated day; sources that lay out data relative
        to a day use it as their anchor.
        """
        pass


class LiveDataSource(DataSource):
    """Reads snapshot collections from the SQLite store."""

    name = "live"

    def fetch_today_events(self, user_id: str, window: DayWindow) -> List[Event]:
        start, end = window
        try:
            rows = CalendarEventModel.list(user_id, start=start, end=end)
        except sqlite3.Error as e:
            logger.error(f"Failed to fetch events for {user_id}: {e}")
            raise DataUnavailable("events", str(e)) from e
        return [Event.from_row(row) for row in rows]

    def fetch_open_tasks(self, user_id: str) -> List[Task]:
        try:
            rows = TaskModel.list_open(user_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to fetch tasks for {user_id}: {e}")
            raise DataUnavailable("tasks", str(e)) from e
        return [Task.from_row(row) for row in rows]

    def fetch_pending_appointments(self, user_id: str, window: Optional[DayWindow] = None) -> List[Appointment]:
        try:
            rows = AppointmentModel.list_pending(user_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to fetch appointments for {user_id}: {e}")
            raise DataUnavailable("appointments", str(e)) from e
        return [Appointment.from_row(row) for row in rows]


class StaticFixtureDataSource(DataSource):
    """
    Built-in demo data, laid out relative to the requested day.

    Serves the same fixtures to every user; useful for demos and for
    running the dashboard without a populated database.
    """

    name = "static"

    def fetch_today_events(self, user_id: str, window: DayWindow) -> List[Event]:
        start_of_day, _ = window

        def at(hours: float) -> datetime:
            return start_of_day + timedelta(hours=hours)

        return [
            Event("1", "Deep Work: Strategy Planning", at(9), at(11), "focus-time"),
            Event("2", "Client Call - TechCorp", at(14), at(15), "meeting",
                  location="Zoom", attendees=4),
            Event("3", "Lunch Break", at(12), at(13), "break"),
            Event("4", "Team Standup", at(16), at(16.5), "meeting",
                  location="Conference Room B", attendees=8),
        ]

    def fetch_open_tasks(self, user_id: str) -> List[Task]:
        tasks = [
            Task("1", "Review Q4 Budget", "high", "todo", duration_minutes=60, energy_required=4),
            Task("2", "Client Presentation", "high", "in-progress", duration_minutes=90, energy_required=5),
            Task("3", "Email Campaign", "medium", "review", duration_minutes=45, energy_required=3),
            Task("4", "Documentation", "low", "done", duration_minutes=30, energy_required=2),
        ]
        return [task for task in tasks if task.status != "done"]

    def fetch_pending_appointments(self, user_id: str, window: Optional[DayWindow] = None) -> List[Appointment]:
        start_of_day, _ = window or day_window()
        return [
            Appointment("1", "Jordan Lee", "Strategy Session",
                        start_of_day + timedelta(days=1, hours=10), "pending", 60),
        ]


_DATA_SOURCES = {
    LiveDataSource.name: LiveDataSource,
    StaticFixtureDataSource.name: StaticFixtureDataSource,
}

# Global data source instance
_data_source: Optional[DataSource] = None


def build_data_source(name: str) -> DataSource:
    """Instantiate the data source registered under `name`."""
    try:
        return _DATA_SOURCES[name]()
    except KeyError:
        raise ValueError(f"Unknown data source '{name}', expected one of: {', '.join(_DATA_SOURCES)}")


def get_data_source() -> DataSource:
    """Get the data source selected by configuration (created on first use)."""
    global _data_source
    if _data_source is None:
        _data_source = build_data_source(settings.DATA_SOURCE)
        logger.info(f"Using '{_data_source.name}' data source for insights")
    return _data_source


def set_data_source(source: Optional[DataSource]) -> None:
    """Replace the global data source (startup wiring and tests)."""
    global _data_source
    _data_source = source
