"""
SQLite Models & Infrastructure
==============================

Thread-safe connection management and the task, calendar event,
appointment and configuration models behind the FlowSync API.
"""

import sqlite3
import threading
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple
from contextlib import contextmanager
import logging
import time

from config import settings
from utils.time_helpers import parse_due, to_storage, from_storage, utc_now

logger = logging.getLogger(__name__)

TASK_PRIORITIES = ('low', 'medium', 'high', 'urgent')
TASK_STATUSES = ('todo', 'in-progress', 'review', 'done')
EVENT_CATEGORIES = ('meeting', 'focus-time', 'task-block', 'break', 'appointment')
APPOINTMENT_STATUSES = ('pending', 'confirmed', 'declined')

# Short names the dashboard drafts used for event categories
_CHOICE_ALIASES = {
    'focus': 'focus-time',
    'task': 'task-block',
}


def normalize_choice(value: Any, choices: tuple, field: str) -> str:
    """
    Normalize an enumerated value to its lowercase hyphenated form.

    Accepts any case and '_' or ' ' as separators ('IN_PROGRESS' -> 'in-progress').

    Raises:
        ValueError: If the value is not one of the allowed choices
    """
    key = str(value).strip().lower().replace('_', '-').replace(' ', '-')
    key = _CHOICE_ALIASES.get(key, key)
    if key not in choices:
        raise ValueError(f"Invalid {field} '{value}', expected one of: {', '.join(choices)}")
    return key


def _optional_due(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return to_storage(parse_due(value))


def _optional_int(value: Any, field: str, low: int = None, high: int = None) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer")
    if low is not None and number < low:
        raise ValueError(f"{field} must be >= {low}")
    if high is not None and number > high:
        raise ValueError(f"{field} must be <= {high}")
    return number


def _required_text(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ''
    if not text:
        raise ValueError(f"{field} cannot be empty")
    return text


class DatabaseConnection:
    """Thread-safe SQLite connection manager with thread-local connections."""

    def __init__(self, db_path: str = ".db/flowsync.db"):
        self.db_path = db_path
        self._local = threading.local()
        self.schema_path = Path(__file__).parent / "schema.sql"
        self._ensure_database()

    def _ensure_database(self):
        """Ensure database exists and schema is applied."""
        if self.db_path != ':memory:':
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            if Path(self.db_path).exists():
                logger.info(f"Using existing database: {self.db_path}")
            else:
                logger.info(f"Creating new database: {self.db_path}")
        with self.get_connection() as conn:
            conn.executescript(self.schema_path.read_text(encoding='utf-8'))
            logger.info("Database schema applied successfully")

    @contextmanager
    def get_connection(self):
        """Get thread-local database connection with rollback on failure."""
        if not hasattr(self._local, 'connection'):
            self._local.connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0
            )
            self._local.connection.row_factory = sqlite3.Row
            self._local.connection.execute("PRAGMA foreign_keys = ON")

        try:
            yield self._local.connection
        except Exception as e:
            self._local.connection.rollback()
            logger.error(f"Database operation failed: {e}")
            raise

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Execute SELECT query and return results."""
        with self.get_connection() as conn:
            t0 = time.perf_counter()
            cursor = conn.execute(query, params)
            rows = cursor.fetchall()
            dt = time.perf_counter() - t0
            # Log only the first line of the query to keep logs concise
            first_line = query.strip().splitlines()[0] if query else ""
            logger.info(f"DB timing: execute_query {dt:.3f}s rows={len(rows)} | {first_line[:120]}")
            return rows

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Execute UPDATE/DELETE and return affected rows."""
        with self.get_connection() as conn:
            t0 = time.perf_counter()
            cursor = conn.execute(query, params)
            conn.commit()
            dt = time.perf_counter() - t0
            first_line = query.strip().splitlines()[0] if query else ""
            logger.info(f"DB timing: execute_update {dt:.3f}s affected={cursor.rowcount} | {first_line[:120]}")
            return cursor.rowcount

    def execute_insert(self, query: str, params: tuple = ()) -> int:
        """Execute INSERT and return the new row id."""
        with self.get_connection() as conn:
            t0 = time.perf_counter()
            cursor = conn.execute(query, params)
            conn.commit()
            dt = time.perf_counter() - t0
            first_line = query.strip().splitlines()[0] if query else ""
            logger.info(f"DB timing: execute_insert {dt:.3f}s id={cursor.lastrowid} | {first_line[:120]}")
            return cursor.lastrowid

    def close(self):
        """Close the thread-local database connection."""
        if hasattr(self._local, 'connection'):
            try:
                self._local.connection.commit()
                self._local.connection.close()
                logger.debug("Database connection closed")
            except Exception as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                try:
                    del self._local.connection
                except AttributeError:
                    pass  # Already deleted


# Global database instance
db = DatabaseConnection(str(settings.DATABASE_PATH))


class TaskModel:
    """Kanban tasks. Any status may move to any other status."""

    UPDATABLE_FIELDS = ('title', 'description', 'priority', 'status', 'due_at',
                        'duration_minutes', 'energy_required', 'category')

    @classmethod
    def _clean(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key, value in fields.items():
            if key not in cls.UPDATABLE_FIELDS:
                continue
            if key == 'title':
                value = _required_text(value, 'title')
            elif key == 'priority':
                value = normalize_choice(value, TASK_PRIORITIES, 'priority')
            elif key == 'status':
                value = normalize_choice(value, TASK_STATUSES, 'status')
            elif key == 'due_at':
                value = _optional_due(value)
            elif key == 'duration_minutes':
                value = _optional_int(value, 'duration_minutes', low=0)
            elif key == 'energy_required':
                value = _optional_int(value, 'energy_required', low=1, high=5)
            cleaned[key] = value
        return cleaned

    @classmethod
    def create(cls, user_id: str, title: str, priority: str = 'medium',
               status: str = 'todo', **fields) -> Dict[str, Any]:
        """Insert a new task and return it."""
        data = cls._clean({'title': title, 'priority': priority, 'status': status, **fields})
        now = to_storage(utc_now())
        columns = ['user_id', *data.keys(), 'created_at', 'updated_at']
        values = [user_id, *data.values(), now, now]
        query = f"""
            INSERT INTO tasks ({', '.join(columns)})
            VALUES ({', '.join('?' for _ in columns)})
        """
        task_id = db.execute_insert(query, tuple(values))
        logger.info(f"Created task {task_id} for {user_id}: {data['title']}")
        return cls.get(user_id, task_id)

    @classmethod
    def get(cls, user_id: str, task_id: int) -> Optional[Dict[str, Any]]:
        rows = db.execute_query("SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id))
        return dict(rows[0]) if rows else None

    @classmethod
    def list(cls, user_id: str, status: str = None) -> List[Dict[str, Any]]:
        """List a user's tasks, optionally filtered by status."""
        query = "SELECT * FROM tasks WHERE user_id = ?"
        params = [user_id]
        if status:
            query += " AND status = ?"
            params.append(normalize_choice(status, TASK_STATUSES, 'status'))
        query += " ORDER BY created_at ASC, id ASC"
        rows = db.execute_query(query, tuple(params))
        return [dict(row) for row in rows]

    @classmethod
    def list_open(cls, user_id: str) -> List[Dict[str, Any]]:
        """Tasks whose status is not 'done'."""
        rows = db.execute_query(
            "SELECT * FROM tasks WHERE user_id = ? AND status != 'done' ORDER BY created_at ASC, id ASC",
            (user_id,)
        )
        return [dict(row) for row in rows]

    @classmethod
    def update(cls, user_id: str, task_id: int, **fields) -> Optional[Dict[str, Any]]:
        """Apply a partial update; returns None if the task does not exist."""
        data = cls._clean(fields)
        if not cls.get(user_id, task_id):
            return None
        if data:
            assignments = ', '.join(f"{key} = ?" for key in data)
            query = f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?"
            db.execute_update(query, (*data.values(), to_storage(utc_now()), task_id, user_id))
            logger.info(f"Updated task {task_id}: {sorted(data)}")
        return cls.get(user_id, task_id)

    @classmethod
    def delete(cls, user_id: str, task_id: int) -> bool:
        count = db.execute_update("DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id))
        return count > 0


class CalendarEventModel:
    """Calendar events (meetings, focus blocks, breaks, booked appointments)."""

    UPDATABLE_FIELDS = ('title', 'description', 'start_time', 'end_time',
                        'category', 'location', 'attendees')

    @classmethod
    def _clean(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key, value in fields.items():
            if key not in cls.UPDATABLE_FIELDS:
                continue
            if key == 'title':
                value = _required_text(value, 'title')
            elif key in ('start_time', 'end_time'):
                if value is None or value == '':
                    raise ValueError(f"{key} is required")
                value = to_storage(value)
            elif key == 'category':
                value = normalize_choice(value, EVENT_CATEGORIES, 'category')
            elif key == 'attendees':
                value = _optional_int(value, 'attendees', low=0)
            cleaned[key] = value
        return cleaned

    @staticmethod
    def _check_span(start_time: str, end_time: str) -> None:
        if from_storage(end_time) < from_storage(start_time):
            raise ValueError("end_time cannot be before start_time")

    @classmethod
    def create(cls, user_id: str, title: str, start_time, end_time,
               category: str = 'meeting', **fields) -> Dict[str, Any]:
        """Insert a new calendar event and return it."""
        data = cls._clean({'title': title, 'start_time': start_time, 'end_time': end_time,
                           'category': category, **fields})
        cls._check_span(data['start_time'], data['end_time'])
        now = to_storage(utc_now())
        columns = ['user_id', *data.keys(), 'created_at', 'updated_at']
        values = [user_id, *data.values(), now, now]
        query = f"""
            INSERT INTO calendar_events ({', '.join(columns)})
            VALUES ({', '.join('?' for _ in columns)})
        """
        event_id = db.execute_insert(query, tuple(values))
        logger.info(f"Created {data['category']} event {event_id} for {user_id}")
        return cls.get(user_id, event_id)

    @classmethod
    def get(cls, user_id: str, event_id: int) -> Optional[Dict[str, Any]]:
        rows = db.execute_query("SELECT * FROM calendar_events WHERE id = ? AND user_id = ?",
                                (event_id, user_id))
        return dict(rows[0]) if rows else None

    @classmethod
    def list(cls, user_id: str, start: datetime = None, end: datetime = None,
             category: str = None) -> List[Dict[str, Any]]:
        """List events whose start falls in [start, end], ordered by start time."""
        query = "SELECT * FROM calendar_events WHERE user_id = ?"
        params = [user_id]
        if start is not None:
            query += " AND start_time >= ?"
            params.append(to_storage(start))
        if end is not None:
            query += " AND start_time <= ?"
            params.append(to_storage(end))
        if category:
            query += " AND category = ?"
            params.append(normalize_choice(category, EVENT_CATEGORIES, 'category'))
        query += " ORDER BY start_time ASC, id ASC"
        rows = db.execute_query(query, tuple(params))
        return [dict(row) for row in rows]

    @classmethod
    def list_overlapping(cls, user_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Events that occupy any part of [start, end)."""
        rows = db.execute_query(
            "SELECT * FROM calendar_events WHERE user_id = ? AND start_time < ? AND end_time > ? "
            "ORDER BY start_time ASC, id ASC",
            (user_id, to_storage(end), to_storage(start))
        )
        return [dict(row) for row in rows]

    @classmethod
    def update(cls, user_id: str, event_id: int, **fields) -> Optional[Dict[str, Any]]:
        """Apply a partial update; returns None if the event does not exist."""
        data = cls._clean(fields)
        current = cls.get(user_id, event_id)
        if not current:
            return None
        if data:
            cls._check_span(data.get('start_time', current['start_time']),
                            data.get('end_time', current['end_time']))
            assignments = ', '.join(f"{key} = ?" for key in data)
            query = f"UPDATE calendar_events SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?"
            db.execute_update(query, (*data.values(), to_storage(utc_now()), event_id, user_id))
            logger.info(f"Updated event {event_id}: {sorted(data)}")
        return cls.get(user_id, event_id)

    @classmethod
    def delete(cls, user_id: str, event_id: int) -> bool:
        count = db.execute_update("DELETE FROM calendar_events WHERE id = ? AND user_id = ?",
                                  (event_id, user_id))
        return count > 0


class AppointmentModel:
    """
    Appointment bookings.

    Confirming an appointment spawns a derived calendar event of category
    'appointment' and links it through event_id. While the appointment stays
    confirmed the event follows its time, duration and title; leaving the
    confirmed state (or deleting the appointment) removes the event.
    """

    UPDATABLE_FIELDS = ('client_name', 'client_email', 'client_phone', 'notes',
                        'service_name', 'requested_at', 'duration_minutes', 'status')
    # Changes to these move or retitle the linked calendar event
    EVENT_FIELDS = {'client_name', 'service_name', 'notes', 'requested_at', 'duration_minutes'}

    @classmethod
    def _clean(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key, value in fields.items():
            if key not in cls.UPDATABLE_FIELDS:
                continue
            if key in ('client_name', 'service_name'):
                value = _required_text(value, key)
            elif key == 'requested_at':
                if value is None or value == '':
                    raise ValueError("requested_at is required")
                value = to_storage(value)
            elif key == 'duration_minutes':
                value = _optional_int(value, 'duration_minutes', low=1, high=24 * 60)
            elif key == 'status':
                value = normalize_choice(value, APPOINTMENT_STATUSES, 'status')
            cleaned[key] = value
        return cleaned

    @classmethod
    def create(cls, user_id: str, client_name: str, service_name: str,
               requested_at, **fields) -> Dict[str, Any]:
        """Book a new appointment. New bookings are always pending."""
        fields.pop('status', None)
        data = cls._clean({'client_name': client_name, 'service_name': service_name,
                           'requested_at': requested_at, **fields})
        now = to_storage(utc_now())
        columns = ['user_id', *data.keys(), 'status', 'created_at', 'updated_at']
        values = [user_id, *data.values(), 'pending', now, now]
        query = f"""
            INSERT INTO appointments ({', '.join(columns)})
            VALUES ({', '.join('?' for _ in columns)})
        """
        appointment_id = db.execute_insert(query, tuple(values))
        logger.info(f"Booked appointment {appointment_id} for {user_id}: "
                    f"{data['service_name']} with {data['client_name']}")
        return cls.get(user_id, appointment_id)

    @classmethod
    def get(cls, user_id: str, appointment_id: int) -> Optional[Dict[str, Any]]:
        rows = db.execute_query("SELECT * FROM appointments WHERE id = ? AND user_id = ?",
                                (appointment_id, user_id))
        return dict(rows[0]) if rows else None

    @classmethod
    def list(cls, user_id: str, status: str = None) -> List[Dict[str, Any]]:
        query = "SELECT * FROM appointments WHERE user_id = ?"
        params = [user_id]
        if status:
            query += " AND status = ?"
            params.append(normalize_choice(status, APPOINTMENT_STATUSES, 'status'))
        query += " ORDER BY requested_at ASC, id ASC"
        rows = db.execute_query(query, tuple(params))
        return [dict(row) for row in rows]

    @classmethod
    def list_pending(cls, user_id: str) -> List[Dict[str, Any]]:
        return cls.list(user_id, status='pending')

    @classmethod
    def list_active(cls, user_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Pending or confirmed appointments that occupy any part of [start, end)."""
        # Bookings never run past a day, so starting a day early catches every overlap
        rows = db.execute_query(
            """
            SELECT * FROM appointments
            WHERE user_id = ? AND status IN ('pending', 'confirmed')
              AND requested_at >= ? AND requested_at < ?
            ORDER BY requested_at ASC, id ASC
            """,
            (user_id, to_storage(start - timedelta(days=1)), to_storage(end))
        )
        appointments = [dict(row) for row in rows]
        return [a for a in appointments if cls.span(a)[1] > start]

    @classmethod
    def update(cls, user_id: str, appointment_id: int, **fields) -> Optional[Dict[str, Any]]:
        """Apply a partial update and keep the linked calendar event in step with it."""
        data = cls._clean(fields)
        current = cls.get(user_id, appointment_id)
        if not current:
            return None
        if not data:
            return current

        merged = {**current, **data}
        now = to_storage(utc_now())

        with db.get_connection() as conn:
            if merged['status'] == 'confirmed':
                if not current['event_id']:
                    data['event_id'] = cls._spawn_event(conn, user_id, merged, now)
                elif cls.EVENT_FIELDS & data.keys():
                    cls._sync_event(conn, user_id, current['event_id'], merged, now)
            elif current['event_id']:
                # Only confirmed bookings occupy the calendar
                conn.execute("DELETE FROM calendar_events WHERE id = ? AND user_id = ?",
                             (current['event_id'], user_id))
                data['event_id'] = None
                logger.info(f"Removed event {current['event_id']} for appointment {appointment_id}")
            assignments = ', '.join(f"{key} = ?" for key in data)
            conn.execute(
                f"UPDATE appointments SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
                (*data.values(), now, appointment_id, user_id)
            )
            conn.commit()

        logger.info(f"Updated appointment {appointment_id}: {sorted(data)}")
        return cls.get(user_id, appointment_id)

    @staticmethod
    def span(appointment: Dict[str, Any]) -> Tuple[datetime, datetime]:
        """Start and end the appointment occupies, using the default length when unset."""
        start = from_storage(appointment['requested_at'])
        minutes = appointment['duration_minutes'] or settings.DEFAULT_APPOINTMENT_MINUTES
        return start, start + timedelta(minutes=minutes)

    @staticmethod
    def _event_title(appointment: Dict[str, Any]) -> str:
        return f"{appointment['service_name']} with {appointment['client_name']}"

    @classmethod
    def _sync_event(cls, conn: sqlite3.Connection, user_id: str, event_id: int,
                    appointment: Dict[str, Any], now: str) -> None:
        """Move the linked calendar event to the appointment's current time and title."""
        start, end = cls.span(appointment)
        conn.execute(
            """
            UPDATE calendar_events
            SET title = ?, description = ?, start_time = ?, end_time = ?, updated_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (cls._event_title(appointment), appointment.get('notes'),
             to_storage(start), to_storage(end), now, event_id, user_id)
        )
        logger.info(f"Synced event {event_id} with appointment {appointment['id']}")

    @classmethod
    def _spawn_event(cls, conn: sqlite3.Connection, user_id: str,
                     appointment: Dict[str, Any], now: str) -> int:
        start, end = cls.span(appointment)
        cursor = conn.execute(
            """
            INSERT INTO calendar_events
            (user_id, title, description, start_time, end_time, category, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 'appointment', ?, ?)
            """,
            (user_id, cls._event_title(appointment), appointment.get('notes'),
             to_storage(start), to_storage(end), now, now)
        )
        logger.info(f"Spawned appointment event {cursor.lastrowid} for appointment {appointment['id']}")
        return cursor.lastrowid

    @classmethod
    def confirm(cls, user_id: str, appointment_id: int) -> Optional[Dict[str, Any]]:
        return cls.update(user_id, appointment_id, status='confirmed')

    @classmethod
    def decline(cls, user_id: str, appointment_id: int) -> Optional[Dict[str, Any]]:
        return cls.update(user_id, appointment_id, status='declined')

    @classmethod
    def delete(cls, user_id: str, appointment_id: int) -> bool:
        """Delete an appointment together with its calendar event."""
        current = cls.get(user_id, appointment_id)
        if not current:
            return False
        with db.get_connection() as conn:
            if current['event_id']:
                conn.execute("DELETE FROM calendar_events WHERE id = ? AND user_id = ?",
                             (current['event_id'], user_id))
            conn.execute("DELETE FROM appointments WHERE id = ? AND user_id = ?",
                         (appointment_id, user_id))
            conn.commit()
        return True


class ConfigModel:
    """Type-safe configuration storage."""

    @staticmethod
    def _convert(value: str, value_type: str) -> Any:
        if value_type == 'int':
            return int(value)
        elif value_type == 'bool':
            return value.lower() == 'true'
        elif value_type == 'json':
            return json.loads(value)
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get configuration value with type conversion."""
        rows = db.execute_query("SELECT value, type FROM config_values WHERE key = ?", (key,))
        if not rows:
            return default
        return cls._convert(rows[0]['value'], rows[0]['type'])

    @classmethod
    def set(cls, key: str, value: Any, description: str = None) -> None:
        """Set configuration value with automatic type detection."""
        if isinstance(value, bool):
            value_type, str_value = 'bool', str(value).lower()
        elif isinstance(value, int):
            value_type, str_value = 'int', str(value)
        elif isinstance(value, (dict, list)):
            value_type, str_value = 'json', json.dumps(value)
        else:
            value_type, str_value = 'str', str(value)

        query = """
            INSERT OR REPLACE INTO config_values (key, value, type, description, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
        """
        db.execute_update(query, (key, str_value, value_type, description))
        logger.info(f"Updated config: {key} = {value}")

    @classmethod
    def get_all(cls) -> Dict[str, Any]:
        """Get all configuration values."""
        rows = db.execute_query("SELECT key, value, type FROM config_values")
        return {row['key']: cls._convert(row['value'], row['type']) for row in rows}
