"""
Unit tests for database models.

Tests the TaskModel, CalendarEventModel, AppointmentModel and ConfigModel
classes against a temporary SQLite database.
"""

import pytest
import sqlite3
from database.models import (
    DatabaseConnection,
    TaskModel,
    CalendarEventModel,
    AppointmentModel,
    ConfigModel,
    normalize_choice,
    TASK_STATUSES,
    EVENT_CATEGORIES,
)
from insights.schema import Appointment, Event, Task

USER = "user-a"
OTHER_USER = "user-b"


class TestDatabaseConnection:
    """Test the DatabaseConnection class."""

    def test_connection_creation(self, test_db_path):
        """Test that a database connection can be created."""
        conn = DatabaseConnection(str(test_db_path))
        assert conn.db_path == str(test_db_path)
        assert test_db_path.exists()
        conn.close()

    def test_schema_applied(self, db_connection):
        rows = db_connection.execute_query("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row['name'] for row in rows}
        assert {'tasks', 'calendar_events', 'appointments', 'config_values'} <= tables

    def test_transaction_rollback(self, db_connection):
        """Test that transactions are rolled back on error."""
        with pytest.raises(sqlite3.IntegrityError):
            with db_connection.get_connection() as conn:
                conn.execute(
                    "INSERT INTO tasks (user_id, title, priority, created_at, updated_at) "
                    "VALUES ('u', 'ok', 'low', 'x', 'x')"
                )
                conn.execute(
                    "INSERT INTO tasks (user_id, title, priority, created_at, updated_at) "
                    "VALUES ('u', 'bad', 'extreme', 'x', 'x')"
                )

        assert db_connection.execute_query("SELECT COUNT(*) AS count FROM tasks")[0]['count'] == 0


class TestNormalizeChoice:

    @pytest.mark.unit
    @pytest.mark.parametrize("raw, expected", [
        ("IN_PROGRESS", "in-progress"),
        ("in progress", "in-progress"),
        ("Done", "done"),
    ])
    def test_task_status_spellings(self, raw, expected):
        assert normalize_choice(raw, TASK_STATUSES, 'status') == expected

    @pytest.mark.unit
    def test_event_category_aliases(self):
        assert normalize_choice("FOCUS_TIME", EVENT_CATEGORIES, 'category') == "focus-time"
        assert normalize_choice("focus", EVENT_CATEGORIES, 'category') == "focus-time"

    @pytest.mark.unit
    def test_unknown_value_rejected(self):
        with pytest.raises(ValueError, match="Invalid status"):
            normalize_choice("blocked", TASK_STATUSES, 'status')


class TestTaskModel:

    @pytest.mark.unit
    def test_create_and_get(self, patched_db):
        task = TaskModel.create(USER, "Review Q4 Budget", priority="HIGH",
                                due_at="2025-03-12T17:00:00", duration_minutes=60, energy_required=4)

        assert task['id'] is not None
        assert task['priority'] == 'high'
        assert task['status'] == 'todo'
        assert task['due_at'] == '2025-03-12T17:00:00+00:00'
        assert TaskModel.get(USER, task['id']) == task

    @pytest.mark.unit
    def test_tasks_are_scoped_to_user(self, patched_db):
        task = TaskModel.create(USER, "Mine")

        assert TaskModel.get(OTHER_USER, task['id']) is None
        assert TaskModel.list(OTHER_USER) == []
        assert TaskModel.delete(OTHER_USER, task['id']) is False

    @pytest.mark.unit
    def test_any_status_transition_allowed(self, patched_db):
        task = TaskModel.create(USER, "Move me")

        for status in ("done", "todo", "review", "in-progress", "done"):
            task = TaskModel.update(USER, task['id'], status=status)
            assert task['status'] == status

    @pytest.mark.unit
    def test_list_open_excludes_done(self, patched_db):
        TaskModel.create(USER, "Open")
        TaskModel.create(USER, "Finished", status="done")
        TaskModel.create(USER, "Reviewing", status="review")

        titles = [task['title'] for task in TaskModel.list_open(USER)]

        assert titles == ["Open", "Reviewing"]

    @pytest.mark.unit
    def test_validation(self, patched_db):
        with pytest.raises(ValueError):
            TaskModel.create(USER, "   ")
        with pytest.raises(ValueError):
            TaskModel.create(USER, "Too tiring", energy_required=9)
        with pytest.raises(ValueError):
            TaskModel.create(USER, "Bad due", due_at="tomorrow-ish")

    @pytest.mark.unit
    def test_date_only_due_means_end_of_day(self, patched_db):
        task = TaskModel.create(USER, "Due today", due_at="2025-03-12")

        assert task['due_at'] == '2025-03-12T23:59:59+00:00'

    @pytest.mark.unit
    def test_update_missing_returns_none(self, patched_db):
        assert TaskModel.update(USER, 999, status="done") is None

    @pytest.mark.unit
    def test_row_converts_to_snapshot_task(self, patched_db):
        row = TaskModel.create(USER, "Snapshot", priority="high", due_at="2025-03-12T09:00:00Z")

        task = Task.from_row(row)

        assert task.id == str(row['id'])
        assert task.priority == "high"
        assert task.due.isoformat() == "2025-03-12T09:00:00+00:00"


class TestCalendarEventModel:

    @pytest.mark.unit
    def test_create_and_list_in_window(self, patched_db):
        CalendarEventModel.create(USER, "Yesterday", "2025-03-11T09:00:00", "2025-03-11T10:00:00")
        late = CalendarEventModel.create(USER, "Late", "2025-03-12T15:00:00", "2025-03-12T16:00:00")
        early = CalendarEventModel.create(USER, "Early", "2025-03-12T09:00:00", "2025-03-12T10:00:00",
                                          category="FOCUS_TIME")

        from utils.time_helpers import parse_timestamp
        events = CalendarEventModel.list(USER, start=parse_timestamp("2025-03-12T00:00:00"),
                                         end=parse_timestamp("2025-03-12T23:59:59"))

        assert [event['id'] for event in events] == [early['id'], late['id']]
        assert events[0]['category'] == 'focus-time'

    @pytest.mark.unit
    def test_end_before_start_rejected(self, patched_db):
        with pytest.raises(ValueError, match="end_time"):
            CalendarEventModel.create(USER, "Backwards", "2025-03-12T10:00:00", "2025-03-12T09:00:00")

    @pytest.mark.unit
    def test_update_checks_merged_span(self, patched_db):
        event = CalendarEventModel.create(USER, "Standup", "2025-03-12T09:00:00", "2025-03-12T09:30:00")

        with pytest.raises(ValueError):
            CalendarEventModel.update(USER, event['id'], end_time="2025-03-12T08:00:00")

        moved = CalendarEventModel.update(USER, event['id'], start_time="2025-03-12T09:15:00",
                                          end_time="2025-03-12T09:45:00")
        assert moved['start_time'] == "2025-03-12T09:15:00+00:00"

    @pytest.mark.unit
    def test_row_converts_to_snapshot_event(self, patched_db):
        row = CalendarEventModel.create(USER, "Client Call", "2025-03-12T14:00:00+01:00",
                                        "2025-03-12T15:00:00+01:00", attendees=4, location="Zoom")

        event = Event.from_row(row)

        assert event.is_meeting
        assert event.start.hour == 13
        assert event.attendees == 4


class TestAppointmentModel:

    def _book(self, **overrides):
        fields = dict(client_name="Jordan Lee", service_name="Strategy Session",
                      requested_at="2025-03-13T10:00:00", duration_minutes=60)
        fields.update(overrides)
        return AppointmentModel.create(USER, **fields)

    @pytest.mark.unit
    def test_new_booking_is_pending(self, patched_db):
        appointment = self._book(status="confirmed")

        assert appointment['status'] == 'pending'
        assert appointment['event_id'] is None
        assert [a['id'] for a in AppointmentModel.list_pending(USER)] == [appointment['id']]

    @pytest.mark.unit
    def test_confirm_spawns_event(self, patched_db):
        appointment = self._book()

        confirmed = AppointmentModel.confirm(USER, appointment['id'])

        assert confirmed['status'] == 'confirmed'
        event = CalendarEventModel.get(USER, confirmed['event_id'])
        assert event['category'] == 'appointment'
        assert event['title'] == "Strategy Session with Jordan Lee"
        assert event['start_time'] == "2025-03-13T10:00:00+00:00"
        assert event['end_time'] == "2025-03-13T11:00:00+00:00"
        assert AppointmentModel.list_pending(USER) == []

    @pytest.mark.unit
    def test_reconfirm_does_not_duplicate_event(self, patched_db):
        appointment = self._book()
        first = AppointmentModel.confirm(USER, appointment['id'])
        again = AppointmentModel.confirm(USER, appointment['id'])

        assert again['event_id'] == first['event_id']
        assert len(CalendarEventModel.list(USER, category='appointment')) == 1

    @pytest.mark.unit
    def test_reschedule_moves_linked_event(self, patched_db):
        appointment = self._book(requested_at="2025-03-12T10:00:00")
        confirmed = AppointmentModel.confirm(USER, appointment['id'])

        moved = AppointmentModel.update(USER, appointment['id'],
                                        requested_at="2025-03-13T15:00:00", duration_minutes=90)

        assert moved['event_id'] == confirmed['event_id']
        event = CalendarEventModel.get(USER, moved['event_id'])
        assert event['start_time'] == moved['requested_at'] == "2025-03-13T15:00:00+00:00"
        assert event['end_time'] == "2025-03-13T16:30:00+00:00"

    @pytest.mark.unit
    def test_renaming_retitles_linked_event(self, patched_db):
        appointment = self._book()
        confirmed = AppointmentModel.confirm(USER, appointment['id'])

        AppointmentModel.update(USER, appointment['id'], client_name="Sam Rivera")

        event = CalendarEventModel.get(USER, confirmed['event_id'])
        assert event['title'] == "Strategy Session with Sam Rivera"

    @pytest.mark.unit
    def test_declining_confirmed_removes_event(self, patched_db):
        appointment = self._book()
        confirmed = AppointmentModel.confirm(USER, appointment['id'])

        declined = AppointmentModel.decline(USER, appointment['id'])

        assert declined['event_id'] is None
        assert CalendarEventModel.get(USER, confirmed['event_id']) is None
        assert CalendarEventModel.list(USER) == []

    @pytest.mark.unit
    def test_confirm_after_decline_spawns_fresh_event(self, patched_db):
        appointment = self._book()
        AppointmentModel.confirm(USER, appointment['id'])
        AppointmentModel.decline(USER, appointment['id'])

        again = AppointmentModel.confirm(USER, appointment['id'])

        assert again['event_id'] is not None
        assert len(CalendarEventModel.list(USER, category='appointment')) == 1

    @pytest.mark.unit
    def test_delete_removes_linked_event(self, patched_db):
        appointment = self._book()
        AppointmentModel.confirm(USER, appointment['id'])

        assert AppointmentModel.delete(USER, appointment['id']) is True

        assert CalendarEventModel.list(USER) == []
        assert AppointmentModel.delete(USER, appointment['id']) is False

    @pytest.mark.unit
    def test_list_active_spans_into_window(self, patched_db):
        from utils.time_helpers import parse_timestamp
        self._book(requested_at="2025-03-13T08:30:00", duration_minutes=60)
        self._book(requested_at="2025-03-13T07:00:00", duration_minutes=30)
        declined = self._book(requested_at="2025-03-13T10:00:00")
        AppointmentModel.decline(USER, declined['id'])

        active = AppointmentModel.list_active(USER, parse_timestamp("2025-03-13T09:00:00"),
                                              parse_timestamp("2025-03-13T17:00:00"))

        assert [a['requested_at'] for a in active] == ["2025-03-13T08:30:00+00:00"]

    @pytest.mark.unit
    def test_default_duration_for_spawned_event(self, patched_db):
        appointment = self._book(duration_minutes=None)

        confirmed = AppointmentModel.confirm(USER, appointment['id'])

        event = CalendarEventModel.get(USER, confirmed['event_id'])
        assert event['end_time'] == "2025-03-13T10:30:00+00:00"

    @pytest.mark.unit
    def test_decline_does_not_spawn_event(self, patched_db):
        appointment = self._book()

        declined = AppointmentModel.decline(USER, appointment['id'])

        assert declined['status'] == 'declined'
        assert declined['event_id'] is None
        assert CalendarEventModel.list(USER) == []

    @pytest.mark.unit
    def test_row_converts_to_snapshot_appointment(self, patched_db):
        appointment = Appointment.from_row(self._book())

        assert appointment.status == "pending"
        assert appointment.duration_minutes == 60


class TestConfigModel:

    @pytest.mark.unit
    def test_typed_round_trip(self, patched_db):
        ConfigModel.set('meetingHeavyThreshold', 6)
        ConfigModel.set('flag', True)

        assert ConfigModel.get('meetingHeavyThreshold') == 6
        assert ConfigModel.get('flag') is True
        assert ConfigModel.get('missing', 'fallback') == 'fallback'
        assert ConfigModel.get_all() == {'meetingHeavyThreshold': 6, 'flag': True}

    @pytest.mark.unit
    def test_thresholds_read_overrides(self, patched_db):
        from config.settings import get_insight_thresholds

        assert get_insight_thresholds() == {'back_to_back_gap_minutes': 15, 'meeting_heavy_threshold': 4}

        ConfigModel.set('backToBackGapMinutes', 10)

        assert get_insight_thresholds()['back_to_back_gap_minutes'] == 10
