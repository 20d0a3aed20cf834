# apps/reminders/repository.py
"""
Local reminders.

Reminders never reach the shared entity store: they live in local storage,
one list per user key, and every change rewrites the whole list.

A reminder is a plain dict::

    {'id': 1741600000000, 'title': 'Llamar a Hotel Plaza', 'description': '',
     'date': '2025-03-10', 'time': '09:30', 'completed': False,
     'created_at': '2025-03-01T12:00:00-03:00'}
"""
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, time

from django.conf import settings
from django.utils import timezone

from apps.core.exceptions import BusinessRuleViolationError, NotFoundError

logger = logging.getLogger(__name__)

REMINDERS_KEY = 'reminders'
END_OF_DAY = time(23, 59)
EDITABLE_FIELDS = ('title', 'description', 'date', 'time', 'completed')


def reminders_key(user=None):
    """Storage key of a user's reminders; anonymous callers get the bare key."""
    if user is None or user.pk is None:
        return REMINDERS_KEY
    return f"{REMINDERS_KEY}:{user.pk}"


class ReminderStorage:
    """
    Key -> list storage. Subclasses implement load and save.
    Read-modify-write sequences run inside ``locked()``.
    """

    def __init__(self):
        self._lock = threading.RLock()

    def locked(self):
        return self._lock

    def load(self, key):
        raise NotImplementedError

    def save(self, key, items):
        raise NotImplementedError


class InMemoryReminderStorage(ReminderStorage):
    def __init__(self, initial=None):
        super().__init__()
        self._data = dict(initial or {})

    def load(self, key):
        return json.loads(json.dumps(self._data.get(key, [])))

    def save(self, key, items):
        self._data[key] = json.loads(json.dumps(items))


class JsonFileReminderStorage(ReminderStorage):
    """
    Stores every key in one JSON object on disk.
    A missing or unreadable file loads as an empty list.

    Writes are serialized per file path within this process. Separate worker
    processes sharing one file are not coordinated; run a single worker or
    give each its own REMINDERS_FILE.
    """

    _path_locks = {}
    _registry_lock = threading.Lock()

    def __init__(self, path):
        self.path = path
        with self._registry_lock:
            self._lock = self._path_locks.setdefault(
                os.path.abspath(path), threading.RLock()
            )

    def _read(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding='utf-8') as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable reminders file {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key):
        items = self._read().get(key, [])
        return items if isinstance(items, list) else []

    def save(self, key, items):
        with self._lock:
            data = self._read()
            data[key] = items

            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                    json.dump(data, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise


def reminder_due(reminder):
    """Due moment of a reminder (time defaults to 23:59), or None if the date is unusable"""
    try:
        day = datetime.strptime(reminder.get('date') or '', '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None

    at = END_OF_DAY
    if reminder.get('time'):
        try:
            at = datetime.strptime(reminder['time'], '%H:%M').time()
        except (TypeError, ValueError):
            pass
    return timezone.make_aware(datetime.combine(day, at))


def is_overdue(reminder, now=None):
    if reminder.get('completed'):
        return False
    due = reminder_due(reminder)
    if due is None:
        return False
    return due < (now or timezone.now())


def display_sort_key(reminder):
    # Pending first, then by date and time; unusable dates last
    due = reminder_due(reminder)
    return (bool(reminder.get('completed')), due is None, due.timestamp() if due else 0.0)


class ReminderRepository:
    """
    CRUD over the reminder list kept under ``key`` in ``storage``.
    """

    def __init__(self, storage, key=REMINDERS_KEY):
        self.storage = storage
        self.key = key

    def all(self):
        return self.storage.load(self.key)

    def _save(self, reminders):
        self.storage.save(self.key, reminders)

    def _index(self, reminders, reminder_id):
        for index, reminder in enumerate(reminders):
            if reminder.get('id') == reminder_id:
                return index
        raise NotFoundError('Recordatorio no encontrado')

    def get(self, reminder_id):
        reminders = self.all()
        return reminders[self._index(reminders, reminder_id)]

    @staticmethod
    def _validate(reminder):
        if not (reminder.get('title') or '').strip():
            raise BusinessRuleViolationError('El título es obligatorio')
        if not reminder.get('date'):
            raise BusinessRuleViolationError('La fecha es obligatoria')

    def add(self, title, date, time='', description='', now=None):
        """
        Append a reminder.

        The id is the creation time in epoch milliseconds, bumped if taken.
        """
        now = now or timezone.now()
        reminder = {
            'id': int(now.timestamp() * 1000),
            'title': (title or '').strip(),
            'description': description or '',
            'date': date,
            'time': time or '',
            'completed': False,
            'created_at': now.isoformat(),
        }
        self._validate(reminder)

        with self.storage.locked():
            reminders = self.all()
            taken = {item.get('id') for item in reminders}
            while reminder['id'] in taken:
                reminder['id'] += 1

            reminders.append(reminder)
            self._save(reminders)
        logger.info(f"Reminder {reminder['id']} added")
        return reminder

    def update(self, reminder_id, **fields):
        """Replace editable fields; ``id`` and ``created_at`` are kept."""
        with self.storage.locked():
            reminders = self.all()
            index = self._index(reminders, reminder_id)

            reminder = dict(reminders[index])
            for name, value in fields.items():
                if name in EDITABLE_FIELDS:
                    reminder[name] = value
            if isinstance(reminder.get('title'), str):
                reminder['title'] = reminder['title'].strip()
            self._validate(reminder)

            reminders[index] = reminder
            self._save(reminders)
        return reminder

    def delete(self, reminder_id):
        with self.storage.locked():
            reminders = self.all()
            remaining = [item for item in reminders if item.get('id') != reminder_id]
            if len(remaining) != len(reminders):
                self._save(remaining)
                logger.info(f"Reminder {reminder_id} deleted")

    def toggle_completed(self, reminder_id):
        with self.storage.locked():
            reminder = self.get(reminder_id)
            return self.update(reminder_id, completed=not reminder.get('completed'))

    def sorted_for_display(self):
        return sorted(self.all(), key=display_sort_key)

    def pending(self):
        return [item for item in self.sorted_for_display() if not item.get('completed')]

    def overdue(self, now=None):
        now = now or timezone.now()
        return [item for item in self.pending() if is_overdue(item, now)]

    def previews(self, limit=5):
        return self.pending()[:limit]


def get_reminder_repository(user=None):
    """Repository over the configured reminders file, scoped to ``user``."""
    return ReminderRepository(
        JsonFileReminderStorage(settings.REMINDERS_FILE),
        key=reminders_key(user)
    )
