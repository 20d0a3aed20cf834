# apps/reminders/tests.py
"""
Reminders app tests - local repository and API endpoints
"""
import os
import tempfile
import threading
from datetime import datetime

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.exceptions import BusinessRuleViolationError, NotFoundError
from apps.reminders.repository import (
    InMemoryReminderStorage, JsonFileReminderStorage, ReminderRepository, is_overdue,
    reminder_due, reminders_key
)

User = get_user_model()


def aware(*args):
    return timezone.make_aware(datetime(*args))


class IsOverdueTests(SimpleTestCase):
    """Test overdue evaluation"""

    def test_past_time_is_overdue(self):
        reminder = {'date': '2025-03-10', 'time': '09:00', 'completed': False}
        self.assertTrue(is_overdue(reminder, aware(2025, 3, 10, 9, 1)))
        self.assertFalse(is_overdue(reminder, aware(2025, 3, 10, 8, 59)))

    def test_missing_time_means_end_of_day(self):
        """Test a reminder without time is due at 23:59"""
        reminder = {'date': '2025-03-10', 'time': '', 'completed': False}
        self.assertFalse(is_overdue(reminder, aware(2025, 3, 10, 23, 0)))
        self.assertTrue(is_overdue(reminder, aware(2025, 3, 11, 0, 0)))

    def test_completed_never_overdue(self):
        reminder = {'date': '2020-01-01', 'time': '', 'completed': True}
        self.assertFalse(is_overdue(reminder, aware(2025, 1, 1, 0, 0)))

    def test_unusable_date_is_not_overdue(self):
        reminder = {'date': 'mañana', 'completed': False}
        self.assertFalse(is_overdue(reminder, aware(2025, 1, 1, 0, 0)))

    def test_non_string_date_is_not_overdue(self):
        """Test a numeric date is treated as unusable instead of failing"""
        reminder = {'date': 20250310, 'completed': False}

        self.assertIsNone(reminder_due(reminder))
        self.assertFalse(is_overdue(reminder, aware(2025, 3, 11, 0, 0)))

    def test_non_string_time_means_end_of_day(self):
        due = reminder_due({'date': '2025-03-10', 'time': 930})

        self.assertEqual((due.hour, due.minute), (23, 59))


class ReminderRepositoryTests(SimpleTestCase):
    """Test reminder CRUD over in-memory storage"""

    def setUp(self):
        self.storage = InMemoryReminderStorage()
        self.repository = ReminderRepository(self.storage)
        self.now = aware(2025, 3, 1, 12, 0)

    def test_add_assigns_epoch_millis_id(self):
        """Test ids come from the creation time"""
        reminder = self.repository.add('Llamar a Hotel Plaza', '2025-03-10', now=self.now)

        self.assertEqual(reminder['id'], int(self.now.timestamp() * 1000))
        self.assertFalse(reminder['completed'])
        self.assertEqual(self.storage.load('reminders'), [reminder])

    def test_add_with_same_timestamp_gets_unique_id(self):
        first = self.repository.add('Uno', '2025-03-10', now=self.now)
        second = self.repository.add('Dos', '2025-03-10', now=self.now)

        self.assertNotEqual(first['id'], second['id'])

    def test_title_and_date_required(self):
        with self.assertRaises(BusinessRuleViolationError):
            self.repository.add('  ', '2025-03-10')
        with self.assertRaises(BusinessRuleViolationError):
            self.repository.add('Sin fecha', '')

        self.assertEqual(self.repository.all(), [])

    def test_update_keeps_id_and_created_at(self):
        reminder = self.repository.add('Llamar', '2025-03-10', now=self.now)

        updated = self.repository.update(
            reminder['id'], title='Llamar otra vez', id=1, created_at='nunca'
        )

        self.assertEqual(updated['id'], reminder['id'])
        self.assertEqual(updated['created_at'], reminder['created_at'])
        self.assertEqual(updated['title'], 'Llamar otra vez')

    def test_missing_reminder_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.repository.update(42, title='x')

    def test_delete_is_idempotent(self):
        reminder = self.repository.add('Llamar', '2025-03-10', now=self.now)

        self.repository.delete(reminder['id'])
        self.repository.delete(reminder['id'])

        self.assertEqual(self.repository.all(), [])

    def test_toggle_completed(self):
        reminder = self.repository.add('Llamar', '2025-03-10', now=self.now)

        self.assertTrue(self.repository.toggle_completed(reminder['id'])['completed'])
        self.assertFalse(self.repository.toggle_completed(reminder['id'])['completed'])

    def test_display_order_pending_first_then_date_time(self):
        """Test pending reminders come first, each group by date then time"""
        done = self.repository.add('Hecho', '2025-03-01', now=aware(2025, 3, 1, 1, 0))
        self.repository.toggle_completed(done['id'])
        late = self.repository.add('Tarde', '2025-03-05', '18:00', now=aware(2025, 3, 1, 2, 0))
        early = self.repository.add('Temprano', '2025-03-05', '08:00', now=aware(2025, 3, 1, 3, 0))
        first = self.repository.add('Primero', '2025-03-02', now=aware(2025, 3, 1, 4, 0))

        order = [item['id'] for item in self.repository.sorted_for_display()]

        self.assertEqual(order, [first['id'], early['id'], late['id'], done['id']])

    def test_overdue_and_previews(self):
        self.repository.add('Vencido', '2025-02-01', now=aware(2025, 1, 1, 1, 0))
        self.repository.add('Futuro', '2025-04-01', now=aware(2025, 1, 1, 2, 0))

        overdue = self.repository.overdue(now=self.now)

        self.assertEqual([item['title'] for item in overdue], ['Vencido'])
        self.assertEqual(len(self.repository.previews(limit=1)), 1)

    def test_separate_keys_do_not_mix(self):
        other = ReminderRepository(self.storage, key='otros')
        self.repository.add('Llamar', '2025-03-10', now=self.now)

        self.assertEqual(other.all(), [])


class JsonFileReminderStorageTests(SimpleTestCase):
    """Test the on-disk storage"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, 'data', 'reminders.json')

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_loads_empty(self):
        self.assertEqual(JsonFileReminderStorage(self.path).load('reminders'), [])

    def test_save_then_load(self):
        storage = JsonFileReminderStorage(self.path)
        storage.save('reminders', [{'id': 1, 'title': 'Revisión'}])

        self.assertEqual(JsonFileReminderStorage(self.path).load('reminders'), [{'id': 1, 'title': 'Revisión'}])

    def test_corrupt_file_loads_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'w', encoding='utf-8') as handle:
            handle.write('{not json')

        self.assertEqual(JsonFileReminderStorage(self.path).load('reminders'), [])

    def test_concurrent_adds_keep_every_reminder(self):
        """Test parallel writers sharing one file do not drop each other's reminders"""
        def add_many(worker):
            repository = ReminderRepository(JsonFileReminderStorage(self.path))
            for number in range(5):
                repository.add(f'Tarea {worker}-{number}', '2030-01-01')

        threads = [threading.Thread(target=add_many, args=(worker,)) for worker in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        reminders = ReminderRepository(JsonFileReminderStorage(self.path)).all()
        self.assertEqual(len(reminders), 40)
        self.assertEqual(len({item['id'] for item in reminders}), 40)

    def test_instances_on_same_path_share_lock(self):
        first = JsonFileReminderStorage(self.path)
        second = JsonFileReminderStorage(os.path.join(self.tmpdir.name, 'data', '..', 'data', 'reminders.json'))

        self.assertIs(first.locked(), second.locked())


class RemindersKeyTests(SimpleTestCase):
    """Test per-user storage keys"""

    def test_user_key_includes_pk(self):
        self.assertEqual(reminders_key(User(pk=7)), 'reminders:7')

    def test_without_user_uses_shared_key(self):
        self.assertEqual(reminders_key(), 'reminders')
        self.assertEqual(reminders_key(User()), 'reminders')


class ReminderAPITests(APITestCase):
    """Test reminder API endpoints"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.settings_override = override_settings(
            REMINDERS_FILE=os.path.join(self.tmpdir.name, 'reminders.json')
        )
        self.settings_override.enable()

        self.user = User.objects.create_user(username='operador', password='testpass123')
        self.client.force_authenticate(user=self.user)

    def tearDown(self):
        self.settings_override.disable()
        self.tmpdir.cleanup()

    def create(self, **data):
        payload = {'title': 'Llamar a Hotel Plaza', 'date': '2030-03-10'}
        payload.update(data)
        return self.client.post(reverse('reminders-list'), payload, format='json')

    def test_create_and_list(self):
        response = self.create(time='09:30')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['time'], '09:30')
        self.assertFalse(response.data['is_overdue'])

        listing = self.client.get(reverse('reminders-list'))
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(len(listing.data), 1)

    def test_create_requires_title(self):
        response = self.create(title='')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'El título es obligatorio')

    def test_create_requires_date(self):
        response = self.client.post(reverse('reminders-list'), {'title': 'Sin fecha'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'La fecha es obligatoria')

    def test_patch_and_toggle(self):
        reminder_id = self.create().data['id']

        patched = self.client.patch(
            reverse('reminders-detail', args=[reminder_id]), {'title': 'Reprogramar'}, format='json'
        )
        toggled = self.client.post(reverse('reminders-toggle', args=[reminder_id]))

        self.assertEqual(patched.data['title'], 'Reprogramar')
        self.assertEqual(patched.data['date'], '2030-03-10')
        self.assertTrue(toggled.data['completed'])

    def test_delete(self):
        reminder_id = self.create().data['id']

        response = self.client.delete(reverse('reminders-detail', args=[reminder_id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(reverse('reminders-list')).data, [])

    def test_unknown_reminder_returns_404(self):
        response = self.client.post(reverse('reminders-toggle', args=['abc']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Recordatorio no encontrado')

    def test_reminders_are_private_per_user(self):
        """Test one user's reminders are not listed for another user"""
        self.create(title='Privado de A', date='2030-01-01')
        other = User.objects.create_user(username='otro', password='testpass123')

        self.client.force_authenticate(user=other)
        response = self.client.get(reverse('reminders-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_other_user_cannot_toggle(self):
        reminder_id = self.create().data['id']
        other = User.objects.create_user(username='otro', password='testpass123')

        self.client.force_authenticate(user=other)
        response = self.client.post(reverse('reminders-toggle', args=[reminder_id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
