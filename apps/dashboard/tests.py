# apps/dashboard/tests.py
"""
Dashboard app tests - aggregation and summary endpoint
"""
import os
import tempfile
from datetime import date, datetime, timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client
from apps.core.business_rules import TaskPriority, TaskStatus, VisitStatus
from apps.core.exceptions import StoreUnavailableError
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store
from apps.corrective_tasks.models import CorrectiveTask
from apps.dashboard.services import DashboardService
from apps.reminders.repository import InMemoryReminderStorage, ReminderRepository, get_reminder_repository
from apps.visits.models import Visit

User = get_user_model()


def aware(*args):
    return timezone.make_aware(datetime(*args))


class BuildSummaryTests(SimpleTestCase):
    """Test the pure aggregation"""

    def setUp(self):
        self.today = date(2025, 3, 10)
        self.now = aware(2025, 3, 10, 12, 0)
        self.clients = [
            Client(id='c1', company_name='Hotel Plaza', address='x'),
            Client(id='c2', company_name='Shopping Norte', address='y'),
        ]
        self.visits = [
            Visit(id='today', client_id='c1', scheduled_date=aware(2025, 3, 10, 9, 0)),
            Visit(id='done', client_id='c1', scheduled_date=aware(2025, 3, 10, 8, 0),
                  status=VisitStatus.COMPLETED),
            Visit(id='next', client_id='c2', scheduled_date=aware(2025, 3, 12, 9, 0)),
            Visit(id='past', client_id='c2', scheduled_date=aware(2025, 3, 1, 9, 0)),
            Visit(id='nodate', client_id='c2', scheduled_date=None),
        ]
        self.tasks = [
            CorrectiveTask(id='b', client_id='c2', priority=TaskPriority.NORMAL,
                           status=TaskStatus.PENDING, reported_date=aware(2025, 3, 5, 9, 0)),
            CorrectiveTask(id='a', client_id='c1', priority=TaskPriority.URGENT,
                           status=TaskStatus.IN_PROGRESS, reported_date=aware(2025, 3, 2, 9, 0)),
            CorrectiveTask(id='closed', client_id='c1', priority=TaskPriority.URGENT,
                           status=TaskStatus.COMPLETED, reported_date=aware(2025, 3, 8, 9, 0)),
            CorrectiveTask(id='orphan', client_id='gone', priority=TaskPriority.NEXT_VISIT,
                           status=TaskStatus.PENDING, reported_date=None),
        ]
        self.reminders = [
            {'id': 1, 'title': 'Vencido', 'date': '2025-03-09', 'time': '', 'completed': False},
            {'id': 2, 'title': 'Hoy tarde', 'date': '2025-03-10', 'time': '18:00', 'completed': False},
            {'id': 3, 'title': 'Hecho', 'date': '2025-03-01', 'time': '', 'completed': True},
        ]

    def build(self, **kwargs):
        return DashboardService.build_summary(
            self.clients, self.visits, self.tasks, self.reminders,
            today=self.today, now=self.now, **kwargs
        )

    def test_counts(self):
        counts = self.build()['counts']

        self.assertEqual(counts['total_clients'], 2)
        self.assertEqual(counts['total_visits'], 5)
        self.assertEqual(counts['today_visits'], 1)
        self.assertEqual(counts['total_tasks'], 4)
        self.assertEqual(counts['open_tasks'], 3)
        self.assertEqual(counts['open_urgent_tasks'], 1)
        self.assertEqual(counts['pending_reminders'], 2)
        self.assertEqual(counts['overdue_reminders'], 1)

    def test_upcoming_visits_scheduled_from_today(self):
        upcoming = self.build()['upcoming_visits']

        self.assertEqual([entry['visit'].id for entry in upcoming], ['today', 'next'])
        self.assertEqual(upcoming[1]['client'].company_name, 'Shopping Norte')

    def test_urgent_tasks_ordering(self):
        """Test urgent day-2 task precedes normal day-5 task regardless of input order"""
        urgent = self.build()['urgent_tasks']

        self.assertEqual([entry['task'].id for entry in urgent], ['a', 'b', 'orphan'])
        self.assertIsNone(urgent[2]['client'])

        self.tasks.reverse()
        self.assertEqual([entry['task'].id for entry in self.build()['urgent_tasks']], ['a', 'b', 'orphan'])

    def test_preview_size(self):
        summary = self.build(preview_size=1)

        self.assertEqual(len(summary['upcoming_visits']), 1)
        self.assertEqual(len(summary['urgent_tasks']), 1)
        self.assertEqual([item['title'] for item in summary['reminders']], ['Vencido'])

    def test_empty_collections(self):
        summary = DashboardService.build_summary([], [], [], [], today=self.today, now=self.now)

        self.assertTrue(all(value == 0 for value in summary['counts'].values()))
        self.assertEqual(summary['upcoming_visits'], [])
        self.assertEqual(summary['urgent_tasks'], [])


class LoadSummaryTests(TestCase):
    """Test loading the summary from the store"""

    def setUp(self):
        self.user = User.objects.create_user(username='operador', password='x', first_name='Ana')
        self.repository = ReminderRepository(InMemoryReminderStorage())
        client_id = entity_store.create(KIND_CLIENTS, {'company_name': 'Hotel Plaza', 'address': 'x'})
        entity_store.create(KIND_VISITS, {
            'client_id': client_id, 'scheduled_date': aware(2025, 3, 10, 9, 0),
        })
        entity_store.create(KIND_CORRECTIVE_TASKS, {
            'client_id': client_id, 'description': 'Leak', 'priority': TaskPriority.URGENT,
        })

    def test_load_summary(self):
        summary = DashboardService.load_summary(
            self.user, reminders=self.repository, today=date(2025, 3, 10)
        )

        self.assertEqual(summary['user'], 'Ana')
        self.assertEqual(summary['counts']['total_clients'], 1)
        self.assertEqual(summary['counts']['today_visits'], 1)
        self.assertEqual(summary['counts']['open_urgent_tasks'], 1)

    def test_store_failure_degrades_to_empty(self):
        """Test an unavailable store yields zero counts instead of an error"""
        with mock.patch.object(entity_store, 'list', side_effect=StoreUnavailableError()):
            summary = DashboardService.load_summary(
                self.user, reminders=self.repository, today=date(2025, 3, 10)
            )

        self.assertEqual(summary['counts']['total_clients'], 0)
        self.assertEqual(summary['counts']['total_visits'], 0)
        self.assertEqual(summary['counts']['total_tasks'], 0)


class DashboardSummaryAPITests(APITestCase):
    """Test Dashboard Summary endpoint"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.settings_override = override_settings(
            REMINDERS_FILE=os.path.join(self.tmpdir.name, 'reminders.json')
        )
        self.settings_override.enable()

        self.user = User.objects.create_user(username='operador', password='testpass123')
        client_id = entity_store.create(KIND_CLIENTS, {'company_name': 'Hotel Plaza', 'address': 'x'})
        entity_store.create(KIND_VISITS, {
            'client_id': client_id, 'scheduled_date': timezone.now() + timedelta(days=1),
        })

    def tearDown(self):
        self.settings_override.disable()
        self.tmpdir.cleanup()

    def test_requires_authentication(self):
        response = self.client.get(reverse('dashboard-summary'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_summary(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('dashboard-summary'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user'], 'operador')
        self.assertEqual(response.data['counts']['total_visits'], 1)
        self.assertEqual(response.data['upcoming_visits'][0]['client_name'], 'Hotel Plaza')
        self.assertEqual(response.data['urgent_tasks'], [])
        self.assertEqual(response.data['reminders'], [])

    def test_summary_only_shows_own_reminders(self):
        other = User.objects.create_user(username='otro', password='testpass123')
        get_reminder_repository(other).add('Privado de otro', '2030-01-01')
        get_reminder_repository(self.user).add('Propio', '2030-01-02')

        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('dashboard-summary'))

        self.assertEqual([item['title'] for item in response.data['reminders']], ['Propio'])
        self.assertEqual(response.data['counts']['pending_reminders'], 1)
