# apps/visits/tests.py
"""
Visits app tests - calendar grid, completion workflow and API endpoints
"""
from datetime import date, datetime, timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client
from apps.core.business_rules import TaskPriority, TaskStatus, VisitStatus
from apps.core.exceptions import (
    BusinessRuleViolationError, InvalidStatusTransitionError, PartialFailureError, StoreUnavailableError
)
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store
from apps.visits.calendar_services import CalendarService
from apps.visits.models import Visit
from apps.visits.services import VisitService

User = get_user_model()


def aware(*args):
    return timezone.make_aware(datetime(*args))


class CalendarServiceTests(SimpleTestCase):
    """Test month grid bucketing"""

    def setUp(self):
        self.client_obj = Client(id='c1', company_name='Hotel Plaza', address='Av. Siempre Viva 742')
        self.clients_map = {'c1': self.client_obj}

    def test_grid_starts_sunday_and_ends_saturday(self):
        """Test March 2025 grid spans Feb 23 to Apr 5"""
        start, end = CalendarService.grid_bounds(date(2025, 3, 17))

        self.assertEqual(start, date(2025, 2, 23))
        self.assertEqual(end, date(2025, 4, 5))
        self.assertEqual(start.weekday(), 6)
        self.assertEqual(end.weekday(), 5)

    def test_grid_length_is_multiple_of_seven(self):
        """Test every month grid holds whole weeks and the whole month"""
        for month in range(1, 13):
            anchor = date(2024, month, 15)
            days = list(CalendarService.iter_grid_days(anchor))
            first, last = CalendarService.month_bounds(anchor)

            self.assertEqual(len(days) % 7, 0)
            self.assertIn(first, days)
            self.assertIn(last, days)

    def test_month_that_fits_four_weeks(self):
        """Test February 2015 starts on Sunday and needs exactly 28 cells"""
        days = list(CalendarService.iter_grid_days(date(2015, 2, 10)))
        self.assertEqual(len(days), 28)

    def test_visit_bucketed_on_its_local_day(self):
        """Test Hotel Plaza visit on 2025-03-10 09:00 lands on March 10"""
        visit = Visit(id='v1', client_id='c1', scheduled_date=aware(2025, 3, 10, 9, 0))

        grid = CalendarService.build_month(date(2025, 3, 1), [visit], self.clients_map, today=date(2025, 3, 1))

        cells = {cell['date']: cell for cell in grid['days']}
        self.assertEqual(len(cells[date(2025, 3, 10)]['visits']), 1)
        self.assertEqual(cells[date(2025, 3, 10)]['visits'][0]['client'], self.client_obj)
        placed = sum(len(cell['visits']) for cell in grid['days'])
        self.assertEqual(placed, 1)

    def test_visits_without_date_are_skipped(self):
        """Test missing dates produce no bucket and no error"""
        visits = [
            Visit(id='v1', client_id='c1', scheduled_date=None),
            Visit(id='v2', client_id='c1', scheduled_date=aware(2025, 3, 3, 10, 0)),
        ]

        buckets = CalendarService.bucket_visits(visits, self.clients_map)

        self.assertEqual(list(buckets), [date(2025, 3, 3)])

    def test_missing_client_resolves_to_none(self):
        """Test orphaned visits still render"""
        visit = Visit(id='v1', client_id='gone', scheduled_date=aware(2025, 3, 3, 10, 0))

        buckets = CalendarService.bucket_visits([visit], self.clients_map)

        self.assertIsNone(buckets[date(2025, 3, 3)][0]['client'])

    def test_overflow_indicator(self):
        """Test cells show three visits and count the rest"""
        visits = [
            Visit(id=f'v{hour}', client_id='c1', scheduled_date=aware(2025, 3, 12, hour, 0))
            for hour in range(8, 13)
        ]

        grid = CalendarService.build_month(date(2025, 3, 1), visits, self.clients_map, max_per_day=3)

        cell = next(c for c in grid['days'] if c['date'] == date(2025, 3, 12))
        self.assertEqual(len(cell['visits']), 5)
        self.assertEqual(len(cell['visible_visits']), 3)
        self.assertEqual(cell['overflow_count'], 2)
        self.assertEqual(cell['visible_visits'][0]['visit'].id, 'v8')

    def test_empty_cells_have_empty_lists(self):
        """Test cells without visits hold [] and no overflow"""
        grid = CalendarService.build_month(date(2025, 3, 1), [], self.clients_map)

        for cell in grid['days']:
            self.assertEqual(cell['visits'], [])
            self.assertEqual(cell['overflow_count'], 0)

    def test_current_month_and_today_flags(self):
        """Test padding days are flagged outside the month"""
        grid = CalendarService.build_month(date(2025, 3, 1), [], {}, today=date(2025, 3, 10))

        cells = {cell['date']: cell for cell in grid['days']}
        self.assertFalse(cells[date(2025, 2, 23)]['is_current_month'])
        self.assertTrue(cells[date(2025, 3, 1)]['is_current_month'])
        self.assertTrue(cells[date(2025, 3, 10)]['is_today'])
        self.assertFalse(cells[date(2025, 3, 11)]['is_today'])

    def test_day_detail_sorted_by_time(self):
        """Test day detail lists visits earliest first"""
        visits = [
            Visit(id='late', client_id='c1', scheduled_date=aware(2025, 3, 10, 16, 0)),
            Visit(id='early', client_id='c1', scheduled_date=aware(2025, 3, 10, 8, 30)),
            Visit(id='other', client_id='c1', scheduled_date=aware(2025, 3, 11, 7, 0)),
        ]

        entries = CalendarService.day_detail(date(2025, 3, 10), visits, self.clients_map)

        self.assertEqual([entry['visit'].id for entry in entries], ['early', 'late'])

    def test_month_navigation(self):
        """Test previous/next month wrap across years"""
        self.assertEqual(CalendarService.previous_month(date(2025, 1, 31)), date(2024, 12, 1))
        self.assertEqual(CalendarService.next_month(date(2024, 12, 31)), date(2025, 1, 1))
        self.assertEqual(CalendarService.current_month(date(2025, 3, 19)), date(2025, 3, 1))


class VisitServiceTests(TestCase):
    """Test visit scheduling and completion"""

    def setUp(self):
        self.client_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
        })
        self.visit_id = VisitService.schedule_visit({
            'client_id': self.client_id,
            'scheduled_date': aware(2025, 3, 10, 9, 0),
            'technicians': ['Alan Spitel', '  '],
        })

    def test_schedule_visit_cleans_technicians_and_flags_past_dates(self):
        """Test scheduling stores a clean technician list and the past-date flag"""
        visit = entity_store.get(KIND_VISITS, self.visit_id)

        self.assertEqual(visit.status, VisitStatus.SCHEDULED)
        self.assertEqual(visit.technicians, ['Alan Spitel'])
        self.assertTrue(visit.is_past_date_visit)

    def test_future_visit_is_not_flagged(self):
        """Test visits scheduled ahead are not past-date visits"""
        visit_id = VisitService.schedule_visit({
            'client_id': self.client_id,
            'scheduled_date': timezone.now() + timedelta(days=3),
        })

        self.assertFalse(entity_store.get(KIND_VISITS, visit_id).is_past_date_visit)

    def test_complete_visit_with_issue_creates_pending_task(self):
        """Test completing with one urgent issue spawns exactly one pending task"""
        now = aware(2025, 3, 10, 12, 0)

        result = VisitService.complete_visit(
            self.visit_id,
            technicians=['Daniel Galvez', 'Marco Sotola'],
            notes='Todo en orden salvo una pérdida',
            issues=[{'description': 'Leak', 'priority': TaskPriority.URGENT}],
            now=now
        )

        visit = result['visit']
        self.assertEqual(visit.status, VisitStatus.COMPLETED)
        self.assertEqual(visit.completed_date, now)
        self.assertEqual(visit.technicians, ['Daniel Galvez', 'Marco Sotola'])

        tasks = entity_store.list(KIND_CORRECTIVE_TASKS, origin_visit_id=self.visit_id)
        self.assertEqual(len(tasks), 1)
        task = tasks[0]
        self.assertEqual(task.status, TaskStatus.PENDING)
        self.assertEqual(task.priority, TaskPriority.URGENT)
        self.assertEqual(task.client_id, self.client_id)
        self.assertEqual(task.reported_by, 'Daniel Galvez')
        self.assertEqual(task.reported_date, now)
        self.assertEqual(task.completed_by, [])
        self.assertEqual(result['task_ids'], [task.id])

    def test_complete_visit_without_issues(self):
        """Test completion without issues creates no tasks"""
        VisitService.complete_visit(self.visit_id, technicians=['Alan Spitel'])

        self.assertEqual(entity_store.list(KIND_CORRECTIVE_TASKS), [])

    def test_blank_issues_are_ignored(self):
        """Test issues without description are dropped"""
        VisitService.complete_visit(
            self.visit_id,
            technicians=['Alan Spitel'],
            issues=[{'description': '   ', 'priority': 'normal'}]
        )

        self.assertEqual(entity_store.list(KIND_CORRECTIVE_TASKS), [])

    def test_complete_requires_technicians(self):
        """Test completion with only blank technicians writes nothing"""
        with self.assertRaises(BusinessRuleViolationError):
            VisitService.complete_visit(self.visit_id, technicians=['', '  '])

        visit = entity_store.get(KIND_VISITS, self.visit_id)
        self.assertEqual(visit.status, VisitStatus.SCHEDULED)
        self.assertIsNone(visit.completed_date)

    def test_invalid_issue_priority_rejected_before_write(self):
        """Test an unknown issue priority aborts before the visit update"""
        with self.assertRaises(BusinessRuleViolationError):
            VisitService.complete_visit(
                self.visit_id,
                technicians=['Alan Spitel'],
                issues=[{'description': 'Extintor vencido', 'priority': 'critical'}]
            )

        self.assertEqual(entity_store.get(KIND_VISITS, self.visit_id).status, VisitStatus.SCHEDULED)

    def test_second_completion_rejected(self):
        """Test a completed visit cannot be completed again"""
        VisitService.complete_visit(self.visit_id, technicians=['Alan Spitel'])

        with self.assertRaises(InvalidStatusTransitionError):
            VisitService.complete_visit(self.visit_id, technicians=['Alan Spitel'])

    def test_overlapping_completions_spawn_tasks_once(self):
        """Test a completion based on a stale read is rejected and creates no tasks"""
        stale = entity_store.get(KIND_VISITS, self.visit_id)
        issues = [{'description': 'Leak', 'priority': TaskPriority.URGENT}]
        VisitService.complete_visit(self.visit_id, technicians=['Alan Spitel'], issues=issues)

        with mock.patch.object(entity_store, 'get', side_effect=[stale]):
            with self.assertRaises(InvalidStatusTransitionError):
                VisitService.complete_visit(self.visit_id, technicians=['Marco Sotola'], issues=issues)

        tasks = entity_store.list(KIND_CORRECTIVE_TASKS, origin_visit_id=self.visit_id)
        self.assertEqual(len(tasks), 1)
        self.assertEqual(entity_store.get(KIND_VISITS, self.visit_id).technicians, ['Alan Spitel'])

    def test_task_failure_reports_partial_completion(self):
        """Test a failed task write after the visit update raises PartialFailureError"""
        with mock.patch.object(entity_store, 'create', side_effect=StoreUnavailableError()):
            with self.assertRaises(PartialFailureError) as ctx:
                VisitService.complete_visit(
                    self.visit_id,
                    technicians=['Alan Spitel'],
                    issues=[{'description': 'Leak', 'priority': 'urgent'}]
                )

        self.assertEqual(ctx.exception.completed_steps, [f'visits:{self.visit_id}'])
        self.assertEqual(entity_store.get(KIND_VISITS, self.visit_id).status, VisitStatus.COMPLETED)

    def test_completed_visit_cannot_be_rescheduled_or_deleted(self):
        """Test completed visits are locked"""
        VisitService.complete_visit(self.visit_id, technicians=['Alan Spitel'])

        with self.assertRaises(BusinessRuleViolationError):
            VisitService.reschedule_visit(self.visit_id, {'notes': 'cambio'})
        with self.assertRaises(BusinessRuleViolationError):
            VisitService.delete_visit(self.visit_id)

    def test_reschedule_ignores_status_changes(self):
        """Test editing cannot complete a visit"""
        VisitService.reschedule_visit(self.visit_id, {'status': VisitStatus.COMPLETED, 'notes': 'x'})

        visit = entity_store.get(KIND_VISITS, self.visit_id)
        self.assertEqual(visit.status, VisitStatus.SCHEDULED)
        self.assertEqual(visit.notes, 'x')


class VisitAPITests(APITestCase):
    """Test visit API endpoints"""

    def setUp(self):
        self.user = User.objects.create_user(username='operador', password='testpass123')
        self.client.force_authenticate(user=self.user)

        self.plaza_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
        })
        self.mall_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Shopping Norte',
            'address': 'Ruta 9 km 12',
        })
        self.plaza_visit = VisitService.schedule_visit({
            'client_id': self.plaza_id,
            'scheduled_date': aware(2025, 3, 10, 9, 0),
        })
        self.mall_visit = VisitService.schedule_visit({
            'client_id': self.mall_id,
            'scheduled_date': aware(2025, 3, 5, 14, 0),
        })

    def test_requires_authentication(self):
        """Test anonymous requests are rejected"""
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('visits-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_sorted_chronologically_with_client_name(self):
        """Test list is earliest first and resolves client names"""
        response = self.client.get(reverse('visits-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data['results']
        self.assertEqual([v['id'] for v in results], [self.mall_visit, self.plaza_visit])
        self.assertEqual(results[1]['client_name'], 'Hotel Plaza')
        self.assertEqual(results[1]['status_display']['label'], 'Programada')

    def test_list_search_by_client_name(self):
        """Test search matches the client company name"""
        response = self.client.get(reverse('visits-list'), {'search': 'plaza'})

        self.assertEqual([v['id'] for v in response.data['results']], [self.plaza_visit])

    def test_list_filter_by_client(self):
        """Test client filter"""
        response = self.client.get(reverse('visits-list'), {'client': self.mall_id})

        self.assertEqual([v['id'] for v in response.data['results']], [self.mall_visit])

    def test_orphaned_visit_shows_missing_client(self):
        """Test deleting a client keeps its visits"""
        entity_store.delete(KIND_CLIENTS, self.plaza_id)

        response = self.client.get(reverse('visits-detail', args=[self.plaza_visit]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client_name'], 'Cliente no encontrado')

    def test_create_visit(self):
        """Test scheduling a visit through the API"""
        response = self.client.post(reverse('visits-list'), {
            'client_id': self.plaza_id,
            'scheduled_date': '2030-01-15T10:00:00',
            'technicians': ['Alan Spitel', ''],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['technicians'], ['Alan Spitel'])
        self.assertEqual(response.data['status'], VisitStatus.SCHEDULED)
        self.assertFalse(response.data['is_past_date_visit'])

    def test_create_visit_requires_date(self):
        """Test missing scheduled date is rejected in Spanish"""
        response = self.client.post(reverse('visits-list'), {
            'client_id': self.plaza_id,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'La fecha de la visita es obligatoria')

    def test_create_visit_unknown_client(self):
        """Test a visit must reference an existing client"""
        response = self.client.post(reverse('visits-list'), {
            'client_id': 'nope',
            'scheduled_date': '2030-01-15T10:00:00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cliente no encontrado')

    def test_complete_endpoint(self):
        """Test POST complete marks the visit and spawns tasks"""
        response = self.client.post(reverse('visits-complete', args=[self.plaza_visit]), {
            'technicians': ['Gustavo Fernandez'],
            'notes': 'Revisión anual',
            'issues': [{'description': 'Leak', 'priority': 'urgent'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['visit']['status'], VisitStatus.COMPLETED)
        self.assertEqual(len(response.data['created_task_ids']), 1)

    def test_complete_without_technicians(self):
        """Test completion without technicians returns 400"""
        response = self.client.post(reverse('visits-complete', args=[self.plaza_visit]), {
            'technicians': [],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Debe asignar al menos un técnico')

    def test_complete_twice_returns_400(self):
        """Test second completion is rejected"""
        url = reverse('visits-complete', args=[self.plaza_visit])
        self.client.post(url, {'technicians': ['Alan Spitel']}, format='json')

        response = self.client.post(url, {'technicians': ['Alan Spitel']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_scheduled_visit(self):
        """Test scheduled visits can be deleted"""
        response = self.client.delete(reverse('visits-detail', args=[self.mall_visit]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Visit.objects.filter(pk=self.mall_visit).exists())

    def test_completed_visit_cannot_be_edited_or_deleted(self):
        """Test completed visits are locked through the API"""
        VisitService.complete_visit(self.mall_visit, technicians=['Alan Spitel'])
        url = reverse('visits-detail', args=[self.mall_visit])

        edit = self.client.patch(url, {'notes': 'cambio'}, format='json')
        delete = self.client.delete(url)

        self.assertEqual(edit.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(delete.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Visit.objects.filter(pk=self.mall_visit).exists())

    def test_unknown_visit_returns_404(self):
        """Test retrieving a missing visit"""
        response = self.client.get(reverse('visits-detail', args=['missing']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Visita no encontrada')

    def test_calendar_month(self):
        """Test calendar endpoint buckets visits by day"""
        response = self.client.get(reverse('visits-calendar'), {'month': '2025-03'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['month'], '2025-03')
        self.assertEqual(response.data['previous_month'], '2025-02')
        self.assertEqual(response.data['next_month'], '2025-04')
        self.assertEqual(len(response.data['days']), 42)

        by_date = {day['date']: day for day in response.data['days']}
        self.assertEqual(by_date['2025-03-10']['visits'][0]['client_name'], 'Hotel Plaza')

    def test_calendar_invalid_month(self):
        """Test malformed month parameter"""
        response = self.client.get(reverse('visits-calendar'), {'month': 'marzo'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_calendar_day(self):
        """Test day detail endpoint"""
        response = self.client.get(reverse('visits-calendar-day'), {'date': '2025-03-05'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['visits'][0]['id'], self.mall_visit)
