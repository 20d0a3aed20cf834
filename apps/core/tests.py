# apps/core/tests.py
"""
Core app tests - entity store, business rules, filters and error handling
"""
from datetime import date, datetime
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from apps.clients.models import Client
from apps.core.business_rules import (
    BusinessRules, TaskPriority, TaskStatus, UnknownValue, VisitStatus,
    parse_priority, parse_task_status, priority_display, priority_rank,
    task_status_display, visit_status_display
)
from apps.core.exceptions import (
    BusinessRuleViolationError, InvalidStatusTransitionError, NotFoundError,
    PartialFailureError, StoreUnavailableError, custom_exception_handler
)
from apps.core.filters import (
    ClientListFilter, CorrectiveTaskListFilter, VisitListFilter, filter_clients, filter_tasks,
    filter_visits, matches_choice, matches_search, sort_visits_chronologically, urgent_tasks
)
from apps.core.store import KIND_CLIENTS, KIND_VISITS, entity_store, normalize_timestamp
from apps.corrective_tasks.models import CorrectiveTask
from apps.visits.models import Visit


def aware(*args):
    return timezone.make_aware(datetime(*args))


class EntityStoreTests(TestCase):
    """Test the CRUD facade"""

    def setUp(self):
        self.client_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
            'report_emails': ['a@plaza.com'],
        })

    def test_create_assigns_id_and_timestamps(self):
        client = entity_store.get(KIND_CLIENTS, self.client_id)

        self.assertEqual(len(self.client_id), 32)
        self.assertIsNotNone(client.created_at)
        self.assertIsNotNone(client.updated_at)
        self.assertEqual(client.frequency, 'monthly')

    def test_create_ignores_caller_ids(self):
        new_id = entity_store.create(KIND_CLIENTS, {
            'id': 'mine', 'company_name': 'Otro', 'address': 'x'
        })
        self.assertNotEqual(new_id, 'mine')

    def test_update_only_given_fields(self):
        before = entity_store.get(KIND_CLIENTS, self.client_id)

        entity_store.update(KIND_CLIENTS, self.client_id, {'referent_name': 'Laura'})

        after = entity_store.get(KIND_CLIENTS, self.client_id)
        self.assertEqual(after.referent_name, 'Laura')
        self.assertEqual(after.company_name, 'Hotel Plaza')
        self.assertGreaterEqual(after.updated_at, before.updated_at)

    def test_get_missing_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            entity_store.get(KIND_CLIENTS, 'missing')
        self.assertEqual(ctx.exception.message, 'Cliente no encontrado')

    def test_update_missing_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            entity_store.update(KIND_VISITS, 'missing', {'notes': 'x'})

    def test_update_with_expected_values(self):
        """Test a conditional update only applies while the stored values still match"""
        entity_store.update(
            KIND_CLIENTS, self.client_id, {'referent_name': 'Laura'},
            expected={'company_name': 'Hotel Plaza'}
        )

        with self.assertRaises(InvalidStatusTransitionError):
            entity_store.update(
                KIND_CLIENTS, self.client_id, {'referent_name': 'Pedro'},
                expected={'company_name': 'Otro nombre'}
            )
        with self.assertRaises(NotFoundError):
            entity_store.update(KIND_CLIENTS, 'missing', {'referent_name': 'x'}, expected={'company_name': 'x'})

        self.assertEqual(entity_store.get(KIND_CLIENTS, self.client_id).referent_name, 'Laura')

    def test_delete_missing_is_noop(self):
        entity_store.delete(KIND_CLIENTS, 'missing')
        entity_store.delete(KIND_CLIENTS, self.client_id)
        entity_store.delete(KIND_CLIENTS, self.client_id)

        self.assertEqual(entity_store.list(KIND_CLIENTS), [])

    def test_unknown_kind(self):
        with self.assertRaises(LookupError):
            entity_store.list('invoices')

    def test_unknown_field_rejected(self):
        with self.assertRaises(BusinessRuleViolationError):
            entity_store.create(KIND_CLIENTS, {'company_name': 'x', 'address': 'y', 'phone': '1'})

    def test_timestamps_normalized(self):
        """Test dates and ISO strings become aware datetimes"""
        from_string = entity_store.create(KIND_VISITS, {
            'client_id': self.client_id, 'scheduled_date': '2025-03-10T09:00:00',
        })
        from_date = entity_store.create(KIND_VISITS, {
            'client_id': self.client_id, 'scheduled_date': date(2025, 3, 11),
        })

        self.assertEqual(entity_store.get(KIND_VISITS, from_string).scheduled_date, aware(2025, 3, 10, 9, 0))
        self.assertEqual(entity_store.get(KIND_VISITS, from_date).scheduled_date, aware(2025, 3, 11, 0, 0))

    def test_database_error_maps_to_store_unavailable(self):
        broken = mock.Mock()
        broken.objects.filter.side_effect = DatabaseError('down')

        with mock.patch.object(entity_store, 'model_for', return_value=broken):
            with self.assertRaises(StoreUnavailableError):
                entity_store.list(KIND_CLIENTS)
            self.assertEqual(entity_store.safe_list(KIND_CLIENTS), [])


class NormalizeTimestampTests(SimpleTestCase):

    def test_none_and_blank(self):
        self.assertIsNone(normalize_timestamp(None))
        self.assertIsNone(normalize_timestamp(''))

    def test_aware_datetime_kept(self):
        value = aware(2025, 3, 10, 9, 0)
        self.assertEqual(normalize_timestamp(value), value)

    def test_date_only_string(self):
        self.assertEqual(normalize_timestamp('2025-03-10'), aware(2025, 3, 10, 0, 0))

    def test_invalid_values(self):
        for value in ('ayer', '2025-13-45', 12345):
            with self.assertRaises(BusinessRuleViolationError):
                normalize_timestamp(value)


class BusinessRulesTests(SimpleTestCase):
    """Test status and priority rules"""

    def test_visit_transitions(self):
        BusinessRules.validate_visit_transition(VisitStatus.SCHEDULED, VisitStatus.COMPLETED)

        for current, new in [
            (VisitStatus.COMPLETED, VisitStatus.SCHEDULED),
            (VisitStatus.COMPLETED, VisitStatus.COMPLETED),
            ('archived', VisitStatus.COMPLETED),
        ]:
            with self.assertRaises(InvalidStatusTransitionError):
                BusinessRules.validate_visit_transition(current, new)

    def test_task_transitions(self):
        allowed = [
            (TaskStatus.PENDING, TaskStatus.IN_PROGRESS),
            (TaskStatus.PENDING, TaskStatus.COMPLETED),
            (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
        ]
        for current, new in allowed:
            BusinessRules.validate_task_transition(current, new)

        rejected = [
            (TaskStatus.IN_PROGRESS, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS),
            (TaskStatus.PENDING, 'cancelled'),
        ]
        for current, new in rejected:
            with self.assertRaises(InvalidStatusTransitionError):
                BusinessRules.validate_task_transition(current, new)

    def test_unknown_values_parse_without_raising(self):
        self.assertEqual(parse_priority('critical'), UnknownValue('critical'))
        self.assertEqual(parse_task_status(None), UnknownValue(None))
        self.assertEqual(parse_priority('urgent'), TaskPriority.URGENT)

    def test_display_labels(self):
        self.assertEqual(visit_status_display('scheduled')['label'], 'Programada')
        self.assertEqual(task_status_display('in_progress')['label'], 'En Proceso')
        self.assertEqual(priority_display('next_visit')['label'], 'Próxima Visita')

        unknown = priority_display('critical')
        self.assertEqual(unknown['label'], 'Desconocido')
        self.assertFalse(unknown['known'])

    def test_priority_rank(self):
        self.assertLess(priority_rank('urgent'), priority_rank('normal'))
        self.assertLess(priority_rank('normal'), priority_rank('next_visit'))
        self.assertLess(priority_rank('next_visit'), priority_rank('critical'))

    def test_technicians(self):
        self.assertEqual(
            BusinessRules.clean_technicians([' Alan Spitel ', '', 'Alan Spitel', None]),
            ['Alan Spitel', 'Alan Spitel']
        )
        self.assertEqual(BusinessRules.clean_technicians(None), [])

        with self.assertRaises(BusinessRuleViolationError) as ctx:
            BusinessRules.require_technicians(['  '])
        self.assertEqual(ctx.exception.message, 'Debe asignar al menos un técnico')

    def test_roster_membership(self):
        self.assertEqual(BusinessRules.validate_technician('Marco Sotola'), 'Marco Sotola')
        with self.assertRaises(BusinessRuleViolationError):
            BusinessRules.validate_technician('Juan Nadie')

    def test_completed_records_are_locked(self):
        with self.assertRaises(BusinessRuleViolationError):
            BusinessRules.ensure_task_editable(CorrectiveTask(status=TaskStatus.COMPLETED))
        with self.assertRaises(BusinessRuleViolationError):
            BusinessRules.ensure_visit_editable(Visit(status=VisitStatus.COMPLETED))
        BusinessRules.ensure_task_editable(CorrectiveTask(status=TaskStatus.IN_PROGRESS))


class FilterTests(SimpleTestCase):
    """Test list filtering and sorting"""

    def setUp(self):
        self.clients_map = {
            'c1': Client(id='c1', company_name='Hotel Plaza', address='Centro', referent_name='Laura'),
            'c2': Client(id='c2', company_name='Shopping Norte', address='Ruta 9', referent_name='Pablo'),
        }
        self.tasks = [
            CorrectiveTask(id='t1', client_id='c1', description='Leak', status=TaskStatus.PENDING,
                           priority=TaskPriority.NORMAL),
            CorrectiveTask(id='t2', client_id='c2', description='Plaza de carga sin extintor',
                           status=TaskStatus.PENDING, priority=TaskPriority.URGENT),
            CorrectiveTask(id='t3', client_id='c1', description='Cartel', status=TaskStatus.COMPLETED,
                           priority=TaskPriority.NORMAL),
            CorrectiveTask(id='t4', client_id='c2', description='Manguera', status=TaskStatus.PENDING,
                           priority=TaskPriority.NORMAL),
        ]

    def test_matches_search(self):
        self.assertTrue(matches_search('', 'x'))
        self.assertTrue(matches_search('  ', None))
        self.assertTrue(matches_search('PLAZA', None, 'Hotel Plaza'))
        self.assertFalse(matches_search('norte', None, 'Hotel Plaza'))

    def test_matches_choice(self):
        self.assertTrue(matches_choice('pending', 'all'))
        self.assertTrue(matches_choice('pending', None))
        self.assertFalse(matches_choice('pending', 'completed'))

    def test_filter_tasks_status_priority_search(self):
        """Test pending + all priorities + 'plaza' matches client name or description"""
        result = filter_tasks(self.tasks, self.clients_map, status='pending', priority='all', search='plaza')

        self.assertEqual([task.id for task in result], ['t1', 't2'])

    def test_filtering_is_idempotent(self):
        once = filter_tasks(self.tasks, self.clients_map, status='pending', search='plaza')
        twice = filter_tasks(once, self.clients_map, status='pending', search='plaza')

        self.assertEqual(once, twice)
        self.assertEqual(len(self.tasks), 4)

    def test_filter_clients(self):
        clients = list(self.clients_map.values())

        self.assertEqual([c.id for c in filter_clients(clients, 'ruta')], ['c2'])
        self.assertEqual([c.id for c in filter_clients(clients, 'laura')], ['c1'])
        self.assertEqual(len(filter_clients(clients, '')), 2)

    def test_filter_visits_missing_client(self):
        visits = [
            Visit(id='v1', client_id='c1', status=VisitStatus.SCHEDULED),
            Visit(id='v2', client_id='gone', status=VisitStatus.SCHEDULED),
        ]

        self.assertEqual([v.id for v in filter_visits(visits, self.clients_map, search='hotel')], ['v1'])
        self.assertEqual(len(filter_visits(visits, self.clients_map)), 2)

    def test_sort_visits_missing_dates_last(self):
        visits = [
            Visit(id='none', client_id='c1', scheduled_date=None),
            Visit(id='late', client_id='c1', scheduled_date=aware(2025, 3, 12, 9, 0)),
            Visit(id='early', client_id='c1', scheduled_date=aware(2025, 3, 2, 9, 0)),
        ]

        self.assertEqual([v.id for v in sort_visits_chronologically(visits)], ['early', 'late', 'none'])

    def test_urgent_tasks_same_priority_newest_first(self):
        tasks = [
            CorrectiveTask(id='old', client_id='c1', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 1, 9, 0)),
            CorrectiveTask(id='new', client_id='c1', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 4, 9, 0)),
            CorrectiveTask(id='undated', client_id='c1', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=None),
        ]

        self.assertEqual([t.id for t in urgent_tasks(tasks)], ['new', 'old', 'undated'])


class FilterBackendTests(SimpleTestCase):
    """Test the list filter backends used by the ViewSets"""

    def setUp(self):
        self.clients_map = {
            'c1': Client(id='c1', company_name='hotel Plaza', address='Centro'),
            'c2': Client(id='c2', company_name='Alfa Norte', address='Ruta 9'),
        }
        self.view = mock.Mock(get_clients_map=mock.Mock(return_value=self.clients_map))

    def make_request(self, **params):
        return Request(APIRequestFactory().get('/', params))

    def test_task_filter_by_status_priority_and_client(self):
        tasks = [
            CorrectiveTask(id='t1', client_id='c1', description='Leak', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 1, 9, 0)),
            CorrectiveTask(id='t2', client_id='c1', description='Cartel', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 5, 9, 0)),
            CorrectiveTask(id='t3', client_id='c2', description='Manguera', status=TaskStatus.PENDING,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 6, 9, 0)),
            CorrectiveTask(id='t4', client_id='c1', description='Extintor', status=TaskStatus.COMPLETED,
                           priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 7, 9, 0)),
        ]

        result = CorrectiveTaskListFilter().filter_queryset(
            self.make_request(status='pending', priority='urgent', client='c1'), tasks, self.view
        )

        self.assertEqual([task.id for task in result], ['t2', 't1'])

    def test_visit_filter_search_and_order(self):
        visits = [
            Visit(id='late', client_id='c1', status=VisitStatus.SCHEDULED, scheduled_date=aware(2025, 3, 12, 9, 0)),
            Visit(id='other', client_id='c2', status=VisitStatus.SCHEDULED, scheduled_date=aware(2025, 3, 1, 9, 0)),
            Visit(id='early', client_id='c1', status=VisitStatus.SCHEDULED, scheduled_date=aware(2025, 3, 2, 9, 0)),
        ]

        result = VisitListFilter().filter_queryset(self.make_request(search='plaza'), visits, self.view)

        self.assertEqual([visit.id for visit in result], ['early', 'late'])

    def test_client_filter_orders_by_name_ignoring_case(self):
        result = ClientListFilter().filter_queryset(self.make_request(), list(self.clients_map.values()), self.view)

        self.assertEqual([client.id for client in result], ['c2', 'c1'])


class ExceptionHandlerTests(SimpleTestCase):
    """Test error responses are reshaped into {message}"""

    def handle(self, exc):
        return custom_exception_handler(exc, {'view': None})

    def test_service_error_message(self):
        response = self.handle(NotFoundError('Visita no encontrada'))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'message': 'Visita no encontrada'})

    def test_default_message(self):
        response = self.handle(StoreUnavailableError())

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data, {'message': 'Base de datos no disponible'})

    def test_partial_failure_lists_completed_steps(self):
        response = self.handle(PartialFailureError('parcial', completed_steps=['visits:1']))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'message': 'parcial', 'completed_steps': ['visits:1']})

    def test_validation_error_first_message(self):
        exc = serializers.ValidationError({
            'issues': [{}, {'description': ['La descripción del problema es obligatoria']}]
        })

        response = self.handle(exc)

        self.assertEqual(response.data, {'message': 'La descripción del problema es obligatoria'})

    def test_not_authenticated(self):
        response = self.handle(NotAuthenticated())
        self.assertEqual(response.data, {'message': 'No autenticado'})

    def test_unhandled_exception_passes_through(self):
        self.assertIsNone(self.handle(ValueError('boom')))


class SeedDemoCommandTests(TestCase):
    """Test the demo data command"""

    def test_seed_creates_clients_and_visits(self):
        out = StringIO()
        call_command('seed_demo', clients=2, visits=2, seed=7, stdout=out)

        self.assertEqual(len(entity_store.list(KIND_CLIENTS)), 2)
        self.assertEqual(len(entity_store.list(KIND_VISITS)), 4)
        self.assertIn('Seeded 2 clients', out.getvalue())
