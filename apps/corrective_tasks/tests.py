# apps/corrective_tasks/tests.py
"""
Corrective tasks app tests - status workflow and API endpoints
"""
from datetime import datetime
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.business_rules import TaskPriority, TaskStatus
from apps.core.exceptions import BusinessRuleViolationError, InvalidStatusTransitionError
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, entity_store
from apps.corrective_tasks.models import CorrectiveTask
from apps.corrective_tasks.services import CorrectiveTaskService

User = get_user_model()


def aware(*args):
    return timezone.make_aware(datetime(*args))


def make_task(client_id, description='Matafuego despresurizado', **attrs):
    data = {
        'client_id': client_id,
        'description': description,
        'priority': TaskPriority.NORMAL,
        'status': TaskStatus.PENDING,
        'reported_by': 'Alan Spitel',
        'reported_date': aware(2025, 3, 1, 10, 0),
    }
    data.update(attrs)
    return entity_store.create(KIND_CORRECTIVE_TASKS, data)


class CorrectiveTaskServiceTests(TestCase):
    """Test task status transitions"""

    def setUp(self):
        self.client_id = entity_store.create(KIND_CLIENTS, {
            'company_name': 'Hotel Plaza',
            'address': 'Av. Siempre Viva 742',
        })
        self.task_id = make_task(self.client_id)

    def test_start_task(self):
        """Test pending -> in_progress"""
        task = CorrectiveTaskService.start(self.task_id)
        self.assertEqual(task.status, TaskStatus.IN_PROGRESS)
        self.assertIsNone(task.completed_date)

    def test_complete_from_in_progress(self):
        """Test in_progress -> completed stamps date and technicians"""
        now = aware(2025, 3, 2, 15, 0)
        CorrectiveTaskService.start(self.task_id)

        task = CorrectiveTaskService.complete(
            self.task_id, technicians=[' Marco Sotola ', ''], notes='Recargado', now=now
        )

        self.assertEqual(task.status, TaskStatus.COMPLETED)
        self.assertEqual(task.completed_by, ['Marco Sotola'])
        self.assertEqual(task.completed_date, now)
        self.assertEqual(task.notes, 'Recargado')

    def test_complete_directly_from_pending(self):
        """Test pending -> completed is allowed"""
        task = CorrectiveTaskService.complete(self.task_id, technicians=['Alan Spitel'])
        self.assertEqual(task.status, TaskStatus.COMPLETED)

    def test_complete_without_technicians_writes_nothing(self):
        """Test completion with no technicians is rejected before any write"""
        with self.assertRaises(BusinessRuleViolationError):
            CorrectiveTaskService.complete(self.task_id, technicians=[])

        task = entity_store.get(KIND_CORRECTIVE_TASKS, self.task_id)
        self.assertEqual(task.status, TaskStatus.PENDING)
        self.assertEqual(task.completed_by, [])

    def test_completed_is_terminal(self):
        """Test no transition leaves completed"""
        CorrectiveTaskService.complete(self.task_id, technicians=['Alan Spitel'])

        with self.assertRaises(InvalidStatusTransitionError):
            CorrectiveTaskService.start(self.task_id)

    def test_unknown_stored_status_has_no_transitions(self):
        """Test tasks with an unrecognised status are left untouched"""
        CorrectiveTask.objects.filter(pk=self.task_id).update(status='archived')

        with self.assertRaises(InvalidStatusTransitionError):
            CorrectiveTaskService.complete(self.task_id, technicians=['Alan Spitel'])

    def test_transition_from_stale_read_rejected(self):
        """Test a transition based on an outdated status writes nothing"""
        stale = entity_store.get(KIND_CORRECTIVE_TASKS, self.task_id)
        CorrectiveTaskService.complete(self.task_id, technicians=['Alan Spitel'])

        with mock.patch.object(entity_store, 'get', side_effect=[stale]):
            with self.assertRaises(InvalidStatusTransitionError):
                CorrectiveTaskService.start(self.task_id)

        self.assertEqual(entity_store.get(KIND_CORRECTIVE_TASKS, self.task_id).status, TaskStatus.COMPLETED)


class CorrectiveTaskAPITests(APITestCase):
    """Test corrective task API endpoints"""

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
        self.plaza_pending = make_task(
            self.plaza_id, 'Leak en sala de bombas',
            priority=TaskPriority.URGENT, reported_date=aware(2025, 3, 2, 9, 0)
        )
        self.plaza_done = make_task(
            self.plaza_id, 'Cartel de salida roto', status=TaskStatus.COMPLETED,
            reported_date=aware(2025, 3, 3, 9, 0)
        )
        self.mall_pending = make_task(
            self.mall_id, 'Revisar plaza de estacionamiento', reported_date=aware(2025, 3, 4, 9, 0)
        )
        self.mall_other = make_task(
            self.mall_id, 'Hidrante sin señalizar', reported_date=aware(2025, 3, 5, 9, 0)
        )

    def ids(self, response):
        return [task['id'] for task in response.data['results']]

    def test_list_newest_first(self):
        """Test list is ordered by report date descending"""
        response = self.client.get(reverse('corrective-tasks-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            self.ids(response),
            [self.mall_other, self.mall_pending, self.plaza_done, self.plaza_pending]
        )

    def test_filter_pending_search_plaza(self):
        """Test status=pending, priority=all, search=plaza matches client name or description"""
        response = self.client.get(reverse('corrective-tasks-list'), {
            'status': 'pending', 'priority': 'all', 'search': 'plaza'
        })

        self.assertEqual(sorted(self.ids(response)), sorted([self.plaza_pending, self.mall_pending]))

    def test_filter_by_priority(self):
        """Test priority filter"""
        response = self.client.get(reverse('corrective-tasks-list'), {'priority': 'urgent'})

        self.assertEqual(self.ids(response), [self.plaza_pending])

    def test_create_task(self):
        """Test reporting a task by hand"""
        response = self.client.post(reverse('corrective-tasks-list'), {
            'client_id': self.mall_id,
            'description': 'Manguera cortada',
            'priority': 'next_visit',
            'reported_by': 'Gustavo Fernandez',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], TaskStatus.PENDING)
        self.assertIsNone(response.data['origin_visit_id'])
        self.assertEqual(response.data['priority_display']['label'], 'Próxima Visita')
        self.assertIsNotNone(response.data['reported_date'])

    def test_create_task_unknown_technician(self):
        """Test reported_by must be on the roster"""
        response = self.client.post(reverse('corrective-tasks-list'), {
            'client_id': self.mall_id,
            'description': 'Manguera cortada',
            'reported_by': 'Juan Nadie',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Técnico desconocido: Juan Nadie')

    def test_create_task_requires_description(self):
        """Test blank description is rejected"""
        response = self.client.post(reverse('corrective-tasks-list'), {
            'client_id': self.mall_id,
            'description': '   ',
            'reported_by': 'Alan Spitel',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'La descripción es obligatoria')

    def test_edit_open_task(self):
        """Test pending tasks can be edited"""
        response = self.client.patch(
            reverse('corrective-tasks-detail', args=[self.mall_pending]),
            {'priority': 'urgent'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['priority'], TaskPriority.URGENT)

    def test_edit_completed_task_blocked(self):
        """Test completed tasks cannot be edited"""
        response = self.client.patch(
            reverse('corrective-tasks-detail', args=[self.plaza_done]),
            {'notes': 'cambio'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No se puede editar una tarea completada')

    def test_delete_completed_task_allowed(self):
        """Test delete works at any status"""
        response = self.client.delete(reverse('corrective-tasks-detail', args=[self.plaza_done]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CorrectiveTask.objects.filter(pk=self.plaza_done).exists())

    def test_start_and_complete_actions(self):
        """Test start then complete through the API"""
        start = self.client.post(reverse('corrective-tasks-start', args=[self.mall_pending]))
        complete = self.client.post(
            reverse('corrective-tasks-complete', args=[self.mall_pending]),
            {'technicians': ['Daniel Galvez'], 'notes': 'Listo'},
            format='json'
        )

        self.assertEqual(start.status_code, status.HTTP_200_OK)
        self.assertEqual(start.data['task']['status'], TaskStatus.IN_PROGRESS)
        self.assertEqual(complete.status_code, status.HTTP_200_OK)
        self.assertEqual(complete.data['task']['status'], TaskStatus.COMPLETED)
        self.assertEqual(complete.data['task']['completed_by'], ['Daniel Galvez'])

    def test_complete_without_technicians(self):
        """Test completion without technicians returns 400"""
        response = self.client.post(
            reverse('corrective-tasks-complete', args=[self.mall_pending]),
            {'technicians': ['  ']},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Debe asignar al menos un técnico')

    def test_start_completed_task_rejected(self):
        """Test invalid transition returns 400"""
        response = self.client.post(reverse('corrective-tasks-start', args=[self.plaza_done]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
