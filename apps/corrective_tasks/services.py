# apps/corrective_tasks/services.py
import logging

from django.utils import timezone

from apps.core.business_rules import BusinessRules, TaskStatus
from apps.core.store import KIND_CORRECTIVE_TASKS, entity_store

logger = logging.getLogger(__name__)


class CorrectiveTaskService:
    """
    Status workflow for corrective tasks.
    """

    @staticmethod
    def transition(task_id, new_status, technicians=(), notes=None, now=None):
        """
        Move a task to ``new_status``.

        Completing requires at least one technician; the check runs before
        any write. Completion stamps ``completed_date`` and ``completed_by``.

        Returns:
            The updated task
        """
        task = entity_store.get(KIND_CORRECTIVE_TASKS, task_id)
        BusinessRules.validate_task_transition(task.status, new_status)

        data = {'status': new_status}
        if new_status == TaskStatus.COMPLETED:
            data['completed_by'] = BusinessRules.require_technicians(technicians)
            data['completed_date'] = now or timezone.now()
        if notes is not None:
            data['notes'] = notes

        entity_store.update(KIND_CORRECTIVE_TASKS, task_id, data, expected={'status': task.status})
        logger.info(f"Corrective task {task_id}: {task.status} -> {new_status}")
        return entity_store.get(KIND_CORRECTIVE_TASKS, task_id)

    @staticmethod
    def start(task_id):
        return CorrectiveTaskService.transition(task_id, TaskStatus.IN_PROGRESS)

    @staticmethod
    def complete(task_id, technicians, notes=None, now=None):
        return CorrectiveTaskService.transition(
            task_id, TaskStatus.COMPLETED, technicians=technicians, notes=notes, now=now
        )
