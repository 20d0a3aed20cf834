# apps/visits/services.py
import logging

from django.utils import timezone

from apps.core.business_rules import (
    BusinessRules, TaskPriority, TaskStatus, UnknownValue, VisitStatus, parse_priority
)
from apps.core.exceptions import BusinessRuleViolationError, PartialFailureError, ServiceError
from apps.core.store import KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store, normalize_timestamp

logger = logging.getLogger(__name__)


class VisitService:
    """
    Write workflows for visits: scheduling, rescheduling and completion.
    """

    @staticmethod
    def is_past_date(scheduled_date, now=None):
        """Informational flag shown for visits booked in the past"""
        if scheduled_date is None:
            return False
        if now is None:
            now = timezone.now()
        return normalize_timestamp(scheduled_date) < now

    @staticmethod
    def prepare_schedule(attrs, now=None):
        """Clean technicians and compute ``is_past_date_visit`` for a create/edit payload"""
        data = dict(attrs)
        if 'technicians' in data:
            data['technicians'] = BusinessRules.clean_technicians(data['technicians'])
        if 'scheduled_date' in data:
            data['is_past_date_visit'] = VisitService.is_past_date(data['scheduled_date'], now)
        return data

    @staticmethod
    def schedule_visit(attrs, now=None):
        """
        Create a scheduled visit.

        Returns:
            The new visit id
        """
        if not attrs.get('client_id'):
            raise BusinessRuleViolationError("Debe seleccionar un cliente")
        if not attrs.get('scheduled_date'):
            raise BusinessRuleViolationError("La fecha de la visita es obligatoria")

        data = VisitService.prepare_schedule(attrs, now)
        data['status'] = VisitStatus.SCHEDULED
        data.pop('completed_date', None)
        return entity_store.create(KIND_VISITS, data)

    @staticmethod
    def reschedule_visit(visit_id, attrs, now=None):
        """Edit a visit that is still scheduled"""
        visit = entity_store.get(KIND_VISITS, visit_id)
        BusinessRules.ensure_visit_editable(visit)

        data = VisitService.prepare_schedule(attrs, now)
        # Status only changes through complete_visit
        data.pop('status', None)
        data.pop('completed_date', None)
        entity_store.update(KIND_VISITS, visit_id, data)

    @staticmethod
    def delete_visit(visit_id):
        visit = entity_store.get(KIND_VISITS, visit_id)
        BusinessRules.ensure_visit_deletable(visit)
        entity_store.delete(KIND_VISITS, visit_id)

    @staticmethod
    def _clean_issues(issues):
        cleaned = []
        for issue in issues or ():
            description = (issue.get('description') or '').strip()
            if not description:
                continue
            priority = issue.get('priority') or TaskPriority.NORMAL
            if isinstance(parse_priority(priority), UnknownValue):
                raise BusinessRuleViolationError(f"Prioridad inválida: {priority}")
            cleaned.append({'description': description, 'priority': priority})
        return cleaned

    @staticmethod
    def complete_visit(visit_id, technicians, notes='', issues=(), now=None):
        """
        Complete a scheduled visit and raise one corrective task per issue.

        Every check runs before the first write. The visit is updated first,
        then the tasks are created one by one; if a write fails after that,
        PartialFailureError reports the steps already stored.

        Args:
            visit_id: Visit to complete
            technicians: Technicians who attended (at least one)
            notes: Visit notes
            issues: Iterable of {'description', 'priority'} found on site
            now: Completion timestamp (defaults to now)

        Returns:
            Dict with the completed visit and the ids of the created tasks
        """
        if now is None:
            now = timezone.now()

        visit = entity_store.get(KIND_VISITS, visit_id)
        BusinessRules.validate_visit_transition(visit.status, VisitStatus.COMPLETED)
        attending = BusinessRules.require_technicians(technicians)
        pending_issues = VisitService._clean_issues(issues)

        entity_store.update(KIND_VISITS, visit_id, {
            'status': VisitStatus.COMPLETED,
            'completed_date': now,
            'technicians': attending,
            'notes': notes or '',
        }, expected={'status': visit.status})
        completed_steps = [f"visits:{visit_id}"]
        logger.info(f"Visit {visit_id} completed by {', '.join(attending)}")

        task_ids = []
        for issue in pending_issues:
            try:
                task_id = entity_store.create(KIND_CORRECTIVE_TASKS, {
                    'client_id': visit.client_id,
                    'origin_visit_id': visit_id,
                    'description': issue['description'],
                    'priority': issue['priority'],
                    'status': TaskStatus.PENDING,
                    'reported_date': now,
                    'reported_by': attending[0],
                    'completed_by': [],
                    'notes': '',
                    'photos': [],
                })
            except ServiceError as exc:
                logger.error(
                    f"Visit {visit_id} completed but task creation failed after "
                    f"{len(task_ids)} of {len(pending_issues)}: {exc.message}"
                )
                raise PartialFailureError(
                    "La visita se completó pero no se pudieron crear todas las tareas correctivas",
                    completed_steps=completed_steps,
                ) from exc
            task_ids.append(task_id)
            completed_steps.append(f"corrective_tasks:{task_id}")

        return {
            'visit': entity_store.get(KIND_VISITS, visit_id),
            'task_ids': task_ids,
        }
