# apps/core/business_rules.py
"""
Status and priority rules for visits and corrective tasks.

Pure lookups and transition checks, no database access. Values read back
from storage that are not part of an enum never raise: they parse to
``UnknownValue`` and display as "Desconocido".
"""
from typing import NamedTuple

from django.conf import settings
from django.db import models

from .exceptions import BusinessRuleViolationError, InvalidStatusTransitionError


class VisitStatus(models.TextChoices):
    SCHEDULED = 'scheduled', 'Programada'
    COMPLETED = 'completed', 'Completada'


class TaskStatus(models.TextChoices):
    PENDING = 'pending', 'Pendiente'
    IN_PROGRESS = 'in_progress', 'En Proceso'
    COMPLETED = 'completed', 'Completada'


class TaskPriority(models.TextChoices):
    URGENT = 'urgent', 'Urgente'
    NORMAL = 'normal', 'Normal'
    NEXT_VISIT = 'next_visit', 'Próxima Visita'


class ClientFrequency(models.TextChoices):
    WEEKLY = 'weekly', 'Semanal'
    MONTHLY = 'monthly', 'Mensual'
    BIMONTHLY = 'bimonthly', 'Bimestral'


class UnknownValue(NamedTuple):
    """A stored enum value this version does not recognise."""
    raw: object


UNKNOWN_LABEL = 'Desconocido'
UNKNOWN_COLOR = 'bg-gray-100 text-gray-800'

VISIT_STATUS_COLORS = {
    VisitStatus.SCHEDULED: 'bg-blue-100 text-blue-800',
    VisitStatus.COMPLETED: 'bg-green-100 text-green-800',
}

TASK_STATUS_COLORS = {
    TaskStatus.PENDING: 'bg-red-100 text-red-800',
    TaskStatus.IN_PROGRESS: 'bg-yellow-100 text-yellow-800',
    TaskStatus.COMPLETED: 'bg-green-100 text-green-800',
}

PRIORITY_COLORS = {
    TaskPriority.URGENT: 'bg-red-100 text-red-800 border-red-300',
    TaskPriority.NORMAL: 'bg-yellow-100 text-yellow-800 border-yellow-300',
    TaskPriority.NEXT_VISIT: 'bg-blue-100 text-blue-800 border-blue-300',
}

FREQUENCY_COLORS = {
    ClientFrequency.WEEKLY: 'bg-purple-100 text-purple-800',
    ClientFrequency.MONTHLY: 'bg-blue-100 text-blue-800',
    ClientFrequency.BIMONTHLY: 'bg-teal-100 text-teal-800',
}

# Lower rank sorts first
PRIORITY_RANK = {
    TaskPriority.URGENT: 0,
    TaskPriority.NORMAL: 1,
    TaskPriority.NEXT_VISIT: 2,
}

VISIT_TRANSITIONS = {
    VisitStatus.SCHEDULED: {VisitStatus.COMPLETED},
    VisitStatus.COMPLETED: set(),
}

TASK_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),
}

OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


def _parse(choices, raw):
    try:
        return choices(raw)
    except (ValueError, TypeError):
        return UnknownValue(raw)


def parse_visit_status(raw):
    return _parse(VisitStatus, raw)


def parse_task_status(raw):
    return _parse(TaskStatus, raw)


def parse_priority(raw):
    return _parse(TaskPriority, raw)


def parse_frequency(raw):
    return _parse(ClientFrequency, raw)


def _display(choices, colors, raw):
    value = _parse(choices, raw)
    if isinstance(value, UnknownValue):
        return {'value': raw, 'label': UNKNOWN_LABEL, 'color': UNKNOWN_COLOR, 'known': False}
    return {'value': value.value, 'label': value.label, 'color': colors[value], 'known': True}


def visit_status_display(raw):
    return _display(VisitStatus, VISIT_STATUS_COLORS, raw)


def task_status_display(raw):
    return _display(TaskStatus, TASK_STATUS_COLORS, raw)


def priority_display(raw):
    return _display(TaskPriority, PRIORITY_COLORS, raw)


def frequency_display(raw):
    return _display(ClientFrequency, FREQUENCY_COLORS, raw)


def priority_rank(raw):
    """Sort rank of a priority; unknown priorities go after every known one."""
    value = parse_priority(raw)
    if isinstance(value, UnknownValue):
        return len(PRIORITY_RANK)
    return PRIORITY_RANK[value]


def _allowed_transitions(transitions, current):
    # Unknown states have no outgoing transitions
    if isinstance(current, UnknownValue):
        return set()
    return transitions[current]


def technician_roster():
    return list(settings.TECHNICIANS)


class BusinessRules:
    @staticmethod
    def validate_visit_transition(current_status, new_status):
        """Visits only move scheduled -> completed"""
        allowed = _allowed_transitions(VISIT_TRANSITIONS, parse_visit_status(current_status))
        if parse_visit_status(new_status) not in allowed:
            raise InvalidStatusTransitionError(
                f"No se puede pasar la visita de "
                f"'{visit_status_display(current_status)['label']}' a "
                f"'{visit_status_display(new_status)['label']}'"
            )

    @staticmethod
    def validate_task_transition(current_status, new_status):
        """Tasks move pending -> in_progress -> completed, with pending -> completed allowed"""
        allowed = _allowed_transitions(TASK_TRANSITIONS, parse_task_status(current_status))
        if parse_task_status(new_status) not in allowed:
            raise InvalidStatusTransitionError(
                f"No se puede pasar la tarea de "
                f"'{task_status_display(current_status)['label']}' a "
                f"'{task_status_display(new_status)['label']}'"
            )

    @staticmethod
    def clean_technicians(names):
        """Trim names and drop blank entries; order and duplicates are kept"""
        if not names:
            return []
        return [name.strip() for name in names if isinstance(name, str) and name.strip()]

    @staticmethod
    def require_technicians(names):
        technicians = BusinessRules.clean_technicians(names)
        if not technicians:
            raise BusinessRuleViolationError("Debe asignar al menos un técnico")
        return technicians

    @staticmethod
    def validate_technician(name):
        if name not in technician_roster():
            raise BusinessRuleViolationError(f"Técnico desconocido: {name}")
        return name

    @staticmethod
    def ensure_visit_editable(visit):
        if visit.status == VisitStatus.COMPLETED:
            raise BusinessRuleViolationError("No se puede editar una visita completada")

    @staticmethod
    def ensure_visit_deletable(visit):
        if visit.status == VisitStatus.COMPLETED:
            raise BusinessRuleViolationError("Solo se pueden eliminar visitas programadas")

    @staticmethod
    def ensure_task_editable(task):
        if task.status == TaskStatus.COMPLETED:
            raise BusinessRuleViolationError("No se puede editar una tarea completada")
