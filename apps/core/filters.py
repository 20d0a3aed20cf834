# apps/core/filters.py
"""
Filtering and sorting helpers for loaded entity lists.

Filters are conjunctions of independent predicates and return new lists;
inputs are never mutated. Missing or unusable dates always sort after
defined ones.
"""
from datetime import date, datetime, time

from django.utils import timezone
from rest_framework.filters import BaseFilterBackend

from .business_rules import OPEN_TASK_STATUSES, VisitStatus, priority_rank
from .store import KIND_CLIENTS, entity_store

ALL = 'all'


def clients_by_id(clients):
    return {client.id: client for client in clients}


def client_name(entity, clients_map):
    client = clients_map.get(entity.client_id)
    return client.company_name if client else ''


def local_date(value):
    """Calendar date of a timestamp in the current time zone, or None."""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _timestamp(value):
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            value = timezone.make_aware(value)
        return value.timestamp()
    if isinstance(value, date):
        return timezone.make_aware(datetime.combine(value, time.min)).timestamp()
    return None


def chronological_key(value):
    stamp = _timestamp(value)
    return (stamp is None, stamp or 0.0)


def matches_search(term, *fields):
    """Case-insensitive substring match against any of the fields."""
    if not term or not term.strip():
        return True
    needle = term.strip().lower()
    return any(field and needle in str(field).lower() for field in fields)


def matches_choice(value, selected):
    """Equality, with 'all' (or nothing selected) as the wildcard."""
    if selected in (None, '', ALL):
        return True
    return value == selected


def filter_clients(clients, search=''):
    return [
        client for client in clients
        if matches_search(search, client.company_name, client.address, client.referent_name)
    ]


def filter_visits(visits, clients_map, status=ALL, search='', client=None):
    return [
        visit for visit in visits
        if matches_choice(visit.status, status)
        and matches_choice(visit.client_id, client)
        and matches_search(search, client_name(visit, clients_map))
    ]


def filter_tasks(tasks, clients_map, status=ALL, priority=ALL, search='', client=None):
    return [
        task for task in tasks
        if matches_choice(task.status, status)
        and matches_choice(task.client_id, client)
        and matches_choice(task.priority, priority)
        and matches_search(search, client_name(task, clients_map), task.description)
    ]


def sort_visits_chronologically(visits):
    """Earliest scheduled first."""
    return sorted(visits, key=lambda visit: chronological_key(visit.scheduled_date))


def visits_on(visits, day, status=VisitStatus.SCHEDULED):
    return [
        visit for visit in visits
        if local_date(visit.scheduled_date) == day and matches_choice(visit.status, status)
    ]


def upcoming_visits(visits, today, limit=5):
    """Scheduled visits from today onwards, earliest first."""
    upcoming = [
        visit for visit in visits
        if visit.status == VisitStatus.SCHEDULED
        and local_date(visit.scheduled_date) is not None
        and local_date(visit.scheduled_date) >= today
    ]
    return sort_visits_chronologically(upcoming)[:limit]


def open_tasks(tasks):
    return [task for task in tasks if task.status in OPEN_TASK_STATUSES]


def sort_tasks_by_report(tasks):
    """Most recently reported first, missing report dates last."""
    def key(task):
        stamp = _timestamp(task.reported_date)
        return (stamp is None, -(stamp or 0.0))
    return sorted(tasks, key=key)


def urgent_task_sort_key(task):
    """(priority rank, most recent report first), missing report dates last."""
    stamp = _timestamp(task.reported_date)
    return (priority_rank(task.priority), stamp is None, -(stamp or 0.0))


def urgent_tasks(tasks, limit=5):
    return sorted(open_tasks(tasks), key=urgent_task_sort_key)[:limit]


def _view_clients_map(view):
    # Views without ClientsMapMixin fall back to a fresh load
    if hasattr(view, 'get_clients_map'):
        return view.get_clients_map()
    return clients_by_id(entity_store.safe_list(KIND_CLIENTS))


class ClientListFilter(BaseFilterBackend):
    """
    ?search= over company name, address and referent; ordered by company name.
    """
    def filter_queryset(self, request, queryset, view):
        clients = filter_clients(queryset, request.query_params.get('search', ''))
        return sorted(clients, key=lambda client: client.company_name.lower())


class VisitListFilter(BaseFilterBackend):
    """
    ?status=, ?search= (client name) and ?client=; earliest visit first.
    """
    def filter_queryset(self, request, queryset, view):
        params = request.query_params
        visits = filter_visits(
            queryset,
            _view_clients_map(view),
            status=params.get('status', ALL),
            search=params.get('search', ''),
            client=params.get('client')
        )
        return sort_visits_chronologically(visits)


class CorrectiveTaskListFilter(BaseFilterBackend):
    """
    ?status=, ?priority=, ?search= (client name, description) and ?client=;
    most recently reported first.
    """
    def filter_queryset(self, request, queryset, view):
        params = request.query_params
        tasks = filter_tasks(
            queryset,
            _view_clients_map(view),
            status=params.get('status', ALL),
            priority=params.get('priority', ALL),
            search=params.get('search', ''),
            client=params.get('client')
        )
        return sort_tasks_by_report(tasks)
