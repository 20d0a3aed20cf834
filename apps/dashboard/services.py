# apps/dashboard/services.py
"""
Dashboard aggregation.

build_summary is pure; load_summary reads the collections and the local
reminders, then delegates to it.
"""
import logging

from django.conf import settings
from django.utils import timezone

from apps.core.business_rules import TaskPriority, VisitStatus
from apps.core.filters import clients_by_id, open_tasks, upcoming_visits, urgent_tasks, visits_on
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store
from apps.reminders.repository import display_sort_key, get_reminder_repository, is_overdue
from apps.users.services import display_name

logger = logging.getLogger(__name__)


class DashboardService:

    @staticmethod
    def build_summary(clients, visits, tasks, reminders, today, now=None, preview_size=5):
        """
        Aggregate counts and previews for the dashboard.

        Args:
            clients, visits, tasks: Loaded entity lists
            reminders: Reminder dicts
            today: Local date used for "today" and "upcoming"
            now: Moment used for overdue reminders
            preview_size: Length of each preview list

        Returns:
            Dict with 'counts', 'upcoming_visits', 'urgent_tasks',
            'reminders' and the shared 'clients_map'
        """
        now = now or timezone.now()
        clients_map = clients_by_id(clients)
        open_task_list = open_tasks(tasks)
        pending_reminders = sorted(
            (reminder for reminder in reminders if not reminder.get('completed')),
            key=display_sort_key
        )

        counts = {
            'total_clients': len(clients),
            'total_visits': len(visits),
            'today_visits': len(visits_on(visits, today, status=VisitStatus.SCHEDULED)),
            'total_tasks': len(tasks),
            'open_tasks': len(open_task_list),
            'open_urgent_tasks': sum(
                1 for task in open_task_list if task.priority == TaskPriority.URGENT
            ),
            'pending_reminders': len(pending_reminders),
            'overdue_reminders': sum(1 for reminder in pending_reminders if is_overdue(reminder, now)),
        }

        return {
            'counts': counts,
            'upcoming_visits': [
                {'visit': visit, 'client': clients_map.get(visit.client_id)}
                for visit in upcoming_visits(visits, today, limit=preview_size)
            ],
            'urgent_tasks': [
                {'task': task, 'client': clients_map.get(task.client_id)}
                for task in urgent_tasks(tasks, limit=preview_size)
            ],
            'reminders': pending_reminders[:preview_size],
            'clients_map': clients_map,
        }

    @staticmethod
    def load_summary(user, store=entity_store, reminders=None, today=None, now=None):
        """
        Read every collection and build the summary for ``user``.
        Each collection degrades to an empty list if the store fails.
        """
        reminders = reminders if reminders is not None else get_reminder_repository(user)
        today = today or timezone.localdate()

        clients = store.safe_list(KIND_CLIENTS)
        visits = store.safe_list(KIND_VISITS)
        tasks = store.safe_list(KIND_CORRECTIVE_TASKS)
        reminder_items = reminders.all()

        summary = DashboardService.build_summary(
            clients, visits, tasks, reminder_items,
            today=today,
            now=now,
            preview_size=settings.DASHBOARD_PREVIEW_SIZE
        )
        summary['user'] = display_name(user)
        logger.debug(f"Dashboard summary built for {summary['user']}: {summary['counts']}")
        return summary
