# apps/visits/calendar_services.py
"""
Month-grid calendar for maintenance visits.

Weeks run Sunday to Saturday. Everything here is a pure function of its
arguments; the views load visits and clients and pass them in.
"""
import calendar
from datetime import timedelta

from dateutil.relativedelta import relativedelta
from django.utils import timezone

from apps.core.filters import local_date, sort_visits_chronologically


class CalendarService:
    """
    Service for bucketing visits into a month grid.
    """

    DEFAULT_MAX_PER_DAY = 3

    @staticmethod
    def month_bounds(anchor):
        """First and last day of the anchor's month"""
        first = anchor.replace(day=1)
        last_day = calendar.monthrange(anchor.year, anchor.month)[1]
        return first, anchor.replace(day=last_day)

    @staticmethod
    def grid_bounds(anchor):
        """
        Month bounds widened to whole weeks.

        Returns:
            (grid_start, grid_end): the Sunday on or before the first of the
            month and the Saturday on or after the last.
        """
        first, last = CalendarService.month_bounds(anchor)
        # date.weekday(): Monday is 0, Sunday is 6
        grid_start = first - timedelta(days=(first.weekday() + 1) % 7)
        grid_end = last + timedelta(days=(5 - last.weekday()) % 7)
        return grid_start, grid_end

    @staticmethod
    def iter_grid_days(anchor):
        grid_start, grid_end = CalendarService.grid_bounds(anchor)
        day = grid_start
        while day <= grid_end:
            yield day
            day += timedelta(days=1)

    @staticmethod
    def visit_day(visit):
        return local_date(visit.scheduled_date)

    @staticmethod
    def bucket_visits(visits, clients_map):
        """
        Group visits by local calendar date.

        Visits without a usable ``scheduled_date`` are skipped. Within a day,
        visits keep chronological order.

        Returns:
            Dict of date -> list of {'visit', 'client'} entries; ``client`` is
            None when the referenced client no longer exists.
        """
        buckets = {}
        for visit in sort_visits_chronologically(visits):
            day = CalendarService.visit_day(visit)
            if day is None:
                continue
            buckets.setdefault(day, []).append({
                'visit': visit,
                'client': clients_map.get(visit.client_id),
            })
        return buckets

    @staticmethod
    def build_month(anchor, visits, clients_map, today=None, max_per_day=DEFAULT_MAX_PER_DAY):
        """
        Build the month grid for the anchor's month.

        Args:
            anchor: Any date inside the month to render
            visits: Visits to place (every status)
            clients_map: client id -> Client
            today: Date highlighted as today (defaults to the local date)
            max_per_day: Visits shown per cell before the "+K" indicator

        Returns:
            Dict with the month, the grid bounds and one entry per grid day
        """
        if today is None:
            today = timezone.localdate()

        first, _ = CalendarService.month_bounds(anchor)
        grid_start, grid_end = CalendarService.grid_bounds(anchor)
        buckets = CalendarService.bucket_visits(visits, clients_map)

        days = []
        for day in CalendarService.iter_grid_days(anchor):
            entries = buckets.get(day, [])
            days.append({
                'date': day,
                'day': day.day,
                'is_current_month': day.month == first.month and day.year == first.year,
                'is_today': day == today,
                'visits': entries,
                'visible_visits': entries[:max_per_day],
                'overflow_count': max(len(entries) - max_per_day, 0),
            })

        return {
            'month': first,
            'grid_start': grid_start,
            'grid_end': grid_end,
            'days': days,
        }

    @staticmethod
    def day_detail(day, visits, clients_map):
        """All visits on ``day``, earliest first"""
        return CalendarService.bucket_visits(visits, clients_map).get(day, [])

    @staticmethod
    def previous_month(anchor):
        return anchor.replace(day=1) - relativedelta(months=1)

    @staticmethod
    def next_month(anchor):
        return anchor.replace(day=1) + relativedelta(months=1)

    @staticmethod
    def current_month(today=None):
        if today is None:
            today = timezone.localdate()
        return today.replace(day=1)
