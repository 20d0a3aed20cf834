# apps/corrective_tasks/models.py
from django.db import models
from django.utils import timezone

from apps.core.business_rules import TaskPriority, TaskStatus
from apps.core.models import DocumentModel


class CorrectiveTask(DocumentModel):
    """
    Repair ticket, created by hand or spawned while completing a visit.
    """
    client_id = models.CharField(max_length=32, db_index=True)
    # Set when the task was raised during a visit completion
    origin_visit_id = models.CharField(max_length=32, null=True, blank=True, db_index=True)
    description = models.TextField()
    priority = models.CharField(
        max_length=20,
        choices=TaskPriority.choices,
        default=TaskPriority.NORMAL,
        db_index=True
    )
    status = models.CharField(
        max_length=20,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
        db_index=True
    )
    reported_date = models.DateTimeField(null=True, blank=True, default=timezone.now)
    reported_by = models.CharField(max_length=255, blank=True, default='')
    completed_date = models.DateTimeField(null=True, blank=True)
    completed_by = models.JSONField(blank=True, default=list)
    notes = models.TextField(blank=True, default='')
    photos = models.JSONField(blank=True, default=list)

    class Meta:
        ordering = ['-reported_date']

    def __str__(self):
        return f"Task {self.id} ({self.priority}, {self.status})"

    @property
    def is_completed(self):
        return self.status == TaskStatus.COMPLETED
