# apps/visits/models.py
from django.db import models

from apps.core.business_rules import VisitStatus
from apps.core.models import DocumentModel


class Visit(DocumentModel):
    """
    Preventive maintenance visit at a client site.
    Moves scheduled -> completed once; completion stamps ``completed_date``.
    """
    client_id = models.CharField(max_length=32, db_index=True)
    # Required on write; nullable so records with a lost date can still be read
    scheduled_date = models.DateTimeField(null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=VisitStatus.choices,
        default=VisitStatus.SCHEDULED,
        db_index=True
    )
    technicians = models.JSONField(blank=True, default=list)
    notes = models.TextField(blank=True, default='')
    completed_date = models.DateTimeField(null=True, blank=True)
    # Informational only: scheduled in the past when created or last edited
    is_past_date_visit = models.BooleanField(default=False)

    class Meta:
        ordering = ['scheduled_date']

    def __str__(self):
        return f"Visit {self.id} ({self.status})"

    @property
    def is_completed(self):
        return self.status == VisitStatus.COMPLETED
