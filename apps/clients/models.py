# apps/clients/models.py
from django.db import models

from apps.core.business_rules import ClientFrequency
from apps.core.models import DocumentModel


class Client(DocumentModel):
    """
    Service-contract company. Visits and corrective tasks point at it by id.
    """
    company_name = models.CharField(max_length=255, db_index=True)
    referent_name = models.CharField(max_length=255, blank=True, default='')
    referent_position = models.CharField(max_length=255, blank=True, default='')
    address = models.CharField(max_length=255)
    contract_ref = models.CharField(max_length=100, blank=True, default='')
    # Ordered list of addresses that receive visit reports
    report_emails = models.JSONField(blank=True, default=list)
    frequency = models.CharField(
        max_length=20,
        choices=ClientFrequency.choices,
        default=ClientFrequency.MONTHLY
    )

    class Meta:
        ordering = ['company_name']

    def __str__(self):
        return self.company_name
