# apps/core/models.py
"""
Abstract base models for common patterns.
Use these as base classes to ensure consistency across models.
"""
import uuid

from django.db import models


def generate_document_id():
    """Opaque identifier assigned by the store on creation."""
    return uuid.uuid4().hex


class TimeStampedModel(models.Model):
    """
    Abstract model providing automatic timestamp fields.
    Inherit from this for models that need created/updated tracking.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class DocumentModel(TimeStampedModel):
    """
    Abstract model for records kept behind the entity store.

    Ids are opaque strings and references between documents are plain ids,
    not database foreign keys: deleting a client leaves its visits and tasks
    in place, and readers resolve the reference themselves.
    """
    id = models.CharField(
        primary_key=True,
        max_length=32,
        default=generate_document_id,
        editable=False
    )

    class Meta:
        abstract = True
