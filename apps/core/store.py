# apps/core/store.py
"""
Entity store facade.

The single CRUD boundary for clients, visits and corrective tasks. Services
and views go through ``entity_store`` instead of the model managers, so the
error policy (not found, store unavailable) and timestamp normalization live
in one place.
"""
import logging
from datetime import date, datetime, time

from django.apps import apps as django_apps
from django.core.exceptions import FieldDoesNotExist
from django.db import DatabaseError, models
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import (
    BusinessRuleViolationError, InvalidStatusTransitionError, NotFoundError, StoreUnavailableError
)

logger = logging.getLogger(__name__)

KIND_CLIENTS = 'clients'
KIND_VISITS = 'visits'
KIND_CORRECTIVE_TASKS = 'corrective_tasks'

KIND_MODELS = {
    KIND_CLIENTS: 'clients.Client',
    KIND_VISITS: 'visits.Visit',
    KIND_CORRECTIVE_TASKS: 'corrective_tasks.CorrectiveTask',
}

NOT_FOUND_MESSAGES = {
    KIND_CLIENTS: 'Cliente no encontrado',
    KIND_VISITS: 'Visita no encontrada',
    KIND_CORRECTIVE_TASKS: 'Tarea correctiva no encontrada',
}

# Assigned by the store, never taken from callers
STORE_MANAGED_FIELDS = ('id', 'created_at', 'updated_at')


def normalize_timestamp(value):
    """
    Coerce a timestamp-like value into an aware datetime.

    Accepts datetimes, dates (midnight) and ISO-8601 strings. Naive values are
    interpreted in the current time zone. ``None`` and ``''`` map to ``None``.
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            result = parse_datetime(value)
            if result is None:
                parsed = parse_date(value)
                result = datetime.combine(parsed, time.min) if parsed else None
        except ValueError:
            result = None
        if result is None:
            raise BusinessRuleViolationError(f"Fecha inválida: {value}")
    else:
        raise BusinessRuleViolationError(f"Fecha inválida: {value!r}")

    if timezone.is_naive(result):
        result = timezone.make_aware(result)
    return result


class EntityStore:
    """
    CRUD operations over the document kinds listed in ``KIND_MODELS``.

    - list/get raise StoreUnavailableError on database failures
    - safe_list degrades to an empty list instead
    - get/update raise NotFoundError for unknown ids
    - delete of an unknown id is a no-op
    """

    def model_for(self, kind):
        try:
            label = KIND_MODELS[kind]
        except KeyError:
            raise LookupError(f"Unknown entity kind: {kind}") from None
        return django_apps.get_model(label)

    def _prepare(self, model, attrs):
        data = {}
        for name, value in attrs.items():
            if name in STORE_MANAGED_FIELDS:
                continue
            try:
                field = model._meta.get_field(name)
            except FieldDoesNotExist:
                raise BusinessRuleViolationError(f"Campo desconocido: {name}") from None
            if isinstance(field, models.DateTimeField):
                value = normalize_timestamp(value)
            data[field.attname] = value
        return data

    def list(self, kind, **filters):
        model = self.model_for(kind)
        try:
            return list(model.objects.filter(**filters))
        except DatabaseError as exc:
            logger.error(f"Store list failed for {kind}: {exc}")
            raise StoreUnavailableError() from exc

    def safe_list(self, kind, **filters):
        """List that returns [] when the store is unavailable."""
        try:
            return self.list(kind, **filters)
        except StoreUnavailableError:
            logger.warning(f"Returning an empty {kind} list after a store failure")
            return []

    def get(self, kind, entity_id):
        model = self.model_for(kind)
        try:
            return model.objects.get(pk=entity_id)
        except model.DoesNotExist:
            raise NotFoundError(NOT_FOUND_MESSAGES[kind]) from None
        except DatabaseError as exc:
            logger.error(f"Store get failed for {kind} {entity_id}: {exc}")
            raise StoreUnavailableError() from exc

    def create(self, kind, attrs):
        model = self.model_for(kind)
        data = self._prepare(model, attrs)
        try:
            entity = model.objects.create(**data)
        except DatabaseError as exc:
            logger.error(f"Store create failed for {kind}: {exc}")
            raise StoreUnavailableError() from exc

        logger.info(f"Created {kind} {entity.pk}")
        return entity.pk

    def update(self, kind, entity_id, attrs, expected=None):
        """
        Overwrite only the given fields and restamp ``updated_at``.

        ``expected`` maps field names to the values the stored row must still
        hold; if another writer changed them first nothing is written and
        InvalidStatusTransitionError is raised.
        """
        model = self.model_for(kind)
        data = self._prepare(model, attrs)
        data['updated_at'] = timezone.now()
        try:
            updated = model.objects.filter(pk=entity_id, **(expected or {})).update(**data)
            stale = not updated and bool(expected) and model.objects.filter(pk=entity_id).exists()
        except DatabaseError as exc:
            logger.error(f"Store update failed for {kind} {entity_id}: {exc}")
            raise StoreUnavailableError() from exc

        if stale:
            logger.warning(f"Stale update of {kind} {entity_id} rejected, expected {expected}")
            raise InvalidStatusTransitionError('El registro fue modificado por otra operación')
        if not updated:
            raise NotFoundError(NOT_FOUND_MESSAGES[kind])
        logger.info(f"Updated {kind} {entity_id}: {', '.join(sorted(attrs))}")

    def delete(self, kind, entity_id):
        model = self.model_for(kind)
        try:
            deleted, _ = model.objects.filter(pk=entity_id).delete()
        except DatabaseError as exc:
            logger.error(f"Store delete failed for {kind} {entity_id}: {exc}")
            raise StoreUnavailableError() from exc

        if deleted:
            logger.info(f"Deleted {kind} {entity_id}")
        else:
            logger.info(f"Delete of missing {kind} {entity_id} ignored")


entity_store = EntityStore()
