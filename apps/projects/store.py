"""
Row-level access to the lifecycle collections.

Coordinators only talk to the data through the four primitives below
(select, insert, update, delete) on named collections, and only ever get
plain dict rows back. Each call is its own unit of work: nothing here lets a
caller group several calls into one transaction, so the coordinators order
their writes instead.
"""
import logging
import uuid
from contextlib import contextmanager

from django.apps import apps
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from core.exceptions import InvalidInput, StoreUnavailable, UniqueViolation

logger = logging.getLogger(__name__)

COLLECTIONS = {
    'projects': 'projects.Project',
    'applications': 'projects.Application',
    'reviews': 'projects.Review',
    'payments': 'projects.Payment',
    'project_updates': 'projects.ProjectUpdate',
}

# Never copied into joined rows
HIDDEN_FIELDS = frozenset({'password'})


class Where:
    """Equality / inequality / membership predicate for one collection.

    Field names may follow relations with ``__`` (``project__client_id``).

        Where(project_id=pid, status='pending').neq('id', app_id)
    """

    def __init__(self, **equals):
        self.equals = dict(equals)
        self.not_equals = {}
        self.members = {}

    def eq(self, field, value):
        self.equals[field] = value
        return self

    def neq(self, field, value):
        self.not_equals[field] = value
        return self

    def in_(self, field, values):
        self.members[field] = list(values)
        return self

    def is_empty(self):
        return not (self.equals or self.not_equals or self.members)

    def __repr__(self):
        parts = [f"{k}={v!r}" for k, v in self.equals.items()]
        parts += [f"{k}!={v!r}" for k, v in self.not_equals.items()]
        parts += [f"{k} in {v!r}" for k, v in self.members.items()]
        return f"Where({', '.join(parts)})"


def _clean(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def to_row(obj, fields=None):
    """Flatten a model instance into a dict keyed by column (attname)."""
    row = {}
    for field in obj._meta.concrete_fields:
        if field.name in HIDDEN_FIELDS:
            continue
        if fields is not None and field.attname not in fields and field.name not in fields:
            continue
        row[field.attname] = _clean(getattr(obj, field.attname))
    return row


class DjangoStore:
    """Store primitives backed by the Django ORM."""

    def __init__(self, using='default'):
        self.using = using

    def _model(self, collection):
        try:
            return apps.get_model(COLLECTIONS[collection])
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    def _filtered(self, model, where):
        queryset = model.objects.using(self.using).all()
        if where is None:
            return queryset
        try:
            if where.equals:
                queryset = queryset.filter(**where.equals)
            for field, value in where.not_equals.items():
                queryset = queryset.exclude(**{field: value})
            for field, values in where.members.items():
                queryset = queryset.filter(**{f"{field}__in": values})
        except ValidationError:
            # A malformed identifier cannot match any row
            logger.debug(f"Malformed predicate {where!r} on {model._meta.label}")
            return queryset.none()
        return queryset

    @contextmanager
    def _errors(self, operation, collection):
        try:
            yield
        except ValidationError as e:
            raise InvalidInput(f"Invalid value for {collection}: {'; '.join(e.messages)}") from e
        except IntegrityError as e:
            logger.warning(f"Store {operation} on {collection} rejected: {str(e)}")
            raise UniqueViolation(f"{operation} on {collection} conflicts with an existing row") from e
        except DatabaseError as e:
            logger.error(f"Store {operation} on {collection} failed: {str(e)}")
            raise StoreUnavailable() from e

    def select(self, collection, where=None, joins=None, order_by=None):
        """Return matching rows; ``joins`` nests related rows under their field name.

        ``joins`` is either a list of relation names or a dict mapping a
        relation name to the columns to keep from it.
        """
        model = self._model(collection)
        if isinstance(joins, dict):
            join_fields = joins
        else:
            join_fields = {name: None for name in (joins or [])}

        with self._errors('select', collection):
            queryset = self._filtered(model, where)
            if join_fields:
                queryset = queryset.select_related(*join_fields.keys())
            if order_by:
                queryset = queryset.order_by(*order_by)
            rows = []
            for obj in queryset:
                row = to_row(obj)
                for name, fields in join_fields.items():
                    related = getattr(obj, name)
                    row[name] = to_row(related, fields) if related is not None else None
                rows.append(row)
        return rows

    def insert(self, collection, rows):
        model = self._model(collection)
        with self._errors('insert', collection):
            with transaction.atomic(using=self.using):
                objs = [model(**row) for row in rows]
                for obj in objs:
                    obj.save(using=self.using, force_insert=True)
        return [to_row(obj) for obj in objs]

    def update(self, collection, patch, where):
        """Apply ``patch`` to every matching row and return how many matched."""
        if where is None or where.is_empty():
            raise ValueError(f"Refusing to update every row of {collection}")
        model = self._model(collection)
        patch = dict(patch)
        if 'updated_at' not in patch and any(f.name == 'updated_at' for f in model._meta.concrete_fields):
            patch['updated_at'] = timezone.now()
        with self._errors('update', collection):
            with transaction.atomic(using=self.using):
                return self._filtered(model, where).update(**patch)

    def delete(self, collection, where):
        if where is None or where.is_empty():
            raise ValueError(f"Refusing to delete every row of {collection}")
        model = self._model(collection)
        with self._errors('delete', collection):
            with transaction.atomic(using=self.using):
                deleted, per_model = self._filtered(model, where).delete()
        return per_model.get(model._meta.label, 0)
