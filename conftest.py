"""
WorkBridge test configuration - pytest fixtures and factories

This module provides:
- factory_boy factories for users, profiles and lifecycle models
- a recording notifier that replaces email/SMS delivery
- a store wrapper that records calls and can fail a chosen one

RUNNING TESTS:
# Run all tests
pytest -v

# Run by module
pytest apps/projects/tests/test_decisions.py -v
"""

import uuid
from decimal import Decimal

import pytest
import factory
from factory.django import DjangoModelFactory
from django.core.cache import cache
from rest_framework.test import APIClient

from core.exceptions import StoreUnavailable
from core.lifecycle import requires_assignee
from apps.projects.store import DjangoStore


# ============================================================================
# USER FACTORIES
# ============================================================================

class UserFactory(DjangoModelFactory):
    class Meta:
        model = 'users.User'
        django_get_or_create = ('username',)

    username = factory.LazyAttribute(lambda o: f"user_{uuid.uuid4().hex[:8]}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.django.Password('testpass123')
    is_active = True


class ClientProfileFactory(DjangoModelFactory):
    class Meta:
        model = 'users.Client'

    user = factory.SubFactory(UserFactory)
    company_name = factory.Faker('company')
    location = 'Remote'


class ProfessionalProfileFactory(DjangoModelFactory):
    class Meta:
        model = 'users.Professional'

    user = factory.SubFactory(UserFactory)
    skills = 'python, django'
    hourly_rate = Decimal('45.00')
    location = 'Remote'


def make_client():
    return ClientProfileFactory().user


def make_professional():
    return ProfessionalProfileFactory().user


# ============================================================================
# LIFECYCLE FACTORIES
# ============================================================================

class ProjectFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.Project'

    client = factory.LazyFunction(make_client)
    title = factory.Sequence(lambda n: f"Project {n}")
    description = factory.Faker('text', max_nb_chars=200)
    budget = Decimal('500.00')
    status = 'open'


class ApplicationFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.Application'

    project = factory.SubFactory(ProjectFactory)
    professional = factory.LazyFunction(make_professional)
    status = 'pending'
    proposal = factory.Faker('sentence')
    bid_amount = Decimal('450.00')


class PaymentFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.Payment'

    project = factory.SubFactory(ProjectFactory)
    client = factory.LazyAttribute(lambda o: o.project.client)
    professional = factory.LazyAttribute(lambda o: o.project.assigned_to)
    amount = Decimal('500.00')
    status = 'completed'


class ReviewFactory(DjangoModelFactory):
    class Meta:
        model = 'projects.Review'

    project = factory.SubFactory(ProjectFactory)
    client = factory.LazyAttribute(lambda o: o.project.client)
    professional = factory.LazyAttribute(lambda o: o.project.assigned_to)
    reviewer_role = 'client'
    rating = 5
    comment = 'Great work'


def assigned_project(status='assigned', **kwargs):
    """A project in ``status`` with an accepted application from its assignee."""
    professional = kwargs.pop('professional', None) or make_professional()
    project = ProjectFactory(status=status, assigned_to=professional, **kwargs)
    application = ApplicationFactory(project=project, professional=professional, status='accepted')
    return project, application


def assignment_is_consistent(project):
    """Open projects have no assignee; statuses past acceptance must have one."""
    if project.status == 'open':
        return project.assigned_to_id is None
    if requires_assignee(project.status):
        return project.assigned_to_id is not None
    return True


# ============================================================================
# TEST DOUBLES
# ============================================================================

class RecordingNotifier:
    """Stands in for apps.notifications.services.notify."""

    def __init__(self):
        self.sent = []

    def __call__(self, user_id, title, message, kind='info'):
        self.sent.append({'user_id': str(user_id), 'title': title, 'message': message, 'kind': kind})

    def to(self, user_id):
        return [n for n in self.sent if n['user_id'] == str(user_id)]


class RecordingStore:
    """Delegates to DjangoStore, recording every call.

    ``fail_on=('update', 'applications', 1)`` raises StoreUnavailable on the
    first update of the applications collection, before it reaches the
    database.
    """

    def __init__(self, inner=None, fail_on=None):
        self.inner = inner or DjangoStore()
        self.fail_on = fail_on
        self.calls = []
        self._matched = 0

    def _check(self, operation, collection, where):
        self.calls.append((operation, collection, where))
        if not self.fail_on:
            return
        op, coll, nth = self.fail_on
        if (op, coll) == (operation, collection):
            self._matched += 1
            if self._matched == nth:
                raise StoreUnavailable()

    def calls_to(self, operation, collection=None):
        return [c for c in self.calls if c[0] == operation and (collection is None or c[1] == collection)]

    def select(self, collection, where=None, joins=None, order_by=None):
        self._check('select', collection, where)
        return self.inner.select(collection, where, joins=joins, order_by=order_by)

    def insert(self, collection, rows):
        self._check('insert', collection, None)
        return self.inner.insert(collection, rows)

    def update(self, collection, patch, where):
        self._check('update', collection, where)
        return self.inner.update(collection, patch, where)

    def delete(self, collection, where):
        self._check('delete', collection, where)
        return self.inner.delete(collection, where)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def client_user(db):
    return make_client()


@pytest.fixture
def other_client_user(db):
    return make_client()


@pytest.fixture
def professional_user(db):
    return make_professional()


@pytest.fixture
def other_professional_user(db):
    return make_professional()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_api(api_client, client_user):
    api_client.force_authenticate(user=client_user)
    return api_client


@pytest.fixture
def professional_api(professional_user):
    api_client = APIClient()
    api_client.force_authenticate(user=professional_user)
    return api_client
