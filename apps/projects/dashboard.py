"""
Read side: the projects / applications / payments / reviews bundle shown on
a client's or professional's dashboard.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.core.cache import cache

from core.exceptions import InvalidInput
from .store import DjangoStore, Where

logger = logging.getLogger(__name__)

ROLES = ('client', 'professional')
CACHE_PREFIX = 'dashboard-snapshot'

PROFESSIONAL_COLUMNS = ('id', 'username', 'first_name', 'last_name')
PROJECT_COLUMNS = ('id', 'title', 'status', 'budget', 'client_id', 'assigned_to_id')


@dataclass(frozen=True)
class Snapshot:
    projects: list = field(default_factory=list)
    applications: list = field(default_factory=list)
    payments: list = field(default_factory=list)
    reviews: list = field(default_factory=list)

    def as_dict(self):
        return {
            'projects': self.projects,
            'applications': self.applications,
            'payments': self.payments,
            'reviews': self.reviews,
        }


def snapshot_cache_key(actor_id, role):
    return f"{CACHE_PREFIX}:{role}:{actor_id}"


def schedule_refresh(*actor_ids):
    """Drop the cached snapshots of these actors so the next load rebuilds them."""
    keys = [snapshot_cache_key(actor_id, role) for actor_id in actor_ids if actor_id for role in ROLES]
    if keys:
        cache.delete_many(keys)
        logger.debug(f"Dropped dashboard snapshots: {keys}")


class DashboardAggregator:
    def __init__(self, store=None, ttl=None):
        self.store = store or DjangoStore()
        self.ttl = settings.WORKBRIDGE_SNAPSHOT_TTL if ttl is None else ttl

    def load_snapshot(self, actor_id, role, use_cache=True):
        """Return the actor's Snapshot; any store failure propagates and nothing is cached."""
        if role not in ROLES:
            raise InvalidInput(f"Unknown dashboard role: {role}")
        actor_id = str(actor_id)
        key = snapshot_cache_key(actor_id, role)

        if use_cache:
            cached = cache.get(key)
            if cached is not None:
                return cached

        snapshot = self._compose(actor_id, role)
        if use_cache and self.ttl:
            cache.set(key, snapshot, self.ttl)
        return snapshot

    def _projects_for(self, actor_id, role):
        if role == 'client':
            return self.store.select('projects', Where(client_id=actor_id), order_by=['-created_at'])

        projects = self.store.select('projects', Where(assigned_to_id=actor_id))
        seen = {row['id'] for row in projects}
        applied = self.store.select('applications', Where(professional_id=actor_id))
        missing = sorted({row['project_id'] for row in applied} - seen)
        if missing:
            projects += self.store.select('projects', Where().in_('id', missing))
        projects.sort(key=lambda row: row['created_at'], reverse=True)
        return projects

    def _compose(self, actor_id, role):
        projects = self._projects_for(actor_id, role)
        project_ids = [row['id'] for row in projects]

        # An empty membership filter is not guaranteed to match nothing on
        # every backend, so never send one.
        if not project_ids:
            return Snapshot(projects=projects)

        application_filter = Where().in_('project_id', project_ids)
        payment_filter = Where().in_('project_id', project_ids)
        if role == 'professional':
            application_filter.eq('professional_id', actor_id)
            payment_filter.eq('professional_id', actor_id)

        applications = self.store.select(
            'applications',
            application_filter,
            joins={'professional': PROFESSIONAL_COLUMNS, 'project': PROJECT_COLUMNS},
            order_by=['-created_at'],
        )
        payments = self.store.select('payments', payment_filter, order_by=['-created_at'])
        reviews = self.store.select('reviews', Where().in_('project_id', project_ids), order_by=['-created_at'])

        logger.info(
            f"Loaded {role} dashboard for {actor_id}: {len(projects)} projects, "
            f"{len(applications)} applications, {len(payments)} payments, {len(reviews)} reviews"
        )
        return Snapshot(projects=projects, applications=applications, payments=payments, reviews=reviews)
