"""
Shared helpers for moving a project row through the status table.

Every status write is conditional on the status the caller read, so two
sessions racing on the same project cannot both win: the loser's update
matches no row and is reported as InvalidTransition after a fresh read.
"""
import logging

from core.exceptions import InvalidTransition, NotFound, StoreUnavailable
from core.lifecycle import ensure_project_transition
from .store import Where

logger = logging.getLogger(__name__)


def fetch_project(store, project_id, **scope):
    """Read one project, optionally scoped (``client_id=``, ``assigned_to_id=``)."""
    rows = store.select('projects', Where(id=project_id, **scope))
    if not rows:
        raise NotFound(f"Project {project_id} not found or not authorized")
    return rows[0]


def transition_project(store, project, target, scope=None, patch=None):
    """Move ``project`` (a row) to ``target`` and return the updated row.

    The edge is validated before anything is written. ``scope`` adds
    ownership columns to the update predicate.
    """
    target = ensure_project_transition(project['status'], target)
    changes = {'status': target}
    changes.update(patch or {})
    where = Where(id=project['id'], status=project['status'], **(scope or {}))

    affected = store.update('projects', changes, where)
    if not affected:
        current = fetch_project(store, project['id'], **(scope or {}))
        logger.warning(
            f"Project {project['id']} moved to {current['status']} before {project['status']} -> {target} applied"
        )
        raise InvalidTransition(current=current['status'], target=target)

    logger.info(f"Project {project['id']}: {project['status']} -> {target}")
    updated = dict(project)
    updated.update(changes)
    return updated


def record_update(store, project_id, actor_id, update_type, message='', metadata=None):
    """Append a timeline entry. The status change already committed, so a
    failure here is logged and not raised."""
    try:
        store.insert('project_updates', [{
            'project_id': project_id,
            'created_by_id': actor_id,
            'update_type': update_type,
            'message': message,
            'metadata': metadata or {},
        }])
    except StoreUnavailable as e:
        logger.error(f"Failed to record {update_type} for project {project_id}: {str(e)}")
