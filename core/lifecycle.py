"""
Canonical project and application statuses and the edges between them.

This module is the only place status strings are defined for the lifecycle
code. It has no Django dependency so it can be used from anywhere.
"""
from core.exceptions import InvalidTransition


class ProjectStatus:
    OPEN = 'open'
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    WORK_SUBMITTED = 'work_submitted'
    WORK_REVISION_REQUESTED = 'work_revision_requested'
    WORK_APPROVED = 'work_approved'
    COMPLETED = 'completed'
    ARCHIVED = 'archived'
    CANCELLED = 'cancelled'
    DISPUTED = 'disputed'

    ALL = (
        OPEN, ASSIGNED, IN_PROGRESS, WORK_SUBMITTED, WORK_REVISION_REQUESTED,
        WORK_APPROVED, COMPLETED, ARCHIVED, CANCELLED, DISPUTED,
    )


class ApplicationStatus:
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

    ALL = (PENDING, ACCEPTED, REJECTED)


class WorkStatus:
    PENDING_REVIEW = 'pending_review'
    APPROVED = 'approved'
    REVISION_REQUESTED = 'revision_requested'


TERMINAL_PROJECT_STATUSES = frozenset({ProjectStatus.ARCHIVED, ProjectStatus.CANCELLED})

# Statuses in which a project must have a professional assigned
ASSIGNED_PROJECT_STATUSES = frozenset({
    ProjectStatus.ASSIGNED,
    ProjectStatus.IN_PROGRESS,
    ProjectStatus.WORK_SUBMITTED,
    ProjectStatus.WORK_REVISION_REQUESTED,
    ProjectStatus.WORK_APPROVED,
    ProjectStatus.COMPLETED,
    ProjectStatus.ARCHIVED,
})

# Statuses in which the mutual review can be submitted
REVIEWABLE_PROJECT_STATUSES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED})

_ESCAPE = frozenset({ProjectStatus.CANCELLED, ProjectStatus.DISPUTED})

PROJECT_TRANSITIONS = {
    ProjectStatus.OPEN: frozenset({ProjectStatus.ASSIGNED}) | _ESCAPE,
    ProjectStatus.ASSIGNED: frozenset({ProjectStatus.IN_PROGRESS}) | _ESCAPE,
    ProjectStatus.IN_PROGRESS: frozenset({ProjectStatus.WORK_SUBMITTED}) | _ESCAPE,
    ProjectStatus.WORK_SUBMITTED: frozenset({
        ProjectStatus.WORK_REVISION_REQUESTED,
        ProjectStatus.WORK_APPROVED,
    }) | _ESCAPE,
    ProjectStatus.WORK_REVISION_REQUESTED: frozenset({
        ProjectStatus.IN_PROGRESS,
        ProjectStatus.WORK_SUBMITTED,
    }) | _ESCAPE,
    ProjectStatus.WORK_APPROVED: frozenset({ProjectStatus.COMPLETED}) | _ESCAPE,
    ProjectStatus.COMPLETED: frozenset({ProjectStatus.ARCHIVED}) | _ESCAPE,
    # A dispute is settled outside the core; it can only be abandoned here.
    ProjectStatus.DISPUTED: frozenset({ProjectStatus.CANCELLED}),
    ProjectStatus.ARCHIVED: frozenset(),
    ProjectStatus.CANCELLED: frozenset(),
}

APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}),
    ApplicationStatus.ACCEPTED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


def normalize_status(value):
    """Return the canonical spelling of a status value (or None)."""
    if value is None:
        return None
    return str(value).strip().lower()


def is_terminal(status):
    return normalize_status(status) in TERMINAL_PROJECT_STATUSES


def requires_assignee(status):
    return normalize_status(status) in ASSIGNED_PROJECT_STATUSES


def can_transition_project(current, target):
    current, target = normalize_status(current), normalize_status(target)
    return target in PROJECT_TRANSITIONS.get(current, frozenset())


def can_transition_application(current, target):
    current, target = normalize_status(current), normalize_status(target)
    return target in APPLICATION_TRANSITIONS.get(current, frozenset())


def ensure_project_transition(current, target):
    """Raise InvalidTransition unless ``current -> target`` is an edge."""
    if not can_transition_project(current, target):
        raise InvalidTransition(current=normalize_status(current), target=normalize_status(target))
    return normalize_status(target)


def ensure_application_transition(current, target):
    if not can_transition_application(current, target):
        raise InvalidTransition(current=normalize_status(current), target=normalize_status(target))
    return normalize_status(target)
