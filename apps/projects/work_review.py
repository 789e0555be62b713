"""
Delivery phase: submitting work, asking for a revision, approving it, and
the out-of-band exits (cancellation and disputes) and editing an open brief.
"""
import logging

from django.utils import timezone

from core.exceptions import InvalidInput, InvalidTransition, NotFound
from core.lifecycle import ApplicationStatus, ProjectStatus, WorkStatus
from apps.notifications.services import notify
from .context import in_flight
from .dashboard import schedule_refresh
from .store import DjangoStore, Where
from .transitions import fetch_project, record_update, transition_project

logger = logging.getLogger(__name__)


class WorkReviewCoordinator:
    def __init__(self, store=None, notifier=None):
        self.store = store or DjangoStore()
        self.notifier = notifier or notify

    def start_work(self, project_id, actor_id):
        """The assigned professional starts (or resumes after a revision request) the work."""
        scope = {'assigned_to_id': actor_id}
        project = fetch_project(self.store, project_id, **scope)
        previous = project['status']
        project = transition_project(self.store, project, ProjectStatus.IN_PROGRESS, scope)

        record_update(
            self.store, project['id'], actor_id, 'status_update', 'Work started',
            {'status_change': ProjectStatus.IN_PROGRESS, 'previous': previous},
        )
        self.notifier(
            project['client_id'],
            f"Work Started: {project['title']}",
            f"The professional has started working on '{project['title']}'.",
            'info',
        )
        schedule_refresh(project['client_id'], actor_id)
        return project

    def submit_work(self, project_id, artifact_ref, actor_id=None, summary='', context=None):
        """Hand in the work (first delivery or resubmission after a revision request)."""
        if not artifact_ref or not str(artifact_ref).strip():
            raise InvalidInput("A reference to the submitted work is required")

        with in_flight(context):
            scope = {'assigned_to_id': actor_id} if actor_id else {}
            project = fetch_project(self.store, project_id, **scope)
            project = transition_project(
                self.store,
                project,
                ProjectStatus.WORK_SUBMITTED,
                scope,
                patch={
                    'work_status': WorkStatus.PENDING_REVIEW,
                    'artifact_ref': str(artifact_ref).strip(),
                    'revision_notes': '',
                    'work_submitted_at': timezone.now(),
                },
            )

        record_update(
            self.store, project['id'], actor_id or project['assigned_to_id'], 'completion_note',
            summary or 'Work submitted for review',
            {'status_change': ProjectStatus.WORK_SUBMITTED, 'artifact_ref': project['artifact_ref']},
        )
        self.notifier(
            project['client_id'],
            f"Work Submitted: {project['title']}",
            f"Work for '{project['title']}' has been submitted for your review.",
            'info',
        )
        schedule_refresh(project['client_id'], project['assigned_to_id'])
        return project

    def request_revision(self, project_id, notes, actor_id=None, context=None):
        """Send submitted work back to the professional with notes."""
        notes = (notes or '').strip()
        if not notes:
            raise InvalidInput("Revision notes are required")

        with in_flight(context):
            scope = {'client_id': actor_id} if actor_id else {}
            project = fetch_project(self.store, project_id, **scope)
            project = transition_project(
                self.store,
                project,
                ProjectStatus.WORK_REVISION_REQUESTED,
                scope,
                patch={
                    'work_status': WorkStatus.REVISION_REQUESTED,
                    'revision_notes': notes,
                    'work_reviewed_at': timezone.now(),
                },
            )

        record_update(
            self.store, project['id'], actor_id or project['client_id'], 'revision_requested', notes,
            {'status_change': ProjectStatus.WORK_REVISION_REQUESTED},
        )
        self.notifier(
            project['assigned_to_id'],
            f"Revision Requested: {project['title']}",
            f"The client asked for changes on '{project['title']}': {notes}",
            'warning',
        )
        schedule_refresh(project['client_id'], project['assigned_to_id'])
        return project

    def approve_work(self, project_id, actor_id=None, context=None):
        """Approve submitted work, which also closes the delivery phase.

        The two transitions are separate writes; if the second one fails the
        project stays ``work_approved`` and calling this again completes it.
        """
        with in_flight(context):
            scope = {'client_id': actor_id} if actor_id else {}
            project = fetch_project(self.store, project_id, **scope)
            if project['status'] != ProjectStatus.WORK_APPROVED:
                project = transition_project(
                    self.store,
                    project,
                    ProjectStatus.WORK_APPROVED,
                    scope,
                    patch={'work_status': WorkStatus.APPROVED, 'work_reviewed_at': timezone.now()},
                )
            project = transition_project(self.store, project, ProjectStatus.COMPLETED, scope)

        record_update(
            self.store, project['id'], actor_id or project['client_id'], 'status_update', 'Work approved',
            {'status_change': ProjectStatus.COMPLETED},
        )
        self.notifier(
            project['assigned_to_id'],
            f"Work Approved: {project['title']}",
            f"The client approved your work on '{project['title']}'. The project is now completed.",
            'success',
        )
        schedule_refresh(project['client_id'], project['assigned_to_id'])
        return project


class ProjectLifecycleCoordinator:
    """Cancellation and disputes, reachable from any non-terminal status.

    Also edits the brief of a project that is still open.
    """
    EDITABLE_FIELDS = ('title', 'description', 'budget')

    def __init__(self, store=None, notifier=None):
        self.store = store or DjangoStore()
        self.notifier = notifier or notify

    def cancel_project(self, project_id, actor_id, reason=''):
        """Cancel the project, then reject whatever applications are still pending.

        Calling it again on a project this client already cancelled only
        finishes the rejections left behind by an interrupted run.
        """
        scope = {'client_id': actor_id}
        project = fetch_project(self.store, project_id, **scope)
        resumed = project['status'] == ProjectStatus.CANCELLED
        if resumed:
            logger.info(f"Project {project['id']} already cancelled, resuming application cleanup")
        else:
            project = transition_project(self.store, project, ProjectStatus.CANCELLED, scope)

        # Nobody can be picked on a cancelled project any more
        pending = Where(project_id=project['id'], status=ApplicationStatus.PENDING)
        applicants = [row['professional_id'] for row in self.store.select('applications', pending)]
        if applicants:
            self.store.update('applications', {'status': ApplicationStatus.REJECTED}, pending)
            logger.info(f"Rejected {len(applicants)} pending application(s) on cancelled project {project['id']}")
        elif resumed:
            return project

        record_update(
            self.store, project['id'], actor_id, 'cancelled', reason or 'Project cancelled',
            {'status_change': ProjectStatus.CANCELLED, 'cancelled_by': actor_id},
        )
        for user_id in [project['assigned_to_id'], *applicants]:
            if user_id:
                self.notifier(
                    user_id,
                    f"Project Cancelled: {project['title']}",
                    f"The project '{project['title']}' has been cancelled by the client.",
                    'warning',
                )
        schedule_refresh(actor_id, project['assigned_to_id'], *applicants)
        return project

    def open_dispute(self, project_id, actor_id, reason):
        reason = (reason or '').strip()
        if not reason:
            raise InvalidInput("A reason is required to open a dispute")

        project = fetch_project(self.store, project_id)
        if str(actor_id) not in (project['client_id'], project['assigned_to_id']):
            raise NotFound(f"Project {project_id} not found or not authorized")
        project = transition_project(self.store, project, ProjectStatus.DISPUTED)

        record_update(
            self.store, project['id'], actor_id, 'dispute_opened', reason,
            {'status_change': ProjectStatus.DISPUTED, 'opened_by': str(actor_id)},
        )
        counterpart = project['assigned_to_id'] if str(actor_id) == project['client_id'] else project['client_id']
        if counterpart:
            self.notifier(
                counterpart,
                f"Dispute Opened: {project['title']}",
                f"A dispute was opened on '{project['title']}': {reason}",
                'error',
            )
        schedule_refresh(project['client_id'], project['assigned_to_id'])
        return project

    def update_project(self, project_id, actor_id, changes):
        """Edit title, description or budget while the project is still open."""
        patch = {name: value for name, value in changes.items() if name in self.EDITABLE_FIELDS}
        if not patch:
            raise InvalidInput(f"Nothing to update; editable fields are {', '.join(self.EDITABLE_FIELDS)}")
        if 'title' in patch:
            patch['title'] = (patch['title'] or '').strip()
            if not patch['title']:
                raise InvalidInput("Title cannot be empty")
        if patch.get('budget') is not None and patch['budget'] <= 0:
            raise InvalidInput("Budget must be positive")

        scope = {'client_id': actor_id}
        project = fetch_project(self.store, project_id, **scope)
        # Applicants bid on the brief as it was; once assigned it is frozen
        where = Where(id=project['id'], status=ProjectStatus.OPEN, **scope)
        if project['status'] != ProjectStatus.OPEN or not self.store.update('projects', patch, where):
            current = fetch_project(self.store, project['id'], **scope)
            raise InvalidTransition(
                "Only open projects can be edited", current=current['status'], target=ProjectStatus.OPEN,
            )

        logger.info(f"Project {project['id']} edited: {', '.join(sorted(patch))}")
        record_update(
            self.store, project['id'], actor_id, 'status_update', 'Project details edited',
            {'fields': sorted(patch)},
        )
        applicants = [
            row['professional_id']
            for row in self.store.select('applications', Where(project_id=project['id']))
        ]
        schedule_refresh(actor_id, *applicants)
        updated = dict(project)
        updated.update(patch)
        return updated
