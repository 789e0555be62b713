"""
Accepting and rejecting applications.

Accepting an application touches three things that the store cannot update
atomically: the project, the competing applications and the accepted
application itself. They are written in that order. Assigning the project
comes first so that a run interrupted after it still leaves the project with
the right professional; ``reconcile`` (or simply calling ``decide`` again)
finishes the remaining steps, which are plain transitions to a fixed status
and therefore safe to repeat.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from core.exceptions import (
    DuplicateApplication, InvalidInput, InvalidTransition, NotFound, UniqueViolation,
)
from core.lifecycle import (
    ApplicationStatus, ProjectStatus, ensure_application_transition, requires_assignee,
)
from apps.notifications.services import notify
from .context import in_flight
from .dashboard import schedule_refresh
from .store import DjangoStore, Where
from .transitions import fetch_project, record_update, transition_project

logger = logging.getLogger(__name__)

ACCEPT = 'accept'
REJECT = 'reject'
OUTCOMES = (ACCEPT, REJECT)


@dataclass(frozen=True)
class Decision:
    application: dict
    project: dict
    outcome: str
    rejected: tuple = ()

    @property
    def rejected_count(self):
        return len(self.rejected)


class ApplicationDecisionCoordinator:
    def __init__(self, store=None, notifier=None):
        self.store = store or DjangoStore()
        self.notifier = notifier or notify

    # -- decide -------------------------------------------------------------

    def decide(self, application_id, outcome, actor_client_id, context=None):
        """Accept or reject a pending application on one of the actor's projects."""
        if outcome not in OUTCOMES:
            raise InvalidInput(f"Unknown outcome '{outcome}', expected one of {OUTCOMES}")

        with in_flight(context):
            if context is not None:
                context.outcome = outcome
            application = self._owned_application(application_id, actor_client_id)
            project = application.pop('project')

            if outcome == REJECT:
                ensure_application_transition(application['status'], ApplicationStatus.REJECTED)
                self._ensure_not_mid_accept(application, project)
                application = self._mark(application, ApplicationStatus.REJECTED)
                decision = Decision(application=application, project=project, outcome=REJECT)
            else:
                ensure_application_transition(application['status'], ApplicationStatus.ACCEPTED)
                project = self._assign_project(project, application, actor_client_id)
                rejected = self._reject_siblings(project['id'], application['id'])
                application = self._mark(application, ApplicationStatus.ACCEPTED)
                decision = Decision(application=application, project=project, outcome=ACCEPT, rejected=rejected)

        self._announce(decision, actor_client_id)
        return decision

    def _owned_application(self, application_id, actor_client_id):
        # Ownership is part of the predicate: an application on someone
        # else's project is simply not visible.
        rows = self.store.select(
            'applications',
            Where(id=application_id, project__client_id=actor_client_id),
            joins=['project'],
        )
        if not rows:
            raise NotFound(f"Application {application_id} not found or not authorized")
        return rows[0]

    def _ensure_not_mid_accept(self, application, project, target=ApplicationStatus.REJECTED):
        # The project already points at this applicant: an accept stopped
        # after step one and only reconcile may settle the application now.
        if (
            application['status'] == ApplicationStatus.PENDING
            and project['assigned_to_id'] == application['professional_id']
            and requires_assignee(project['status'])
        ):
            raise InvalidTransition(
                "The project is already assigned to this applicant; reconcile the project to finish the acceptance",
                current=project['status'],
                target=target,
            )

    def _assign_project(self, project, application, actor_client_id):
        professional_id = application['professional_id']
        if project['status'] == ProjectStatus.ASSIGNED and project['assigned_to_id'] == professional_id:
            logger.info(f"Project {project['id']} already assigned to {professional_id}, resuming decision")
            return project
        return transition_project(
            self.store,
            project,
            ProjectStatus.ASSIGNED,
            scope={'client_id': actor_client_id},
            patch={'assigned_to_id': professional_id},
        )

    def _reject_siblings(self, project_id, accepted_id):
        siblings = Where(project_id=project_id, status=ApplicationStatus.PENDING).neq('id', accepted_id)
        pending = self.store.select('applications', siblings)
        if not pending:
            return ()
        affected = self.store.update('applications', {'status': ApplicationStatus.REJECTED}, siblings)
        logger.info(f"Rejected {affected} competing application(s) on project {project_id}")
        return tuple(row['professional_id'] for row in pending)

    def _mark(self, application, target):
        affected = self.store.update(
            'applications',
            {'status': target},
            Where(id=application['id'], status=ApplicationStatus.PENDING),
        )
        if not affected:
            rows = self.store.select('applications', Where(id=application['id']))
            current = rows[0]['status'] if rows else None
            if current != target:
                raise InvalidTransition(current=current, target=target)
        logger.info(f"Application {application['id']} marked {target}")
        updated = dict(application)
        updated['status'] = target
        return updated

    def _announce(self, decision, actor_client_id):
        project = decision.project
        professional_id = decision.application['professional_id']
        title = project.get('title', '')

        if decision.outcome == ACCEPT:
            self.notifier(
                professional_id,
                f"Application Accepted for {title}",
                f"Your application for '{title}' has been accepted. You have been assigned to the project.",
                'success',
            )
            for rejected_id in decision.rejected:
                self.notifier(
                    rejected_id,
                    f"Application Not Selected for {title}",
                    f"The client has chosen another professional for '{title}'.",
                    'info',
                )
            record_update(
                self.store, project['id'], actor_client_id, 'status_update',
                'Application accepted',
                {'status_change': ProjectStatus.ASSIGNED, 'application_id': decision.application['id']},
            )
        else:
            self.notifier(
                professional_id,
                f"Application Rejected for {title}",
                f"Your application for '{title}' has been rejected by the client.",
                'info',
            )

        schedule_refresh(actor_client_id, professional_id, *decision.rejected)

    # -- reconcile ----------------------------------------------------------

    def reconcile(self, project_id, actor_client_id):
        """Finish an accept decision that stopped after the project was assigned.

        Returns None when the project has no assignee, otherwise the resulting
        Decision. Running it on a consistent project changes nothing.
        """
        project = fetch_project(self.store, project_id, client_id=actor_client_id)
        professional_id = project['assigned_to_id']
        if not professional_id or not requires_assignee(project['status']):
            return None

        rows = self.store.select('applications', Where(project_id=project['id'], professional_id=professional_id))
        if not rows:
            logger.error(f"Project {project_id} is assigned to {professional_id} who never applied")
            raise NotFound(f"No application from the assigned professional on project {project_id}")
        application = rows[0]
        if application['status'] == ApplicationStatus.REJECTED:
            raise InvalidTransition(
                "The assigned professional's application was rejected",
                current=ApplicationStatus.REJECTED,
                target=ApplicationStatus.ACCEPTED,
            )

        rejected = self._reject_siblings(project['id'], application['id'])
        resumed = application['status'] == ApplicationStatus.PENDING
        if resumed:
            application = self._mark(application, ApplicationStatus.ACCEPTED)

        decision = Decision(application=application, project=project, outcome=ACCEPT, rejected=rejected)
        if resumed or rejected:
            logger.info(f"Reconciled project {project_id}: accepted={resumed}, rejected={len(rejected)}")
            self._announce(decision, actor_client_id)
        return decision

    # -- professional side --------------------------------------------------

    def apply(self, project_id, professional_id, proposal='', bid_amount=None):
        """Create a pending application against an open project."""
        project = fetch_project(self.store, project_id)
        if project['status'] != ProjectStatus.OPEN:
            raise InvalidTransition(
                "Cannot apply to a project that is not open",
                current=project['status'],
                target=ApplicationStatus.PENDING,
            )
        if project['client_id'] == str(professional_id):
            raise InvalidInput("You cannot apply to your own project")

        existing = self.store.select('applications', Where(project_id=project['id'], professional_id=professional_id))
        if existing:
            raise DuplicateApplication()
        try:
            application = self.store.insert('applications', [{
                'project_id': project['id'],
                'professional_id': professional_id,
                'proposal': proposal or '',
                'bid_amount': bid_amount,
            }])[0]
        except UniqueViolation:
            raise DuplicateApplication()

        logger.info(f"Professional {professional_id} applied to project {project['id']}")
        self.notifier(
            project['client_id'],
            f"New Application for {project['title']}",
            f"A professional has applied to your project '{project['title']}'. Review it on your dashboard.",
            'info',
        )
        schedule_refresh(project['client_id'], professional_id)
        return application

    def withdraw(self, application_id, professional_id, project_id=None):
        """Delete the professional's own pending application (on ``project_id`` when given)."""
        scope = {'id': application_id, 'professional_id': professional_id}
        if project_id is not None:
            scope['project_id'] = project_id
        rows = self.store.select('applications', Where(**scope), joins=['project'])
        if not rows:
            raise NotFound(f"Application {application_id} not found or not authorized")
        application = rows[0]
        project = application.pop('project')
        if application['status'] != ApplicationStatus.PENDING:
            raise InvalidTransition(
                "Only pending applications can be withdrawn", current=application['status'], target='withdrawn',
            )
        self._ensure_not_mid_accept(application, project, target='withdrawn')

        deleted = self.store.delete('applications', Where(status=ApplicationStatus.PENDING, **scope))
        if not deleted:
            raise InvalidTransition(
                "The application was decided before it could be withdrawn", current=None, target='withdrawn',
            )

        logger.info(f"Professional {professional_id} withdrew application {application_id}")
        self.notifier(
            project['client_id'],
            f"Application Withdrawn: {project['title']}",
            f"A professional has withdrawn their application for '{project['title']}'.",
            'info',
        )
        schedule_refresh(project['client_id'], professional_id)
        return application
