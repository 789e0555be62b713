"""
End-of-project reviews between the client and the professional.

The professional a review is about is always resolved from the accepted
application, never from the project's assigned_to column, so a review can
only exist for someone the client actually accepted.
"""
import logging

from django.conf import settings

from core.exceptions import (
    DuplicateReview, InvalidInput, InvalidTransition, NoAssignedProfessional, NotFound, UniqueViolation,
)
from core.lifecycle import REVIEWABLE_PROJECT_STATUSES, ApplicationStatus, ProjectStatus
from apps.notifications.services import notify
from .context import in_flight
from .dashboard import schedule_refresh
from .store import DjangoStore, Where
from .transitions import fetch_project, transition_project

logger = logging.getLogger(__name__)

CLIENT = 'client'
PROFESSIONAL = 'professional'


def validate_rating(rating):
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidInput("Rating must be a whole number between 1 and 5")
    if not 1 <= rating <= 5:
        raise InvalidInput("Rating must be between 1 and 5")
    return rating


class MutualReviewCoordinator:
    def __init__(self, store=None, notifier=None, archive_on_first_review=None):
        self.store = store or DjangoStore()
        self.notifier = notifier or notify
        if archive_on_first_review is None:
            archive_on_first_review = settings.WORKBRIDGE_ARCHIVE_ON_FIRST_REVIEW
        self.archive_on_first_review = archive_on_first_review

    def submit_review(self, project_id, reviewer_id, rating, comment='', context=None):
        rating = validate_rating(rating)
        reviewer_id = str(reviewer_id)

        with in_flight(context):
            project = fetch_project(self.store, project_id)
            professional_id = self._accepted_professional(project)

            if reviewer_id == project['client_id']:
                role, reviewed_id = CLIENT, professional_id
            elif reviewer_id == professional_id:
                role, reviewed_id = PROFESSIONAL, project['client_id']
            else:
                raise NotFound(f"Project {project_id} not found or not authorized")

            if project['status'] not in REVIEWABLE_PROJECT_STATUSES:
                raise InvalidTransition(
                    "Reviews can only be submitted once the project is completed",
                    current=project['status'],
                    target=ProjectStatus.ARCHIVED,
                )

            # Existence check first; the unique constraint on (project,
            # reviewer_role) catches the race between this and the insert.
            if self.store.select('reviews', Where(project_id=project['id'], reviewer_role=role)):
                raise DuplicateReview()
            try:
                review = self.store.insert('reviews', [{
                    'project_id': project['id'],
                    'client_id': project['client_id'],
                    'professional_id': professional_id,
                    'reviewer_role': role,
                    'rating': rating,
                    'comment': comment or '',
                }])[0]
            except UniqueViolation:
                raise DuplicateReview()
            logger.info(f"{role} review stored for project {project['id']} ({rating}/5)")

            project = self._archive_if_due(project)

        self.notifier(
            reviewed_id,
            f"New Review for {project['title']}",
            f"You received a {rating}/5 review for '{project['title']}'.",
            'info',
        )
        schedule_refresh(project['client_id'], professional_id)
        return review

    def reconcile(self, project_id, actor_id):
        """Archive a completed project whose review landed but whose archival did not."""
        project = fetch_project(self.store, project_id)
        if str(actor_id) not in (project['client_id'], project['assigned_to_id']):
            raise NotFound(f"Project {project_id} not found or not authorized")
        if project['status'] != ProjectStatus.COMPLETED:
            return project
        if not self.store.select('reviews', Where(project_id=project['id'])):
            return project
        project = self._archive_if_due(project)
        schedule_refresh(project['client_id'], project['assigned_to_id'])
        return project

    def _accepted_professional(self, project):
        accepted = self.store.select(
            'applications', Where(project_id=project['id'], status=ApplicationStatus.ACCEPTED),
        )
        if not accepted:
            raise NoAssignedProfessional()
        return accepted[0]['professional_id']

    def _archive_if_due(self, project):
        if project['status'] != ProjectStatus.COMPLETED:
            return project
        if not self.archive_on_first_review:
            roles = {row['reviewer_role'] for row in self.store.select('reviews', Where(project_id=project['id']))}
            if roles != {CLIENT, PROFESSIONAL}:
                return project
        try:
            return transition_project(self.store, project, ProjectStatus.ARCHIVED)
        except InvalidTransition as e:
            # The other party's review archived it first
            if e.current != ProjectStatus.ARCHIVED:
                raise
            archived = dict(project)
            archived['status'] = ProjectStatus.ARCHIVED
            return archived
