import pytest

from conftest import ApplicationFactory, ProjectFactory, RecordingStore, ReviewFactory, assigned_project
from core.exceptions import (
    DuplicateReview, InvalidInput, InvalidTransition, NoAssignedProfessional, NotFound, StoreUnavailable,
)
from apps.projects.models import Project, Review
from apps.projects.reviews import MutualReviewCoordinator


@pytest.fixture
def completed_project(client_user, professional_user):
    project, _ = assigned_project(status='completed', client=client_user, professional=professional_user)
    return project


class SkipExistenceCheck(RecordingStore):
    """Pretends no review exists yet, as if a concurrent insert landed in between."""

    def select(self, collection, where=None, joins=None, order_by=None):
        if collection == 'reviews':
            return []
        return super().select(collection, where, joins=joins, order_by=order_by)


@pytest.mark.django_db
class TestSubmitReview:
    def test_client_review_archives_project(self, completed_project, client_user, professional_user, notifier):
        review = MutualReviewCoordinator(notifier=notifier, archive_on_first_review=True).submit_review(
            str(completed_project.id), str(client_user.id), 5, comment='Excellent',
        )
        assert review['reviewer_role'] == 'client'
        assert review['professional_id'] == str(professional_user.id)
        completed_project.refresh_from_db()
        assert completed_project.status == 'archived'
        assert [n['user_id'] for n in notifier.sent] == [str(professional_user.id)]

    def test_other_party_can_still_review_archived_project(self, completed_project, client_user, professional_user, notifier):
        coordinator = MutualReviewCoordinator(notifier=notifier, archive_on_first_review=True)
        coordinator.submit_review(str(completed_project.id), str(client_user.id), 4)
        review = coordinator.submit_review(str(completed_project.id), str(professional_user.id), 5)

        assert review['reviewer_role'] == 'professional'
        assert Review.objects.filter(project=completed_project).count() == 2
        assert Project.objects.get(pk=completed_project.pk).status == 'archived'

    def test_archive_waits_for_both_reviews_when_configured(self, completed_project, client_user, professional_user, notifier):
        coordinator = MutualReviewCoordinator(notifier=notifier, archive_on_first_review=False)
        coordinator.submit_review(str(completed_project.id), str(client_user.id), 4)
        assert Project.objects.get(pk=completed_project.pk).status == 'completed'

        coordinator.submit_review(str(completed_project.id), str(professional_user.id), 3)
        assert Project.objects.get(pk=completed_project.pk).status == 'archived'

    def test_default_policy_comes_from_settings(self, settings):
        settings.WORKBRIDGE_ARCHIVE_ON_FIRST_REVIEW = False
        assert MutualReviewCoordinator().archive_on_first_review is False

    def test_duplicate_review(self, completed_project, client_user, notifier):
        coordinator = MutualReviewCoordinator(notifier=notifier)
        coordinator.submit_review(str(completed_project.id), str(client_user.id), 5)
        with pytest.raises(DuplicateReview):
            coordinator.submit_review(str(completed_project.id), str(client_user.id), 1)
        assert Review.objects.filter(project=completed_project, reviewer_role='client').count() == 1

    def test_concurrent_duplicate_is_caught_by_the_constraint(self, completed_project, client_user, notifier):
        ReviewFactory(project=completed_project, reviewer_role='client')
        with pytest.raises(DuplicateReview):
            MutualReviewCoordinator(store=SkipExistenceCheck(), notifier=notifier).submit_review(
                str(completed_project.id), str(client_user.id), 2,
            )
        assert Review.objects.filter(project=completed_project).count() == 1

    def test_no_accepted_application(self, client_user, professional_user, notifier, store):
        project = ProjectFactory(client=client_user, status='completed', assigned_to=professional_user)
        ApplicationFactory(project=project, professional=professional_user, status='pending')

        with pytest.raises(NoAssignedProfessional):
            MutualReviewCoordinator(store=store, notifier=notifier).submit_review(
                str(project.id), str(client_user.id), 5,
            )
        assert store.calls_to('insert') == []
        assert not Review.objects.exists()

    def test_stranger_is_not_found(self, completed_project, other_client_user, notifier):
        with pytest.raises(NotFound):
            MutualReviewCoordinator(notifier=notifier).submit_review(
                str(completed_project.id), str(other_client_user.id), 5,
            )

    def test_project_not_completed_yet(self, client_user, notifier):
        project, _ = assigned_project(status='work_submitted', client=client_user)
        with pytest.raises(InvalidTransition):
            MutualReviewCoordinator(notifier=notifier).submit_review(str(project.id), str(client_user.id), 5)
        assert not Review.objects.exists()

    @pytest.mark.parametrize('rating', [0, 6, 4.5, '5', True, None])
    def test_rating_must_be_one_to_five(self, completed_project, client_user, notifier, rating):
        with pytest.raises(InvalidInput):
            MutualReviewCoordinator(notifier=notifier).submit_review(
                str(completed_project.id), str(client_user.id), rating,
            )

    def test_rating_stats_follow_reviews(self, completed_project, client_user, professional_user, notifier):
        MutualReviewCoordinator(notifier=notifier).submit_review(str(completed_project.id), str(client_user.id), 4)
        assert professional_user.get_rating_stats() == {'average_rating': 4.0, 'total_ratings': 1}


@pytest.mark.django_db
class TestReconcile:
    def test_archives_completed_project_with_a_review(self, completed_project, client_user):
        ReviewFactory(project=completed_project, reviewer_role='client')
        row = MutualReviewCoordinator(archive_on_first_review=True).reconcile(
            str(completed_project.id), str(client_user.id),
        )
        assert row['status'] == 'archived'
        assert Project.objects.get(pk=completed_project.pk).status == 'archived'

    def test_leaves_unreviewed_project_alone(self, completed_project, client_user):
        row = MutualReviewCoordinator().reconcile(str(completed_project.id), str(client_user.id))
        assert row['status'] == 'completed'

    def test_failed_archival_is_recovered(self, completed_project, client_user, notifier):
        failing = RecordingStore(fail_on=('update', 'projects', 1))
        with pytest.raises(StoreUnavailable):
            MutualReviewCoordinator(store=failing, notifier=notifier, archive_on_first_review=True).submit_review(
                str(completed_project.id), str(client_user.id), 5,
            )
        assert Review.objects.filter(project=completed_project).count() == 1
        assert Project.objects.get(pk=completed_project.pk).status == 'completed'

        MutualReviewCoordinator(archive_on_first_review=True).reconcile(str(completed_project.id), str(client_user.id))
        assert Project.objects.get(pk=completed_project.pk).status == 'archived'
