import pytest

from conftest import ProjectFactory, RecordingStore
from core.exceptions import InvalidTransition, NotFound
from apps.projects.models import ProjectUpdate
from apps.projects.store import DjangoStore
from apps.projects.transitions import fetch_project, record_update, transition_project


@pytest.mark.django_db
class TestTransitionProject:
    def test_invalid_edge_is_refused_before_writing(self, store):
        project = ProjectFactory()
        row = fetch_project(store, str(project.id))
        with pytest.raises(InvalidTransition):
            transition_project(store, row, 'completed')
        assert store.calls_to('update') == []

    def test_stale_row_loses_the_race(self, professional_user):
        project = ProjectFactory()
        store = DjangoStore()
        stale = fetch_project(store, str(project.id))
        transition_project(store, dict(stale), 'cancelled')

        with pytest.raises(InvalidTransition) as excinfo:
            transition_project(store, stale, 'assigned', patch={'assigned_to_id': str(professional_user.id)})

        assert excinfo.value.current == 'cancelled'
        project.refresh_from_db()
        assert project.status == 'cancelled'
        assert project.assigned_to_id is None

    def test_scope_is_part_of_the_predicate(self, other_client_user):
        project = ProjectFactory()
        store = DjangoStore()
        row = fetch_project(store, str(project.id))
        with pytest.raises(NotFound):
            transition_project(store, row, 'cancelled', scope={'client_id': str(other_client_user.id)})
        project.refresh_from_db()
        assert project.status == 'open'

    def test_patch_is_written_with_the_status(self):
        project = ProjectFactory()
        store = DjangoStore()
        row = transition_project(store, fetch_project(store, str(project.id)), 'disputed', patch={'title': 'Held'})
        assert (row['status'], row['title']) == ('disputed', 'Held')
        project.refresh_from_db()
        assert (project.status, project.title) == ('disputed', 'Held')


@pytest.mark.django_db
class TestRecordUpdate:
    def test_appends_timeline_entry(self, client_user):
        project = ProjectFactory(client=client_user)
        record_update(DjangoStore(), str(project.id), str(client_user.id), 'status_update', 'Hello', {'a': 1})
        update = ProjectUpdate.objects.get(project=project)
        assert update.metadata == {'a': 1}
        assert update.created_by == client_user

    def test_store_failure_is_swallowed(self, client_user):
        project = ProjectFactory(client=client_user)
        failing = RecordingStore(fail_on=('insert', 'project_updates', 1))
        record_update(failing, str(project.id), str(client_user.id), 'status_update')
        assert not ProjectUpdate.objects.filter(project=project).exists()
