import uuid

import pytest

from conftest import ApplicationFactory, ProjectFactory
from core.exceptions import UniqueViolation
from apps.projects.models import Application, Project
from apps.projects.store import DjangoStore, Where, to_row


@pytest.mark.django_db
class TestSelect:
    def test_rows_are_plain_dicts_with_string_ids(self, client_user):
        project = ProjectFactory(client=client_user)
        rows = DjangoStore().select('projects', Where(id=str(project.id)))
        assert len(rows) == 1
        assert rows[0]['id'] == str(project.id)
        assert rows[0]['client_id'] == str(client_user.id)
        assert rows[0]['status'] == 'open'

    def test_neq_and_membership(self, client_user):
        p1, p2, p3 = (ProjectFactory(client=client_user) for _ in range(3))
        store = DjangoStore()
        rows = store.select('projects', Where(client_id=str(client_user.id)).neq('id', str(p1.id)))
        assert {r['id'] for r in rows} == {str(p2.id), str(p3.id)}
        rows = store.select('projects', Where().in_('id', [str(p1.id), str(p3.id)]))
        assert {r['id'] for r in rows} == {str(p1.id), str(p3.id)}

    def test_filter_through_relation(self, client_user, other_client_user):
        own = ApplicationFactory(project=ProjectFactory(client=client_user))
        ApplicationFactory(project=ProjectFactory(client=other_client_user))
        rows = DjangoStore().select('applications', Where(project__client_id=str(client_user.id)))
        assert [r['id'] for r in rows] == [str(own.id)]

    def test_joins_nest_related_rows(self):
        application = ApplicationFactory()
        rows = DjangoStore().select(
            'applications', Where(id=str(application.id)),
            joins={'professional': ('id', 'username'), 'project': None},
        )
        professional = rows[0]['professional']
        assert professional == {'id': str(application.professional_id), 'username': application.professional.username}
        assert rows[0]['project']['title'] == application.project.title

    def test_joined_user_never_carries_password(self):
        application = ApplicationFactory()
        rows = DjangoStore().select('applications', Where(id=str(application.id)), joins=['professional'])
        assert 'password' not in rows[0]['professional']

    def test_malformed_id_matches_nothing(self):
        ProjectFactory()
        assert DjangoStore().select('projects', Where(id='not-a-uuid')) == []

    def test_unknown_collection(self):
        with pytest.raises(ValueError):
            DjangoStore().select('invoices')


@pytest.mark.django_db
class TestWrites:
    def test_conditional_update_reports_matched_rows(self):
        project = ProjectFactory()
        store = DjangoStore()
        assert store.update('projects', {'title': 'Renamed'}, Where(id=str(project.id), status='open')) == 1
        assert store.update('projects', {'title': 'Again'}, Where(id=str(project.id), status='assigned')) == 0
        project.refresh_from_db()
        assert project.title == 'Renamed'

    def test_update_refuses_empty_predicate(self):
        with pytest.raises(ValueError):
            DjangoStore().update('projects', {'status': 'cancelled'}, Where())

    def test_update_touches_updated_at(self):
        project = ProjectFactory()
        before = project.updated_at
        DjangoStore().update('projects', {'title': 'New'}, Where(id=str(project.id)))
        project.refresh_from_db()
        assert project.updated_at >= before

    def test_insert_returns_rows_with_generated_ids(self, client_user):
        rows = DjangoStore().insert('projects', [{'client_id': str(client_user.id), 'title': 'Logo'}])
        assert uuid.UUID(rows[0]['id'])
        assert Project.objects.filter(pk=rows[0]['id'], status='open').exists()

    def test_duplicate_application_is_a_unique_violation(self):
        application = ApplicationFactory()
        with pytest.raises(UniqueViolation):
            DjangoStore().insert('applications', [{
                'project_id': str(application.project_id),
                'professional_id': str(application.professional_id),
            }])
        assert Application.objects.filter(project=application.project).count() == 1

    def test_second_accepted_application_is_rejected_by_the_database(self):
        project = ProjectFactory()
        ApplicationFactory(project=project, status='accepted')
        other = ApplicationFactory(project=project)
        with pytest.raises(UniqueViolation):
            DjangoStore().update('applications', {'status': 'accepted'}, Where(id=str(other.id)))
        other.refresh_from_db()
        assert other.status == 'pending'

    def test_delete_counts_only_the_collection(self):
        application = ApplicationFactory()
        deleted = DjangoStore().delete('applications', Where(id=str(application.id), status='pending'))
        assert deleted == 1
        assert not Application.objects.filter(pk=application.pk).exists()

    def test_to_row_restricts_columns(self):
        project = ProjectFactory()
        assert set(to_row(project, ('id', 'title'))) == {'id', 'title'}
