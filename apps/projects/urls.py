from django.urls import path
from .views import (
    ProjectCreateView, OpenProjectListView, ProjectDetailView, ProjectApplicationView,
    ProjectEditView, ApplicationDecisionView, ProjectReconcileView, StartWorkView, SubmitWorkView,
    RequestRevisionView, ApproveWorkView, CancelProjectView, DisputeView,
    ProjectReviewView, DashboardView,
)

urlpatterns = [
    path('projects/create/', ProjectCreateView.as_view(), name='project_create'),
    path('projects/open/', OpenProjectListView.as_view(), name='open_projects'),
    path('projects/<uuid:pk>/details/', ProjectDetailView.as_view(), name='project_details'),
    path('projects/<uuid:pk>/update/', ProjectEditView.as_view(), name='project_update'),
    path('projects/<uuid:pk>/apply/', ProjectApplicationView.as_view(), name='project_apply'),
    path('projects/<uuid:pk>/reconcile/', ProjectReconcileView.as_view(), name='project_reconcile'),
    path('projects/<uuid:pk>/start/', StartWorkView.as_view(), name='project_start'),
    path('projects/<uuid:pk>/submit-work/', SubmitWorkView.as_view(), name='project_submit_work'),
    path('projects/<uuid:pk>/request-revision/', RequestRevisionView.as_view(), name='project_request_revision'),
    path('projects/<uuid:pk>/approve/', ApproveWorkView.as_view(), name='project_approve'),
    path('projects/<uuid:pk>/cancel/', CancelProjectView.as_view(), name='project_cancel'),
    path('projects/<uuid:pk>/dispute/', DisputeView.as_view(), name='project_dispute'),
    path('projects/<uuid:pk>/reviews/', ProjectReviewView.as_view(), name='project_reviews'),
    path('applications/<uuid:pk>/decide/', ApplicationDecisionView.as_view(), name='application_decide'),
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
]
