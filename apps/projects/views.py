from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db.models import Q
import logging

from core.exceptions import LifecycleError
from core.utils import IsClient, IsProfessional, IsProjectParty
from .models import Project
from .serializers import (
    ProjectSerializer, ProjectDetailSerializer, ApplicationActionSerializer, DecisionSerializer,
    SubmitWorkSerializer, RevisionRequestSerializer, ReasonSerializer, ReviewSubmitSerializer,
    ProjectEditSerializer,
)
from .decisions import ApplicationDecisionCoordinator
from .work_review import WorkReviewCoordinator, ProjectLifecycleCoordinator
from .reviews import MutualReviewCoordinator
from .dashboard import DashboardAggregator, ROLES

logger = logging.getLogger(__name__)

project_id_param = openapi.Parameter('pk', openapi.IN_PATH, type=openapi.TYPE_STRING, format='uuid')


def error_response(exc):
    return Response({"error": exc.message}, status=exc.status_code)


def decision_payload(decision):
    return {
        "message": f"Application {decision.outcome}ed",
        "application": decision.application,
        "project": decision.project,
        "rejected_count": decision.rejected_count,
    }


class ProjectCreateView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Create a new project. It starts out open for applications.",
        request_body=ProjectSerializer,
        responses={201: ProjectSerializer, 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def post(self, request):
        serializer = ProjectSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            project = serializer.save(client=request.user)
            logger.info(f"Project {project.id} created by client {request.user.id}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class OpenProjectListView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="List projects that are open for applications.",
        responses={200: ProjectSerializer(many=True), 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def get(self, request):
        projects = Project.objects.filter(status='open').select_related('client')
        serializer = ProjectSerializer(projects, many=True)
        return Response(serializer.data)


class ProjectDetailView(APIView):
    permission_classes = [IsAuthenticated, IsProjectParty]

    @swagger_auto_schema(
        operation_description="Project details with its update timeline. Visible to the client, "
                              "the assigned professional and applicants.",
        manual_parameters=[project_id_param],
        responses={200: ProjectDetailSerializer, 404: 'Not Found'}
    )
    def get(self, request, pk):
        project = (
            Project.objects.filter(pk=pk)
            .filter(Q(client=request.user) | Q(assigned_to=request.user) | Q(applications__professional=request.user))
            .select_related('client', 'assigned_to')
            .prefetch_related('updates')
            .distinct()
            .first()
        )
        if project is None:
            return Response({"error": "Project not found or not authorized"}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProjectDetailSerializer(project).data)


class ProjectEditView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Edit the title, description or budget of one of your projects while it is still open.",
        manual_parameters=[project_id_param],
        request_body=ProjectEditSerializer,
        responses={200: 'Project updated', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def patch(self, request, pk):
        serializer = ProjectEditSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            project = ProjectLifecycleCoordinator().update_project(
                str(pk), str(request.user.pk), serializer.validated_data,
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Project updated", "project": project})


class ProjectApplicationView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Apply to an open project, or withdraw a pending application.",
        manual_parameters=[project_id_param],
        request_body=ApplicationActionSerializer,
        responses={200: 'Withdrawn', 201: 'Application created', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = ApplicationActionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        coordinator = ApplicationDecisionCoordinator()
        try:
            if data['action'] == 'withdraw':
                application = coordinator.withdraw(
                    str(data['application_id']), str(request.user.pk), project_id=str(pk),
                )
                return Response({"message": "Application withdrawn", "application": application})
            application = coordinator.apply(
                str(pk), str(request.user.pk), proposal=data['proposal'], bid_amount=data.get('bid_amount'),
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Application submitted", "application": application},
                        status=status.HTTP_201_CREATED)


class ApplicationDecisionView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Accept or reject a pending application on one of your projects. "
                              "Accepting assigns the project and rejects every other pending application.",
        request_body=DecisionSerializer,
        responses={200: 'Decision applied', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict', 503: 'Store unavailable'}
    )
    def post(self, request, pk):
        serializer = DecisionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            decision = ApplicationDecisionCoordinator().decide(
                str(pk), serializer.validated_data['outcome'], str(request.user.pk),
            )
        except LifecycleError as e:
            return error_response(e)
        return Response(decision_payload(decision))


class ProjectReconcileView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Finish an accept decision or an archival that was interrupted part way.",
        manual_parameters=[project_id_param],
        responses={200: 'Reconciled', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        actor_id = str(request.user.pk)
        try:
            decision = ApplicationDecisionCoordinator().reconcile(str(pk), actor_id)
            project = MutualReviewCoordinator().reconcile(str(pk), actor_id)
        except LifecycleError as e:
            return error_response(e)
        return Response({
            "message": "Project reconciled",
            "project": project,
            "decision": decision_payload(decision) if decision else None,
        })


class StartWorkView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Start (or resume after a revision request) work on an assigned project.",
        manual_parameters=[project_id_param],
        responses={200: 'Work started', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        try:
            project = WorkReviewCoordinator().start_work(str(pk), str(request.user.pk))
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Work started", "project": project})


class SubmitWorkView(APIView):
    permission_classes = [IsAuthenticated, IsProfessional]

    @swagger_auto_schema(
        operation_description="Submit work for the client's review.",
        manual_parameters=[project_id_param],
        request_body=SubmitWorkSerializer,
        responses={200: 'Work submitted', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = SubmitWorkSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            project = WorkReviewCoordinator().submit_work(
                str(pk),
                serializer.validated_data['artifact_ref'],
                actor_id=str(request.user.pk),
                summary=serializer.validated_data['summary'],
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Work submitted for review", "project": project})


class RequestRevisionView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Send submitted work back to the professional with revision notes.",
        manual_parameters=[project_id_param],
        request_body=RevisionRequestSerializer,
        responses={200: 'Revision requested', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = RevisionRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            project = WorkReviewCoordinator().request_revision(
                str(pk), serializer.validated_data['notes'], actor_id=str(request.user.pk),
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Revision requested", "project": project})


class ApproveWorkView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Approve submitted work; the project moves to completed.",
        manual_parameters=[project_id_param],
        responses={200: 'Work approved', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        try:
            project = WorkReviewCoordinator().approve_work(str(pk), actor_id=str(request.user.pk))
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Work approved", "project": project})


class CancelProjectView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(
        operation_description="Cancel a project that has not reached a terminal status.",
        manual_parameters=[project_id_param],
        request_body=ReasonSerializer,
        responses={200: 'Project cancelled', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = ReasonSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            project = ProjectLifecycleCoordinator().cancel_project(
                str(pk), str(request.user.pk), reason=serializer.validated_data['reason'],
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Project cancelled", "project": project})


class DisputeView(APIView):
    permission_classes = [IsAuthenticated, IsProjectParty]

    @swagger_auto_schema(
        operation_description="Open a dispute on a project you are a party to.",
        manual_parameters=[project_id_param],
        request_body=ReasonSerializer,
        responses={200: 'Dispute opened', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = ReasonSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            project = ProjectLifecycleCoordinator().open_dispute(
                str(pk), str(request.user.pk), serializer.validated_data['reason'],
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Dispute opened", "project": project})


class ProjectReviewView(APIView):
    permission_classes = [IsAuthenticated, IsProjectParty]

    @swagger_auto_schema(
        operation_description="Review the other party of a completed project.",
        manual_parameters=[project_id_param],
        request_body=ReviewSubmitSerializer,
        responses={201: 'Review submitted', 400: 'Bad Request', 404: 'Not Found', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = ReviewSubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            review = MutualReviewCoordinator().submit_review(
                str(pk),
                str(request.user.pk),
                serializer.validated_data['rating'],
                comment=serializer.validated_data['comment'],
            )
        except LifecycleError as e:
            return error_response(e)
        return Response({"message": "Review submitted", "review": review}, status=status.HTTP_201_CREATED)


class DashboardView(APIView):
    permission_classes = [IsAuthenticated, IsProjectParty]

    @swagger_auto_schema(
        operation_description="Projects, applications, payments and reviews for the current user.",
        manual_parameters=[
            openapi.Parameter('role', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=list(ROLES), required=False),
        ],
        responses={200: 'Dashboard snapshot', 400: 'Bad Request', 503: 'Store unavailable'}
    )
    def get(self, request):
        role = request.query_params.get('role') or request.user.role
        try:
            snapshot = DashboardAggregator().load_snapshot(str(request.user.pk), role)
        except LifecycleError as e:
            return error_response(e)
        return Response(snapshot.as_dict())
