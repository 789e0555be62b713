from rest_framework import serializers
from .models import Project, ProjectUpdate
from apps.users.serializers import UserSummarySerializer


class ProjectSerializer(serializers.ModelSerializer):
    client = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'client', 'assigned_to', 'title', 'description', 'budget', 'status',
            'work_status', 'artifact_ref', 'revision_notes', 'work_submitted_at', 'work_reviewed_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'status', 'work_status', 'artifact_ref', 'revision_notes', 'work_submitted_at',
            'work_reviewed_at', 'created_at', 'updated_at',
        ]

    def validate_budget(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError("Budget must be positive.")
        return value


class ProjectUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectUpdate
        fields = ['id', 'update_type', 'message', 'metadata', 'created_by', 'created_at']
        read_only_fields = fields


class ProjectDetailSerializer(ProjectSerializer):
    updates = ProjectUpdateSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['updates']


# Request bodies for the lifecycle endpoints

class ApplicationActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['apply', 'withdraw'], default='apply')
    application_id = serializers.UUIDField(required=False)
    proposal = serializers.CharField(required=False, allow_blank=True, default='')
    bid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)

    def validate(self, data):
        if data['action'] == 'withdraw' and not data.get('application_id'):
            raise serializers.ValidationError("application_id is required to withdraw.")
        return data


class DecisionSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=['accept', 'reject'])


class SubmitWorkSerializer(serializers.Serializer):
    artifact_ref = serializers.CharField(max_length=500)
    summary = serializers.CharField(required=False, allow_blank=True, default='')


class RevisionRequestSerializer(serializers.Serializer):
    notes = serializers.CharField()


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ReviewSubmitSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ProjectEditSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    budget = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
