import uuid

from django.db import models
from django.conf import settings
from core.constants import (
    PROJECT_STATUS_CHOICES, APPLICATION_STATUS_CHOICES, WORK_STATUS_CHOICES,
    REVIEWER_ROLE_CHOICES, PAYMENT_STATUS_CHOICES, PROJECT_UPDATE_TYPE_CHOICES,
)


class Project(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='projects')
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_projects'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=30, choices=PROJECT_STATUS_CHOICES, default='open')

    # Work submission state, only meaningful during the delivery phase
    work_status = models.CharField(max_length=30, choices=WORK_STATUS_CHOICES, blank=True, default='')
    artifact_ref = models.CharField(max_length=500, blank=True, default='')
    revision_notes = models.TextField(blank=True, default='')
    work_submitted_at = models.DateTimeField(null=True, blank=True)
    work_reviewed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.client.username}"


class Application(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name='applications')
    professional = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='applications')
    status = models.CharField(max_length=20, choices=APPLICATION_STATUS_CHOICES, default='pending')
    proposal = models.TextField(blank=True, default='')
    bid_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ('project', 'professional')
        constraints = [
            models.UniqueConstraint(
                fields=['project'],
                condition=models.Q(status='accepted'),
                name='unique_accepted_application_per_project',
            ),
        ]

    def __str__(self):
        return f"{self.professional.username} applied to {self.project.title}"


class Review(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name='reviews')
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='client_reviews')
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='professional_reviews'
    )
    reviewer_role = models.CharField(max_length=20, choices=REVIEWER_ROLE_CHOICES)
    rating = models.PositiveSmallIntegerField(choices=[(i, i) for i in range(1, 6)])  # 1 to 5 stars
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ('project', 'reviewer_role')

    def __str__(self):
        return f"{self.reviewer_role} review on {self.project.title} ({self.rating}/5)"


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name='payments')
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='client_payments')
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='professional_payments'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Payment of {self.amount} {self.currency} for {self.project.title}"


class ProjectUpdate(models.Model):
    """Append-only timeline entry written after a lifecycle step commits."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='updates')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='project_updates'
    )
    update_type = models.CharField(max_length=30, choices=PROJECT_UPDATE_TYPE_CHOICES)
    message = models.TextField(blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.update_type} on {self.project.title}"
