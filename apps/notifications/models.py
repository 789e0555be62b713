import uuid

from django.db import models
from django.conf import settings
from django.utils import timezone
from core.constants import NOTIFICATION_KIND_CHOICES


class Notification(models.Model):
    """In-app notification, also tracking its email/SMS delivery."""
    DELIVERY_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
        ('failed', 'Failed')
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    message = models.TextField()
    kind = models.CharField(max_length=10, choices=NOTIFICATION_KIND_CHOICES, default='info')
    read = models.BooleanField(default=False)
    delivery_status = models.CharField(max_length=10, choices=DELIVERY_STATUS_CHOICES, default='pending')
    error_message = models.TextField(blank=True, null=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Notification to {self.user.username} - {self.title}"

    def mark_as_sent(self):
        self.delivery_status = 'sent'
        self.sent_at = timezone.now()
        self.save(update_fields=['delivery_status', 'sent_at'])

    def mark_as_failed(self, error_message):
        self.delivery_status = 'failed'
        self.error_message = error_message
        self.save(update_fields=['delivery_status', 'error_message'])
