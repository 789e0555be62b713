import uuid

from django.db import models
from django.contrib.auth.models import AbstractUser
from django.db.models import Avg, Count


class User(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)

    @property
    def is_client(self):
        return hasattr(self, 'client')

    @property
    def is_professional(self):
        return hasattr(self, 'professional')

    @property
    def role(self):
        if self.is_client:
            return 'client'
        if self.is_professional:
            return 'professional'
        return None

    def get_rating_stats(self):
        """Average rating received by this user through mutual reviews."""
        from apps.projects.models import Review

        if self.is_professional:
            received = Review.objects.filter(professional=self, reviewer_role='client')
        else:
            received = Review.objects.filter(client=self, reviewer_role='professional')
        stats = received.aggregate(average_rating=Avg('rating'), total_ratings=Count('id'))
        return {
            'average_rating': round(stats['average_rating'] or 0.0, 1),
            'total_ratings': stats['total_ratings'] or 0,
        }


class Client(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='client')
    company_name = models.CharField(max_length=200, blank=True, null=True)
    location = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Client: {self.user.username}"


class Professional(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='professional')
    skills = models.CharField(max_length=500, blank=True, default='')
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    location = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Professional: {self.user.username}"
