from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.core.exceptions import ObjectDoesNotExist
import logging

from .dashboard import schedule_refresh

logger = logging.getLogger(__name__)

# Coordinators write through queryset updates (no signals) and drop the
# cached snapshots themselves; these cover saves made through the ORM
# elsewhere, e.g. the admin or payment records.


@receiver(post_save, sender='projects.Project')
@receiver(post_delete, sender='projects.Project')
def refresh_project_parties(sender, instance, **kwargs):
    """Invalidate dashboards when a Project is saved outside the coordinators."""
    schedule_refresh(str(instance.client_id), instance.assigned_to_id and str(instance.assigned_to_id))


@receiver(post_save, sender='projects.Application')
@receiver(post_delete, sender='projects.Application')
def refresh_application_parties(sender, instance, **kwargs):
    try:
        client_id = instance.project.client_id
    except ObjectDoesNotExist:
        logger.warning(f"Application {instance.id} has no project, skipping dashboard refresh")
        return
    schedule_refresh(str(client_id), str(instance.professional_id))


@receiver(post_save, sender='projects.Payment')
@receiver(post_save, sender='projects.Review')
def refresh_payment_or_review_parties(sender, instance, **kwargs):
    schedule_refresh(str(instance.client_id), str(instance.professional_id))
