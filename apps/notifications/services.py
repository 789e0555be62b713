import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.mail import send_mail
from django.db import DatabaseError
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from .models import Notification

logger = logging.getLogger(__name__)
User = get_user_model()

PHONE_PATTERN = re.compile(r'^\+\d{9,15}$')


def send_notification(user, subject, email_message, sms_message):
    """
    Send a notification to a user via email and SMS.

    Args:
        user: User object to send notification to
        subject: Email subject
        email_message: Email message content
        sms_message: SMS message content

    Returns the list of channels that failed (empty when everything went out).
    """
    failed = []

    if user.email:
        try:
            send_mail(
                subject=subject,
                message=email_message,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
                fail_silently=False,
            )
            logger.info(f"Email notification sent to {user.email}")
        except Exception as e:
            logger.error(f"Failed to send email to {user.email}: {str(e)}")
            failed.append('email')

    if user.phone_number and settings.TWILIO_ACCOUNT_SID:
        if not PHONE_PATTERN.match(user.phone_number):
            logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
            return failed
        try:
            twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
            twilio_client.messages.create(
                body=sms_message,
                from_=settings.TWILIO_PHONE_NUMBER,
                to=user.phone_number
            )
            logger.info(f"SMS notification sent to {user.phone_number}")
        except TwilioRestException as e:
            logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")
            failed.append('sms')
        except Exception as e:
            logger.error(f"SMS transport error for {user.phone_number}: {str(e)}")
            failed.append('sms')

    return failed


def notify(user_id, title, message, kind='info'):
    """Notification sink used by the lifecycle coordinators.

    Stores an in-app notification and delivers it by email/SMS. Never raises:
    the operation that triggered it has already committed.
    """
    try:
        user = User.objects.get(pk=user_id)
        notification = Notification.objects.create(user=user, title=title, message=message, kind=kind)
    except (User.DoesNotExist, ValidationError):
        logger.warning(f"Notification '{title}' dropped: user {user_id} does not exist")
        return None
    except DatabaseError as e:
        logger.error(f"Failed to store notification for user {user_id}: {str(e)}")
        return None

    failed = send_notification(user, title, message, message)
    try:
        if failed:
            notification.mark_as_failed(f"Delivery failed on: {', '.join(failed)}")
        else:
            notification.mark_as_sent()
    except DatabaseError as e:
        logger.error(f"Failed to update delivery status of notification {notification.id}: {str(e)}")
    return notification
