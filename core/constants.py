# core/constants.py
PROJECT_STATUS_CHOICES = (
    ('open', 'Open'),                                        # Accepting applications
    ('assigned', 'Assigned'),                                # An application was accepted
    ('in_progress', 'In Progress'),                          # Professional started the work
    ('work_submitted', 'Work Submitted'),                    # Waiting for the client's review
    ('work_revision_requested', 'Work Revision Requested'),  # Client asked for changes
    ('work_approved', 'Work Approved'),                      # Client approved the delivery
    ('completed', 'Completed'),                              # Delivery phase closed, reviews open
    ('archived', 'Archived'),                                # Reviewed and closed
    ('cancelled', 'Cancelled'),                              # Abandoned by the client
    ('disputed', 'Disputed'),                                # Under dispute
)

APPLICATION_STATUS_CHOICES = (
    ('pending', 'Pending'),      # Professional applied, awaiting client response
    ('accepted', 'Accepted'),    # Client accepted the application
    ('rejected', 'Rejected'),    # Client rejected it, or another one was accepted
)

WORK_STATUS_CHOICES = (
    ('pending_review', 'Pending Review'),
    ('approved', 'Approved'),
    ('revision_requested', 'Revision Requested'),
)

REVIEWER_ROLE_CHOICES = (
    ('client', 'Client'),
    ('professional', 'Professional'),
)

PAYMENT_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
)

PROJECT_UPDATE_TYPE_CHOICES = (
    ('status_update', 'Status Update'),
    ('completion_note', 'Completion Note'),
    ('revision_requested', 'Revision Requested'),
    ('cancelled', 'Cancelled'),
    ('dispute_opened', 'Dispute Opened'),
)

NOTIFICATION_KIND_CHOICES = (
    ('info', 'Info'),
    ('success', 'Success'),
    ('warning', 'Warning'),
    ('error', 'Error'),
)
